"""
Candidate selection for a logical request.

Index and 404 entries come in two addressing modes: relative to the served
root (``404.html``) or relative to the requested path (``./index.html``).
The mode is parsed once into a Candidate so the selector never has to sniff
string prefixes per request.
"""

from pathlib import PurePath
from typing import Iterable, List, NamedTuple


class Candidate(NamedTuple):
    """One configured index or 404 entry."""

    path: PurePath
    request_relative: bool = False

    @classmethod
    def parse(cls, entry: str) -> "Candidate":
        """
        Build a candidate from its command-line form.

        Entries whose first component is ``.`` are request-relative. Any
        other entry is relative to the served root; leading separators are
        dropped so ``/404.html`` means the same as ``404.html``.
        """
        entry = str(entry)
        first = entry.replace("\\", "/").split("/", 1)[0]
        if first == ".":
            return cls(PurePath(entry), True)
        return cls(PurePath(entry.lstrip("/\\")), False)

    def target(self, base: PurePath) -> PurePath:
        """Relative filesystem path this entry denotes for the given base."""
        if self.request_relative:
            return base / self.path
        return self.path

    def __str__(self):
        if not self.request_relative:
            return str(self.path)
        return "./" if self.path == PurePath(".") else f"./{self.path}"


def primary_candidates(request_path: PurePath, is_directory: bool,
                       index: Iterable[Candidate]) -> List[PurePath]:
    """
    Ordered paths to try before falling back to 404 entries.

    Args:
        request_path: Validated request path, relative to the served root
        is_directory: Whether the request ended with ``/``
        index: Configured index entries, in configuration order

    Returns:
        Index substitutions for directory requests, otherwise the literal path
    """
    if is_directory:
        return [entry.target(request_path) for entry in index]
    return [request_path]


def fallback_candidates(request_path: PurePath, is_directory: bool,
                        not_found: Iterable[Candidate]) -> List[PurePath]:
    """Ordered 404 substitutions, joined onto the requested directory."""
    base = request_path if is_directory else request_path.parent
    return [entry.target(base) for entry in not_found]
