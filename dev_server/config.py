"""Server configuration and its defaults."""

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Tuple

from .candidates import Candidate
from .errors import ConfigError
from .resolver import canonical_root

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000
DEFAULT_INDEX = ("./index.html",)
DEFAULT_CONTENT_TYPES = MappingProxyType({
    "html": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "wasm": "application/wasm",
})
HTTP_VERSIONS = ("HTTP/1.0", "HTTP/1.1")


def parse_candidates(entries: Iterable) -> Tuple[Candidate, ...]:
    """Accept Candidate instances or their command-line string form."""
    return tuple(entry if isinstance(entry, Candidate) else Candidate.parse(entry)
                 for entry in entries)


def parse_content_types(text: str) -> Dict[str, str]:
    """
    Parse whitespace-separated ``extension=mime/type`` pairs.

    Args:
        text: e.g. "html=text/html css=text/css"

    Returns:
        Mapping from lowercased extension (without dot) to MIME type

    Raises:
        ConfigError: If a pair has no ``=`` or more than one
    """
    content_types = {}
    for pair in text.split():
        parts = pair.split("=")
        if len(parts) < 2:
            raise ConfigError(f"No = found in {pair!r}")
        if len(parts) > 2:
            raise ConfigError(f"Too many = found in {pair!r}")
        extension, mime = parts
        content_types[extension.lstrip(".").lower()] = mime
    return content_types


def format_content_types(content_types: Mapping[str, str]) -> str:
    return " ".join(f"{ext}={mime}" for ext, mime in content_types.items())


@dataclass(frozen=True)
class ServerConfig:
    """
    Everything the server core needs, built once before the accept loop.

    Attributes:
        host: Address to bind
        port: Port to bind (0 picks an ephemeral port)
        directory: Directory to serve
        index: Entries tried, in order, for requests ending in ``/``
        not_found: Entries tried, in order, when nothing else matched
        content_types: Extension to MIME type table; empty disables the header
        http_version: Version token written on every status line
        max_threads: Worker pool size; 0 handles connections sequentially
        max_request_line: Longest accepted request line, in bytes
        drain_timeout: Seconds spent draining unread input after a response
    """

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    directory: Path = Path(".")
    index: Tuple[Candidate, ...] = parse_candidates(DEFAULT_INDEX)
    not_found: Tuple[Candidate, ...] = ()
    content_types: Mapping[str, str] = field(default_factory=lambda: DEFAULT_CONTENT_TYPES)
    http_version: str = "HTTP/1.0"
    max_threads: int = 0
    max_request_line: int = 8192
    drain_timeout: float = 1.0

    def __post_init__(self):
        # Frozen: normalize through object.__setattr__.
        object.__setattr__(self, "directory", Path(self.directory))
        object.__setattr__(self, "index", parse_candidates(self.index))
        object.__setattr__(self, "not_found", parse_candidates(self.not_found))
        object.__setattr__(self, "content_types",
                           MappingProxyType(dict(self.content_types)))
        self.validate()

    def validate(self):
        if not 0 <= self.port <= 65535:
            raise ConfigError(f"Port must be between 0 and 65535, got {self.port}")
        if self.http_version not in HTTP_VERSIONS:
            raise ConfigError(f"Unsupported HTTP version {self.http_version!r}")
        if self.max_threads < 0:
            raise ConfigError("Max threads must be at least 0")
        if self.max_request_line < 1:
            raise ConfigError("Max request line must be at least 1 byte")
        if self.drain_timeout < 0:
            raise ConfigError("Drain timeout must not be negative")

    def served_root(self) -> Path:
        """Canonical served root; raises ConfigError if it is not a directory."""
        return canonical_root(self.directory)
