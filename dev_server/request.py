"""
Request-line reading and request-path validation.

Only the first line of a request is ever read. Headers, bodies and the
HTTP version token are ignored.
"""

from pathlib import PurePath
from typing import NamedTuple, Optional, Tuple
from urllib.parse import unquote

from .errors import InvalidInput, MalformedRequest, TruncatedRequest

LINE_TERMINATORS = b"\r\n"


class RequestPath(NamedTuple):
    """A decoded request path, relative to the served root."""

    path: PurePath
    is_directory: bool

    def __str__(self):
        text = "" if self.path == PurePath(".") else self.path.as_posix()
        if self.is_directory and text:
            text += "/"
        return f"/{text}"


def read_request_line(rfile, max_length: int = 8192) -> str:
    """
    Read a single request line from a binary stream.

    Reads one byte at a time so nothing past the terminator is consumed,
    whatever buffering the transport does.

    Args:
        rfile: Binary file-like object with a ``read`` method
        max_length: Maximum number of bytes before the terminator

    Returns:
        The line without its terminator, decoded as UTF-8 (lossy)

    Raises:
        TruncatedRequest: If the stream ends before ``\\r`` or ``\\n``
        MalformedRequest: If the line exceeds max_length bytes
    """
    buffer = bytearray()
    while True:
        byte = rfile.read(1)
        if not byte:
            raise TruncatedRequest("No newline found in request")
        if byte in LINE_TERMINATORS:
            break
        buffer += byte
        if len(buffer) > max_length:
            raise MalformedRequest(f"Request line longer than {max_length} bytes")
    return buffer.decode("utf-8", errors="replace")


def split_request_line(line: str) -> Tuple[str, Optional[str]]:
    """Split a request line into its method and (possibly missing) path token."""
    tokens = line.split(" ")
    method = tokens[0]
    target = tokens[1] if len(tokens) > 1 else None
    return method, target


def parse_path(target: str) -> RequestPath:
    """
    Validate a path token and turn it into a root-relative path.

    Args:
        target: Path token from the request line, e.g. ``/docs/``

    Returns:
        RequestPath with the leading ``/`` stripped

    Raises:
        InvalidInput: If the token is not absolute, is root-anchored after
            stripping its leading ``/``, or contains a NUL byte
    """
    if not target.startswith("/"):
        raise InvalidInput(f"Paths must be absolute: {target!r}")

    for separator in "?#":
        target = target.partition(separator)[0]
    decoded = unquote(target, errors="replace")

    if "\x00" in decoded:
        raise InvalidInput(f"Paths must not contain NUL: {target!r}")

    is_directory = decoded.endswith("/")
    path = PurePath(decoded[1:])
    if path.anchor:
        raise InvalidInput(f"Paths must not start with //: {target!r}")

    return RequestPath(path, is_directory)


def has_traversal(path: PurePath) -> bool:
    """True if any component of path is literally ``..``."""
    return ".." in path.parts
