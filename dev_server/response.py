"""
Minimal HTTP response writer.

Responses carry a status line, an optional Content-Type header and the raw
file bytes. There is no Content-Length: the end of the body is signalled by
half-closing the connection.
"""

import logging
import select
import shutil
import socket
import time
from pathlib import Path, PurePath
from typing import Mapping, Optional

from .errors import OutsideRoot
from .resolver import resolve

logger = logging.getLogger(__name__)

STATUS_OK = "200 OK"
STATUS_FORBIDDEN = "403 Forbidden"
STATUS_NOT_FOUND = "404 Not Found"

FORBIDDEN_BODY = b"dev-server doesn't support .. in URLs."


def content_type_for(path: Path, content_types: Mapping[str, str]) -> Optional[str]:
    """Look up the MIME type for path by its lowercased extension."""
    extension = path.suffix[1:].lower()
    if not extension:
        return None
    return content_types.get(extension)


class ResponseWriter:
    """
    Writes exactly one response to an accepted connection.

    Args:
        conn: Accepted client socket
        http_version: Version token written on the status line
        content_types: Extension to MIME type table, may be empty
    """

    def __init__(self, conn: socket.socket, http_version: str = "HTTP/1.0",
                 content_types: Optional[Mapping[str, str]] = None):
        self.conn = conn
        self.http_version = http_version
        self.content_types = content_types or {}
        self.wfile = conn.makefile("wb")

    def _write_head(self, status: str, content_type: Optional[str] = None):
        head = f"{self.http_version} {status}\r\n"
        if content_type:
            head += f"Content-Type: {content_type}\r\n"
        head += "\r\n"
        self.wfile.write(head.encode("latin-1"))

    def try_serve(self, status: str, root: Path, candidate: PurePath) -> bool:
        """
        Attempt to stream one candidate file.

        Any failure to resolve, open or copy the candidate is reported as
        False so the caller can move on to the next candidate.

        Args:
            status: Status line to send on success, e.g. "200 OK"
            root: Canonical served root
            candidate: Candidate path relative to root

        Returns:
            True if the whole file was written
        """
        try:
            path = resolve(root, candidate)
            with open(path, "rb") as f:
                self._write_head(status, content_type_for(path, self.content_types))
                shutil.copyfileobj(f, self.wfile)
            self.wfile.flush()
        except (OutsideRoot, OSError, ValueError, RuntimeError) as e:
            logger.debug(f"Skipping candidate {candidate}: {e}")
            return False
        return True

    def send_bare(self, status: str, body: bytes = b""):
        """Send a status line with no headers, followed by an optional body."""
        self._write_head(status)
        if body:
            self.wfile.write(body)
        self.wfile.flush()

    def finish(self, drain_timeout: float = 1.0):
        """
        Flush and half-close the write side of the connection.

        Unread request bytes are then drained until the peer closes or
        drain_timeout expires, so closing the socket afterwards does not
        reset a response the peer has not read yet.
        """
        try:
            self.wfile.flush()
        finally:
            self.close()
        self.conn.shutdown(socket.SHUT_WR)
        _drain(self.conn, drain_timeout)

    def close(self):
        """Release the socket file; the socket itself only closes once this is done."""
        if not self.wfile.closed:
            self.wfile.close()


def _drain(conn: socket.socket, timeout: float):
    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return
        readable, _, _ = select.select([conn], [], [], remaining)
        if not readable:
            return
        try:
            if not conn.recv(4096):
                return
        except OSError:
            return
