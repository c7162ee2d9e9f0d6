"""
Per-connection request handling.

Each accepted connection gets exactly one pass through:

    read request line -> parse path -> reject ``..`` -> primary candidates
    -> 404 candidates -> bare 404

and is then half-closed. Non-GET traffic is dropped without a response.
"""

import logging
import socket
from pathlib import Path
from typing import Tuple

from .candidates import fallback_candidates, primary_candidates
from .config import ServerConfig
from .errors import MalformedRequest
from .request import (RequestPath, has_traversal, parse_path,
                      read_request_line, split_request_line)
from .response import (FORBIDDEN_BODY, STATUS_FORBIDDEN, STATUS_NOT_FOUND,
                       STATUS_OK, ResponseWriter)

logger = logging.getLogger(__name__)


def format_peer(address) -> str:
    if isinstance(address, tuple) and len(address) >= 2:
        return f"{address[0]}:{address[1]}"
    return str(address or "local")


class ConnectionHandler:
    """
    Serves one request per connection from a canonical root.

    Holds only read-only state, so one instance can be shared by any
    number of worker threads.

    Args:
        config: Server configuration
        root: Canonical served root (see ServerConfig.served_root)
    """

    def __init__(self, config: ServerConfig, root: Path):
        self.config = config
        self.root = root

    def handle(self, conn: socket.socket, address: Tuple = ()) -> None:
        """
        Handle a single accepted connection. The caller closes conn.

        Raises:
            TruncatedRequest: The peer closed before sending a full line
            MalformedRequest: GET without a path token, or line too long
            InvalidInput: The path token is unusable
            OSError: Socket failure while writing the response
        """
        peer = format_peer(address)

        rfile = conn.makefile("rb", buffering=0)
        try:
            line = read_request_line(rfile, self.config.max_request_line)
        finally:
            rfile.close()

        method, target = split_request_line(line)
        if method != "GET":
            logger.warning(f"[{peer}] Unhandled request: {method!r} {target!r}")
            return
        if target is None:
            raise MalformedRequest("No request path found")

        request = parse_path(target)

        writer = ResponseWriter(conn, self.config.http_version, self.config.content_types)
        try:
            self.respond(writer, request, peer)
            writer.finish(self.config.drain_timeout)
        finally:
            writer.close()

    def respond(self, writer: ResponseWriter, request: RequestPath, peer: str = "local") -> str:
        """
        Write the response for a validated request path.

        Returns:
            The status line that was sent
        """
        if has_traversal(request.path):
            writer.send_bare(STATUS_FORBIDDEN, FORBIDDEN_BODY)
            logger.warning(f"[{peer}] {request} -> .. forbidden")
            return STATUS_FORBIDDEN

        kind = "index" if request.is_directory else "file"
        for candidate in primary_candidates(request.path, request.is_directory,
                                            self.config.index):
            if writer.try_serve(STATUS_OK, self.root, candidate):
                logger.info(f"[{peer}] {request} -> {kind} {candidate.as_posix()}")
                return STATUS_OK

        for candidate in fallback_candidates(request.path, request.is_directory,
                                             self.config.not_found):
            if writer.try_serve(STATUS_NOT_FOUND, self.root, candidate):
                logger.warning(f"[{peer}] {request} -> 404 {candidate.as_posix()}")
                return STATUS_NOT_FOUND

        writer.send_bare(STATUS_NOT_FOUND)
        logger.error(f"[{peer}] {request} -> 404")
        return STATUS_NOT_FOUND
