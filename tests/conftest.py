"""Shared fixtures: a served tree, an in-process exchange and a live server."""

import os
import socket
import threading

import pytest

from dev_server.config import ServerConfig
from dev_server.handler import ConnectionHandler
from dev_server.server import DevServer

INDEX_HTML = b"<html><body>home</body></html>\n"
SUB_INDEX_HTML = b"<html><body>sub</body></html>\n"
STYLE_CSS = b"body { color: red; }\n"
NOT_FOUND_HTML = b"<html><body>not here</body></html>\n"
SECRET = b"top secret\n"
BINARY = bytes(range(256)) * 4


@pytest.fixture
def site(tmp_path):
    """
    Served tree at tmp_path/www plus a few things that must stay unreachable:

        secret.txt           outside the root
        www-abc/leak.txt     sibling sharing the root's name as a prefix
        www/escape.txt       symlink to secret.txt
        www/escape-dir       symlink to www-abc
    """
    root = tmp_path / "www"
    (root / "sub" / "deeper").mkdir(parents=True)
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "style.css").write_bytes(STYLE_CSS)
    (root / "data.bin").write_bytes(BINARY)
    (root / "notes.txt").write_bytes(b"plain notes\n")
    (root / "404.html").write_bytes(NOT_FOUND_HTML)
    (root / "sub" / "index.html").write_bytes(SUB_INDEX_HTML)
    (root / "sub" / "page.html").write_bytes(b"sub page\n")
    (root / "sub" / "deeper" / "home.htm").write_bytes(b"deeper home\n")

    (tmp_path / "secret.txt").write_bytes(SECRET)
    (tmp_path / "www-abc").mkdir()
    (tmp_path / "www-abc" / "leak.txt").write_bytes(SECRET)

    os.symlink(tmp_path / "secret.txt", root / "escape.txt")
    os.symlink(tmp_path / "www-abc", root / "escape-dir")
    os.symlink(root / "sub" / "page.html", root / "inside-link.html")
    return root


def _read_all(sock: socket.socket) -> bytes:
    chunks = []
    while True:
        chunk = sock.recv(65536)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


@pytest.fixture
def exchange(site):
    """
    Run one request through ConnectionHandler over a socketpair.

    Returns a function ``exchange(request_bytes, **config) -> response_bytes``.
    Handler exceptions propagate to the test.
    """
    def run(request: bytes, **overrides) -> bytes:
        overrides.setdefault("directory", site)
        overrides.setdefault("drain_timeout", 0.2)
        config = ServerConfig(**overrides)
        handler = ConnectionHandler(config, config.served_root())

        server_side, client_side = socket.socketpair()
        try:
            client_side.sendall(request)
            client_side.shutdown(socket.SHUT_WR)
            try:
                handler.handle(server_side, ("test", 0))
            finally:
                server_side.close()
            return _read_all(client_side)
        finally:
            client_side.close()

    return run


@pytest.fixture
def live_server(site):
    """Factory starting a DevServer on an ephemeral port in a daemon thread."""
    servers = []

    def start(**overrides) -> DevServer:
        overrides.setdefault("directory", site)
        overrides.setdefault("port", 0)
        overrides.setdefault("drain_timeout", 0.2)
        server = DevServer(ServerConfig(**overrides))
        server.bind()
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        servers.append((server, thread))
        return server

    yield start

    for server, thread in servers:
        server.stop()
        thread.join(timeout=5)


@pytest.fixture
def http_get():
    """Send raw bytes to a live server and return everything it sends back."""
    def fetch(address, request: bytes, half_close: bool = False) -> bytes:
        with socket.create_connection(address, timeout=5) as sock:
            sock.sendall(request)
            if half_close:
                sock.shutdown(socket.SHUT_WR)
            return _read_all(sock)

    return fetch
