"""
Exception taxonomy for the development server.

Per-request failures derive from RequestError and never escape the accept
loop. OutsideRoot is raised for a single candidate and is always recovered
by trying the next one.
"""


class DevServerError(Exception):
    """Base class for every error raised by dev_server."""


class ConfigError(DevServerError):
    """Invalid configuration value."""


class RequestError(DevServerError):
    """A request line could not be turned into a servable path."""


class TruncatedRequest(RequestError):
    """The peer closed the connection before a line terminator was read."""


class MalformedRequest(RequestError):
    """The request line has no path token or is too long."""


class InvalidInput(RequestError):
    """The path token is not a usable absolute URL path."""


class OutsideRoot(DevServerError):
    """A canonical candidate path is not inside the served root."""

    def __init__(self, path, root):
        super().__init__(f"Can't serve {path}: outside {root}")
        self.path = path
        self.root = root
