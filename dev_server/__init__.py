"""
dev_server - a single-directory static file server for local development.

One connection carries one GET request and one response. Nothing outside
the served directory is ever opened.
"""

__version__ = "0.1.0"

from .candidates import Candidate
from .config import ServerConfig
from .errors import (ConfigError, DevServerError, InvalidInput,
                     MalformedRequest, OutsideRoot, RequestError,
                     TruncatedRequest)
from .handler import ConnectionHandler
from .server import DevServer

__all__ = [
    "Candidate",
    "ConfigError",
    "ConnectionHandler",
    "DevServer",
    "DevServerError",
    "InvalidInput",
    "MalformedRequest",
    "OutsideRoot",
    "RequestError",
    "ServerConfig",
    "TruncatedRequest",
]
