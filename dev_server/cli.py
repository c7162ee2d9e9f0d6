"""
Command-line entry point.

    dev-server -d site --404 404.html -c "html=text/html svg=image/svg+xml"
"""

import argparse
import ipaddress
import logging
import os
import signal
import sys
from typing import List, Optional

from . import __version__
from .config import (DEFAULT_CONTENT_TYPES, DEFAULT_HOST, DEFAULT_INDEX,
                     DEFAULT_PORT, HTTP_VERSIONS, ServerConfig,
                     format_content_types, parse_content_types)
from .errors import ConfigError, DevServerError
from .server import DevServer

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(threadName)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

DESCRIPTION = """\
A simple development HTTP server, focusing on simplicity and secure defaults.

Paths given to --index and --404:
    some/path    relative to the served directory
    ./some/path  relative to the requested path

If multiple paths are given, they are tried in order.
No files outside the served directory are served."""


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the ``dev_server`` logger.

    Args:
        level: Logging level for the logger and its handlers
        log_file: Optional file to append to; its directory is created

    Returns:
        The configured logger
    """
    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)
    logger = logging.getLogger("dev_server")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Prevent duplicate logs
    logger.propagate = False
    return logger


def _ip_address(value: str) -> str:
    try:
        return str(ipaddress.ip_address(value))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid IP address: {value!r}")


def _port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError("Port must be an integer")
    if not 1 <= port <= 65535:
        raise argparse.ArgumentTypeError("Port must be between 1 and 65535")
    return port


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dev-server",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-p", "--port", type=_port, default=DEFAULT_PORT,
                        help=f"port to listen on (default: {DEFAULT_PORT})")
    parser.add_argument("-r", "--remote", type=_ip_address, default=DEFAULT_HOST,
                        help=f"address to listen on (default: {DEFAULT_HOST})")
    parser.add_argument("-d", "--directory", default=".",
                        help="directory to serve (default: current directory)")
    parser.add_argument("-i", "--index", action="append", metavar="PATH",
                        help=f"index file for paths ending in / (default: {DEFAULT_INDEX[0]})")
    parser.add_argument("--no-index", action="store_true", help="disables --index")
    parser.add_argument("--404", dest="not_found", action="append", default=[],
                        metavar="PATH", help="file served with status 404 when nothing matches")
    parser.add_argument("-c", "--content-types", metavar="EXTENSION=MIME/TYPE",
                        default=format_content_types(DEFAULT_CONTENT_TYPES),
                        help="space separated extension=mime/type pairs (default: %(default)s)")
    parser.add_argument("--http-version", choices=HTTP_VERSIONS, default=HTTP_VERSIONS[0],
                        help="version token on status lines (default: %(default)s)")
    parser.add_argument("-t", "--threads", type=int, default=0, metavar="N",
                        help="handle connections on N worker threads (default: 0, sequential)")
    parser.add_argument("--log-file", help="also append log records to this file")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="log debug messages")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="log warnings and errors only")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """
    Build a ServerConfig from parsed arguments.

    Raises:
        ConfigError: If a value fails validation
    """
    if args.no_index:
        index = []
    else:
        index = args.index or list(DEFAULT_INDEX)
    return ServerConfig(
        host=args.remote,
        port=args.port,
        directory=args.directory,
        index=index,
        not_found=args.not_found,
        content_types=parse_content_types(args.content_types),
        http_version=args.http_version,
        max_threads=args.threads,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the development server.
    Parses command line arguments and serves until interrupted.
    """
    args = build_parser().parse_args(argv)

    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logger = setup_logging(level, args.log_file)

    try:
        config = config_from_args(args)
        server = DevServer(config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    def _signal_handler(signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        server.stop()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        server.start()
    except OSError as e:
        print(f"Error starting server: {e}", file=sys.stderr)
        return 1
    except DevServerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
