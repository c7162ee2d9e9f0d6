"""
Listening socket and accept loop.

By default connections are handled strictly one after another: accept,
handle to completion, close, accept again. With ``max_threads > 0`` the
accept loop instead queues each connection for a fixed pool of worker
threads. Workers share only the read-only configuration and served root.
"""

import logging
import queue
import socket
import threading
from typing import Optional, Tuple

from .config import ServerConfig
from .errors import RequestError, TruncatedRequest
from .handler import ConnectionHandler, format_peer

logger = logging.getLogger(__name__)

LISTEN_BACKLOG = 50
WORKER_POLL_INTERVAL = 1.0
WORKER_JOIN_TIMEOUT = 5.0


class DevServer:
    """
    Static file server bound to a single served root.

    Args:
        config: Validated server configuration

    Raises:
        ConfigError: If the configured directory cannot be served
    """

    def __init__(self, config: ServerConfig):
        self.config = config
        self.root = config.served_root()
        self.handler = ConnectionHandler(config, self.root)

        self.server_socket: Optional[socket.socket] = None
        self.running = False
        self.thread_pool = []
        self.connection_queue = queue.Queue()

        # Reentrant: stop() also runs from signal handlers on the main thread.
        self.stats_lock = threading.RLock()
        self.total_connections = 0
        self.failed_connections = 0

        self._stop_lock = threading.RLock()
        self._stopped = False

        logger.info(f"Dev server initialized: {config.host}:{config.port}, root={self.root}")

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (host, port); useful when the configured port is 0."""
        if self.server_socket is None:
            return self.config.host, self.config.port
        return self.server_socket.getsockname()[:2]

    def bind(self):
        """
        Create, bind and listen on the server socket.

        Raises:
            OSError: If the address cannot be bound; this is fatal
        """
        family = socket.AF_INET6 if ":" in self.config.host else socket.AF_INET
        server_socket = socket.socket(family, socket.SOCK_STREAM)
        try:
            server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server_socket.bind((self.config.host, self.config.port))
            server_socket.listen(LISTEN_BACKLOG)
        except OSError as e:
            server_socket.close()
            logger.error(f"Failed to bind {self.config.host}:{self.config.port}: {e}")
            raise
        self.server_socket = server_socket
        host, port = self.address
        logger.info(f"Serving {self.root} on {host}:{port}")

    def start(self):
        """Bind and serve until stop() is called."""
        self.bind()
        self.serve_forever()

    def serve_forever(self):
        """Run the accept loop on an already bound socket."""
        with self._stop_lock:
            if self._stopped:
                return
            self.running = True
        for i in range(self.config.max_threads):
            thread = threading.Thread(target=self._worker_thread, name=f"Worker-{i + 1}")
            thread.daemon = True
            thread.start()
            self.thread_pool.append(thread)
        if self.thread_pool:
            logger.info(f"Thread pool size: {len(self.thread_pool)}")

        try:
            while self.running and not self._stopped:
                try:
                    conn, address = self.server_socket.accept()
                except OSError as e:
                    if not self.running or self._stopped:
                        break
                    logger.error(f"Error accepting connection: {e}")
                    continue

                with self.stats_lock:
                    self.total_connections += 1

                if self.thread_pool:
                    self.connection_queue.put((conn, address))
                else:
                    self._handle_connection(conn, address)
        finally:
            self.stop()

    def _worker_thread(self):
        """Process queued connections until stopped and the queue is empty."""
        while self.running or not self.connection_queue.empty():
            try:
                conn, address = self.connection_queue.get(timeout=WORKER_POLL_INTERVAL)
            except queue.Empty:
                continue
            try:
                self._handle_connection(conn, address)
            finally:
                self.connection_queue.task_done()

    def _handle_connection(self, conn: socket.socket, address):
        """Run one connection to completion; errors are logged, never raised."""
        peer = format_peer(address)
        logger.debug(f"[{peer}] Connection accepted")
        try:
            self.handler.handle(conn, address)
        except TruncatedRequest as e:
            logger.info(f"[{peer}] Connection abandoned: {e}")
        except (RequestError, OSError) as e:
            with self.stats_lock:
                self.failed_connections += 1
            logger.error(f"[{peer}] {type(e).__name__}: {e}")
        except Exception as e:
            with self.stats_lock:
                self.failed_connections += 1
            logger.error(f"[{peer}] Error handling connection: {e}", exc_info=True)
        finally:
            conn.close()

    def stop(self):
        """Stop accepting, let workers finish queued connections, log totals."""
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True

        logger.info("Stopping dev server...")
        self.running = False

        if self.server_socket is not None:
            try:
                # Wakes a thread blocked in accept(); close() alone does not on Linux.
                self.server_socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.server_socket.close()

        current = threading.current_thread()
        for thread in self.thread_pool:
            if thread is not current:
                thread.join(timeout=WORKER_JOIN_TIMEOUT)

        with self.stats_lock:
            logger.info(f"Server stopped. Total connections: {self.total_connections}, "
                        f"failed: {self.failed_connections}")
