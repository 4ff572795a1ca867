"""
=============================================================================
SOCKET SERVER - TCP Listener and Accept Thread
=============================================================================

Owns the listening socket and the single background thread that accepts
connections and hands them, one at a time, to a callback.

=============================================================================
SOCKET LIFECYCLE
=============================================================================

    socket() ──► setsockopt() ──► bind() ──► listen() ──► accept() loop
                                    │                          │
                                    │                          ▼
                        port 0 = "any free port"        callback(conn)
                        read back via getsockname()     then next accept

=============================================================================
STOPPING AN accept()
=============================================================================

A thread blocked in accept() does not notice a flag flipping. Two things
wake it up:

    1. shutdown() + close() on the listening socket. On Linux accept()
       fails immediately with an OSError.
    2. A short socket timeout on the listening socket (accept_timeout).
       Where closing does not interrupt accept(), the loop still wakes
       up regularly and re-checks the running flag.

An OSError after the running flag was cleared is the expected way out of
the loop and is not logged. One while running (out of descriptors, a
connection aborted before it was accepted) is logged as an error; the
loop backs off for accept_timeout and keeps serving.

=============================================================================
"""

import logging
import socket
import threading
import time
from typing import Callable, Optional, Tuple

from ..config import ServerConfig
from .connection import Connection

logger = logging.getLogger(__name__)

THREAD_NAME = "HTTPServerThread"


class SocketServer:
    """
    Low-level TCP socket server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      SocketServer Internals                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │    start(callback)                                                   │
    │        ├──► _create_socket()   SO_REUSEADDR, TCP_NODELAY, timeout   │
    │        ├──► bind() / listen()                                        │
    │        ├──► record the bound port                                    │
    │        └──► spawn HTTPServerThread ──► _accept_loop(callback)       │
    │                                                                      │
    │    shutdown(timeout)                                                 │
    │        ├──► _running = False                                         │
    │        ├──► shutdown + close the listening socket                    │
    │        └──► join the accept thread (bounded)                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

    Usage:
        def handle_connection(conn: Connection):
            with conn:
                ...

        server = SocketServer(config)
        server.start(handle_connection)   # returns once listening
        ...
        server.shutdown()
    """

    def __init__(self, config: ServerConfig):
        """
        Initialize the socket server.

        Args:
            config: Supplies host, port, backlog and the timeouts.

        The socket is created lazily in start().
        """
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._port: Optional[int] = None

        # Set once the accept loop has exited
        self._shutdown_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def port(self) -> Optional[int]:
        """Port actually bound, None before the first start()."""
        return self._port

    @property
    def address(self) -> Tuple[str, int]:
        return (self.config.host, self._port if self._port is not None else self.config.port)

    @property
    def thread(self) -> Optional[threading.Thread]:
        return self._thread

    def _create_socket(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Restarting on the same port must not fail while old connections
        # sit in TIME_WAIT.
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Responses are written in one sendall(); no reason to let Nagle
        # hold back the tail.
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        sock.settimeout(self.config.accept_timeout)
        return sock

    def start(self, connection_handler: Callable[[Connection], None]) -> int:
        """
        Bind, listen and start the accept thread.

        Args:
            connection_handler: Called on the accept thread with each new
                connection. Connections are handled strictly one at a time.

        Returns:
            The bound port.

        Raises:
            OSError: If the address cannot be bound.
        """
        sock = self._create_socket()
        try:
            sock.bind((self.config.host, self.config.port))
            sock.listen(self.config.backlog)
        except OSError as e:
            logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
            sock.close()
            raise

        self._socket = sock
        self._port = sock.getsockname()[1]
        self._running = True
        self._shutdown_event.clear()

        self._thread = threading.Thread(
            target=self._accept_loop,
            args=(sock, connection_handler),
            name=THREAD_NAME,
            daemon=True,
        )
        self._thread.start()

        logger.info(f"Server listening on {self.config.host}:{self._port}")
        return self._port

    def _accept_loop(self, sock: socket.socket, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until shutdown.

        The listening socket is passed in rather than read from self, so a
        concurrent shutdown() can drop its reference without racing us.
        """
        try:
            while self._running:
                try:
                    client_socket, client_address = sock.accept()
                except socket.timeout:
                    # Polling tick: go round and re-check the running flag
                    continue
                except OSError as e:
                    if not self._running:
                        break
                    # EMFILE, ECONNABORTED and friends pass; keep serving
                    logger.error(f"Accept error: {e}")
                    time.sleep(self.config.accept_timeout)
                    continue

                logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

                conn = Connection(
                    socket=client_socket,
                    address=client_address,
                    timeout=self.config.timeout,
                )
                try:
                    connection_handler(conn)
                except Exception:
                    logger.exception(f"[{conn.id}] Unhandled error while handling connection")
                finally:
                    conn.close()
        finally:
            self._shutdown_event.set()

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Stop accepting connections and wait for the accept thread.

        Idempotent. A connection being handled when this is called is
        allowed to finish, up to the timeout.

        Args:
            timeout: Seconds to wait for the thread. Defaults to
                config.stop_timeout.

        Returns:
            True if the accept thread has ended, False if it was abandoned.
        """
        if timeout is None:
            timeout = self.config.stop_timeout

        self._running = False

        sock, self._socket = self._socket, None
        if sock is not None:
            logger.info("Shutting down socket server...")
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass  # Not connected is normal for a listener on some platforms
            sock.close()

        thread, self._thread = self._thread, None
        if thread is None or thread is threading.current_thread():
            return True

        thread.join(timeout)
        if thread.is_alive():
            logger.warning(f"{THREAD_NAME} did not stop within {timeout}s, abandoning it")
            return False

        logger.info("Socket server stopped")
        return True

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the accept loop to exit.

        Returns:
            True if it exited, False on timeout.
        """
        return self._shutdown_event.wait(timeout)
