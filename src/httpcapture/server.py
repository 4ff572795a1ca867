"""
=============================================================================
CAPTURE SERVER
=============================================================================

An HTTP/1.0 endpoint to start and stop inside a test. It records every
request it receives, answers with whatever the installed handler scripts,
and lets the test inspect both sides afterwards.

    with HTTPServer(handler=CannedResponse(body="hello")) as server:
        urllib.request.urlopen(server.url + "ping").read()   # b"hello"
        assert server.requests[0].path == "/ping"
        assert server.responses[0].status == 200

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         HTTPServer                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   SocketServer ──► HTTPServerThread (one connection at a time)      │
    │                         │                                            │
    │                         ▼                                            │
    │   _handle_connection(conn)                                           │
    │       1. decode_request(conn.reader)                                 │
    │       2. append request to the request log                           │
    │       3. handler(request, response), or an error page                │
    │       4. unset status → 200                                          │
    │       5. append response to the response log                         │
    │       6. encode + send, then the connection closes                   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
LIFECYCLE
=============================================================================

    STOPPED ──start()──► STARTING ──► RUNNING ──stop()──► STOPPING ──► STOPPED
       ▲                                                                  │
       └──────────────────────────────────────────────────────────────────┘

start() on a running server and stop() on a stopped one do nothing. The
port chosen on the first start() (port 0 = any free port) is kept, so a
restarted server comes back where clients expect it.

=============================================================================
"""

import logging
import threading
import time
from enum import Enum
from typing import Callable, List, Optional, Tuple

from .access_log import AccessLogger
from .config import ServerConfig
from .core import Connection, ConnectionState, SocketServer
from .http import (
    HTTPError,
    HTTPRequest,
    HTTPResponse,
    HTTPStatus,
    ResponseEncoder,
    decode_request,
    error_response,
    response_for_error,
)

logger = logging.getLogger(__name__)

Handler = Callable[[HTTPRequest, HTTPResponse], None]
"""handler(request, response): populate the response, may raise HTTPError."""


class ServerState(Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure logging for command-line use.

    Libraries should not configure logging on import; the CLI calls this,
    embedding applications configure logging themselves.
    """
    numeric = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("httpcapture").setLevel(numeric)


class HTTPServer:
    """
    Embeddable HTTP/1.0 server that captures requests.

    Args:
        config: Server configuration. Defaults to ServerConfig().
        handler: Called for every decoded request. Without one every
            request gets a 500 error page.

    Attributes:
        config: The (validated) configuration in use.
    """

    def __init__(self, config: Optional[ServerConfig] = None, handler: Optional[Handler] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._handler = handler
        self._encoder = ResponseEncoder()
        self._access_log = AccessLogger(self.config.log_format)
        self._socket_server: Optional[SocketServer] = None
        self._state = ServerState.STOPPED

        # Serializes start()/stop() against each other
        self._lifecycle_lock = threading.Lock()

        # Guards the two capture logs, written by the accept thread
        self._log_lock = threading.Lock()
        self._requests: List[HTTPRequest] = []
        self._responses: List[HTTPResponse] = []

    # =========================================================================
    # FACTORIES
    # =========================================================================

    @classmethod
    def always_ok(cls, config: Optional[ServerConfig] = None) -> "HTTPServer":
        """Start a server that answers every request with 200 OK."""
        from .handlers import always_ok

        server = cls(config, handler=always_ok)
        server.start()
        return server

    @classmethod
    def file_server(cls, root: str, config: Optional[ServerConfig] = None) -> "HTTPServer":
        """
        Start a server that serves files from a directory.

        Raises:
            FileNotFoundError: If root does not exist.
            NotADirectoryError: If root is not a directory.
        """
        from .handlers.static import StaticFileHandler

        config = config or ServerConfig()
        server = cls(config, handler=StaticFileHandler(root, server_name=config.server_name))
        server.start()
        return server

    # =========================================================================
    # CONTROL SURFACE
    # =========================================================================

    @property
    def state(self) -> ServerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == ServerState.RUNNING

    @property
    def handler(self) -> Optional[Handler]:
        return self._handler

    @handler.setter
    def handler(self, handler: Optional[Handler]) -> None:
        # Takes effect from the next connection on
        self._handler = handler

    @property
    def host(self) -> str:
        return self.config.host

    @property
    def port(self) -> int:
        """Bound port while running, otherwise the configured port."""
        if self._socket_server is not None and self._socket_server.port is not None:
            return self._socket_server.port
        return self.config.port

    @port.setter
    def port(self, port: int) -> None:
        if self._state != ServerState.STOPPED:
            raise RuntimeError("Cannot change the port of a running server")
        if not 0 <= port < 65536:
            raise ValueError(f"Invalid port: {port}. Must be 0-65535.")
        self.config.port = port

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    @property
    def requests(self) -> Tuple[HTTPRequest, ...]:
        """Snapshot of every request received since the last start/reset."""
        with self._log_lock:
            return tuple(self._requests)

    @property
    def responses(self) -> Tuple[HTTPResponse, ...]:
        """Snapshot of every response sent, in the same order as requests."""
        with self._log_lock:
            return tuple(self._responses)

    def reset(self) -> None:
        """Forget all captured requests and responses."""
        with self._log_lock:
            self._requests.clear()
            self._responses.clear()

    def start(self) -> "HTTPServer":
        """
        Bind and start serving in the background.

        Returns:
            Self, so `server = HTTPServer(...).start()` works.

        Raises:
            OSError: If the configured address cannot be bound.
        """
        with self._lifecycle_lock:
            if self._state != ServerState.STOPPED:
                return self

            self._state = ServerState.STARTING
            self.reset()

            socket_server = SocketServer(self.config)
            try:
                port = socket_server.start(self._handle_connection)
            except OSError:
                self._state = ServerState.STOPPED
                raise

            self._socket_server = socket_server
            self.config.port = port
            self._state = ServerState.RUNNING
            logger.info(f"Capturing requests on {self.url}")
            return self

    def stop(self) -> None:
        """
        Stop serving and wait (up to config.stop_timeout) for the accept
        thread to finish.
        """
        with self._lifecycle_lock:
            if self._state == ServerState.STOPPED:
                return

            self._state = ServerState.STOPPING
            socket_server, self._socket_server = self._socket_server, None
            if socket_server is not None:
                socket_server.shutdown(self.config.stop_timeout)

            self._state = ServerState.STOPPED
            logger.info("Server stopped")

    def close(self) -> None:
        self.stop()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the accept loop ends.

        Returns:
            True if the server is no longer serving, False on timeout.
        """
        socket_server = self._socket_server
        if socket_server is None:
            return True
        return socket_server.wait_for_shutdown(timeout)

    def __enter__(self) -> "HTTPServer":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    def __repr__(self) -> str:
        return f"HTTPServer(host={self.host!r}, port={self.port!r}, state={self._state.value!r})"

    # =========================================================================
    # REQUEST HANDLING (accept thread)
    # =========================================================================

    def _handle_connection(self, conn: Connection) -> None:
        """
        Run one request/response exchange.

        The SocketServer closes the connection once this returns.
        """
        started = time.time()
        try:
            conn.state = ConnectionState.READING
            result = decode_request(conn.reader)
            request = result.request
            self._record(self._requests, request)

            conn.state = ConnectionState.PROCESSING
            if result.ok:
                response = self._dispatch(conn, request)
            else:
                logger.debug(f"[{conn.id}] Bad request: {result.error}")
                response = response_for_error(result.error)
            self._record(self._responses, response)

            sent = conn.send_response(self._encoder.encode(response))
        except OSError as e:
            logger.error(f"[{conn.id}] Connection error: {e}")
            return

        if not sent:
            # Connection already logged the failure; no access entry for
            # a response the client never got.
            return

        self._access_log.log(
            conn.id,
            conn.client_ip,
            request,
            response,
            (time.time() - started) * 1000,
        )

    def _dispatch(self, conn: Connection, request: HTTPRequest) -> HTTPResponse:
        handler = self._handler
        if handler is None:
            logger.warning(f"[{conn.id}] No handler installed for {request.request_line!r}")
            return error_response(HTTPStatus.SERVER_ERROR, "No request handler installed")

        response = HTTPResponse()
        try:
            handler(request, response)
        except HTTPError as e:
            logger.debug(f"[{conn.id}] Handler raised {e!r}")
            return response_for_error(e)
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error: {e}")
            return response_for_error(e)

        if response.is_unset:
            response.status = HTTPStatus.OK
        return response

    def _record(self, log: list, message) -> None:
        with self._log_lock:
            log.append(message)
