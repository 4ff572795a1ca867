"""
pytest configuration and fixtures.
"""

import io
import socket
from typing import Generator

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpcapture import HTTPServer, ServerConfig


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP/1.0 GET request."""
    return (
        b"GET /api/users?page=1 HTTP/1.0\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP/1.0 POST request with a JSON body."""
    body = b'{"name": "John", "email": "john@example.com"}'
    return (
        b"POST /api/users HTTP/1.0\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
    ) + body


@pytest.fixture
def make_stream():
    """Wrap bytes the way a socket's makefile("rb") would be."""
    def _make(data: bytes) -> io.BufferedReader:
        return io.BufferedReader(io.BytesIO(data))
    return _make


@pytest.fixture
def config() -> ServerConfig:
    """Test server configuration: any free port, short timeouts."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        timeout=2.0,
        accept_timeout=0.1,
        stop_timeout=2.0,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def server(config: ServerConfig) -> Generator[HTTPServer, None, None]:
    """A running server with no handler installed."""
    srv = HTTPServer(config)
    srv.start()
    yield srv
    srv.stop()


def send_raw(port: int, data: bytes, timeout: float = 5.0, half_close: bool = False) -> bytes:
    """
    Send raw bytes to the server and read until it closes the connection.

    half_close shuts down our sending side after the data, so the server
    sees end of stream instead of waiting for more.
    """
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        sock.sendall(data)
        if half_close:
            sock.shutdown(socket.SHUT_WR)
        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


@pytest.fixture
def raw_send():
    """send_raw(port, data) for tests that manage their own server."""
    return send_raw


@pytest.fixture
def raw_client(server: HTTPServer):
    """Send raw request bytes to the running `server` fixture."""
    def _send(data: bytes, half_close: bool = False) -> bytes:
        return send_raw(server.port, data, half_close=half_close)
    return _send
