"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket for the single request/response exchange
HTTP/1.0 allows per connection.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL
=============================================================================

A request may arrive in any number of recv() chunks:

    Client sends:   "GET / HTTP/1.0\\r\\nHost: x\\r\\n\\r\\n"

    Server might receive:
        recv() → "GET / HT"
        recv() → "TP/1.0\\r\\nHost: x\\r\\n\\r\\n"

Rather than buffering by hand, the connection exposes a buffered binary
reader (socket.makefile("rb")). The request decoder reads it line by line
and relies on its peek() for the one byte of lookahead that line endings
need.

=============================================================================
LIFECYCLE
=============================================================================

    NEW ──► READING ──► PROCESSING ──► WRITING ──► CLOSING ──► CLOSED
                 │                                     ▲
                 └────────── error at any point ───────┘

One request, one response, then close. The close tells the client the
response is complete.

=============================================================================
"""

import logging
import socket
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Optional, Tuple

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Where a connection is in its single exchange."""

    NEW = "new"                # Just accepted
    READING = "reading"        # Decoding the request
    PROCESSING = "processing"  # Handler is running
    WRITING = "writing"        # Sending the response
    CLOSING = "closing"        # Shutdown sequence in progress
    CLOSED = "closed"          # Socket released


@dataclass
class Connection:
    """
    An accepted client connection.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used in log lines.
        state: Current ConnectionState.
        timeout: Read/write timeout applied to the socket, None to block.
        drain_timeout: How long close() waits for unread client data.
        created_at: Timestamp when the connection was accepted.
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    timeout: Optional[float] = 5.0
    drain_timeout: float = 0.5
    created_at: float = field(default_factory=time.time)

    _reader: Optional[BinaryIO] = field(default=None, repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0]

    @property
    def client_port(self) -> int:
        return self.address[1]

    @property
    def age(self) -> float:
        """Seconds since the connection was accepted."""
        return time.time() - self.created_at

    @property
    def reader(self) -> BinaryIO:
        """
        Buffered binary stream over the socket, created on first use.

        Supports peek(), which the line reader needs for CR/LF lookahead.
        """
        if self._reader is None:
            self._reader = self.socket.makefile("rb")
        return self._reader

    def send_response(self, data: bytes) -> bool:
        """
        Send response bytes to the client.

        Args:
            data: Encoded response.

        Returns:
            True if everything was sent, False if the client went away.
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    def close(self):
        """
        Close the connection gracefully.

            1. shutdown(SHUT_WR)   FIN to the client: the response is over
            2. drain               read whatever the client still sends
            3. close()             release the reader and the descriptor

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Client already gone

        try:
            self.socket.settimeout(self.drain_timeout)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass  # Includes socket.timeout

        # The makefile() stream holds its own reference to the socket;
        # the descriptor is only released once both are closed.
        if self._reader is not None:
            try:
                self._reader.close()
            except OSError:
                pass
            self._reader = None

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
