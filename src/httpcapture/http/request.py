"""
=============================================================================
HTTP/1.0 REQUEST DECODER
=============================================================================

Turns the bytes a client sends into an HTTPRequest. Reading is line
oriented for the request line and headers, and raw for the body:

    ┌─ REQUEST LINE ────────────────────────────────────────────────────┐
    │   GET /index.html HTTP/1.0\\r\\n                                    │
    │   ─┬─ ─────┬───── ────┬───                                        │
    │  method   path     version      (whitespace separated, extra      │
    │                                  tokens ignored)                  │
    ├─ HEADERS ─────────────────────────────────────────────────────────┤
    │   Host: localhost\\r\\n                                             │
    │   Colors: Red,\\r\\n                                                │
    │    Blue,\\r\\n                 ← continuation (folded) lines start  │
    │         Yellow\\r\\n              with whitespace                   │
    │   Content-Length: 5\\r\\n                                           │
    │   \\r\\n                        ← blank line ends the headers       │
    ├─ BODY ────────────────────────────────────────────────────────────┤
    │   hello                       ← exactly content-length raw bytes  │
    └───────────────────────────────────────────────────────────────────┘

    → method="GET", path="/index.html", version="HTTP/1.0"
      headers={"host": "localhost",
               "colors": "Red, Blue, Yellow",
               "content-length": "5"}
      body=b"hello"

=============================================================================
FAILURES
=============================================================================

Every malformed input becomes an HTTPParseError carrying 400:

    - nothing at all to read
    - a request line with fewer than three tokens
    - a continuation line before any header
    - a line without ":" that does not start with whitespace
    - a header with an empty name

A body shorter than its content-length is NOT an error. Whatever arrived
is kept and content-length is corrected to match.

=============================================================================
"""

import io
import logging
import socket
from dataclasses import dataclass
from typing import BinaryIO, Mapping, Optional, Union

from .errors import HTTPParseError
from .line_reader import read_line
from .message import CONTENT_LENGTH, HTTPMessage

logger = logging.getLogger(__name__)


class HTTPRequest(HTTPMessage):
    """
    A request as read from the client.

    Attributes:
        method: Request method token, e.g. "GET". None until decoded.
        path: Request path token, verbatim (no query splitting, no unquoting).
        version: Protocol token, e.g. "HTTP/1.0".
        headers: Lower-cased header name → value.
        body: Raw body bytes or None.
    """

    def __init__(
        self,
        method: Optional[str] = None,
        path: Optional[str] = None,
        version: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[Union[bytes, str]] = None,
    ):
        super().__init__(headers, body)
        self.method = method
        self.path = path
        self.version = version

    @property
    def request_line(self) -> str:
        return " ".join(t for t in (self.method, self.path, self.version) if t)

    def __repr__(self) -> str:
        return (
            f"HTTPRequest(method={self.method!r}, path={self.path!r}, "
            f"version={self.version!r}, headers={dict(self.headers)!r}, "
            f"body={self.body!r})"
        )


@dataclass
class DecodeResult:
    """
    Outcome of decoding one request.

    request is always set, partially filled in when decoding failed, so the
    connection loop can log what the client did send. error is None on
    success.
    """

    request: HTTPRequest
    error: Optional[HTTPParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RequestParser:
    """
    Reads HTTP/1.0 requests off a binary stream.

    The stream must allow one byte of lookahead (see line_reader). For a
    socket that means socket.makefile("rb").

    Usage:
        parser = RequestParser()
        with sock.makefile("rb") as stream:
            request = parser.parse(stream)
    """

    WHITESPACE = (" ", "\t")

    def parse(self, stream: BinaryIO, request: Optional[HTTPRequest] = None) -> HTTPRequest:
        """
        Decode one request from the stream.

        Args:
            stream: Binary stream positioned at the start of a request.
            request: Request to populate in place. A new one if omitted.

        Returns:
            The populated request.

        Raises:
            HTTPParseError: If the request is malformed.
            OSError: If reading from the stream fails.
        """
        if request is None:
            request = HTTPRequest()

        self._parse_request_line(stream, request)
        self._parse_headers(stream, request)
        self._read_body(stream, request)
        return request

    def _parse_request_line(self, stream: BinaryIO, request: HTTPRequest) -> None:
        line = read_line(stream)
        logger.debug(f"request line={line!r}")

        # read_line gives "" both for a blank line and for end of stream;
        # neither is a request.
        if not line:
            raise HTTPParseError("Invalid HTTP request: no request line")

        tokens = line.split()
        if len(tokens) < 3:
            raise HTTPParseError(f"Invalid HTTP request line: {line!r}")

        request.method, request.path, request.version = tokens[:3]

    def _parse_headers(self, stream: BinaryIO, request: HTTPRequest) -> None:
        """
        Read header lines up to the blank line (or end of stream).

        Folded headers (RFC 2616 section 2.2, LWS) continue the previous
        header's value:

            "Colors: Red,"     → colors = "Red,"
            " Blue,"           → colors = "Red, Blue,"
            "      Yellow"     → colors = "Red, Blue, Yellow"
        """
        current_name: Optional[str] = None

        while True:
            line = read_line(stream)
            logger.debug(f"header line={line!r}")
            if not line:
                break

            name, sep, value = line.partition(":")
            if sep:
                name = name.strip()
                if not name:
                    raise HTTPParseError(f"Header without a name: {line!r}")
                request.set_header(name, value.strip())
                current_name = name
                continue

            # -----------------------------------------------------------------
            # No colon: this can only be a continuation line
            # -----------------------------------------------------------------
            if not line.startswith(self.WHITESPACE):
                raise HTTPParseError(f"Malformed header line: {line!r}")
            if current_name is None:
                raise HTTPParseError(f"Continuation line without a header: {line!r}")

            folded = line.strip()
            if folded:
                previous = request.get_header(current_name, "")
                request.set_header(current_name, f"{previous} {folded}" if previous else folded)

    def _read_body(self, stream: BinaryIO, request: HTTPRequest) -> None:
        declared = request.get_header(CONTENT_LENGTH)
        if not declared:
            return

        try:
            length = int(declared)
        except ValueError:
            logger.debug(f"Ignoring non-numeric content-length {declared!r}")
            return
        if length <= 0:
            return

        body = _read_up_to(stream, length)
        if len(body) < length:
            logger.debug(f"Short body: expected {length} bytes, got {len(body)}")
        if body:
            request.body = body
        logger.debug(f"body={request.body!r}")


# Upper bound for a single read. Buffered readers allocate the full size
# they are asked for, whatever content-length the client announced.
READ_CHUNK_SIZE = 64 * 1024


def _read_up_to(stream: BinaryIO, length: int) -> bytes:
    """Read at most length bytes, stopping early at end of stream or on timeout."""
    read_chunk = getattr(stream, "read1", stream.read)
    chunks = []
    remaining = length
    while remaining > 0:
        try:
            chunk = read_chunk(min(remaining, READ_CHUNK_SIZE))
        except socket.timeout:
            break
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def decode_request(stream: BinaryIO, parser: Optional[RequestParser] = None) -> DecodeResult:
    """
    Decode a request without raising for malformed input.

    Protocol errors are returned in the result; I/O errors still raise,
    since they mean the connection itself is gone.

    Returns:
        DecodeResult with the (possibly partial) request and any error.
    """
    parser = parser or RequestParser()
    request = HTTPRequest()
    try:
        parser.parse(stream, request)
    except HTTPParseError as e:
        logger.debug(f"Bad request: {e}")
        return DecodeResult(request, e)
    return DecodeResult(request)


def parse_request(data: bytes) -> HTTPRequest:
    """
    Parse a complete request held in memory.

    Raises:
        HTTPParseError: If the request is malformed.
    """
    return RequestParser().parse(io.BytesIO(data))
