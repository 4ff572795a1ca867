"""
=============================================================================
HTTP/1.0 RESPONSE MODEL AND ENCODER
=============================================================================

A handler fills in an HTTPResponse; the encoder turns it into the exact
bytes written to the client.

=============================================================================
WIRE FORMAT
=============================================================================

    HTTP/1.0 200 OK\\r\\n                   ← status line, always
    content-type: text/plain\\r\\n          ← zero or more headers,
    content-length: 11\\r\\n                   names as stored (lower case)
    \\r\\n                                  ← ONLY when there is a body
    hello world                           ← raw body bytes

A response with no body ends right after its last header line. The
connection closes after every response (HTTP/1.0), which is how the
client knows the message is over.

=============================================================================
REASON PHRASES
=============================================================================

The phrase follows the status unless someone chose one explicitly:

    response.status = 404            → "Not Found"
    response.reason_phrase = "Gone"  → "Gone"
    response.status = 200            → still "Gone" (explicit wins)
    response.reason_phrase = None    → back to "OK"

The encoder writes whatever reason_phrase returns; it never looks the
status up again.

=============================================================================
"""

import html
from typing import BinaryIO, Mapping, Optional, Union

from .errors import HTTPError
from .message import HTTPMessage
from .status_codes import UNSET_STATUS, HTTPStatus, reason_for


class HTTPResponse(HTTPMessage):
    """
    A response to be written to the client.

    Attributes:
        status: Integer status. UNSET_STATUS (0) until a handler sets it.
        reason_phrase: Explicit phrase if one was set, else derived from status.
        headers: Lower-cased header name → value.
        body: Raw body bytes or None.
    """

    def __init__(
        self,
        status: int = UNSET_STATUS,
        reason_phrase: Optional[str] = None,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[Union[bytes, str]] = None,
    ):
        super().__init__(headers, body)
        self._status = int(status)
        self._reason_phrase = reason_phrase

    @property
    def status(self) -> int:
        return self._status

    @status.setter
    def status(self, status: int) -> None:
        self._status = int(status)

    @property
    def reason_phrase(self) -> str:
        if self._reason_phrase is not None:
            return self._reason_phrase
        return reason_for(self._status)

    @reason_phrase.setter
    def reason_phrase(self, phrase: Optional[str]) -> None:
        self._reason_phrase = phrase

    @property
    def has_explicit_reason(self) -> bool:
        return self._reason_phrase is not None

    @property
    def is_unset(self) -> bool:
        return self._status == UNSET_STATUS

    @property
    def status_line(self) -> str:
        """
        The first line of the response, without its terminator.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        """
        return f"{ResponseEncoder.VERSION} {self._status} {self.reason_phrase}"

    def set_status(self, status: int, reason_phrase: Optional[str] = None) -> "HTTPResponse":
        """
        Set the status, and the phrase too if one is given.

        Returns:
            Self for method chaining.
        """
        self.status = status
        if reason_phrase is not None:
            self.reason_phrase = reason_phrase
        return self

    def __repr__(self) -> str:
        return (
            f"HTTPResponse(status={self._status!r}, reason_phrase={self.reason_phrase!r}, "
            f"headers={dict(self.headers)!r}, body={self.body!r})"
        )


class ResponseEncoder:
    """
    Serializes HTTPResponse objects byte for byte.

    Usage:
        encoder = ResponseEncoder()
        data = encoder.encode(response)
        encoder.write(response, sock.makefile("wb"))
    """

    VERSION = "HTTP/1.0"
    CRLF = b"\r\n"
    ENCODING = "utf-8"

    def encode(self, response: HTTPResponse) -> bytes:
        """
        Encode a response.

        Args:
            response: The response to serialize.

        Returns:
            Status line, header lines, then a blank line and the body if
            there is one.
        """
        if response is None:
            raise ValueError("response cannot be None")

        parts = [response.status_line.encode(self.ENCODING), self.CRLF]
        for name, value in response.headers.items():
            parts.append(f"{name}: {value}".encode(self.ENCODING))
            parts.append(self.CRLF)

        if response.body is not None:
            parts.append(self.CRLF)
            parts.append(response.body)

        return b"".join(parts)

    def write(self, response: HTTPResponse, sink: BinaryIO) -> int:
        """
        Encode a response straight into a binary sink and flush it.

        Returns:
            Number of bytes written.
        """
        if sink is None:
            raise ValueError("sink cannot be None")
        data = self.encode(response)
        sink.write(data)
        sink.flush()
        return len(data)


def encode_response(response: HTTPResponse) -> bytes:
    """Encode a response with a default ResponseEncoder."""
    return ResponseEncoder().encode(response)


# =============================================================================
# STANDARD ERROR PAGES
# =============================================================================

def error_page(status: int, reason: str, detail: Optional[str] = None) -> str:
    """
    Render the HTML body used for every error response.

        <html><body><h1>400 - Bad Request</h1><pre>...</pre></body></html>

    The detail is HTML-escaped and left out entirely when empty.
    """
    title = html.escape(f"{status} - {reason}")
    page = f"<html><body><h1>{title}</h1>"
    if detail:
        page += f"<pre>{html.escape(detail)}</pre>"
    return page + "</body></html>"


def error_response(
    status: int = HTTPStatus.SERVER_ERROR,
    detail: Optional[str] = None,
) -> HTTPResponse:
    """
    Build a standard error response.

    Args:
        status: HTTP status of the error.
        detail: Diagnostic text for the page body.

    Returns:
        A response with the status, its derived phrase and an HTML body.
    """
    response = HTTPResponse(status)
    response.set_header("Content-Type", "text/html; charset=utf-8")
    response.body = error_page(response.status, response.reason_phrase, detail)
    return response


def response_for_error(error: BaseException) -> HTTPResponse:
    """
    Turn an exception into a standard error response.

    HTTPError keeps its own status; anything else is a 500. The detail line
    names the exception type followed by its message.
    """
    status = error.status_code if isinstance(error, HTTPError) else HTTPStatus.SERVER_ERROR
    message = str(error)
    detail = f"{type(error).__name__}: {message}" if message else type(error).__name__
    return error_response(status, detail)
