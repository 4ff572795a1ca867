"""
=============================================================================
HANDLERS
=============================================================================

A handler scripts the server's answer. It is any callable taking the
decoded request and a fresh response to fill in:

    def handler(request: HTTPRequest, response: HTTPResponse) -> None:
        response.status = 201
        response.body = "created"

Leaving the status unset means 200. Raising HTTPError answers with that
status and a standard error page; any other exception becomes a 500.

=============================================================================
BUILT-IN HANDLERS
=============================================================================

    always_ok            200 OK, no body, for every request
    CannedResponse       the same scripted response for every request
    SequenceHandler      scripted responses in order, last one repeats
    StaticFileHandler    files from a directory (handlers.static)

=============================================================================
"""

import threading
from typing import Iterable, List, Mapping, Optional, Union

from ..http import HTTPRequest, HTTPResponse, HTTPStatus
from .static import StaticFileHandler


def always_ok(request: HTTPRequest, response: HTTPResponse) -> None:
    """Answer 200 OK to everything."""
    response.status = HTTPStatus.OK


class CannedResponse:
    """
    Replays one scripted response for every request.

    Usage:
        server.handler = CannedResponse(404, body="nope")
        server.handler = CannedResponse(body=b"\\x89PNG...", headers={"Content-Type": "image/png"})
    """

    def __init__(
        self,
        status: int = HTTPStatus.OK,
        body: Optional[Union[bytes, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
        reason_phrase: Optional[str] = None,
    ):
        self.status = int(status)
        self.body = body
        self.headers = dict(headers or {})
        self.reason_phrase = reason_phrase

    def __call__(self, request: HTTPRequest, response: HTTPResponse) -> None:
        response.set_status(self.status, self.reason_phrase)
        for name, value in self.headers.items():
            response.set_header(name, value)
        # After the headers, so content-length always matches the body
        if self.body is not None:
            response.body = self.body

    def __repr__(self) -> str:
        return f"CannedResponse(status={self.status!r}, body={self.body!r})"


class SequenceHandler:
    """
    Replays scripted responses in order, then keeps repeating the last one.

    Useful for retry logic:

        server.handler = SequenceHandler([
            CannedResponse(500),
            CannedResponse(500),
            CannedResponse(200, body="finally"),
        ])
    """

    def __init__(self, responses: Iterable[CannedResponse]):
        self._responses: List[CannedResponse] = list(responses)
        if not self._responses:
            raise ValueError("SequenceHandler needs at least one response")
        self._index = 0
        self._lock = threading.Lock()

    @property
    def calls(self) -> int:
        """How many requests have been answered."""
        return self._index

    def __call__(self, request: HTTPRequest, response: HTTPResponse) -> None:
        with self._lock:
            canned = self._responses[min(self._index, len(self._responses) - 1)]
            self._index += 1
        canned(request, response)


__all__ = [
    "always_ok",
    "CannedResponse",
    "SequenceHandler",
    "StaticFileHandler",
]
