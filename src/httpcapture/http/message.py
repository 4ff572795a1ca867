"""
Shared header and body handling for requests and responses.

Both message types keep one invariant: whenever a body is present the
content-length header holds its exact byte length. The body setter is the
only way in, so the two can never disagree:

    message.body = "héllo"        # str is UTF-8 encoded → 6 bytes
    message.get_header("Content-Length")    # "6"

    message.body = None           # no body, no content-length
"""

from typing import Mapping, Optional, Union

from .headers import Headers


CONTENT_LENGTH = "content-length"


class HTTPMessage:
    """Headers plus an optional raw body."""

    def __init__(
        self,
        headers: Optional[Mapping[str, str]] = None,
        body: Optional[Union[bytes, str]] = None,
    ):
        self.headers = Headers(headers)
        self._body: Optional[bytes] = None
        if body is not None:
            self.body = body

    # =========================================================================
    # HEADERS
    # =========================================================================

    def get_header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get a header value, any casing of the name works."""
        return self.headers.get(name, default)

    def set_header(self, name: str, value: str) -> "HTTPMessage":
        """
        Set a header, replacing any value stored under the same name.

        Returns:
            Self for method chaining.
        """
        self.headers[name] = str(value)
        return self

    def remove_header(self, name: str) -> None:
        self.headers.pop(name, None)

    # =========================================================================
    # BODY
    # =========================================================================

    @property
    def body(self) -> Optional[bytes]:
        """Raw body bytes, or None when there is no body."""
        return self._body

    @body.setter
    def body(self, body: Optional[Union[bytes, bytearray, str]]) -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        if not body:
            # Empty and absent bodies are the same thing on the wire.
            self._body = None
            self.remove_header(CONTENT_LENGTH)
            return
        self._body = bytes(body)
        self.headers[CONTENT_LENGTH] = str(len(self._body))

    def set_body(self, body: Optional[Union[bytes, str]]) -> "HTTPMessage":
        """Chaining form of the body setter."""
        self.body = body
        return self

    @property
    def body_text(self) -> Optional[str]:
        """The body decoded as UTF-8, or None when there is no body."""
        if self._body is None:
            return None
        return self._body.decode("utf-8", errors="replace")

    @property
    def content_length(self) -> int:
        """Length announced by the content-length header, 0 if absent or invalid."""
        try:
            return int(self.headers.get(CONTENT_LENGTH, 0))
        except ValueError:
            return 0
