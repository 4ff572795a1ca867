"""
Structured HTTP errors.

An HTTPError carries the status code the server should answer with. The
connection loop turns it into a standard error page instead of dropping
the connection:

    raise HTTPError(403, "No tokens left")

        HTTP/1.0 403 403 Message\r\n
        content-type: text/html; charset=utf-8\r\n
        content-length: ...\r\n
        \r\n
        <html><body><h1>403 - 403 Message</h1><pre>HTTPError: No tokens left</pre></body></html>
"""

from typing import Optional

from .status_codes import HTTPStatus, reason_for


class HTTPError(Exception):
    """
    Error that maps to an HTTP status.

    Raised by request handlers to script an error response, and (through
    HTTPParseError) by the request decoder.

    Attributes:
        status_code: HTTP status to answer with (500 unless told otherwise).
        message: Diagnostic detail shown on the error page.
    """

    def __init__(
        self,
        status_code: int = HTTPStatus.SERVER_ERROR,
        message: str = "",
        cause: Optional[BaseException] = None,
    ):
        if not message and cause is not None:
            message = str(cause)
        super().__init__(message)
        self.status_code = int(status_code)
        self.message = message
        self.__cause__ = cause

    @property
    def reason(self) -> str:
        """Reason phrase for status_code."""
        return reason_for(self.status_code)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.status_code}, {self.message!r})"


class HTTPParseError(HTTPError):
    """
    The request bytes could not be decoded.

    Always a client problem, so the default status is 400 Bad Request.
    """

    def __init__(self, message: str, status_code: int = HTTPStatus.BAD_REQUEST):
        super().__init__(status_code, message)
