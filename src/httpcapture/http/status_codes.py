"""
=============================================================================
HTTP STATUS VOCABULARY
=============================================================================

Maps the handful of status codes this server produces on its own to their
canonical reason phrases, and synthesizes a phrase for everything else.

=============================================================================
WHY SO FEW CODES?
=============================================================================

The server itself only ever emits four statuses:

    200 OK            - default when a handler leaves the status unset
    400 Bad Request   - the request could not be decoded
    404 Not Found     - the file server could not find a file
    500 Server Error  - the handler failed or is missing

Handlers may set any integer they like. Unknown codes still need a reason
phrase on the status line, so one is synthesized:

    reason_for(418)  →  "418 Message"

    HTTP/1.0 418 418 Message\r\n
             ─── ───────────
              │       │
              │       └── synthesized phrase
              └────────── handler-chosen status

=============================================================================
"""

from enum import IntEnum
from typing import Final


UNSET_STATUS: Final = 0
"""Status of a response no one has touched yet. Never a real HTTP status."""


class HTTPStatus(IntEnum):
    """
    Status codes with canonical phrases.

    IntEnum members compare equal to plain ints:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.OK.phrase
        'OK'
    """

    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404
    SERVER_ERROR = 500

    @property
    def phrase(self) -> str:
        """Reason phrase used on the status line."""
        return _STATUS_PHRASES[self]

    @property
    def is_error(self) -> bool:
        return self >= 400


_STATUS_PHRASES: Final = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.SERVER_ERROR: "Server Error",
}


def reason_for(status: int) -> str:
    """
    Get the reason phrase for a status code.

    Args:
        status: Any integer status, including UNSET_STATUS.

    Returns:
        The canonical phrase for known codes, "" for UNSET_STATUS and
        "<status> Message" for everything else.

    Example:
        reason_for(404)  # "Not Found"
        reason_for(302)  # "302 Message"
    """
    if status == UNSET_STATUS:
        return ""
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return f"{status} Message"
