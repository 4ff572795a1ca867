"""
=============================================================================
HTTP/1.0 WIRE FORMAT
=============================================================================

Everything that touches bytes on the wire lives here:

    line_reader.py   - one line at a time, LF / CR / CRLF tolerant
    headers.py       - case-normalizing header map
    message.py       - header + body invariant shared by both messages
    request.py       - HTTPRequest and the request decoder
    response.py      - HTTPResponse, the response encoder, error pages
    status_codes.py  - reason phrases for status codes
    errors.py        - HTTPError / HTTPParseError
    file_types.py    - content sniffing for served files

=============================================================================
"""

from .errors import HTTPError, HTTPParseError
from .file_types import FileType, detect_content_type
from .headers import Headers
from .line_reader import read_line
from .message import HTTPMessage
from .request import DecodeResult, HTTPRequest, RequestParser, decode_request, parse_request
from .response import (
    HTTPResponse,
    ResponseEncoder,
    encode_response,
    error_page,
    error_response,
    response_for_error,
)
from .status_codes import UNSET_STATUS, HTTPStatus, reason_for

__all__ = [
    # Reading
    "read_line",
    "RequestParser",
    "DecodeResult",
    "decode_request",
    "parse_request",
    # Messages
    "Headers",
    "HTTPMessage",
    "HTTPRequest",
    "HTTPResponse",
    # Writing
    "ResponseEncoder",
    "encode_response",
    "error_page",
    "error_response",
    "response_for_error",
    # Status vocabulary
    "HTTPStatus",
    "UNSET_STATUS",
    "reason_for",
    # Errors
    "HTTPError",
    "HTTPParseError",
    # Files
    "FileType",
    "detect_content_type",
]
