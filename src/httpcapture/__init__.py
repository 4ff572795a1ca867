"""
=============================================================================
HTTPCAPTURE - Embeddable HTTP/1.0 Capture Server for Tests
=============================================================================

Start a real HTTP endpoint inside a test, point the code under test at
it, then assert on exactly what it sent.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        HOW A TEST USES IT                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. START     server = HTTPServer.always_ok()                       │
    │                (port 0: the OS picks a free port)                    │
    │                                                                      │
    │   2. SCRIPT    server.handler = CannedResponse(503)                  │
    │                                                                      │
    │   3. EXERCISE  client_under_test.fetch(server.url + "items")         │
    │                                                                      │
    │   4. INSPECT   server.requests[0].method == "GET"                    │
    │                server.requests[0].get_header("Accept")               │
    │                server.responses[0].status == 503                     │
    │                                                                      │
    │   5. STOP      server.stop()                                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    httpcapture/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m httpcapture)
    ├── server.py            # HTTPServer: lifecycle + connection loop
    ├── config.py            # ServerConfig dataclass
    ├── access_log.py        # Access log entries
    ├── core/
    │   ├── socket_server.py # Listening socket + accept thread
    │   └── connection.py    # Accepted client connection
    ├── http/
    │   ├── line_reader.py   # LF / CR / CRLF line reading
    │   ├── headers.py       # Case-normalizing header map
    │   ├── message.py       # Shared header/body handling
    │   ├── request.py       # HTTPRequest + decoder
    │   ├── response.py      # HTTPResponse + encoder + error pages
    │   ├── status_codes.py  # Reason phrases
    │   ├── errors.py        # HTTPError / HTTPParseError
    │   └── file_types.py    # Content sniffing
    └── handlers/
        ├── __init__.py      # always_ok, CannedResponse, SequenceHandler
        └── static.py        # StaticFileHandler

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .handlers import CannedResponse, SequenceHandler, StaticFileHandler, always_ok
from .http import HTTPError, HTTPParseError, HTTPRequest, HTTPResponse, HTTPStatus
from .server import HTTPServer, ServerState, configure_logging

__all__ = [
    "HTTPServer",
    "ServerState",
    "ServerConfig",
    "HTTPRequest",
    "HTTPResponse",
    "HTTPStatus",
    "HTTPError",
    "HTTPParseError",
    "always_ok",
    "CannedResponse",
    "SequenceHandler",
    "StaticFileHandler",
    "configure_logging",
    "__version__",
]
