"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Serves the files of one directory, for tests that need a real HTTP origin
for fixtures (downloaders, crawlers, HTTP client wrappers).

=============================================================================
PATH MAPPING
=============================================================================

    GET /                     → <root>/index.html
    GET /css/site.css         → <root>/css/site.css
    GET /docs/                → <root>/docs/index.html
    GET /a%20b.txt?x=1        → <root>/a b.txt     (query dropped, unquoted)
    GET /../etc/passwd        → 404                (outside root)
    GET /missing.png          → 404

Paths that escape the root get the same 404 as missing files, so a client
cannot learn which files exist outside the served directory.

=============================================================================
"""

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlsplit

from .. import __version__
from ..http import HTTPError, HTTPRequest, HTTPResponse, HTTPStatus, detect_content_type

logger = logging.getLogger(__name__)


class StaticFileHandler:
    """
    Handler serving files from a directory.

    Usage:
        server = HTTPServer(handler=StaticFileHandler("tests/fixtures/site"))

    Attributes:
        root: Resolved root directory.
        index_file: File served for directory paths.
        server_name: Value of the Server header on file responses.
    """

    def __init__(
        self,
        root: str,
        index_file: str = "index.html",
        server_name: str = f"httpcapture/{__version__}",
    ):
        """
        Args:
            root: Directory to serve.
            index_file: File served for "/" and other directory paths.
            server_name: Server header value.

        Raises:
            FileNotFoundError: If root does not exist.
            NotADirectoryError: If root is not a directory.
        """
        path = Path(root)
        if not path.exists():
            raise FileNotFoundError(f"Root directory does not exist: {root}")
        if not path.is_dir():
            raise NotADirectoryError(f"Root is not a directory: {root}")

        self.root = path.resolve()
        self.index_file = index_file
        self.server_name = server_name

    def __call__(self, request: HTTPRequest, response: HTTPResponse) -> None:
        """
        Fill in the response with the requested file.

        Raises:
            HTTPError: 404 when the file is missing or outside the root.
            OSError: When an existing file cannot be read (answered with 500).
        """
        path = self.resolve(request.path or "/")
        if path is None:
            raise HTTPError(HTTPStatus.NOT_FOUND, f"File not found: {request.path}")

        data = path.read_bytes()
        logger.debug(f"Serving {path} ({len(data)} bytes)")

        response.status = HTTPStatus.OK
        response.set_header("content-type", detect_content_type(data, path.name))
        response.set_header("server", self.server_name)
        response.body = data

    def resolve(self, url_path: str) -> Optional[Path]:
        """
        Map a request path to a file under the root.

        Returns:
            The file's Path, or None if there is no such file inside root.
        """
        relative = unquote(urlsplit(url_path).path).lstrip("/")
        candidate = (self.root / relative).resolve()

        try:
            candidate.relative_to(self.root)
        except ValueError:
            logger.warning(f"Path traversal attempt: {url_path!r}")
            return None

        if candidate.is_dir():
            candidate = candidate / self.index_file

        if not candidate.is_file():
            return None
        return candidate
