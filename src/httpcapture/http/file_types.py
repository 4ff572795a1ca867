"""
=============================================================================
FILE TYPE DETECTION
=============================================================================

Guesses a Content-Type for the files served by StaticFileHandler. Nowhere
near as thorough as libmagic, just enough to give browsers and HTTP
clients a sensible MIME type.

=============================================================================
DETECTION ORDER
=============================================================================

    1. MAGIC NUMBERS
       ─────────────
       Binary formats announce themselves in their first bytes:

           89 50 4E 47 0D 0A 1A 0A   PNG
           FF D8                     JPEG
           "GIF89a" / "GIF87a"       GIF
           "%PDF"                    PDF
           49 49 2A 00 / 4D 4D 00 2A TIFF (little / big endian)
           "PK"                      ZIP

    2. BINARY CHECK
       ────────────
       A control byte (other than tab, LF, CR) in the first 100 bytes
       means unknown binary data → application/octet-stream.

    3. TEXT SNIFFING
       ─────────────
       "<html"        → text/html
       "<?xml "       → application/xml
       "use strict"   → JavaScript
       "body {" etc.  → text/css
       anything else  → text/plain

=============================================================================
"""

from enum import Enum
from pathlib import PurePath
from typing import Optional


class FileType(Enum):
    """Known file types and their MIME types."""

    PNG = "image/png"
    JPG = "image/jpeg"
    GIF = "image/gif"
    PDF = "application/pdf"
    TIFF = "image/tiff"
    ZIP = "application/zip"
    HTML = "text/html"
    XML = "application/xml"
    CSS = "text/css"
    JS = "application/javascript"
    TXT = "text/plain"
    UNKNOWN = "application/octet-stream"

    @property
    def mime_type(self) -> str:
        return self.value

    @property
    def content_type(self) -> str:
        """MIME type with a charset for text types."""
        if self in _TEXT_TYPES:
            return f"{self.value}; charset=utf-8"
        return self.value

    @classmethod
    def detect(cls, data: bytes) -> "FileType":
        """
        Detect a file type from file content.

        Args:
            data: The file's bytes (only the first 100 matter).

        Returns:
            The detected FileType, UNKNOWN for unrecognized binary data.
        """
        for magic, file_type in _MAGIC_NUMBERS:
            if data.startswith(magic):
                return file_type

        head = data[:100]
        if any(b < 32 and b not in (9, 10, 13) for b in head):
            return cls.UNKNOWN

        text = head.decode("utf-8", errors="replace").lower().strip()
        if "<html" in text:
            return cls.HTML
        if "<?xml " in text:
            return cls.XML
        if "use strict" in text:
            return cls.JS
        if any(marker in text for marker in _CSS_MARKERS):
            return cls.CSS
        return cls.TXT

    @classmethod
    def from_name(cls, filename: str) -> Optional["FileType"]:
        """Look up a file type by extension, None if the extension is unknown."""
        return _EXTENSIONS.get(PurePath(filename).suffix.lower())


_MAGIC_NUMBERS = (
    (b"\x89PNG\r\n\x1a\n", FileType.PNG),
    (b"\xff\xd8", FileType.JPG),
    (b"GIF89a", FileType.GIF),
    (b"GIF87a", FileType.GIF),
    (b"%PDF", FileType.PDF),
    (b"II*\x00", FileType.TIFF),
    (b"MM\x00*", FileType.TIFF),
    (b"PK", FileType.ZIP),
)

_CSS_MARKERS = ("body {", "html {", "html,body {", "html, body {")

_TEXT_TYPES = frozenset({FileType.HTML, FileType.XML, FileType.CSS, FileType.JS, FileType.TXT})

_EXTENSIONS = {
    ".png": FileType.PNG,
    ".jpg": FileType.JPG,
    ".jpeg": FileType.JPG,
    ".gif": FileType.GIF,
    ".pdf": FileType.PDF,
    ".tif": FileType.TIFF,
    ".tiff": FileType.TIFF,
    ".zip": FileType.ZIP,
    ".html": FileType.HTML,
    ".htm": FileType.HTML,
    ".xml": FileType.XML,
    ".css": FileType.CSS,
    ".js": FileType.JS,
    ".mjs": FileType.JS,
    ".txt": FileType.TXT,
}


def detect_content_type(data: bytes, filename: Optional[str] = None) -> str:
    """
    Pick a Content-Type for file content.

    Magic numbers are trusted first. When the content only looks like
    generic text or unknown binary, a known file extension gets the final
    say (a .css file without "body {" in it is still CSS).
    """
    detected = FileType.detect(data)
    if detected in (FileType.TXT, FileType.UNKNOWN) and filename:
        by_name = FileType.from_name(filename)
        if by_name is not None:
            return by_name.content_type
    return detected.content_type
