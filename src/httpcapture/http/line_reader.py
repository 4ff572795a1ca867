"""
=============================================================================
LINE READER
=============================================================================

Reads one logical line at a time from a binary stream, accepting any of
the three line endings clients send in the wild:

    LF      b"\\n"       Unix tools, hand-written test requests
    CR      b"\\r"       very old clients
    CRLF    b"\\r\\n"     what RFC 1945 actually asks for

=============================================================================
THE ONE-BYTE LOOKAHEAD
=============================================================================

After a terminator byte we peek at the next byte to decide whether it is
the second half of a two-byte terminator:

    first   next    action
    ─────   ─────   ───────────────────────────────────────────────
    \\r      \\n      consume (CRLF)
    \\n      \\r      consume (LFCR)
    \\n      \\n      keep    (blank line follows, not one terminator)
    \\r      \\r      keep    (same reason)
    \\r/\\n  other   keep    (first byte of the next line)

    b"first line\\r\\nsecond line\\r\\n\\r\\nfourth line"

        read_line → "first line"
        read_line → "second line"
        read_line → ""                ← blank line survives
        read_line → "fourth line"

A blank line ended by a bare LF is the one exception: it is returned
without lookahead. In a request it ends the headers, and a client that
sends no body has nothing after it, so a peek would only block until the
read timeout. (An LFCR blank line therefore reads as two blank lines.)

Lookahead needs a stream that can either peek (io.BufferedReader, which is
what socket.makefile("rb") returns) or seek back (io.BytesIO).

=============================================================================
"""

import socket
from typing import BinaryIO, Final, Optional


CR: Final = b"\r"
LF: Final = b"\n"
TERMINATORS: Final = (CR, LF)


def read_line(stream: BinaryIO) -> str:
    """
    Read one line from a binary stream.

    Args:
        stream: Binary stream supporting read() plus peek() or seek().

    Returns:
        The line decoded as UTF-8, without its terminator. "" at end of
        stream (callers tell "no more input" apart on their own).

    Raises:
        ValueError: If stream is None.
        TypeError: If the stream offers no way to look ahead.
        OSError: If reading the underlying stream fails.
    """
    if stream is None:
        raise ValueError("stream cannot be None")
    _check_lookahead(stream)

    line = bytearray()
    while True:
        b = stream.read(1)
        if not b:
            break  # end of stream
        if b in TERMINATORS:
            # Nothing has to follow a bare LF blank line; do not wait for it
            if line or b != LF:
                _consume_pair(stream, b)
            break
        line += b

    return line.decode("utf-8", errors="replace")


def _check_lookahead(stream: BinaryIO) -> None:
    if hasattr(stream, "peek"):
        return
    seekable = getattr(stream, "seekable", None)
    if seekable is not None and seekable():
        return
    raise TypeError(
        f"{type(stream).__name__} supports neither peek() nor seek(); "
        "wrap it in io.BufferedReader"
    )


def _consume_pair(stream: BinaryIO, first: bytes) -> None:
    """Swallow the second byte of a CRLF/LFCR pair, leave anything else."""
    try:
        nxt = _peek_byte(stream)
    except socket.timeout:
        # The terminator is complete; the client just has nothing more to say yet.
        return

    if nxt in TERMINATORS and nxt != first:
        stream.read(1)


def _peek_byte(stream: BinaryIO) -> Optional[bytes]:
    if hasattr(stream, "peek"):
        return stream.peek(1)[:1] or None

    b = stream.read(1)
    if b:
        stream.seek(-1, 1)
    return b or None
