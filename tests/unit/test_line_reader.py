"""
Unit tests for line reading.
"""

import io

import pytest

from httpcapture.http.line_reader import CR, LF, read_line


def read_all(stream, count):
    return [read_line(stream) for _ in range(count)]


class TestLineEndings:
    """All three line endings end a line."""

    def test_lf_lines(self, make_stream):
        """Test LF terminated lines."""
        stream = make_stream(b"first line\nsecond line\n")

        assert read_all(stream, 3) == ["first line", "second line", ""]

    def test_crlf_lines_with_blank_line(self, make_stream):
        """Test that a blank line between CRLF lines survives."""
        stream = make_stream(b"first line\r\nsecond line\r\n\r\nfourth line")

        assert read_all(stream, 4) == ["first line", "second line", "", "fourth line"]

    def test_cr_lines(self, make_stream):
        stream = make_stream(b"one\rtwo\r")

        assert read_all(stream, 2) == ["one", "two"]

    def test_lfcr_is_one_terminator(self, make_stream):
        stream = make_stream(b"one\n\rtwo")

        assert read_all(stream, 2) == ["one", "two"]

    def test_double_lf_is_two_terminators(self, make_stream):
        stream = make_stream(b"one\n\ntwo")

        assert read_all(stream, 3) == ["one", "", "two"]

    def test_double_cr_is_two_terminators(self, make_stream):
        stream = make_stream(b"one\r\rtwo")

        assert read_all(stream, 3) == ["one", "", "two"]

    def test_next_line_is_not_consumed(self, make_stream):
        """Test that lookahead leaves the next line's first byte alone."""
        stream = make_stream(b"a\nb\n")

        assert read_line(stream) == "a"
        assert stream.read(1) == b"b"

    def test_blank_lf_line_does_not_look_ahead(self):
        """Test that the header terminator is returned without a peek past it."""

        class QuietClient(io.BufferedReader):
            idle_peeks = 0

            def peek(self, size=0):
                data = super().peek(size)
                if not data:
                    # On a socket this is where we would sit until the timeout
                    self.idle_peeks += 1
                return data

        stream = QuietClient(io.BytesIO(b"Host: x\n\n"))

        assert read_line(stream) == "Host: x"
        assert read_line(stream) == ""
        assert stream.idle_peeks == 0

    def test_lfcr_blank_line_reads_as_two(self, make_stream):
        stream = make_stream(b"a\n\n\rb")

        assert read_all(stream, 4) == ["a", "", "", "b"]

    def test_constants(self):
        assert CR == b"\r"
        assert LF == b"\n"


class TestStreams:
    """Stream handling."""

    def test_end_of_stream_without_terminator(self, make_stream):
        stream = make_stream(b"last")

        assert read_line(stream) == "last"
        assert read_line(stream) == ""

    def test_empty_stream(self, make_stream):
        assert read_line(make_stream(b"")) == ""

    def test_seekable_stream(self):
        """Test that a plain BytesIO (seek instead of peek) works."""
        stream = io.BytesIO(b"x\r\ny\nz")

        assert read_all(stream, 3) == ["x", "y", "z"]

    def test_utf8_decoding(self, make_stream):
        stream = make_stream("héllo wörld\r\n".encode("utf-8"))

        assert read_line(stream) == "héllo wörld"

    def test_invalid_utf8_is_replaced(self, make_stream):
        assert read_line(make_stream(b"bad \xff byte\n")) == "bad � byte"

    def test_none_stream(self):
        with pytest.raises(ValueError):
            read_line(None)

    def test_stream_without_lookahead(self):
        """Test that a stream that can neither peek nor seek is rejected."""

        class ReadOnly:
            def read(self, n=-1):
                return b""

        with pytest.raises(TypeError):
            read_line(ReadOnly())

    def test_read_errors_propagate(self):
        class Broken(io.RawIOBase):
            def readable(self):
                return True

            def readinto(self, b):
                raise OSError("connection reset")

        with pytest.raises(OSError):
            read_line(io.BufferedReader(Broken()))
