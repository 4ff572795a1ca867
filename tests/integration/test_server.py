"""
Integration tests: a real server on a real socket.
"""

import http.client
import logging
import socket
import threading
import time
import urllib.error
import urllib.request

import pytest

from httpcapture import (
    CannedResponse,
    HTTPError,
    HTTPServer,
    ServerConfig,
    ServerState,
    always_ok,
)


def fetch(server: HTTPServer, method: str = "GET", path: str = "/", body=None, headers=None):
    """Make a request with http.client, return (status, reason, headers, body)."""
    conn = http.client.HTTPConnection(server.host, server.port, timeout=5)
    try:
        conn.request(method, path, body=body, headers=headers or {})
        response = conn.getresponse()
        return response.status, response.reason, dict(response.getheaders()), response.read()
    finally:
        conn.close()


class TestCapture:
    """Requests and responses are recorded in order."""

    def test_no_handler_gives_500(self, server, raw_client):
        data = raw_client(b"GET /nothing HTTP/1.0\r\n\r\n")

        assert data.startswith(b"HTTP/1.0 500 Server Error\r\n")
        assert b"<h1>500 - Server Error</h1>" in data
        assert server.requests[0].path == "/nothing"
        assert server.responses[0].status == 500

    def test_always_ok_exact_bytes(self, server, raw_client):
        server.handler = always_ok

        data = raw_client(b"GET /hello HTTP/1.0\r\nHost: example\r\n\r\n")

        assert data == b"HTTP/1.0 200 OK\r\n"
        request = server.requests[0]
        assert (request.method, request.path, request.version) == ("GET", "/hello", "HTTP/1.0")
        assert request.get_header("HOST") == "example"

    def test_request_body_captured(self, server):
        server.handler = CannedResponse(201, body="created")

        status, reason, headers, body = fetch(
            server, "POST", "/items", body=b'{"a": 1}', headers={"Content-Type": "application/json"}
        )

        assert status == 201
        assert reason == "201 Message"
        assert body == b"created"
        assert headers["content-length"] == "7"
        captured = server.requests[0]
        assert captured.method == "POST"
        assert captured.body == b'{"a": 1}'
        assert captured.get_header("content-type") == "application/json"

    def test_folded_headers_over_the_wire(self, server, raw_client):
        server.handler = always_ok

        raw_client(b"GET / HTTP/1.0\r\nColors: Red,\r\n Blue,\r\n      Yellow\r\n\r\n")

        assert server.requests[0].get_header("colors") == "Red, Blue, Yellow"

    def test_order_and_reset(self, server, raw_client):
        server.handler = always_ok
        for path in ("/one", "/two", "/three"):
            raw_client(f"GET {path} HTTP/1.0\r\n\r\n".encode())

        assert [r.path for r in server.requests] == ["/one", "/two", "/three"]
        assert len(server.responses) == 3

        server.reset()

        assert server.requests == ()
        assert server.responses == ()

    def test_logs_are_snapshots(self, server, raw_client):
        server.handler = always_ok
        before = server.requests
        raw_client(b"GET / HTTP/1.0\r\n\r\n")

        assert before == ()
        assert len(server.requests) == 1

    def test_handler_sees_fresh_response(self, server, raw_client):
        seen = []

        def handler(request, response):
            seen.append((response.status, response.body))
            response.body = "x"

        server.handler = handler
        raw_client(b"GET / HTTP/1.0\r\n\r\n")
        raw_client(b"GET / HTTP/1.0\r\n\r\n")

        assert seen == [(0, None), (0, None)]


class TestErrors:
    """Error pages and the loop surviving failures."""

    def test_malformed_request(self, server, raw_client):
        server.handler = always_ok

        data = raw_client(b"GARBAGE\r\n\r\n")

        assert data.startswith(b"HTTP/1.0 400 Bad Request\r\n")
        assert b"<h1>400 - Bad Request</h1>" in data
        assert b"content-type: text/html; charset=utf-8\r\n" in data
        assert server.requests[0].method is None
        assert server.responses[0].status == 400

    def test_bad_header_keeps_partial_request(self, server, raw_client):
        data = raw_client(b"GET /partial HTTP/1.0\r\nno colon here\r\n\r\n")

        assert data.startswith(b"HTTP/1.0 400 ")
        assert server.requests[0].path == "/partial"

    def test_handler_http_error(self, server, raw_client):
        def handler(request, response):
            raise HTTPError(403, "No tokens left")

        server.handler = handler
        data = raw_client(b"GET / HTTP/1.0\r\n\r\n")

        assert data.startswith(b"HTTP/1.0 403 403 Message\r\n")
        assert b"<pre>HTTPError: No tokens left</pre>" in data

    def test_handler_exception(self, server, raw_client, caplog):
        def handler(request, response):
            raise RuntimeError("kaboom")

        server.handler = handler
        with caplog.at_level(logging.ERROR, logger="httpcapture"):
            data = raw_client(b"GET / HTTP/1.0\r\n\r\n")

        assert data.startswith(b"HTTP/1.0 500 Server Error\r\n")
        assert b"RuntimeError: kaboom" in data
        assert "kaboom" in caplog.text

    def test_unset_status_becomes_200(self, server, raw_client):
        def handler(request, response):
            response.body = "hi"

        server.handler = handler
        data = raw_client(b"GET / HTTP/1.0\r\n\r\n")

        assert data == b"HTTP/1.0 200 OK\r\ncontent-length: 2\r\n\r\nhi"

    def test_client_disconnect_does_not_stop_loop(self, server, raw_client):
        server.handler = always_ok
        with socket.create_connection((server.host, server.port)):
            pass  # connect and hang up without a request

        data = raw_client(b"GET /after HTTP/1.0\r\n\r\n")

        assert data == b"HTTP/1.0 200 OK\r\n"
        assert server.requests[-1].path == "/after"
        assert server.is_running

    def test_huge_content_length_with_short_body(self, server, raw_client):
        """Test that an absurd content-length does not size the read buffer."""
        server.handler = CannedResponse(body="ok")

        data = raw_client(
            b"POST /upload HTTP/1.0\r\nContent-Length: 99999999999\r\n\r\nhello",
            half_close=True,
        )

        assert data.startswith(b"HTTP/1.0 200 OK\r\n")
        assert data.endswith(b"ok")
        assert server.requests[0].body == b"hello"
        assert server.requests[0].get_header("content-length") == "5"
        assert server.responses[0].status == 200
        assert server.is_running

    def test_lf_only_request_answered_without_waiting(self, server, raw_client, config):
        server.handler = always_ok

        started = time.monotonic()
        data = raw_client(b"GET /bare HTTP/1.0\nHost: x\n\n")
        elapsed = time.monotonic() - started

        assert data == b"HTTP/1.0 200 OK\r\n"
        assert server.requests[0].path == "/bare"
        assert elapsed < config.timeout / 2


class TestLifecycle:
    """start/stop/restart behaviour."""

    def test_ephemeral_port(self, config):
        server = HTTPServer(config)
        assert server.state is ServerState.STOPPED

        server.start()
        try:
            assert server.is_running
            assert server.state is ServerState.RUNNING
            assert server.port > 0
            assert server.url == f"http://127.0.0.1:{server.port}/"
        finally:
            server.stop()

        assert server.state is ServerState.STOPPED
        assert not server.is_running

    def test_accept_thread(self, server):
        threads = [t for t in threading.enumerate() if t.name == "HTTPServerThread"]

        assert threads
        assert all(t.daemon for t in threads)

    def test_restart_keeps_port_and_clears_logs(self, server, raw_client):
        server.handler = always_ok
        raw_client(b"GET / HTTP/1.0\r\n\r\n")
        port = server.port

        server.stop()
        with pytest.raises(OSError):
            socket.create_connection((server.host, port), timeout=1).close()

        server.start()

        assert server.port == port
        assert server.requests == ()
        assert raw_client(b"GET / HTTP/1.0\r\n\r\n") == b"HTTP/1.0 200 OK\r\n"

    def test_start_and_stop_are_idempotent(self, config):
        server = HTTPServer(config)
        server.stop()

        server.start()
        port = server.port
        server.start()
        assert server.port == port

        server.stop()
        server.stop()
        assert server.state is ServerState.STOPPED

    def test_port_setter(self, config, free_port, raw_send):
        server = HTTPServer(config, handler=always_ok)
        server.port = free_port

        with server:
            assert server.port == free_port
            with pytest.raises(RuntimeError):
                server.port = 1234
            assert raw_send(free_port, b"GET / HTTP/1.0\r\n\r\n") == b"HTTP/1.0 200 OK\r\n"

    def test_port_in_use(self, config, server):
        other = HTTPServer(ServerConfig(port=server.port, accept_timeout=0.1))

        with pytest.raises(OSError):
            other.start()
        assert other.state is ServerState.STOPPED

    def test_invalid_config_fails_fast(self):
        with pytest.raises(ValueError):
            HTTPServer(ServerConfig(port=70000))

    def test_context_manager(self, config):
        with HTTPServer(config, handler=always_ok) as server:
            assert server.is_running
        assert server.state is ServerState.STOPPED


class TestFactories:
    """always_ok() and file_server()."""

    def test_always_ok(self, config):
        server = HTTPServer.always_ok(config)
        try:
            status, reason, _, body = fetch(server, "GET", "/anything")
        finally:
            server.stop()

        assert (status, reason, body) == (200, "OK", b"")
        assert server.requests[0].path == "/anything"

    def test_file_server(self, config, tmp_path):
        (tmp_path / "index.html").write_text("<html><body>hello</body></html>")
        (tmp_path / "data.txt").write_text("some data")

        server = HTTPServer.file_server(str(tmp_path), config)
        try:
            with urllib.request.urlopen(server.url, timeout=5) as response:
                assert response.status == 200
                assert response.headers["content-type"] == "text/html; charset=utf-8"
                assert response.headers["server"] == config.server_name
                assert response.read() == b"<html><body>hello</body></html>"

            with urllib.request.urlopen(server.url + "data.txt", timeout=5) as response:
                assert response.read() == b"some data"

            with pytest.raises(urllib.error.HTTPError) as exc_info:
                urllib.request.urlopen(server.url + "missing.txt", timeout=5)
            assert exc_info.value.code == 404
            exc_info.value.close()
        finally:
            server.stop()

    def test_file_server_bad_root(self, config, tmp_path):
        with pytest.raises(FileNotFoundError):
            HTTPServer.file_server(str(tmp_path / "nope"), config)
