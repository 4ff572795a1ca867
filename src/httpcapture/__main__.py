"""
=============================================================================
HTTPCAPTURE CLI ENTRY POINT
=============================================================================

Runs a capture server from the command line, handy for poking at an HTTP
client by hand and watching what it sends.

=============================================================================
USAGE
=============================================================================

    # Answer 200 OK to everything on a free port, print each request line
    python -m httpcapture

    # Fixed port
    python -m httpcapture --port 3000

    # Serve a directory
    python -m httpcapture --static ./public

    # JSON access log lines
    python -m httpcapture --log-format json

Environment variables (see ServerConfig.from_env) supply the defaults;
command-line arguments override them.

=============================================================================
"""

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from . import __version__
from .config import LOG_FORMATS, LOG_LEVELS, ServerConfig
from .handlers import StaticFileHandler
from .http import HTTPRequest, HTTPResponse, HTTPStatus
from .server import HTTPServer, configure_logging

logger = logging.getLogger(__name__)


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httpcapture",
        description="Embeddable HTTP/1.0 server that captures every request",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m httpcapture                      # 200 OK on a free port
  python -m httpcapture --port 3000          # Fixed port
  python -m httpcapture --static ./public    # Serve a directory
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})",
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help="Port to listen on (default: 0, any free port)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # FEATURE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--static", "-s",
        default=defaults.static_dir,
        metavar="DIR",
        help="Serve files from DIR instead of answering 200 OK",
    )

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=defaults.log_level.upper(),
        help="Logging level (default: INFO)",
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=defaults.log_format,
        help="Access log format (default: text)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"httpcapture {__version__}",
    )

    return parser


def config_from_args(argv: Optional[List[str]] = None) -> ServerConfig:
    """Environment defaults, overridden by command-line arguments."""
    defaults = ServerConfig.from_env()
    args = build_parser(defaults).parse_args(argv)

    defaults.host = args.host
    defaults.port = args.port
    defaults.static_dir = args.static
    defaults.log_level = args.log_level
    defaults.log_format = args.log_format
    return defaults


def echo_request(request: HTTPRequest, response: HTTPResponse) -> None:
    """Print the request line and answer 200 OK."""
    print(request.request_line, flush=True)
    response.status = HTTPStatus.OK


def main(argv: Optional[List[str]] = None) -> int:
    config = config_from_args(argv)
    configure_logging(config.log_level)

    try:
        if config.static_dir:
            handler = StaticFileHandler(config.static_dir, server_name=config.server_name)
        else:
            handler = echo_request
        server = HTTPServer(config, handler=handler)
        server.start()
    except (OSError, ValueError) as e:
        logger.error(f"Cannot start server: {e}")
        return 1

    print(f"Listening on {server.url} (Ctrl+C to stop)", flush=True)

    # ─────────────────────────────────────────────────────────────────────
    # SIGNALS
    # ─────────────────────────────────────────────────────────────────────
    # SIGINT (Ctrl+C) and SIGTERM (docker stop, kill) both stop the
    # server cleanly. The handler only sets an event; stopping happens
    # back on the main thread.

    stop_requested = threading.Event()

    def shutdown_handler(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, initiating shutdown...")
        stop_requested.set()

    signal.signal(signal.SIGINT, shutdown_handler)
    signal.signal(signal.SIGTERM, shutdown_handler)

    # Short waits keep the main thread responsive to signals everywhere
    while not stop_requested.is_set():
        if server.wait(0.5):
            logger.error("Accept loop ended unexpectedly")
            break

    server.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
