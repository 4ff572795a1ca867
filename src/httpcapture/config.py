"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the capture server.

The defaults are tuned for test harnesses, not production:

    port=0        the OS picks a free port, read it back from server.port
    timeout=5.0   a stalled client cannot wedge the single accept thread
    stop_timeout  stop() never blocks a test run for long

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    Priority (highest to lowest):

    1. Command-line arguments     python -m httpcapture --port 3000
    2. Environment variables      HTTP_PORT=3000 python -m httpcapture
    3. Default values (in this dataclass)

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from . import __version__


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for HTTPServer.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog

    TIMEOUTS
    - timeout, accept_timeout, stop_timeout

    LOGGING
    - log_level, log_format

    FILE SERVING
    - static_dir, server_name

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """Address to bind to. Localhost keeps test servers off the network."""

    port: int = 0
    """
    Port to listen on. 0 asks the OS for any free port; after start() the
    bound port is written back here so a restart reuses it.
    """

    backlog: int = 50
    """Connections the OS queues while the accept thread is busy."""

    # ─────────────────────────────────────────────────────────────────────
    # TIMEOUTS
    # ─────────────────────────────────────────────────────────────────────

    timeout: Optional[float] = 5.0
    """
    Read/write timeout for accepted connections, in seconds.
    None = block forever (a silent client then stalls the server).
    """

    accept_timeout: float = 0.5
    """How often the accept loop wakes up to check whether it should stop."""

    stop_timeout: float = 2.0
    """How long stop() waits for the accept thread before abandoning it."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Level for the httpcapture loggers when configure_logging() is used."""

    log_format: str = "text"
    """Access log format: 'text' (Apache style) or 'json'."""

    # ─────────────────────────────────────────────────────────────────────
    # FILE SERVING
    # ─────────────────────────────────────────────────────────────────────

    static_dir: Optional[str] = None
    """Directory served by the CLI when set."""

    server_name: str = f"httpcapture/{__version__}"
    """Value of the Server header sent by the file server."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST        Server host (default: 127.0.0.1)
        HTTP_PORT        Server port (default: 0, any free port)
        HTTP_TIMEOUT     Connection timeout in seconds (default: 5)
        HTTP_STATIC_DIR  Directory to serve (default: None)
        HTTP_LOG_LEVEL   Logging level (default: INFO)
        HTTP_LOG_FORMAT  Access log format (default: text)

        =====================================================================
        """
        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "0")),
            timeout=float(os.getenv("HTTP_TIMEOUT", "5")),
            static_dir=os.getenv("HTTP_STATIC_DIR"),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HTTP_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called by HTTPServer at construction so mistakes surface before
        any socket is opened.

        Raises:
            ValueError: On the first invalid value.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.accept_timeout <= 0:
            raise ValueError("accept_timeout must be > 0")

        if self.stop_timeout <= 0:
            raise ValueError("stop_timeout must be > 0")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log_level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {', '.join(LOG_FORMATS)}")
