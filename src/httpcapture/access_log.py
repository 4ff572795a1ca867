"""
=============================================================================
ACCESS LOG
=============================================================================

One line per exchange, written to the "httpcapture.access" logger so it
can be routed separately from the server's diagnostic logging:

    logging.getLogger("httpcapture.access").addHandler(file_handler)

Two formats:

    text  127.0.0.1 - - [19/Oct/2026:10:00:00 +0000] "GET /" 200 11 0.41ms
    json  {"request_id": "1f3a9c2e", "method": "GET", "path": "/", ...}

A request that failed to decode is logged with whatever was parsed;
missing request-line parts show up as "-".

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass

from .http.request import HTTPRequest
from .http.response import HTTPResponse

logger = logging.getLogger("httpcapture.access")


@dataclass
class RequestLog:
    """
    Structured log entry for one request/response exchange.

    request_id:     Connection identifier, matches the server's debug logs
    method:         Request method, "-" if it never got decoded
    path:           Request path, "-" if it never got decoded
    client_ip:      Client's IP address
    user_agent:     user-agent header or "-"
    status_code:    Response status
    content_length: Response body size in bytes
    duration_ms:    Time from accept to response written
    timestamp:      When the response was written
    """

    request_id: str
    method: str
    path: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "method": self.method,
            "path": self.path,
            "client_ip": self.client_ip,
            "user_agent": self.user_agent,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        """Apache common-log style line."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class AccessLogger:
    """
    Formats and emits access log entries.

    Args:
        log_format: "text" (Apache style) or "json".
        log_level: Level the entries are logged at.
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        if log_format not in ("text", "json"):
            raise ValueError(f"Unknown access log format: {log_format!r}")
        self.log_format = log_format
        self.log_level = log_level

    def entry(
        self,
        request_id: str,
        client_ip: str,
        request: HTTPRequest,
        response: HTTPResponse,
        duration_ms: float,
    ) -> RequestLog:
        return RequestLog(
            request_id=request_id,
            method=request.method or "-",
            path=request.path or "-",
            client_ip=client_ip,
            user_agent=request.get_header("user-agent") or "-",
            status_code=response.status,
            content_length=len(response.body) if response.body is not None else 0,
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

    def format(self, entry: RequestLog) -> str:
        if self.log_format == "json":
            return json.dumps(entry.to_dict())
        return entry.to_text()

    def log(
        self,
        request_id: str,
        client_ip: str,
        request: HTTPRequest,
        response: HTTPResponse,
        duration_ms: float,
    ) -> RequestLog:
        """Build an entry, emit it, and return it."""
        entry = self.entry(request_id, client_ip, request, response, duration_ms)
        if logger.isEnabledFor(self.log_level):
            logger.log(self.log_level, self.format(entry))
        return entry
