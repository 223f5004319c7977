"""ASGI request-logging middleware.

Framework-agnostic: wraps any ASGI application (FastAPI, Starlette, Django's
ASGI handler, ...) and ships one log line per HTTP request through a
LokiLogger.
"""

import asyncio
import fnmatch
import time
import uuid
from collections.abc import Callable, Coroutine
from typing import Any

from lokilog.core import fields as f
from lokilog.core.errors import LokiLogError
from lokilog.core.models import Field
from lokilog.logger import LokiLogger, diagnostics

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]


def _extract_request_id(scope: Scope, header_name: str = "X-Request-ID") -> str:
    """Extract or generate a request ID from ASGI scope headers.

    Searches for the specified header (case-insensitive). If not found,
    generates a new UUID.

    Args:
        scope: ASGI scope dictionary containing request metadata.
        header_name: Name of the header to search for (default: "X-Request-ID").

    Returns:
        Request ID string (either from header or newly generated UUID).
    """
    header_bytes = header_name.lower().encode()
    headers: list[tuple[bytes, bytes]] = scope.get("headers", [])
    for name, value in headers:
        if name.lower() == header_bytes:
            return str(value.decode("utf-8", errors="replace"))
    return str(uuid.uuid4())


def _get_log_level_for_status(status_code: int) -> str:
    """Determine log level based on HTTP status code.

    Maps status codes to log levels:
    - 400-499 (4xx) → "warn"
    - 500-599 (5xx) → "error"
    - Other → "info"

    Args:
        status_code: HTTP status code from response.

    Returns:
        Log level string ("info", "warn", or "error").
    """
    if 400 <= status_code < 500:
        return "warn"
    if 500 <= status_code < 600:
        return "error"
    return "info"


class LokiRequestLoggingMiddleware:
    """ASGI middleware that ships a log line for every HTTP request.

    The line reads ``"<METHOD> <path>"`` with fields request_id, method,
    path, status_code, response_body_size and duration. The blocking
    logger runs in a worker thread; delivery failures are reported on the
    diagnostics logger and never reach the client.
    """

    def __init__(
        self,
        app: ASGIApp,
        logger: LokiLogger,
        exclude_paths: list[str] | None = None,
        request_id_header: str = "X-Request-ID",
    ) -> None:
        """Initialize the middleware with a wrapped app and a logger.

        Args:
            app: The ASGI application to wrap.
            logger: LokiLogger receiving request log lines.
            exclude_paths: List of paths to exclude from logging.
                          Supports exact matches and wildcard patterns
                          (e.g., "/internal/*").
            request_id_header: Name of the header to extract request ID from
                             (default: "X-Request-ID").
        """
        self.app = app
        self.logger = logger
        self.exclude_paths = exclude_paths or []
        self.request_id_header = request_id_header

    def _path_excluded(self, path: str) -> bool:
        """Check if path matches any pattern in exclude_paths."""
        return any(fnmatch.fnmatch(path, pattern) for pattern in self.exclude_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI callable interface that processes requests through the wrapped app."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        request_id = _extract_request_id(scope, self.request_id_header)
        captured: dict[str, Any] = {"status": None, "body_size": 0, "exception": None}

        async def wrapped_send(message: dict[str, Any]) -> None:
            if message["type"] == "http.response.start":
                captured["status"] = message["status"]
            elif message["type"] == "http.response.body":
                captured["body_size"] += len(message.get("body", b""))
            await send(message)

        try:
            await self.app(scope, receive, wrapped_send)
        except Exception as e:
            captured["exception"] = e
            captured["status"] = 500

        duration = time.perf_counter() - start_time
        if not self._path_excluded(scope["path"]):
            await self._log_request(scope, request_id, captured, duration)
        if captured["exception"] is not None:
            raise captured["exception"]

    async def _log_request(
        self,
        scope: Scope,
        request_id: str,
        captured: dict[str, Any],
        duration: float,
    ) -> None:
        """Ship the request log line without letting delivery errors escape."""
        status_code = captured["status"] or 0
        request_fields: list[Field] = [
            f.string("request_id", request_id),
            f.string("method", scope["method"]),
            f.string("path", scope["path"]),
            f.int64("status_code", status_code),
            f.int64("response_body_size", captured["body_size"]),
            f.duration("duration", int(duration * 1_000_000_000)),
        ]
        message = f"{scope['method']} {scope['path']}"
        level = _get_log_level_for_status(status_code)
        try:
            if level == "error":
                await asyncio.to_thread(
                    self.logger.error, message, captured["exception"], *request_fields
                )
            else:
                await asyncio.to_thread(
                    getattr(self.logger, level), message, *request_fields
                )
        except LokiLogError:
            diagnostics.warning("failed to ship request log %r", message, exc_info=True)
