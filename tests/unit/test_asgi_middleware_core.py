"""Tests for the ASGI middleware helpers and initialization."""

import uuid

import pytest

from lokilog.adapters.frameworks.asgi import (
    LokiRequestLoggingMiddleware,
    Receive,
    Scope,
    Send,
    _extract_request_id,
    _get_log_level_for_status,
)


@pytest.mark.tier(1)
def test_middleware_init_stores_app_and_logger(logger):
    """The middleware keeps its app, logger and options."""

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        await send({"type": "http.response.start", "status": 200, "headers": []})

    middleware = LokiRequestLoggingMiddleware(app, logger)

    assert middleware.app is app
    assert middleware.logger is logger
    assert middleware.exclude_paths == []
    assert middleware.request_id_header == "X-Request-ID"


@pytest.mark.tier(1)
@pytest.mark.parametrize(
    ("headers", "expected"),
    [
        ([(b"x-request-id", b"abc")], "abc"),
        ([(b"X-Request-ID", b"upper")], "upper"),
        ([(b"accept", b"*/*"), (b"x-request-id", b"second")], "second"),
    ],
)
def test_extract_request_id_from_headers(headers, expected):
    """The header is matched case-insensitively."""
    assert _extract_request_id({"headers": headers}) == expected


@pytest.mark.tier(1)
def test_extract_request_id_generates_uuid():
    """A UUID is generated when the header is absent."""
    request_id = _extract_request_id({"headers": []})

    assert uuid.UUID(request_id).version == 4


@pytest.mark.tier(1)
def test_extract_request_id_replaces_invalid_utf8():
    """Undecodable header bytes do not raise."""
    assert _extract_request_id({"headers": [(b"x-request-id", b"\xff")]}) == "�"


@pytest.mark.tier(1)
@pytest.mark.parametrize(
    ("status", "level"),
    [
        (0, "info"),
        (200, "info"),
        (399, "info"),
        (400, "warn"),
        (499, "warn"),
        (500, "error"),
        (599, "error"),
        (600, "info"),
    ],
)
def test_log_level_for_status(status, level):
    """Status classes map to log levels."""
    assert _get_log_level_for_status(status) == level
