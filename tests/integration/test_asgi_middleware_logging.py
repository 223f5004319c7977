"""Integration tests for the ASGI request-logging middleware.

Tests verify that LokiRequestLoggingMiddleware ships one line per HTTP
request with method, path, status code, body size and duration fields.
"""

import logging

import pytest

from lokilog.adapters.frameworks import LokiRequestLoggingMiddleware
from lokilog.logger import LokiLogger

pytestmark = [
    pytest.mark.integration,
    pytest.mark.tier(2),
]


async def basic_app(scope, receive, send):
    """Basic ASGI app that returns 200 OK."""
    await send(
        {
            "type": "http.response.start",
            "status": 200,
            "headers": [(b"content-type", b"text/plain")],
        }
    )
    await send({"type": "http.response.body", "body": b"OK"})


def status_app(status: int):
    """ASGI app answering every request with ``status``."""

    async def app(scope, receive, send):
        await send({"type": "http.response.start", "status": status, "headers": []})
        await send({"type": "http.response.body", "body": b""})

    return app


async def failing_app(scope, receive, send):
    raise RuntimeError("handler exploded")


async def noop_receive():
    """Noop receive callable for testing."""
    return {"type": "http.request", "body": b""}


class SendCapture:
    """Captures messages sent through ASGI send callable."""

    def __init__(self):
        self.messages = []

    async def __call__(self, message):
        self.messages.append(message)


def _scope(method: str = "GET", path: str = "/", headers=None) -> dict:
    return {"type": "http", "method": method, "path": path, "headers": headers or []}


def _field_values(record) -> dict:
    return {field.key: field.value for field in record.fields}


@pytest.mark.asyncio
async def test_middleware_logs_request_details(logger, sink, transport):
    """Method, path, status and body size are recorded for each request."""
    middleware = LokiRequestLoggingMiddleware(basic_app, logger)

    await middleware(_scope("POST", "/api/users"), noop_receive, SendCapture())

    [record] = sink.records
    assert record.level == "info"
    assert record.message == "POST /api/users"
    values = _field_values(record)
    assert values["method"] == "POST"
    assert values["path"] == "/api/users"
    assert values["status_code"] == 200
    assert values["response_body_size"] == 2
    assert values["duration"] >= 0
    assert transport.calls[0].line.startswith("POST /api/users | request_id=")


@pytest.mark.asyncio
async def test_middleware_passes_response_through(logger):
    """The wrapped app's messages reach the client unchanged."""
    send_capture = SendCapture()

    await LokiRequestLoggingMiddleware(basic_app, logger)(_scope(), noop_receive, send_capture)

    assert [m["type"] for m in send_capture.messages] == [
        "http.response.start",
        "http.response.body",
    ]


@pytest.mark.asyncio
async def test_request_id_from_header(logger, sink):
    """An incoming X-Request-ID is reused."""
    middleware = LokiRequestLoggingMiddleware(basic_app, logger)

    await middleware(
        _scope(headers=[(b"x-request-id", b"req-123")]), noop_receive, SendCapture()
    )

    assert _field_values(sink.records[0])["request_id"] == "req-123"


@pytest.mark.asyncio
async def test_custom_request_id_header(logger, sink):
    """The request ID header name is configurable."""
    middleware = LokiRequestLoggingMiddleware(
        basic_app, logger, request_id_header="X-Correlation-ID"
    )

    await middleware(
        _scope(headers=[(b"x-correlation-id", b"corr-9")]), noop_receive, SendCapture()
    )

    assert _field_values(sink.records[0])["request_id"] == "corr-9"


@pytest.mark.asyncio
async def test_request_id_generated_when_missing(logger, sink):
    """Requests without the header get a generated ID."""
    await LokiRequestLoggingMiddleware(basic_app, logger)(_scope(), noop_receive, SendCapture())

    assert len(_field_values(sink.records[0])["request_id"]) == 36


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "level"),
    [(200, "info"), (302, "info"), (404, "warn"), (503, "error")],
)
async def test_level_follows_status(logger, sink, status, level):
    """4xx responses log at warn and 5xx at error."""
    await LokiRequestLoggingMiddleware(status_app(status), logger)(
        _scope(), noop_receive, SendCapture()
    )

    assert sink.records[0].level == level


@pytest.mark.asyncio
async def test_server_error_without_exception_ships_nil_error(logger, transport):
    """A 5xx response with no exception carries error=<nil>."""
    await LokiRequestLoggingMiddleware(status_app(500), logger)(
        _scope(), noop_receive, SendCapture()
    )

    assert transport.calls[0].line.endswith("error=<nil>")


@pytest.mark.asyncio
async def test_app_exception_is_logged_and_reraised(logger, sink):
    """Exceptions are logged as 500 errors and then propagate."""
    middleware = LokiRequestLoggingMiddleware(failing_app, logger)

    with pytest.raises(RuntimeError, match="handler exploded"):
        await middleware(_scope(), noop_receive, SendCapture())

    [record] = sink.records
    assert record.level == "error"
    values = _field_values(record)
    assert values["status_code"] == 500
    assert str(values["error"]) == "handler exploded"


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/health", "/internal/metrics"])
async def test_excluded_paths_are_not_logged(logger, sink, path):
    """Exact and wildcard exclusions suppress logging."""
    middleware = LokiRequestLoggingMiddleware(
        basic_app, logger, exclude_paths=["/health", "/internal/*"]
    )

    await middleware(_scope(path=path), noop_receive, SendCapture())

    assert sink.records == []


@pytest.mark.asyncio
async def test_non_http_scopes_pass_through(logger, sink):
    """Lifespan and websocket scopes are not logged."""
    seen = []

    async def app(scope, receive, send):
        seen.append(scope["type"])

    await LokiRequestLoggingMiddleware(app, logger)(
        {"type": "lifespan"}, noop_receive, SendCapture()
    )

    assert seen == ["lifespan"]
    assert sink.records == []


@pytest.mark.asyncio
async def test_delivery_failure_does_not_reach_client(
    config, sink, recording_transport_factory, caplog
):
    """A rejected push is reported on diagnostics and the response still completes."""
    logger = LokiLogger(config, sink=sink, transport=recording_transport_factory(status=500))
    send_capture = SendCapture()

    with caplog.at_level(logging.WARNING, logger="lokilog.diagnostics"):
        await LokiRequestLoggingMiddleware(basic_app, logger)(
            _scope(), noop_receive, send_capture
        )

    assert len(send_capture.messages) == 2
    assert any("failed to ship request log" in r.getMessage() for r in caplog.records)


@pytest.mark.asyncio
async def test_works_behind_an_http_client(logger, sink, asgi_test_client):
    """Requests made through httpx are logged end to end."""
    middleware = LokiRequestLoggingMiddleware(basic_app, logger)

    async with asgi_test_client(middleware) as client:
        response = await client.get("/items", headers={"X-Request-ID": "abc"})

    assert response.status_code == 200
    assert _field_values(sink.records[0])["request_id"] == "abc"
