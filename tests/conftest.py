"""Shared test fixtures for all test modules."""

import json
import socket
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import httpx
import pytest

from lokilog.adapters.sinks.in_memory import InMemorySink
from lokilog.core.config import LoggerConfig
from lokilog.logger import LokiLogger


@dataclass
class RecordedPush:
    """One request seen by a fake Loki endpoint."""

    url: str
    body: bytes
    headers: dict[str, str]

    def json(self) -> dict:
        return json.loads(self.body)

    @property
    def line(self) -> str:
        return self.json()["streams"][0]["values"][0][1]


@dataclass
class RecordingTransport:
    """HTTPTransportPort fake answering every push with a fixed status."""

    status: int = 204
    calls: list[RecordedPush] = field(default_factory=list)

    def post(self, url: str, body: bytes, headers: Mapping[str, str]) -> int:
        self.calls.append(RecordedPush(url, body, dict(headers)))
        return self.status


class FailingSink:
    """LocalSinkPort that always raises."""

    def write(self, level, message, fields) -> None:
        raise OSError("disk full")


@pytest.fixture
def config() -> LoggerConfig:
    """Logger configuration pointing at a fake Loki."""
    return LoggerConfig(base_url="http://loki:3100", service="checkout", environment="test")


@pytest.fixture
def sink() -> InMemorySink:
    """Empty in-memory local sink."""
    return InMemorySink()


@pytest.fixture
def transport() -> RecordingTransport:
    """Fake transport answering 204."""
    return RecordingTransport()


@pytest.fixture
def failing_sink() -> FailingSink:
    return FailingSink()


@pytest.fixture
def logger(config, sink, transport) -> LokiLogger:
    """LokiLogger wired to the in-memory sink and recording transport."""
    return LokiLogger(config, sink=sink, transport=transport)


@pytest.fixture
def recording_transport_factory():
    """Factory for RecordingTransport with a custom status."""
    return RecordingTransport


# === Real socket fixtures ===


@dataclass
class LokiServer:
    """Minimal threaded HTTP receiver standing in for Loki."""

    url: str
    status: int = 204
    requests: list[RecordedPush] = field(default_factory=list)


@pytest.fixture
def loki_server() -> Iterator[LokiServer]:
    """Run a local HTTP server that records push requests."""
    state = LokiServer(url="")

    class Handler(BaseHTTPRequestHandler):
        def do_POST(self) -> None:
            length = int(self.headers.get("Content-Length", 0))
            body = self.rfile.read(length)
            state.requests.append(
                RecordedPush(self.path, body, {k: v for k, v in self.headers.items()})
            )
            self.send_response(state.status)
            self.send_header("Content-Length", "0")
            self.end_headers()

        def log_message(self, format: str, *args: object) -> None:
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
    state.url = f"http://127.0.0.1:{server.server_address[1]}"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield state
    finally:
        server.shutdown()
        server.server_close()


@pytest.fixture
def silent_endpoint() -> Iterator[str]:
    """A TCP listener that accepts connections but never answers."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(8)
    try:
        yield f"http://127.0.0.1:{sock.getsockname()[1]}"
    finally:
        sock.close()


@pytest.fixture
def trickling_endpoint() -> Iterator[str]:
    """A TCP listener that answers with a status line, then one header byte every 0.1s."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    sock.listen(8)
    sock.settimeout(0.1)
    stop = threading.Event()

    def serve() -> None:
        while not stop.is_set():
            try:
                conn, _ = sock.accept()
            except OSError:
                continue
            with conn:
                try:
                    conn.sendall(b"HTTP/1.1 204 No Content\r\nX-Pad: ")
                    while not stop.wait(0.1):
                        conn.sendall(b"a")
                except OSError:
                    pass

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{sock.getsockname()[1]}"
    finally:
        stop.set()
        thread.join(timeout=2)
        sock.close()


@pytest.fixture
def direct_client() -> Iterator[httpx.Client]:
    """httpx client that ignores proxy environment variables."""
    client = httpx.Client(trust_env=False)
    try:
        yield client
    finally:
        client.close()


# === ASGI Test Fixtures ===


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            async with asgi_test_client(app) as client:
                response = await client.get("/endpoint")
    """

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
