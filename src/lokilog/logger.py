"""Logger facade: writes every entry locally and ships it to Loki.

Each call is one synchronous transaction: capture the timestamp, write to
the local sink, flatten the entry, wrap it in a push envelope and POST it.
Delivery failures raise a DeliveryError subclass; local sink failures are
reported on the ``lokilog.diagnostics`` logger and never raised.
"""

import logging
import time
from collections.abc import Iterable
from types import TracebackType

import httpx

from lokilog.adapters.sinks.structlog_sink import StructlogSink
from lokilog.adapters.transport.httpx_transport import HttpxTransport
from lokilog.core import fields as f
from lokilog.core.config import LoggerConfig
from lokilog.core.encoding.loki import build_envelope, encode_envelope
from lokilog.core.errors import (
    DeliveryError,
    DeliveryRejectedError,
    RequestBuildError,
    SerializationError,
)
from lokilog.core.formatting import format_line
from lokilog.core.models import Field, LogEntry
from lokilog.core.ports import HTTPTransportPort, LocalSinkPort

diagnostics = logging.getLogger("lokilog.diagnostics")

ACCEPTED_STATUS_CODES = frozenset({200, 204})
JSON_HEADERS = {"Content-Type": "application/json"}


def _failure_message(exc: DeliveryError) -> str:
    if isinstance(exc, SerializationError):
        return "Failed to marshal payload"
    if isinstance(exc, RequestBuildError):
        return "Failed to create request"
    return "Failed to send request"


class LokiLogger:
    """Leveled structured logger shipping a flattened line per call to Loki.

    Example:
        ```python
        from lokilog import LoggerConfig, LokiLogger, fields

        logger = LokiLogger(LoggerConfig(base_url="http://loki:3100", service="api"))
        logger.info("order placed", fields.string("order_id", "A-17"))
        ```

    Args:
        config: Immutable logger configuration.
        sink: Local structured sink. Defaults to a StructlogSink writing
            JSON lines to stdout, tagged with service and environment.
        transport: HTTP transport. Defaults to an HttpxTransport using
            ``config.timeout``.

    Raises:
        SinkInitError: The default local sink could not be created.
    """

    def __init__(
        self,
        config: LoggerConfig,
        sink: LocalSinkPort | None = None,
        transport: HTTPTransportPort | None = None,
    ) -> None:
        self._config = config
        self._owned: list[StructlogSink | HttpxTransport] = []
        if sink is None:
            sink = StructlogSink(service=config.service, environment=config.environment)
            self._owned.append(sink)
        if transport is None:
            transport = HttpxTransport(timeout=config.timeout)
            self._owned.append(transport)
        self._sink = sink
        self._transport = transport

    @property
    def config(self) -> LoggerConfig:
        return self._config

    def info(self, message: str, *fields: Field) -> None:
        """Log at info level and ship to Loki."""
        self._log("info", message, fields)

    def error(self, message: str, err: BaseException | None, *fields: Field) -> None:
        """Log at error level with ``err`` appended as the ``error`` field.

        ``err`` may be None; the field then renders as ``<nil>``.
        """
        self._log("error", message, (*fields, f.error(err)))

    def debug(self, message: str, *fields: Field) -> None:
        """Log at debug level and ship to Loki."""
        self._log("debug", message, fields)

    def warn(self, message: str, *fields: Field) -> None:
        """Log at warn level and ship to Loki."""
        self._log("warn", message, fields)

    warning = warn

    def _log(self, level: str, message: str, fields: Iterable[Field]) -> None:
        entry = LogEntry(
            timestamp_ns=time.time_ns(),
            level=level,
            message=message,
            fields=tuple(fields),
        )
        self._write_local(entry.level, entry.message, entry.fields)
        self._ship(entry)

    def _write_local(self, level: str, message: str, fields: tuple[Field, ...]) -> None:
        try:
            self._sink.write(level, message, fields)
        except Exception:
            diagnostics.warning(
                "local sink write failed for %r", message, exc_info=True
            )

    def _ship(self, entry: LogEntry) -> None:
        line = format_line(entry.message, entry.fields)
        envelope = build_envelope(entry.timestamp_ns, self._config.service, line)
        try:
            body = encode_envelope(envelope)
            status = self._transport.post(self._config.push_url, body, JSON_HEADERS)
        except DeliveryError as exc:
            self._write_local(
                "error", _failure_message(exc), (*entry.fields, f.error(exc))
            )
            raise

        if status not in ACCEPTED_STATUS_CODES:
            reason = httpx.codes.get_reason_phrase(status)
            self._write_local(
                "error",
                "Unexpected status code",
                (
                    *entry.fields,
                    f.int64("status_code", status),
                    f.string("status", f"{status} {reason}".strip()),
                ),
            )
            raise DeliveryRejectedError(status, reason)

    def close(self) -> None:
        """Release the sink and transport this logger created itself."""
        for resource in self._owned:
            resource.close()
        self._owned.clear()

    def __enter__(self) -> "LokiLogger":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
