"""structlog-backed local sink emitting one JSON object per line."""

import logging
import sys
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import IO, Any

import orjson
import structlog

from lokilog.core.errors import SinkInitError
from lokilog.core.models import Field, FieldKind
from lokilog.core.ports import ObjectMarshaler
from lokilog.core.rendering import render_field, to_float32, wrap_signed, wrap_unsigned

_SIGNED_WIDTHS = {
    FieldKind.INT64: 64,
    FieldKind.INT32: 32,
    FieldKind.INT16: 16,
    FieldKind.INT8: 8,
}
_UNSIGNED_WIDTHS = {
    FieldKind.UINT64: 64,
    FieldKind.UINT32: 32,
    FieldKind.UINT16: 16,
    FieldKind.UINT8: 8,
    FieldKind.UINTPTR: 64,
}

# Event keys owned by structlog, the bound tags or bind()'s own signature
RESERVED_KEYS = frozenset(
    {"self", "event", "level", "timestamp", "service", "environment"}
)
RESERVED_KEY_PREFIX = "fields."

# Entry point level -> structlog method name
_LEVEL_METHODS = {
    "debug": "debug",
    "info": "info",
    "warn": "warning",
    "warning": "warning",
    "error": "error",
}


def orjson_dumps(v: Any, *, default: Any = None) -> str:
    """Fast JSON serialization using orjson."""
    return orjson.dumps(
        v, default=default, option=orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC
    ).decode()


def native_value(field: Field) -> Any:
    """Map a field to a JSON-native value, falling back to its rendered string."""
    if field.value is not None:
        if field.kind in _SIGNED_WIDTHS:
            return wrap_signed(int(field.value), _SIGNED_WIDTHS[field.kind])
        if field.kind in _UNSIGNED_WIDTHS:
            return wrap_unsigned(int(field.value), _UNSIGNED_WIDTHS[field.kind])
        if field.kind is FieldKind.FLOAT64:
            return float(field.value)
        if field.kind is FieldKind.FLOAT32:
            return to_float32(float(field.value))
        if field.kind is FieldKind.BOOL:
            return bool(field.value)
    return render_field(field)


def fields_to_event(fields: Iterable[Field]) -> dict[str, Any]:
    """Build structlog keyword arguments from an ordered field sequence.

    A NAMESPACE field opens a nested object that holds every following
    field. INLINE marshalers merge their members into the current object.
    SKIP fields and unknown kinds are dropped.
    """
    event: dict[str, Any] = {}
    target = event
    for field in fields:
        if field.kind is FieldKind.NAMESPACE:
            nested: dict[str, Any] = {}
            target[field.key] = nested
            target = nested
        elif field.kind is FieldKind.INLINE_MARSHALER and isinstance(
            field.value, ObjectMarshaler
        ):
            target.update(
                (str(k), v) for k, v in field.value.marshal_log_object().items()
            )
        else:
            value = native_value(field)
            if value is not None:
                target[field.key] = value
    return event


class StructlogSink:
    """Local sink writing JSON lines through a private structlog logger.

    The logger is built with ``structlog.wrap_logger`` so several sinks can
    coexist without touching structlog's global configuration.

    Args:
        service: Service tag bound to every line.
        environment: Environment tag bound to every line.
        stream: Text stream to write to (default: stdout).
        path: File to append to instead of a stream.
        level: Minimum stdlib level that is written.
    """

    def __init__(
        self,
        service: str,
        environment: str = "",
        stream: IO[str] | None = None,
        path: str | Path | None = None,
        level: int = logging.DEBUG,
    ) -> None:
        self._file: IO[str] | None = None
        if path is not None:
            try:
                self._file = open(path, "a", encoding="utf-8")
            except OSError as exc:
                raise SinkInitError(f"failed to create logger: {exc}") from exc
            stream = self._file
        stream = stream or sys.stdout
        if not callable(getattr(stream, "write", None)):
            raise SinkInitError("failed to create logger: stream is not writable")

        self._logger = structlog.wrap_logger(
            structlog.PrintLogger(file=stream),
            processors=[
                structlog.processors.add_log_level,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.JSONRenderer(serializer=orjson_dumps),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
        ).bind(service=service, environment=environment)

    def write(self, level: str, message: str, fields: Sequence[Field]) -> None:
        """Write one JSON line; field keys clashing with RESERVED_KEYS are prefixed."""
        method = _LEVEL_METHODS.get(level, "info")
        event = {
            (RESERVED_KEY_PREFIX + key if key in RESERVED_KEYS else key): value
            for key, value in fields_to_event(fields).items()
        }
        getattr(self._logger.bind(**event), method)(message)

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
