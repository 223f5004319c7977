"""lokilog: structured logging shipped to Grafana Loki.

Each log call is written to a local structured sink and POSTed to Loki's
push API as a flattened ``message | key=value ...`` line.
"""

from lokilog.core import fields
from lokilog.core.config import LoggerConfig
from lokilog.core.errors import (
    DeliveryError,
    DeliveryRejectedError,
    DeliveryTimeoutError,
    LokiLogError,
    RequestBuildError,
    SerializationError,
    SinkInitError,
    TransportError,
)
from lokilog.core.formatting import fields_to_map, format_line
from lokilog.core.models import Field, FieldKind, LogEntry
from lokilog.core.rendering import render_field
from lokilog.logger import LokiLogger

__all__ = [
    "DeliveryError",
    "DeliveryRejectedError",
    "DeliveryTimeoutError",
    "Field",
    "FieldKind",
    "LogEntry",
    "LoggerConfig",
    "LokiLogError",
    "LokiLogger",
    "RequestBuildError",
    "SerializationError",
    "SinkInitError",
    "TransportError",
    "fields",
    "fields_to_map",
    "format_line",
    "render_field",
]
