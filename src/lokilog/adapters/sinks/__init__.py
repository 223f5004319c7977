"""Local sink adapters implementing LocalSinkPort."""

from lokilog.adapters.sinks.in_memory import InMemorySink, SinkRecord
from lokilog.adapters.sinks.structlog_sink import (
    StructlogSink,
    fields_to_event,
    native_value,
)

__all__ = [
    "InMemorySink",
    "SinkRecord",
    "StructlogSink",
    "fields_to_event",
    "native_value",
]
