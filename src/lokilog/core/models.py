"""Core domain models for structured log shipping."""

from dataclasses import dataclass, field
from datetime import tzinfo
from enum import Enum
from typing import Any


class FieldKind(str, Enum):
    """Closed set of payload shapes a log field can carry."""

    STRING = "string"
    INT64 = "int64"
    INT32 = "int32"
    INT16 = "int16"
    INT8 = "int8"
    UINT64 = "uint64"
    UINT32 = "uint32"
    UINT16 = "uint16"
    UINT8 = "uint8"
    UINTPTR = "uintptr"
    FLOAT64 = "float64"
    FLOAT32 = "float32"
    BOOL = "bool"
    DURATION = "duration"
    TIME = "time"
    TIME_FULL = "time_full"
    ERROR = "error"
    STRINGER = "stringer"
    REFLECT = "reflect"
    ARRAY_MARSHALER = "array_marshaler"
    OBJECT_MARSHALER = "object_marshaler"
    INLINE_MARSHALER = "inline_marshaler"
    BINARY = "binary"
    BYTE_STRING = "byte_string"
    COMPLEX128 = "complex128"
    COMPLEX64 = "complex64"
    NAMESPACE = "namespace"
    SKIP = "skip"


@dataclass(frozen=True)
class Field:
    """A typed key/value pair attached to a log entry.

    Attributes:
        key: Field name.
        kind: Payload shape, drives rendering.
        value: Payload appropriate to ``kind`` (nanoseconds for DURATION
            and TIME, bytes for BINARY, an exception for ERROR, ...).
        zone: Optional timezone for TIME fields. Ignored by other kinds.
    """

    key: str
    kind: FieldKind
    value: Any = None
    zone: tzinfo | None = None


@dataclass(frozen=True)
class LogEntry:
    """A single log call, captured at invocation time.

    Attributes:
        timestamp_ns: Unix timestamp in nanoseconds.
        level: Log level (e.g., info, error, debug, warn).
        message: The log message.
        fields: Ordered structured fields.
    """

    timestamp_ns: int
    level: str
    message: str
    fields: tuple[Field, ...] = ()


@dataclass(frozen=True)
class Stream:
    """A labelled batch of (timestamp, line) samples.

    Attributes:
        labels: Stream labels used by the aggregation service for indexing.
        values: Samples as (unix nanoseconds as decimal string, line) pairs.
    """

    labels: dict[str, str] = field(default_factory=dict)
    values: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class ShippingEnvelope:
    """Wire-level push request body: one or more streams."""

    streams: tuple[Stream, ...] = ()
