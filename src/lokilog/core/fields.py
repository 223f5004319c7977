"""Field constructors.

One helper per FieldKind, plus ``infer`` for picking a kind from the Python
type of a value. Import the module and qualify calls::

    from lokilog import fields

    logger.info("user signed in", fields.string("user", name), fields.int64("attempt", 2))
"""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any

from lokilog.core.models import Field, FieldKind
from lokilog.core.ports import ArrayMarshaler, ObjectMarshaler
from lokilog.core.rendering import timedelta_to_nanos

ERROR_KEY = "error"


def string(key: str, value: str) -> Field:
    """UTF-8 text field."""
    return Field(key, FieldKind.STRING, value)


def int64(key: str, value: int) -> Field:
    """Signed 64-bit integer; out-of-range values wrap."""
    return Field(key, FieldKind.INT64, value)


def int32(key: str, value: int) -> Field:
    """Signed 32-bit integer."""
    return Field(key, FieldKind.INT32, value)


def int16(key: str, value: int) -> Field:
    """Signed 16-bit integer."""
    return Field(key, FieldKind.INT16, value)


def int8(key: str, value: int) -> Field:
    """Signed 8-bit integer."""
    return Field(key, FieldKind.INT8, value)


integer = int64


def uint64(key: str, value: int) -> Field:
    """Unsigned 64-bit integer; negative values wrap."""
    return Field(key, FieldKind.UINT64, value)


def uint32(key: str, value: int) -> Field:
    """Unsigned 32-bit integer."""
    return Field(key, FieldKind.UINT32, value)


def uint16(key: str, value: int) -> Field:
    """Unsigned 16-bit integer."""
    return Field(key, FieldKind.UINT16, value)


def uint8(key: str, value: int) -> Field:
    """Unsigned 8-bit integer."""
    return Field(key, FieldKind.UINT8, value)


def uintptr(key: str, value: int) -> Field:
    """Pointer-sized unsigned integer."""
    return Field(key, FieldKind.UINTPTR, value)


def float64(key: str, value: float) -> Field:
    """Double-precision float."""
    return Field(key, FieldKind.FLOAT64, value)


def float32(key: str, value: float) -> Field:
    """Single-precision float, rounded on render."""
    return Field(key, FieldKind.FLOAT32, value)


def boolean(key: str, value: bool) -> Field:
    """Boolean rendered as true or false."""
    return Field(key, FieldKind.BOOL, bool(value))


def duration(key: str, value: int | timedelta) -> Field:
    """Duration field from integer nanoseconds or a timedelta."""
    if isinstance(value, timedelta):
        value = timedelta_to_nanos(value)
    return Field(key, FieldKind.DURATION, value)


def time(key: str, value: int | datetime, zone: tzinfo | None = None) -> Field:
    """Instant field from Unix nanoseconds or a datetime.

    A datetime contributes its own tzinfo unless ``zone`` is given; naive
    datetimes are taken as UTC. Without any zone the instant renders in UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        zone = zone or value.tzinfo
        value = timedelta_to_nanos(value - datetime(1970, 1, 1, tzinfo=timezone.utc))
    return Field(key, FieldKind.TIME, value, zone)


def time_full(key: str, value: datetime) -> Field:
    """Instant kept as a datetime, rendered with its own zone."""
    return Field(key, FieldKind.TIME_FULL, value)


def error(err: BaseException | None) -> Field:
    """Error field under the conventional ``error`` key."""
    return named_error(ERROR_KEY, err)


def named_error(key: str, err: BaseException | None) -> Field:
    """Error field under a custom key."""
    return Field(key, FieldKind.ERROR, err)


def stringer(key: str, value: Any) -> Field:
    """Value rendered through its ``__str__``."""
    return Field(key, FieldKind.STRINGER, value)


def reflect(key: str, value: Any) -> Field:
    """Arbitrary value rendered as a structural dump."""
    return Field(key, FieldKind.REFLECT, value)


def object_marshaler(key: str, value: ObjectMarshaler) -> Field:
    """Value exposing ``marshal_log_object``."""
    return Field(key, FieldKind.OBJECT_MARSHALER, value)


def array(key: str, value: ArrayMarshaler) -> Field:
    """Value exposing ``marshal_log_array``."""
    return Field(key, FieldKind.ARRAY_MARSHALER, value)


def inline(value: ObjectMarshaler) -> Field:
    """Object whose members are merged into the enclosing context."""
    return Field("", FieldKind.INLINE_MARSHALER, value)


def binary(key: str, value: bytes) -> Field:
    """Opaque bytes."""
    return Field(key, FieldKind.BINARY, value)


def byte_string(key: str, value: bytes) -> Field:
    """Bytes holding text."""
    return Field(key, FieldKind.BYTE_STRING, value)


def complex128(key: str, value: complex) -> Field:
    """Double-precision complex number."""
    return Field(key, FieldKind.COMPLEX128, value)


def complex64(key: str, value: complex) -> Field:
    """Single-precision complex number."""
    return Field(key, FieldKind.COMPLEX64, value)


def namespace(key: str) -> Field:
    """Open a namespace: subsequent fields nest under ``key`` in the local sink."""
    return Field(key, FieldKind.NAMESPACE)


def skip() -> Field:
    """A no-op field, useful for conditionally omitting a value."""
    return Field("", FieldKind.SKIP)


def infer(key: str, value: Any) -> Field:
    """Build a field, choosing the kind from the value's Python type.

    Args:
        key: Field name.
        value: Any value. Unrecognised types become REFLECT fields.

    Returns:
        A Field of the most specific kind for ``value``.
    """
    if isinstance(value, bool):
        return boolean(key, value)
    if isinstance(value, int):
        return int64(key, value)
    if isinstance(value, float):
        return float64(key, value)
    if isinstance(value, complex):
        return complex128(key, value)
    if isinstance(value, str):
        return string(key, value)
    if isinstance(value, (bytes, bytearray)):
        return binary(key, bytes(value))
    if isinstance(value, timedelta):
        return duration(key, value)
    if isinstance(value, datetime):
        return time(key, value)
    if isinstance(value, BaseException):
        return named_error(key, value)
    if isinstance(value, ObjectMarshaler):
        return object_marshaler(key, value)
    if isinstance(value, ArrayMarshaler):
        return array(key, value)
    return reflect(key, value)
