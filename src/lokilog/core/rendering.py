"""Field value renderer.

Turns a typed Field into its canonical string form. The same rendering is
used for the flattened line shipped to Loki and for values the local sink
cannot represent natively.

Conventions worth knowing:

- TIME fields without a zone render in UTC.
- ``None`` payloads render as ``<nil>`` (``""`` for byte payloads).
- Generic values render like a ``%v`` dump: ``map[k:v]``, ``[a b]``,
  ``{field values}``, complex numbers as ``(1+2i)``.
"""

import dataclasses
import math
import struct
from collections.abc import Callable, Iterable, Mapping, Sequence, Set
from datetime import datetime, timedelta, timezone, tzinfo
from decimal import Decimal
from typing import Any

from lokilog.core.models import Field, FieldKind
from lokilog.core.ports import ArrayMarshaler, ObjectMarshaler

NIL = "<nil>"
CYCLE = "<cycle>"
DEFAULT_ZONE: tzinfo = timezone.utc

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_NANOS_PER_SECOND = 1_000_000_000

_DURATION_UNITS = (
    ("h", 3600 * _NANOS_PER_SECOND),
    ("m", 60 * _NANOS_PER_SECOND),
    ("s", _NANOS_PER_SECOND),
    ("ms", 1_000_000),
    ("µs", 1_000),
    ("ns", 1),
)


# === Numeric helpers ===


def wrap_signed(value: int, bits: int) -> int:
    """Reinterpret value as a two's-complement integer of the given width."""
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def wrap_unsigned(value: int, bits: int) -> int:
    """Reduce value modulo 2**bits."""
    return value & ((1 << bits) - 1)


def to_float32(value: float) -> float:
    """Round a float to the nearest single-precision value."""
    if math.isnan(value) or math.isinf(value):
        return value
    try:
        result: float = struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)
    return result


def _special_float(value: float) -> str | None:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return None


def format_fixed(value: float) -> str:
    """Fixed-point rendering with exactly one digit after the point."""
    return _special_float(value) or f"{value:.1f}"


def _shortest_repr(value: float, single: bool) -> str:
    if not single:
        return repr(value)
    for precision in range(1, 10):
        text = f"{value:.{precision}g}"
        if to_float32(float(text)) == value:
            return text
    return repr(value)


def format_float(value: float, single: bool = False) -> str:
    """Shortest round-trip rendering of a float.

    Uses positional notation for decimal exponents in [-4, 6) and
    scientific notation (``1e+06``, ``2.5e-05``) otherwise. With
    ``single`` the digits are the shortest that round-trip at single
    precision.
    """
    special = _special_float(value)
    if special is not None:
        return special
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    text = _shortest_repr(value, single)
    sign, digit_tuple, exponent = Decimal(text).normalize().as_tuple()
    digits = "".join(map(str, digit_tuple))
    point = len(digits) + int(exponent)
    sci_exponent = point - 1
    prefix = "-" if sign else ""
    if sci_exponent < -4 or sci_exponent >= 6:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        exp_sign = "-" if sci_exponent < 0 else "+"
        return f"{prefix}{mantissa}e{exp_sign}{abs(sci_exponent):02d}"
    if point <= 0:
        return f"{prefix}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return prefix + digits + "0" * (point - len(digits))
    return f"{prefix}{digits[:point]}.{digits[point:]}"


def format_complex(value: complex, single: bool = False) -> str:
    """Render a complex number as ``(real+imagi)``."""
    imag = format_float(value.imag, single)
    if not imag.startswith(("-", "+")):
        imag = "+" + imag
    return f"({format_float(value.real, single)}{imag}i)"


# === Durations and instants ===


def timedelta_to_nanos(value: timedelta) -> int:
    """Convert a timedelta to integer nanoseconds without float rounding."""
    return (
        (value.days * 86400 + value.seconds) * _NANOS_PER_SECOND
        + value.microseconds * 1000
    )


def format_duration(nanos: int) -> str:
    """Render nanoseconds as a compact duration, e.g. ``5s`` or ``1h30m``.

    Only non-zero units are emitted, largest first. Zero renders as ``0s``.
    """
    if nanos == 0:
        return "0s"
    sign = "-" if nanos < 0 else ""
    remaining = abs(nanos)
    parts = []
    for unit, size in _DURATION_UNITS:
        count, remaining = divmod(remaining, size)
        if count:
            parts.append(f"{count}{unit}")
    return sign + "".join(parts)


def format_time(moment: datetime, nanosecond: int | None = None) -> str:
    """Render an instant as ``YYYY-MM-DD HH:MM:SS[.fraction] +HHMM ZONE``.

    Naive datetimes are treated as UTC. ``nanosecond`` overrides the
    sub-second part when more precision than microseconds is available.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=DEFAULT_ZONE)
    if nanosecond is None:
        nanosecond = moment.microsecond * 1000
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d} "
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if nanosecond:
        text += "." + f"{nanosecond:09d}".rstrip("0")
    offset = moment.strftime("%z")
    return f"{text} {offset} {moment.tzname() or offset}"


def format_unix_nanos(nanos: int, zone: tzinfo | None = None) -> str:
    """Render a Unix nanosecond timestamp in the given zone (default UTC)."""
    seconds, nanosecond = divmod(nanos, _NANOS_PER_SECOND)
    try:
        moment = (_EPOCH + timedelta(seconds=seconds)).astimezone(
            zone or DEFAULT_ZONE
        )
    except OverflowError:
        return str(nanos)
    return format_time(moment, nanosecond)


# === Generic structural rendering ===


def render_structural(value: Any) -> str:
    """Render an arbitrary value as a stable, generic structural dump."""
    return _structural(value, set())


def _has_custom_str(value: Any) -> bool:
    return type(value).__str__ is not object.__str__


def _sorted_for_display(items: Iterable[Any], active: set[int]) -> list[Any]:
    items = list(items)
    try:
        return sorted(items)
    except TypeError:
        return sorted(items, key=lambda item: _structural(item, active))


def _structural(value: Any, active: set[int]) -> str:
    if value is None:
        return NIL
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_float(value)
    if isinstance(value, complex):
        return format_complex(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "[" + " ".join(str(b) for b in bytes(value)) + "]"
    if isinstance(value, datetime):
        return format_time(value)
    if isinstance(value, timedelta):
        return format_duration(timedelta_to_nanos(value))
    if isinstance(value, type):
        return value.__qualname__

    if id(value) in active:
        return CYCLE
    active.add(id(value))
    try:
        return _structural_container(value, active)
    finally:
        active.discard(id(value))


def _structural_container(value: Any, active: set[int]) -> str:
    if isinstance(value, ObjectMarshaler):
        return _structural(dict(value.marshal_log_object()), active)
    if isinstance(value, ArrayMarshaler):
        return _structural(list(value.marshal_log_array()), active)
    if _has_custom_str(value):
        return str(value)
    if isinstance(value, Mapping):
        keys = _sorted_for_display(value.keys(), active)
        pairs = (
            f"{_structural(k, active)}:{_structural(value[k], active)}" for k in keys
        )
        return "map[" + " ".join(pairs) + "]"
    if isinstance(value, Set):
        items = _sorted_for_display(value, active)
        return "[" + " ".join(_structural(v, active) for v in items) + "]"
    if isinstance(value, Sequence):
        return "[" + " ".join(_structural(v, active) for v in value) + "]"
    if dataclasses.is_dataclass(value):
        values = (getattr(value, f.name) for f in dataclasses.fields(value))
        return "{" + " ".join(_structural(v, active) for v in values) + "}"
    if hasattr(value, "__dict__"):
        return "{" + " ".join(_structural(v, active) for v in vars(value).values()) + "}"
    return repr(value)


# === Per-kind renderers ===

_Renderer = Callable[[Field], str | None]


def _signed(bits: int) -> _Renderer:
    return lambda field: str(wrap_signed(int(field.value), bits))


def _unsigned(bits: int) -> _Renderer:
    return lambda field: str(wrap_unsigned(int(field.value), bits))


def _skip(field: Field) -> None:
    return None


def _render_duration(field: Field) -> str:
    value = field.value
    if isinstance(value, timedelta):
        value = timedelta_to_nanos(value)
    return format_duration(int(value))


def _render_time(field: Field) -> str:
    if isinstance(field.value, datetime):
        return format_time(field.value)
    return format_unix_nanos(int(field.value), field.zone)


def _render_time_full(field: Field) -> str:
    if isinstance(field.value, datetime):
        return format_time(field.value)
    return render_structural(field.value)


def _render_hex(field: Field) -> str:
    return bytes(field.value).hex()


def _render_complex64(field: Field) -> str:
    value = complex(field.value)
    return format_complex(
        complex(to_float32(value.real), to_float32(value.imag)), single=True
    )


_RENDERERS: dict[FieldKind, _Renderer] = {
    FieldKind.STRING: lambda field: str(field.value),
    FieldKind.INT64: _signed(64),
    FieldKind.INT32: _signed(32),
    FieldKind.INT16: _signed(16),
    FieldKind.INT8: _signed(8),
    FieldKind.UINT64: _unsigned(64),
    FieldKind.UINT32: _unsigned(32),
    FieldKind.UINT16: _unsigned(16),
    FieldKind.UINT8: _unsigned(8),
    FieldKind.UINTPTR: _unsigned(64),
    FieldKind.FLOAT64: lambda field: format_fixed(float(field.value)),
    FieldKind.FLOAT32: lambda field: format_fixed(to_float32(float(field.value))),
    FieldKind.BOOL: lambda field: "true" if field.value else "false",
    FieldKind.DURATION: _render_duration,
    FieldKind.TIME: _render_time,
    FieldKind.TIME_FULL: _render_time_full,
    FieldKind.ERROR: lambda field: str(field.value),
    FieldKind.STRINGER: lambda field: str(field.value),
    FieldKind.REFLECT: lambda field: render_structural(field.value),
    FieldKind.ARRAY_MARSHALER: lambda field: render_structural(field.value),
    FieldKind.OBJECT_MARSHALER: lambda field: render_structural(field.value),
    FieldKind.INLINE_MARSHALER: lambda field: render_structural(field.value),
    FieldKind.BINARY: _render_hex,
    FieldKind.BYTE_STRING: _render_hex,
    FieldKind.COMPLEX128: lambda field: format_complex(complex(field.value)),
    FieldKind.COMPLEX64: _render_complex64,
    FieldKind.NAMESPACE: _skip,
    FieldKind.SKIP: _skip,
}

_SKIPPED_KINDS = frozenset({FieldKind.NAMESPACE, FieldKind.SKIP})
_BYTE_KINDS = frozenset({FieldKind.BINARY, FieldKind.BYTE_STRING})


def render_field(field: Field) -> str | None:
    """Render a field's value to its canonical string.

    Args:
        field: The field to render.

    Returns:
        The rendered value, or None when the field produces no entry
        (namespace and skip markers, unknown kinds).
    """
    renderer = _RENDERERS.get(field.kind)
    if renderer is None or field.kind in _SKIPPED_KINDS:
        return None
    if field.value is None:
        return "" if field.kind in _BYTE_KINDS else NIL
    return renderer(field)
