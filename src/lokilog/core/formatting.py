"""Entry formatter: flattens a message and its fields into one line."""

from collections.abc import Iterable

from lokilog.core.models import Field
from lokilog.core.rendering import render_field

FIELD_SEPARATOR = " | "


def _rendered_pairs(fields: Iterable[Field]) -> list[tuple[str, str]]:
    pairs = []
    for field in fields:
        rendered = render_field(field)
        if rendered is not None:
            pairs.append((field.key, rendered))
    return pairs


def format_line(message: str, fields: Iterable[Field]) -> str:
    """Render a message and its fields as ``message | k1=v1 k2=v2``.

    Fields keep their original order. Namespace and skip fields contribute
    nothing; when no field renders the line is the bare message.

    Args:
        message: The log message.
        fields: Ordered structured fields.

    Returns:
        The flattened line shipped to the aggregation service.
    """
    pairs = _rendered_pairs(fields)
    if not pairs:
        return message
    return message + FIELD_SEPARATOR + " ".join(f"{k}={v}" for k, v in pairs)


def fields_to_map(fields: Iterable[Field]) -> dict[str, str]:
    """Render fields into a key -> value map. Later keys overwrite earlier ones."""
    return dict(_rendered_pairs(fields))
