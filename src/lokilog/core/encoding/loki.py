"""Loki push API envelope builder and JSON codec."""

import json
from typing import Any

from lokilog.core.errors import SerializationError
from lokilog.core.models import ShippingEnvelope, Stream

SOURCE_LABEL = "source"


def build_envelope(timestamp_ns: int, service: str, line: str) -> ShippingEnvelope:
    """Wrap one flattened line in a single-stream, single-sample envelope.

    Args:
        timestamp_ns: Unix timestamp in nanoseconds.
        service: Service name, used as the ``source`` stream label.
        line: Flattened log line.

    Returns:
        ShippingEnvelope with exactly one stream and one sample.
    """
    stream = Stream(
        labels={SOURCE_LABEL: service},
        values=((str(timestamp_ns), line),),
    )
    return ShippingEnvelope(streams=(stream,))


def envelope_to_dict(envelope: ShippingEnvelope) -> dict[str, Any]:
    """Convert an envelope to the push API's JSON object layout."""
    return {
        "streams": [
            {
                "stream": dict(stream.labels),
                "values": [list(sample) for sample in stream.values],
            }
            for stream in envelope.streams
        ]
    }


def encode_envelope(envelope: ShippingEnvelope) -> bytes:
    """Encode an envelope to a UTF-8 JSON push body.

    Raises:
        SerializationError: The envelope holds values JSON cannot encode.
    """
    try:
        return json.dumps(envelope_to_dict(envelope), ensure_ascii=False).encode()
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"failed to marshal payload: {exc}") from exc


def decode_envelope(body: bytes | str) -> ShippingEnvelope:
    """Parse a push body back into an envelope.

    Raises:
        SerializationError: The body is not a well-formed push request.
    """
    try:
        data = json.loads(body)
        streams = tuple(
            Stream(
                labels={str(k): str(v) for k, v in item["stream"].items()},
                values=tuple((str(ts), str(line)) for ts, line in item["values"]),
            )
            for item in data["streams"]
        )
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        raise SerializationError(f"malformed push body: {exc}") from exc
    return ShippingEnvelope(streams=streams)
