"""Wire encoders for shipped log data."""

from lokilog.core.encoding.loki import (
    build_envelope,
    decode_envelope,
    encode_envelope,
    envelope_to_dict,
)

__all__ = [
    "build_envelope",
    "decode_envelope",
    "encode_envelope",
    "envelope_to_dict",
]
