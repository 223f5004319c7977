"""Port interfaces for lokilog.

These protocols define the contracts that adapters and field payloads must
implement. The core depends only on these interfaces, not on concrete
implementations.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from lokilog.core.models import Field


@runtime_checkable
class LocalSinkPort(Protocol):
    """Port for the local structured-log backend.

    Adapters implementing this protocol receive the raw message and field
    sequence and do their own structured encoding.
    Examples: StructlogSink, InMemorySink.
    """

    def write(self, level: str, message: str, fields: Sequence[Field]) -> None:
        """Write one entry at the given level."""
        ...


@runtime_checkable
class HTTPTransportPort(Protocol):
    """Port for the synchronous HTTP transport used to ship log lines.

    Examples: HttpxTransport.
    """

    def post(self, url: str, body: bytes, headers: Mapping[str, str]) -> int:
        """POST body to url and return the response status code.

        Raises:
            RequestBuildError: The request could not be constructed.
            TransportError: The request failed or timed out.
        """
        ...


@runtime_checkable
class ObjectMarshaler(Protocol):
    """A payload that describes itself as a mapping of named values."""

    def marshal_log_object(self) -> Mapping[str, Any]: ...


@runtime_checkable
class ArrayMarshaler(Protocol):
    """A payload that describes itself as a sequence of values."""

    def marshal_log_array(self) -> Iterable[Any]: ...
