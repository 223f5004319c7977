"""In-memory local sink."""

from collections.abc import Sequence
from dataclasses import dataclass

from lokilog.core.models import Field


@dataclass(frozen=True)
class SinkRecord:
    """One entry received by a sink."""

    level: str
    message: str
    fields: tuple[Field, ...] = ()


class InMemorySink:
    """In-memory implementation of LocalSinkPort.

    Keeps received entries in a list. Suitable for testing and for
    embedding applications that inspect recent log output.
    """

    def __init__(self) -> None:
        self._records: list[SinkRecord] = []

    def write(self, level: str, message: str, fields: Sequence[Field]) -> None:
        """Record an entry."""
        self._records.append(SinkRecord(level, message, tuple(fields)))

    @property
    def records(self) -> list[SinkRecord]:
        """Entries received so far, oldest first."""
        return list(self._records)

    def clear(self) -> None:
        self._records.clear()
