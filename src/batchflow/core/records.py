# records.py
# SPDX-License-Identifier: MIT
"""Record and batch value types flowing through a job."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar

__all__ = ["Header", "Record", "Batch", "make_record"]

P = TypeVar("P")
Q = TypeVar("Q")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Header:
    """Sequence and provenance metadata attached to every record.

    Attributes:
        number (int): 1-based position of the record in its source, assigned
            by the reader and strictly increasing within one run.
        source (str): Identifier of the raw source (file name, table, ...),
            often suffixed with a line or row hint.
        creation_date (datetime): When the reader produced the record.
    """

    number: int
    source: str
    creation_date: datetime = field(default_factory=_utcnow)

    def as_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "source": self.source,
            "creation_date": self.creation_date.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class Record(Generic[P]):
    """One unit of data: a header plus an opaque payload.

    Records are immutable; processors that transform a payload return a new
    record via :meth:`with_payload`, which keeps the original header.
    """

    header: Header
    payload: P

    def with_payload(self, payload: Q) -> "Record[Q]":
        """Return a record with the same header and a new payload."""
        return replace(self, payload=payload)  # type: ignore[return-value]

    def __str__(self) -> str:
        return f"Record{{header=[number={self.header.number}, source={self.header.source!r}], payload={self.payload!r}}}"


def make_record(number: int, payload: P, source: str = "unknown") -> Record[P]:
    """Build a record with a fresh header."""
    return Record(header=Header(number=number, source=source), payload=payload)


class Batch:
    """Ordered, append-only group of records written together.

    A batch is created fresh for every read cycle and discarded once written.
    The orchestrator bounds its size by the configured batch size; the batch
    itself does not enforce a limit.
    """

    __slots__ = ("_records",)

    def __init__(self, records: Iterable[Record[Any]] = ()) -> None:
        self._records: list[Record[Any]] = list(records)

    def add(self, record: Record[Any]) -> None:
        self._records.append(record)

    @property
    def records(self) -> tuple[Record[Any], ...]:
        """Snapshot of the records added so far."""
        return tuple(self._records)

    @property
    def size(self) -> int:
        return len(self._records)

    def is_empty(self) -> bool:
        return not self._records

    def payloads(self) -> list[Any]:
        return [rec.payload for rec in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)

    def __iter__(self) -> Iterator[Record[Any]]:
        return iter(self._records)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Batch):
            return NotImplemented
        return self._records == other._records

    def __repr__(self) -> str:
        if not self._records:
            return "Batch(size=0)"
        first = self._records[0].header.number
        last = self._records[-1].header.number
        return f"Batch(size={len(self._records)}, records=#{first}..#{last})"
