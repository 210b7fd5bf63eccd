# iterable.py
# SPDX-License-Identifier: MIT
"""In-memory record readers."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any, Optional

from ..core.records import Header, Record

__all__ = ["NoOpRecordReader", "IterableRecordReader"]


class NoOpRecordReader:
    """Reader that is exhausted from the start; the default for new jobs."""

    def open(self) -> None:
        return None

    def read_record(self) -> Optional[Record[Any]]:
        return None

    def close(self) -> None:
        return None


class IterableRecordReader:
    """Read payloads from any iterable, numbering records from 1.

    The iterable is consumed lazily, one item per :meth:`read_record` call,
    so generators backed by I/O are read no further than the job asks for.
    An exception raised by the iterable propagates as a read failure.
    """

    def __init__(self, iterable: Iterable[Any], *, source_name: str = "iterable") -> None:
        self._iterable = iterable
        self.source_name = source_name
        self._iterator: Iterator[Any] | None = None
        self._number = 0

    def open(self) -> None:
        self._iterator = iter(self._iterable)
        self._number = 0

    def read_record(self) -> Optional[Record[Any]]:
        if self._iterator is None:
            raise RuntimeError("IterableRecordReader.read_record called before open()")
        try:
            payload = next(self._iterator)
        except StopIteration:
            return None
        self._number += 1
        return Record(header=Header(number=self._number, source=self.source_name), payload=payload)

    def close(self) -> None:
        self._iterator = None
