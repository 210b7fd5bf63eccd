# processing.py
# SPDX-License-Identifier: MIT
"""Record processor chaining and callable adapters."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Optional

from .interfaces import ProcessorLike, RecordProcessor
from .log import get_logger
from .records import Record

log = get_logger(__name__)

__all__ = ["CompositeRecordProcessor", "coerce_processor", "processor_name"]


class _FuncRecordProcessor:
    """Internal adapter to treat bare functions as RecordProcessor."""

    def __init__(self, fn: Callable[[Record[Any]], Optional[Record[Any]]]) -> None:
        self._fn = fn
        self.__name__ = getattr(fn, "__name__", fn.__class__.__name__)

    def process_record(self, record: Record[Any]) -> Optional[Record[Any]]:
        return self._fn(record)

    def __call__(self, record: Record[Any]) -> Optional[Record[Any]]:
        return self.process_record(record)

    def __repr__(self) -> str:
        return f"<processor {self.__name__}>"


def coerce_processor(processor: ProcessorLike) -> RecordProcessor:
    """Wrap a bare callable as RecordProcessor when needed."""
    if hasattr(processor, "process_record"):
        return processor  # type: ignore[return-value]
    if not callable(processor):
        raise TypeError(f"Processor {processor!r} is neither a RecordProcessor nor callable")
    return _FuncRecordProcessor(processor)


def processor_name(processor: Any) -> str:
    return getattr(processor, "__name__", None) or processor.__class__.__name__


class CompositeRecordProcessor:
    """Run a record through processors in registration order.

    A processor returning ``None`` filters the record: later processors are
    skipped and the composite returns ``None``. Exceptions propagate to the
    caller, which applies the error-threshold policy.
    """

    def __init__(self, processors: Iterable[ProcessorLike] = ()) -> None:
        self._processors: list[RecordProcessor] = [coerce_processor(p) for p in processors]

    def add(self, processor: ProcessorLike) -> None:
        self._processors.append(coerce_processor(processor))

    @property
    def processors(self) -> tuple[RecordProcessor, ...]:
        return tuple(self._processors)

    def __len__(self) -> int:
        return len(self._processors)

    def process_record(self, record: Record[Any]) -> Optional[Record[Any]]:
        current: Optional[Record[Any]] = record
        for processor in self._processors:
            current = processor.process_record(current)  # type: ignore[arg-type]
            if current is None:
                log.debug(
                    "Processor %s filtered record #%d",
                    processor_name(processor),
                    record.header.number,
                )
                return None
        return current
