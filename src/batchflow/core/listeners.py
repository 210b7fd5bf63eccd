# listeners.py
# SPDX-License-Identifier: MIT
"""Listener base classes and ordered fan-out composites.

Each composite keeps its listeners in registration order and forwards every
hook to all of them. Exceptions raised by a listener are not caught here:
they surface through the job's normal error path.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Iterator, Optional, TypeVar

from .records import Batch, Record

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .config import JobParameters
    from .report import JobReport

__all__ = [
    "JobListenerBase",
    "BatchListenerBase",
    "RecordReaderListenerBase",
    "RecordWriterListenerBase",
    "PipelineListenerBase",
    "CompositeJobListener",
    "CompositeBatchListener",
    "CompositeRecordReaderListener",
    "CompositeRecordWriterListener",
    "CompositePipelineListener",
]

L = TypeVar("L")


# -----------------------------------------------------------------------------
# No-op bases: subclass and override only the hooks you need
# -----------------------------------------------------------------------------


class JobListenerBase:
    def before_job_start(self, parameters: "JobParameters") -> None:
        return None

    def after_job_end(self, report: "JobReport") -> None:
        return None


class BatchListenerBase:
    def before_batch_reading(self) -> None:
        return None

    def after_batch_processing(self, batch: Batch) -> None:
        return None

    def after_batch_writing(self, batch: Batch) -> None:
        return None

    def on_batch_writing_exception(self, batch: Batch, error: BaseException) -> None:
        return None


class RecordReaderListenerBase:
    def before_record_reading(self) -> None:
        return None

    def after_record_reading(self, record: Optional[Record[Any]]) -> None:
        return None

    def on_record_reading_exception(self, error: BaseException) -> None:
        return None


class RecordWriterListenerBase:
    def before_record_writing(self, batch: Batch) -> None:
        return None

    def after_record_writing(self, batch: Batch) -> None:
        return None

    def on_record_writing_exception(self, batch: Batch, error: BaseException) -> None:
        return None


class PipelineListenerBase:
    def before_record_processing(self, record: Record[Any]) -> Optional[Record[Any]]:
        return record

    def after_record_processing(
        self,
        input_record: Record[Any],
        output_record: Optional[Record[Any]],
    ) -> None:
        return None

    def on_record_processing_exception(self, record: Record[Any], error: BaseException) -> None:
        return None


# -----------------------------------------------------------------------------
# Composites
# -----------------------------------------------------------------------------


class _Composite(Generic[L]):
    """Ordered, append-only collection of listeners."""

    def __init__(self, listeners: "list[L] | tuple[L, ...]" = ()) -> None:
        self._listeners: list[L] = list(listeners)

    def add(self, listener: L) -> None:
        self._listeners.append(listener)

    @property
    def listeners(self) -> tuple[L, ...]:
        return tuple(self._listeners)

    def __len__(self) -> int:
        return len(self._listeners)

    def __iter__(self) -> Iterator[L]:
        # Iterate a snapshot so a listener registering another one mid-dispatch
        # does not change the current fan-out.
        return iter(tuple(self._listeners))


class CompositeJobListener(_Composite[Any]):
    def before_job_start(self, parameters: "JobParameters") -> None:
        for listener in self:
            listener.before_job_start(parameters)

    def after_job_end(self, report: "JobReport") -> None:
        for listener in self:
            listener.after_job_end(report)


class CompositeBatchListener(_Composite[Any]):
    def before_batch_reading(self) -> None:
        for listener in self:
            listener.before_batch_reading()

    def after_batch_processing(self, batch: Batch) -> None:
        for listener in self:
            listener.after_batch_processing(batch)

    def after_batch_writing(self, batch: Batch) -> None:
        for listener in self:
            listener.after_batch_writing(batch)

    def on_batch_writing_exception(self, batch: Batch, error: BaseException) -> None:
        for listener in self:
            listener.on_batch_writing_exception(batch, error)


class CompositeRecordReaderListener(_Composite[Any]):
    def before_record_reading(self) -> None:
        for listener in self:
            listener.before_record_reading()

    def after_record_reading(self, record: Optional[Record[Any]]) -> None:
        for listener in self:
            listener.after_record_reading(record)

    def on_record_reading_exception(self, error: BaseException) -> None:
        for listener in self:
            listener.on_record_reading_exception(error)


class CompositeRecordWriterListener(_Composite[Any]):
    def before_record_writing(self, batch: Batch) -> None:
        for listener in self:
            listener.before_record_writing(batch)

    def after_record_writing(self, batch: Batch) -> None:
        for listener in self:
            listener.after_record_writing(batch)

    def on_record_writing_exception(self, batch: Batch, error: BaseException) -> None:
        for listener in self:
            listener.on_record_writing_exception(batch, error)


class CompositePipelineListener(_Composite[Any]):
    def before_record_processing(self, record: Record[Any]) -> Record[Any]:
        """Chain listeners; each may swap the record seen by the next one."""
        current = record
        for listener in self:
            replaced = listener.before_record_processing(current)
            if replaced is not None:
                current = replaced
        return current

    def after_record_processing(
        self,
        input_record: Record[Any],
        output_record: Optional[Record[Any]],
    ) -> None:
        for listener in self:
            listener.after_record_processing(input_record, output_record)

    def on_record_processing_exception(self, record: Record[Any], error: BaseException) -> None:
        for listener in self:
            listener.on_record_processing_exception(record, error)
