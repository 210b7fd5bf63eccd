# interfaces.py
# SPDX-License-Identifier: MIT
"""Protocols for the collaborators a job consumes.

Readers, writers, and processors are the extension points of the
read-process-write loop. Listener protocols describe the five notification
categories fanned out by :mod:`batchflow.core.listeners`.
"""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Optional,
    Protocol,
    Union,
    runtime_checkable,
)

from .records import Batch, Record

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .config import JobParameters
    from .report import JobReport


# -----------------------------------------------------------------------------
# Extension-point protocols
# -----------------------------------------------------------------------------


@runtime_checkable
class RecordReader(Protocol):
    """
    Produces records one at a time.

    ``read_record`` returns ``None`` once the source is exhausted; raising
    instead signals a read failure, which aborts the job.
    """

    def open(self) -> None:
        """Acquire the underlying resource (file handle, cursor, ...)."""

    def read_record(self) -> Optional[Record[Any]]:
        """
        Return the next record, or ``None`` when there are no more records.

        Raises:
            Exception: Any failure to read; the job treats it as fatal.
        """

    def close(self) -> None:
        """Release resources. Failures are logged by the job, not fatal."""


@runtime_checkable
class RecordWriter(Protocol):
    """
    Consumes batches of records.

    Writers are opened once, receive every non-empty batch in order, then
    closed. A failure in ``write_records`` aborts the job.
    """

    def open(self) -> None:
        """Prepare resources prior to writes."""

    def write_records(self, batch: Batch) -> None:
        """
        Persist a batch.

        Args:
            batch (Batch): Non-empty batch of processed records.
        """

    def close(self) -> None:
        """Flush and free resources."""


@runtime_checkable
class RecordProcessor(Protocol):
    """Transforms a record; returning ``None`` filters it out (not an error)."""

    def process_record(self, record: Record[Any]) -> Optional[Record[Any]]:
        ...


ProcessorLike = Union[RecordProcessor, Callable[[Record[Any]], Optional[Record[Any]]]]


# -----------------------------------------------------------------------------
# Listener protocols
# -----------------------------------------------------------------------------


class JobListener(Protocol):
    """Notified once before a run starts and once after it ends."""

    def before_job_start(self, parameters: "JobParameters") -> None:  # pragma: no cover - interface
        ...

    def after_job_end(self, report: "JobReport") -> None:  # pragma: no cover - interface
        ...


class BatchListener(Protocol):
    """Notified around each read-process-write cycle."""

    def before_batch_reading(self) -> None:  # pragma: no cover - interface
        ...

    def after_batch_processing(self, batch: Batch) -> None:  # pragma: no cover - interface
        ...

    def after_batch_writing(self, batch: Batch) -> None:  # pragma: no cover - interface
        ...

    def on_batch_writing_exception(self, batch: Batch, error: BaseException) -> None:  # pragma: no cover - interface
        ...


class RecordReaderListener(Protocol):
    """Notified around every call to the reader."""

    def before_record_reading(self) -> None:  # pragma: no cover - interface
        ...

    def after_record_reading(self, record: Optional[Record[Any]]) -> None:  # pragma: no cover - interface
        """Called with the record read, or ``None`` on exhaustion."""

    def on_record_reading_exception(self, error: BaseException) -> None:  # pragma: no cover - interface
        ...


class RecordWriterListener(Protocol):
    """Notified around every batch write."""

    def before_record_writing(self, batch: Batch) -> None:  # pragma: no cover - interface
        ...

    def after_record_writing(self, batch: Batch) -> None:  # pragma: no cover - interface
        ...

    def on_record_writing_exception(self, batch: Batch, error: BaseException) -> None:  # pragma: no cover - interface
        ...


class PipelineListener(Protocol):
    """Notified around the processing of each record."""

    def before_record_processing(self, record: Record[Any]) -> Optional[Record[Any]]:  # pragma: no cover - interface
        """May return a replacement record; ``None`` keeps the input."""

    def after_record_processing(
        self,
        input_record: Record[Any],
        output_record: Optional[Record[Any]],
    ) -> None:  # pragma: no cover - interface
        ...

    def on_record_processing_exception(self, record: Record[Any], error: BaseException) -> None:  # pragma: no cover - interface
        ...


# -----------------------------------------------------------------------------
# Management side channel
# -----------------------------------------------------------------------------


@runtime_checkable
class ManagementSink(Protocol):
    """External introspection endpoint fed by :class:`JobMonitor`."""

    def register(self, job: Any) -> None:
        """Called once per run when monitoring is enabled."""

    def notify_update(self, report: "JobReport") -> None:
        """Called with the live report before each record and at teardown."""


__all__ = [
    "RecordReader",
    "RecordWriter",
    "RecordProcessor",
    "ProcessorLike",
    "JobListener",
    "BatchListener",
    "RecordReaderListener",
    "RecordWriterListener",
    "PipelineListener",
    "ManagementSink",
]
