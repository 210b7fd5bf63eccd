# job.py
# SPDX-License-Identifier: MIT
"""Batch job orchestrator implementing the read-process-write loop."""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from .config import JobParameters
from .errors import (
    BatchWritingError,
    ErrorThresholdExceeded,
    JobExecutionError,
    ReaderOpeningError,
    RecordReadingError,
    WriterOpeningError,
)
from .interfaces import ManagementSink, ProcessorLike, RecordReader, RecordWriter
from .lifecycle import JobLifecycle
from .listeners import (
    CompositeBatchListener,
    CompositeJobListener,
    CompositePipelineListener,
    CompositeRecordReaderListener,
    CompositeRecordWriterListener,
)
from .log import get_logger
from .monitor import JobMonitor, NullJobMonitor, make_monitor
from .policy import ErrorThresholdPolicy, format_error_threshold
from .processing import CompositeRecordProcessor
from .records import Batch, Record
from .report import JobMetrics, JobReport, JobStatus

__all__ = ["BatchJob"]


class BatchJob:
    """Read records, process them one by one, and write them in batches.

    A run moves through STARTING, STARTED, and STOPPING to COMPLETED, or to
    FAILED on the first fatal error (open, read, or write failure, or a
    processing failure beyond the error threshold). :meth:`run` always
    returns the report and never raises; the reader and writer are closed
    exactly once per run whatever the outcome.

    Listeners and processors may be added until the job runs. Each call to
    :meth:`run` starts from fresh metrics and a fresh report.
    """

    def __init__(
        self,
        parameters: JobParameters | None = None,
        *,
        reader: RecordReader | None = None,
        writer: RecordWriter | None = None,
        processors: tuple[ProcessorLike, ...] | list[ProcessorLike] = (),
        management_sink: ManagementSink | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        from ..sinks.sinks import NoOpRecordWriter  # local import to avoid cycles
        from ..sources.iterable import NoOpRecordReader

        self.parameters = parameters or JobParameters()
        self.reader: RecordReader = reader if reader is not None else NoOpRecordReader()
        self.writer: RecordWriter = writer if writer is not None else NoOpRecordWriter()
        self.processor = CompositeRecordProcessor(processors)
        self.management_sink = management_sink
        self.log = logger or get_logger(__name__)
        self.policy = ErrorThresholdPolicy(self.parameters.error_threshold)

        self.job_listener = CompositeJobListener()
        self.batch_listener = CompositeBatchListener()
        self.reader_listener = CompositeRecordReaderListener()
        self.writer_listener = CompositeRecordWriterListener()
        self.pipeline_listener = CompositePipelineListener()

        self._run_lock = threading.Lock()
        self._running = False
        self._reset()

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self.parameters.name

    def add_processor(self, processor: ProcessorLike) -> None:
        self._ensure_idle()
        self.processor.add(processor)

    def add_job_listener(self, listener: Any) -> None:
        self._ensure_idle()
        self.job_listener.add(listener)

    def add_batch_listener(self, listener: Any) -> None:
        self._ensure_idle()
        self.batch_listener.add(listener)

    def add_reader_listener(self, listener: Any) -> None:
        self._ensure_idle()
        self.reader_listener.add(listener)

    def add_writer_listener(self, listener: Any) -> None:
        self._ensure_idle()
        self.writer_listener.add(listener)

    def add_pipeline_listener(self, listener: Any) -> None:
        self._ensure_idle()
        self.pipeline_listener.add(listener)

    def _ensure_idle(self) -> None:
        if self._running:
            raise RuntimeError(f"Job {self.name!r} is running; listeners and processors are frozen")

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def __call__(self) -> JobReport:
        return self.run()

    def run(self) -> JobReport:
        """Execute the job and return its report.

        Raises:
            RuntimeError: If this instance is already running on another
                thread, or the call is re-entrant from one of its listeners.
        """
        if not self._run_lock.acquire(blocking=False):
            raise RuntimeError(f"Job {self.name!r} is already running")
        self._running = True
        try:
            self._reset()
            return self._execute()
        finally:
            self._running = False
            self._run_lock.release()

    def _reset(self) -> None:
        self.metrics = JobMetrics()
        self.report = JobReport(job_name=self.name, parameters=self.parameters, metrics=self.metrics)
        self.lifecycle = JobLifecycle(self.report, logger=self.log)
        self.monitor: JobMonitor | NullJobMonitor = make_monitor(
            self.report,
            self.management_sink,
            enabled=self.parameters.monitoring,
        )
        self._more_records = True

    def _execute(self) -> JobReport:
        outcome = JobStatus.FAILED
        try:
            self._start()
            self._open_reader()
            self._open_writer()
            self.lifecycle.transition(JobStatus.STARTED)
            while self._more_records:
                batch = Batch()
                try:
                    self._read_and_process_batch(batch)
                except ErrorThresholdExceeded:
                    # Records accepted before the abort still reach the writer.
                    self.batch_listener.after_batch_processing(batch)
                    self._write_batch(batch)
                    raise
                self._write_batch(batch)
            self.lifecycle.transition(JobStatus.STOPPING)
            outcome = JobStatus.COMPLETED
        except Exception as exc:  # noqa: BLE001
            self._record_failure(exc)
        finally:
            self._close_reader()
            self._close_writer()
        self._teardown(outcome)
        return self.report

    def _start(self) -> None:
        self.lifecycle.begin()
        self.metrics.mark_start()
        self.job_listener.before_job_start(self.parameters)
        self.log.info("Batch size: %d", self.parameters.batch_size)
        self.log.info("Error threshold: %s", format_error_threshold(self.parameters.error_threshold))
        self.log.info("Monitoring: %s", self.parameters.monitoring)
        self.monitor.register(self)

    def _open_reader(self) -> None:
        try:
            self.log.debug("Opening record reader")
            self.reader.open()
        except Exception as exc:
            raise ReaderOpeningError("Unable to open record reader", exc) from exc

    def _open_writer(self) -> None:
        try:
            self.log.debug("Opening record writer")
            self.writer.open()
        except Exception as exc:
            raise WriterOpeningError("Unable to open record writer", exc) from exc

    def _read_and_process_batch(self, batch: Batch) -> None:
        self.batch_listener.before_batch_reading()
        for _ in range(self.parameters.batch_size):
            record = self._read_record()
            if record is None:
                self._more_records = False
                break
            self.metrics.increment_read_count()
            self._process_record(record, batch)
        self.batch_listener.after_batch_processing(batch)

    def _read_record(self) -> Optional[Record[Any]]:
        try:
            self.log.debug("Reading next record")
            self.reader_listener.before_record_reading()
            record = self.reader.read_record()
            self.reader_listener.after_record_reading(record)
            return record
        except Exception as exc:
            self.reader_listener.on_record_reading_exception(exc)
            raise RecordReadingError("Unable to read next record", exc) from exc

    def _process_record(self, record: Record[Any], batch: Batch) -> None:
        try:
            self.log.debug("Processing %s", record)
            self.monitor.notify_job_report_update()
            current = self.pipeline_listener.before_record_processing(record)
            processed = self.processor.process_record(current)
            self.pipeline_listener.after_record_processing(current, processed)
        except Exception as exc:  # noqa: BLE001
            self.log.error("Unable to process %s", record, exc_info=True)
            self.metrics.increment_error_count()
            self.report.last_error = exc
            self.pipeline_listener.on_record_processing_exception(record, exc)
            if self.policy.exceeded(self.metrics.error_count):
                raise ErrorThresholdExceeded("Error threshold exceeded. Aborting execution", exc) from exc
            return
        if processed is None:
            self.log.debug("%s has been filtered", record)
            self.metrics.increment_filtered_count()
        else:
            batch.add(processed)

    def _write_batch(self, batch: Batch) -> None:
        if batch.is_empty():
            self.log.debug("Skipping write of empty batch")
            return
        self.log.debug("Writing %r", batch)
        try:
            self.writer_listener.before_record_writing(batch)
            self.writer.write_records(batch)
            self.writer_listener.after_record_writing(batch)
            self.batch_listener.after_batch_writing(batch)
            self.metrics.increment_write_count(len(batch))
        except Exception as exc:
            self.writer_listener.on_record_writing_exception(batch, exc)
            self.batch_listener.on_batch_writing_exception(batch, exc)
            raise BatchWritingError("Unable to write records", exc) from exc

    # ------------------------------------------------------------------
    # Failure and teardown
    # ------------------------------------------------------------------

    def _record_failure(self, exc: BaseException) -> None:
        if isinstance(exc, JobExecutionError):
            cause = exc.cause if exc.cause is not None else exc
            self.log.error("%s", exc, exc_info=cause)
        else:
            # Listener or other unexpected failure outside a wrapped stage.
            cause = exc
            self.log.error("Job '%s' aborted: %s", self.name, exc, exc_info=exc)
        self.report.last_error = cause

    def _close_reader(self) -> None:
        try:
            self.log.debug("Closing record reader")
            self.reader.close()
        except Exception as exc:  # noqa: BLE001
            self.log.warning("Unable to close record reader", exc_info=True)
            self.report.last_error = exc

    def _close_writer(self) -> None:
        try:
            self.log.debug("Closing record writer")
            self.writer.close()
        except Exception as exc:  # noqa: BLE001
            self.log.warning("Unable to close record writer", exc_info=True)
            self.report.last_error = exc

    def _teardown(self, status: JobStatus) -> None:
        self.lifecycle.teardown(
            status,
            finalizers=(
                self.metrics.mark_end,
                self._log_summary,
                self.monitor.notify_job_report_update,
                self._notify_job_end,
            ),
        )

    def _log_summary(self) -> None:
        m = self.metrics
        level = self.log.info if self.report.status is JobStatus.COMPLETED else self.log.warning
        level(
            "Job '%s' finished with status: %s (read=%d written=%d filtered=%d errors=%d)",
            self.name,
            self.report.status.name,
            m.read_count,
            m.write_count,
            m.filtered_count,
            m.error_count,
        )

    def _notify_job_end(self) -> None:
        try:
            self.job_listener.after_job_end(self.report)
        except Exception:  # noqa: BLE001
            self.log.exception("Job listener failed after job '%s' ended", self.name)

    def __repr__(self) -> str:
        return f"BatchJob(name={self.name!r}, status={self.report.status.name})"
