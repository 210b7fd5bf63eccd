# builder.py
# SPDX-License-Identifier: MIT
"""Fluent and config-driven construction of :class:`BatchJob` instances.

:class:`JobBuilder` accumulates collaborators and settings, then validates
them all at once in :meth:`JobBuilder.build`. :func:`build_job_from_config`
turns a declarative :class:`~batchflow.core.config.JobConfig` into a ready
job using the kind registries.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any, Self

from .config import DEFAULT_BATCH_SIZE, DEFAULT_JOB_NAME, JobConfig, JobParameters, parse_error_threshold
from .errors import JobConfigurationError
from .interfaces import ManagementSink, ProcessorLike, RecordReader, RecordWriter
from .job import BatchJob
from .log import get_logger
from .monitor import LoggingManagementSink
from .policy import UNBOUNDED
from .registries import (
    ProcessorRegistry,
    ReaderRegistry,
    WriterRegistry,
    processor_registry,
    reader_registry,
    writer_registry,
)

log = get_logger(__name__)

__all__ = ["JobBuilder", "build_job_from_config"]


class JobBuilder:
    """Fluent builder for :class:`BatchJob`.

    Example::

        job = (
            JobBuilder()
            .named("import-users")
            .reader(JsonlRecordReader("users.jsonl"))
            .filter(lambda user: user["active"])
            .writer(JsonlRecordWriter("active.jsonl"))
            .batch_size(500)
            .error_threshold(10)
            .build()
        )
    """

    def __init__(self) -> None:
        self._name: str = DEFAULT_JOB_NAME
        self._batch_size: Any = DEFAULT_BATCH_SIZE
        self._error_threshold: Any = UNBOUNDED
        self._monitoring = False
        self._reader: RecordReader | None = None
        self._writer: RecordWriter | None = None
        self._processors: list[ProcessorLike] = []
        self._sink: ManagementSink | None = None
        self._logger: logging.Logger | None = None
        self._listeners: dict[str, list[Any]] = {
            "job": [],
            "batch": [],
            "reader": [],
            "writer": [],
            "pipeline": [],
        }

    def named(self, name: str) -> Self:
        self._name = name
        return self

    def reader(self, reader: RecordReader) -> Self:
        self._reader = reader
        return self

    def writer(self, writer: RecordWriter) -> Self:
        self._writer = writer
        return self

    def processor(self, processor: ProcessorLike) -> Self:
        """Append a processor; processors run in the order they were added."""
        self._processors.append(processor)
        return self

    def filter(self, predicate: Callable[[Any], bool]) -> Self:
        """Keep only records whose payload satisfies ``predicate``."""
        from ..processors.filters import FilteringProcessor

        return self.processor(FilteringProcessor(predicate))

    def mapper(self, fn: Callable[[Any], Any]) -> Self:
        from ..processors.filters import MappingProcessor

        return self.processor(MappingProcessor(fn))

    def validator(self, fn: Callable[[Any], Iterable[str] | None]) -> Self:
        from ..processors.filters import ValidatingProcessor

        return self.processor(ValidatingProcessor(fn))

    def batch_size(self, size: int) -> Self:
        self._batch_size = size
        return self

    def error_threshold(self, threshold: int | str | None) -> Self:
        self._error_threshold = threshold
        return self

    def enable_monitoring(self, enabled: bool = True) -> Self:
        self._monitoring = enabled
        return self

    def management_sink(self, sink: ManagementSink) -> Self:
        self._sink = sink
        return self

    def job_listener(self, listener: Any) -> Self:
        self._listeners["job"].append(listener)
        return self

    def batch_listener(self, listener: Any) -> Self:
        self._listeners["batch"].append(listener)
        return self

    def reader_listener(self, listener: Any) -> Self:
        self._listeners["reader"].append(listener)
        return self

    def writer_listener(self, listener: Any) -> Self:
        self._listeners["writer"].append(listener)
        return self

    def pipeline_listener(self, listener: Any) -> Self:
        self._listeners["pipeline"].append(listener)
        return self

    def logger(self, logger: logging.Logger) -> Self:
        self._logger = logger
        return self

    def build(self) -> BatchJob:
        """Validate the accumulated settings and return a new job.

        When monitoring is enabled without an explicit sink, report updates
        go to a :class:`LoggingManagementSink`.

        Raises:
            JobConfigurationError: If any parameter is invalid.
        """
        parameters = JobParameters(
            name=self._name,
            batch_size=self._batch_size,
            error_threshold=parse_error_threshold(self._error_threshold),
            monitoring=self._monitoring,
        )
        sink = self._sink
        if parameters.monitoring and sink is None:
            sink = LoggingManagementSink()
        job = BatchJob(
            parameters,
            reader=self._reader,
            writer=self._writer,
            processors=self._processors,
            management_sink=sink,
            logger=self._logger,
        )
        _attach_listeners(job, self._listeners)
        return job


def _attach_listeners(job: BatchJob, listeners: dict[str, list[Any]]) -> None:
    adders = {
        "job": job.add_job_listener,
        "batch": job.add_batch_listener,
        "reader": job.add_reader_listener,
        "writer": job.add_writer_listener,
        "pipeline": job.add_pipeline_listener,
    }
    for category, items in listeners.items():
        for listener in items:
            adders[category](listener)


def build_job_from_config(
    config: JobConfig,
    *,
    management_sink: ManagementSink | None = None,
    logger: logging.Logger | None = None,
    readers: ReaderRegistry = reader_registry,
    writers: WriterRegistry = writer_registry,
    processors: ProcessorRegistry = processor_registry,
) -> BatchJob:
    """Instantiate the reader, processors, and writer named by ``config``.

    Raises:
        JobConfigurationError: On a missing spec, unknown kind, or bad options.
    """
    if config.reader is None or config.writer is None:
        raise JobConfigurationError("Job config needs both a reader and a writer spec.")
    readers.require(config.reader.kind)
    writers.require(config.writer.kind)
    for spec in config.processors:
        processors.require(spec.kind)
    reader = readers.build(config.reader)
    writer = writers.build(config.writer)
    chain = [processors.build(spec) for spec in config.processors]
    sink = management_sink
    if config.parameters.monitoring and sink is None:
        sink = LoggingManagementSink()
    log.debug(
        "Built job %r: reader=%s writer=%s processors=%s",
        config.parameters.name,
        config.reader.kind,
        config.writer.kind,
        [spec.kind for spec in config.processors],
    )
    return BatchJob(
        config.parameters,
        reader=reader,
        writer=writer,
        processors=chain,
        management_sink=sink,
        logger=logger,
    )
