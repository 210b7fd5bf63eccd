# __init__.py
# SPDX-License-Identifier: MIT
"""
Top-level package exports for :mod:`batchflow`.

Batchflow runs batch jobs: records are read one at a time from a
:class:`~batchflow.core.interfaces.RecordReader`, passed through a chain of
processors, grouped into batches, and handed to a
:class:`~batchflow.core.interfaces.RecordWriter`. Every run yields a
:class:`JobReport` carrying the final status and counters.

Public surface and stability
----------------------------
The symbols listed in :data:`PRIMARY_API` are the recommended public surface
and are exported via :data:`__all__`. Most callers either:

- assemble a job in code with :class:`JobBuilder` (or :class:`BatchJob`
  directly), or
- describe it in TOML/JSON, load it with :func:`load_config_from_path`, and
  build it with :func:`build_job_from_config`.

Examples:
    Fluent construction::

        >>> from batchflow import JobBuilder, IterableRecordReader, CollectingRecordWriter
        >>> writer = CollectingRecordWriter()
        >>> report = (
        ...     JobBuilder()
        ...     .named("evens")
        ...     .reader(IterableRecordReader(range(10)))
        ...     .filter(lambda n: n % 2 == 0)
        ...     .writer(writer)
        ...     .batch_size(3)
        ...     .build()
        ...     .run()
        ... )
        >>> report.status.value, writer.payloads
        ('completed', [0, 2, 4, 6, 8])

    Config-driven run::

        >>> from batchflow import load_config_from_path, build_job_from_config
        >>> job = build_job_from_config(load_config_from_path("job.toml"))
        >>> report = job.run()
"""


from __future__ import annotations

# ---------------------------------------------------------------------------
# Package version
# ---------------------------------------------------------------------------
try:
    from importlib.metadata import version as _pkg_version

    __version__ = _pkg_version("batchflow")
except Exception:  # PackageNotFoundError or runtime env oddities
    __version__ = "0.0.0+unknown"


# ---------------------------------------------------------------------------
# Primary public API (stable; exported via __all__)
# ---------------------------------------------------------------------------
from .core.builder import JobBuilder, build_job_from_config
from .core.config import JobConfig, JobParameters, load_config_from_path
from .core.errors import (
    BatchFlowError,
    BatchWritingError,
    ErrorThresholdExceeded,
    JobConfigurationError,
    JobExecutionError,
    ReaderOpeningError,
    RecordReadingError,
    RecordValidationError,
    WriterOpeningError,
)
from .core.executor import JobExecutor
from .core.job import BatchJob
from .core.policy import UNBOUNDED
from .core.records import Batch, Header, Record
from .core.report import JobMetrics, JobReport, JobStatus, merge_reports
from .sinks.sinks import (
    CollectingRecordWriter,
    GzipJsonlRecordWriter,
    JsonlRecordWriter,
    StandardOutputRecordWriter,
)
from .sources.csv_source import CsvRecordReader
from .sources.iterable import IterableRecordReader
from .sources.jsonl_source import JsonlRecordReader

# ---------------------------------------------------------------------------
# Advanced / expert API (imported for convenience; not exported via __all__)
# ---------------------------------------------------------------------------
from .core.config import LoggingConfig, ProcessorSpec, ReaderSpec, WriterSpec
from .core.lifecycle import JobLifecycle
from .core.listeners import (
    BatchListenerBase,
    JobListenerBase,
    PipelineListenerBase,
    RecordReaderListenerBase,
    RecordWriterListenerBase,
)
from .core.log import configure_logging, get_logger, temp_level
from .core.monitor import JobMonitor, LoggingManagementSink, RecordingManagementSink
from .core.processing import CompositeRecordProcessor
from .core.registries import processor_registry, reader_registry, writer_registry
from .processors.filters import FilteringProcessor, MappingProcessor, ValidatingProcessor
from .processors.marshallers import CsvRecordMarshaller, JsonRecordMapper, JsonRecordMarshaller

# Parquet support needs the optional pyarrow extra.
try:  # pragma: no cover - optional dependency
    from .sinks.parquet import ParquetRecordWriter
    from .sources.parquet_source import ParquetRecordReader
except ImportError:  # pragma: no cover
    pass

# ---------------------------------------------------------------------------
# Stable export list
# ---------------------------------------------------------------------------
PRIMARY_API = [
    "__version__",
    "BatchJob",
    "JobBuilder",
    "JobExecutor",
    "JobParameters",
    "JobConfig",
    "load_config_from_path",
    "build_job_from_config",
    "JobReport",
    "JobMetrics",
    "JobStatus",
    "merge_reports",
    "UNBOUNDED",
    "Header",
    "Record",
    "Batch",
    "IterableRecordReader",
    "JsonlRecordReader",
    "CsvRecordReader",
    "CollectingRecordWriter",
    "JsonlRecordWriter",
    "GzipJsonlRecordWriter",
    "StandardOutputRecordWriter",
    "BatchFlowError",
    "JobConfigurationError",
    "JobExecutionError",
    "ReaderOpeningError",
    "WriterOpeningError",
    "RecordReadingError",
    "ErrorThresholdExceeded",
    "BatchWritingError",
    "RecordValidationError",
]

__all__ = list(PRIMARY_API)
