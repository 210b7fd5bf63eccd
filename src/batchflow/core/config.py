# config.py
# SPDX-License-Identifier: MIT
"""Configuration models and helpers for batchflow jobs.

:class:`JobParameters` is the immutable, validated configuration a
:class:`~batchflow.core.job.BatchJob` is constructed with. :class:`JobConfig`
is the declarative, file-friendly description of a whole job (reader,
processors, writer, parameters, logging) used by the CLI and
:func:`~batchflow.core.builder.build_job_from_config`.
"""
from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from .errors import JobConfigurationError
from .log import DEFAULT_FORMAT, PACKAGE_LOGGER_NAME, configure_logging
from .policy import UNBOUNDED, format_error_threshold, is_unbounded

__all__ = [
    "DEFAULT_JOB_NAME",
    "DEFAULT_BATCH_SIZE",
    "JobParameters",
    "LoggingConfig",
    "ReaderSpec",
    "WriterSpec",
    "ProcessorSpec",
    "JobConfig",
    "load_config_from_path",
    "parse_error_threshold",
]

DEFAULT_JOB_NAME = "job"
DEFAULT_BATCH_SIZE = 100

_UNBOUNDED_LABELS = {"n/a", "none", "unbounded", "inf", "infinite", ""}


def parse_error_threshold(value: Any) -> int:
    """Coerce a config value into an error threshold.

    ``None`` and labels such as ``"unbounded"`` or ``"N/A"`` map to
    :data:`~batchflow.core.policy.UNBOUNDED`.

    Raises:
        JobConfigurationError: If the value is not a non-negative integer.
    """
    if value is None:
        return UNBOUNDED
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _UNBOUNDED_LABELS:
            return UNBOUNDED
        try:
            value = int(text)
        except ValueError:
            raise JobConfigurationError(f"Invalid error threshold {value!r}") from None
    if isinstance(value, bool) or not isinstance(value, int):
        raise JobConfigurationError(f"error_threshold must be an integer; got {value!r}")
    return value


@dataclass(frozen=True, slots=True)
class JobParameters:
    """Immutable job configuration, validated at construction.

    Attributes:
        name (str): Job name used in logs and the report.
        batch_size (int): Maximum number of records per written batch.
        error_threshold (int): Number of processing failures tolerated before
            the job aborts; :data:`UNBOUNDED` never aborts.
        monitoring (bool): Whether to register the job with a management
            sink and push report updates to it.
    """

    name: str = DEFAULT_JOB_NAME
    batch_size: int = DEFAULT_BATCH_SIZE
    error_threshold: int = UNBOUNDED
    monitoring: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise JobConfigurationError("Job name must be a non-empty string.")
        if isinstance(self.batch_size, bool) or not isinstance(self.batch_size, int) or self.batch_size < 1:
            raise JobConfigurationError(
                f"batch_size must be a positive integer; got {self.batch_size!r}."
            )
        if (
            isinstance(self.error_threshold, bool)
            or not isinstance(self.error_threshold, int)
            or self.error_threshold < 0
        ):
            raise JobConfigurationError(
                f"error_threshold must be a non-negative integer; got {self.error_threshold!r}."
            )
        if not isinstance(self.monitoring, bool):
            raise JobConfigurationError("monitoring must be a boolean.")

    @property
    def unbounded_errors(self) -> bool:
        return is_unbounded(self.error_threshold)

    def with_overrides(self, **changes: Any) -> "JobParameters":
        """Return a validated copy with ``changes`` applied."""
        if "error_threshold" in changes:
            changes["error_threshold"] = parse_error_threshold(changes["error_threshold"])
        return replace(self, **changes)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "batch_size": self.batch_size,
            "error_threshold": format_error_threshold(self.error_threshold),
            "monitoring": self.monitoring,
        }

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "JobParameters":
        """Build parameters from a mapping, rejecting unknown keys."""
        if not data:
            return cls()
        _reject_unknown(cls, data, context="parameters")
        kwargs = dict(data)
        if "error_threshold" in kwargs:
            kwargs["error_threshold"] = parse_error_threshold(kwargs["error_threshold"])
        return cls(**kwargs)


@dataclass(slots=True)
class LoggingConfig:
    """Logging settings applied by the CLI before a config-driven run.

    Embedding applications usually leave this alone and configure the
    ``batchflow`` logger (or set ``propagate=True``) themselves.
    """
    level: int | str = "INFO"
    propagate: bool = False
    fmt: Optional[str] = DEFAULT_FORMAT
    logger_name: str = PACKAGE_LOGGER_NAME

    def apply(self) -> None:
        """Apply this logging configuration to the package logger."""
        configure_logging(
            level=self.level,
            propagate=self.propagate,
            fmt=self.fmt,
            logger_name=self.logger_name or PACKAGE_LOGGER_NAME,
        )


@dataclass(slots=True)
class ReaderSpec:
    """Declarative reader selection: a registry ``kind`` plus its options."""
    kind: str
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class WriterSpec:
    """Declarative writer selection: a registry ``kind`` plus its options."""
    kind: str
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ProcessorSpec:
    """Declarative processor selection; processors run in list order."""
    kind: str
    options: Dict[str, Any] = field(default_factory=dict)


T = TypeVar("T")


@dataclass(slots=True)
class JobConfig:
    """Declarative spec for a whole job.

    Like the parameters it wraps, this object only carries serializable
    knobs; readers, writers, and processors are instantiated from the specs
    by the registries when the job is built.
    """
    parameters: JobParameters = field(default_factory=JobParameters)
    reader: Optional[ReaderSpec] = None
    writer: Optional[WriterSpec] = None
    processors: list[ProcessorSpec] = field(default_factory=list)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        """Check that every spec names a registered kind.

        Raises:
            JobConfigurationError: On a missing reader/writer or unknown kind.
        """
        from .registries import processor_registry, reader_registry, writer_registry

        if self.reader is None:
            raise JobConfigurationError("A reader spec is required.")
        if self.writer is None:
            raise JobConfigurationError("A writer spec is required.")
        reader_registry.require(self.reader.kind)
        writer_registry.require(self.writer.kind)
        for spec in self.processors:
            processor_registry.require(spec.kind)

    def with_parameters(self, **changes: Any) -> "JobConfig":
        """Return a copy whose parameters carry ``changes``."""
        return replace(self, parameters=self.parameters.with_overrides(**changes))

    # -------------------------
    # Serialization helpers
    # -------------------------
    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable representation of this configuration."""
        data: Dict[str, Any] = {"parameters": self.parameters.as_dict()}
        if self.reader is not None:
            data["reader"] = {"kind": self.reader.kind, "options": dict(self.reader.options)}
        if self.writer is not None:
            data["writer"] = {"kind": self.writer.kind, "options": dict(self.writer.options)}
        if self.processors:
            data["processors"] = [{"kind": p.kind, "options": dict(p.options)} for p in self.processors]
        data["logging"] = {
            "level": self.logging.level,
            "propagate": self.logging.propagate,
            "fmt": self.logging.fmt,
            "logger_name": self.logging.logger_name,
        }
        return data

    def to_json(self, path: Path | str, *, indent: int = 2) -> str:
        """Serialize the configuration to JSON and write it to disk.

        Returns:
            str: String path to the written file.
        """
        target = Path(path)
        target.write_text(json.dumps(self.to_dict(), indent=indent, sort_keys=True), encoding="utf-8")
        return str(target)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "JobConfig":
        """Instantiate a JobConfig from a mapping (JSON/TOML layout).

        Raises:
            JobConfigurationError: On unknown keys or malformed sections.
        """
        if not isinstance(data, Mapping):
            raise JobConfigurationError(f"Job config must be a mapping; got {type(data).__name__}.")
        _reject_unknown(cls, data, context="job config")
        processors_raw = data.get("processors") or []
        if not isinstance(processors_raw, (list, tuple)):
            raise JobConfigurationError("processors must be a list of {kind, options} tables.")
        return cls(
            parameters=JobParameters.from_dict(data.get("parameters")),
            reader=_spec_from(ReaderSpec, data.get("reader"), "reader"),
            writer=_spec_from(WriterSpec, data.get("writer"), "writer"),
            processors=[_spec_from(ProcessorSpec, p, "processors") for p in processors_raw],
            logging=_logging_from(data.get("logging")),
        )

    @classmethod
    def from_json(cls, path: Path | str) -> "JobConfig":
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.from_dict(payload)

    @classmethod
    def from_toml(cls, path: Path | str) -> "JobConfig":
        """
        Load a JobConfig from a TOML file.

        The layout mirrors :meth:`to_dict`: ``[parameters]``, ``[reader]``,
        ``[writer]``, ``[[processors]]``, and ``[logging]`` tables.
        """
        data = tomllib.loads(Path(path).read_bytes().decode("utf-8"))
        return cls.from_dict(data)


def load_config_from_path(path: str | Path) -> JobConfig:
    """Load a JobConfig from a JSON or TOML file.

    Raises:
        ValueError: If the file extension is not ``.toml`` or ``.json``.
    """
    p = Path(path)
    suffix = p.suffix.lower()
    if suffix == ".toml":
        return JobConfig.from_toml(p)
    if suffix == ".json":
        return JobConfig.from_json(p)
    raise ValueError(f"Unsupported config extension {p.suffix!r}; expected .toml or .json.")


def _reject_unknown(cfg_type: Type[Any], options: Mapping[str, Any], *, context: str) -> None:
    """Raise when ``options`` contains keys that are not dataclass fields."""
    allowed = {f.name for f in fields(cfg_type)}
    unknown = sorted(k for k in options.keys() if k not in allowed)
    if unknown:
        raise JobConfigurationError(
            f"Unsupported options for {context}: {', '.join(unknown)}. "
            f"Allowed keys: {', '.join(sorted(allowed))}"
        )


def _spec_from(spec_type: Type[T], data: Any, context: str) -> Any:
    if data is None:
        return None
    if isinstance(data, str):
        return spec_type(kind=data)  # type: ignore[call-arg]
    if not isinstance(data, Mapping) or "kind" not in data:
        raise JobConfigurationError(f"{context} entries need a 'kind'.")
    _reject_unknown(spec_type, data, context=context)
    options = data.get("options") or {}
    if not isinstance(options, Mapping):
        raise JobConfigurationError(f"{context}.options must be a table.")
    return spec_type(kind=str(data["kind"]), options=dict(options))  # type: ignore[call-arg]


def _logging_from(data: Any) -> LoggingConfig:
    if not data:
        return LoggingConfig()
    if not isinstance(data, Mapping):
        raise JobConfigurationError("logging must be a table.")
    _reject_unknown(LoggingConfig, data, context="logging")
    return LoggingConfig(**dict(data))
