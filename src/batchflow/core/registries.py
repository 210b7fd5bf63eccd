# registries.py
# SPDX-License-Identifier: MIT
"""Registries mapping config ``kind`` names to readers, writers, and processors."""
from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from importlib import metadata
from typing import Any, cast

from .config import ProcessorSpec, ReaderSpec, WriterSpec
from .errors import JobConfigurationError
from .interfaces import RecordProcessor, RecordReader, RecordWriter
from .log import get_logger

log = get_logger(__name__)

Factory = Callable[..., Any]
PLUGIN_GROUP = "batchflow.plugins"


@dataclass
class _Registry:
    """Factories keyed by kind; each factory is called with the spec options."""

    label: str
    _factories: dict[str, Factory] = field(default_factory=dict)

    def register(self, kind: str, factory: Factory, *, replace: bool = False) -> None:
        """Register ``factory`` under ``kind``.

        Raises:
            ValueError: If ``kind`` is taken and ``replace`` is False.
        """
        if not replace and kind in self._factories:
            raise ValueError(f"{self.label.capitalize()} kind {kind!r} is already registered")
        self._factories[kind] = factory

    def __call__(self, kind: str, *, replace: bool = False) -> Callable[[Factory], Factory]:
        """Decorator form of :meth:`register`."""
        def decorator(factory: Factory) -> Factory:
            self.register(kind, factory, replace=replace)
            return factory

        return decorator

    def __contains__(self, kind: object) -> bool:
        return kind in self._factories

    def kinds(self) -> tuple[str, ...]:
        return tuple(sorted(self._factories))

    def require(self, kind: str) -> Factory:
        """Return the factory for ``kind``.

        Raises:
            JobConfigurationError: If no factory is registered for ``kind``.
        """
        factory = self._factories.get(kind)
        if factory is None:
            raise JobConfigurationError(
                f"Unknown {self.label} kind {kind!r}; known kinds: {', '.join(self.kinds()) or '(none)'}"
            )
        return factory

    def create(self, kind: str, options: Mapping[str, Any] | None = None) -> Any:
        factory = self.require(kind)
        try:
            return factory(**dict(options or {}))
        except TypeError as exc:
            raise JobConfigurationError(f"Invalid options for {self.label} {kind!r}: {exc}") from exc


class ReaderRegistry(_Registry):
    def __init__(self) -> None:
        super().__init__(label="reader")

    def build(self, spec: ReaderSpec) -> RecordReader:
        return cast(RecordReader, self.create(spec.kind, spec.options))


class WriterRegistry(_Registry):
    def __init__(self) -> None:
        super().__init__(label="writer")

    def build(self, spec: WriterSpec) -> RecordWriter:
        return cast(RecordWriter, self.create(spec.kind, spec.options))


class ProcessorRegistry(_Registry):
    def __init__(self) -> None:
        super().__init__(label="processor")

    def build(self, spec: ProcessorSpec) -> RecordProcessor:
        return cast(RecordProcessor, self.create(spec.kind, spec.options))


# ---------------------------------------------------------------------------
# Built-in kinds
# ---------------------------------------------------------------------------
# Parquet factories import lazily so pyarrow stays an optional extra.

def _parquet_reader(**options: Any) -> RecordReader:
    from ..sources.parquet_source import ParquetRecordReader

    return ParquetRecordReader(**options)


def _parquet_writer(**options: Any) -> RecordWriter:
    from ..sinks.parquet import ParquetRecordWriter

    return ParquetRecordWriter(**options)


def default_reader_registry() -> ReaderRegistry:
    from ..sources.csv_source import CsvRecordReader
    from ..sources.jsonl_source import JsonlRecordReader

    reg = ReaderRegistry()
    reg.register("jsonl", JsonlRecordReader)
    reg.register("csv", CsvRecordReader)
    reg.register("parquet", _parquet_reader)
    return reg


def default_writer_registry() -> WriterRegistry:
    from ..sinks.sinks import (
        CollectingRecordWriter,
        GzipJsonlRecordWriter,
        JsonlRecordWriter,
        StandardOutputRecordWriter,
    )

    reg = WriterRegistry()
    reg.register("jsonl", JsonlRecordWriter)
    reg.register("jsonl_gz", GzipJsonlRecordWriter)
    reg.register("parquet", _parquet_writer)
    reg.register("stdout", StandardOutputRecordWriter)
    reg.register("collect", CollectingRecordWriter)
    return reg


def default_processor_registry() -> ProcessorRegistry:
    from ..processors.marshallers import CsvRecordMarshaller, JsonRecordMapper, JsonRecordMarshaller

    reg = ProcessorRegistry()
    reg.register("csv_marshal", CsvRecordMarshaller)
    reg.register("json_marshal", JsonRecordMarshaller)
    reg.register("json_parse", JsonRecordMapper)
    return reg


reader_registry = default_reader_registry()
writer_registry = default_writer_registry()
processor_registry = default_processor_registry()


def load_entrypoint_plugins(
    *,
    readers: ReaderRegistry = reader_registry,
    writers: WriterRegistry = writer_registry,
    processors: ProcessorRegistry = processor_registry,
    group: str = PLUGIN_GROUP,
) -> list[str]:
    """Load ``batchflow.plugins`` entry points into the registries.

    Each entry point resolves to a callable taking ``readers``, ``writers``,
    and ``processors`` keyword arguments. Plugins that fail to import or
    register are logged and skipped.

    Returns:
        list[str]: Names of the plugins that loaded successfully.
    """
    loaded: list[str] = []
    for ep in metadata.entry_points().select(group=group):
        try:
            register = ep.load()
        except Exception as exc:  # noqa: BLE001
            log.warning("Failed to import plugin %s: %s", ep.name, exc)
            continue
        try:
            register(readers=readers, writers=writers, processors=processors)
        except Exception as exc:  # noqa: BLE001
            log.warning("Plugin %s failed during registration: %s", ep.name, exc)
            continue
        log.debug("Loaded plugin %s", ep.name)
        loaded.append(ep.name)
    return loaded


__all__ = [
    "PLUGIN_GROUP",
    "ReaderRegistry",
    "WriterRegistry",
    "ProcessorRegistry",
    "default_reader_registry",
    "default_writer_registry",
    "default_processor_registry",
    "reader_registry",
    "writer_registry",
    "processor_registry",
    "load_entrypoint_plugins",
]
