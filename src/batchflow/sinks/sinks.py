# sinks.py
# SPDX-License-Identifier: MIT
"""Record writers for in-memory collection, JSON Lines files, and streams."""
from __future__ import annotations

import gzip
import json
import os
import sys
from pathlib import Path
from typing import IO, Any, Self, TextIO

from ..core.log import get_logger
from ..core.records import Batch, Record

log = get_logger(__name__)


def _to_json_line(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str) + "\n"


class NoOpRecordWriter:
    """Writer that discards every batch; the default for new jobs."""

    def open(self) -> None:
        return None

    def write_records(self, batch: Batch) -> None:
        return None

    def close(self) -> None:
        return None


class CollectingRecordWriter:
    """Keep every written batch in memory.

    Attributes:
        batches (list[list[Record]]): One list of records per written batch,
            in write order.
    """

    def __init__(self) -> None:
        self.batches: list[list[Record[Any]]] = []
        self.opened = False
        self.closed = False

    def open(self) -> None:
        self.opened = True
        self.closed = False

    def write_records(self, batch: Batch) -> None:
        self.batches.append(list(batch))

    def close(self) -> None:
        self.closed = True

    @property
    def records(self) -> list[Record[Any]]:
        return [rec for batch in self.batches for rec in batch]

    @property
    def payloads(self) -> list[Any]:
        return [rec.payload for rec in self.records]


class _BaseJsonlRecordWriter:
    """Shared JSONL writer logic: temp file plus atomic rename on close."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        """Configure a JSONL writer.

        Args:
            path (str | os.PathLike[str]): Destination file path.
        """
        self._path = Path(path)
        self._fp: TextIO | None = None
        self._tmp_path: Path | None = None

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> None:
        """Create a temp file next to the destination for writing."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._tmp_path = self._path.parent / f"{self._path.name}.tmp"
        self._fp = self._open_handle(self._tmp_path)

    def write_records(self, batch: Batch) -> None:
        """Write each payload of the batch as a compact JSON line."""
        if self._fp is None:
            raise RuntimeError(f"{type(self).__name__} for {self._path} is not open")
        self._fp.write("".join(_to_json_line(rec.payload) for rec in batch))
        self._fp.flush()

    def close(self) -> None:
        """Close any open handle and move the temp file into place."""
        if not self._fp:
            return
        try:
            self._fp.close()
        finally:
            self._fp = None
        if self._tmp_path:
            os.replace(self._tmp_path, self._path)
            log.debug("Wrote %s", self._path)
            self._tmp_path = None

    def __enter__(self) -> Self:
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        """Ensure resources are closed when used as a context manager."""
        self.close()

    def _open_handle(self, path: Path) -> TextIO:
        """Return a write handle for a fresh file path."""
        raise NotImplementedError


class JsonlRecordWriter(_BaseJsonlRecordWriter):
    """Streaming JSONL writer (one payload per line)."""

    def _open_handle(self, path: Path) -> TextIO:
        return open(path, "w", encoding="utf-8", newline="")


class GzipJsonlRecordWriter(_BaseJsonlRecordWriter):
    """Streaming JSONL writer that gzip-compresses its output."""

    def _open_handle(self, path: Path) -> TextIO:
        return gzip.open(path, "wt", encoding="utf-8", newline="")  # type: ignore[return-value]


class StandardOutputRecordWriter:
    """Print payloads to a text stream (stdout by default).

    String payloads are written as-is; anything else is rendered as JSON.
    """

    def __init__(self, stream: IO[str] | None = None) -> None:
        self._stream = stream

    def open(self) -> None:
        return None

    def write_records(self, batch: Batch) -> None:
        out = self._stream if self._stream is not None else sys.stdout
        for rec in batch:
            payload = rec.payload
            out.write(payload + "\n" if isinstance(payload, str) else _to_json_line(payload))
        out.flush()

    def close(self) -> None:
        return None


__all__ = [
    "NoOpRecordWriter",
    "CollectingRecordWriter",
    "JsonlRecordWriter",
    "GzipJsonlRecordWriter",
    "StandardOutputRecordWriter",
]
