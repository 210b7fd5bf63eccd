# parquet_source.py
# SPDX-License-Identifier: MIT
"""Parquet record reader backed by pyarrow."""

from __future__ import annotations

import os
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any, Optional

import pyarrow.parquet as pq

from ..core.log import get_logger
from ..core.records import Header, Record

log = get_logger(__name__)

__all__ = ["ParquetRecordReader"]


class ParquetRecordReader:
    """Read Parquet rows as ``dict`` payloads, one record per row.

    Rows are streamed in record batches of ``read_batch_size`` rows so large
    files are never materialized at once. Header sources look like
    ``data.parquet#row=7`` (0-based row index).

    Attributes:
        path (Path): Parquet file to read.
        columns (Sequence[str] | None): Optional column projection.
        read_batch_size (int): Rows fetched per pyarrow batch.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        columns: Sequence[str] | None = None,
        read_batch_size: int = 1024,
    ) -> None:
        self.path = Path(path)
        self.columns = list(columns) if columns else None
        self.read_batch_size = read_batch_size
        self._file: pq.ParquetFile | None = None
        self._rows: Iterator[dict[str, Any]] | None = None
        self._number = 0

    def open(self) -> None:
        self._file = pq.ParquetFile(self.path)
        self._rows = self._iter_rows(self._file)
        self._number = 0
        log.debug("Opened %s (%d rows)", self.path, self._file.metadata.num_rows)

    def _iter_rows(self, pf: pq.ParquetFile) -> Iterator[dict[str, Any]]:
        for batch in pf.iter_batches(batch_size=self.read_batch_size, columns=self.columns):
            yield from batch.to_pylist()

    def read_record(self) -> Optional[Record[Any]]:
        if self._rows is None:
            raise RuntimeError(f"ParquetRecordReader for {self.path} is not open")
        row = next(self._rows, None)
        if row is None:
            return None
        self._number += 1
        header = Header(number=self._number, source=f"{self.path.name}#row={self._number - 1}")
        return Record(header=header, payload=row)

    def close(self) -> None:
        self._rows = None
        if self._file is None:
            return
        try:
            self._file.close()
        finally:
            self._file = None
