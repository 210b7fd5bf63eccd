# parquet.py
# SPDX-License-Identifier: MIT
"""Parquet record writer backed by pyarrow."""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Optional

import pyarrow as pa
import pyarrow.parquet as pq

from ..core.log import get_logger
from ..core.records import Batch

log = get_logger(__name__)

__all__ = ["ParquetRecordWriter"]


class ParquetRecordWriter:
    """Write mapping payloads to a single Parquet file.

    Each batch becomes one row group. The schema is inferred from the first
    batch of each run (the union of its keys) unless given. A later payload
    carrying a key outside that schema fails the write instead of losing
    the column. Output goes to a temp file that replaces the target on
    close; no file appears if no batch was written.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        compression: str = "snappy",
        schema: Optional[pa.Schema] = None,
    ) -> None:
        """Initialize the writer configuration.

        Args:
            path (str | os.PathLike[str]): Target ``.parquet`` file.
            compression (str): Parquet compression codec name.
            schema (pa.Schema | None): Explicit schema; inferred when None.
        """
        self._target = Path(path)
        self._compression = compression or "snappy"
        self._declared_schema = schema
        self._schema: Optional[pa.Schema] = None
        self._writer: Optional[pq.ParquetWriter] = None
        self._tmp_path: Path | None = None

    def open(self) -> None:
        self._target.parent.mkdir(parents=True, exist_ok=True)
        self._tmp_path = self._target.parent / f"{self._target.name}.tmp"
        self._schema = self._declared_schema
        self._writer = None

    def write_records(self, batch: Batch) -> None:
        if self._tmp_path is None:
            raise RuntimeError(f"ParquetRecordWriter for {self._target} is not open")
        table = self._build_table(batch.payloads())
        if self._writer is None:
            self._schema = table.schema
            self._writer = pq.ParquetWriter(self._tmp_path, self._schema, compression=self._compression)
        self._writer.write_table(table)

    def close(self) -> None:
        """Close the writer and move the temp file into place."""
        if self._tmp_path is None:
            return
        try:
            if self._writer is not None:
                self._writer.close()
        finally:
            self._writer = None
        if self._tmp_path.exists():
            os.replace(self._tmp_path, self._target)
            log.debug("Wrote %s", self._target)
        self._tmp_path = None

    def _build_table(self, rows: Sequence[Any]) -> pa.Table:
        out_rows: list[dict[str, Any]] = []
        for payload in rows:
            if not isinstance(payload, Mapping):
                raise TypeError(
                    f"ParquetRecordWriter needs mapping payloads; got {type(payload).__name__}"
                )
            out_rows.append(dict(payload))
        columns = list(dict.fromkeys(key for row in out_rows for key in row))
        if self._schema is None:
            return pa.Table.from_pydict({name: [row.get(name) for row in out_rows] for name in columns})
        unknown = [name for name in columns if name not in self._schema.names]
        if unknown:
            raise ValueError(
                f"Payload columns {unknown} are not in the schema of {self._target} "
                f"({', '.join(self._schema.names)})"
            )
        return pa.Table.from_pylist(out_rows, schema=self._schema)
