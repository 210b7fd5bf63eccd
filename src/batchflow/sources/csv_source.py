# csv_source.py
# SPDX-License-Identifier: MIT

"""CSV/TSV record reader."""

from __future__ import annotations

import csv
import gzip
import os
from pathlib import Path
from typing import Any, Optional, TextIO

from ..core.log import get_logger
from ..core.records import Header, Record

__all__ = ["CsvRecordReader"]

log = get_logger(__name__)


class CsvRecordReader:
    """Read rows of a delimited file as record payloads.

    With ``has_header`` the payload is a ``dict`` keyed by the header row;
    otherwise it is the list of cell values. The delimiter defaults to a tab
    for ``.tsv`` files and a comma otherwise. ``.csv.gz``/``.tsv.gz`` files
    are decompressed transparently.

    Attributes:
        path (Path): File to read.
        delimiter (str | None): Explicit delimiter, or None to infer.
        has_header (bool): Whether the first row names the columns.
        skip_blank_rows (bool): Whether rows with no cells are skipped.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        delimiter: str | None = None,
        quotechar: str = '"',
        has_header: bool = True,
        encoding: str = "utf-8",
        skip_blank_rows: bool = True,
    ) -> None:
        self.path = Path(path)
        self.delimiter = delimiter
        self.quotechar = quotechar
        self.has_header = has_header
        self.encoding = encoding
        self.skip_blank_rows = skip_blank_rows
        self._fp: TextIO | None = None
        self._reader: Any = None
        self._number = 0

    def open(self) -> None:
        is_gz = "".join(self.path.suffixes[-2:]).lower() in {".csv.gz", ".tsv.gz"}
        opener = _open_csv_gz if is_gz else _open_csv
        self._fp = opener(self.path, encoding=self.encoding)
        delim = self._resolve_delimiter()
        if self.has_header:
            self._reader = csv.DictReader(self._fp, delimiter=delim, quotechar=self.quotechar)
        else:
            self._reader = csv.reader(self._fp, delimiter=delim, quotechar=self.quotechar)
        self._number = 0
        log.debug("Opened %s (delimiter=%r, header=%s)", self.path, delim, self.has_header)

    def read_record(self) -> Optional[Record[Any]]:
        if self._reader is None:
            raise RuntimeError(f"CsvRecordReader for {self.path} is not open")
        for row in self._reader:
            if self.skip_blank_rows and not row:
                continue
            self._number += 1
            header = Header(number=self._number, source=f"{self.path.name}:#{self._reader.line_num}")
            return Record(header=header, payload=dict(row) if self.has_header else list(row))
        return None

    def close(self) -> None:
        self._reader = None
        if self._fp is None:
            return
        try:
            self._fp.close()
        finally:
            self._fp = None

    def _resolve_delimiter(self) -> str:
        """Return the delimiter for the file, falling back by extension."""
        if self.delimiter is not None:
            return self.delimiter
        if ".tsv" in "".join(self.path.suffixes).lower():
            return "\t"
        return ","


def _open_csv(path: Path, *, encoding: str) -> TextIO:
    """Open a plain CSV file with newline handling for the csv module."""
    return open(path, encoding=encoding, newline="")


def _open_csv_gz(path: Path, *, encoding: str) -> TextIO:
    """Open a gzip-compressed CSV file in text mode."""
    return gzip.open(path, "rt", encoding=encoding, newline="")  # type: ignore[return-value]
