# jsonl_source.py
# SPDX-License-Identifier: MIT

"""JSON Lines record reader."""

from __future__ import annotations

import gzip
import json
import os
from pathlib import Path
from typing import Any, Optional, TextIO

from ..core.log import get_logger
from ..core.records import Header, Record

log = get_logger(__name__)

__all__ = ["JsonlRecordReader"]


class JsonlRecordReader:
    """Read one JSON value per line from a ``.jsonl`` or ``.jsonl.gz`` file.

    Blank lines are skipped. A line that is not valid JSON raises
    ``ValueError`` from :meth:`read_record`, which the job treats as a fatal
    read failure. Header sources look like ``data.jsonl:#12``.

    Attributes:
        path (Path): File to read.
        encoding (str): Text encoding of the file.
    """

    def __init__(self, path: str | os.PathLike[str], *, encoding: str = "utf-8") -> None:
        self.path = Path(path)
        self.encoding = encoding
        self._fp: TextIO | None = None
        self._lineno = 0
        self._number = 0

    def open(self) -> None:
        is_gz = "".join(self.path.suffixes[-2:]).lower() == ".jsonl.gz"
        opener = _open_jsonl_gz if is_gz else _open_jsonl
        self._fp = opener(self.path, encoding=self.encoding)
        self._lineno = 0
        self._number = 0
        log.debug("Opened %s", self.path)

    def read_record(self) -> Optional[Record[Any]]:
        if self._fp is None:
            raise RuntimeError(f"JsonlRecordReader for {self.path} is not open")
        for raw_line in self._fp:
            self._lineno += 1
            line = raw_line.strip()
            if not line:
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid JSON at {self.path}:#{self._lineno}: {exc}") from exc
            self._number += 1
            header = Header(number=self._number, source=f"{self.path.name}:#{self._lineno}")
            return Record(header=header, payload=payload)
        return None

    def close(self) -> None:
        if self._fp is None:
            return
        try:
            self._fp.close()
        finally:
            self._fp = None


def _open_jsonl(path: Path, *, encoding: str) -> TextIO:
    return open(path, "r", encoding=encoding)


def _open_jsonl_gz(path: Path, *, encoding: str) -> TextIO:
    return gzip.open(path, "rt", encoding=encoding)  # type: ignore[return-value]
