# marshallers.py
# SPDX-License-Identifier: MIT
"""Processors converting payloads to and from delimited text and JSON."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Optional

from ..core.records import Record

__all__ = [
    "DEFAULT_DELIMITER",
    "DEFAULT_QUALIFIER",
    "extract_fields",
    "CsvRecordMarshaller",
    "JsonRecordMarshaller",
    "JsonRecordMapper",
]

DEFAULT_DELIMITER = ","
DEFAULT_QUALIFIER = '"'

FieldExtractor = Callable[[Any], Sequence[Any]]


def extract_fields(payload: Any, fields: Sequence[str]) -> list[Any]:
    """Return the values of ``fields`` from a mapping or an object's attributes.

    Raises:
        KeyError: If a mapping payload lacks one of the fields.
        AttributeError: If an object payload lacks one of the fields.
    """
    if isinstance(payload, Mapping):
        return [payload[name] for name in fields]
    return [getattr(payload, name) for name in fields]


class CsvRecordMarshaller:
    """Marshal payloads into one delimited line each.

    Fields are taken in ``fields`` order, either by key (mapping payloads) or
    by attribute. A custom ``field_extractor`` may replace that lookup. The
    output line has no trailing newline; writers add their own line ends.
    ``None`` values become empty cells.
    """

    def __init__(
        self,
        fields: Sequence[str] = (),
        *,
        delimiter: str = DEFAULT_DELIMITER,
        qualifier: str = DEFAULT_QUALIFIER,
        field_extractor: FieldExtractor | None = None,
        quote_all: bool = True,
    ) -> None:
        if not fields and field_extractor is None:
            raise ValueError("CsvRecordMarshaller needs field names or a field_extractor")
        self.fields = tuple(fields)
        self.delimiter = delimiter
        self.qualifier = qualifier
        self._extract = field_extractor or (lambda payload: extract_fields(payload, self.fields))
        self._quoting = csv.QUOTE_ALL if quote_all else csv.QUOTE_MINIMAL

    def process_record(self, record: Record[Any]) -> Optional[Record[Any]]:
        values = ["" if v is None else str(v) for v in self._extract(record.payload)]
        buf = io.StringIO()
        writer = csv.writer(
            buf,
            delimiter=self.delimiter,
            quotechar=self.qualifier,
            quoting=self._quoting,
            lineterminator="",
        )
        writer.writerow(values)
        return record.with_payload(buf.getvalue())


class JsonRecordMarshaller:
    """Serialize payloads to JSON text."""

    def __init__(self, *, sort_keys: bool = False, indent: int | None = None) -> None:
        self.sort_keys = sort_keys
        self.indent = indent

    def process_record(self, record: Record[Any]) -> Optional[Record[Any]]:
        text = json.dumps(
            record.payload,
            ensure_ascii=False,
            sort_keys=self.sort_keys,
            indent=self.indent,
            separators=None if self.indent is not None else (",", ":"),
            default=str,
        )
        return record.with_payload(text)


class JsonRecordMapper:
    """Parse JSON text payloads; malformed text is a processing failure."""

    def process_record(self, record: Record[Any]) -> Optional[Record[Any]]:
        payload = record.payload
        if isinstance(payload, (bytes, bytearray)):
            payload = payload.decode("utf-8")
        return record.with_payload(json.loads(payload))
