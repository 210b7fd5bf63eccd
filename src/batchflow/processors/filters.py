# filters.py
# SPDX-License-Identifier: MIT
"""Generic filtering, mapping, and validating processors."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any, Optional

from ..core.errors import RecordValidationError
from ..core.records import Record

__all__ = ["FilteringProcessor", "MappingProcessor", "ValidatingProcessor"]


class FilteringProcessor:
    """Keep records whose payload satisfies ``predicate``; drop the rest.

    Dropped records are counted as filtered by the job, not as errors.
    """

    def __init__(self, predicate: Callable[[Any], bool], *, name: str | None = None) -> None:
        self._predicate = predicate
        self.__name__ = name or getattr(predicate, "__name__", "filter")

    def process_record(self, record: Record[Any]) -> Optional[Record[Any]]:
        return record if self._predicate(record.payload) else None


class MappingProcessor:
    """Replace each payload with ``fn(payload)``, keeping the header."""

    def __init__(self, fn: Callable[[Any], Any], *, name: str | None = None) -> None:
        self._fn = fn
        self.__name__ = name or getattr(fn, "__name__", "mapper")

    def process_record(self, record: Record[Any]) -> Optional[Record[Any]]:
        return record.with_payload(self._fn(record.payload))


class ValidatingProcessor:
    """Reject payloads for which ``validator`` reports problems.

    ``validator(payload)`` returns an iterable of problem descriptions; an
    empty result accepts the record unchanged. Rejection raises
    :class:`RecordValidationError`, which the job counts against the error
    threshold.
    """

    def __init__(self, validator: Callable[[Any], Iterable[str] | None], *, name: str | None = None) -> None:
        self._validator = validator
        self.__name__ = name or getattr(validator, "__name__", "validator")

    def process_record(self, record: Record[Any]) -> Optional[Record[Any]]:
        problems = list(self._validator(record.payload) or ())
        if problems:
            raise RecordValidationError(problems)
        return record
