# policy.py
# SPDX-License-Identifier: MIT
"""Error-threshold policy applied to per-record processing failures."""

from __future__ import annotations

import sys
from dataclasses import dataclass

__all__ = ["UNBOUNDED", "ErrorThresholdPolicy", "format_error_threshold", "is_unbounded"]

# Sentinel threshold that never aborts a job.
UNBOUNDED: int = sys.maxsize


def is_unbounded(threshold: int) -> bool:
    """Return True when ``threshold`` is the unbounded sentinel."""
    return threshold >= UNBOUNDED


def format_error_threshold(threshold: int) -> str:
    """Render a threshold for logs and reports ("N/A" when unbounded)."""
    return "N/A" if is_unbounded(threshold) else str(threshold)


@dataclass(frozen=True, slots=True)
class ErrorThresholdPolicy:
    """Decide whether an accumulated error count aborts the job.

    The threshold is inclusive: exactly ``threshold`` errors are tolerated
    and the next one aborts. Only processing failures are counted here;
    reader and writer failures are always fatal.
    """

    threshold: int = UNBOUNDED

    def exceeded(self, error_count: int) -> bool:
        """Return True when ``error_count`` (already incremented) is over the limit."""
        if is_unbounded(self.threshold):
            return False
        return error_count > self.threshold

    def __str__(self) -> str:
        return format_error_threshold(self.threshold)
