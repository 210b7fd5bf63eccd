# report.py
# SPDX-License-Identifier: MIT
"""Job status, metrics counters, and the execution report.

Metrics and the report are written by the orchestrator only. Listeners and
monitors receive them by reference and must treat them as read-only.
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from .config import JobParameters

__all__ = ["JobStatus", "JobMetrics", "JobReport", "merge_reports"]


class JobStatus(str, Enum):
    """Lifecycle status of a job run."""

    STARTING = "starting"  # Parameters validated, listeners told about the start
    STARTED = "started"  # Reader and writer open, loop running
    STOPPING = "stopping"  # Reader exhausted, resources about to close
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


_COUNTERS = ("read_count", "write_count", "filtered_count", "error_count")


@dataclass(slots=True)
class JobMetrics:
    """Mutable counters for one run.

    Counters only grow during a run. ``start_time`` and ``end_time`` are
    epoch seconds and may each be set once.
    """

    read_count: int = 0
    write_count: int = 0
    filtered_count: int = 0
    error_count: int = 0
    start_time: float | None = None
    end_time: float | None = None
    custom_metrics: dict[str, Any] = field(default_factory=dict)

    def increment_read_count(self) -> None:
        self.read_count += 1

    def increment_write_count(self, count: int) -> None:
        if count < 0:
            raise ValueError("write count increment must be non-negative")
        self.write_count += count

    def increment_filtered_count(self) -> None:
        self.filtered_count += 1

    def increment_error_count(self) -> None:
        self.error_count += 1

    def mark_start(self, when: float | None = None) -> None:
        if self.start_time is not None:
            raise RuntimeError("start time already recorded for this run")
        self.start_time = time.time() if when is None else when

    def mark_end(self, when: float | None = None) -> None:
        if self.end_time is not None:
            raise RuntimeError("end time already recorded for this run")
        self.end_time = time.time() if when is None else when

    def add_metric(self, name: str, value: Any) -> None:
        """Attach a custom metric (typically from a listener)."""
        self.custom_metrics[str(name)] = value

    @property
    def duration(self) -> float | None:
        """Elapsed seconds between start and end, if both are known."""
        if self.start_time is None or self.end_time is None:
            return None
        return max(0.0, self.end_time - self.start_time)

    def as_dict(self) -> dict[str, Any]:
        """Return a stable dict shape for reporting."""
        data: dict[str, Any] = {name: int(getattr(self, name)) for name in _COUNTERS}
        data["start_time"] = _iso(self.start_time)
        data["end_time"] = _iso(self.end_time)
        data["duration"] = self.duration
        if self.custom_metrics:
            data["custom_metrics"] = dict(self.custom_metrics)
        return data


def _iso(ts: float | None) -> str | None:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


@dataclass(slots=True)
class JobReport:
    """Aggregate read model of a run.

    The orchestrator mutates the report in place; observers hold a reference
    and see the current state. ``last_error`` holds the most recent known
    problem (a processing error, a fatal cause, or a close-time failure),
    not a history.
    """

    job_name: str
    parameters: "JobParameters"
    metrics: JobMetrics = field(default_factory=JobMetrics)
    status: JobStatus = JobStatus.STARTING
    last_error: BaseException | None = None

    @property
    def succeeded(self) -> bool:
        return self.status is JobStatus.COMPLETED

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation of the report."""
        err = self.last_error
        return {
            "job_name": self.job_name,
            "status": self.status.value,
            "parameters": self.parameters.as_dict(),
            "metrics": self.metrics.as_dict(),
            "last_error": None if err is None else f"{type(err).__name__}: {err}",
        }

    def format(self) -> str:
        """Render a human-readable multi-line summary."""
        m = self.metrics
        p = self.parameters
        lines = [
            "Job Report:",
            "===========",
            "Parameters:",
            f"\tName = {self.job_name}",
            f"\tBatch size = {p.batch_size}",
            f"\tError threshold = {p.as_dict()['error_threshold']}",
            f"\tMonitoring = {p.monitoring}",
            "Summary:",
            f"\tStatus = {self.status.name}",
            f"\tStart time = {_iso(m.start_time) or 'N/A'}",
            f"\tEnd time = {_iso(m.end_time) or 'N/A'}",
            f"\tDuration = {_format_duration(m.duration)}",
            f"\tRead count = {m.read_count}",
            f"\tWrite count = {m.write_count}",
            f"\tFiltered count = {m.filtered_count}",
            f"\tError count = {m.error_count}",
        ]
        for name, value in m.custom_metrics.items():
            lines.append(f"\t{name} = {value}")
        if self.last_error is not None:
            lines.append(f"Last error: {type(self.last_error).__name__}: {self.last_error}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()


def _format_duration(seconds: float | None) -> str:
    if seconds is None:
        return "N/A"
    return f"{seconds:.3f}s"


def merge_reports(reports: Sequence[Mapping[str, Any]]) -> dict[str, Any]:
    """Merge ``JobReport.as_dict()`` outputs into a single summary.

    Counters are summed; statuses are tallied. Non-additive fields
    (timestamps, parameters, last errors) are dropped, except that the
    per-job errors are listed under ``errors``.
    """
    totals: dict[str, int] = {name: 0 for name in _COUNTERS}
    statuses: dict[str, int] = {}
    errors: list[dict[str, str]] = []
    for report in reports:
        metrics = report.get("metrics") or {}
        for name in _COUNTERS:
            totals[name] += int(metrics.get(name, 0) or 0)
        status = str(report.get("status") or "unknown")
        statuses[status] = statuses.get(status, 0) + 1
        if report.get("last_error"):
            errors.append({"job_name": str(report.get("job_name")), "error": str(report["last_error"])})
    return {
        "jobs": len(reports),
        "statuses": statuses,
        "metrics": totals,
        "errors": errors,
    }
