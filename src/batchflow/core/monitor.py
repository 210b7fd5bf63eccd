# monitor.py
# SPDX-License-Identifier: MIT
"""Optional management side channel for observing running jobs.

A :class:`JobMonitor` forwards registration and report updates to a
:class:`~batchflow.core.interfaces.ManagementSink`. Sink failures are logged
and swallowed: monitoring never changes a job's outcome.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from .interfaces import ManagementSink
from .log import get_logger
from .report import JobReport

log = get_logger(__name__)

__all__ = [
    "JobMonitor",
    "NullJobMonitor",
    "LoggingManagementSink",
    "RecordingManagementSink",
    "make_monitor",
]


class NullJobMonitor:
    """Monitor used when management registration is disabled."""

    enabled = False

    def register(self, job: Any) -> None:
        return None

    def notify_job_report_update(self) -> None:
        return None


class JobMonitor:
    """Push a job's live report to a management sink."""

    enabled = True

    def __init__(self, report: JobReport, sink: ManagementSink) -> None:
        self.report = report
        self.sink = sink
        self.errors = 0

    def register(self, job: Any) -> None:
        try:
            self.sink.register(job)
        except Exception as exc:  # noqa: BLE001
            self.errors += 1
            log.warning(
                "Management sink %s failed to register job %r: %s",
                type(self.sink).__name__,
                self.report.job_name,
                exc,
            )

    def notify_job_report_update(self) -> None:
        try:
            self.sink.notify_update(self.report)
        except Exception as exc:  # noqa: BLE001
            self.errors += 1
            log.warning(
                "Management sink %s failed on report update for %r: %s",
                type(self.sink).__name__,
                self.report.job_name,
                exc,
            )


def make_monitor(
    report: JobReport,
    sink: ManagementSink | None,
    *,
    enabled: bool,
) -> JobMonitor | NullJobMonitor:
    """Return a live monitor when enabled and a sink is available."""
    if not enabled:
        return NullJobMonitor()
    if sink is None:
        log.debug("Monitoring enabled for %r but no management sink is configured", report.job_name)
        return NullJobMonitor()
    return JobMonitor(report, sink)


class LoggingManagementSink:
    """Management sink that logs report snapshots."""

    def __init__(self, level: int | str = "INFO", logger_name: str | None = None) -> None:
        self._log = get_logger(logger_name or __name__)
        self._level = level if isinstance(level, int) else _level_from_name(level)

    def register(self, job: Any) -> None:
        self._log.log(self._level, "Registered job %r for monitoring", getattr(job, "name", job))

    def notify_update(self, report: JobReport) -> None:
        m = report.metrics
        self._log.log(
            self._level,
            "Job '%s' %s: read=%d written=%d filtered=%d errors=%d",
            report.job_name,
            report.status.value,
            m.read_count,
            m.write_count,
            m.filtered_count,
            m.error_count,
        )


class RecordingManagementSink:
    """Management sink that keeps report snapshots in memory.

    Attributes:
        registered (list[Any]): Jobs passed to :meth:`register`.
        snapshots (list[dict[str, Any]]): ``JobReport.as_dict()`` copies, one
            per update, in arrival order.
    """

    def __init__(self) -> None:
        self.registered: list[Any] = []
        self.snapshots: list[dict[str, Any]] = []

    def register(self, job: Any) -> None:
        self.registered.append(job)

    def notify_update(self, report: JobReport) -> None:
        self.snapshots.append(copy.deepcopy(report.as_dict()))


def _level_from_name(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)
