# lifecycle.py
# SPDX-License-Identifier: MIT
"""Job status transitions and the run-once teardown."""

from __future__ import annotations

import logging
from typing import Callable

from .errors import InvalidTransitionError
from .log import get_logger
from .report import JobReport, JobStatus

__all__ = ["ALLOWED_TRANSITIONS", "JobLifecycle"]

ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.STARTING: frozenset({JobStatus.STARTED, JobStatus.FAILED}),
    JobStatus.STARTED: frozenset({JobStatus.STOPPING, JobStatus.FAILED}),
    JobStatus.STOPPING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


class JobLifecycle:
    """Own the status of one run's report.

    The success path is STARTING -> STARTED -> STOPPING -> COMPLETED with no
    skipped states; FAILED is reachable from any non-terminal state.
    :meth:`teardown` moves to a terminal state and runs the finalizers at
    most once per run.
    """

    def __init__(
        self,
        report: JobReport,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self.report = report
        self.log = logger or get_logger(__name__)
        self._torn_down = False

    @property
    def status(self) -> JobStatus:
        return self.report.status

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    def begin(self) -> None:
        """Enter STARTING for a fresh run."""
        self._torn_down = False
        self.report.status = JobStatus.STARTING
        self._log_status(JobStatus.STARTING)

    def transition(self, target: JobStatus) -> None:
        """Move to ``target`` if the current status allows it.

        Raises:
            InvalidTransitionError: For a transition outside the allowed set.
        """
        current = self.report.status
        if target not in ALLOWED_TRANSITIONS[current]:
            raise InvalidTransitionError(
                f"Job {self.report.job_name!r} cannot move from {current.name} to {target.name}"
            )
        self.report.status = target
        self._log_status(target)

    def teardown(
        self,
        status: JobStatus,
        *,
        finalizers: tuple[Callable[[], None], ...] = (),
    ) -> bool:
        """Reach the terminal ``status`` and run ``finalizers`` in order.

        Returns:
            bool: False if teardown already ran for this run (nothing done).
        """
        if self._torn_down:
            self.log.debug("Teardown already ran for job %r; ignoring", self.report.job_name)
            return False
        if not status.is_terminal:
            raise InvalidTransitionError(f"Teardown requires a terminal status, got {status.name}")
        self._torn_down = True
        self.transition(status)
        for finalize in finalizers:
            finalize()
        return True

    def _log_status(self, status: JobStatus) -> None:
        self.log.info("Job '%s' %s", self.report.job_name, status.value)
