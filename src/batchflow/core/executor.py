# executor.py
# SPDX-License-Identifier: MIT
"""Run independent jobs on a thread pool."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_for
from typing import Any, Self

from .job import BatchJob
from .log import get_logger
from .report import JobReport

log = get_logger(__name__)

__all__ = ["JobExecutor"]


class JobExecutor:
    """Execute jobs and hand back their reports.

    Each job runs on a single worker thread; concurrency only comes from
    running several independent jobs side by side. Jobs must not share
    readers or writers. Submitting the same job instance again queues the
    new run behind the pending one instead of overlapping it.

    Attributes:
        max_workers (int | None): Requested pool size; None lets
            ThreadPoolExecutor pick its default.
    """

    def __init__(self, max_workers: int | None = None, *, thread_name_prefix: str = "batchflow") -> None:
        if max_workers is not None and max_workers < 1:
            raise ValueError("JobExecutor requires max_workers >= 1")
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=thread_name_prefix)
        self.max_workers = max_workers
        self._closed = False
        self._lock = threading.Lock()
        self._pending: dict[BatchJob, Future[JobReport]] = {}

    def submit(self, job: BatchJob) -> Future[JobReport]:
        """Schedule ``job`` and return a future resolving to its report."""
        if self._closed:
            raise RuntimeError("JobExecutor has been shut down")
        log.debug("Submitting job %r", job.name)
        with self._lock:
            previous = self._pending.get(job)
            future = self._pool.submit(_run_after, job, previous)
            self._pending[job] = future
        future.add_done_callback(lambda done: self._forget(job, done))
        return future

    def _forget(self, job: BatchJob, done: Future[JobReport]) -> None:
        with self._lock:
            if self._pending.get(job) is done:
                del self._pending[job]

    def execute(self, job: BatchJob) -> JobReport:
        """Run ``job`` on the pool and wait for its report."""
        return self.submit(job).result()

    def execute_all(self, jobs: Iterable[BatchJob]) -> list[JobReport]:
        """Run ``jobs`` concurrently; reports come back in submission order."""
        futures = [self.submit(job) for job in jobs]
        return [future.result() for future in futures]

    def shutdown(self, wait: bool = True) -> None:
        if self._closed:
            return
        self._closed = True
        log.debug("Shutting down job executor (wait=%s)", wait)
        self._pool.shutdown(wait=wait)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.shutdown(wait=True)


def _run_after(job: BatchJob, previous: Future[JobReport] | None) -> JobReport:
    if previous is not None:
        wait_for([previous])
    return job.run()
