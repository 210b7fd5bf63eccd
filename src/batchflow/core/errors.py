# errors.py
# SPDX-License-Identifier: MIT
"""Exception types raised by the job orchestrator and its collaborators."""

from __future__ import annotations

__all__ = [
    "BatchFlowError",
    "JobConfigurationError",
    "InvalidTransitionError",
    "JobExecutionError",
    "ReaderOpeningError",
    "WriterOpeningError",
    "RecordReadingError",
    "ErrorThresholdExceeded",
    "BatchWritingError",
    "RecordValidationError",
]


class BatchFlowError(Exception):
    """Base class for all batchflow errors."""


class JobConfigurationError(BatchFlowError, ValueError):
    """Raised when job parameters or declarative specs are invalid."""


class InvalidTransitionError(BatchFlowError, RuntimeError):
    """Raised when the lifecycle is asked for a transition it does not allow."""


class JobExecutionError(BatchFlowError, RuntimeError):
    """Fatal error that aborts a job run.

    The underlying exception is available as ``cause`` (and as
    ``__cause__`` when raised with ``from``).
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ReaderOpeningError(JobExecutionError):
    """The record reader could not be opened."""


class WriterOpeningError(JobExecutionError):
    """The record writer could not be opened."""


class RecordReadingError(JobExecutionError):
    """The record reader failed while reading the next record."""


class ErrorThresholdExceeded(JobExecutionError):
    """Too many records failed processing; the job is aborted."""


class BatchWritingError(JobExecutionError):
    """The record writer failed to write a batch."""


class RecordValidationError(BatchFlowError, ValueError):
    """Raised by validating processors when a payload is rejected.

    Attributes:
        problems (tuple[str, ...]): Human-readable validation failures.
    """

    def __init__(self, problems) -> None:
        self.problems = tuple(str(p) for p in problems)
        super().__init__("; ".join(self.problems) or "record rejected")
