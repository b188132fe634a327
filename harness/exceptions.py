"""Errors raised by the benchmark harness."""

from __future__ import annotations

from typing import Optional


class BenchmarkError(Exception):
    """Base class for harness errors."""


class RemoteError(BenchmarkError):
    """A request to the replication service failed."""

    def __init__(
        self,
        action: str,
        status_code: Optional[int] = None,
        error_code: Optional[int] = None,
        message: str = "",
    ):
        self.action = action
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        super().__init__(self._describe())

    def _describe(self) -> str:
        details = []
        if self.status_code is not None:
            details.append(f"status-code={self.status_code}")
        if self.error_code is not None:
            details.append(f"error-code={self.error_code}")
        if self.message:
            details.append(f"message={self.message}")
        if not details:
            return f"Error while {self.action}"
        return f"Error while {self.action}: {', '.join(details)}"


class ResourceNotReadyError(RemoteError):
    """A freshly created resource did not become ready within the timeout."""


class SetupError(BenchmarkError):
    """A workload could not provision its remote resource."""


class WorkerError(BenchmarkError):
    """A worker failed during the concurrent phase."""

    def __init__(self, worker_index: int, cause: BaseException):
        self.worker_index = worker_index
        self.cause = cause
        super().__init__(f"Worker {worker_index} failed: {cause}")


class TeardownError(BenchmarkError):
    """A workload could not release its remote resource."""
