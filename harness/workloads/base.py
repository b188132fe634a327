"""Workload contract shared by all test variants."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Callable, MutableSequence

from common.models.settings import TestSettings, WorkloadKind
from harness.remote.client import RemoteClient


class Workload(ABC):
    """Pluggable test logic driven through setup, run and teardown.

    An instance lives for exactly one lifecycle. Whatever it remembers
    during setup is only read by the concurrent workers and cleared again
    by teardown.
    """

    kind: WorkloadKind

    @abstractmethod
    def name(self, settings: TestSettings) -> str:
        """Deterministic test name derived from the settings alone."""

    @abstractmethod
    def setup(self, remote: RemoteClient, resource_id: int, settings: TestSettings) -> None:
        """Provision the remote resource and wait until it accepts writes."""

    @abstractmethod
    def run_worker(
        self,
        remote: RemoteClient,
        resource_id: int,
        settings: TestSettings,
        worker_index: int,
        samples: MutableSequence[float],
    ) -> None:
        """Issue number_of_requests sequential writes, recording each latency.

        Raises on the first failed request; samples written until then stay
        in place.
        """

    @abstractmethod
    def teardown(self, remote: RemoteClient, resource_id: int) -> None:
        """Release the remote resource."""

    @staticmethod
    def timed(operation: Callable[[], None]) -> float:
        """Run operation and return its duration in seconds."""
        started = time.perf_counter()
        operation()
        return time.perf_counter() - started
