"""Pytest configuration and shared fixtures."""

import shutil
import tempfile
import threading
from pathlib import Path
from typing import Callable, Generator, Optional
from unittest.mock import MagicMock

import httpx
import pytest

from common.models.settings import ReplicationConfig, TestSettings, WorkloadKind
from harness.remote.client import RemoteClient
from harness.workloads.base import Workload


class RecordingWorkload(Workload):
    """In-memory workload that records its lifecycle calls.

    Worker i writes (i + 1) * 0.001 + k * 0.0001 into slot k, so every
    sample is positive and its origin can be recovered.
    """

    kind = WorkloadKind.REPLICATED_LOG

    def __init__(
        self,
        fail_setup: bool = False,
        fail_teardown: bool = False,
        failing_worker: Optional[int] = None,
        fail_after: int = 0,
    ):
        self.fail_setup = fail_setup
        self.fail_teardown = fail_teardown
        self.failing_worker = failing_worker
        self.fail_after = fail_after

        self.calls: list[str] = []
        self.written: dict[int, int] = {}
        self.slice_lengths: dict[int, int] = {}
        self._lock = threading.Lock()

    def name(self, settings: TestSettings) -> str:
        return f"recording-c{settings.number_of_threads}"

    def setup(self, remote, resource_id, settings):
        self.calls.append(f"setup:{resource_id}")
        if self.fail_setup:
            raise RuntimeError("setup exploded")

    def run_worker(self, remote, resource_id, settings, worker_index, samples):
        with self._lock:
            self.slice_lengths[worker_index] = len(samples)
            self.written[worker_index] = 0
        for index in range(settings.number_of_requests):
            if worker_index == self.failing_worker and index == self.fail_after:
                raise RuntimeError(f"worker {worker_index} request {index} failed")
            samples[index] = (worker_index + 1) * 0.001 + index * 0.0001
            with self._lock:
                self.written[worker_index] += 1

    def teardown(self, remote, resource_id):
        self.calls.append(f"teardown:{resource_id}")
        if self.fail_teardown:
            raise RuntimeError("teardown exploded")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def mock_remote() -> MagicMock:
    """Create a mock remote client."""
    return MagicMock(spec=RemoteClient)


@pytest.fixture
def make_workload() -> Callable[..., RecordingWorkload]:
    """Factory for recording workloads."""
    return RecordingWorkload


@pytest.fixture
def sample_settings() -> TestSettings:
    """Four workers with ten requests each."""
    return TestSettings(
        number_of_requests=10,
        number_of_threads=4,
        number_of_servers=3,
        config=ReplicationConfig(write_concern=2),
    )


@pytest.fixture
def make_remote() -> Generator[Callable[..., RemoteClient], None, None]:
    """Build RemoteClients backed by an httpx.MockTransport handler."""
    clients: list[RemoteClient] = []

    def factory(handler, **kwargs) -> RemoteClient:
        kwargs.setdefault("sleep", lambda seconds: None)
        client = RemoteClient(
            "http://coordinator:8529",
            transport=httpx.MockTransport(handler),
            **kwargs,
        )
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()
