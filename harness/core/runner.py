"""Drive one workload through setup, concurrent execution and teardown."""

from __future__ import annotations

import logging
import queue
import threading
from typing import MutableSequence

from common.models.results import TestResult
from common.models.settings import TestSettings
from common.utils import Timer, format_duration
from harness.core.statistics import LatencySampleStore, calculate_results
from harness.exceptions import SetupError, TeardownError, WorkerError
from harness.remote.client import RemoteClient
from harness.workloads.base import Workload

logger = logging.getLogger(__name__)


class TestRunner:
    """Runs single repetitions of a test case against the remote service."""

    __test__ = False

    def __init__(self, remote: RemoteClient):
        self.remote = remote

    def run(self, workload: Workload, resource_id: int, settings: TestSettings) -> TestResult:
        """Run one repetition and reduce its samples.

        Raises SetupError when the resource could not be provisioned (no
        teardown happens then) and WorkerError when any worker failed, in
        which case the whole repetition is discarded. Teardown always runs
        once setup succeeded; its failures are only logged.
        """
        name = workload.name(settings)
        logger.info(
            f"Setting up {name} (id {resource_id}): "
            f"{settings.number_of_threads} workers x {settings.number_of_requests} requests "
            f"({settings.total_requests} samples)"
        )
        try:
            workload.setup(self.remote, resource_id, settings)
        except SetupError:
            raise
        except Exception as e:
            raise SetupError(f"Setup of {name} (id {resource_id}) failed: {e}") from e

        store = LatencySampleStore(settings.number_of_threads, settings.number_of_requests)
        # Single slot: the first reported error wins, later ones are dropped.
        errors: queue.Queue[WorkerError] = queue.Queue(maxsize=1)

        try:
            with Timer() as timer:
                self._fan_out(workload, resource_id, settings, store, errors)
        finally:
            self._teardown(workload, resource_id, name)

        try:
            first_error = errors.get_nowait()
        except queue.Empty:
            first_error = None
        if first_error is not None:
            raise first_error from first_error.cause

        duration = timer.elapsed_seconds
        result = calculate_results(duration, store.samples())
        logger.info(
            f"Finished {name} in {format_duration(duration)}: "
            f"{result.rps:.1f} req/s, median {result.med * 1000:.2f}ms, "
            f"p99 {result.p99 * 1000:.2f}ms"
        )
        return result

    def _fan_out(
        self,
        workload: Workload,
        resource_id: int,
        settings: TestSettings,
        store: LatencySampleStore,
        errors: queue.Queue,
    ) -> None:
        threads = [
            threading.Thread(
                target=self._run_worker,
                args=(workload, resource_id, settings, index, store.worker_slice(index), errors),
                name=f"worker-{index}",
                daemon=True,
            )
            for index in range(settings.number_of_threads)
        ]
        started: list[threading.Thread] = []
        try:
            for thread in threads:
                thread.start()
                started.append(thread)
        finally:
            # Teardown must not race workers that are already running.
            for thread in started:
                thread.join()

    def _run_worker(
        self,
        workload: Workload,
        resource_id: int,
        settings: TestSettings,
        worker_index: int,
        samples: MutableSequence[float],
        errors: queue.Queue,
    ) -> None:
        try:
            workload.run_worker(self.remote, resource_id, settings, worker_index, samples)
        except Exception as e:
            logger.debug(f"Worker {worker_index} failed: {e}")
            try:
                errors.put_nowait(WorkerError(worker_index, e))
            except queue.Full:
                logger.debug(f"Dropping error of worker {worker_index}, one is already recorded")

    def _teardown(self, workload: Workload, resource_id: int, name: str) -> None:
        try:
            workload.teardown(self.remote, resource_id)
        except TeardownError as e:
            logger.warning(f"Teardown of {name} (id {resource_id}) failed: {e}")
        except Exception as e:
            logger.warning(f"Unexpected error in teardown of {name} (id {resource_id}): {e}")
            logger.debug("Teardown failure details", exc_info=True)
