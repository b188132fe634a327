"""Insert benchmark against replicated logs."""

from __future__ import annotations

import logging
from typing import MutableSequence

from common.models.settings import TestSettings, WorkloadKind
from harness.exceptions import RemoteError, TeardownError
from harness.remote.client import RemoteClient
from harness.workloads.base import Workload

logger = logging.getLogger(__name__)


class ReplicatedLogWorkload(Workload):
    """Appends small JSON entries to a freshly created replicated log."""

    kind = WorkloadKind.REPLICATED_LOG

    def name(self, settings: TestSettings) -> str:
        name = (
            f"insert-c{settings.number_of_threads}"
            f"-r{settings.number_of_servers}"
            f"-wc{settings.config.write_concern}"
        )
        if settings.config.wait_for_sync:
            name += "-ws"
        return name

    def setup(self, remote: RemoteClient, resource_id: int, settings: TestSettings) -> None:
        remote.create_replicated_log(resource_id, settings)
        try:
            remote.wait_for_replicated_log(resource_id)
        except Exception:
            # The orchestrator skips teardown when setup fails.
            self._drop_quietly(remote, resource_id)
            raise

    def run_worker(
        self,
        remote: RemoteClient,
        resource_id: int,
        settings: TestSettings,
        worker_index: int,
        samples: MutableSequence[float],
    ) -> None:
        for index in range(settings.number_of_requests):
            entry = {"client": worker_index, "index": index}
            samples[index] = self.timed(lambda: remote.insert_log_entry(resource_id, entry))

    def teardown(self, remote: RemoteClient, resource_id: int) -> None:
        try:
            remote.drop_replicated_log(resource_id)
        except RemoteError as e:
            raise TeardownError(f"could not drop log {resource_id}: {e}") from e

    @staticmethod
    def _drop_quietly(remote: RemoteClient, resource_id: int) -> None:
        try:
            remote.drop_replicated_log(resource_id)
        except Exception as e:
            logger.warning(f"Dropping replicated log {resource_id} after failed setup: {e}")
