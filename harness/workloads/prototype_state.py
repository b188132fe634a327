"""Insert benchmark against prototype (key-value) replicated states."""

from __future__ import annotations

import logging
from typing import MutableSequence

from common.models.settings import TestSettings, WorkloadKind
from harness.remote.client import RemoteClient
from harness.workloads.base import Workload

logger = logging.getLogger(__name__)

STATE_IMPLEMENTATION = "prototype"
VALUE = "value"


class PrototypeStateWorkload(Workload):
    """Writes one unique key per request into a prototype state."""

    kind = WorkloadKind.PROTOTYPE_STATE

    def name(self, settings: TestSettings) -> str:
        name = (
            f"proto-insert-c{settings.number_of_threads}"
            f"-r{settings.number_of_servers}"
            f"-wc{settings.config.write_concern}"
        )
        if settings.config.wait_for_sync:
            name += "-ws"
        return name

    def setup(self, remote: RemoteClient, resource_id: int, settings: TestSettings) -> None:
        remote.check_prototype_state_available()
        remote.create_replicated_state(resource_id, settings, STATE_IMPLEMENTATION)
        remote.wait_for_prototype_state(resource_id)

    def run_worker(
        self,
        remote: RemoteClient,
        resource_id: int,
        settings: TestSettings,
        worker_index: int,
        samples: MutableSequence[float],
    ) -> None:
        for index in range(settings.number_of_requests):
            key = f"key-{worker_index}-{index}"
            samples[index] = self.timed(
                lambda: remote.set_prototype_state_key(resource_id, key, VALUE)
            )

    def teardown(self, remote: RemoteClient, resource_id: int) -> None:
        # The service has no drop endpoint for prototype states.
        logger.debug(f"Leaving prototype state {resource_id} in place")
