"""Insert benchmark against sharded document collections."""

from __future__ import annotations

import logging
from typing import MutableSequence, Optional

from common.models.settings import TestSettings, WorkloadKind
from common.utils import random_string
from harness.exceptions import RemoteError, SetupError, TeardownError
from harness.remote.client import RemoteClient
from harness.workloads.base import Workload

logger = logging.getLogger(__name__)

COLLECTION_NAME = "c"
# Document sizes up to this are the default and stay out of the name.
DEFAULT_DOCUMENT_SIZE = 64


class DocumentWorkload(Workload):
    """Inserts batches of random fixed-size documents into one collection.

    Setup creates a dedicated database named after the test, so the name is
    remembered for the workers and for teardown.
    """

    kind = WorkloadKind.DOCUMENT

    def __init__(self):
        self.database: Optional[str] = None

    def name(self, settings: TestSettings) -> str:
        config = settings.config
        name = (
            f"doc-insert-c{settings.number_of_threads}"
            f"-r{settings.number_of_servers}"
            f"-wc{config.write_concern}"
            f"-s{config.number_of_shards}"
        )
        if config.batch_size > 1:
            name += f"-b{config.batch_size}"
        if config.document_size > DEFAULT_DOCUMENT_SIZE:
            name += f"-ds{config.document_size}"
        if config.wait_for_sync:
            name += "-ws"
        name += f"-v{config.replication_version}"
        return name

    def setup(self, remote: RemoteClient, resource_id: int, settings: TestSettings) -> None:
        database = self.name(settings)
        try:
            remote.create_database(database, settings.config.replication_version)
        except Exception as e:
            raise SetupError(f"could not create database {database}: {e}") from e

        try:
            remote.create_collection(database, COLLECTION_NAME, settings)
        except Exception as e:
            self._drop_quietly(remote, database)
            raise SetupError(f"could not create collection {database}/{COLLECTION_NAME}: {e}") from e

        self.database = database

    def run_worker(
        self,
        remote: RemoteClient,
        resource_id: int,
        settings: TestSettings,
        worker_index: int,
        samples: MutableSequence[float],
    ) -> None:
        database = self.database
        if database is None:
            raise RuntimeError("DocumentWorkload.run_worker called before setup")

        config = settings.config
        value = random_string(config.document_size)
        for index in range(settings.number_of_requests):
            documents = [
                {
                    "value": value,
                    "threadNo": worker_index,
                    "index": index,
                    "batchIndex": batch_index,
                }
                for batch_index in range(config.batch_size)
            ]
            samples[index] = self.timed(
                lambda: remote.insert_documents(database, COLLECTION_NAME, documents)
            )

    def teardown(self, remote: RemoteClient, resource_id: int) -> None:
        database, self.database = self.database, None
        if database is None:
            return
        try:
            remote.drop_database(database)
        except RemoteError as e:
            raise TeardownError(f"could not drop database {database}: {e}") from e

    @staticmethod
    def _drop_quietly(remote: RemoteClient, database: str) -> None:
        try:
            remote.drop_database(database)
        except Exception as e:
            logger.warning(f"Dropping database {database} after failed setup: {e}")
