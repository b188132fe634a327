"""Test case configuration models."""

from __future__ import annotations

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class WorkloadKind(str, Enum):
    """Workload variants the harness can drive."""
    REPLICATED_LOG = "replicated-log"
    PROTOTYPE_STATE = "prototype-state"
    DOCUMENT = "document"


class ReplicationConfig(BaseModel):
    """Replication parameters of the resource under test."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    write_concern: int = Field(default=1, ge=1, alias="writeConcern")
    soft_write_concern: Optional[int] = Field(
        default=None,
        ge=1,
        alias="softWriteConcern",
        description="Soft write concern (server default when unset)",
    )
    wait_for_sync: bool = Field(default=False, alias="waitForSync")
    number_of_shards: int = Field(default=1, ge=1, alias="numberOfShards")
    replication_version: str = Field(default="2", alias="replicationVersion")

    # Document workloads only
    batch_size: int = Field(default=1, ge=1, alias="batchSize")
    document_size: int = Field(default=64, ge=1, alias="documentSize")


class TestSettings(BaseModel):
    """Immutable per-case configuration."""
    __test__ = False
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    number_of_requests: int = Field(
        ..., ge=1, alias="numberOfRequests", description="Requests per worker"
    )
    number_of_threads: int = Field(
        ..., ge=1, alias="numberOfThreads", description="Concurrent workers"
    )
    number_of_servers: int = Field(
        default=3, ge=1, alias="numberOfServers", description="Participant servers"
    )
    config: ReplicationConfig = Field(default_factory=ReplicationConfig)

    @property
    def total_requests(self) -> int:
        """Number of latency samples one run produces."""
        return self.number_of_requests * self.number_of_threads


class TestCase(BaseModel):
    """A workload variant paired with the settings to run it with."""
    __test__ = False
    model_config = ConfigDict(frozen=True)

    workload: WorkloadKind
    settings: TestSettings
