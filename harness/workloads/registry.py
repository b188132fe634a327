"""Workload registry and the built-in test matrix."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from common.models.settings import ReplicationConfig, TestCase, TestSettings, WorkloadKind
from common.utils import load_yaml, parse_yaml
from harness.workloads.base import Workload
from harness.workloads.document import DocumentWorkload
from harness.workloads.prototype_state import PrototypeStateWorkload
from harness.workloads.replicated_log import ReplicatedLogWorkload


WORKLOADS: dict[WorkloadKind, type[Workload]] = {
    workload.kind: workload
    for workload in (ReplicatedLogWorkload, PrototypeStateWorkload, DocumentWorkload)
}


def create_workload(kind: WorkloadKind | str) -> Workload:
    """Create a fresh workload instance for one lifecycle."""
    return WORKLOADS[WorkloadKind(kind)]()


def case_name(case: TestCase) -> str:
    """Name a test case the way its workload names it."""
    return create_workload(case.workload).name(case.settings)


def _case(
    workload: WorkloadKind,
    requests: int,
    threads: int,
    servers: int = 3,
    **config: Any,
) -> TestCase:
    return TestCase(
        workload=workload,
        settings=TestSettings(
            number_of_requests=requests,
            number_of_threads=threads,
            number_of_servers=servers,
            config=ReplicationConfig(**config),
        ),
    )


def default_test_cases() -> list[TestCase]:
    """Return the built-in test matrix, in execution order."""
    log = WorkloadKind.REPLICATED_LOG
    proto = WorkloadKind.PROTOTYPE_STATE
    doc = WorkloadKind.DOCUMENT

    cases = [
        # Replicated logs: durability and concurrency sweep
        _case(log, 1000, 1, write_concern=2, wait_for_sync=True),
        _case(log, 1000, 1, write_concern=1, wait_for_sync=True),
        _case(log, 1000, 10, write_concern=2, wait_for_sync=True),
        _case(log, 1000, 100, write_concern=2, wait_for_sync=True),
        _case(log, 10000, 1, write_concern=2),
        _case(log, 10000, 10, write_concern=2),
        _case(log, 1000, 100, write_concern=2),
        _case(log, 1000, 1, write_concern=1),
        # Prototype states
        _case(proto, 1000, 1, write_concern=2),
        _case(proto, 1000, 10, write_concern=2),
        _case(proto, 1000, 100, write_concern=2),
        _case(proto, 1000, 10, write_concern=2, wait_for_sync=True),
    ]

    # Documents: replication version 1 against 2 for every shape
    for version in ("1", "2"):
        cases += [
            _case(doc, 1000, 1, write_concern=2, replication_version=version),
            _case(doc, 1000, 10, write_concern=2, replication_version=version),
            _case(doc, 1000, 10, write_concern=2, number_of_shards=3, replication_version=version),
            _case(doc, 100, 10, write_concern=2, batch_size=100, replication_version=version),
            _case(doc, 1000, 10, write_concern=2, document_size=1024, replication_version=version),
            _case(doc, 1000, 10, write_concern=2, wait_for_sync=True, replication_version=version),
        ]

    return cases


DEFAULT_TEST_CASES: tuple[TestCase, ...] = tuple(default_test_cases())


def parse_test_case(workload: WorkloadKind | str, text: str) -> TestCase:
    """Build an ad-hoc test case from an inline YAML or JSON settings document."""
    data = parse_yaml(text)
    if not isinstance(data, dict):
        raise ValueError(f"Test settings must be a mapping, got: {text!r}")
    return TestCase(workload=WorkloadKind(workload), settings=TestSettings.model_validate(data))


def load_test_plan(path: str | Path) -> list[TestCase]:
    """Load a test matrix from a YAML file.

    The file holds a ``tests`` list whose entries carry a ``workload`` kind
    and a ``settings`` mapping in the same shape as the result output.
    """
    data = load_yaml(path)
    entries = data.get("tests") if isinstance(data, dict) else None
    if not isinstance(entries, list) or not entries:
        raise ValueError(f"Test plan {path} has no 'tests' list")
    return [TestCase.model_validate(entry) for entry in entries]
