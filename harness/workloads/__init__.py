"""Workload variants and the test matrix registry."""

from harness.workloads.base import Workload
from harness.workloads.document import DocumentWorkload
from harness.workloads.prototype_state import PrototypeStateWorkload
from harness.workloads.replicated_log import ReplicatedLogWorkload
from harness.workloads.registry import (
    DEFAULT_TEST_CASES,
    WORKLOADS,
    create_workload,
    load_test_plan,
    parse_test_case,
    case_name,
)

__all__ = [
    "Workload",
    "DocumentWorkload",
    "PrototypeStateWorkload",
    "ReplicatedLogWorkload",
    "DEFAULT_TEST_CASES",
    "WORKLOADS",
    "create_workload",
    "load_test_plan",
    "parse_test_case",
    "case_name",
]
