"""Common data models for the replication benchmark harness."""

from common.models.settings import ReplicationConfig, TestSettings, TestCase, WorkloadKind
from common.models.results import TestResult, ResultEntry, METRIC_FIELDS

__all__ = [
    "ReplicationConfig",
    "TestSettings",
    "TestCase",
    "WorkloadKind",
    "TestResult",
    "ResultEntry",
    "METRIC_FIELDS",
]
