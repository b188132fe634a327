"""Common utilities and models shared across the harness and the CLI."""

from common.models.settings import ReplicationConfig, TestSettings, TestCase, WorkloadKind
from common.models.results import TestResult, ResultEntry

__all__ = [
    "ReplicationConfig",
    "TestSettings",
    "TestCase",
    "WorkloadKind",
    "TestResult",
    "ResultEntry",
]
