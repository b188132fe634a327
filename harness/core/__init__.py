"""Test execution engine."""

from harness.core.statistics import LatencySampleStore, calculate_results
from harness.core.aggregator import collect_medians
from harness.core.runner import TestRunner
from harness.core.driver import TestMatrixDriver, resource_id

__all__ = [
    "LatencySampleStore",
    "calculate_results",
    "collect_medians",
    "TestRunner",
    "TestMatrixDriver",
    "resource_id",
]
