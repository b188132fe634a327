"""Reduce repeated runs of one test case to a single result."""

from __future__ import annotations

from typing import Sequence

from common.models.results import METRIC_FIELDS, TestResult


def median_value(values: Sequence[float]) -> float:
    """Upper median: the element at index len // 2 of the sorted values."""
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


def collect_medians(results: Sequence[TestResult]) -> TestResult:
    """Per-metric median across runs.

    Every metric is resolved independently, so the fields of the result may
    come from different runs.
    """
    if not results:
        raise ValueError("Cannot aggregate an empty list of results")

    return TestResult(**{
        field: median_value([getattr(result, field) for result in results])
        for field in METRIC_FIELDS
    })
