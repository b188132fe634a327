"""Latency sample storage and reduction to percentile summaries."""

from __future__ import annotations

from array import array
from typing import Sequence

from common.models.results import TestResult


# Percentile ladder in per-mille, so index math stays in integers.
PERCENTILE_FIELDS: tuple[tuple[str, int], ...] = (
    ("p10", 100),
    ("p20", 200),
    ("p30", 300),
    ("p40", 400),
    ("med", 500),
    ("p60", 600),
    ("p70", 700),
    ("p80", 800),
    ("p90", 900),
    ("p99", 990),
    ("p99_9", 999),
)


class LatencySampleStore:
    """Fixed-size buffer with one slot per (worker, request) pair.

    Worker i owns the contiguous slice [i * requests, (i + 1) * requests),
    so workers never write to the same slot and no locking is needed.
    """

    def __init__(self, threads: int, requests: int):
        if threads < 1 or requests < 1:
            raise ValueError(
                f"Sample store needs at least one slot, got {threads} x {requests}"
            )
        self.threads = threads
        self.requests = requests
        self._samples = array("d", bytes(8 * threads * requests))
        self._view = memoryview(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def worker_slice(self, worker_index: int) -> memoryview:
        """Writable view over the samples owned by one worker."""
        if not 0 <= worker_index < self.threads:
            raise IndexError(f"Worker index {worker_index} out of range")
        start = worker_index * self.requests
        return self._view[start:start + self.requests]

    def samples(self) -> list[float]:
        """Copy of all samples in slot order."""
        return self._samples.tolist()


def percentile_index(count: int, per_mille: int) -> int:
    """Nearest-rank index for a per-mille rank, clamped to the sample range."""
    return min(count * per_mille // 1000, count - 1)


def calculate_results(total_duration: float, samples: Sequence[float]) -> TestResult:
    """Reduce latency samples and the run's wall-clock time to a TestResult.

    Percentiles use the nearest-rank method without interpolation: the value
    at index floor(count * rank) of the ascending samples.
    """
    count = len(samples)
    if count == 0:
        raise ValueError("Cannot calculate results without samples")
    if total_duration <= 0:
        raise ValueError(f"Total duration must be positive, got {total_duration}")

    ordered = sorted(samples)
    metrics = {
        "min": ordered[0],
        "max": ordered[-1],
        "avg": sum(ordered) / count,
        "rps": count / total_duration,
        "total": total_duration,
    }
    for field, per_mille in PERCENTILE_FIELDS:
        metrics[field] = ordered[percentile_index(count, per_mille)]

    return TestResult(**metrics)
