"""Latency result models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from common.models.settings import TestSettings, WorkloadKind


# Every numeric field of TestResult, in output order.
METRIC_FIELDS: tuple[str, ...] = (
    "min",
    "max",
    "avg",
    "p10",
    "p20",
    "p30",
    "p40",
    "med",
    "p60",
    "p70",
    "p80",
    "p90",
    "p99",
    "p99_9",
    "rps",
    "total",
)


class TestResult(BaseModel):
    """Latency summary of a run, in seconds (rps in requests per second)."""
    __test__ = False
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    min: float = Field(default=0, description="Fastest request")
    max: float = Field(default=0, description="Slowest request")
    avg: float = Field(default=0, description="Mean request latency")
    p10: float = Field(default=0)
    p20: float = Field(default=0)
    p30: float = Field(default=0)
    p40: float = Field(default=0)
    med: float = Field(default=0, description="50th percentile")
    p60: float = Field(default=0)
    p70: float = Field(default=0)
    p80: float = Field(default=0)
    p90: float = Field(default=0)
    p99: float = Field(default=0)
    p99_9: float = Field(default=0, alias="p99.9")
    rps: float = Field(default=0, description="Requests per second")
    total: float = Field(default=0, description="Wall-clock duration of the run")


class ResultEntry(BaseModel):
    """One output record per test case."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Workload-derived test name")
    workload: WorkloadKind
    test: TestSettings
    result: TestResult = Field(..., description="Per-metric median across runs")
    runs: list[TestResult] = Field(
        default_factory=list,
        description="Successful per-run results in execution order",
    )

    def to_json_line(self) -> str:
        """Serialize to a single JSON line (no trailing newline)."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json_line(cls, line: str) -> "ResultEntry":
        """Parse a line written by to_json_line."""
        return cls.model_validate_json(line)
