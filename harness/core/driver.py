"""Sequential execution of a test matrix."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from common.models.results import ResultEntry, TestResult
from common.models.settings import TestCase, TestSettings, WorkloadKind
from harness.core.aggregator import collect_medians
from harness.core.runner import TestRunner
from harness.storage.result_writer import ResultWriter
from harness.workloads.base import Workload
from harness.workloads.registry import create_workload

logger = logging.getLogger(__name__)


def resource_id(base: int, case_index: int, repetitions: int, run_index: int) -> int:
    """Identifier of the remote resource for one repetition of one case.

    Distinct for every (case, repetition) pair of a matrix run.
    """
    return base + case_index * repetitions + run_index


class TestMatrixDriver:
    """Runs test cases one after another and emits one record per case.

    Failures are contained per repetition: a failed repetition is left out of
    the aggregate, and a case whose repetitions all failed is skipped. Either
    way the driver moves on and remembers that an error occurred.
    """

    __test__ = False

    def __init__(
        self,
        runner: TestRunner,
        writer: ResultWriter,
        base_resource_id: int = 550,
        repetitions: int = 1,
        quick: bool = False,
        quick_mode_factor: int = 10,
        workload_factory: Callable[[WorkloadKind], Workload] = create_workload,
    ):
        if repetitions < 1:
            raise ValueError(f"Repetitions must be at least 1, got {repetitions}")
        self.runner = runner
        self.writer = writer
        self.base_resource_id = base_resource_id
        self.quick = quick
        self.repetitions = 1 if quick else repetitions
        self.quick_mode_factor = quick_mode_factor
        self.workload_factory = workload_factory
        self.had_errors = False

    def prepare_settings(self, settings: TestSettings) -> TestSettings:
        """Scale the request count down in quick mode."""
        if not self.quick:
            return settings
        requests = max(1, settings.number_of_requests // self.quick_mode_factor)
        return settings.model_copy(update={"number_of_requests": requests})

    def run_all(self, cases: Iterable[TestCase]) -> bool:
        """Run every case in order. Returns True when no error occurred."""
        for index, case in enumerate(cases):
            self.run_case(index, case)
        return not self.had_errors

    def run_case(self, case_index: int, case: TestCase) -> Optional[ResultEntry]:
        """Run all repetitions of one case and write its result record."""
        settings = self.prepare_settings(case.settings)
        name = self.workload_factory(case.workload).name(settings)
        logger.info(f"Running test {case_index}: {name} ({self.repetitions} runs)")

        runs: list[TestResult] = []
        for run_index in range(self.repetitions):
            rid = resource_id(self.base_resource_id, case_index, self.repetitions, run_index)
            workload = self.workload_factory(case.workload)
            try:
                runs.append(self.runner.run(workload, rid, settings))
            except Exception as e:
                self.had_errors = True
                logger.error(f"Test {name} run {run_index + 1}/{self.repetitions} failed: {e}")
                logger.debug(f"Failure details for {name}", exc_info=True)

        if not runs:
            logger.error(f"All runs of {name} failed, no result written")
            return None

        entry = ResultEntry(
            name=name,
            workload=case.workload,
            test=settings,
            result=collect_medians(runs),
            runs=runs,
        )
        self.writer.write(entry)
        return entry
