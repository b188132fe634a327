"""Replication benchmark CLI - command line interface."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from pydantic import ValidationError

from common.models.settings import TestCase, WorkloadKind
from harness.config import HarnessSettings, init_settings
from harness.core.driver import TestMatrixDriver
from harness.core.runner import TestRunner
from harness.remote.client import RemoteClient
from harness.storage.result_writer import ResultWriter, open_output
from harness.workloads.registry import (
    DEFAULT_TEST_CASES,
    case_name,
    load_test_plan,
    parse_test_case,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="replbench",
        description="Latency benchmark for replicated logs, states and document collections",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  replbench http://localhost:8529\n"
            "  replbench --quick --out-file results.jsonl http://localhost:8529\n"
            "  replbench --workload replicated-log \\\n"
            "      --test '{numberOfRequests: 100, numberOfThreads: 4}' http://localhost:8529\n"
        ),
    )
    parser.add_argument("endpoint", help="Coordinator URL of the service under test")
    parser.add_argument(
        "--out-file",
        default="-",
        help="Output file for result lines, '-' is stdout (default: -)",
    )
    parser.add_argument(
        "--quick",
        action="store_true",
        help="Scale request counts down and run each test once",
    )
    parser.add_argument(
        "-n", "--repetitions",
        type=int,
        help="Runs per test case, results are the per-metric median",
    )
    parser.add_argument("--base-id", type=int, help="First resource id to use")
    parser.add_argument(
        "--workload",
        choices=[kind.value for kind in WorkloadKind],
        help="Workload of an ad-hoc test (requires --test)",
    )
    parser.add_argument(
        "--test",
        help="Settings of an ad-hoc test as JSON or YAML",
    )
    parser.add_argument("--plan", help="YAML file with a custom test matrix")
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print the planned test names without running them",
    )
    parser.add_argument("--log-level", help="Logging level (default: INFO)")
    return parser


def setup_logging(settings: HarnessSettings) -> None:
    # Results may go to stdout, so logs go to stderr.
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=settings.log_format,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def load_settings(args: argparse.Namespace) -> HarnessSettings:
    """Settings from the environment, overridden by command line flags."""
    overrides = {
        "repetitions": args.repetitions,
        "base_resource_id": args.base_id,
        "log_level": args.log_level,
    }
    return init_settings(**{key: value for key, value in overrides.items() if value is not None})


def select_cases(args: argparse.Namespace, parser: argparse.ArgumentParser) -> list[TestCase]:
    if (args.workload is None) != (args.test is None):
        parser.error("--workload and --test must be given together")
    if args.test is not None and args.plan is not None:
        parser.error("--test and --plan are mutually exclusive")

    try:
        if args.test is not None:
            return [parse_test_case(args.workload, args.test)]
        if args.plan is not None:
            return load_test_plan(args.plan)
    except (OSError, ValueError, ValidationError) as e:
        parser.error(f"invalid test definition: {e}")
    return list(DEFAULT_TEST_CASES)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(args)
    except ValidationError as e:
        parser.error(str(e))
    cases = select_cases(args, parser)

    if args.list:
        for index, case in enumerate(cases):
            print(f"{index:>3}  {case.workload.value:<16} {case_name(case)}")
        return 0

    setup_logging(settings)
    logger.info(f"Running {len(cases)} tests against {args.endpoint}")

    try:
        stream = open_output(args.out_file)
    except OSError as e:
        parser.error(f"failed to open output file {args.out_file}: {e}")

    with RemoteClient.from_settings(args.endpoint, settings) as remote, \
            ResultWriter(stream) as writer:
        driver = TestMatrixDriver(
            TestRunner(remote),
            writer,
            base_resource_id=settings.base_resource_id,
            repetitions=settings.repetitions,
            quick=args.quick,
            quick_mode_factor=settings.quick_mode_factor,
        )
        succeeded = driver.run_all(cases)

    if not succeeded:
        logger.error("At least one test failed")
        return 1
    logger.info(f"All tests finished, {writer.count} results written")
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
