"""Build the flaky test report for a run and dispatch it to the sinks."""

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from flakiness_reporter.classifier import classify
from flakiness_reporter.config import ReporterConfig
from flakiness_reporter.models.report import FlakyTest, Report
from flakiness_reporter.models.tree import ResultTreeView
from flakiness_reporter.walker import enumerate_tests

log = logging.getLogger(__name__)

PACKAGE_NAME = "pytest-flakiness-reporter"

RETRY_WARNING = (
    f"⚠️ [{PACKAGE_NAME}] Warning: the number of reruns is set to 0, which means "
    "that flaky tests will not be detected. Please set --reruns to a value "
    "greater than 0."
)


def build_report(tree: ResultTreeView) -> Report:
    """Classify every test of the run and collect the flaky ones."""
    flaky_tests: list[FlakyTest] = []
    for test, identity in enumerate_tests(tree):
        if (retries := classify(test.outcome)) is None:
            continue
        log.debug(
            "Flaky test: module=%s suite_path=%s test=%s retries=%d",
            identity.module_name,
            identity.suite_path,
            identity.test_name,
            retries,
        )
        flaky_tests.append(FlakyTest.from_identity(identity, retries))

    log.info(
        "Found %d flaky test(s) across %d module(s)",
        len(flaky_tests),
        len(tree.modules),
    )
    return Report(flaky_tests=flaky_tests)


def format_report(report: Report) -> list[str]:
    """Format the console summary lines of a non-empty report."""
    lines = [f"⚠️ [{PACKAGE_NAME}] Found {len(report.flaky_tests)} flaky test(s):"]
    for flaky_test in report.flaky_tests:
        path = " > ".join(
            json.dumps(name, ensure_ascii=False)
            for name in (*flaky_test.suite_path, flaky_test.test_name)
        )
        lines.append(
            f"- {flaky_test.module_name} > {path} (retries: {flaky_test.retries})"
        )
    return lines


def print_report(report: Report) -> None:
    """Print the report summary to stderr.

    Prints nothing for an empty report: the report ignores failing tests, so
    announcing success could be misleading.
    """
    if not report.flaky_tests:
        return
    sys.stderr.write("\n".join(format_report(report)) + "\n")
    sys.stderr.flush()


def _atomic_temp_path(target_path: Path) -> Path:
    """Create a temp path in the same directory for atomic replacement."""
    return target_path.parent / f".{target_path.name}.{uuid4().hex}.tmp"


def write_report(report: Report, output_file: Path) -> Path:
    """Write the report as JSON atomically and return the resolved path.

    Missing parent directories are created. Relative paths are resolved
    against the current working directory.
    """
    output_path = Path(output_file).resolve()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = _atomic_temp_path(output_path)
    try:
        temp_path.write_text(report.to_json(), encoding="utf-8")
        os.replace(temp_path, output_path)
    finally:
        if temp_path.exists():
            temp_path.unlink()
    log.info("Flaky test report written to %s", output_path)
    return output_path


@dataclass(frozen=True, kw_only=True)
class FlakyTestsReporter:
    """Reports tests that passed only after being retried.

    The host calls ``check_configuration`` once before any test runs and
    ``finalize_report`` once all tests reached a terminal state.
    """

    config: ReporterConfig = field(default_factory=ReporterConfig)

    def check_configuration(self, retry_limit: int) -> None:
        """Warn when the retry limit makes flaky tests undetectable."""
        if retry_limit >= 1 or self.config.disable_console_output:
            return
        sys.stderr.write(RETRY_WARNING + "\n")
        sys.stderr.flush()

    def finalize_report(self, tree: ResultTreeView) -> Report:
        """Build the report for a finished run and dispatch it.

        Args:
            tree: Result tree of the completed run

        Returns:
            The report, also passed to the configured callback

        Raises:
            TreeShapeError: If a test cannot be traced back to its module
            OSError: If the report file cannot be written

        """
        report = build_report(tree)

        if report.flaky_tests and self.config.output_file is not None:
            write_report(report, self.config.output_file)
        if not self.config.disable_console_output:
            print_report(report)
        if self.config.on_report is not None:
            self.config.on_report(report)

        return report
