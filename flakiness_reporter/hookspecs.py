"""Hooks added to pytest by the flakiness reporter plugin."""

import pytest

from flakiness_reporter.models.report import Report


@pytest.hookspec
def pytest_flakiness_report(report: Report, config: pytest.Config) -> None:
    """Called once at the end of every run with the flaky test report.

    The report is passed even when no flaky test was found, in which case
    ``report.flaky_tests`` is empty.

    Args:
        report: Flaky tests found during the run
        config: The pytest config object

    """
