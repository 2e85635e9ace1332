"""pytest plugin reporting tests that passed only after being rerun.

The plugin is loaded automatically once installed. Silence it with
``--flakiness-disable-console`` or the ``flakiness_disable_console`` ini
setting, or turn it off entirely with ``-p no:flakiness_reporter``.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from flakiness_reporter import hookspecs
from flakiness_reporter.config import ReporterConfig
from flakiness_reporter.models.report import Report
from flakiness_reporter.recorder import OutcomeRecorder
from flakiness_reporter.reporter import FlakyTestsReporter

log = logging.getLogger(__name__)

PLUGIN_NAME = "flakiness-reporter"


def pytest_addhooks(pluginmanager: pytest.PytestPluginManager) -> None:
    """Register the ``pytest_flakiness_report`` hook."""
    pluginmanager.add_hookspecs(hookspecs)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add the reporter's command-line and ini options."""
    group = parser.getgroup("flakiness", "flaky test reporting")
    group.addoption(
        "--flakiness-report",
        dest="flakiness_report",
        default=None,
        metavar="PATH",
        help="Write a JSON report to PATH when flaky tests were found",
    )
    group.addoption(
        "--flakiness-disable-console",
        dest="flakiness_disable_console",
        action="store_true",
        default=False,
        help="Disable the flaky test summary and the reruns warning",
    )
    parser.addini(
        "flakiness_report",
        help="Path of the JSON flaky test report",
        default="",
    )
    parser.addini(
        "flakiness_disable_console",
        help="Disable console output of the flakiness reporter",
        type="bool",
        default=False,
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the reporter, once per run."""
    # xdist workers forward their reports to the controller
    if hasattr(config, "workerinput"):
        return
    config.pluginmanager.register(
        FlakinessPlugin(config=config, reporter=build_reporter(config)),
        PLUGIN_NAME,
    )


def build_reporter(config: pytest.Config) -> FlakyTestsReporter:
    """Create the reporter from command-line options and ini settings."""
    output_file = config.getoption("flakiness_report") or config.getini(
        "flakiness_report"
    )

    def on_report(report: Report) -> None:
        config.hook.pytest_flakiness_report(report=report, config=config)

    return FlakyTestsReporter(
        config=ReporterConfig(
            output_file=Path(output_file) if output_file else None,
            on_report=on_report,
            disable_console_output=(
                config.getoption("flakiness_disable_console")
                or config.getini("flakiness_disable_console")
            ),
        )
    )


def effective_retry_limit(config: pytest.Config) -> int:
    """Return the configured number of reruns, 0 without a rerun plugin."""
    reruns = config.getoption("reruns", default=None)
    if reruns is None:
        try:
            reruns = config.getini("reruns")
        except ValueError:
            reruns = 0
    return int(reruns or 0)


@dataclass(kw_only=True)
class FlakinessPlugin:
    """Feeds a session's test reports to the flaky tests reporter."""

    config: pytest.Config
    reporter: FlakyTestsReporter
    recorder: OutcomeRecorder = field(default_factory=OutcomeRecorder)

    def pytest_sessionstart(self, session: pytest.Session) -> None:
        self.reporter.check_configuration(effective_retry_limit(self.config))

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        self.recorder.record(report)

    def pytest_sessionfinish(self, session: pytest.Session) -> None:
        log.info("Test session finished, building flaky test report")
        self.reporter.finalize_report(self.recorder.to_tree())
