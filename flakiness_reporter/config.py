"""Configuration for the flaky tests reporter."""

from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from flakiness_reporter.models.report import Report


class ReporterConfig(BaseModel):
    """Configuration for one run of the flaky tests reporter."""

    model_config = ConfigDict(frozen=True)

    # Written only when flaky tests were found
    output_file: Path | None = None
    # Always called once at the end of the run, even with an empty report
    on_report: Callable[[Report], None] | None = None
    disable_console_output: bool = False
