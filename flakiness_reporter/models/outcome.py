"""Models for terminal test execution outcomes."""

from dataclasses import dataclass
from typing import Literal

FinalState = Literal["passed", "failed", "skipped", "other"]


@dataclass(frozen=True, kw_only=True)
class ExecutionOutcome:
    """Terminal result of a single test, as supplied by the host runner.

    ``retry_count`` is the number of re-executions after the first attempt.
    """

    final_state: FinalState
    retry_count: int = 0
