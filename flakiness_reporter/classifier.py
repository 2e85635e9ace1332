"""Flakiness classification of a single test outcome."""

from flakiness_reporter.models.outcome import ExecutionOutcome


def classify(outcome: ExecutionOutcome) -> int | None:
    """Return the retry count if the test was flaky, otherwise None.

    A test is flaky when it passed, but only after at least one retry. Failed
    or skipped tests, and tests passing on the first attempt, are not.
    """
    if outcome.final_state == "passed" and outcome.retry_count > 0:
        return outcome.retry_count
    return None


def is_flaky(outcome: ExecutionOutcome) -> bool:
    """Check whether the outcome is that of a flaky test."""
    return classify(outcome) is not None
