"""Record per-test outcomes from pytest reports and build the result tree."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

import pytest

from flakiness_reporter.models.outcome import ExecutionOutcome, FinalState
from flakiness_reporter.models.tree import ParentNode, ResultTree

log = logging.getLogger(__name__)

NODE_ID_SEPARATOR = "::"


@dataclass(kw_only=True)
class _Attempts:
    count: int = 0
    final_state: FinalState = "other"


@dataclass(kw_only=True)
class OutcomeRecorder:
    """Collects the attempts of every test of a session.

    Every attempt of a test, retries included, starts with a setup report, so
    the retry count is the number of setup reports minus one. The final state
    is the state reached by the last attempt.
    """

    _tests: dict[str, _Attempts] = field(default_factory=dict)

    def record(self, report: pytest.TestReport) -> None:
        """Fold one phase report into the attempts of its test."""
        attempts = self._tests.setdefault(report.nodeid, _Attempts())

        if report.when == "setup":
            attempts.count += 1
            attempts.final_state = "other"

        if (state := _phase_state(report)) is not None:
            attempts.final_state = state

    def outcome_of(self, nodeid: str) -> ExecutionOutcome:
        """Return the terminal outcome recorded for ``nodeid``."""
        attempts = self._tests[nodeid]
        return ExecutionOutcome(
            final_state=attempts.final_state,
            retry_count=max(attempts.count - 1, 0),
        )

    def to_tree(self) -> ResultTree:
        """Build a result tree from the recorded node IDs.

        ``path/test_mod.py::TestOuter::TestInner::test_one[param]`` becomes
        module ``path/test_mod.py``, suites ``TestOuter`` > ``TestInner`` and
        test ``test_one[param]``.
        """
        tree = ResultTree()
        modules: dict[str, ParentNode] = {}
        suites: dict[tuple[int, str], ParentNode] = {}

        for nodeid in self._tests:
            module_name, *suite_names, test_name = split_nodeid(nodeid)

            if (parent := modules.get(module_name)) is None:
                parent = modules[module_name] = tree.add_module(module_name)

            for suite_name in suite_names:
                key = (parent.node_id, suite_name)
                if (suite := suites.get(key)) is None:
                    suite = suites[key] = tree.add_suite(suite_name, parent)
                parent = suite

            tree.add_test(test_name, parent, self.outcome_of(nodeid))

        log.debug("Built result tree with %d node(s)", len(tree))
        return tree


def split_nodeid(nodeid: str) -> Sequence[str]:
    """Split a pytest node ID into module, suite and test name parts.

    Parametrization IDs are not escaped by pytest and may contain the
    separator, so the ``[...]`` suffix is kept whole on the test name. A node
    ID without separator, as reported for module-level errors, is used both
    as module and as test name.
    """
    path, bracket, params = nodeid.partition("[")
    parts = path.split(NODE_ID_SEPARATOR)
    if len(parts) == 1:
        return [nodeid, nodeid]
    parts[-1] += bracket + params
    return parts


def _phase_state(report: pytest.TestReport) -> FinalState | None:
    """Map the report of one phase to the state it settles, if any."""
    # Reports superseded by a rerun are failures of that attempt
    if report.outcome == "rerun":
        return "failed"
    if report.when == "setup":
        if report.failed:
            return "failed"
        if report.skipped:
            return "skipped"
        return None
    if report.when == "call":
        if report.passed:
            return "passed"
        if report.failed:
            return "failed"
        if report.skipped:
            return "skipped"
        return "other"
    if report.failed:
        return "failed"
    return None
