"""Tests for the pytest outcome recorder."""

from collections.abc import Sequence

import pytest

from flakiness_reporter.models.outcome import ExecutionOutcome
from flakiness_reporter.models.tree import ModuleNode, SuiteNode
from flakiness_reporter.recorder import OutcomeRecorder, split_nodeid
from flakiness_reporter.walker import enumerate_tests


def make_report(nodeid: str, when: str, outcome: str) -> pytest.TestReport:
    """Create a phase report as pytest emits it."""
    return pytest.TestReport(
        nodeid=nodeid,
        location=(nodeid.split("::")[0], 0, nodeid),
        keywords={},
        outcome=outcome,  # type: ignore[arg-type]
        longrepr=None,
        when=when,  # type: ignore[arg-type]
    )


def record_attempts(
    recorder: OutcomeRecorder, nodeid: str, attempts: Sequence[Sequence[str]]
) -> None:
    """Record setup, call and teardown outcomes for each attempt."""
    for phases in attempts:
        for when, outcome in zip(("setup", "call", "teardown"), phases, strict=False):
            recorder.record(make_report(nodeid, when, outcome))


@pytest.mark.parametrize(
    ("attempts", "expected"),
    [
        ([("passed", "passed", "passed")], ExecutionOutcome(final_state="passed")),
        (
            [("passed", "rerun", "passed"), ("passed", "passed", "passed")],
            ExecutionOutcome(final_state="passed", retry_count=1),
        ),
        (
            [
                ("passed", "rerun", "passed"),
                ("rerun",),
                ("passed", "passed", "passed"),
            ],
            ExecutionOutcome(final_state="passed", retry_count=2),
        ),
        (
            [("passed", "rerun", "passed"), ("passed", "failed", "passed")],
            ExecutionOutcome(final_state="failed", retry_count=1),
        ),
        ([("skipped", "passed")], ExecutionOutcome(final_state="skipped")),
        ([("failed", "passed")], ExecutionOutcome(final_state="failed")),
        (
            [("passed", "passed", "failed")],
            ExecutionOutcome(final_state="failed"),
        ),
        ([("passed", "skipped", "passed")], ExecutionOutcome(final_state="skipped")),
        ([("passed",)], ExecutionOutcome(final_state="other")),
    ],
)
def test_outcome_of_attempts(
    attempts: Sequence[Sequence[str]], expected: ExecutionOutcome
) -> None:
    """Derives the final state of the last attempt and the retry count."""
    recorder = OutcomeRecorder()

    record_attempts(recorder, "test_mod.py::test_one", attempts)

    assert recorder.outcome_of("test_mod.py::test_one") == expected


def test_to_tree_rebuilds_hierarchy() -> None:
    """Node IDs become modules, nested suites and tests."""
    recorder = OutcomeRecorder()
    passed = [("passed", "passed", "passed")]
    record_attempts(recorder, "tests/test_a.py::TestOuter::TestInner::test_x", passed)
    record_attempts(recorder, "tests/test_a.py::TestOuter::test_y", passed)
    record_attempts(recorder, "tests/test_b.py::test_z[1-2]", passed)
    record_attempts(recorder, "tests/test_a.py::test_w", passed)

    tree = recorder.to_tree()

    assert [m.name for m in tree.modules] == ["tests/test_a.py", "tests/test_b.py"]
    identities = [
        (i.module_name, i.suite_path, i.test_name) for _, i in enumerate_tests(tree)
    ]
    assert identities == [
        ("tests/test_a.py", ("TestOuter", "TestInner"), "test_x"),
        ("tests/test_a.py", ("TestOuter",), "test_y"),
        ("tests/test_a.py", (), "test_w"),
        ("tests/test_b.py", (), "test_z[1-2]"),
    ]


def test_to_tree_deduplicates_suites_per_parent() -> None:
    """Equally named suites under different parents stay distinct."""
    recorder = OutcomeRecorder()
    passed = [("passed", "passed", "passed")]
    record_attempts(recorder, "test_a.py::TestSuite::test_one", passed)
    record_attempts(recorder, "test_a.py::TestSuite::test_two", passed)
    record_attempts(recorder, "test_b.py::TestSuite::test_one", passed)

    tree = recorder.to_tree()

    suites = [
        tree.parent_of(test)
        for module in tree.modules
        for test in tree.tests_of(module)
    ]
    assert all(isinstance(s, SuiteNode) for s in suites)
    assert len({s.node_id for s in suites}) == 2
    assert all(isinstance(m, ModuleNode) for m in tree.modules)


def test_to_tree_carries_outcomes() -> None:
    """Tests in the tree carry the recorded outcome."""
    recorder = OutcomeRecorder()
    record_attempts(
        recorder,
        "test_a.py::test_flaky",
        [("passed", "rerun", "passed"), ("passed", "passed", "passed")],
    )

    tree = recorder.to_tree()

    [test] = list(tree.tests_of(tree.modules[0]))
    assert test.outcome == ExecutionOutcome(final_state="passed", retry_count=1)


@pytest.mark.parametrize(
    ("nodeid", "expected"),
    [
        ("test_a.py::test_one", ["test_a.py", "test_one"]),
        ("test_a.py::TestA::test_one", ["test_a.py", "TestA", "test_one"]),
        ("test_a.py", ["test_a.py", "test_a.py"]),
        ("test_a.py::test_one[a::b]", ["test_a.py", "test_one[a::b]"]),
        (
            "test_a.py::TestA::test_one[x-a::b::c]",
            ["test_a.py", "TestA", "test_one[x-a::b::c]"],
        ),
    ],
)
def test_split_nodeid(nodeid: str, expected: list[str]) -> None:
    """Splits node IDs on the pytest separator."""
    assert list(split_nodeid(nodeid)) == expected
