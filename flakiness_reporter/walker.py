"""Enumerate leaf tests of a result tree with their fully-qualified identity."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from flakiness_reporter.models.tree import (
    ModuleNode,
    ResultTreeView,
    SuiteNode,
    TestNode,
)

log = logging.getLogger(__name__)


class TreeShapeError(ValueError):
    """Raised when a test cannot be traced back to its module."""


@dataclass(frozen=True, kw_only=True)
class TestIdentity:
    """Where a test lives within a run.

    For ``test_one`` in ``class TestOuter`` > ``class TestInner`` in
    ``test_mod.py`` this is::

        TestIdentity(
            module_name="test_mod.py",
            suite_path=("TestOuter", "TestInner"),
            test_name="test_one",
        )
    """

    __test__ = False

    module_name: str
    suite_path: tuple[str, ...] = ()
    test_name: str


def enumerate_tests(tree: ResultTreeView) -> Iterator[tuple[TestNode, TestIdentity]]:
    """Lazily yield every leaf test of every module with its identity.

    Raises:
        TreeShapeError: If a test's ancestry does not lead back to a module

    """
    for module in tree.modules:
        for test in tree.tests_of(module):
            yield test, resolve_identity(tree, test)


def resolve_identity(tree: ResultTreeView, test: TestNode) -> TestIdentity:
    """Walk from ``test`` up to its module, collecting suite labels.

    Labels are gathered innermost first and reversed, so ``suite_path`` reads
    outer to inner. A test placed directly in a module gets an empty path.

    Raises:
        TreeShapeError: If a parent is missing or is a test, the parent links
            form a cycle, or the module has no name

    """
    labels: list[str] = []
    visited = {test.node_id}
    node: SuiteNode | TestNode = test

    while True:
        try:
            parent = tree.parent_of(node)
        except LookupError as e:
            raise TreeShapeError(
                f"Test {test.name!r} has no resolvable module ancestor: {e}"
            ) from e

        if parent.node_id in visited:
            raise TreeShapeError(
                f"Cycle in parent links above test {test.name!r} "
                f"at node #{parent.node_id}"
            )
        visited.add(parent.node_id)

        match parent:
            case ModuleNode(name=module_name):
                if not module_name:
                    raise TreeShapeError(
                        f"Module #{parent.node_id} of test {test.name!r} has no name"
                    )
                labels.reverse()
                return TestIdentity(
                    module_name=module_name,
                    suite_path=tuple(labels),
                    test_name=test.name,
                )
            case SuiteNode(name=suite_name):
                labels.append(suite_name)
                node = parent
            case TestNode():
                raise TreeShapeError(
                    f"Test {test.name!r} is nested under another test "
                    f"{parent.name!r}"
                )
