"""Hierarchical run-result tree: modules, nested suites and tests."""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Protocol

from flakiness_reporter.models.outcome import ExecutionOutcome


@dataclass(frozen=True, kw_only=True)
class ModuleNode:
    """Root of a tree, usually one test file."""

    node_id: int
    name: str


@dataclass(frozen=True, kw_only=True)
class SuiteNode:
    """Labelled group of tests, possibly nested in another suite."""

    node_id: int
    name: str
    parent_id: int


@dataclass(frozen=True, kw_only=True)
class TestNode:
    """Leaf test carrying its terminal outcome."""

    __test__ = False

    node_id: int
    name: str
    parent_id: int
    outcome: ExecutionOutcome


type ResultNode = ModuleNode | SuiteNode | TestNode
type ParentNode = ModuleNode | SuiteNode


class ResultTreeView(Protocol):
    """Read-only access to a completed run's result tree."""

    @property
    def modules(self) -> Sequence[ModuleNode]:
        """Root modules of the run, in run order."""
        ...

    def parent_of(self, node: SuiteNode | TestNode) -> ResultNode:
        """Return the node ``node.parent_id`` refers to."""
        ...

    def tests_of(self, module: ModuleNode) -> Iterator[TestNode]:
        """Iterate over every leaf test under ``module``."""
        ...


class ResultTree:
    """In-memory result tree built bottom-up by a host adapter.

    Nodes are stored in a flat list and reference their parent by index, so
    the tree holds no cyclic object references.
    """

    def __init__(self) -> None:
        self._nodes: list[ResultNode] = []
        self._modules: list[ModuleNode] = []
        self._children: dict[int, list[int]] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    @property
    def modules(self) -> Sequence[ModuleNode]:
        return tuple(self._modules)

    def add_module(self, name: str) -> ModuleNode:
        """Add a new root module."""
        module = ModuleNode(node_id=len(self._nodes), name=name)
        self._nodes.append(module)
        self._modules.append(module)
        return module

    def add_suite(self, name: str, parent: ParentNode) -> SuiteNode:
        """Add a suite under a module or another suite."""
        suite = SuiteNode(
            node_id=len(self._nodes), name=name, parent_id=parent.node_id
        )
        self._append_child(suite)
        return suite

    def add_test(
        self, name: str, parent: ParentNode, outcome: ExecutionOutcome
    ) -> TestNode:
        """Add a leaf test under a module or suite."""
        test = TestNode(
            node_id=len(self._nodes),
            name=name,
            parent_id=parent.node_id,
            outcome=outcome,
        )
        self._append_child(test)
        return test

    def parent_of(self, node: SuiteNode | TestNode) -> ResultNode:
        """Return the parent of ``node``.

        Raises:
            LookupError: If the parent index does not exist in this tree

        """
        if not 0 <= node.parent_id < len(self._nodes):
            raise LookupError(
                f"Node {node.name!r} refers to unknown parent #{node.parent_id}"
            )
        return self._nodes[node.parent_id]

    def tests_of(self, module: ModuleNode) -> Iterator[TestNode]:
        """Iterate depth-first over tests under ``module`` in insertion order."""
        pending = [module.node_id]
        while pending:
            node = self._nodes[pending.pop()]
            if isinstance(node, TestNode):
                yield node
                continue
            pending.extend(reversed(self._children.get(node.node_id, [])))

    def _append_child(self, node: SuiteNode | TestNode) -> None:
        self._nodes.append(node)
        self._children.setdefault(node.parent_id, []).append(node.node_id)
