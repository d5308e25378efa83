"""Test configuration and fixtures."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from state_workflow import Node, StateWorkflow, Transition

from support import Counter, adder


@pytest.fixture
def bean() -> Counter:
    return Counter()


@pytest.fixture
def node1() -> Node[Counter, str]:
    return Node("node1", adder("Node1", 1))


@pytest.fixture
def node2() -> Node[Counter, str]:
    return Node("node2", adder("Node2", 2))


@pytest.fixture
def node3() -> Node[Counter, str]:
    return Node("node3", adder("Node3", 3))


@pytest.fixture
def node4() -> Node[Counter, str]:
    return Node("node4", adder("Node4", 4))


@pytest.fixture
def linear_workflow(
    bean: Counter,
    node1: Node[Counter, str],
    node2: Node[Counter, str],
    node3: Node[Counter, str],
) -> StateWorkflow[Counter]:
    """node1 -> node2 -> node3, with START/END synthesized."""

    return StateWorkflow(
        bean,
        [Transition(node1, node2), Transition(node2, node3)],
        [node1, node2, node3],
    )


@pytest.fixture
def restore_root_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
