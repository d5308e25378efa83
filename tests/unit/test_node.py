"""Unit tests for step nodes and conditional nodes."""

from __future__ import annotations

import pytest

from state_workflow.errors import InvalidArgumentError, InvalidBranchError, NullInputError
from state_workflow.node import Conditional, Node
from support import Counter, adder


def test_node_requires_a_name() -> None:
    with pytest.raises(InvalidArgumentError, match="Node name cannot be empty"):
        Node("   ", adder("x", 1))


def test_node_execute_records_input_and_output() -> None:
    node = Node("Node1", adder("Node1", 5))
    bean = Counter()

    result = node.execute(bean)

    assert result == "Node1: processed function"
    assert bean.value == 5
    assert node.input is bean
    assert node.output == "Node1: processed function"
    assert node.graph_name == "node1"


def test_node_execute_rejects_missing_state() -> None:
    calls: list[object] = []

    def record(state: object) -> None:
        calls.append(state)

    node = Node("node1", record)

    with pytest.raises(NullInputError, match="Function input cannot be None"):
        node.execute(None)
    assert calls == []
    assert node.input is None


def test_node_labels_are_appended_once() -> None:
    node = Node("node1", adder("Node1", 1))
    assert node.labels == []

    node.set_labels("Parallel")
    node.set_labels("Parallel", "Merge")

    assert node.labels == ["Parallel", "Merge"]
    assert node.has_label("Merge")
    assert node.get_label("Merge") == "Merge"
    assert node.get_label("Split") is None


def test_node_equality_is_name_and_function() -> None:
    fn = adder("Node1", 1)

    assert Node("node1", fn) == Node("node1", fn)
    assert hash(Node("node1", fn)) == hash(Node("node1", fn))
    assert Node("node1", fn) != Node("node2", fn)
    assert Node("node1", fn) != Node("node1", adder("Node1", 1))


def test_conditional_requires_expected_nodes() -> None:
    with pytest.raises(InvalidArgumentError, match="cannot be empty"):
        Conditional("check", lambda s: None, [])


def test_conditional_evaluate_returns_expected_node() -> None:
    low = Node("low", adder("Low", 1))
    high = Node("high", adder("High", 1))
    cond = Conditional.eval("Greater Than 6?", lambda s: high if s.value > 6 else low, [low, high])
    bean = Counter(value=7)

    assert cond.evaluate(bean) is high
    assert cond.input is bean
    assert cond.output == "high"
    assert cond.labels == ["Conditional"]
    assert cond.has_label("Conditional")
    assert cond.graph_name == "greater than 6?"


def test_conditional_without_name_uses_default_graph_name() -> None:
    only = Node("only", adder("Only", 1))
    cond = Conditional(None, lambda s: only, [only])

    assert cond.graph_name == "conditional"
    assert cond.output is None


def test_conditional_rejects_unexpected_node() -> None:
    expected = [Node("node2", adder("Node2", 2)), Node("node4", adder("Node4", 4))]
    stray = Node("node1", adder("Node1", 1))
    cond = Conditional("check", lambda s: stray, expected)

    with pytest.raises(InvalidBranchError) as excinfo:
        cond.evaluate(Counter())

    assert excinfo.value.expected == ("node2", "node4")
    assert excinfo.value.observed == "node1"
    assert "Expected one of: ['node2', 'node4'] but got: node1 instead." in str(excinfo.value)


def test_conditional_evaluate_rejects_missing_state() -> None:
    only = Node("only", adder("Only", 1))
    cond = Conditional("check", lambda s: only, [only])

    with pytest.raises(NullInputError):
        cond.evaluate(None)
