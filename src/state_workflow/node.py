"""Step nodes and conditional nodes.

A `Node` wraps a function over the shared stateful bean. A `Conditional`
wraps a selector that picks the next `Node` among a declared set of expected
nodes. Both remember the last input/output they observed; that scratch space
and the node labels are written only by the workflow while compiling and
running.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar, Union

from state_workflow.errors import (
    InvalidArgumentError,
    InvalidBranchError,
    NullInputError,
)
from state_workflow.transition import CONDITIONAL, WorkflowStateName

S = TypeVar("S")
R = TypeVar("R")


class Node(Generic[S, R]):
    """A single unit of work: applies `function` to the stateful bean.

    Two nodes are equal when they share the same name and the same function.
    """

    def __init__(self, name: str, function: Callable[[S], R]) -> None:
        if name is None or not name.strip():
            raise InvalidArgumentError("Node name cannot be empty")
        if function is None:
            raise InvalidArgumentError("Node function cannot be None")
        self._name = name
        self._function = function
        self._labels: list[str] = []
        self._input: S | None = None
        self._output: R | None = None

    @classmethod
    def from_function(cls, name: str, function: Callable[[S], R]) -> Node[S, R]:
        return cls(name, function)

    @property
    def name(self) -> str:
        return self._name

    @property
    def graph_name(self) -> str:
        return self._name.lower()

    @property
    def labels(self) -> list[str]:
        return self._labels

    def set_labels(self, *labels: str) -> None:
        """Append labels, skipping the ones the node already carries."""

        for label in labels:
            if label not in self._labels:
                self._labels.append(label)

    def get_label(self, label: str) -> str | None:
        return label if label in self._labels else None

    def has_label(self, label: str) -> bool:
        return label in self._labels

    @property
    def input(self) -> S | None:
        return self._input

    @property
    def output(self) -> R | None:
        return self._output

    def execute(self, state: S) -> R:
        if state is None:
            raise NullInputError("Function input cannot be None")
        self._input = state
        output = self._function(state)
        self._output = output
        return output

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Node):
            return NotImplemented
        return self._name == other._name and self._function == other._function

    def __hash__(self) -> int:
        return hash((self._name, self._function))

    def __repr__(self) -> str:
        return f"Node(name={self._name!r}, function={self._function!r})"


class Conditional(Generic[S]):
    """A dynamic branch: `condition` selects the next node among `expected_nodes`.

    A conditional is always labeled `Conditional`. Its output is the name of
    the node chosen by the last evaluation.
    """

    def __init__(
        self,
        name: str | None,
        condition: Callable[[S], Node[S, Any] | None],
        expected_nodes: Sequence[Node[S, Any]],
    ) -> None:
        if condition is None:
            raise InvalidArgumentError("Condition function cannot be None")
        if expected_nodes is None:
            raise InvalidArgumentError(
                "The list of nodes expected from the condition function cannot be None"
            )
        if not expected_nodes:
            raise InvalidArgumentError(
                "The list of nodes expected from the condition function cannot be empty"
            )
        self._name = name
        self._condition = condition
        self._expected_nodes: tuple[Node[S, Any], ...] = tuple(expected_nodes)
        self._input: S | None = None
        self._output: Node[S, Any] | None = None

    @classmethod
    def eval(
        cls,
        name: str | None,
        condition: Callable[[S], Node[S, Any] | None],
        expected_nodes: Sequence[Node[S, Any]],
    ) -> Conditional[S]:
        return cls(name, condition, expected_nodes)

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def expected_nodes(self) -> tuple[Node[S, Any], ...]:
        return self._expected_nodes

    @property
    def graph_name(self) -> str:
        return (self._name or CONDITIONAL).lower()

    @property
    def labels(self) -> list[str]:
        return [CONDITIONAL]

    def has_label(self, label: str) -> bool:
        return label == CONDITIONAL

    @property
    def input(self) -> S | None:
        return self._input

    @property
    def output(self) -> str | None:
        if self._output is None:
            return None
        return self._output.name

    def evaluate(self, state: S) -> Node[S, Any] | None:
        """Run the selector and check its result against the expected nodes.

        A `None` result is passed through; the executor decides what to do
        with a branch that selects nothing.
        """

        if state is None:
            raise NullInputError("Function input cannot be None")
        self._input = state
        result = self._condition(state)
        if result is not None and result not in self._expected_nodes:
            observed = result.name if isinstance(result, Node) else repr(result)
            raise InvalidBranchError(
                expected=tuple(node.name for node in self._expected_nodes),
                observed=observed,
            )
        self._output = result
        return result

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Conditional):
            return NotImplemented
        return (
            self._condition == other._condition
            and self._expected_nodes == other._expected_nodes
            and self._name == other._name
        )

    def __hash__(self) -> int:
        return hash((self._condition, self._expected_nodes, self._name))

    def __repr__(self) -> str:
        names = [node.name for node in self._expected_nodes]
        return f"Conditional(name={self._name!r}, expected_nodes={names})"


Vertex = Union[Node[Any, Any], Conditional[Any], WorkflowStateName]
"""Closed set of things that can occupy a vertex of the workflow graph."""
