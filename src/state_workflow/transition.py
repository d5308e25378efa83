"""Vertices, transitions and computed transitions.

Anything that can occupy a vertex of the workflow graph satisfies the
`TransitionState` protocol: a display name for the graph, a set of labels and
the last input/output observed while running. Step nodes and conditional
nodes live in `state_workflow.node`; the START and END sentinels live here.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from state_workflow.errors import InvalidArgumentError, InvalidTransitionError

SPLIT = "Split"
MERGE = "Merge"
PARALLEL = "Parallel"
CONDITIONAL = "Conditional"


@runtime_checkable
class TransitionState(Protocol):
    """Common contract of every workflow vertex."""

    @property
    def graph_name(self) -> str: ...

    @property
    def labels(self) -> list[str]: ...

    def has_label(self, label: str) -> bool: ...

    @property
    def input(self) -> Any: ...

    @property
    def output(self) -> Any: ...


class WorkflowStateName(str, Enum):
    """The START and END sentinels of every workflow."""

    START = "_start_"
    END = "_end_"

    @property
    def graph_name(self) -> str:
        return self.value

    @property
    def labels(self) -> list[str]:
        return [self.value]

    def has_label(self, label: str) -> bool:
        return label == self.value

    @property
    def input(self) -> None:
        return None

    @property
    def output(self) -> None:
        return None


@dataclass(frozen=True, slots=True)
class Transition:
    """A directed arc between two vertices.

    Equality is structural on the (from_state, to_state) pair.
    """

    from_state: TransitionState
    to_state: TransitionState

    def __post_init__(self) -> None:
        if self.from_state is None or self.to_state is None:
            raise InvalidArgumentError("Transition states cannot be None")
        if self.from_state is WorkflowStateName.END:
            raise InvalidTransitionError("Cannot transition from an END state")
        if self.to_state is WorkflowStateName.START:
            raise InvalidTransitionError("Cannot transition to a START state")
        if self.from_state is WorkflowStateName.START and self.to_state is WorkflowStateName.END:
            raise InvalidTransitionError("Cannot transition from START to END state")

    @classmethod
    def of(cls, from_state: TransitionState, to_state: TransitionState) -> Transition:
        return cls(from_state=from_state, to_state=to_state)

    def __str__(self) -> str:
        return f"{self.from_state.graph_name} -> {self.to_state.graph_name}"


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True, slots=True)
class ComputedTransition:
    """A transition observed while running, stamped with its execution order.

    `payload` is the output of the `from` vertex at the time of recording.
    """

    order: int
    transition: Transition
    payload: Any = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    computed_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        if self.transition is None:
            raise InvalidArgumentError("Computed transition requires a transition")
        if self.order <= 0:
            raise InvalidArgumentError("Transition order must be a positive integer")

    @classmethod
    def from_transition(cls, order: int, transition: Transition) -> ComputedTransition:
        return cls(order=order, transition=transition, payload=transition.from_state.output)

    def to_json(self) -> dict[str, object]:
        payload = self.payload
        if not isinstance(payload, (str, int, float, bool, type(None))):
            payload = repr(payload)
        return {
            "id": str(self.id),
            "order": self.order,
            "from": self.transition.from_state.graph_name,
            "to": self.transition.to_state.graph_name,
            "computed_at": self.computed_at.isoformat(),
            "payload": payload,
        }
