"""Normalization and validation of a workflow definition.

`WorkflowGraph` turns an unordered list of declared edges into:

- an adjacency map (vertex -> ordered successors, insertion order preserved)
- a degree table (vertex -> input/output transition counts)
- the canonical transition list, including the START/END hookup synthesized
  for roots and leaves

and then walks the adjacency depth-first from START to label nodes as
Split / Parallel / Merge, rejecting shapes whose labels would contradict each
other.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from state_workflow.errors import (
    ConflictingLabelsError,
    EmptyWorkflowError,
    ParallelSuccessorInvalidError,
    StructuralMismatchError,
)
from state_workflow.node import Conditional, Node, Vertex
from state_workflow.transition import (
    MERGE,
    PARALLEL,
    SPLIT,
    Transition,
    WorkflowStateName,
)

logger = logging.getLogger(__name__)

START = WorkflowStateName.START
END = WorkflowStateName.END


@dataclass(slots=True)
class TransitionCounter:
    """Number of input and output transitions of a single vertex."""

    input_transitions: int = 0
    output_transitions: int = 0


class WorkflowGraph:
    """Adjacency, degree table and canonical transitions of a workflow."""

    def __init__(self) -> None:
        self.adjacency: dict[Vertex, list[Vertex]] = {}
        self.counters: dict[Vertex, TransitionCounter] = {}
        self.transitions: list[Transition] = []
        self.compiled_states: list[Vertex] = []

    def build(self, edges: Iterable[Transition], nodes: Iterable[Node] = ()) -> None:
        """Rebuild adjacency, degrees and canonical transitions from scratch."""

        self.adjacency.clear()
        for edge in edges:
            source, target = edge.from_state, edge.to_state
            self._ensure(source)
            self._ensure(target)
            if isinstance(source, Conditional):
                # A declared edge out of a conditional is implied by its expected set.
                self._add_expected(source)
            elif isinstance(target, Conditional):
                self._add_expected(target)
                self._append(source, target)
            else:
                self._append(source, target)

        for node in nodes:
            self._ensure(node)

        self._count_transitions()
        self._hook_start()
        self._hook_end()

        self.transitions = [
            Transition(from_state=source, to_state=target)
            for source, targets in self.adjacency.items()
            for target in targets
        ]
        logger.debug(
            "Workflow graph rebuilt",
            extra={"vertices": len(self.adjacency), "transitions": len(self.transitions)},
        )

    def _ensure(self, state: Vertex) -> None:
        self.adjacency.setdefault(state, [])

    def _append(self, source: Vertex, target: Vertex) -> None:
        targets = self.adjacency[source]
        if target not in targets:
            targets.append(target)

    def _add_expected(self, conditional: Conditional) -> None:
        for expected in conditional.expected_nodes:
            self._ensure(expected)
            self._append(conditional, expected)

    def _count_transitions(self) -> None:
        self.counters = {state: TransitionCounter() for state in self.adjacency}
        for state, targets in self.adjacency.items():
            self.counters[state].output_transitions = len(targets)
            for target in targets:
                self.counters[target].input_transitions += 1

    def _hook_start(self) -> None:
        if START in self.counters:
            return
        first_states = [
            state for state, counter in self.counters.items() if counter.input_transitions == 0
        ]
        self.adjacency[START] = first_states
        self.counters[START] = TransitionCounter(0, len(first_states))
        for state in first_states:
            self.counters[state].input_transitions += 1

    def _hook_end(self) -> None:
        if END in self.counters:
            return
        last_states = [
            state
            for state, counter in self.counters.items()
            if counter.output_transitions == 0 and state is not START
        ]
        self.adjacency.setdefault(END, [])
        for state in last_states:
            self.adjacency[state].append(END)
            self.counters[state].output_transitions += 1
        self.counters[END] = TransitionCounter(len(last_states), 0)

    def compile(self) -> None:
        """Label every reachable node and validate the workflow shape."""

        self.compiled_states.clear()
        for state in self.adjacency:
            if isinstance(state, Node):
                state.labels.clear()
        self._compile_state(START)
        logger.debug("Workflow compiled", extra={"compiled_states": len(self.compiled_states)})

    def _compile_state(self, state: Vertex) -> None:
        is_split = self.counters[state].output_transitions > 1 and not isinstance(
            state, Conditional
        )
        is_merge = False
        is_parallel = False

        if isinstance(state, Node):
            is_merge = state.has_label(MERGE)
            is_parallel = state.has_label(PARALLEL)
            _reject_conflicting_labels(
                state, split=is_split, parallel=is_parallel, merge=is_merge
            )
            if is_merge:
                self._check_merge_matches_split(state)
            if is_split:
                state.set_labels(SPLIT)
                logger.debug("Labeled node", extra={"node": state.name, "label": SPLIT})

        # Marked before descending so back-edges through conditionals terminate.
        self.compiled_states.append(state)

        for next_state in self.adjacency[state]:
            if next_state in self.compiled_states:
                continue
            if isinstance(next_state, Node):
                if is_split or is_parallel:
                    next_state.set_labels(PARALLEL)
                if (
                    self.counters[next_state].input_transitions > 1
                    and not self._has_conditional_predecessor(next_state)
                ):
                    next_state.labels.clear()
                    next_state.set_labels(MERGE)
                    logger.debug("Labeled node", extra={"node": next_state.name, "label": MERGE})
            if is_parallel:
                if isinstance(next_state, WorkflowStateName):
                    raise ParallelSuccessorInvalidError(
                        f"The state {state.graph_name} labeled as 'Parallel' cannot have a "
                        f"WorkflowStateName '{next_state.graph_name}' as an adjacent node"
                    )
                if not next_state.has_label(MERGE) and not next_state.has_label(PARALLEL):
                    raise ParallelSuccessorInvalidError(
                        "A node labeled as 'Parallel' must have a node labeled as 'Merge' "
                        "or 'Parallel' as an adjacent node"
                    )
            if next_state is END:
                return
            self._compile_state(next_state)

    def _check_merge_matches_split(self, merge: Node) -> None:
        split = next((s for s in self.compiled_states if s.has_label(SPLIT)), None)
        if split is None:
            return
        merge_inputs = self.counters[merge].input_transitions
        split_outputs = self.counters[split].output_transitions
        if merge_inputs != split_outputs:
            raise StructuralMismatchError(merge=merge.graph_name, split=split.graph_name)

    def _has_conditional_predecessor(self, state: Vertex) -> bool:
        return any(
            t.to_state == state and isinstance(t.from_state, Conditional)
            for t in self.transitions
        )

    def successors(self, state: Vertex) -> list[Vertex]:
        return list(self.adjacency.get(state, ()))

    def start_candidates(self) -> list[Node]:
        return [state for state in self.adjacency.get(START, ()) if isinstance(state, Node)]

    def find_transition(self, source: Vertex, target: Vertex) -> Transition | None:
        for transition in self.transitions:
            if transition.from_state == source and transition.to_state == target:
                return transition
        return None

    def last_node(self) -> Node:
        """Most recent node adjacent to END, else the last node without successors."""

        if not self.adjacency:
            raise EmptyWorkflowError("No nodes added to the workflow")

        ending = [
            state
            for state, targets in self.adjacency.items()
            if isinstance(state, Node) and END in targets
        ]
        if ending:
            return ending[-1]

        leaves = [
            state
            for state, counter in self.counters.items()
            if isinstance(state, Node) and counter.output_transitions == 0
        ]
        if leaves:
            return leaves[-1]
        raise EmptyWorkflowError("No nodes added to the workflow")


def _reject_conflicting_labels(node: Node, *, split: bool, parallel: bool, merge: bool) -> None:
    if parallel and split:
        raise ConflictingLabelsError(
            f"A parallel node '{node.graph_name}' cannot be a split node in the same flow"
        )
    if merge and split:
        raise ConflictingLabelsError(
            f"A merge node '{node.graph_name}' cannot be a split node in the same flow"
        )
    if merge and parallel:
        raise ConflictingLabelsError(
            f"A merge node '{node.graph_name}' cannot be a parallel node in the same flow"
        )
