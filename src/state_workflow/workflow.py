"""Stateful workflow: definition, compilation and execution.

A `StateWorkflow` owns a compiled `WorkflowGraph` and a stateful bean lent by
the caller. Running walks the graph depth-first from the start node in
adjacency order, executes each node against the bean, resolves conditionals
and records every traversed arc as a `ComputedTransition`.

Execution is sequential. Split / Parallel / Merge labels describe the shape
of the graph; they do not make siblings run concurrently.

Node execution and selector evaluation hold a process-wide lock keyed by the
bean, so workflows sharing a bean never touch it at the same time.
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Generic, TypeVar

from state_workflow.compiler import END, WorkflowGraph
from state_workflow.config import WorkflowSettings
from state_workflow.errors import (
    AmbiguousStartError,
    InvalidArgumentError,
    NotRunError,
    NullBranchError,
    RendererNotConfiguredError,
    UnboundStartError,
    WorkflowError,
)
from state_workflow.node import Conditional, Node, Vertex
from state_workflow.rendering import Format, GraphImageGenerator, StyleAttribute
from state_workflow.transition import ComputedTransition, Transition, WorkflowStateName

logger = logging.getLogger(__name__)

T = TypeVar("T")

NodeObserver = Callable[[Node[Any, Any]], None]

_bean_locks: dict[int, threading.RLock] = {}
_bean_locks_guard = threading.Lock()


def bean_lock(bean: object) -> threading.RLock:
    """Process-wide lock serializing every workflow that works on `bean`."""

    key = id(bean)
    with _bean_locks_guard:
        lock = _bean_locks.get(key)
        if lock is None:
            lock = threading.RLock()
            _bean_locks[key] = lock
            try:
                weakref.finalize(bean, _bean_locks.pop, key, None)
            except TypeError:
                # Not weakly referenceable: the lock lives as long as the process.
                logger.debug(
                    "Bean lock kept for process lifetime",
                    extra={"bean_type": type(bean).__name__},
                )
        return lock


class StateWorkflow(Generic[T]):
    """A compiled workflow over a shared stateful bean of type `T`."""

    def __init__(
        self,
        stateful_bean: T,
        edges: Sequence[Transition],
        nodes: Sequence[Node[T, Any]] = (),
        *,
        graph_image_generator: GraphImageGenerator | None = None,
        settings: WorkflowSettings | None = None,
    ) -> None:
        if stateful_bean is None:
            raise InvalidArgumentError("Stateful bean cannot be None")
        if not edges:
            raise InvalidArgumentError("At least one edge must be added to the workflow")

        self._stateful_bean = stateful_bean
        self._nodes: list[Node[T, Any]] = list(dict.fromkeys(nodes))
        self._graph_image_generator = graph_image_generator
        self._settings = settings
        self._start_node: Node[T, Any] | None = None

        self._graph = WorkflowGraph()
        self._computed_transitions: list[ComputedTransition] = []
        self._execution_order = 1
        self._has_run = False

        # The bean is shared with every other workflow built on it. A run holds
        # the graph lock from reset to the last recorded arc, so the graph and
        # the trace only change between runs.
        self._state_lock = bean_lock(stateful_bean)
        self._graph_lock = threading.RLock()

        self._graph.build(edges, self._nodes)
        self._graph.compile()

    @staticmethod
    def builder() -> WorkflowBuilder[Any]:
        return WorkflowBuilder()

    @property
    def stateful_bean(self) -> T:
        return self._stateful_bean

    @property
    def transitions(self) -> list[Transition]:
        """Canonical transitions, including the synthesized START/END hookup."""

        with self._graph_lock:
            return list(self._graph.transitions)

    @property
    def compiled_states(self) -> tuple[Vertex, ...]:
        with self._graph_lock:
            return tuple(self._graph.compiled_states)

    def successors(self, state: Vertex) -> list[Vertex]:
        with self._graph_lock:
            return self._graph.successors(state)

    def in_degree(self, state: Vertex) -> int:
        with self._graph_lock:
            return self._graph.counters[state].input_transitions

    def out_degree(self, state: Vertex) -> int:
        with self._graph_lock:
            return self._graph.counters[state].output_transitions

    def add_node(self, node: Node[T, Any]) -> None:
        """Declare a node. Idempotent; triggers a recompile when the node is new."""

        if node is None:
            raise InvalidArgumentError("Node cannot be None")
        with self._graph_lock:
            if node in self._nodes:
                return
            self._nodes.append(node)
            try:
                self._rebuild()
            except WorkflowError:
                self._nodes.remove(node)
                self._rebuild()
                raise

    def put_edge(
        self,
        from_node: Node[T, Any],
        to: Node[T, Any] | Conditional[T] | WorkflowStateName,
    ) -> None:
        """Add an edge and recompile the workflow.

        Adding an edge that already exists is a no-op. An edge out of
        `from_node` to a previously synthesized END replaces that terminator.
        An explicit edge to END narrows the workflow: every transition out of
        `from_node` and every other transition into END is dropped first.
        """

        transition = Transition(from_state=from_node, to_state=to)
        with self._graph_lock:
            if transition in self._graph.transitions:
                return
            previous = list(self._graph.transitions)
            updated = [
                t for t in previous if not (t.from_state == from_node and t.to_state is END)
            ]
            if to is END:
                updated = [
                    t for t in updated if t.to_state is not END and t.from_state != from_node
                ]
            updated.append(transition)
            try:
                self._graph.build(updated, self._nodes)
                self._graph.compile()
            except WorkflowError:
                self._graph.build(previous, self._nodes)
                self._graph.compile()
                raise
        logger.debug("Edge added", extra={"transition": str(transition)})

    def _rebuild(self) -> None:
        self._graph.build(list(self._graph.transitions), self._nodes)
        self._graph.compile()

    def start_node(self, node: Node[T, Any] | None) -> StateWorkflow[T]:
        self._start_node = node
        return self

    def get_last_node(self) -> Node[T, Any]:
        with self._graph_lock:
            return self._graph.last_node()

    def run(self) -> T:
        return self._run(self._start_node, None)

    def run_stream(self, observer: NodeObserver | None) -> T:
        """Run the workflow, calling `observer` with each node once it has executed."""

        return self._run(self._start_node, observer)

    def _run(self, node: Node[T, Any] | None, observer: NodeObserver | None) -> T:
        with self._graph_lock:
            if not self._graph.compiled_states:
                raise WorkflowError("Workflow cannot run without a compiled graph")
            if not self._graph.transitions:
                raise WorkflowError("Workflow cannot run without edges defined")
            node = self._determine_start_node(node, self._graph.start_candidates())
            if node is None:
                raise UnboundStartError("No start node could be resolved for the workflow")
            if node not in self._graph.adjacency:
                raise InvalidArgumentError(
                    f"Start node '{node.name}' is not part of the workflow"
                )

            self._reset()
            logger.debug(
                "Starting workflow",
                extra={"start_node": node.name, "stream": observer is not None},
            )
            self._run_node(node, observer)
            logger.debug(
                "Workflow finished", extra={"transitions": len(self._computed_transitions)}
            )
        return self._stateful_bean

    @staticmethod
    def _determine_start_node(
        node: Node[T, Any] | None, candidates: list[Node[T, Any]]
    ) -> Node[T, Any] | None:
        if node is not None:
            return node
        if len(candidates) > 1:
            names = [candidate.name for candidate in candidates]
            raise AmbiguousStartError(
                f"Its not possible to determine the start node, multiple start nodes found: {names}"
                "\nPlease specify the start node using the .start_node(node) method"
            )
        if len(candidates) == 1:
            return candidates[0]
        return None

    def _reset(self) -> None:
        self._computed_transitions.clear()
        self._execution_order = 1
        self._has_run = True

    def _run_node(self, node: Node[T, Any], observer: NodeObserver | None) -> None:
        logger.debug("Running node", extra={"node": node.name})
        with self._state_lock:
            node.execute(self._stateful_bean)
        if observer is not None:
            observer(node)

        for next_state in self.successors(node):
            if next_state is END:
                logger.debug("Reached END state", extra={"node": node.name})
                self._compute_transition(node, next_state)
                return
            if isinstance(next_state, Node):
                self._compute_transition(node, next_state)
                self._run_node(next_state, observer)
            elif isinstance(next_state, Conditional):
                self._compute_transition(node, next_state)
                with self._state_lock:
                    chosen = next_state.evaluate(self._stateful_bean)
                if chosen is None:
                    raise NullBranchError(
                        f"Conditional node '{next_state.graph_name}' returned None"
                    )
                logger.debug(
                    "Conditional branch chosen",
                    extra={"conditional": next_state.graph_name, "node": chosen.name},
                )
                self._compute_transition(next_state, chosen)
                self._run_node(chosen, observer)

    def _compute_transition(self, source: Vertex, target: Vertex) -> None:
        with self._graph_lock:
            transition = self._graph.find_transition(source, target)
        if transition is None:
            logger.warning(
                "No declared transition for traversed arc; not recorded",
                extra={"from": source.graph_name, "to": target.graph_name},
            )
            return
        self._computed_transitions.append(
            ComputedTransition.from_transition(self._execution_order, transition)
        )
        self._execution_order += 1

    def was_run(self) -> bool:
        return self._has_run

    def get_computed_transitions(self) -> list[ComputedTransition]:
        with self._graph_lock:
            if not self._has_run:
                raise NotRunError("Workflow has not been run yet. No transitions computed")
            return sorted(self._computed_transitions, key=lambda ct: ct.order)

    def pretty_transitions(self) -> str:
        lines = [
            f"[{ct.transition} {{Order: {ct.order}, ComputedAt: {ct.computed_at.isoformat()}, "
            f"Payload: {ct.payload} }}]"
            for ct in self.get_computed_transitions()
        ]
        return "\n".join(lines) + "\n" if lines else ""

    def _image_path(self, output_path: Path | str | None) -> Path:
        if output_path is not None:
            return Path(output_path)
        settings = self._settings or WorkflowSettings()
        return settings.image_output_path

    def _generator(self) -> GraphImageGenerator:
        if self._graph_image_generator is None:
            raise RendererNotConfiguredError("No graph image generator configured for the workflow")
        return self._graph_image_generator

    def generate_workflow_image(
        self,
        output_path: Path | str | None = None,
        format: Format = Format.SVG,
        styles: Sequence[StyleAttribute] = (),
    ) -> Path:
        path = self._image_path(output_path)
        self._generator().generate_image(self.transitions, path.absolute(), format, styles)
        logger.debug("Workflow image generated", extra={"path": str(path)})
        return path

    def generate_workflow_bytes(
        self, format: Format = Format.SVG, styles: Sequence[StyleAttribute] = ()
    ) -> bytes:
        return self._generator().generate_bytes(self.transitions, format, styles)

    def generate_computed_workflow_image(
        self,
        output_path: Path | str | None = None,
        format: Format = Format.SVG,
        styles: Sequence[StyleAttribute] = (),
    ) -> Path:
        computed = self.get_computed_transitions()
        path = self._image_path(output_path)
        self._generator().generate_image(
            self.transitions, path.absolute(), format, styles, computed_transitions=computed
        )
        logger.debug("Computed workflow image generated", extra={"path": str(path)})
        return path

    def generate_computed_workflow_bytes(
        self, format: Format = Format.SVG, styles: Sequence[StyleAttribute] = ()
    ) -> bytes:
        computed = self.get_computed_transitions()
        return self._generator().generate_bytes(
            self.transitions, format, styles, computed_transitions=computed
        )


class WorkflowBuilder(Generic[T]):
    """Collects the bean, edges and nodes of a workflow before compiling it."""

    def __init__(self) -> None:
        self._stateful_bean: T | None = None
        self._edges: list[Transition] = []
        self._nodes: list[Node[T, Any]] = []
        self._graph_image_generator: GraphImageGenerator | None = None
        self._settings: WorkflowSettings | None = None

    def stateful_bean(self, stateful_bean: T) -> WorkflowBuilder[T]:
        self._stateful_bean = stateful_bean
        return self

    def add_edges(self, *edges: Transition) -> WorkflowBuilder[T]:
        self._edges.extend(edges)
        return self

    def add_nodes(self, *nodes: Node[T, Any]) -> WorkflowBuilder[T]:
        self._nodes.extend(nodes)
        return self

    def graph_image_generator(self, generator: GraphImageGenerator) -> WorkflowBuilder[T]:
        self._graph_image_generator = generator
        return self

    def settings(self, settings: WorkflowSettings) -> WorkflowBuilder[T]:
        self._settings = settings
        return self

    def build(self, start_node: Node[T, Any] | None = None) -> StateWorkflow[T]:
        workflow: StateWorkflow[T] = StateWorkflow(
            self._stateful_bean,  # type: ignore[arg-type]
            self._edges,
            self._nodes,
            graph_image_generator=self._graph_image_generator,
            settings=self._settings,
        )
        return workflow.start_node(start_node)

