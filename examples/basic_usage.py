#!/usr/bin/env python3
"""Conditional loop example.

This demonstrates the workflow components directly:

* load settings from `.env` and configure logging
* add a conditional edge that loops back until a threshold is reached
* print the ordered trace of the run

The threshold is passed as an argument.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import Sequence

from state_workflow import END, Conditional, Node, StateWorkflow, Transition, WorkflowSettings


@dataclass
class Counter:
    value: int = 0


def _adder(name: str, amount: int):
    def step(state: Counter) -> str:
        state.value += amount
        return f"{name}: processed function"

    return step


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a looping workflow (programmatic example).")
    parser.add_argument("--threshold", type=int, default=6, help="Value that ends the loop")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    WorkflowSettings().setup_logging()

    node1 = Node.from_function("node1", _adder("Node1", 1))
    node2 = Node.from_function("node2", _adder("Node2", 2))
    node3 = Node.from_function("node3", _adder("Node3", 3))
    node4 = Node.from_function("node4", _adder("Node4", 4))

    workflow = (
        StateWorkflow.builder()
        .stateful_bean(Counter())
        .add_nodes(node1, node2, node3)
        .add_edges(Transition(node1, node2), Transition(node2, node3))
        .build()
    )
    workflow.put_edge(
        node3,
        Conditional.eval(
            f"greater than {args.threshold}?",
            lambda s: node4 if s.value > args.threshold else node2,
            [node2, node4],
        ),
    )
    workflow.put_edge(node4, END)

    bean = workflow.run()

    print(f"Final value: {bean.value}")
    print(workflow.pretty_transitions(), end="")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
