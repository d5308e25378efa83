"""State Workflow.

Define stateful, directed workflows whose vertices are user functions over a
single shared bean:
- declare edges between step nodes, conditional nodes and END
- compile: START/END hookup, Split / Parallel / Merge labeling, validation
- run: deterministic depth-first execution with an ordered transition trace
"""

__version__ = "0.1.0"

from state_workflow.config import WorkflowSettings
from state_workflow.node import Conditional, Node
from state_workflow.transition import ComputedTransition, Transition, WorkflowStateName
from state_workflow.workflow import StateWorkflow, WorkflowBuilder

START = WorkflowStateName.START
END = WorkflowStateName.END

__all__ = [
    "__version__",
    "END",
    "START",
    "ComputedTransition",
    "Conditional",
    "Node",
    "StateWorkflow",
    "Transition",
    "WorkflowBuilder",
    "WorkflowSettings",
    "WorkflowStateName",
]
