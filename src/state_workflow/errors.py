"""Exceptions raised while building, compiling and running a workflow.

Every error is terminal for the operation that raised it. The workflow object
itself stays usable: it can be re-built, extended with new edges or run again.
"""

from __future__ import annotations

from dataclasses import dataclass


class WorkflowError(Exception):
    """Base class for all workflow errors."""


class InvalidArgumentError(WorkflowError, ValueError):
    pass


class NullInputError(InvalidArgumentError):
    """Raised when a node is executed or evaluated without a stateful bean."""


class InvalidTransitionError(WorkflowError, ValueError):
    pass


class CompilationError(WorkflowError, ValueError):
    """The declared graph has a shape the compiler cannot label consistently."""


class ConflictingLabelsError(CompilationError):
    pass


@dataclass(frozen=True, slots=True)
class StructuralMismatchError(CompilationError):
    """Raised when a merge node does not close the fan-out of its split node."""

    merge: str
    split: str

    def __str__(self) -> str:
        return (
            f"The merge node '{self.merge}' must have the same number of input transitions "
            f"as the number of output transitions from the split node '{self.split}'"
        )


class ParallelSuccessorInvalidError(CompilationError):
    pass


class AmbiguousStartError(WorkflowError, RuntimeError):
    pass


class UnboundStartError(WorkflowError, RuntimeError):
    pass


class EmptyWorkflowError(WorkflowError, RuntimeError):
    pass


class NotRunError(WorkflowError, RuntimeError):
    pass


class NullBranchError(WorkflowError, RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class InvalidBranchError(WorkflowError, RuntimeError):
    """Raised when a selector returns a node outside of its expected set."""

    expected: tuple[str, ...]
    observed: str

    def __str__(self) -> str:
        return (
            "The condition function returned an invalid node. "
            f"Expected one of: {list(self.expected)} but got: {self.observed} instead."
        )


class RendererNotConfiguredError(WorkflowError, RuntimeError):
    pass
