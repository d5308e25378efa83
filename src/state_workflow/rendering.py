"""Contract between a workflow and the component that draws it.

The workflow hands the canonical transition list (and, for a computed image,
the trace of its last run) to a `GraphImageGenerator`. Drawing itself
(DOT/SVG/PNG) is left to the generator implementation.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Protocol

from state_workflow.transition import ComputedTransition, Transition


class Format(str, Enum):
    SVG = "svg"
    PNG = "png"


class StyleAttribute(Protocol):
    @property
    def code(self) -> str: ...


class Orientation(str, Enum):
    """Direction in which the graph is laid out."""

    VERTICAL = "TB"
    HORIZONTAL = "LR"

    @property
    def code(self) -> str:
        return self.value


class StyleGraph(str, Enum):
    DEFAULT = "default"
    SKETCHY = "sketchy"

    @property
    def code(self) -> str:
        return self.value


class GraphImageGenerator(Protocol):
    """Produces an image from a list of transitions.

    `computed_transitions` is given when the image should highlight the path
    taken by the last run.
    """

    def generate_image(
        self,
        transitions: Sequence[Transition],
        output_path: Path,
        format: Format = Format.SVG,
        styles: Sequence[StyleAttribute] = (),
        computed_transitions: Sequence[ComputedTransition] | None = None,
    ) -> None: ...

    def generate_bytes(
        self,
        transitions: Sequence[Transition],
        format: Format = Format.SVG,
        styles: Sequence[StyleAttribute] = (),
        computed_transitions: Sequence[ComputedTransition] | None = None,
    ) -> bytes: ...
