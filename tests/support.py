"""Shared helpers for the workflow tests."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass
class Counter:
    """Stateful bean used across the workflow tests."""

    value: int = 0


def adder(name: str, amount: int) -> Callable[[Counter], str]:
    def step(state: Counter) -> str:
        state.value += amount
        return f"{name}: processed function"

    return step
