"""Memoryless deterministic schedulers."""

from __future__ import annotations

from collections.abc import Iterable


class TotalScheduler:
    """Resolves all nondeterminism by fixing one action per state.

    Choices are local action indices, i.e. offsets inside the row group of
    the state (0 is the first action of every state).
    """

    def __init__(self, choices: int | Iterable[int] = 0):
        if isinstance(choices, int):
            self._choices = [0] * choices
        else:
            self._choices = list(choices)

    def get_choice(self, state: int) -> int:
        return self._choices[state]

    def set_choice(self, state: int, choice: int) -> None:
        if choice < 0:
            raise ValueError(f"Choice for state {state} must be non-negative, got {choice}")
        self._choices[state] = choice

    @property
    def choices(self) -> list[int]:
        return list(self._choices)

    def __len__(self) -> int:
        return len(self._choices)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TotalScheduler):
            return self._choices == other._choices
        return False

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"TotalScheduler({self._choices})"


__all__ = [
    "TotalScheduler",
]
