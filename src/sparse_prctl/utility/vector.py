"""Vector helpers for row-grouped computations.

Vectors are plain lists of floats. "Row vectors" hold one entry per matrix
row, "state vectors" one entry per row group.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sparse_prctl.storage.state_set import StateSet


def set_vector_values(vector: list[Any], positions: StateSet, values: Any) -> None:
    """Write ``values`` into ``vector`` at the members of ``positions``.

    Args:
        vector: Vector to modify in place.
        positions: Positions to write to.
        values: A single value written everywhere, or a sequence with one
            value per member of ``positions`` in ascending order.
    """
    if isinstance(values, Sequence):
        if len(values) != positions.count():
            raise ValueError(
                f"Expected {positions.count()} values, got {len(values)}"
            )
        for position, value in zip(positions, values):
            vector[position] = value
    else:
        for position in positions:
            vector[position] = values


def select_vector_values(
    row_values: Sequence[float],
    groups: StateSet,
    row_group_indices: Sequence[int],
) -> list[float]:
    """Keep the row entries of the selected groups."""
    return [
        row_values[row]
        for group in groups
        for row in range(row_group_indices[group], row_group_indices[group + 1])
    ]


def select_vector_values_repeatedly(
    state_values: Sequence[float],
    groups: StateSet,
    row_group_indices: Sequence[int],
) -> list[float]:
    """Repeat the value of each selected state once for every row of its group."""
    return [
        state_values[group]
        for group in groups
        for _ in range(row_group_indices[group], row_group_indices[group + 1])
    ]


def add_vectors_in_place(target: list[float], summand: Sequence[float]) -> None:
    if len(target) != len(summand):
        raise ValueError(f"Vector length mismatch: {len(target)} vs {len(summand)}")
    for i, value in enumerate(summand):
        target[i] += value


def reduce_vector(
    minimize: bool,
    row_values: Sequence[float],
    row_group_indices: Sequence[int],
) -> tuple[list[float], list[int]]:
    """Reduce every row group to its minimal or maximal entry.

    Ties are resolved in favour of the lowest row of the group. Empty groups
    reduce to 0.0 with choice 0.

    Returns:
        Tuple of (reduced values per group, local index of the chosen row).
    """
    values: list[float] = []
    choices: list[int] = []
    for start, end in zip(row_group_indices, row_group_indices[1:]):
        if start == end:
            values.append(0.0)
            choices.append(0)
            continue
        best_row = start
        best = row_values[start]
        for row in range(start + 1, end):
            candidate = row_values[row]
            if (candidate < best) if minimize else (candidate > best):
                best = candidate
                best_row = row
        values.append(best)
        choices.append(best_row - start)
    return values, choices


__all__ = [
    "set_vector_values",
    "select_vector_values",
    "select_vector_values_repeatedly",
    "add_vectors_in_place",
    "reduce_vector",
]
