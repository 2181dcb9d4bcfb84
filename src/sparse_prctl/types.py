"""
Foundation types shared across the analysis engine.

Protocol-agnostic enumerations used by the solvers, the model checker and
the check results, kept here to avoid circular imports.
"""

from __future__ import annotations

from enum import Enum


class OptimizationDirection(str, Enum):
    """
    How nondeterminism is resolved when computing extremal values.

    The direction is passed explicitly to every nondeterministic check.
    """

    MINIMIZE = "minimize"
    """Resolve choices so that the value becomes minimal."""

    MAXIMIZE = "maximize"
    """Resolve choices so that the value becomes maximal."""

    @property
    def is_minimize(self) -> bool:
        return self is OptimizationDirection.MINIMIZE

    def flip(self) -> OptimizationDirection:
        """Return the dual direction."""
        if self is OptimizationDirection.MINIMIZE:
            return OptimizationDirection.MAXIMIZE
        return OptimizationDirection.MINIMIZE


class ComparisonType(str, Enum):
    """Relation used when comparing a value against a bound."""

    LESS = "<"
    LESS_EQUAL = "<="
    GREATER = ">"
    GREATER_EQUAL = ">="

    def holds(self, value: float, bound: float) -> bool:
        if self is ComparisonType.LESS:
            return value < bound
        if self is ComparisonType.LESS_EQUAL:
            return value <= bound
        if self is ComparisonType.GREATER:
            return value > bound
        return value >= bound


class Undetermined(Enum):
    """
    Marker for values that were not computed numerically.

    Qualitative-only evaluation classifies states against the trivial bounds
    (0 and 1 for probabilities, 0 and infinity for rewards) without solving
    for their exact value. Where such a value may lie depends on the query
    and is recorded on the result. Those states hold ``MAYBE``, which
    is not a number and never compares equal to one.
    """

    MAYBE = "maybe"

    def __repr__(self) -> str:
        return "MAYBE"


MAYBE = Undetermined.MAYBE

Value = float | Undetermined
"""An entry of a result vector."""


__all__ = [
    "OptimizationDirection",
    "ComparisonType",
    "Undetermined",
    "MAYBE",
    "Value",
]
