"""Results of model checking queries.

A query yields either a quantitative result (one value per state, possibly
with a scheduler) or a qualitative one (the set of satisfying states). The
two meet when a quantitative result is compared against a bound.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from sparse_prctl.exceptions import InternalTypeError
from sparse_prctl.storage.scheduler import TotalScheduler
from sparse_prctl.storage.state_set import StateSet
from sparse_prctl.types import MAYBE, ComparisonType, Value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValueRange:
    """Interval known to contain every ``MAYBE`` entry of a result.

    Attributes:
        low: Lower end of the interval.
        high: Upper end of the interval.
        includes_low: Whether a ``MAYBE`` entry may equal ``low``.
        includes_high: Whether a ``MAYBE`` entry may equal ``high``.
    """

    low: float
    high: float
    includes_low: bool = False
    includes_high: bool = False

    def decide(self, comparison: ComparisonType, bound: float) -> bool | None:
        """Outcome of ``value ⋈ bound`` shared by every value of the range.

        Returns:
            True or False if all values agree, None if the outcome depends on
            where in the range the value lies.
        """
        # Every value is > bound / >= bound / < bound / <= bound respectively
        all_greater = bound < self.low or (bound == self.low and not self.includes_low)
        all_greater_equal = bound <= self.low
        all_less = bound > self.high or (bound == self.high and not self.includes_high)
        all_less_equal = bound >= self.high

        if comparison is ComparisonType.GREATER:
            if all_greater:
                return True
            if all_less_equal:
                return False
        elif comparison is ComparisonType.GREATER_EQUAL:
            if all_greater_equal:
                return True
            if all_less:
                return False
        elif comparison is ComparisonType.LESS:
            if all_less:
                return True
            if all_greater_equal:
                return False
        else:
            if all_less_equal:
                return True
            if all_greater:
                return False
        return None


PROBABILITY_RANGE = ValueRange(0.0, 1.0)
"""Undetermined unbounded-until probabilities lie strictly between 0 and 1."""

BOUNDED_PROBABILITY_RANGE = ValueRange(0.0, 1.0, includes_high=True)
"""Undetermined bounded-until probabilities are positive and may be exactly 1."""

REWARD_RANGE = ValueRange(0.0, math.inf, includes_low=True)
"""Undetermined rewards are finite and may be exactly 0."""


class CheckResult:
    """Common interface of check results."""

    @property
    def is_quantitative(self) -> bool:
        return False

    @property
    def is_qualitative(self) -> bool:
        return False

    def as_quantitative(self) -> QuantitativeCheckResult:
        raise InternalTypeError(
            message="Cannot use result as quantitative result",
            expected="quantitative",
            actual=type(self).__name__,
        )

    def as_qualitative(self) -> QualitativeCheckResult:
        raise InternalTypeError(
            message="Cannot use result as qualitative result",
            expected="qualitative",
            actual=type(self).__name__,
        )


@dataclass
class QuantitativeCheckResult(CheckResult):
    """Values per state.

    Entries of states that were only classified qualitatively hold ``MAYBE``;
    their value lies inside ``maybe_range``, which depends on the query that
    produced the result.

    Attributes:
        values: One value per state.
        scheduler: Scheduler attaining the values, if one was computed.
        maybe_range: Interval containing every ``MAYBE`` entry.
    """

    values: list[Value]
    scheduler: TotalScheduler | None = None
    maybe_range: ValueRange = field(default=PROBABILITY_RANGE)

    @property
    def is_quantitative(self) -> bool:
        return True

    def as_quantitative(self) -> QuantitativeCheckResult:
        return self

    def __getitem__(self, state: int) -> Value:
        return self.values[state]

    def __len__(self) -> int:
        return len(self.values)

    def has_undetermined_values(self) -> bool:
        return any(value is MAYBE for value in self.values)

    def values_at(self, states: StateSet) -> dict[int, Value]:
        """Values of the given states (typically the initial states)."""
        return {state: self.values[state] for state in states}

    def compare(self, comparison: ComparisonType, bound: float) -> QualitativeCheckResult:
        """Turn the values into the set of states satisfying ``value ⋈ bound``.

        A ``MAYBE`` entry is only known to lie inside ``maybe_range``, so it
        is decided only when the comparison has the same outcome for every
        value of that range.

        Raises:
            InternalTypeError: If a ``MAYBE`` entry cannot be decided.
        """
        satisfying = StateSet(len(self.values))
        for state, value in enumerate(self.values):
            if value is MAYBE:
                holds = self.maybe_range.decide(comparison, bound)
                if holds is None:
                    logger.error(
                        f"Qualitative value of state {state} cannot be compared against {bound}."
                    )
                    raise InternalTypeError(
                        message=f"Cannot compare undetermined value against bound {bound}",
                        expected="quantitative value",
                        actual="qualitative value",
                    )
            else:
                holds = comparison.holds(value, bound)
            if holds:
                satisfying.set(state)
        return QualitativeCheckResult(states=satisfying)


@dataclass
class QualitativeCheckResult(CheckResult):
    """Set of satisfying states.

    Attributes:
        states: The states satisfying the checked property.
    """

    states: StateSet

    @property
    def is_qualitative(self) -> bool:
        return True

    def as_qualitative(self) -> QualitativeCheckResult:
        return self

    def __contains__(self, state: object) -> bool:
        return state in self.states

    def holds_in_all(self, states: StateSet) -> bool:
        """True if every given state satisfies the property."""
        return states.is_subset_of(self.states)


def check_probability_bound(
    result: CheckResult,
    comparison: ComparisonType,
    bound: float,
) -> QualitativeCheckResult:
    """Compare a quantitative result against a probability or reward bound.

    Raises:
        InternalTypeError: If the result is not quantitative or cannot be
            decided for the bound.
    """
    return result.as_quantitative().compare(comparison, bound)


__all__ = [
    "ValueRange",
    "PROBABILITY_RANGE",
    "BOUNDED_PROBABILITY_RANGE",
    "REWARD_RANGE",
    "CheckResult",
    "QuantitativeCheckResult",
    "QualitativeCheckResult",
    "check_probability_bound",
]
