"""Tests for check results and bound comparison."""

from __future__ import annotations

import math

import pytest

from sparse_prctl import (
    MAYBE,
    ComparisonType,
    InternalTypeError,
    QualitativeCheckResult,
    QuantitativeCheckResult,
    StateSet,
    check_probability_bound,
)
from sparse_prctl.modelchecker import (
    BOUNDED_PROBABILITY_RANGE,
    PROBABILITY_RANGE,
    REWARD_RANGE,
    ValueRange,
)


class TestComparisonType:
    @pytest.mark.parametrize(
        ("comparison", "value", "bound", "expected"),
        [
            (ComparisonType.LESS, 0.3, 0.5, True),
            (ComparisonType.LESS, 0.5, 0.5, False),
            (ComparisonType.LESS_EQUAL, 0.5, 0.5, True),
            (ComparisonType.GREATER, 0.5, 0.5, False),
            (ComparisonType.GREATER_EQUAL, 0.5, 0.5, True),
            (ComparisonType.GREATER, 0.7, 0.5, True),
        ],
    )
    def test_holds(
        self, comparison: ComparisonType, value: float, bound: float, expected: bool
    ) -> None:
        assert comparison.holds(value, bound) is expected


class TestQuantitativeCheckResult:
    def test_access(self) -> None:
        result = QuantitativeCheckResult(values=[0.25, 1.0])
        assert result[0] == 0.25
        assert len(result) == 2
        assert result.is_quantitative
        assert not result.is_qualitative
        assert result.as_quantitative() is result

    def test_values_at(self) -> None:
        result = QuantitativeCheckResult(values=[0.1, 0.2, 0.3])
        assert result.values_at(StateSet.from_indices(3, [0, 2])) == {0: 0.1, 2: 0.3}

    def test_compare_numeric(self) -> None:
        result = QuantitativeCheckResult(values=[0.2, 0.6, 0.9])
        satisfying = result.compare(ComparisonType.GREATER_EQUAL, 0.6)
        assert list(satisfying.states) == [1, 2]

    def test_maybe_against_trivial_lower_bound(self) -> None:
        result = QuantitativeCheckResult(values=[MAYBE, 0.0, 1.0])
        assert list(result.compare(ComparisonType.GREATER, 0.0).states) == [0, 2]
        assert list(result.compare(ComparisonType.LESS_EQUAL, 0.0).states) == [1]

    def test_maybe_against_trivial_upper_bound(self) -> None:
        result = QuantitativeCheckResult(values=[MAYBE, 0.0, 1.0])
        assert list(result.compare(ComparisonType.LESS, 1.0).states) == [0, 1]
        assert list(result.compare(ComparisonType.GREATER_EQUAL, 1.0).states) == [2]

    def test_maybe_against_inner_bound(self) -> None:
        result = QuantitativeCheckResult(values=[MAYBE])
        with pytest.raises(InternalTypeError, match="undetermined"):
            result.compare(ComparisonType.GREATER, 0.5)

    def test_reward_range(self) -> None:
        result = QuantitativeCheckResult(values=[MAYBE], maybe_range=REWARD_RANGE)
        assert list(result.compare(ComparisonType.GREATER_EQUAL, 0.0).states) == [0]
        assert list(result.compare(ComparisonType.LESS, math.inf).states) == [0]
        # An undetermined reward may be exactly 0
        with pytest.raises(InternalTypeError):
            result.compare(ComparisonType.GREATER, 0.0)
        with pytest.raises(InternalTypeError):
            result.compare(ComparisonType.GREATER, 1.0)

    def test_bounded_probability_range(self) -> None:
        result = QuantitativeCheckResult(
            values=[MAYBE, 0.0], maybe_range=BOUNDED_PROBABILITY_RANGE
        )
        assert list(result.compare(ComparisonType.GREATER, 0.0).states) == [0]
        assert list(result.compare(ComparisonType.LESS_EQUAL, 1.0).states) == [0, 1]
        # An undetermined bounded probability may be exactly 1
        with pytest.raises(InternalTypeError):
            result.compare(ComparisonType.LESS, 1.0)
        with pytest.raises(InternalTypeError):
            result.compare(ComparisonType.GREATER_EQUAL, 1.0)

    def test_as_qualitative_fails(self) -> None:
        with pytest.raises(InternalTypeError) as exc_info:
            QuantitativeCheckResult(values=[0.5]).as_qualitative()
        assert exc_info.value.expected == "qualitative"
        assert "QuantitativeCheckResult" in str(exc_info.value)


class TestQualitativeCheckResult:
    def test_membership(self) -> None:
        result = QualitativeCheckResult(states=StateSet.from_indices(3, [1]))
        assert 1 in result
        assert 0 not in result
        assert result.is_qualitative

    def test_holds_in_all(self) -> None:
        result = QualitativeCheckResult(states=StateSet.from_indices(3, [0, 1]))
        assert result.holds_in_all(StateSet.from_indices(3, [0]))
        assert not result.holds_in_all(StateSet.from_indices(3, [2]))

    def test_as_quantitative_fails(self) -> None:
        result = QualitativeCheckResult(states=StateSet(1))
        with pytest.raises(InternalTypeError):
            result.as_quantitative()


class TestCheckProbabilityBound:
    def test_quantitative(self) -> None:
        result = QuantitativeCheckResult(values=[0.3, 0.8])
        assert list(check_probability_bound(result, ComparisonType.LESS, 0.5).states) == [0]

    def test_qualitative_rejected(self) -> None:
        result = QualitativeCheckResult(states=StateSet(2))
        with pytest.raises(InternalTypeError):
            check_probability_bound(result, ComparisonType.LESS, 0.5)


class TestValueRange:
    @pytest.mark.parametrize(
        ("comparison", "bound", "expected"),
        [
            (ComparisonType.GREATER, 0.0, True),
            (ComparisonType.GREATER_EQUAL, 0.0, True),
            (ComparisonType.LESS_EQUAL, 0.0, False),
            (ComparisonType.LESS, 1.0, True),
            (ComparisonType.GREATER_EQUAL, 1.0, False),
            (ComparisonType.GREATER, 1.5, False),
            (ComparisonType.LESS, -0.5, False),
            (ComparisonType.GREATER, 0.5, None),
            (ComparisonType.LESS_EQUAL, 0.5, None),
        ],
    )
    def test_open_interval(
        self, comparison: ComparisonType, bound: float, expected: bool | None
    ) -> None:
        assert PROBABILITY_RANGE.decide(comparison, bound) is expected

    @pytest.mark.parametrize(
        ("comparison", "bound", "expected"),
        [
            (ComparisonType.GREATER, 0.0, None),
            (ComparisonType.GREATER_EQUAL, 0.0, True),
            (ComparisonType.LESS, 0.0, False),
            (ComparisonType.LESS_EQUAL, 0.0, None),
            (ComparisonType.LESS, 1.0, None),
            (ComparisonType.LESS_EQUAL, 1.0, True),
            (ComparisonType.GREATER, 1.0, False),
        ],
    )
    def test_closed_ends(
        self, comparison: ComparisonType, bound: float, expected: bool | None
    ) -> None:
        closed = ValueRange(0.0, 1.0, includes_low=True, includes_high=True)
        assert closed.decide(comparison, bound) is expected

    def test_reward_range_is_unbounded_above(self) -> None:
        assert REWARD_RANGE.decide(ComparisonType.LESS, 1e12) is None
        assert REWARD_RANGE.decide(ComparisonType.LESS, math.inf) is True
        assert REWARD_RANGE.decide(ComparisonType.GREATER_EQUAL, math.inf) is False
