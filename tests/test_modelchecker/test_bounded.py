"""Tests for bounded until and bounded eventually."""

from __future__ import annotations

import pytest

from sparse_prctl import (
    MAYBE,
    ComparisonType,
    InternalTypeError,
    Mdp,
    OptimizationDirection,
    StateSet,
    build_mdp,
)

MIN = OptimizationDirection.MINIMIZE
MAX = OptimizationDirection.MAXIMIZE


class TestBoundedEventually:
    def test_max_one_step(self, gamble: Mdp, make_checker) -> None:
        result = make_checker(gamble).check_bounded_eventually(
            MAX, gamble.states_with_label("goal"), 1
        )
        assert result.values == pytest.approx([0.5, 0.8, 1.0, 0.0])

    def test_min_one_step(self, gamble: Mdp, make_checker) -> None:
        result = make_checker(gamble).check_bounded_eventually(
            MIN, gamble.states_with_label("goal"), 1
        )
        assert result.values == pytest.approx([0.0, 0.5, 1.0, 0.0])

    def test_min_two_steps(self, gamble: Mdp, make_checker) -> None:
        result = make_checker(gamble).check_bounded_eventually(
            MIN, gamble.states_with_label("goal"), 2
        )
        assert result.values == pytest.approx([0.3, 0.5, 1.0, 0.0])

    def test_zero_steps(self, gamble: Mdp, make_checker) -> None:
        result = make_checker(gamble).check_bounded_eventually(
            MAX, gamble.states_with_label("goal"), 0
        )
        assert result.values == [0.0, 0.0, 1.0, 0.0]

    def test_monotone_in_step_bound(self, gamble: Mdp, make_checker) -> None:
        checker = make_checker(gamble)
        goal = gamble.states_with_label("goal")
        previous = checker.check_bounded_eventually(MIN, goal, 0).values
        for steps in range(1, 8):
            current = checker.check_bounded_eventually(MIN, goal, steps).values
            for before, after in zip(previous, current):
                assert before <= after + 1e-12
            previous = current

    def test_converges_to_unbounded(self, gamble: Mdp, make_checker) -> None:
        checker = make_checker(gamble)
        goal = gamble.states_with_label("goal")
        bounded = checker.check_bounded_eventually(MIN, goal, 60).values
        unbounded = checker.check_eventually(MIN, goal).values
        assert bounded == pytest.approx(unbounded, abs=1e-6)


class TestBoundedUntil:
    def test_pipeline_needs_two_steps(self, pipeline: Mdp, make_checker) -> None:
        checker = make_checker(pipeline)
        success = pipeline.states_with_label("success")
        everything = pipeline.all_states()
        assert checker.check_bounded_until(MAX, everything, success, 1).values == [
            0.0, MAYBE, 1.0, 0.0,
        ]
        assert checker.check_bounded_until(MAX, everything, success, 2).values == pytest.approx(
            [0.9, 0.9, 1.0, 0.0]
        )

    def test_qualitative(self, pipeline: Mdp, make_checker) -> None:
        result = make_checker(pipeline).check_bounded_until(
            MIN, pipeline.all_states(), pipeline.states_with_label("success"), 5, qualitative=True
        )
        assert result.values == [MAYBE, MAYBE, 1.0, 0.0]

    def test_phi_restricts_paths(self, pipeline: Mdp, make_checker) -> None:
        phi = StateSet.from_indices(4, [0, 2, 3])
        result = make_checker(pipeline).check_bounded_until(
            MAX, phi, pipeline.states_with_label("success"), 3
        )
        assert result.values == [0.0, 0.0, 1.0, 0.0]

    def test_qualitative_probability_may_be_one(self, make_checker) -> None:
        # Deterministic line 0 -> 1 -> 2 (goal), plus the isolated state 3
        line = build_mdp(
            4,
            {0: [[(1, 1.0)]], 1: [[(2, 1.0)]], 2: [[(2, 1.0)]], 3: [[(3, 1.0)]]},
            initial_states=[0, 3],
        )
        goal = StateSet.from_indices(4, [2])
        checker = make_checker(line)
        qualitative = checker.check_bounded_eventually(MAX, goal, 5, qualitative=True)
        exact = checker.check_bounded_eventually(MAX, goal, 5)
        assert qualitative.values == [MAYBE, MAYBE, 1.0, 0.0]
        assert exact.values == pytest.approx([1.0, 1.0, 1.0, 0.0])

        assert list(exact.compare(ComparisonType.LESS, 1.0).states) == [3]
        with pytest.raises(InternalTypeError):
            qualitative.compare(ComparisonType.LESS, 1.0)
        assert list(qualitative.compare(ComparisonType.GREATER, 0.0).states) == [0, 1, 2]
