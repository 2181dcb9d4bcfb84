"""Property-based tests for extremal reachability using Hypothesis.

Generates small random MDPs and checks laws that hold for every model:
ordering of minimal and maximal values, monotonicity in the target set and
the step bound, agreement of min and max on Markov chains, and soundness of
the extracted schedulers for probabilities and minimal rewards.

Generator restrictions:
- Transition weights are drawn from 1..3 and normalized, so every state
  reaches its successors with probability at least 1/9 and value iteration
  converges quickly enough for the default iteration limit.
- Every state is initial, so no maybe-state is skipped by the initial-state
  shortcut and all values are numeric.
"""

from __future__ import annotations

import math
from dataclasses import replace

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from sparse_prctl import (
    Mdp,
    OptimizationDirection,
    SparseMdpPrctlModelChecker,
    StateSet,
    build_mdp,
)

MIN = OptimizationDirection.MINIMIZE
MAX = OptimizationDirection.MAXIMIZE

TOLERANCE = 1e-4

# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


@st.composite
def distribution(draw: st.DrawFn, n: int) -> list[tuple[int, float]]:
    """A full probability distribution over 1..3 distinct successors."""
    successors = draw(
        st.lists(st.integers(min_value=0, max_value=n - 1), min_size=1, max_size=3, unique=True)
    )
    weights = [draw(st.integers(min_value=1, max_value=3)) for _ in successors]
    total = sum(weights)
    return [(target, weight / total) for target, weight in zip(successors, weights)]


@st.composite
def random_mdp(draw: st.DrawFn, max_actions: int = 2) -> Mdp:
    n = draw(st.integers(min_value=2, max_value=4))
    choices = {
        state: [
            draw(distribution(n))
            for _ in range(draw(st.integers(min_value=1, max_value=max_actions)))
        ]
        for state in range(n)
    }
    return build_mdp(n, choices, initial_states=range(n))


@st.composite
def mdp_with_target(draw: st.DrawFn, max_actions: int = 2) -> tuple[Mdp, StateSet]:
    mdp = draw(random_mdp(max_actions))
    members = draw(
        st.lists(st.integers(min_value=0, max_value=mdp.number_of_states - 1), max_size=2)
    )
    return mdp, StateSet.from_indices(mdp.number_of_states, members)


@st.composite
def mdp_with_rewards(draw: st.DrawFn) -> tuple[Mdp, StateSet]:
    """A random MDP with state rewards from 0..2, so free cycles are common."""
    mdp, target = draw(mdp_with_target())
    rewards = [
        float(draw(st.integers(min_value=0, max_value=2))) for _ in range(mdp.number_of_states)
    ]
    return replace(mdp, state_rewards=rewards), target


# ---------------------------------------------------------------------------
# Laws
# ---------------------------------------------------------------------------


class TestReachabilityLaws:
    @given(mdp_with_target())
    @settings(max_examples=50, deadline=None)
    def test_min_below_max(self, case: tuple[Mdp, StateSet]) -> None:
        mdp, target = case
        checker = SparseMdpPrctlModelChecker(mdp)
        low = checker.check_eventually(MIN, target).values
        high = checker.check_eventually(MAX, target).values
        for lo, hi in zip(low, high):
            assert -TOLERANCE <= lo <= hi + TOLERANCE
            assert hi <= 1.0 + TOLERANCE

    @given(mdp_with_target(max_actions=1))
    @settings(max_examples=50, deadline=None)
    def test_chain_min_equals_max(self, case: tuple[Mdp, StateSet]) -> None:
        mdp, target = case
        checker = SparseMdpPrctlModelChecker(mdp)
        low = checker.check_eventually(MIN, target).values
        high = checker.check_eventually(MAX, target).values
        for lo, hi in zip(low, high):
            assert abs(lo - hi) <= TOLERANCE

    @given(mdp_with_target(), st.integers(min_value=0, max_value=3))
    @settings(max_examples=50, deadline=None)
    def test_monotone_in_target(self, case: tuple[Mdp, StateSet], extra: int) -> None:
        mdp, target = case
        larger = target.copy()
        larger.set(extra % mdp.number_of_states)
        checker = SparseMdpPrctlModelChecker(mdp)
        for direction in (MIN, MAX):
            small = checker.check_eventually(direction, target).values
            big = checker.check_eventually(direction, larger).values
            for before, after in zip(small, big):
                assert before <= after + TOLERANCE

    @given(mdp_with_target(), st.integers(min_value=0, max_value=6))
    @settings(max_examples=50, deadline=None)
    def test_bounded_below_unbounded(self, case: tuple[Mdp, StateSet], steps: int) -> None:
        mdp, target = case
        checker = SparseMdpPrctlModelChecker(mdp)
        for direction in (MIN, MAX):
            shorter = checker.check_bounded_eventually(direction, target, steps).values
            longer = checker.check_bounded_eventually(direction, target, steps + 1).values
            unbounded = checker.check_eventually(direction, target).values
            for a, b, c in zip(shorter, longer, unbounded):
                assert a <= b + TOLERANCE
                assert b <= c + TOLERANCE

    @pytest.mark.parametrize("direction", [MIN, MAX])
    @given(case=mdp_with_target())
    @settings(max_examples=50, deadline=None)
    def test_extracted_scheduler_is_sound(
        self, direction: OptimizationDirection, case: tuple[Mdp, StateSet]
    ) -> None:
        mdp, target = case
        result = SparseMdpPrctlModelChecker(mdp).check_eventually(direction, target)
        assert result.scheduler is not None

        chain = mdp.apply_scheduler(result.scheduler)
        induced = SparseMdpPrctlModelChecker(chain).check_eventually(direction, target)
        for expected, actual in zip(result.values, induced.values):
            assert abs(expected - actual) <= TOLERANCE

    @given(mdp_with_target())
    @settings(max_examples=50, deadline=None)
    def test_globally_is_dual_of_eventually(self, case: tuple[Mdp, StateSet]) -> None:
        mdp, target = case
        checker = SparseMdpPrctlModelChecker(mdp)
        globally = checker.check_globally(MAX, ~target).values
        eventually = checker.check_eventually(MIN, target).values
        for g, f in zip(globally, eventually):
            assert abs(g - (1.0 - f)) <= TOLERANCE


class TestRewardLaws:
    @given(mdp_with_rewards())
    @settings(max_examples=50, deadline=None)
    def test_min_below_max(self, case: tuple[Mdp, StateSet]) -> None:
        mdp, target = case
        checker = SparseMdpPrctlModelChecker(mdp)
        low = checker.check_reachability_reward(MIN, target).values
        high = checker.check_reachability_reward(MAX, target).values
        for lo, hi in zip(low, high):
            assert lo >= 0.0
            assert lo <= hi + TOLERANCE * max(1.0, lo)

    @given(mdp_with_rewards())
    @settings(max_examples=50, deadline=None)
    def test_minimizing_scheduler_reaches_the_target(self, case: tuple[Mdp, StateSet]) -> None:
        mdp, target = case
        result = SparseMdpPrctlModelChecker(mdp).check_reachability_reward(MIN, target)
        assert result.scheduler is not None

        chain = mdp.apply_scheduler(result.scheduler)
        induced = SparseMdpPrctlModelChecker(chain).check_reachability_reward(MIN, target)
        for expected, actual in zip(result.values, induced.values):
            if math.isinf(expected):
                assert math.isinf(actual)
            else:
                assert abs(expected - actual) <= TOLERANCE * max(1.0, expected)
