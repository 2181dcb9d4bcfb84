"""Test fixtures for PRCTL model checking tests."""

from __future__ import annotations

import pytest

from sparse_prctl import Mdp, SparseMdpPrctlModelChecker, build_mdp


@pytest.fixture
def loop_or_leave() -> Mdp:
    """State 0 moves to the absorbing goal 1 (action 0) or loops (action 1)."""
    return build_mdp(
        {0: {"init"}, 1: {"goal"}},
        {
            0: [[(1, 1.0)], [(0, 1.0)]],
            1: [[(1, 1.0)]],
        },
    )


@pytest.fixture
def gamble() -> Mdp:
    """Two decision states, goal 2 and fail 3 (both absorbing).

    0: a -> 0.5 goal, 0.5 fail | b -> 0.6 state 1, 0.4 fail
    1: a -> 0.8 goal, 0.2 fail | b -> 0.5 state 0, 0.5 goal

    Pmax(F goal) = (0.5, 0.8) with actions (a, a).
    Pmin(F goal) = (3/7, 5/7) with actions (b, b).
    """
    return build_mdp(
        {0: {"init"}, 1: set(), 2: {"goal"}, 3: {"fail"}},
        {
            0: [[(2, 0.5), (3, 0.5)], [(1, 0.6), (3, 0.4)]],
            1: [[(2, 0.8), (3, 0.2)], [(0, 0.5), (2, 0.5)]],
            2: [[(2, 1.0)]],
            3: [[(3, 1.0)]],
        },
        initial_states=[0, 1],
    )


@pytest.fixture
def pipeline() -> Mdp:
    """Deterministic chain: 0 -> 1, then 0.9 success (2) or 0.1 error (3)."""
    return build_mdp(
        {0: {"init"}, 1: {"processing"}, 2: {"success"}, 3: {"error"}},
        {
            0: [[(1, 1.0)]],
            1: [[(2, 0.9), (3, 0.1)]],
            2: [[(2, 1.0)]],
            3: [[(3, 1.0)]],
        },
    )


@pytest.fixture
def shortcut() -> Mdp:
    """Reward model: 0 detours through 1 (action 0) or flips a coin to 2 (action 1).

    State rewards (1, 2, 0); taking 0 -> 1 costs an extra 4.
    Rmin(F 2) at state 0 is 2 (coin), Rmax is 7 (detour).
    """
    return build_mdp(
        3,
        {
            0: [[(1, 1.0)], [(0, 0.5), (2, 0.5)]],
            1: [[(2, 1.0)]],
            2: [[(2, 1.0)]],
        },
        state_rewards={0: 1.0, 1: 2.0},
        transition_rewards={0: [[(1, 4.0)], []], 1: [[]], 2: [[]]},
    )


@pytest.fixture
def make_checker():
    """Factory for model checkers over a given MDP."""

    def _make(mdp: Mdp) -> SparseMdpPrctlModelChecker:
        return SparseMdpPrctlModelChecker(mdp)

    return _make
