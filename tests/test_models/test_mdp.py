"""Tests for the sparse MDP model."""

from __future__ import annotations

import pytest

from sparse_prctl.models.mdp import Mdp, build_mdp
from sparse_prctl.storage.scheduler import TotalScheduler
from sparse_prctl.storage.sparse_matrix import SparseMatrix
from sparse_prctl.storage.state_set import StateSet


def _make_labelled_mdp() -> Mdp:
    """Three states: 0 chooses between 1 and 2, both absorbing."""
    return build_mdp(
        {0: {"init"}, 1: {"goal"}, 2: {"fail", "done"}},
        {
            0: [[(1, 1.0)], [(1, 0.5), (2, 0.5)]],
            1: [[(1, 1.0)]],
            2: [[(2, 1.0)]],
        },
        state_rewards={0: 2.0},
        transition_rewards={0: [[(1, 3.0)], []], 1: [[]], 2: [[]]},
    )


class TestBuildMdp:
    def test_dimensions(self) -> None:
        mdp = _make_labelled_mdp()
        assert mdp.number_of_states == 3
        assert mdp.number_of_choices == 4
        assert mdp.row_group_indices == [0, 2, 3, 4]
        assert mdp.get_number_of_choices(0) == 2

    def test_labels(self) -> None:
        mdp = _make_labelled_mdp()
        assert list(mdp.states_with_label("goal")) == [1]
        assert list(mdp.states_with_label("done")) == [2]
        assert mdp.states_with_label("missing").is_empty()

    def test_rewards(self) -> None:
        mdp = _make_labelled_mdp()
        assert mdp.has_state_rewards()
        assert mdp.state_rewards == [2.0, 0.0, 0.0]
        assert mdp.has_transition_rewards()
        assert mdp.transition_rewards is not None
        assert mdp.transition_rewards.get_value(0, 1) == 3.0

    def test_default_initial_state(self) -> None:
        assert list(_make_labelled_mdp().initial_states) == [0]

    def test_unsorted_successors(self) -> None:
        mdp = build_mdp(2, {0: [[(1, 0.5), (0, 0.5)]], 1: [[(1, 1.0)]]})
        assert mdp.transition_matrix.get_row(0) == [(0, 0.5), (1, 0.5)]

    def test_state_ids_must_be_dense(self) -> None:
        with pytest.raises(ValueError, match="State IDs"):
            build_mdp({0: set(), 2: set()}, {0: [[(0, 1.0)]], 2: [[(2, 1.0)]]})

    def test_state_without_actions(self) -> None:
        with pytest.raises(ValueError, match="no actions"):
            build_mdp(2, {0: [[(1, 1.0)]]})

    def test_invalid_probability(self) -> None:
        with pytest.raises(ValueError, match="sum to"):
            build_mdp(2, {0: [[(0, 0.6), (1, 0.6)]], 1: [[(1, 1.0)]]})

    def test_reward_shape_mismatch(self) -> None:
        with pytest.raises(ValueError, match="one entry list per action"):
            build_mdp(
                1,
                {0: [[(0, 1.0)], [(0, 1.0)]]},
                transition_rewards={0: [[(0, 1.0)]]},
            )


class TestValidate:
    def test_non_square(self) -> None:
        mdp = Mdp(
            transition_matrix=SparseMatrix([[(0, 1.0)]], column_count=2),
            initial_states=StateSet.from_indices(1, [0]),
        )
        with pytest.raises(ValueError, match="columns"):
            mdp.validate()

    def test_initial_state_size(self) -> None:
        mdp = Mdp(
            transition_matrix=SparseMatrix([[(0, 1.0)]]),
            initial_states=StateSet(2),
        )
        with pytest.raises(ValueError, match="Initial state set"):
            mdp.validate()

    def test_state_reward_size(self) -> None:
        mdp = Mdp(
            transition_matrix=SparseMatrix([[(0, 1.0)]]),
            initial_states=StateSet(1),
            state_rewards=[1.0, 2.0],
        )
        with pytest.raises(ValueError, match="State reward vector"):
            mdp.validate()


class TestDerivedViews:
    def test_backward_transitions_cached(self) -> None:
        mdp = _make_labelled_mdp()
        assert mdp.backward_transitions is mdp.backward_transitions
        assert [column for column, _ in mdp.backward_transitions.get_row(1)] == [0, 1]

    def test_is_deterministic(self) -> None:
        assert not _make_labelled_mdp().is_deterministic()
        assert build_mdp(1, {0: [[(0, 1.0)]]}).is_deterministic()


class TestApplyScheduler:
    def test_induced_chain(self) -> None:
        mdp = _make_labelled_mdp()
        chain = mdp.apply_scheduler(TotalScheduler([1, 0, 0]))
        assert chain.is_deterministic()
        assert chain.transition_matrix.get_row(0) == [(1, 0.5), (2, 0.5)]
        assert chain.transition_rewards is not None
        assert chain.transition_rewards.get_row(0) == []
        assert chain.state_rewards == mdp.state_rewards
        chain.validate()

    def test_model_unchanged(self) -> None:
        mdp = _make_labelled_mdp()
        mdp.apply_scheduler(TotalScheduler([1, 0, 0]))
        assert mdp.number_of_choices == 4

    def test_choice_out_of_range(self) -> None:
        with pytest.raises(ValueError, match="out of range"):
            _make_labelled_mdp().apply_scheduler(TotalScheduler([2, 0, 0]))

    def test_scheduler_size(self) -> None:
        with pytest.raises(ValueError, match="covers"):
            _make_labelled_mdp().apply_scheduler(TotalScheduler(2))
