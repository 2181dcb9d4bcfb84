"""Sparse Markov Decision Processes.

An MDP is a tuple (S, Act, P, ι, AP, L) where every state owns a group of
actions and every action induces a (sub-)probability distribution over
successor states. Here:

- S = {0, ..., n-1}
- P is a row-grouped SparseMatrix with one row group per state and one row
  per enabled action
- ι is a set of initial states
- optional state rewards (one per state) and transition rewards (a matrix
  shaped like P)

A Markov chain is the special case with exactly one action per state.
Models are read-only for the analysis: checks never modify them.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from sparse_prctl.storage.scheduler import TotalScheduler
from sparse_prctl.storage.sparse_matrix import SparseMatrix, SparseMatrixBuilder
from sparse_prctl.storage.state_set import StateSet


@dataclass
class Mdp:
    """Sparse MDP.

    Attributes:
        transition_matrix: Row-grouped transition probabilities.
        initial_states: Set of initial states.
        state_rewards: Optional reward per state.
        transition_rewards: Optional reward matrix with the shape of the
            transition matrix.
        labeling: Mapping from state to the atomic propositions holding there.
    """

    transition_matrix: SparseMatrix
    initial_states: StateSet
    state_rewards: list[float] | None = None
    transition_rewards: SparseMatrix | None = None
    labeling: dict[int, set[str]] = field(default_factory=dict)
    _backward_transitions: SparseMatrix | None = field(default=None, init=False, repr=False)

    @property
    def number_of_states(self) -> int:
        return self.transition_matrix.row_group_count

    @property
    def number_of_choices(self) -> int:
        """Total number of actions over all states."""
        return self.transition_matrix.row_count

    @property
    def row_group_indices(self) -> list[int]:
        return self.transition_matrix.row_group_indices

    @property
    def backward_transitions(self) -> SparseMatrix:
        """Predecessor relation between states, computed once."""
        if self._backward_transitions is None:
            self._backward_transitions = self.transition_matrix.transpose()
        return self._backward_transitions

    def get_number_of_choices(self, state: int) -> int:
        return self.transition_matrix.row_group_size(state)

    def has_state_rewards(self) -> bool:
        return self.state_rewards is not None

    def has_transition_rewards(self) -> bool:
        return self.transition_rewards is not None

    def is_deterministic(self) -> bool:
        """True if every state has exactly one action."""
        return self.transition_matrix.has_trivial_row_grouping()

    def states_with_label(self, label: str) -> StateSet:
        return StateSet.from_indices(
            self.number_of_states,
            (s for s, labels in self.labeling.items() if label in labels),
        )

    def all_states(self) -> StateSet:
        return StateSet.full(self.number_of_states)

    def validate(self) -> None:
        """Validate the MDP.

        Checks that:
        1. The transition matrix is square over states
        2. Every state has at least one action
        3. Every row is a sub-probability distribution
        4. Initial states and reward components fit the state space

        Raises:
            ValueError: If the MDP is malformed.
        """
        n = self.number_of_states
        matrix = self.transition_matrix
        if matrix.column_count != n:
            raise ValueError(
                f"Transition matrix has {matrix.column_count} columns for {n} states"
            )
        for state in range(n):
            if matrix.row_group_size(state) == 0:
                raise ValueError(f"State {state} has no actions")
        matrix.validate_probabilities()

        if self.initial_states.size != n:
            raise ValueError(
                f"Initial state set has size {self.initial_states.size}, expected {n}"
            )
        if self.state_rewards is not None and len(self.state_rewards) != n:
            raise ValueError(
                f"State reward vector has {len(self.state_rewards)} entries, expected {n}"
            )
        if self.transition_rewards is not None and (
            self.transition_rewards.row_count != matrix.row_count
            or self.transition_rewards.column_count != n
        ):
            raise ValueError(
                f"Transition reward matrix is {self.transition_rewards.row_count}×"
                f"{self.transition_rewards.column_count}, expected {matrix.row_count}×{n}"
            )

    def apply_scheduler(self, scheduler: TotalScheduler) -> Mdp:
        """Collapse the MDP to the Markov chain induced by ``scheduler``.

        Every state keeps only the action chosen by the scheduler; rewards of
        the chosen actions are carried over.

        Raises:
            ValueError: If the scheduler does not fit the model.
        """
        if len(scheduler) != self.number_of_states:
            raise ValueError(
                f"Scheduler covers {len(scheduler)} states, model has {self.number_of_states}"
            )
        rows: list[int] = []
        for state in range(self.number_of_states):
            choice = scheduler.get_choice(state)
            if not 0 <= choice < self.get_number_of_choices(state):
                raise ValueError(
                    f"Choice {choice} out of range for state {state} with "
                    f"{self.get_number_of_choices(state)} actions"
                )
            rows.append(self.row_group_indices[state] + choice)

        return Mdp(
            transition_matrix=self.transition_matrix.select_rows(rows),
            initial_states=self.initial_states.copy(),
            state_rewards=list(self.state_rewards) if self.state_rewards is not None else None,
            transition_rewards=(
                self.transition_rewards.select_rows(rows)
                if self.transition_rewards is not None
                else None
            ),
            labeling={s: set(labels) for s, labels in self.labeling.items()},
        )


# =============================================================================
# MDP Builder
# =============================================================================


Choice = Sequence[tuple[int, float]]
"""One action: list of (successor, probability) pairs."""


def _build_grouped_matrix(
    number_of_states: int,
    choices: Mapping[int, Sequence[Choice]],
) -> SparseMatrix:
    builder = SparseMatrixBuilder()
    row = 0
    for state in range(number_of_states):
        builder.new_row_group(row)
        for action in choices.get(state, ()):
            for target, value in sorted(action):
                builder.add_next_value(row, target, value)
            row += 1
    return builder.build(row_count=row, column_count=number_of_states)


def build_mdp(
    states: Mapping[int, set[str]] | int,
    choices: Mapping[int, Sequence[Choice]],
    initial_states: Iterable[int] = (0,),
    state_rewards: Mapping[int, float] | None = None,
    transition_rewards: Mapping[int, Sequence[Choice]] | None = None,
) -> Mdp:
    """Build an MDP from explicit descriptions.

    Convenience function for creating MDPs from dictionaries.

    Args:
        states: Mapping from state ID to label set, or just the number of
            states. State IDs must be ``0..n-1``.
        choices: Mapping from state ID to its actions, each a list of
            (target, probability) pairs.
        initial_states: The initial state IDs.
        state_rewards: Optional mapping from state ID to reward; missing
            states get 0.
        transition_rewards: Optional rewards shaped like ``choices``: for
            each state, one list of (target, reward) pairs per action.

    Returns:
        A validated Mdp.

    Example:
        >>> mdp = build_mdp(2, {0: [[(1, 1.0)], [(0, 1.0)]], 1: [[(1, 1.0)]]})
        >>> mdp.get_number_of_choices(0)
        2
    """
    if isinstance(states, int):
        number_of_states = states
        labeling: dict[int, set[str]] = {}
    else:
        number_of_states = len(states)
        labeling = {s: set(labels) for s, labels in states.items()}
        if set(labeling) != set(range(number_of_states)):
            raise ValueError(f"State IDs must be 0..{number_of_states - 1}, got {sorted(labeling)}")

    transition_matrix = _build_grouped_matrix(number_of_states, choices)

    rewards_matrix: SparseMatrix | None = None
    if transition_rewards is not None:
        rewards_matrix = _build_grouped_matrix(number_of_states, transition_rewards)
        if rewards_matrix.row_group_indices != transition_matrix.row_group_indices:
            raise ValueError("Transition rewards must have one entry list per action")

    rewards_vector: list[float] | None = None
    if state_rewards is not None:
        rewards_vector = [float(state_rewards.get(s, 0.0)) for s in range(number_of_states)]

    mdp = Mdp(
        transition_matrix=transition_matrix,
        initial_states=StateSet.from_indices(number_of_states, initial_states),
        state_rewards=rewards_vector,
        transition_rewards=rewards_matrix,
        labeling=labeling,
    )
    mdp.validate()
    return mdp


__all__ = [
    "Mdp",
    "Choice",
    "build_mdp",
]
