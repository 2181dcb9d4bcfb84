"""Extremal probability and reward computations on sparse MDPs.

This module provides the numeric core behind the PRCTL model checker:
- Unbounded until: qualitative precomputation, reduction to the maybe-states,
  min-max equation solving and scheduler extraction
- Bounded until and next: unrolled extremal matrix-vector products
- Reachability, instantaneous and cumulative rewards

Every entry point takes the optimization direction explicitly as
``minimize`` and only reads the model data it is given. Results are plain
lists with one entry per state; states whose value was only classified
qualitatively hold ``MAYBE``.

Theory: Bianco & de Alfaro (1995), PCTL model checking of MDPs.
Algorithms from Baier & Katoen, "Principles of Model Checking", Chapter 10.6.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from sparse_prctl.exceptions import MissingRewardModelError
from sparse_prctl.solver.min_max import MinMaxLinearEquationSolver
from sparse_prctl.storage.scheduler import TotalScheduler
from sparse_prctl.storage.sparse_matrix import SparseMatrix, SparseMatrixBuilder
from sparse_prctl.storage.state_set import StateSet
from sparse_prctl.types import MAYBE, Value
from sparse_prctl.utility import graph
from sparse_prctl.utility.vector import (
    add_vectors_in_place,
    reduce_vector,
    select_vector_values,
    select_vector_values_repeatedly,
    set_vector_values,
)

logger = logging.getLogger(__name__)

_UNDETERMINED_PROBABILITY = 0.5
"""Stand-in for MAYBE probabilities during scheduler extraction."""

_UNDETERMINED_REWARD = 1.0
"""Stand-in for MAYBE rewards during scheduler extraction."""

_OPTIMALITY_TOLERANCE = 1e-6
"""Relative distance from the extremal lookahead within which an action counts as optimal."""


# =============================================================================
# Shared Building Blocks
# =============================================================================


def _total_reward_vector(
    transition_matrix: SparseMatrix,
    state_rewards: Sequence[float] | None,
    transition_rewards: SparseMatrix | None,
) -> list[float] | None:
    """Expected one-step reward of every row.

    The transition-reward part is the row sum of the pointwise product of
    probabilities and rewards; the state reward of a state is added to each
    of its rows.

    Returns:
        One reward per row, or None if there is no reward component.
    """
    if transition_rewards is None and state_rewards is None:
        return None

    all_states = StateSet.full(transition_matrix.row_group_count)
    if transition_rewards is not None:
        total = transition_matrix.get_pointwise_product_row_sum_vector(transition_rewards)
        if state_rewards is not None:
            add_vectors_in_place(
                total,
                select_vector_values_repeatedly(
                    state_rewards, all_states, transition_matrix.row_group_indices
                ),
            )
        return total

    assert state_rewards is not None
    return select_vector_values_repeatedly(
        state_rewards, all_states, transition_matrix.row_group_indices
    )


def _require_rewards(
    state_rewards: Sequence[float] | None,
    transition_rewards: SparseMatrix | None,
) -> None:
    if state_rewards is None and transition_rewards is None:
        logger.error("Missing reward model for formula.")
        raise MissingRewardModelError(
            message="Missing reward model for formula",
            required="state or transition rewards",
        )


def _is_optimal(candidate: float, best: float) -> bool:
    if math.isinf(candidate) or math.isinf(best):
        return candidate == best
    return abs(candidate - best) <= _OPTIMALITY_TOLERANCE * max(1.0, abs(best))


def _attract_to_target(
    transition_matrix: SparseMatrix,
    lookahead: Sequence[float],
    best: Sequence[float],
    choices: list[int],
    target_states: StateSet,
    progress_states: StateSet,
) -> None:
    """Re-pick choices of ``progress_states`` so that they lead towards the target.

    Among its optimal actions, a state takes the first one with a successor
    that already reaches the target, building a backward attractor from
    ``target_states``. Every picked action thus shortens the distance to the
    target, so optimal self-loops and other cycles that never leave are not
    chosen. If rounding leaves no optimal progressing action for any pending
    state, the progressing action closest to optimal is taken instead.
    States that cannot be attracted keep their choice. Modifies ``choices``
    in place.
    """
    row_group_indices = transition_matrix.row_group_indices
    attracted = target_states.copy()
    pending = [state for state in progress_states if state not in target_states]

    def progresses(row: int) -> bool:
        return any(column in attracted for column, _ in transition_matrix.get_row(row))

    def attract(state: int, row: int) -> None:
        choices[state] = row - row_group_indices[state]
        attracted.set(state)

    while pending:
        remaining: list[int] = []
        for state in pending:
            for row in transition_matrix.get_row_group(state):
                if _is_optimal(lookahead[row], best[state]) and progresses(row):
                    attract(state, row)
                    break
            else:
                remaining.append(state)
        if len(remaining) < len(pending):
            pending = remaining
            continue

        closest = min(
            (
                (abs(lookahead[row] - best[state]), state, row)
                for state in pending
                if not math.isinf(best[state])
                for row in transition_matrix.get_row_group(state)
                if not math.isinf(lookahead[row]) and progresses(row)
            ),
            default=None,
        )
        if closest is None:
            break
        _, state, row = closest
        attract(state, row)
        pending = [other for other in pending if other != state]


def compute_extremal_scheduler(
    minimize: bool,
    transition_matrix: SparseMatrix,
    result: Sequence[Value],
    state_rewards: Sequence[float] | None = None,
    transition_rewards: SparseMatrix | None = None,
    undetermined_value: float = _UNDETERMINED_PROBABILITY,
    target_states: StateSet | None = None,
    progress_states: StateSet | None = None,
) -> TotalScheduler:
    """Choose, per state, the action with the extremal one-step lookahead.

    The lookahead of a row is ``Σ_j P(row, j)·result[j]`` plus the expected
    one-step reward of the row if rewards are given. Ties resolve to the
    lowest action index.

    A lookahead-optimal action may still loop forever, e.g. a self-loop at a
    state whose value only depends on leaving it. When ``target_states`` is
    given, the states of ``progress_states`` instead take the lowest optimal
    action that moves towards the target.

    Args:
        minimize: Pick the minimal (else maximal) lookahead.
        transition_matrix: Row-grouped transition matrix of the model.
        result: Final value of every state.
        state_rewards: Optional state rewards.
        transition_rewards: Optional transition rewards.
        undetermined_value: Value used in place of ``MAYBE`` entries.
        target_states: States the scheduler has to lead towards.
        progress_states: States that must reach ``target_states``.

    Returns:
        A TotalScheduler with one local action index per state.
    """
    numeric = [undetermined_value if value is MAYBE else value for value in result]
    lookahead = transition_matrix.multiply_with_vector(numeric)

    rewards = _total_reward_vector(transition_matrix, state_rewards, transition_rewards)
    if rewards is not None:
        add_vectors_in_place(lookahead, rewards)

    best, choices = reduce_vector(minimize, lookahead, transition_matrix.row_group_indices)
    if target_states is not None and progress_states is not None:
        _attract_to_target(
            transition_matrix, lookahead, best, choices, target_states, progress_states
        )
    return TotalScheduler(choices)


# =============================================================================
# Probabilities
# =============================================================================


def compute_until_probabilities(
    minimize: bool,
    transition_matrix: SparseMatrix,
    backward_transitions: SparseMatrix,
    initial_states: StateSet,
    phi_states: StateSet,
    psi_states: StateSet,
    qualitative: bool,
    solver: MinMaxLinearEquationSolver,
) -> tuple[list[Value], TotalScheduler]:
    """Compute extremal probabilities of ``phi U psi`` and a scheduler attaining them.

    The algorithm:
    1. Determine the states with probability exactly 0 and exactly 1 by
       graph analysis.
    2. The remaining maybe-states need numeric treatment, unless no initial
       state is among them or only a qualitative answer was requested; then
       they are marked ``MAYBE``.
    3. Otherwise solve ``x = opt(A·x + b)`` over the maybe-states, where A
       is the transition matrix restricted to them and b holds the
       probability of moving into a probability-1 state in one step.
    4. Extract a scheduler from the values. When maximizing, states with
       positive probability pick optimal actions that lead towards psi.

    Args:
        minimize: Compute minimal (else maximal) probabilities.
        transition_matrix: Row-grouped transition matrix.
        backward_transitions: Backward view of the transition matrix.
        initial_states: Initial states of the model.
        phi_states: States satisfying phi.
        psi_states: States satisfying psi.
        qualitative: Only classify values against the bounds 0 and 1.
        solver: Min-max equation solver.

    Returns:
        Tuple of (probability per state, scheduler).
    """
    if minimize:
        prob0, prob1 = graph.perform_prob01_min(
            transition_matrix, backward_transitions, phi_states, psi_states
        )
    else:
        prob0, prob1 = graph.perform_prob01_max(
            transition_matrix, backward_transitions, phi_states, psi_states
        )
    maybe_states = ~(prob0 | prob1)

    logger.info(f"Found {prob0.count()} 'no' states.")
    logger.info(f"Found {prob1.count()} 'yes' states.")
    logger.info(f"Found {maybe_states.count()} 'maybe' states.")

    result: list[Value] = [0.0] * psi_states.size

    if qualitative or initial_states.is_disjoint_from(maybe_states):
        if qualitative:
            logger.info("The formula was checked qualitatively. No exact probabilities were computed.")
        else:
            logger.info(
                "The probabilities for the initial states were determined in a preprocessing "
                "step. No exact probabilities were computed."
            )
        set_vector_values(result, maybe_states, MAYBE)
    else:
        submatrix = transition_matrix.get_submatrix(maybe_states)
        b = transition_matrix.get_constrained_row_sum_vector(maybe_states, prob1)
        x = [0.0] * maybe_states.count()
        solver.solve_equation_system(minimize, submatrix, x, b)
        set_vector_values(result, maybe_states, x)

    set_vector_values(result, prob0, 0.0)
    set_vector_values(result, prob1, 1.0)

    if minimize:
        scheduler = compute_extremal_scheduler(minimize, transition_matrix, result)
    else:
        scheduler = compute_extremal_scheduler(
            minimize,
            transition_matrix,
            result,
            target_states=psi_states,
            progress_states=~prob0,
        )
    return result, scheduler


def compute_bounded_until_probabilities(
    minimize: bool,
    transition_matrix: SparseMatrix,
    backward_transitions: SparseMatrix,
    initial_states: StateSet,
    phi_states: StateSet,
    psi_states: StateSet,
    step_bound: int,
    qualitative: bool,
    solver: MinMaxLinearEquationSolver,
) -> list[Value]:
    """Compute extremal probabilities of ``phi U≤k psi``.

    Only the states with positive probability of reaching psi within
    ``step_bound`` steps are kept. On them, psi-states are made absorbing and
    ``step_bound`` extremal matrix-vector sweeps are applied to the vector
    holding 1 on psi and 0 elsewhere.

    Args:
        minimize: Compute minimal (else maximal) probabilities.
        transition_matrix: Row-grouped transition matrix.
        backward_transitions: Backward view of the transition matrix.
        initial_states: Initial states of the model.
        phi_states: States satisfying phi.
        psi_states: States satisfying psi.
        step_bound: Maximal number of steps.
        qualitative: Only classify values against the bounds 0 and 1.
        solver: Min-max equation solver.

    Returns:
        Probability per state.
    """
    if minimize:
        positive = graph.perform_prob_greater_0_a(
            transition_matrix, backward_transitions, phi_states, psi_states, True, step_bound
        )
    else:
        positive = graph.perform_prob_greater_0_e(
            backward_transitions, phi_states, psi_states, True, step_bound
        )
    logger.info(f"Found {positive.count()} states with positive probability.")

    result: list[Value] = [0.0] * psi_states.size

    if qualitative or initial_states.is_disjoint_from(positive):
        if qualitative:
            logger.info("The formula was checked qualitatively. No exact probabilities were computed.")
        else:
            logger.info(
                "The probabilities for the initial states were determined in a preprocessing "
                "step. No exact probabilities were computed."
            )
        set_vector_values(result, positive - psi_states, MAYBE)
        set_vector_values(result, psi_states, 1.0)
        return result

    submatrix = transition_matrix.get_submatrix(positive)
    psi_in_reduced = psi_states.relative_to(positive)
    submatrix.make_rows_absorbing(psi_in_reduced)

    subresult = [1.0 if i in psi_in_reduced else 0.0 for i in range(positive.count())]
    solver.perform_matrix_vector_multiplication(minimize, submatrix, subresult, None, step_bound)

    set_vector_values(result, positive, subresult)
    return result


def compute_next_probabilities(
    minimize: bool,
    transition_matrix: SparseMatrix,
    next_states: StateSet,
    solver: MinMaxLinearEquationSolver,
) -> list[float]:
    """Compute extremal probabilities of reaching ``next_states`` in one step."""
    result = [1.0 if state in next_states else 0.0 for state in range(next_states.size)]
    solver.perform_matrix_vector_multiplication(minimize, transition_matrix, result)
    return result


# =============================================================================
# Rewards
# =============================================================================


def compute_instantaneous_rewards(
    minimize: bool,
    transition_matrix: SparseMatrix,
    state_rewards: Sequence[float] | None,
    step_count: int,
    solver: MinMaxLinearEquationSolver,
) -> list[float]:
    """Compute extremal expected state reward after exactly ``step_count`` steps.

    Raises:
        MissingRewardModelError: If the model has no state rewards.
    """
    if state_rewards is None:
        logger.error("Missing (state-based) reward model for formula.")
        raise MissingRewardModelError(
            message="Missing (state-based) reward model for formula",
            required="state rewards",
        )

    result = list(state_rewards)
    solver.perform_matrix_vector_multiplication(
        minimize, transition_matrix, result, None, step_count
    )
    return result


def compute_cumulative_rewards(
    minimize: bool,
    transition_matrix: SparseMatrix,
    state_rewards: Sequence[float] | None,
    transition_rewards: SparseMatrix | None,
    step_bound: int,
    solver: MinMaxLinearEquationSolver,
) -> list[float]:
    """Compute extremal expected reward accumulated within ``step_bound`` steps.

    Each sweep adds the expected one-step reward of every row before
    reducing to the extremal row, so rewards accumulate across steps.

    Raises:
        MissingRewardModelError: If the model has neither state nor
            transition rewards.
    """
    _require_rewards(state_rewards, transition_rewards)
    total_rewards = _total_reward_vector(transition_matrix, state_rewards, transition_rewards)

    result = [0.0] * transition_matrix.row_group_count
    solver.perform_matrix_vector_multiplication(
        minimize, transition_matrix, result, total_rewards, step_bound
    )
    return result


def _minimal_reward_system(
    transition_matrix: SparseMatrix,
    maybe_states: StateSet,
    target_states: StateSet,
    total_rewards: Sequence[float],
) -> tuple[SparseMatrix, list[float], list[int]]:
    """Equation system for minimal reachability rewards over the maybe-states.

    Actions that may lead to an infinite-reward state or that leak
    probability mass are dropped. Inside a zero-reward end component a
    scheduler can stay forever for free, so iterating from 0 would settle on
    0 there. Each such component is therefore collapsed into one state that
    keeps every action except the zero-reward ones staying inside it.

    Returns:
        Tuple of (matrix over the collapsed states, reward per row, collapsed
        index of every maybe-state in ascending order).
    """
    finite_states = maybe_states | target_states
    usable: dict[int, list[int]] = {
        state: [
            row
            for row in transition_matrix.get_row_group(state)
            if not graph.row_leaks(transition_matrix.get_row(row))
            and all(column in finite_states for column, _ in transition_matrix.get_row(row))
        ]
        for state in maybe_states
    }
    zero_reward_rows = {
        row
        for rows in usable.values()
        for row in rows
        if total_rewards[row] == 0.0
        and all(column in maybe_states for column, _ in transition_matrix.get_row(row))
    }

    components = graph.maximal_end_components(transition_matrix, maybe_states, zero_reward_rows)
    component_of = {
        state: number for number, component in enumerate(components) for state in component
    }
    logger.info(f"Found {len(components)} zero-reward end components among the 'maybe' states.")

    # Collapsed states in order of their lowest member
    collapsed: dict[int, int] = {}
    members: list[list[int]] = []
    first_of_component: dict[int, int] = {}
    for state in maybe_states:
        number = component_of.get(state)
        if number is not None and number in first_of_component:
            collapsed[state] = first_of_component[number]
            members[collapsed[state]].append(state)
            continue
        collapsed[state] = len(members)
        members.append([state])
        if number is not None:
            first_of_component[number] = collapsed[state]

    builder = SparseMatrixBuilder()
    rewards: list[float] = []
    for group in members:
        builder.new_row_group(len(rewards))
        for state in group:
            for row in usable[state]:
                entries = transition_matrix.get_row(row)
                if row in zero_reward_rows and state in component_of and all(
                    component_of.get(column) == component_of[state] for column, _ in entries
                ):
                    continue
                merged: dict[int, float] = {}
                for column, value in entries:
                    if column in collapsed:
                        merged[collapsed[column]] = merged.get(collapsed[column], 0.0) + value
                for column in sorted(merged):
                    builder.add_next_value(len(rewards), column, merged[column])
                rewards.append(total_rewards[row])

    matrix = builder.build(row_count=len(rewards), column_count=len(members))
    return matrix, rewards, [collapsed[state] for state in maybe_states]


def compute_reachability_rewards(
    minimize: bool,
    transition_matrix: SparseMatrix,
    backward_transitions: SparseMatrix,
    initial_states: StateSet,
    target_states: StateSet,
    state_rewards: Sequence[float] | None,
    transition_rewards: SparseMatrix | None,
    qualitative: bool,
    solver: MinMaxLinearEquationSolver,
) -> tuple[list[Value], TotalScheduler]:
    """Compute extremal expected reward gained before reaching ``target_states``.

    States that cannot reach the target with probability 1 under the
    optimizing schedulers collect infinite reward. When minimizing, a state
    is finite if some scheduler reaches the target almost surely; when
    maximizing, only if every scheduler does. Minimal rewards only range
    over schedulers that reach the target, so zero-reward end components
    are collapsed before solving.

    Args:
        minimize: Compute minimal (else maximal) rewards.
        transition_matrix: Row-grouped transition matrix.
        backward_transitions: Backward view of the transition matrix.
        initial_states: Initial states of the model.
        target_states: States at which reward collection stops.
        state_rewards: Optional state rewards.
        transition_rewards: Optional transition rewards.
        qualitative: Only classify values against the bounds 0 and infinity.
        solver: Min-max equation solver.

    Returns:
        Tuple of (reward per state, scheduler).

    Raises:
        MissingRewardModelError: If there is no reward component.
    """
    _require_rewards(state_rewards, transition_rewards)

    all_states = StateSet.full(target_states.size)
    if minimize:
        finite = graph.perform_prob1_e(
            transition_matrix, backward_transitions, all_states, target_states
        )
    else:
        finite = graph.perform_prob1_a(
            transition_matrix, backward_transitions, all_states, target_states
        )
    infinity_states = ~finite
    maybe_states = ~target_states - infinity_states

    logger.info(f"Found {infinity_states.count()} 'infinity' states.")
    logger.info(f"Found {target_states.count()} 'target' states.")
    logger.info(f"Found {maybe_states.count()} 'maybe' states.")

    result: list[Value] = [0.0] * target_states.size

    if qualitative or initial_states.is_disjoint_from(maybe_states):
        if qualitative:
            logger.info("The formula was checked qualitatively. No exact rewards were computed.")
        else:
            logger.info(
                "The rewards for the initial states were determined in a preprocessing step. "
                "No exact rewards were computed."
            )
        set_vector_values(result, maybe_states, MAYBE)
    else:
        total_rewards = _total_reward_vector(transition_matrix, state_rewards, transition_rewards)
        assert total_rewards is not None
        if minimize:
            submatrix, b, collapsed = _minimal_reward_system(
                transition_matrix, maybe_states, target_states, total_rewards
            )
            x = [0.0] * submatrix.row_group_count
            solver.solve_equation_system(minimize, submatrix, x, b)
            set_vector_values(result, maybe_states, [x[index] for index in collapsed])
        else:
            submatrix = transition_matrix.get_submatrix(maybe_states)
            b = select_vector_values(
                total_rewards, maybe_states, transition_matrix.row_group_indices
            )
            x = [0.0] * maybe_states.count()
            solver.solve_equation_system(minimize, submatrix, x, b)
            set_vector_values(result, maybe_states, x)

    set_vector_values(result, target_states, 0.0)
    set_vector_values(result, infinity_states, math.inf)

    scheduler = compute_extremal_scheduler(
        minimize,
        transition_matrix,
        result,
        state_rewards,
        transition_rewards,
        undetermined_value=_UNDETERMINED_REWARD,
        target_states=target_states,
        progress_states=maybe_states,
    )
    return result, scheduler


__all__ = [
    "compute_extremal_scheduler",
    "compute_until_probabilities",
    "compute_bounded_until_probabilities",
    "compute_next_probabilities",
    "compute_instantaneous_rewards",
    "compute_cumulative_rewards",
    "compute_reachability_rewards",
]
