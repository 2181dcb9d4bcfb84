"""Qualitative graph analysis for MDPs.

Backward fixpoint computations that determine, without any numerics, the
states whose extremal probability of satisfying ``phi U psi`` is exactly 0
or exactly 1. The suffixes follow the usual convention:

- ``E`` (exists): there is a scheduler achieving the property
- ``A`` (all): every scheduler achieves the property

So ``prob0E`` are the states where some scheduler reaches psi with
probability 0, and ``prob1A`` the states where every scheduler reaches psi
with probability 1.

The probability routines walk the backward transition relation (see
``SparseMatrix.transpose``). The fixpoints are unique, so the traversal order
is irrelevant to the result. The maximal end component decomposition
refines strongly connected components of the forward relation.

Algorithms from Baier & Katoen, "Principles of Model Checking", Chapter 10.6.
"""

from __future__ import annotations

from collections.abc import Collection, Iterator

from sparse_prctl.storage.sparse_matrix import Row, SparseMatrix
from sparse_prctl.storage.state_set import StateSet

_PROBABILITY_SUM_TOLERANCE = 1e-6
"""Rows whose mass falls short of 1.0 by more than this leak probability."""


def row_leaks(entries: Row) -> bool:
    """True if the row is a strict sub-distribution."""
    return sum(value for _, value in entries) < 1.0 - _PROBABILITY_SUM_TOLERANCE


def _within_bound(use_step_bound: bool, maximal_steps: int, steps: int) -> bool:
    return not use_step_bound or steps < maximal_steps


# =============================================================================
# Positive Probability
# =============================================================================


def perform_prob_greater_0_e(
    backward_transitions: SparseMatrix,
    phi_states: StateSet,
    psi_states: StateSet,
    use_step_bound: bool = False,
    maximal_steps: int = 0,
) -> StateSet:
    """States from which some scheduler satisfies ``phi U psi`` with positive probability.

    Least fixpoint: start from psi, add phi-predecessors (through any action)
    layer by layer. With a step bound only paths of at most ``maximal_steps``
    transitions count. On a Markov chain this is the plain
    positive-probability set.

    Args:
        backward_transitions: State-level backward transition relation.
        phi_states: States that may be passed through.
        psi_states: Target states.
        use_step_bound: Whether to limit the path length.
        maximal_steps: The path length limit.

    Returns:
        The set of states with positive maximal probability.
    """
    result = psi_states.copy()
    frontier = list(psi_states)
    steps = 0

    while frontier and _within_bound(use_step_bound, maximal_steps, steps):
        next_frontier: list[int] = []
        for state in frontier:
            for predecessor, _ in backward_transitions.get_row(state):
                if predecessor in phi_states and predecessor not in result:
                    result.set(predecessor)
                    next_frontier.append(predecessor)
        frontier = next_frontier
        steps += 1

    return result


def perform_prob_greater_0_a(
    transition_matrix: SparseMatrix,
    backward_transitions: SparseMatrix,
    phi_states: StateSet,
    psi_states: StateSet,
    use_step_bound: bool = False,
    maximal_steps: int = 0,
) -> StateSet:
    """States from which every scheduler satisfies ``phi U psi`` with positive probability.

    Least fixpoint: start from psi and add a phi-state once each of its
    actions has a successor already in the set. Layers are added
    synchronously so that the layer count equals the step bound.

    Args:
        transition_matrix: Row-grouped transition matrix.
        backward_transitions: State-level backward transition relation.
        phi_states: States that may be passed through.
        psi_states: Target states.
        use_step_bound: Whether to limit the path length.
        maximal_steps: The path length limit.

    Returns:
        The set of states with positive minimal probability.
    """
    result = psi_states.copy()
    frontier = list(psi_states)
    steps = 0

    while frontier and _within_bound(use_step_bound, maximal_steps, steps):
        candidates = {
            predecessor
            for state in frontier
            for predecessor, _ in backward_transitions.get_row(state)
            if predecessor in phi_states and predecessor not in result
        }
        next_frontier: list[int] = []
        for candidate in sorted(candidates):
            rows = transition_matrix.get_row_group(candidate)
            # No action may avoid the current set
            if len(rows) and all(
                any(column in result for column, _ in transition_matrix.get_row(row))
                for row in rows
            ):
                next_frontier.append(candidate)
        for state in next_frontier:
            result.set(state)
        frontier = next_frontier
        steps += 1

    return result


# =============================================================================
# Probability 0
# =============================================================================


def perform_prob0_a(
    backward_transitions: SparseMatrix,
    phi_states: StateSet,
    psi_states: StateSet,
) -> StateSet:
    """States where every scheduler satisfies ``phi U psi`` with probability 0."""
    return ~perform_prob_greater_0_e(backward_transitions, phi_states, psi_states)


def perform_prob0_e(
    transition_matrix: SparseMatrix,
    backward_transitions: SparseMatrix,
    phi_states: StateSet,
    psi_states: StateSet,
) -> StateSet:
    """States where some scheduler satisfies ``phi U psi`` with probability 0."""
    return ~perform_prob_greater_0_a(transition_matrix, backward_transitions, phi_states, psi_states)


# =============================================================================
# Probability 1
# =============================================================================


def perform_prob1_e(
    transition_matrix: SparseMatrix,
    backward_transitions: SparseMatrix,
    phi_states: StateSet,
    psi_states: StateSet,
) -> StateSet:
    """States where some scheduler satisfies ``phi U psi`` with probability 1.

    Nested fixpoint. The outer greatest fixpoint shrinks a candidate set,
    starting from all states. The inner least fixpoint collects, backward
    from psi, the phi-states having an action whose whole support stays in
    the candidate set and which hits the inner set. Each outer round
    replaces the candidates by the inner result until nothing changes.
    """
    current = StateSet.full(psi_states.size)

    while True:
        next_states = psi_states.copy()
        stack = list(psi_states)

        while stack:
            state = stack.pop()
            for predecessor, _ in backward_transitions.get_row(state):
                if predecessor not in phi_states or predecessor in next_states:
                    continue
                for row in transition_matrix.get_row_group(predecessor):
                    entries = transition_matrix.get_row(row)
                    if row_leaks(entries):
                        continue
                    if all(column in current for column, _ in entries) and any(
                        column in next_states for column, _ in entries
                    ):
                        next_states.set(predecessor)
                        stack.append(predecessor)
                        break

        if next_states == current:
            return current
        current = next_states


def perform_prob1_a(
    transition_matrix: SparseMatrix,
    backward_transitions: SparseMatrix,
    phi_states: StateSet,
    psi_states: StateSet,
) -> StateSet:
    """States where every scheduler satisfies ``phi U psi`` with probability 1.

    A state fails exactly when some scheduler can steer it, through
    ``phi ∧ ¬psi`` states, with positive probability into a state from which
    psi is missed for sure (prob0E) or into an action that leaks mass.
    """
    bad_states = perform_prob0_e(transition_matrix, backward_transitions, phi_states, psi_states)
    for state in phi_states - psi_states:
        if any(
            row_leaks(transition_matrix.get_row(row))
            for row in transition_matrix.get_row_group(state)
        ):
            bad_states.set(state)

    return ~perform_prob_greater_0_e(backward_transitions, phi_states - psi_states, bad_states)


# =============================================================================
# Combined
# =============================================================================


def perform_prob01_max(
    transition_matrix: SparseMatrix,
    backward_transitions: SparseMatrix,
    phi_states: StateSet,
    psi_states: StateSet,
) -> tuple[StateSet, StateSet]:
    """Probability-0 and probability-1 states under maximizing schedulers.

    Returns:
        Tuple of (prob0A, prob1E).
    """
    return (
        perform_prob0_a(backward_transitions, phi_states, psi_states),
        perform_prob1_e(transition_matrix, backward_transitions, phi_states, psi_states),
    )


def perform_prob01_min(
    transition_matrix: SparseMatrix,
    backward_transitions: SparseMatrix,
    phi_states: StateSet,
    psi_states: StateSet,
) -> tuple[StateSet, StateSet]:
    """Probability-0 and probability-1 states under minimizing schedulers.

    Returns:
        Tuple of (prob0E, prob1A).
    """
    return (
        perform_prob0_e(transition_matrix, backward_transitions, phi_states, psi_states),
        perform_prob1_a(transition_matrix, backward_transitions, phi_states, psi_states),
    )


# =============================================================================
# End Components
# =============================================================================


def _strongly_connected_components(
    transition_matrix: SparseMatrix,
    actions: dict[int, list[int]],
) -> list[list[int]]:
    """Tarjan's algorithm over the graph induced by the given rows of each state.

    Only states present in ``actions`` are nodes. Uses an explicit stack
    instead of recursion.
    """
    index: dict[int, int] = {}
    low_link: dict[int, int] = {}
    on_stack: set[int] = set()
    stack: list[int] = []
    components: list[list[int]] = []

    def successors(state: int) -> Iterator[int]:
        return iter(sorted({
            column
            for row in actions[state]
            for column, _ in transition_matrix.get_row(row)
            if column in actions
        }))

    def visit(state: int) -> None:
        index[state] = low_link[state] = len(index)
        stack.append(state)
        on_stack.add(state)

    for root in actions:
        if root in index:
            continue
        visit(root)
        work = [(root, successors(root))]
        while work:
            state, children = work[-1]
            descended = False
            for child in children:
                if child not in index:
                    visit(child)
                    work.append((child, successors(child)))
                    descended = True
                    break
                if child in on_stack:
                    low_link[state] = min(low_link[state], index[child])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                low_link[parent] = min(low_link[parent], low_link[state])
            if low_link[state] == index[state]:
                component: list[int] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == state:
                        break
                components.append(sorted(component))

    return components


def maximal_end_components(
    transition_matrix: SparseMatrix,
    states: StateSet,
    allowed_rows: Collection[int] | None = None,
) -> list[StateSet]:
    """Maximal end components of the sub-MDP over ``states``.

    An end component is a set of states with a non-empty set of actions per
    state such that every chosen action stays inside the set and the graph
    they induce is strongly connected. Only rows from ``allowed_rows`` (all
    rows if None) whose whole support lies in ``states`` are considered.

    The candidates are split into SCCs repeatedly; each round drops every
    action leaving its SCC and every state left without actions, until
    nothing changes.

    Args:
        transition_matrix: Row-grouped transition matrix.
        states: States the end components must lie in.
        allowed_rows: Global row indices that may be used.

    Returns:
        The maximal end components, ordered by their lowest state.
    """
    actions: dict[int, list[int]] = {}
    for state in states:
        rows = [
            row
            for row in transition_matrix.get_row_group(state)
            if (allowed_rows is None or row in allowed_rows)
            and all(column in states for column, _ in transition_matrix.get_row(row))
        ]
        if rows:
            actions[state] = rows

    while True:
        components = _strongly_connected_components(transition_matrix, actions)
        component_of = {
            state: number for number, component in enumerate(components) for state in component
        }

        changed = False
        for state in list(actions):
            kept = [
                row
                for row in actions[state]
                if all(
                    component_of.get(column) == component_of[state]
                    for column, _ in transition_matrix.get_row(row)
                )
            ]
            if len(kept) == len(actions[state]):
                continue
            changed = True
            if kept:
                actions[state] = kept
            else:
                del actions[state]

        if not changed:
            components.sort(key=lambda component: component[0])
            return [StateSet.from_indices(states.size, component) for component in components]


__all__ = [
    "perform_prob_greater_0_e",
    "perform_prob_greater_0_a",
    "perform_prob0_a",
    "perform_prob0_e",
    "perform_prob1_e",
    "perform_prob1_a",
    "perform_prob01_max",
    "perform_prob01_min",
    "maximal_end_components",
    "row_leaks",
]
