"""PRCTL model checking of sparse MDPs.

This module provides:
- AbstractModelChecker: the capability set every model representation may
  implement (next, until, bounded until, eventually, globally and the
  reward operators)
- SparseMdpPrctlModelChecker: the implementation over explicit sparse MDPs

The checker works on already evaluated state formulas: phi/psi/target
arguments are StateSets produced by the caller. Because MDPs are
nondeterministic, every query needs an optimization direction; it is passed
explicitly with each call.

Example:
    >>> mdp = build_mdp(2, {0: [[(1, 1.0)], [(0, 1.0)]], 1: [[(1, 1.0)]]})
    >>> checker = SparseMdpPrctlModelChecker(mdp)
    >>> psi = StateSet.from_indices(2, [1])
    >>> result = checker.check_eventually(OptimizationDirection.MAXIMIZE, psi)
    >>> result.values
    [1.0, 1.0]
"""

from __future__ import annotations

import logging

from sparse_prctl.exceptions import InvalidArgumentError, NotImplementedVariantError
from sparse_prctl.modelchecker import helper
from sparse_prctl.modelchecker.results import (
    BOUNDED_PROBABILITY_RANGE,
    REWARD_RANGE,
    QuantitativeCheckResult,
)
from sparse_prctl.models.mdp import Mdp
from sparse_prctl.solver.min_max import MinMaxLinearEquationSolver, ValueIterationSolver
from sparse_prctl.storage.state_set import StateSet
from sparse_prctl.types import MAYBE, OptimizationDirection, Value

logger = logging.getLogger(__name__)


class AbstractModelChecker:
    """Capability set of a PRCTL model checker.

    Each operation of the base class reports that it is not supported, so a
    model representation only overrides what it can handle.
    """

    def _unsupported(self, operation: str) -> NotImplementedVariantError:
        return NotImplementedVariantError(
            message="This model checker does not support the operation",
            checker=type(self).__name__,
            operation=operation,
        )

    def check_next(
        self,
        direction: OptimizationDirection | None,
        next_states: StateSet,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        raise self._unsupported("check_next")

    def check_until(
        self,
        direction: OptimizationDirection | None,
        phi_states: StateSet,
        psi_states: StateSet,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        raise self._unsupported("check_until")

    def check_bounded_until(
        self,
        direction: OptimizationDirection | None,
        phi_states: StateSet,
        psi_states: StateSet,
        step_bound: int,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        raise self._unsupported("check_bounded_until")

    def check_eventually(
        self,
        direction: OptimizationDirection | None,
        target_states: StateSet,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        raise self._unsupported("check_eventually")

    def check_bounded_eventually(
        self,
        direction: OptimizationDirection | None,
        target_states: StateSet,
        step_bound: int,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        raise self._unsupported("check_bounded_eventually")

    def check_globally(
        self,
        direction: OptimizationDirection | None,
        phi_states: StateSet,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        raise self._unsupported("check_globally")

    def check_instantaneous_reward(
        self,
        direction: OptimizationDirection | None,
        step_count: int,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        raise self._unsupported("check_instantaneous_reward")

    def check_cumulative_reward(
        self,
        direction: OptimizationDirection | None,
        step_bound: int,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        raise self._unsupported("check_cumulative_reward")

    def check_reachability_reward(
        self,
        direction: OptimizationDirection | None,
        target_states: StateSet,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        raise self._unsupported("check_reachability_reward")


class SparseMdpPrctlModelChecker(AbstractModelChecker):
    """PRCTL model checker for explicit sparse MDPs.

    Attributes:
        model: The MDP under analysis; never modified.
        solver: Min-max equation solver used for numeric steps.
    """

    def __init__(self, model: Mdp, solver: MinMaxLinearEquationSolver | None = None):
        self.model = model
        self.solver = solver or ValueIterationSolver()

    # ── Argument checks ────────────────────────────────────────────────

    def _minimize(self, direction: OptimizationDirection | None) -> bool:
        if direction is None:
            logger.error(
                "Formula specifies neither min nor max optimality, which is not meaningful "
                "over nondeterministic models."
            )
            raise InvalidArgumentError(
                message="Formula specifies neither min nor max optimality, which is not "
                "meaningful over nondeterministic models"
            )
        try:
            return OptimizationDirection(direction).is_minimize
        except ValueError as e:
            logger.error(f"Unknown optimization direction {direction!r}.")
            raise InvalidArgumentError(
                message=f"Unknown optimization direction {direction!r}, expected "
                "'minimize' or 'maximize'"
            ) from e

    def _check_states(self, name: str, states: StateSet) -> None:
        if states.size != self.model.number_of_states:
            logger.error(f"State set '{name}' has size {states.size}.")
            raise InvalidArgumentError(
                message=f"State set '{name}' has size {states.size}, model has "
                f"{self.model.number_of_states} states"
            )

    @staticmethod
    def _check_bound(name: str, bound: int) -> None:
        if bound < 0:
            logger.error(f"Negative {name} {bound}.")
            raise InvalidArgumentError(message=f"{name} must be non-negative, got {bound}")

    # ── Probabilities ──────────────────────────────────────────────────

    def check_next(
        self,
        direction: OptimizationDirection | None,
        next_states: StateSet,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        """Extremal probability of reaching ``next_states`` in the next step."""
        minimize = self._minimize(direction)
        self._check_states("next", next_states)
        values = helper.compute_next_probabilities(
            minimize, self.model.transition_matrix, next_states, self.solver
        )
        return QuantitativeCheckResult(values=list(values))

    def check_until(
        self,
        direction: OptimizationDirection | None,
        phi_states: StateSet,
        psi_states: StateSet,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        """Extremal probability of ``phi U psi`` with a scheduler attaining it."""
        minimize = self._minimize(direction)
        self._check_states("phi", phi_states)
        self._check_states("psi", psi_states)
        values, scheduler = helper.compute_until_probabilities(
            minimize,
            self.model.transition_matrix,
            self.model.backward_transitions,
            self.model.initial_states,
            phi_states,
            psi_states,
            qualitative,
            self.solver,
        )
        return QuantitativeCheckResult(values=values, scheduler=scheduler)

    def check_bounded_until(
        self,
        direction: OptimizationDirection | None,
        phi_states: StateSet,
        psi_states: StateSet,
        step_bound: int,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        """Extremal probability of ``phi U≤step_bound psi``."""
        minimize = self._minimize(direction)
        self._check_states("phi", phi_states)
        self._check_states("psi", psi_states)
        self._check_bound("step bound", step_bound)
        values = helper.compute_bounded_until_probabilities(
            minimize,
            self.model.transition_matrix,
            self.model.backward_transitions,
            self.model.initial_states,
            phi_states,
            psi_states,
            step_bound,
            qualitative,
            self.solver,
        )
        return QuantitativeCheckResult(values=values, maybe_range=BOUNDED_PROBABILITY_RANGE)

    def check_eventually(
        self,
        direction: OptimizationDirection | None,
        target_states: StateSet,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        """Extremal probability of ``F target``, i.e. ``true U target``."""
        return self.check_until(direction, self.model.all_states(), target_states, qualitative)

    def check_bounded_eventually(
        self,
        direction: OptimizationDirection | None,
        target_states: StateSet,
        step_bound: int,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        """Extremal probability of ``F≤step_bound target``."""
        return self.check_bounded_until(
            direction, self.model.all_states(), target_states, step_bound, qualitative
        )

    def check_globally(
        self,
        direction: OptimizationDirection | None,
        phi_states: StateSet,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        """Extremal probability of ``G phi``.

        Uses ``P_opt(G phi) = 1 - P_opt'(F ¬phi)`` where ``opt'`` is the dual
        direction; the returned scheduler is the one attaining the dual
        reachability value, which attains the globally value as well.
        """
        self._minimize(direction)
        self._check_states("phi", phi_states)
        dual_direction = OptimizationDirection(direction).flip()
        dual = self.check_eventually(dual_direction, ~phi_states, qualitative)
        values: list[Value] = [
            MAYBE if value is MAYBE else 1.0 - value for value in dual.values
        ]
        return QuantitativeCheckResult(values=values, scheduler=dual.scheduler)

    # ── Rewards ────────────────────────────────────────────────────────

    def check_instantaneous_reward(
        self,
        direction: OptimizationDirection | None,
        step_count: int,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        """Extremal expected state reward at exactly ``step_count`` steps."""
        minimize = self._minimize(direction)
        self._check_bound("step count", step_count)
        values = helper.compute_instantaneous_rewards(
            minimize,
            self.model.transition_matrix,
            self.model.state_rewards,
            step_count,
            self.solver,
        )
        return QuantitativeCheckResult(values=list(values), maybe_range=REWARD_RANGE)

    def check_cumulative_reward(
        self,
        direction: OptimizationDirection | None,
        step_bound: int,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        """Extremal expected reward accumulated within ``step_bound`` steps."""
        minimize = self._minimize(direction)
        self._check_bound("step bound", step_bound)
        values = helper.compute_cumulative_rewards(
            minimize,
            self.model.transition_matrix,
            self.model.state_rewards,
            self.model.transition_rewards,
            step_bound,
            self.solver,
        )
        return QuantitativeCheckResult(values=list(values), maybe_range=REWARD_RANGE)

    def check_reachability_reward(
        self,
        direction: OptimizationDirection | None,
        target_states: StateSet,
        qualitative: bool = False,
    ) -> QuantitativeCheckResult:
        """Extremal expected reward gained before reaching ``target_states``."""
        minimize = self._minimize(direction)
        self._check_states("target", target_states)
        values, scheduler = helper.compute_reachability_rewards(
            minimize,
            self.model.transition_matrix,
            self.model.backward_transitions,
            self.model.initial_states,
            target_states,
            self.model.state_rewards,
            self.model.transition_rewards,
            qualitative,
            self.solver,
        )
        return QuantitativeCheckResult(
            values=values, scheduler=scheduler, maybe_range=REWARD_RANGE
        )


__all__ = [
    "AbstractModelChecker",
    "SparseMdpPrctlModelChecker",
]
