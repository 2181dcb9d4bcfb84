"""PRCTL model checking for MDPs.

This module provides:
- Extremal until / bounded until / next probabilities with schedulers
- Reachability, instantaneous and cumulative rewards
- Quantitative and qualitative check results with bound comparison
"""

from __future__ import annotations

from sparse_prctl.modelchecker.helper import (
    compute_bounded_until_probabilities,
    compute_cumulative_rewards,
    compute_extremal_scheduler,
    compute_instantaneous_rewards,
    compute_next_probabilities,
    compute_reachability_rewards,
    compute_until_probabilities,
)
from sparse_prctl.modelchecker.prctl import (
    AbstractModelChecker,
    SparseMdpPrctlModelChecker,
)
from sparse_prctl.modelchecker.results import (
    BOUNDED_PROBABILITY_RANGE,
    PROBABILITY_RANGE,
    REWARD_RANGE,
    CheckResult,
    QualitativeCheckResult,
    QuantitativeCheckResult,
    ValueRange,
    check_probability_bound,
)

__all__ = [
    # --- Model checkers ---
    "AbstractModelChecker",
    "SparseMdpPrctlModelChecker",
    # --- Numeric core ---
    "compute_until_probabilities",
    "compute_bounded_until_probabilities",
    "compute_next_probabilities",
    "compute_instantaneous_rewards",
    "compute_cumulative_rewards",
    "compute_reachability_rewards",
    "compute_extremal_scheduler",
    # --- Results ---
    "ValueRange",
    "PROBABILITY_RANGE",
    "BOUNDED_PROBABILITY_RANGE",
    "REWARD_RANGE",
    "CheckResult",
    "QuantitativeCheckResult",
    "QualitativeCheckResult",
    "check_probability_bound",
]
