"""
sparse-prctl -- Extremal reachability and reward analysis for Markov
Decision Processes.

Probability-0/1 graph analysis | Min-max equation solving | Scheduler synthesis

Minimal dependencies (NumPy). Pure Python.
"""

from sparse_prctl._version import __version__
from sparse_prctl.exceptions import (
    InternalTypeError,
    InvalidArgumentError,
    MissingRewardModelError,
    NotImplementedVariantError,
    PrctlError,
    SolverConvergenceError,
)
from sparse_prctl.modelchecker import (
    AbstractModelChecker,
    QualitativeCheckResult,
    QuantitativeCheckResult,
    SparseMdpPrctlModelChecker,
    check_probability_bound,
)
from sparse_prctl.models import Mdp, build_mdp
from sparse_prctl.solver import MinMaxLinearEquationSolver, SolverSettings, ValueIterationSolver
from sparse_prctl.storage import SparseMatrix, SparseMatrixBuilder, StateSet, TotalScheduler
from sparse_prctl.types import MAYBE, ComparisonType, OptimizationDirection, Undetermined

# NOTE: Full subpackage APIs are accessible via direct imports:
#   from sparse_prctl.utility import perform_prob01_max, perform_prob1_e, ...
#   from sparse_prctl.modelchecker import compute_until_probabilities, ...

__all__ = [
    "__version__",
    # Model
    "Mdp",
    "build_mdp",
    # Storage
    "StateSet",
    "SparseMatrix",
    "SparseMatrixBuilder",
    "TotalScheduler",
    # Types
    "OptimizationDirection",
    "ComparisonType",
    "Undetermined",
    "MAYBE",
    # Model checking
    "AbstractModelChecker",
    "SparseMdpPrctlModelChecker",
    "QuantitativeCheckResult",
    "QualitativeCheckResult",
    "check_probability_bound",
    # Solvers
    "MinMaxLinearEquationSolver",
    "SolverSettings",
    "ValueIterationSolver",
    # Errors
    "PrctlError",
    "InvalidArgumentError",
    "NotImplementedVariantError",
    "MissingRewardModelError",
    "InternalTypeError",
    "SolverConvergenceError",
]
