"""Equation solvers consumed by the analysis layer."""

from __future__ import annotations

from sparse_prctl.solver.min_max import (
    MinMaxLinearEquationSolver,
    SolverSettings,
    ValueIterationSolver,
)

__all__ = [
    "MinMaxLinearEquationSolver",
    "SolverSettings",
    "ValueIterationSolver",
]
