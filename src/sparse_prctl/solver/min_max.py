"""Min-max linear equation solving over row-grouped matrices.

The analysis layer only ever needs two primitives from a solver:

- repeated synchronous matrix-vector products where every row group is
  reduced to its minimal or maximal row (bounded properties), and
- the solution of the fixpoint equation ``x = opt(A·x + b)`` (unbounded
  properties).

``ValueIterationSolver`` implements both in pure Python. Systems without
nondeterminism (one row per group) below a size threshold are solved exactly
with NumPy instead of being iterated.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

from sparse_prctl.exceptions import SolverConvergenceError
from sparse_prctl.storage.sparse_matrix import SparseMatrix
from sparse_prctl.utility.vector import reduce_vector

logger = logging.getLogger(__name__)

_DEFAULT_PRECISION = 1e-8
"""Convergence threshold for value iteration."""

_DEFAULT_MAX_ITERATIONS = 100000
"""Maximum number of value iteration sweeps."""

_DIRECT_SOLVE_THRESHOLD = 500
"""Solve deterministic systems directly if they have at most this many states."""


@dataclass(frozen=True)
class SolverSettings:
    """Settings of the bundled solver.

    Attributes:
        precision: Convergence threshold between two iterations.
        max_iterations: Iteration limit before giving up.
        relative: Measure the difference relative to the new value.
        direct_solve_threshold: Largest deterministic system solved
            directly; 0 disables direct solving.
    """

    precision: float = _DEFAULT_PRECISION
    max_iterations: int = _DEFAULT_MAX_ITERATIONS
    relative: bool = True
    direct_solve_threshold: int = _DIRECT_SOLVE_THRESHOLD

    def __post_init__(self) -> None:
        if self.precision <= 0:
            raise ValueError(f"precision must be positive, got {self.precision}")
        if self.max_iterations < 1:
            raise ValueError(f"max_iterations must be at least 1, got {self.max_iterations}")


class MinMaxLinearEquationSolver(ABC):
    """Solver for equation systems arising from nondeterministic choices."""

    @abstractmethod
    def perform_matrix_vector_multiplication(
        self,
        minimize: bool,
        matrix: SparseMatrix,
        x: list[float],
        additive: Sequence[float] | None = None,
        repetitions: int = 1,
    ) -> None:
        """Perform ``repetitions`` sweeps ``x_s <- opt_r (A_r·x + additive_r)`` in place.

        Args:
            minimize: Reduce each row group to its minimum (else maximum).
            matrix: Row-grouped matrix; its columns index ``x``.
            x: State vector, overwritten with the result.
            additive: Optional per-row vector added before the reduction.
            repetitions: Number of sweeps.
        """
        ...

    @abstractmethod
    def solve_equation_system(
        self,
        minimize: bool,
        matrix: SparseMatrix,
        x: list[float],
        b: Sequence[float],
    ) -> None:
        """Solve ``x = opt(A·x + b)`` in place, starting from the given ``x``.

        Raises:
            SolverConvergenceError: If the solver gives up.
        """
        ...


class ValueIterationSolver(MinMaxLinearEquationSolver):
    """Value iteration with a direct-solve shortcut for deterministic systems.

    Example:
        >>> solver = ValueIterationSolver(SolverSettings(precision=1e-10))
        >>> matrix = SparseMatrix([[(0, 0.5)]])
        >>> x = [0.0]
        >>> solver.solve_equation_system(False, matrix, x, [0.5])
        >>> round(x[0], 6)
        1.0
    """

    def __init__(self, settings: SolverSettings | None = None):
        self.settings = settings or SolverSettings()

    def perform_matrix_vector_multiplication(
        self,
        minimize: bool,
        matrix: SparseMatrix,
        x: list[float],
        additive: Sequence[float] | None = None,
        repetitions: int = 1,
    ) -> None:
        if additive is not None and len(additive) != matrix.row_count:
            raise ValueError(
                f"Additive vector has {len(additive)} entries, matrix has {matrix.row_count} rows"
            )
        row_group_indices = matrix.row_group_indices

        for _ in range(repetitions):
            row_values = matrix.multiply_with_vector(x)
            if additive is not None:
                row_values = [value + extra for value, extra in zip(row_values, additive)]
            reduced, _ = reduce_vector(minimize, row_values, row_group_indices)
            x[:] = reduced

    def solve_equation_system(
        self,
        minimize: bool,
        matrix: SparseMatrix,
        x: list[float],
        b: Sequence[float],
    ) -> None:
        if len(x) != matrix.row_group_count:
            raise ValueError(
                f"Solution vector has {len(x)} entries, matrix has {matrix.row_group_count} groups"
            )
        if len(b) != matrix.row_count:
            raise ValueError(
                f"Right-hand side has {len(b)} entries, matrix has {matrix.row_count} rows"
            )
        if not x:
            return

        if matrix.has_trivial_row_grouping() and len(x) <= self.settings.direct_solve_threshold:
            solution = _solve_directly(matrix, b)
            if solution is not None:
                logger.debug(f"Solved deterministic system with {len(x)} unknowns directly.")
                x[:] = solution
                return
            logger.debug("Deterministic system is singular, falling back to value iteration.")

        self._value_iteration(minimize, matrix, x, b)

    def _value_iteration(
        self,
        minimize: bool,
        matrix: SparseMatrix,
        x: list[float],
        b: Sequence[float],
    ) -> None:
        row_group_indices = matrix.row_group_indices
        residual = 0.0

        for iteration in range(1, self.settings.max_iterations + 1):
            row_values = matrix.multiply_with_vector(x)
            row_values = [value + offset for value, offset in zip(row_values, b)]
            new_x, _ = reduce_vector(minimize, row_values, row_group_indices)

            residual = max(self._difference(old, new) for old, new in zip(x, new_x))
            x[:] = new_x

            if residual < self.settings.precision:
                logger.debug(f"Value iteration converged after {iteration} iterations.")
                return

        logger.error(
            f"Value iteration did not converge within {self.settings.max_iterations} "
            f"iterations (residual {residual:.3e})."
        )
        raise SolverConvergenceError(
            message="Value iteration did not converge",
            iterations=self.settings.max_iterations,
            residual=residual,
        )

    def _difference(self, old: float, new: float) -> float:
        diff = abs(new - old)
        if self.settings.relative and new != 0.0:
            return diff / abs(new)
        return diff


def _solve_directly(matrix: SparseMatrix, b: Sequence[float]) -> list[float] | None:
    """Solve ``(I - A)·x = b`` for a square matrix with one row per group.

    Returns:
        The solution, or None if the system is singular.
    """
    import numpy as np

    n = matrix.row_count
    a_matrix = np.eye(n, dtype=np.float64)
    for row in range(n):
        for column, value in matrix.get_row(row):
            a_matrix[row, column] -= value

    try:
        solution = np.linalg.solve(a_matrix, np.asarray(b, dtype=np.float64))
    except np.linalg.LinAlgError:
        return None
    if not np.all(np.isfinite(solution)):
        return None
    return [float(value) for value in solution]


__all__ = [
    "SolverSettings",
    "MinMaxLinearEquationSolver",
    "ValueIterationSolver",
]
