"""Storage for sparse models.

This module provides:
- StateSet: ordered boolean indicator sets over states
- SparseMatrix / SparseMatrixBuilder: row-grouped transition matrices
- TotalScheduler: one chosen action per state
"""

from __future__ import annotations

from sparse_prctl.storage.scheduler import TotalScheduler
from sparse_prctl.storage.sparse_matrix import Row, SparseMatrix, SparseMatrixBuilder
from sparse_prctl.storage.state_set import StateSet

__all__ = [
    "StateSet",
    "Row",
    "SparseMatrix",
    "SparseMatrixBuilder",
    "TotalScheduler",
]
