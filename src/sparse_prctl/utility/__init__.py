"""Graph and vector utilities.

This module provides:
- Qualitative (probability 0 / probability 1) graph analysis and end
  component decomposition
- Row-grouped vector selection and reduction helpers
"""

from __future__ import annotations

from sparse_prctl.utility.graph import (
    maximal_end_components,
    perform_prob01_max,
    perform_prob01_min,
    perform_prob0_a,
    perform_prob0_e,
    perform_prob1_a,
    perform_prob1_e,
    perform_prob_greater_0_a,
    perform_prob_greater_0_e,
    row_leaks,
)
from sparse_prctl.utility.vector import (
    add_vectors_in_place,
    reduce_vector,
    select_vector_values,
    select_vector_values_repeatedly,
    set_vector_values,
)

__all__ = [
    # --- Graph ---
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
    # --- Vector ---
    "set_vector_values",
    "select_vector_values",
    "select_vector_values_repeatedly",
    "add_vectors_in_place",
    "reduce_vector",
]
