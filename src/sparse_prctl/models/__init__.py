"""Sparse probabilistic models."""

from __future__ import annotations

from sparse_prctl.models.mdp import Choice, Mdp, build_mdp

__all__ = [
    "Mdp",
    "Choice",
    "build_mdp",
]
