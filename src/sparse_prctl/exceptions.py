"""Errors raised by the PRCTL analysis engine.

All errors are raised eagerly at the entry boundary of a check, before any
numeric work is done. A raised error aborts the whole check; there is no
partial result.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class PrctlError(Exception):
    """Base class for all analysis errors.

    Attributes:
        message: Error message
    """

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass
class InvalidArgumentError(PrctlError, ValueError):
    """Malformed query arguments.

    Raised for a nondeterministic check without a valid optimization direction,
    state sets whose size does not match the model, or negative bounds.
    """


@dataclass
class NotImplementedVariantError(PrctlError, NotImplementedError):
    """The model checker does not support the requested operation.

    Attributes:
        message: Error message
        checker: Name of the model checker class
        operation: Name of the unsupported operation
    """

    checker: str = ""
    operation: str = ""

    def __str__(self) -> str:
        if self.checker and self.operation:
            return f"{self.message} ({self.checker}.{self.operation})"
        return self.message


@dataclass
class MissingRewardModelError(PrctlError):
    """A reward query was checked against a model lacking the reward component.

    Attributes:
        message: Error message
        required: Description of the missing component
    """

    required: str = "reward model"


@dataclass
class InternalTypeError(PrctlError, TypeError):
    """Qualitative/quantitative result mismatch.

    Attributes:
        message: Error message
        expected: Expected result kind
        actual: Produced result kind
    """

    expected: str = ""
    actual: str = ""

    def __str__(self) -> str:
        if self.expected or self.actual:
            return f"{self.message} (expected {self.expected}, got {self.actual})"
        return self.message


@dataclass
class SolverConvergenceError(PrctlError):
    """The equation solver hit its iteration limit without converging.

    Attributes:
        message: Error message
        iterations: Number of iterations performed
        residual: Largest difference observed in the last iteration
    """

    iterations: int = 0
    residual: float = 0.0


__all__ = [
    "PrctlError",
    "InvalidArgumentError",
    "NotImplementedVariantError",
    "MissingRewardModelError",
    "InternalTypeError",
    "SolverConvergenceError",
]
