"""Ordered boolean indicator sets over the states of a model.

A StateSet has a fixed size ``n`` and answers membership for the states
``0..n-1``. Set algebra (complement, intersection, union, difference) returns
new sets; operands must have the same size.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator


class StateSet:
    """Fixed-size set of state indices backed by a boolean list.

    Example:
        >>> phi = StateSet.from_indices(4, [0, 1])
        >>> psi = StateSet.from_indices(4, [3])
        >>> sorted(~(phi | psi))
        [2]
    """

    __slots__ = ("_bits",)

    def __init__(self, size: int, value: bool = False):
        if size < 0:
            raise ValueError(f"StateSet size must be non-negative, got {size}")
        self._bits = [value] * size

    # ── Construction ───────────────────────────────────────────────────

    @classmethod
    def empty(cls, size: int) -> StateSet:
        return cls(size, False)

    @classmethod
    def full(cls, size: int) -> StateSet:
        return cls(size, True)

    @classmethod
    def from_indices(cls, size: int, indices: Iterable[int]) -> StateSet:
        """Create a set of the given size containing ``indices``.

        Raises:
            ValueError: If an index is out of range.
        """
        result = cls(size)
        for index in indices:
            result.set(index)
        return result

    @classmethod
    def from_bools(cls, bits: Iterable[bool]) -> StateSet:
        result = cls(0)
        result._bits = [bool(b) for b in bits]
        return result

    def copy(self) -> StateSet:
        return StateSet.from_bools(self._bits)

    # ── Element access ─────────────────────────────────────────────────

    @property
    def size(self) -> int:
        """Number of states the set ranges over (not the member count)."""
        return len(self._bits)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._bits):
            raise ValueError(f"State {index} out of range for set of size {len(self._bits)}")

    def get(self, index: int) -> bool:
        self._check_index(index)
        return self._bits[index]

    def set(self, index: int, value: bool = True) -> None:
        self._check_index(index)
        self._bits[index] = value

    def __contains__(self, index: object) -> bool:
        return isinstance(index, int) and 0 <= index < len(self._bits) and self._bits[index]

    def __iter__(self) -> Iterator[int]:
        """Iterate over member states in ascending order."""
        return (i for i, bit in enumerate(self._bits) if bit)

    def __len__(self) -> int:
        return self.count()

    def count(self) -> int:
        """Number of member states."""
        return sum(self._bits)

    def is_empty(self) -> bool:
        return not any(self._bits)

    def to_bools(self) -> list[bool]:
        return list(self._bits)

    # ── Set algebra ────────────────────────────────────────────────────

    def _check_size(self, other: StateSet) -> None:
        if len(self._bits) != len(other._bits):
            raise ValueError(
                f"StateSet size mismatch: {len(self._bits)} vs {len(other._bits)}"
            )

    def complement(self) -> StateSet:
        return StateSet.from_bools(not b for b in self._bits)

    def __invert__(self) -> StateSet:
        return self.complement()

    def __and__(self, other: StateSet) -> StateSet:
        self._check_size(other)
        return StateSet.from_bools(a and b for a, b in zip(self._bits, other._bits))

    def __or__(self, other: StateSet) -> StateSet:
        self._check_size(other)
        return StateSet.from_bools(a or b for a, b in zip(self._bits, other._bits))

    def __sub__(self, other: StateSet) -> StateSet:
        self._check_size(other)
        return StateSet.from_bools(a and not b for a, b in zip(self._bits, other._bits))

    def is_disjoint_from(self, other: StateSet) -> bool:
        self._check_size(other)
        return not any(a and b for a, b in zip(self._bits, other._bits))

    def is_subset_of(self, other: StateSet) -> bool:
        self._check_size(other)
        return all(b or not a for a, b in zip(self._bits, other._bits))

    def relative_to(self, mask: StateSet) -> StateSet:
        """Re-index this set onto the members of ``mask``.

        The result has ``mask.count()`` entries; entry ``k`` tells whether the
        ``k``-th member of ``mask`` is in this set.
        """
        self._check_size(mask)
        return StateSet.from_bools(self._bits[i] for i in mask)

    # ── Comparison ─────────────────────────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if isinstance(other, StateSet):
            return self._bits == other._bits
        return False

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"StateSet(size={len(self._bits)}, members={list(self)})"


__all__ = [
    "StateSet",
]
