"""Row-grouped sparse matrices.

This module provides:
- SparseMatrix: rows of (column, value) entries, partitioned into row groups
- SparseMatrixBuilder: incremental construction with ordering checks

In an MDP every state owns one contiguous row group with one row per
enabled action. Each row is a (sub-)probability distribution over successor
states. Group ``g`` spans rows ``row_group_indices[g]`` up to (excluding)
``row_group_indices[g + 1]``. A matrix without explicit grouping has one row
per group, which is how Markov chains and transposed matrices are stored.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sparse_prctl.storage.state_set import StateSet

_EPSILON = 1e-10
"""Tolerance for floating-point comparisons."""

_PROBABILITY_SUM_TOLERANCE = 1e-6
"""Tolerance for checking that a row sums to at most 1.0."""

Row = list[tuple[int, float]]
"""A matrix row: (column, value) pairs sorted by column."""


class SparseMatrix:
    """Row-grouped sparse matrix.

    Attributes:
        rows: Matrix rows, each a list of (column, value) pairs.
        column_count: Number of columns.
        row_group_indices: Offsets of the row groups; has one more entry than
            there are groups and ends with the row count.
    """

    def __init__(
        self,
        rows: Iterable[Iterable[tuple[int, float]]],
        column_count: int | None = None,
        row_group_indices: Sequence[int] | None = None,
    ):
        self._rows: list[Row] = [sorted(row) for row in rows]

        if column_count is None:
            column_count = 1 + max(
                (column for row in self._rows for column, _ in row), default=-1
            )
        self._column_count = column_count

        if row_group_indices is None:
            row_group_indices = range(len(self._rows) + 1)
        self._row_group_indices = list(row_group_indices)
        self._check_structure()

    def _check_structure(self) -> None:
        groups = self._row_group_indices
        if not groups or groups[0] != 0 or groups[-1] != len(self._rows):
            raise ValueError(
                f"Row group indices must start at 0 and end at the row count "
                f"{len(self._rows)}, got {groups}"
            )
        for start, end in zip(groups, groups[1:]):
            if end < start:
                raise ValueError(f"Row group indices must be non-decreasing, got {groups}")
        for row_index, row in enumerate(self._rows):
            previous = -1
            for column, _ in row:
                if not 0 <= column < self._column_count:
                    raise ValueError(
                        f"Row {row_index}: column {column} out of range "
                        f"[0, {self._column_count})"
                    )
                if column == previous:
                    raise ValueError(f"Row {row_index}: duplicate column {column}")
                previous = column

    # ── Dimensions ─────────────────────────────────────────────────────

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def column_count(self) -> int:
        return self._column_count

    @property
    def row_group_count(self) -> int:
        return len(self._row_group_indices) - 1

    @property
    def row_group_indices(self) -> list[int]:
        return list(self._row_group_indices)

    @property
    def entry_count(self) -> int:
        return sum(len(row) for row in self._rows)

    def has_trivial_row_grouping(self) -> bool:
        """True if every group holds exactly one row."""
        return all(
            end - start == 1
            for start, end in zip(self._row_group_indices, self._row_group_indices[1:])
        )

    # ── Access ─────────────────────────────────────────────────────────

    def get_row(self, row: int) -> Row:
        return self._rows[row]

    def get_row_group(self, group: int) -> range:
        """Rows belonging to the given group."""
        return range(self._row_group_indices[group], self._row_group_indices[group + 1])

    def row_group_size(self, group: int) -> int:
        return self._row_group_indices[group + 1] - self._row_group_indices[group]

    def get_value(self, row: int, column: int) -> float:
        for entry_column, value in self._rows[row]:
            if entry_column == column:
                return value
        return 0.0

    def successors(self, group: int) -> set[int]:
        """Columns reachable in one step from any row of the group."""
        return {column for row in self.get_row_group(group) for column, _ in self._rows[row]}

    # ── Derived matrices ───────────────────────────────────────────────

    def transpose(self) -> SparseMatrix:
        """State-level backward view: entry (c, g) for every entry (r, c) with r in group g.

        Rows of the same group collapse onto one column and their values are
        summed, so the result is a ``column_count × row_group_count`` matrix
        with trivial row grouping, suited to predecessor search.
        """
        accumulated: list[dict[int, float]] = [{} for _ in range(self._column_count)]
        for group in range(self.row_group_count):
            for row in self.get_row_group(group):
                for column, value in self._rows[row]:
                    column_row = accumulated[column]
                    column_row[group] = column_row.get(group, 0.0) + value
        return SparseMatrix(
            (row.items() for row in accumulated),
            column_count=self.row_group_count,
        )

    def get_submatrix(self, states: StateSet) -> SparseMatrix:
        """Restrict to the row groups and columns of ``states``.

        Both row groups and columns are renumbered to the position of the
        state among the members of ``states``. The result carries its own row
        grouping.
        """
        if states.size != self.row_group_count or states.size != self._column_count:
            raise ValueError(
                f"Constraint of size {states.size} does not fit a "
                f"{self.row_group_count}-group matrix with {self._column_count} columns"
            )
        new_index: dict[int, int] = {state: i for i, state in enumerate(states)}

        rows: list[Row] = []
        row_group_indices = [0]
        for group in states:
            for row in self.get_row_group(group):
                rows.append(
                    [(new_index[column], value) for column, value in self._rows[row]
                     if column in new_index]
                )
            row_group_indices.append(len(rows))
        return SparseMatrix(rows, column_count=len(new_index), row_group_indices=row_group_indices)

    def select_rows(self, rows: Sequence[int]) -> SparseMatrix:
        """Keep exactly the given rows, one per group, in the given order."""
        return SparseMatrix(
            (list(self._rows[row]) for row in rows),
            column_count=self._column_count,
        )

    def get_constrained_row_sum_vector(
        self,
        row_group_constraint: StateSet,
        column_constraint: StateSet,
    ) -> list[float]:
        """Sum, per row of the selected groups, the entries in the selected columns."""
        result: list[float] = []
        for group in row_group_constraint:
            for row in self.get_row_group(group):
                result.append(
                    sum(value for column, value in self._rows[row] if column in column_constraint)
                )
        return result

    def get_pointwise_product_row_sum_vector(self, other: SparseMatrix) -> list[float]:
        """For every row, sum the products of entries at matching positions."""
        if other.row_count != self.row_count:
            raise ValueError(
                f"Row count mismatch: {self.row_count} vs {other.row_count}"
            )
        result: list[float] = []
        for row, other_row in zip(self._rows, other._rows):
            other_values = dict(other_row)
            result.append(
                sum(value * other_values[column] for column, value in row if column in other_values)
            )
        return result

    def make_rows_absorbing(self, groups: StateSet) -> None:
        """Turn every row of the given groups into a self-loop with value 1.

        Only valid for matrices whose groups and columns share an index
        space. Modifies the matrix in place.
        """
        for group in groups:
            for row in self.get_row_group(group):
                self._rows[row] = [(group, 1.0)]

    def multiply_with_vector(self, x: Sequence[float]) -> list[float]:
        """Per-row inner product with ``x``."""
        return [sum(value * x[column] for column, value in row) for row in self._rows]

    # ── Validation ─────────────────────────────────────────────────────

    def validate_probabilities(self) -> None:
        """Check that every row is a sub-probability distribution.

        Raises:
            ValueError: If an entry is not in (0, 1] or a row sums above 1.
        """
        for row_index, row in enumerate(self._rows):
            for column, value in row:
                if value <= 0 or value > 1.0 + _EPSILON:
                    raise ValueError(
                        f"Row {row_index}, column {column}: probability must be in (0, 1], "
                        f"got {value}"
                    )
            total = sum(value for _, value in row)
            if total > 1.0 + _PROBABILITY_SUM_TOLERANCE:
                raise ValueError(
                    f"Row {row_index}: probabilities sum to {total:.6f}, expected at most 1.0"
                )

    # ── Comparison ─────────────────────────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SparseMatrix):
            return (
                self._rows == other._rows
                and self._column_count == other._column_count
                and self._row_group_indices == other._row_group_indices
            )
        return False

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"SparseMatrix(rows={self.row_count}, columns={self._column_count}, "
            f"groups={self.row_group_count}, entries={self.entry_count})"
        )


class SparseMatrixBuilder:
    """Incremental SparseMatrix construction.

    Entries must be added row by row with strictly increasing columns inside
    a row. Row groups are opened explicitly with ``new_row_group``; if no
    group is ever opened the matrix gets trivial grouping.

    Example:
        >>> builder = SparseMatrixBuilder()
        >>> builder.new_row_group(0)
        >>> builder.add_next_value(0, 1, 1.0)
        >>> builder.add_next_value(1, 0, 1.0)
        >>> builder.new_row_group(2)
        >>> builder.add_next_value(2, 1, 1.0)
        >>> builder.build(column_count=2).row_group_indices
        [0, 2, 3]
    """

    def __init__(self) -> None:
        self._rows: list[Row] = []
        self._row_group_indices: list[int] = []
        self._last_row = -1
        self._last_column = -1

    def new_row_group(self, starting_row: int) -> None:
        """Open a new row group starting at ``starting_row``.

        Raises:
            ValueError: If the row lies before the current position.
        """
        if self._row_group_indices and starting_row < self._row_group_indices[-1]:
            raise ValueError(
                f"Row group must start at or after row {self._row_group_indices[-1]}, "
                f"got {starting_row}"
            )
        if starting_row <= self._last_row:
            raise ValueError(f"Row group start {starting_row} overlaps filled row {self._last_row}")
        self._row_group_indices.append(starting_row)

    def add_next_value(self, row: int, column: int, value: float) -> None:
        """Append an entry.

        Raises:
            ValueError: If the entry is out of order.
        """
        if row < self._last_row or (row == self._last_row and column <= self._last_column):
            raise ValueError(
                f"Entries must be added in order: ({row}, {column}) after "
                f"({self._last_row}, {self._last_column})"
            )
        while len(self._rows) <= row:
            self._rows.append([])
        self._rows[row].append((column, value))
        self._last_row = row
        self._last_column = column

    def build(self, row_count: int | None = None, column_count: int | None = None) -> SparseMatrix:
        """Finish construction.

        Args:
            row_count: Total number of rows; trailing empty rows are added
                when it exceeds the filled rows.
            column_count: Number of columns; inferred from the entries when
                omitted.

        Returns:
            The constructed SparseMatrix.
        """
        rows = [list(row) for row in self._rows]
        if row_count is not None:
            if row_count < len(rows):
                raise ValueError(f"Row count {row_count} is smaller than the filled rows {len(rows)}")
            rows.extend([] for _ in range(row_count - len(rows)))

        row_group_indices: list[int] | None = None
        if self._row_group_indices:
            row_group_indices = self._row_group_indices + [len(rows)]
        return SparseMatrix(rows, column_count=column_count, row_group_indices=row_group_indices)


__all__ = [
    "Row",
    "SparseMatrix",
    "SparseMatrixBuilder",
]
