"""
Feature Matrices and Column Reconciliation

A FeatureMatrix is a dense observations-by-features table whose column
names carry the feature identity (terms, dictionary categories, latent
dimensions). Every comparison in lingalign happens between rows of
matrices that share one column space, so this module also holds the
column reconciler that builds that shared space:

    reconcile_columns   - union of both column sets, zero-filled on both sides
    restrict_to_common  - intersection, dropping (and reporting) the rest
    apply_aliases       - rename variant category names to canonical ones

Matrices are treated as values: every operation returns a new matrix.
"""

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Sequence, Tuple
import re
import warnings

import numpy as np

from .errors import ConfigurationError, DataError, IntegrityWarning


# =============================================================================
# TABLE ACCESS
# =============================================================================

def table_columns(table: Any) -> List[str]:
    """Column names of a dataset-like object (empty if it has none)."""
    if table is None:
        return []
    if isinstance(table, FeatureMatrix):
        return list(table.columns)
    if isinstance(table, Mapping):
        return [str(k) for k in table.keys()]
    names = getattr(getattr(table, "dtype", None), "names", None)
    if names:
        return list(names)
    columns = getattr(table, "columns", None)
    if columns is not None and not callable(columns):
        return [str(c) for c in columns]
    return []


def table_column(table: Any, name: str) -> np.ndarray:
    """Values of one column of a dataset-like object."""
    if isinstance(table, FeatureMatrix):
        return table.column(name)
    if isinstance(table, Mapping):
        return np.asarray(table[name])
    return np.asarray(table[name])


def is_table(value: Any) -> bool:
    """True for FeatureMatrix, mappings of columns, and DataFrame-like objects."""
    if isinstance(value, FeatureMatrix):
        return True
    if isinstance(value, Mapping):
        return len(value) > 0 and all(np.ndim(v) == 1 for v in value.values())
    return bool(table_columns(value)) and not isinstance(value, str)


def is_numeric(values: Any) -> bool:
    arr = np.asarray(values)
    return arr.dtype.kind in "biuf"


# =============================================================================
# FEATURE MATRIX
# =============================================================================

@dataclass
class FeatureMatrix:
    """
    Dense feature matrix with named columns and labelled rows.

    Attributes:
        values: (n_rows, n_cols) float array
        columns: feature names, one per column
        index: row labels, one per row (defaults to "0".."n-1")
    """
    values: np.ndarray
    columns: List[str]
    index: List[str] = field(default_factory=list)

    def __post_init__(self):
        values = np.asarray(self.values, dtype=float)
        if values.ndim == 1:
            values = values.reshape(1, -1)
        if values.ndim != 2:
            raise ConfigurationError(f"feature matrix must be 2-D, got {values.ndim}-D")
        self.values = values
        self.columns = [str(c) for c in self.columns]
        if len(self.columns) != values.shape[1]:
            raise ConfigurationError(
                f"{len(self.columns)} column names for {values.shape[1]} columns"
            )
        if not self.index:
            self.index = [str(i) for i in range(values.shape[0])]
        else:
            self.index = [str(i) for i in self.index]
        if len(self.index) != values.shape[0]:
            raise ConfigurationError(
                f"{len(self.index)} row labels for {values.shape[0]} rows"
            )

    # -------------------------------------------------------------------------
    # Constructors
    # -------------------------------------------------------------------------

    @classmethod
    def from_array(cls, values, columns: Sequence[str] = None,
                   index: Sequence[str] = None) -> 'FeatureMatrix':
        values = np.asarray(values, dtype=float)
        if values.ndim == 1:
            values = values.reshape(1, -1)
        if columns is None:
            columns = [f"V{i + 1}" for i in range(values.shape[1])]
        return cls(values, list(columns), list(index) if index is not None else [])

    @classmethod
    def from_vector(cls, vector: Mapping[str, float], label: str = "0") -> 'FeatureMatrix':
        """One-row matrix from a named vector (feature name -> value)."""
        columns = [str(k) for k in vector.keys()]
        return cls(np.array([list(vector.values())], dtype=float), columns, [label])

    @classmethod
    def from_table(cls, table: Any, columns: Sequence[str] = None,
                   numeric_only: bool = False) -> 'FeatureMatrix':
        """
        Numeric matrix from a dataset-like object.

        Non-numeric columns are dropped with a warning (silently with
        numeric_only=True); if no column is numeric, conversion of every
        column is attempted.
        """
        if isinstance(table, FeatureMatrix):
            return table if columns is None else table.select(columns)
        names = list(columns) if columns is not None else table_columns(table)
        if not names:
            raise ConfigurationError("table has no named columns")
        data = [table_column(table, n) for n in names]
        numeric = [is_numeric(col) for col in data]
        if not any(numeric):
            try:
                data = [np.asarray(col, dtype=float) for col in data]
            except (TypeError, ValueError):
                raise ConfigurationError("no numeric columns found in input") from None
        elif not all(numeric):
            dropped = [n for n, ok in zip(names, numeric) if not ok]
            if not numeric_only:
                warnings.warn(
                    f"some input variables were not numeric, so they were removed: {', '.join(dropped)}",
                    IntegrityWarning,
                )
            names = [n for n, ok in zip(names, numeric) if ok]
            data = [col for col, ok in zip(data, numeric) if ok]
        values = np.column_stack([np.asarray(col, dtype=float) for col in data])
        index = getattr(table, "index", None)
        index = [str(i) for i in index] if index is not None and not callable(index) else []
        return cls(values, names, index)

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def n_rows(self) -> int:
        return self.values.shape[0]

    @property
    def n_cols(self) -> int:
        return self.values.shape[1]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.values.shape

    def __len__(self):
        return self.n_rows

    def column(self, name: str) -> np.ndarray:
        try:
            return self.values[:, self.columns.index(name)].copy()
        except ValueError:
            raise KeyError(name) from None

    def __getitem__(self, name: str) -> np.ndarray:
        return self.column(name)

    def row(self, i: int) -> np.ndarray:
        return self.values[i].copy()

    # -------------------------------------------------------------------------
    # Row operations
    # -------------------------------------------------------------------------

    def take(self, rows) -> 'FeatureMatrix':
        rows = _as_positions(rows, self.n_rows)
        return FeatureMatrix(self.values[rows].copy(), list(self.columns),
                             [self.index[i] for i in rows])

    def stack(self, other: 'FeatureMatrix') -> 'FeatureMatrix':
        """Rows of self followed by rows of other, over the union of columns."""
        top, bottom = reconcile_columns(self, other)
        return FeatureMatrix(np.vstack([top.values, bottom.values]), top.columns,
                             top.index + bottom.index)

    def with_index(self, index: Sequence[str]) -> 'FeatureMatrix':
        return FeatureMatrix(self.values.copy(), list(self.columns), list(index))

    # -------------------------------------------------------------------------
    # Column operations
    # -------------------------------------------------------------------------

    def reindex(self, columns: Sequence[str], fill: float = 0.0) -> 'FeatureMatrix':
        """Matrix over exactly `columns`; absent columns are filled with `fill`."""
        values = np.full((self.n_rows, len(columns)), fill, dtype=float)
        lookup = {c: i for i, c in enumerate(self.columns)}
        for j, name in enumerate(columns):
            if name in lookup:
                values[:, j] = self.values[:, lookup[name]]
        return FeatureMatrix(values, list(columns), list(self.index))

    def select(self, columns: Sequence[str]) -> 'FeatureMatrix':
        missing = [c for c in columns if c not in self.columns]
        if missing:
            raise DataError(f"columns not found: {', '.join(missing)}")
        return self.reindex(columns)

    def rename_columns(self, names: Sequence[str]) -> 'FeatureMatrix':
        return FeatureMatrix(self.values.copy(), list(names), list(self.index))

    def drop_zero_columns(self) -> 'FeatureMatrix':
        """Remove columns summing to 0; an all-zero matrix is a DataError."""
        keep = np.nansum(self.values, axis=0) != 0
        if not keep.any():
            raise DataError("input is all 0s after processing")
        return FeatureMatrix(self.values[:, keep].copy(),
                             [c for c, k in zip(self.columns, keep) if k],
                             list(self.index))

    # -------------------------------------------------------------------------
    # Reductions
    # -------------------------------------------------------------------------

    def column_means(self) -> np.ndarray:
        return np.nanmean(self.values, axis=0)

    def reduce(self, fn=None) -> np.ndarray:
        """Apply a column reducer (default: mean) and return one value per column."""
        if fn is None:
            return self.column_means()
        return np.array([float(fn(self.values[:, j])) for j in range(self.n_cols)])

    def __repr__(self):
        cols = ", ".join(self.columns[:6]) + (", ..." if self.n_cols > 6 else "")
        return f"FeatureMatrix({self.n_rows}x{self.n_cols}: {cols})"


def _as_positions(rows, n: int) -> np.ndarray:
    rows = np.asarray(rows)
    if rows.dtype == bool:
        if rows.shape[0] != n:
            raise ConfigurationError(f"boolean row mask of length {rows.shape[0]} for {n} rows")
        return np.flatnonzero(rows)
    return rows.astype(int).reshape(-1)


# =============================================================================
# COLUMN RECONCILIATION
# =============================================================================

LIWC_PREFIX = re.compile(r"^liwc[ .:_-]+")


def reconcile_columns(
    matrix: FeatureMatrix,
    baseline: FeatureMatrix
) -> Tuple[FeatureMatrix, FeatureMatrix]:
    """
    Put two matrices in one column space.

    Columns of `baseline` absent from `matrix` are appended to `matrix`
    (zero-filled) and `baseline` is extended to the same ordered column set,
    so neither side loses a column and no row counts change.
    """
    columns = list(matrix.columns) + [c for c in baseline.columns if c not in matrix.columns]
    return matrix.reindex(columns), baseline.reindex(columns)


def restrict_to_common(
    matrix: FeatureMatrix,
    baseline: FeatureMatrix,
    label: str = "comp"
) -> Tuple[FeatureMatrix, FeatureMatrix]:
    """
    Restrict both matrices to the columns of `matrix` that `baseline` also has.

    Raises DataError if there is no overlap; input columns without a
    baseline counterpart are dropped with an IntegrityWarning.
    """
    shared = [c for c in matrix.columns if c in baseline.columns]
    if not shared:
        raise DataError(f"input and {label} have no columns in common")
    missing = [c for c in matrix.columns if c not in baseline.columns]
    if missing:
        warnings.warn(
            f"input columns were not found in {label}: {', '.join(missing)}",
            IntegrityWarning,
        )
        matrix = matrix.select(shared)
    return matrix, baseline.select(shared)


def apply_aliases(columns: Sequence[str], aliases: Mapping[str, str]) -> List[str]:
    """
    Map variant category names onto canonical ones.

    Names are lower-cased and stripped of a leading "liwc" prefix before
    lookup; names without an alias are returned unchanged.
    """
    renamed = []
    for name in columns:
        key = LIWC_PREFIX.sub("", str(name).lower())
        renamed.append(aliases.get(key, name))
    return renamed
