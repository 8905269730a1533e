"""
Grouping

Grouping vectors split the rows of a feature matrix into independent
comparisons. One or more vectors can be given (as label vectors or as
references to dataset columns); normalize_groups() resolves them into a
GroupSpec whose vectors are all aligned with the matrix rows.

With several vectors, GroupSpec.collapse() joins them into one composite
label per row ("a" + "x" -> "a x"); level_labels(depth) gives the
composite of the first `depth` vectors, which is what nested
(all-levels) comparisons split on.
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple
import warnings

import numpy as np

from .errors import ConfigurationError, IntegrityWarning
from .matrix import FeatureMatrix, is_table, table_column, table_columns
from .resolver import ArgumentResolver, Column, Expr, describe_argument


@dataclass
class GroupSpec:
    """
    Ordered grouping vectors aligned with matrix rows.

    Attributes:
        vectors: one object array of string labels per grouping level
        names: a name per level (column name, or "g1", "g2", ...)
        description: how the grouping was supplied
    """
    vectors: List[np.ndarray]
    names: List[str]
    description: Optional[str] = None

    @property
    def n_levels(self) -> int:
        return len(self.vectors)

    @property
    def n_rows(self) -> int:
        return len(self.vectors[0]) if self.vectors else 0

    def validate(self, n_rows: int) -> 'GroupSpec':
        for name, vec in zip(self.names, self.vectors):
            if len(vec) != n_rows:
                raise ConfigurationError(
                    f"length of group {name!r} ({len(vec)}) != number of input rows ({n_rows})"
                )
        return self

    def level_labels(self, depth: int) -> np.ndarray:
        """Composite labels of the first `depth` levels."""
        return combine_labels(self.vectors[:depth])

    def composite(self) -> np.ndarray:
        return combine_labels(self.vectors)

    def collapse(self) -> 'GroupSpec':
        if self.n_levels <= 1:
            return self
        return GroupSpec([self.composite()], [" ".join(self.names)], self.description)

    def take(self, rows) -> 'GroupSpec':
        rows = np.asarray(rows)
        return GroupSpec([v[rows] for v in self.vectors], list(self.names), self.description)

    def split_last(self) -> Tuple[Optional['GroupSpec'], np.ndarray]:
        """Leading levels (or None) and the last level's labels."""
        last = self.vectors[-1]
        if self.n_levels == 1:
            return None, last
        return GroupSpec(self.vectors[:-1], self.names[:-1], self.description), last


def combine_labels(vectors: Sequence[np.ndarray]) -> np.ndarray:
    """Space-joined labels, row by row, in vector order."""
    if not vectors:
        return np.array([], dtype=object)
    if len(vectors) == 1:
        return np.asarray(vectors[0], dtype=object)
    joined = [" ".join(str(v) for v in row) for row in zip(*vectors)]
    return np.asarray(joined, dtype=object)


def unique_in_order(values: Sequence) -> List[str]:
    seen = {}
    for v in values:
        seen.setdefault(v, None)
    return list(seen)


def _labels(values: Any) -> np.ndarray:
    arr = np.asarray(values, dtype=object).reshape(-1)
    return np.asarray([str(v) for v in arr], dtype=object)


# =============================================================================
# NORMALIZATION
# =============================================================================

def normalize_groups(
    group: Any,
    n_rows: int,
    resolver: ArgumentResolver = None
) -> Optional[GroupSpec]:
    """
    Resolve a grouping argument into a GroupSpec.

    Accepted forms: a label vector; a column reference (str, Column, Expr);
    a list of column names; a list of label vectors or references; a
    mapping of name -> label vector; a 2-D array or table (one level per
    column).

    Raises:
        ConfigurationError: a vector's length differs from n_rows, or
            column names were given that the data does not have
        NotFoundError: an explicit reference could not be resolved
    """
    if group is None:
        return None
    resolver = resolver or ArgumentResolver()
    vectors, names = _resolve_group(group, n_rows, resolver)
    if not vectors:
        return None
    if all(n is not None for n in names):
        description = ", ".join(names)
    else:
        description = describe_argument(group)
    names = [n if n is not None else f"g{i + 1}" for i, n in enumerate(names)]
    return GroupSpec(vectors, names, description).validate(n_rows)


def _resolve_group(group, n_rows, resolver) -> Tuple[List[np.ndarray], List[str]]:
    if isinstance(group, (str, Column)):
        value = resolver.resolve(group, strict=True)
        return _split_value(value, str(group))
    if isinstance(group, Expr):
        return _split_value(resolver.resolve(group), group.label)
    if isinstance(group, FeatureMatrix) or is_table(group):
        names = table_columns(group)
        return [_labels(table_column(group, n)) for n in names], names
    if isinstance(group, Mapping):
        return [_labels(v) for v in group.values()], [str(k) for k in group.keys()]
    if isinstance(group, np.ndarray):
        if group.ndim == 2:
            return [_labels(group[:, j]) for j in range(group.shape[1])], [None] * group.shape[1]
        return [_labels(group)], [None]

    items = list(group)
    if items and all(isinstance(v, str) for v in items):
        if len(items) == n_rows:
            return [_labels(items)], [None]
        missing = [v for v in items if not resolver.is_reference(v)]
        if missing:
            if resolver.primary_columns():
                raise ConfigurationError(
                    f"group appears to be column names, but were not found in data: {', '.join(missing)}"
                )
            raise ConfigurationError(
                f"length of group ({len(items)}) != number of input rows ({n_rows})"
            )
        vectors, names = [], []
        for name in items:
            vecs, vnames = _split_value(resolver.resolve(name, strict=True), name)
            vectors.extend(vecs)
            names.extend(vnames)
        return vectors, names
    if items and any(isinstance(v, (str, Column, Expr)) or np.ndim(v) == 1 for v in items):
        vectors, names = [], []
        for item in items:
            if isinstance(item, (str, Column, Expr)):
                vecs, vnames = _resolve_group(item, n_rows, resolver)
                vectors.extend(vecs)
                names.extend(vnames)
            else:
                vectors.append(_labels(item))
                names.append(None)
        return vectors, names
    return [_labels(items)], [None]


def _split_value(value, name: str) -> Tuple[List[np.ndarray], List[str]]:
    if isinstance(value, FeatureMatrix) or is_table(value):
        cols = table_columns(value)
        return [_labels(table_column(value, c)) for c in cols], cols
    arr = np.asarray(value, dtype=object)
    if arr.ndim == 2:
        return [_labels(arr[:, j]) for j in range(arr.shape[1])], \
            [f"{name}{j + 1}" for j in range(arr.shape[1])]
    return [_labels(arr)], [name]


# =============================================================================
# ORDERING AND COMPARISON GROUPS
# =============================================================================

def order_positions(order: Any, n_rows: int) -> Optional[np.ndarray]:
    """
    Validate a row ordering.

    `order` must be a permutation of the row positions 0..n-1; anything
    else is reported with an IntegrityWarning and None is returned so the
    original order is kept.
    """
    if order is None:
        return None
    arr = np.asarray(order).reshape(-1)
    if arr.shape[0] != n_rows:
        warnings.warn("length(order) != nrow(input), so order was not applied", IntegrityWarning)
        return None
    if arr.dtype.kind not in "iuf" or not np.array_equal(np.sort(arr), np.arange(n_rows)):
        warnings.warn("order is not a permutation of row positions, so it was not applied",
                      IntegrityWarning)
        return None
    return arr.astype(int)


def apply_order(
    matrix: FeatureMatrix,
    groups: Optional[GroupSpec],
    order: Any,
    selected: Optional[np.ndarray] = None
) -> Tuple[FeatureMatrix, Optional[GroupSpec], Optional[np.ndarray]]:
    """Reorder rows, and every grouping vector and the row selection with them."""
    positions = order_positions(order, matrix.n_rows)
    if positions is None:
        return matrix, groups, selected
    return (matrix.take(positions),
            groups.take(positions) if groups is not None else None,
            selected[positions] if selected is not None else None)


def match_comparison_groups(labels: np.ndarray, comp_labels: Sequence[str]) -> np.ndarray:
    """
    Rows whose group level has a counterpart in the comparison groups.

    Returns a boolean keep-mask; levels without a counterpart are reported
    in an IntegrityWarning. No shared level at all is a ConfigurationError.
    """
    available = set(str(c) for c in comp_labels)
    levels = unique_in_order(labels)
    missing = [lvl for lvl in levels if lvl not in available]
    if missing and len(missing) == len(levels):
        raise ConfigurationError("group and comp.group had no levels in common")
    if missing:
        warnings.warn(f"levels not found in comp.group: {', '.join(missing)}", IntegrityWarning)
    return np.asarray([lbl in available for lbl in labels], dtype=bool)
