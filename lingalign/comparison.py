"""
Comparison Specifications

The `comp` argument of a match can be a reducer, a keyword, texts, a row
selection, or a ready-made comparison matrix. classify_comparison()
inspects the value once and returns a ComparisonSpec tagged with one
ComparisonKind; everything downstream dispatches on the kind.

Classification order (first match wins):

    1. callable                           -> MEAN / AGGREGATOR
    2. single keyword                     -> NAMED_PROFILE (profile name or
                                             "auto"), PAIRWISE, SEQUENTIAL
    3. texts                              -> ROW_SELECTION (texts)
    4. boolean or 0/1 vector, one per row -> ROW_SELECTION (selected rows)
    5. any other numeric vector           -> ROW_SELECTION (row indices)
    6. matrix-like or named vector        -> EXTERNAL_MATRIX
    7. nothing supplied at all            -> PAIRWISE
    8. grouping supplied, no comparison   -> MEAN
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional
import re
import statistics

import numpy as np

from .errors import ConfigurationError
from .matrix import FeatureMatrix, is_table
from .resources import BaselineProfiles


class ComparisonKind(Enum):
    """What each row is compared against."""
    MEAN = "mean"
    AGGREGATOR = "aggregator"
    PAIRWISE = "pairwise"
    SEQUENTIAL = "sequential"
    NAMED_PROFILE = "named_profile"
    ROW_SELECTION = "row_selection"
    EXTERNAL_MATRIX = "external_matrix"


MEAN_FUNCTIONS = (np.mean, np.nanmean, np.average, statistics.mean, statistics.fmean)

MODE_KEYWORDS = ("auto", "pairwise", "sequential", "mean")


@dataclass
class Supplied:
    """Which of the comparison-related arguments the caller actually passed."""
    comp: bool = False
    group: bool = False
    comp_data: bool = False
    comp_group: bool = False


@dataclass
class ComparisonSpec:
    """
    Resolved comparison.

    Only the fields relevant to `kind` are set:
        reducer  - AGGREGATOR
        profile  - NAMED_PROFILE (None until an "auto" profile is chosen)
        indices  - ROW_SELECTION over input rows
        texts    - ROW_SELECTION given as texts
        matrix   - EXTERNAL_MATRIX
    """
    kind: ComparisonKind
    label: str
    reducer: Optional[Callable] = None
    profile: Optional[str] = None
    auto: bool = False
    indices: Optional[np.ndarray] = None
    texts: Optional[List[str]] = None
    matrix: Optional[FeatureMatrix] = None

    @property
    def is_reducer(self) -> bool:
        return self.kind in (ComparisonKind.MEAN, ComparisonKind.AGGREGATOR)

    def reduce(self, matrix: FeatureMatrix) -> np.ndarray:
        """Column-wise baseline of `matrix` (mean unless a reducer was given)."""
        if self.kind is not ComparisonKind.AGGREGATOR:
            return matrix.column_means()
        fn = self.reducer
        return matrix.reduce(lambda col: fn(col[~np.isnan(col)]))

    def __repr__(self):
        return f"ComparisonSpec({self.kind.name}, {self.label!r})"


# =============================================================================
# CLASSIFICATION
# =============================================================================

def classify_comparison(
    value: Any,
    n_rows: int,
    profiles: Optional[BaselineProfiles] = None,
    supplied: Supplied = None,
    label: Optional[str] = None
) -> ComparisonSpec:
    """
    Classify a resolved comparison value.

    Args:
        value: the comparison argument after reference resolution
        n_rows: number of rows in the input feature matrix
        profiles: named baseline profiles available for keyword matching
        supplied: which comparison-related arguments were passed
        label: descriptor of the argument as supplied (e.g. a column name)

    Raises:
        ConfigurationError: the value fits none of the comparison forms
    """
    supplied = supplied or Supplied(comp=value is not None)

    if not supplied.comp:
        if supplied.group or supplied.comp_data or supplied.comp_group:
            return ComparisonSpec(ComparisonKind.MEAN, "mean")
        return ComparisonSpec(ComparisonKind.PAIRWISE, "pairwise")

    if callable(value) and not isinstance(value, (FeatureMatrix, type)):
        name = label or getattr(value, "__name__", None) or repr(value)
        if any(value is fn for fn in MEAN_FUNCTIONS):
            return ComparisonSpec(ComparisonKind.MEAN, name)
        return ComparisonSpec(ComparisonKind.AGGREGATOR, name, reducer=value)

    if isinstance(value, str):
        if not re.search(r"\s", value.strip()):
            return _classify_keyword(value.strip(), profiles)
        return ComparisonSpec(ComparisonKind.ROW_SELECTION, "text", texts=[value])

    if isinstance(value, FeatureMatrix) or is_table(value):
        return ComparisonSpec(ComparisonKind.EXTERNAL_MATRIX, label or "comp",
                              matrix=FeatureMatrix.from_table(value))
    if isinstance(value, Mapping):
        return ComparisonSpec(ComparisonKind.EXTERNAL_MATRIX, label or "comp",
                              matrix=FeatureMatrix.from_vector(value))

    arr = np.asarray(value)
    if arr.ndim == 2:
        raise ConfigurationError("a comparison matrix needs named columns (use a FeatureMatrix)")
    if arr.ndim != 1 or arr.shape[0] == 0:
        raise ConfigurationError(f"could not interpret comp: {value!r}")

    if arr.dtype.kind in "USO" and all(isinstance(v, str) for v in arr.tolist()):
        return ComparisonSpec(ComparisonKind.ROW_SELECTION, "text", texts=[str(v) for v in arr])

    if arr.dtype.kind not in "biuf":
        raise ConfigurationError(f"could not interpret comp: {value!r}")

    selection_label = label or _render_indices(arr)
    if arr.dtype == bool:
        if arr.shape[0] != n_rows:
            raise ConfigurationError(
                f"comp mask of length {arr.shape[0]} cannot select from {n_rows} rows"
            )
        return ComparisonSpec(ComparisonKind.ROW_SELECTION, selection_label,
                              indices=np.flatnonzero(arr))
    if arr.shape[0] == n_rows and np.isin(arr, (0, 1)).all():
        # 0/1 category vector, one entry per row
        return ComparisonSpec(ComparisonKind.ROW_SELECTION, selection_label,
                              indices=np.flatnonzero(arr))

    if not np.all(np.mod(arr, 1) == 0):
        raise ConfigurationError("comparison row indices must be whole numbers")
    indices = np.unique(arr.astype(int))
    if indices.min() < 0 or indices.max() >= n_rows:
        raise ConfigurationError(
            f"comparison row indices must be between 0 and {n_rows - 1}"
        )
    return ComparisonSpec(ComparisonKind.ROW_SELECTION, selection_label, indices=indices)


def _classify_keyword(keyword: str, profiles: Optional[BaselineProfiles]) -> ComparisonSpec:
    if profiles is not None:
        name = profiles.match(keyword)
        if name is not None:
            return ComparisonSpec(ComparisonKind.NAMED_PROFILE, name, profile=name)
    key = keyword.lower()
    mode = next((m for m in MODE_KEYWORDS if len(key) >= 2 and key[:2] == m[:2]), None)
    if mode == "auto":
        if profiles is None or not len(profiles):
            raise ConfigurationError("'auto' comparison requires baseline profiles")
        return ComparisonSpec(ComparisonKind.NAMED_PROFILE, "auto", auto=True)
    if mode == "pairwise":
        return ComparisonSpec(ComparisonKind.PAIRWISE, "pairwise")
    if mode == "sequential":
        return ComparisonSpec(ComparisonKind.SEQUENTIAL, "sequential")
    if mode == "mean":
        return ComparisonSpec(ComparisonKind.MEAN, "mean")
    raise ConfigurationError(f"comp {keyword!r} did not match a profile or comparison type")


def _render_indices(arr: np.ndarray) -> str:
    values = arr.tolist()
    text = ", ".join(str(v) for v in values[:8])
    return f"[{text}{', ...' if len(values) > 8 else ''}]"
