"""
Similarity Results and Result Assembly

Two result shapes come out of a comparison:

    SimilarityTable     - flat: one row per compared observation (or per
                          adjacent-turn pair), group label columns first,
                          then one column per metric
    PairwiseSimilarity  - one square or rectangular matrix per metric,
                          for all-against-all comparisons

Nested results (pairwise comparisons inside groups) are plain dicts
keyed by group label whose values are either of the above.

MatchResult bundles the raw and processed matrices, the descriptors of the
resolved comparison and grouping, the baseline used, and the similarity
result.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import numpy as np

from .matrix import FeatureMatrix

# reported for every metric when a split has nothing to compare
NEUTRAL_SCORE = 1.0


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class SimilarityTable:
    """
    Column-oriented result table.

    `data` keeps insertion order: label columns (object arrays) come before
    metric columns (float arrays).
    """
    index: List[str]
    data: Dict[str, np.ndarray] = field(default_factory=dict)

    def __post_init__(self):
        self.index = [str(i) for i in self.index]
        for name, values in list(self.data.items()):
            self.data[name] = _column(values)
            if len(self.data[name]) != len(self.index):
                raise ValueError(f"column {name!r} has {len(self.data[name])} values "
                                 f"for {len(self.index)} rows")

    @classmethod
    def empty(cls, index: Sequence[str], labels: Dict[str, Sequence[str]],
              metrics: Sequence[str]) -> 'SimilarityTable':
        """Table with label columns filled in and NaN metric columns."""
        data = {name: np.asarray(list(values), dtype=object) for name, values in labels.items()}
        for m in metrics:
            data[m] = np.full(len(index), np.nan)
        return cls(list(index), data)

    @classmethod
    def concat(cls, tables: Iterable['SimilarityTable']) -> 'SimilarityTable':
        tables = list(tables)
        if not tables:
            return cls([], {})
        columns = tables[0].columns
        index = [i for t in tables for i in t.index]
        data = {c: np.concatenate([t.data[c] for t in tables]) for c in columns}
        return cls(index, data)

    @property
    def columns(self) -> List[str]:
        return list(self.data.keys())

    @property
    def n_rows(self) -> int:
        return len(self.index)

    def __len__(self):
        return self.n_rows

    def __getitem__(self, name: str) -> np.ndarray:
        return self.data[name]

    def __contains__(self, name: str) -> bool:
        return name in self.data

    def metric_columns(self) -> List[str]:
        return [c for c, v in self.data.items() if v.dtype.kind == "f"]

    def set_rows(self, rows: Sequence[int], columns: Sequence[str], values) -> None:
        """
        Fill `columns` at positional `rows`.

        `values` is a scalar, a SimilarityTable whose metric columns line up
        with `columns`, or an array of shape (len(rows), len(columns)).
        """
        rows = np.asarray(rows, dtype=int)
        if isinstance(values, SimilarityTable):
            source = values.metric_columns()
            for col, src in zip(columns, source):
                self.data[col][rows] = values.data[src]
            return
        values = np.asarray(values, dtype=float)
        if values.ndim == 0:
            for col in columns:
                self.data[col][rows] = float(values)
            return
        values = values.reshape(len(rows), len(columns))
        for j, col in enumerate(columns):
            self.data[col][rows] = values[:, j]

    def row(self, i: int) -> Dict[str, Any]:
        return {c: v[i] for c, v in self.data.items()}

    def to_dict(self) -> Dict[str, list]:
        return {c: v.tolist() for c, v in self.data.items()}

    def to_string(self, max_rows: int = 10) -> str:
        width = max([len(i) for i in self.index] + [5])
        header = " " * width + "  " + "  ".join(f"{c:>10}" for c in self.columns)
        lines = [header]
        for k, label in enumerate(self.index[:max_rows]):
            cells = []
            for c in self.columns:
                v = self.data[c][k]
                cells.append(f"{v:>10.4f}" if isinstance(v, (float, np.floating)) else f"{str(v):>10}")
            lines.append(f"{label:>{width}}  " + "  ".join(cells))
        if self.n_rows > max_rows:
            lines.append(f"... ({self.n_rows - max_rows} more rows)")
        return "\n".join(lines)

    def __repr__(self):
        return f"SimilarityTable({self.n_rows} rows: {', '.join(self.columns)})"


@dataclass
class PairwiseSimilarity:
    """All-against-all similarities, one matrix per metric."""
    row_labels: List[str]
    col_labels: List[str]
    matrices: Dict[str, np.ndarray]

    @classmethod
    def neutral(cls, label: str, metrics: Sequence[str]) -> 'PairwiseSimilarity':
        """1x1 grid for a group with a single row."""
        return cls([str(label)], [str(label)], {m: np.full((1, 1), NEUTRAL_SCORE) for m in metrics})

    @property
    def metrics(self) -> List[str]:
        return list(self.matrices.keys())

    @property
    def shape(self):
        return (len(self.row_labels), len(self.col_labels))

    def __getitem__(self, metric: str) -> np.ndarray:
        return self.matrices[metric]

    @property
    def is_square(self) -> bool:
        return self.row_labels == self.col_labels

    def row_means(self) -> SimilarityTable:
        """Each row's mean similarity, leaving out self-comparisons of square grids."""
        data = {}
        for m, mat in self.matrices.items():
            if self.is_square and mat.shape[0] > 1:
                off = ~np.eye(mat.shape[0], dtype=bool)
                data[m] = np.array([mat[i, off[i]].mean() for i in range(mat.shape[0])])
            else:
                data[m] = mat.mean(axis=1)
        return SimilarityTable(list(self.row_labels), data)

    def __repr__(self):
        return f"PairwiseSimilarity({self.shape[0]}x{self.shape[1]}: {', '.join(self.metrics)})"


SimilarityResult = Union[SimilarityTable, PairwiseSimilarity, Dict[str, Any]]


@dataclass
class MatchResult:
    """
    Outcome of one matching call.

    Attributes:
        dtm: raw feature matrix before weighting/categorization
        processed: final matrix the comparisons ran on
        comp_type: description of the resolved comparison
        comp: baseline used (None for pairwise and sequential comparisons)
        group: description of the resolved grouping (None without grouping)
        sim: similarity result
    """
    dtm: FeatureMatrix
    processed: FeatureMatrix
    comp_type: Optional[str]
    comp: Optional[FeatureMatrix]
    group: Optional[str]
    sim: SimilarityResult

    @property
    def is_nested(self) -> bool:
        return isinstance(self.sim, dict)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "dtm": self.dtm,
            "processed": self.processed,
            "comp.type": self.comp_type,
            "comp": self.comp,
            "group": self.group,
            "sim": self.sim,
        }

    def report(self, max_rows: int = 10) -> str:
        """Generate human-readable report."""
        lines = [
            "=" * 60,
            "LINGUISTIC MATCHING",
            "=" * 60,
            f"Comparison: {self.comp_type}",
            f"Group: {self.group if self.group is not None else '(none)'}",
            f"Raw matrix: {self.dtm.n_rows} x {self.dtm.n_cols}",
            f"Processed matrix: {self.processed.n_rows} x {self.processed.n_cols}",
        ]
        if self.comp is not None:
            lines.append(f"Baseline: {self.comp!r}")
        lines.append("\n" + "-" * 40)
        lines.append("SIMILARITY")
        lines.append("-" * 40)
        lines.extend(_render(self.sim, max_rows))
        return "\n".join(lines)

    def __repr__(self):
        return f"MatchResult(comp_type={self.comp_type!r}, group={self.group!r}, sim={self.sim!r})"


def _render(sim, max_rows: int, depth: int = 0) -> List[str]:
    pad = "  " * depth
    if isinstance(sim, SimilarityTable):
        return [pad + line for line in sim.to_string(max_rows).split("\n")]
    if isinstance(sim, PairwiseSimilarity):
        lines = []
        for m, mat in sim.matrices.items():
            lines.append(f"{pad}{m}:")
            for label, row in list(zip(sim.row_labels, mat))[:max_rows]:
                lines.append(f"{pad}  {label:>6}  " + "  ".join(f"{v:.4f}" for v in row[:max_rows]))
        return lines
    lines = []
    for key, value in sim.items():
        lines.append(f"{pad}[{key}]")
        lines.extend(_render(value, max_rows, depth + 1))
    return lines


def _column(values) -> np.ndarray:
    arr = np.asarray(values)
    if arr.dtype.kind in "biuf":
        return arr.astype(float)
    return np.asarray(list(values), dtype=object)


# =============================================================================
# ASSEMBLY
# =============================================================================

def assemble_result(
    dtm: FeatureMatrix,
    processed: FeatureMatrix,
    comp_type: Optional[str],
    comp: Any,
    group: Optional[str],
    sim: SimilarityResult
) -> MatchResult:
    """Package the pieces of a finished comparison into a MatchResult."""
    if comp is not None and not isinstance(comp, FeatureMatrix):
        comp = FeatureMatrix.from_array(np.asarray(comp, dtype=float).reshape(1, -1),
                                        processed.columns)
    return MatchResult(
        dtm=dtm,
        processed=processed,
        comp_type=comp_type,
        comp=comp,
        group=group,
        sim=sim,
    )
