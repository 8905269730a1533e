"""
Similarity Metrics

Vector similarity measures and the three comparison layouts built on them:

    baseline    - every row against one baseline vector (or paired rows)
    pairwise    - every row against every other row (or every baseline row)
    sequential  - each speaker turn against the next turn

All metrics are oriented so that larger values mean more similar:

    jaccard    shared non-zero features / features non-zero in either
    euclidean  1 / (1 + euclidean distance)
    canberra   1 - mean canberra term over features non-zero in either
    cosine     cosine of the angle between the vectors
    pearson    Pearson correlation
"""

from typing import List, Optional, Sequence, Union

import numpy as np
from scipy.spatial import distance
from scipy.stats import pearsonr

from .errors import ConfigurationError
from .matrix import FeatureMatrix
from .results import PairwiseSimilarity, SimilarityTable


METRICS = ("jaccard", "euclidean", "canberra", "cosine", "pearson")
DEFAULT_METRIC = "cosine"


def match_metric(metric: Union[str, Sequence[str], None] = None) -> List[str]:
    """
    Resolve metric names.

    Names are matched case-insensitively by prefix ("cos" -> "cosine");
    "all" selects every metric. Unknown or ambiguous names raise
    ConfigurationError.
    """
    if metric is None:
        return [DEFAULT_METRIC]
    if isinstance(metric, str):
        metric = [metric]
    selected = []
    for name in metric:
        key = str(name).strip().lower()
        if not key:
            continue
        if key == "all":
            return list(METRICS)
        hits = [m for m in METRICS if m.startswith(key)]
        if not hits:
            raise ConfigurationError(f"unrecognized metric: {name!r}")
        if len(hits) > 1:
            raise ConfigurationError(f"metric {name!r} is ambiguous: {', '.join(hits)}")
        if hits[0] not in selected:
            selected.append(hits[0])
    return selected or [DEFAULT_METRIC]


def vector_similarity(a: np.ndarray, b: np.ndarray, metric: str) -> float:
    """Similarity between two equal-length vectors."""
    a = np.asarray(a, dtype=float).ravel()
    b = np.asarray(b, dtype=float).ravel()
    if a.shape != b.shape:
        raise ConfigurationError(f"vectors differ in length: {a.shape[0]} vs {b.shape[0]}")

    if metric == "jaccard":
        nz_a, nz_b = a != 0, b != 0
        union = np.count_nonzero(nz_a | nz_b)
        return 1.0 if union == 0 else np.count_nonzero(nz_a & nz_b) / union

    if metric == "euclidean":
        return 1.0 / (1.0 + distance.euclidean(a, b))

    if metric == "canberra":
        n = np.count_nonzero((np.abs(a) + np.abs(b)) > 0)
        return 1.0 if n == 0 else 1.0 - distance.canberra(a, b) / n

    if metric == "cosine":
        if not np.any(a) or not np.any(b):
            return 0.0
        return float(np.clip(1.0 - distance.cosine(a, b), -1.0, 1.0))

    if metric == "pearson":
        # correlation is undefined for constant vectors
        if a.shape[0] < 2 or np.ptp(a) == 0 or np.ptp(b) == 0:
            return 1.0 if np.allclose(a, b) else 0.0
        return float(pearsonr(a, b)[0])

    raise ConfigurationError(f"unrecognized metric: {metric!r}")


def pairwise_matrix(a: np.ndarray, b: np.ndarray, metric: str) -> np.ndarray:
    """Similarity of every row of `a` with every row of `b`."""
    out = np.empty((a.shape[0], b.shape[0]))
    same = a is b
    for i in range(a.shape[0]):
        for j in range(b.shape[0]):
            if same and j < i:
                out[i, j] = out[j, i]
            else:
                out[i, j] = vector_similarity(a[i], b[j], metric)
    return out


# =============================================================================
# COMPARISON LAYOUTS
# =============================================================================

def compute_similarity(
    a,
    b=None,
    metric: Union[str, Sequence[str], None] = None,
    group: Optional[Sequence] = None,
    pairwise: bool = True,
    mean: bool = False,
    agg: bool = True,
    agg_mean: bool = True,
    labels: Optional[Sequence[str]] = None
) -> Union[SimilarityTable, PairwiseSimilarity]:
    """
    Compare the rows of `a` with a baseline, with each other, or in sequence.

    Args:
        a: FeatureMatrix or 2-D array of observations
        b: baseline; a vector (one score per row of `a`) or a matrix
           (paired rows when pairwise=False and row counts agree,
           otherwise every row of `a` against every row of `b`)
        metric: metric name(s), see match_metric
        group: speaker labels; with no `b`, compares each turn to the next
        pairwise: with a matrix `b`, compare all rows instead of paired rows
        mean: collapse all-against-all results to each row's mean
        agg: merge consecutive rows of the same speaker into one turn
        agg_mean: merged turns are row means (sums if False)
        labels: row labels (default: matrix index or 0..n-1)

    Returns:
        SimilarityTable for per-row scores, PairwiseSimilarity for grids
    """
    metrics = match_metric(metric)
    values, columns, index = _unpack(a)
    if labels is None:
        labels = index
    labels = [str(x) for x in labels]

    if b is not None:
        if isinstance(b, FeatureMatrix) and columns is not None and b.columns != columns:
            b = b.reindex(columns)
        base, _, base_index = _unpack(b)
        if base.shape[1] != values.shape[1]:
            raise ConfigurationError(
                f"baseline has {base.shape[1]} columns, input has {values.shape[1]}"
            )
        if base.shape[0] == 1:
            data = {m: np.array([vector_similarity(row, base[0], m) for row in values])
                    for m in metrics}
            return SimilarityTable(labels, data)
        if not pairwise and base.shape[0] == values.shape[0]:
            data = {m: np.array([vector_similarity(values[i], base[i], m)
                                 for i in range(values.shape[0])]) for m in metrics}
            return SimilarityTable(labels, data)
        grid = PairwiseSimilarity(labels, list(base_index),
                                  {m: pairwise_matrix(values, base, m) for m in metrics})
        return grid.row_means() if mean else grid

    if group is not None:
        return sequential_similarity(values, group, metrics, agg=agg, agg_mean=agg_mean)

    grid = PairwiseSimilarity(labels, list(labels),
                              {m: pairwise_matrix(values, values, m) for m in metrics})
    return grid.row_means() if mean else grid


def sequential_similarity(
    values: np.ndarray,
    group: Sequence,
    metrics: Sequence[str],
    agg: bool = True,
    agg_mean: bool = True
) -> SimilarityTable:
    """
    Compare each speaker turn with the following turn.

    Rows are assumed to be in temporal order. Row labels name the row
    positions on each side, e.g. "0, 1 <-> 2".
    """
    group = np.asarray(group)
    if group.shape[0] != values.shape[0]:
        raise ConfigurationError(
            f"speaker vector has {group.shape[0]} values for {values.shape[0]} rows"
        )
    turns = []
    for i, speaker in enumerate(group):
        if turns and agg and group[turns[-1][-1]] == speaker:
            turns[-1].append(i)
        else:
            turns.append([i])

    def turn_vector(rows):
        block = values[rows]
        return block.mean(axis=0) if agg_mean else block.sum(axis=0)

    vectors = [turn_vector(t) for t in turns]
    labels = []
    data = {m: [] for m in metrics}
    for t in range(len(turns) - 1):
        labels.append(f"{', '.join(map(str, turns[t]))} <-> {', '.join(map(str, turns[t + 1]))}")
        for m in metrics:
            data[m].append(vector_similarity(vectors[t], vectors[t + 1], m))
    return SimilarityTable(labels, {m: np.array(v, dtype=float) for m, v in data.items()})


def _unpack(x):
    if isinstance(x, FeatureMatrix):
        return x.values, list(x.columns), list(x.index)
    values = np.asarray(x, dtype=float)
    if values.ndim == 1:
        values = values.reshape(1, -1)
    return values, None, [str(i) for i in range(values.shape[0])]
