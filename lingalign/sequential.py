"""
Sequential (Turn-Taking) Comparisons

In sequential mode the last grouping vector identifies speakers and any
earlier vectors split the data into separate conversations. Rows are taken
to be in temporal order; within each conversation, each speaker turn is
compared with the next one.

Result rows are labelled with absolute row positions ("3, 4 <-> 5"), no
matter which conversation produced them, and carry the conversation label
in a "group" column.
"""

from typing import List, Optional, Sequence, Tuple
import re

import numpy as np

from .grouping import GroupSpec, unique_in_order
from .matrix import FeatureMatrix
from .results import NEUTRAL_SCORE, SimilarityTable
from .similarity import compute_similarity

_POSITION = re.compile(r"\d+")


def extract_speaker(
    groups: Optional[GroupSpec],
    n_rows: int
) -> Tuple[Optional[GroupSpec], np.ndarray]:
    """
    Split grouping into (conversation splits, speaker labels).

    Without grouping every row is its own speaker. Several splitting
    vectors are collapsed into one composite conversation label.
    """
    if groups is None:
        return None, np.asarray([str(i) for i in range(n_rows)], dtype=object)
    splits, speaker = groups.split_last()
    if splits is not None:
        splits = splits.collapse()
    return splits, speaker


def translate_labels(labels: Sequence[str], positions: Sequence[int]) -> List[str]:
    """Rewrite split-relative row positions in labels as absolute positions."""
    positions = [int(p) for p in positions]
    return [_POSITION.sub(lambda m: str(positions[int(m.group())]), lbl) for lbl in labels]


def neutral_row(rows: Sequence[int], metrics: Sequence[str], split: Optional[str] = None) -> SimilarityTable:
    """Placeholder result for a conversation without any adjacent turns to compare."""
    data = {} if split is None else {"group": np.asarray([split], dtype=object)}
    for m in metrics:
        data[m] = np.array([NEUTRAL_SCORE])
    return SimilarityTable([", ".join(str(r) for r in rows)], data)


def compare_split(
    matrix: FeatureMatrix,
    rows: Sequence[int],
    speaker: np.ndarray,
    metrics: Sequence[str],
    split: Optional[str] = None,
    agg: bool = True,
    agg_mean: bool = True
) -> SimilarityTable:
    """Adjacent-turn similarities for one conversation."""
    rows = np.asarray(rows, dtype=int)
    turns = speaker[rows]
    if rows.shape[0] < 2 or len(set(turns.tolist())) < 2:
        return neutral_row(rows.tolist(), metrics, split)
    table = compute_similarity(matrix.take(rows), metric=metrics, group=turns,
                               agg=agg, agg_mean=agg_mean)
    data = {} if split is None else {"group": np.asarray([split] * table.n_rows, dtype=object)}
    for m in metrics:
        data[m] = table[m]
    return SimilarityTable(translate_labels(table.index, rows), data)


def sequential_compare(
    matrix: FeatureMatrix,
    splits: Optional[GroupSpec],
    speaker: np.ndarray,
    metrics: Sequence[str],
    agg: bool = True,
    agg_mean: bool = True,
    verbose: bool = False
) -> SimilarityTable:
    """
    Adjacent-turn similarities for every conversation.

    Args:
        matrix: rows in temporal order
        splits: conversation labels (single level) or None for one conversation
        speaker: speaker label per row
        metrics: resolved metric names
        agg, agg_mean: turn aggregation, see compute_similarity
    """
    if splits is None:
        return compare_split(matrix, np.arange(matrix.n_rows), speaker, metrics,
                             agg=agg, agg_mean=agg_mean)
    labels = splits.vectors[0]
    tables = []
    for split in unique_in_order(labels):
        rows = np.flatnonzero(labels == split)
        if verbose:
            print(f"  sequential: {split} ({len(rows)} rows)")
        tables.append(compare_split(matrix, rows, speaker, metrics, split=split,
                                    agg=agg, agg_mean=agg_mean))
    return SimilarityTable.concat(tables)
