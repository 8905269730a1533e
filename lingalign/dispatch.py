"""
Similarity Dispatch Engine
==========================

Given a processed feature matrix, a resolved ComparisonSpec and the
grouping, decide what every row is compared against and run the metric
collaborator accordingly.

    Grouping        Comparison              Behaviour
    --------        ----------              ---------
    none            MEAN / AGGREGATOR       one reduced baseline over all rows
    none            PAIRWISE                all rows against all rows
    none            fixed baseline          multi-row baselines are reduced
    one level       MEAN / AGGREGATOR       per-group reduced baseline
    one level       PAIRWISE                pairwise inside each group
    one level       baseline + mapping      each group against its own rows
    any             SEQUENTIAL              adjacent turns (see sequential.py)
    several levels  any other               recursive descent over the levels

Flat results are SimilarityTables aligned with the input rows; pairwise
comparisons inside groups without `mean` come back nested
({group: result} or {outer: {composite: result}}).
"""

from dataclasses import dataclass
from typing import Dict, List, Optional
import warnings

import numpy as np

from .comparison import ComparisonKind, ComparisonSpec
from .errors import IntegrityWarning
from .grouping import GroupSpec, unique_in_order
from .matrix import FeatureMatrix
from .processing import MatchSettings
from .results import NEUTRAL_SCORE, PairwiseSimilarity, SimilarityResult, SimilarityTable
from .sequential import extract_speaker, sequential_compare
from .similarity import compute_similarity


# =============================================================================
# DATA STRUCTURES
# =============================================================================

@dataclass
class DispatchPlan:
    """
    Everything the dispatcher needs for one call.

    Attributes:
        matrix: processed input rows (baseline rows already excised)
        comparison: resolved comparison
        baseline: fixed baseline rows (profile, selected rows, external
            matrix or comparison dataset), or None for reducers and modes
        baseline_groups: group labels of the baseline rows, when baselines
            are matched to groups
        groups: grouping of the input rows (levels kept for all_levels and
            sequential comparisons, otherwise collapsed)
        all_levels: compare at every nesting depth of `groups`
        group_label: descriptor of the grouping as supplied
    """
    matrix: FeatureMatrix
    comparison: ComparisonSpec
    baseline: Optional[FeatureMatrix] = None
    baseline_groups: Optional[GroupSpec] = None
    groups: Optional[GroupSpec] = None
    all_levels: bool = False
    group_label: Optional[str] = None


@dataclass
class DispatchOutcome:
    sim: SimilarityResult
    comp: Optional[FeatureMatrix]
    comp_type: str


def level_columns(depth: int, metrics: List[str]) -> List[str]:
    """Metric column names for nesting depth 0, 1, ... ("g1_cosine", "g1_g2_cosine")."""
    prefix = "_".join(f"g{i + 1}" for i in range(depth + 1))
    return [f"{prefix}_{m}" for m in metrics]


# =============================================================================
# DISPATCHER
# =============================================================================

class SimilarityDispatcher:
    """
    Route a DispatchPlan to the right comparison layout.

    Usage:
        dispatcher = SimilarityDispatcher(settings, verbose=True)
        outcome = dispatcher.run(plan)
        outcome.sim, outcome.comp, outcome.comp_type
    """

    def __init__(self, settings: MatchSettings, verbose: bool = False):
        self.settings = settings
        self.metrics = list(settings.metrics)
        self.verbose = verbose

    @property
    def mean(self) -> bool:
        return bool(self.settings.mean)

    def run(self, plan: DispatchPlan) -> DispatchOutcome:
        kind = plan.comparison.kind
        if kind is ComparisonKind.SEQUENTIAL:
            return self._sequential(plan)
        if plan.groups is None:
            return self._ungrouped(plan)
        if plan.all_levels and plan.groups.n_levels > 1:
            return self._levels(plan)
        return self._single_level(plan)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _reduce(self, matrix: FeatureMatrix, comparison: ComparisonSpec, label: str) -> FeatureMatrix:
        values = comparison.reduce(matrix).reshape(1, -1)
        return FeatureMatrix(values, list(matrix.columns), [label])

    def _baseline_pairwise(self) -> bool:
        # baseline comparisons are paired unless asked otherwise
        return bool(self.settings.pairwise)

    def _fit_baseline(self, sub: FeatureMatrix, base: FeatureMatrix, comparison: ComparisonSpec,
                      label: str, flat: bool) -> FeatureMatrix:
        """Reduce a multi-row baseline that cannot be used row by row."""
        if base.n_rows > 1 and flat and base.n_rows != sub.n_rows:
            return self._reduce(base, comparison, label)
        return base

    def _compare(self, sub: FeatureMatrix, base: Optional[FeatureMatrix], pairwise: bool = True):
        return compute_similarity(sub, base, metric=self.metrics, pairwise=pairwise, mean=self.mean)

    # -------------------------------------------------------------------------
    # Layouts
    # -------------------------------------------------------------------------

    def _sequential(self, plan: DispatchPlan) -> DispatchOutcome:
        splits, speaker = extract_speaker(plan.groups, plan.matrix.n_rows)
        if self.verbose:
            n_splits = len(unique_in_order(splits.vectors[0])) if splits is not None else 1
            print(f"Sequential comparisons: {len(unique_in_order(speaker))} speakers, {n_splits} split(s)")
        sim = sequential_compare(plan.matrix, splits, speaker, self.metrics,
                                 agg=self.settings.agg, agg_mean=self.settings.agg_mean,
                                 verbose=self.verbose)
        return DispatchOutcome(sim, None, plan.comparison.label)

    def _ungrouped(self, plan: DispatchPlan) -> DispatchOutcome:
        comparison, matrix = plan.comparison, plan.matrix

        if comparison.kind is ComparisonKind.PAIRWISE:
            if self.verbose:
                print(f"Pairwise comparisons: {matrix.n_rows} rows")
            return DispatchOutcome(self._compare(matrix, None), None, comparison.label)

        if plan.baseline is None:
            base = self._reduce(matrix, comparison, comparison.label)
            if self.verbose:
                print(f"Comparing {matrix.n_rows} rows to their {comparison.label}")
            return DispatchOutcome(self._compare(matrix, base), base, comparison.label)

        base = plan.baseline
        pairwise = self._baseline_pairwise()
        if base.n_rows > 1 and not pairwise and base.n_rows != matrix.n_rows:
            base = self._reduce(base, comparison, comparison.label)
        if self.verbose:
            print(f"Comparing {matrix.n_rows} rows to {base.n_rows} baseline row(s)")
        return DispatchOutcome(self._compare(matrix, base, pairwise), base, comparison.label)

    def _single_level(self, plan: DispatchPlan) -> DispatchOutcome:
        groups = plan.groups.collapse()
        labels = groups.vectors[0]
        levels = unique_in_order(labels)
        if self.verbose:
            print(f"Comparing within {len(levels)} groups")
        if plan.comparison.kind is ComparisonKind.PAIRWISE:
            return self._grouped_pairwise(plan, labels, levels)

        comparison, matrix = plan.comparison, plan.matrix
        pairwise = self._baseline_pairwise()
        flat = comparison.is_reducer or not pairwise or self.mean
        table = SimilarityTable.empty(matrix.index, {"g1": labels}, self.metrics) if flat else None
        nested: Dict[str, SimilarityResult] = {}
        baselines = []

        base_labels = None
        if plan.baseline is not None and plan.baseline_groups is not None:
            base_labels = plan.baseline_groups.collapse().vectors[0]

        for level in levels:
            rows = np.flatnonzero(labels == level)
            sub = matrix.take(rows)
            if plan.baseline is None:
                base = self._reduce(sub, comparison, level)
                baselines.append(base)
            else:
                base = plan.baseline.take(np.flatnonzero(base_labels == level))
                base = self._fit_baseline(sub, base, comparison, level, flat)
            result = self._compare(sub, base, pairwise)
            if flat:
                table.set_rows(rows, self.metrics, result)
            else:
                nested[level] = result

        if plan.baseline is None:
            comp = FeatureMatrix(np.vstack([b.values for b in baselines]), list(matrix.columns), levels)
            prefix = f"{plan.group_label} group" if plan.group_label else "group"
            comp_type = f"{prefix} {comparison.label}"
        else:
            comp, comp_type = plan.baseline, comparison.label
        return DispatchOutcome(table if flat else nested, comp, comp_type)

    def _grouped_pairwise(self, plan: DispatchPlan, labels: np.ndarray, levels: List[str]) -> DispatchOutcome:
        matrix = plan.matrix
        table = SimilarityTable.empty(matrix.index, {"g1": labels}, self.metrics) if self.mean else None
        nested: Dict[str, SimilarityResult] = {}
        for level in levels:
            rows = np.flatnonzero(labels == level)
            sub = matrix.take(rows)
            if self.mean:
                table.set_rows(rows, self.metrics,
                               NEUTRAL_SCORE if len(rows) == 1 else self._compare(sub, None))
            elif len(rows) == 1:
                nested[level] = PairwiseSimilarity.neutral(sub.index[0], self.metrics)
            else:
                nested[level] = self._compare(sub, None)
        return DispatchOutcome(table if self.mean else nested, None, plan.comparison.label)

    def _levels(self, plan: DispatchPlan) -> DispatchOutcome:
        """
        Compare at every depth of the grouping levels.

        Depth d splits rows by the composite of the first d+1 levels and
        only ever looks inside the rows of its enclosing block; the label
        of a block is its enclosing label plus its own value.
        """
        comparison, matrix, groups = plan.comparison, plan.matrix, plan.groups
        n_levels = groups.n_levels
        is_pairwise = comparison.kind is ComparisonKind.PAIRWISE
        pairwise = True if is_pairwise else self._baseline_pairwise()
        flat = comparison.is_reducer or self.mean or (plan.baseline is not None and not pairwise)

        columns = [level_columns(d, self.metrics) for d in range(n_levels)]
        table = None
        if flat:
            labels = {f"g{i + 1}": groups.vectors[i] for i in range(n_levels)}
            table = SimilarityTable.empty(matrix.index, labels, [c for cols in columns for c in cols])
        nested: Dict[str, Dict[str, SimilarityResult]] = {}
        baselines: List[FeatureMatrix] = []

        base_levels = None
        if plan.baseline is not None and plan.baseline_groups is not None:
            base_levels = [plan.baseline_groups.level_labels(d + 1) for d in range(n_levels)]

        def compare_block(rows, depth, label):
            sub = matrix.take(rows)
            if is_pairwise:
                if len(rows) == 1:
                    return NEUTRAL_SCORE if flat else PairwiseSimilarity.neutral(sub.index[0], self.metrics)
                return self._compare(sub, None)
            if plan.baseline is None:
                base = self._reduce(sub, comparison, label)
                baselines.append(base)
                return self._compare(sub, base)
            selected = np.flatnonzero(base_levels[depth] == label)
            if not selected.size:
                warnings.warn(f"no comparison rows for group {label!r}", IntegrityWarning)
                return None
            base = self._fit_baseline(sub, plan.baseline.take(selected), comparison, label, flat)
            return self._compare(sub, base, pairwise)

        def descend(rows, depth, prefix, outer):
            values = groups.vectors[depth][rows]
            for value in unique_in_order(values):
                block = rows[values == value]
                label = value if prefix is None else f"{prefix} {value}"
                top = value if outer is None else outer
                result = compare_block(block, depth, label)
                if result is not None:
                    if flat:
                        table.set_rows(block, columns[depth], result)
                    else:
                        nested.setdefault(top, {})[label] = result
                if depth + 1 < n_levels:
                    descend(block, depth + 1, label, top)

        descend(np.arange(matrix.n_rows), 0, None, None)

        if self.verbose:
            print(f"Compared over {n_levels} grouping levels")
        if is_pairwise:
            return DispatchOutcome(table if flat else nested, None, comparison.label)
        if plan.baseline is None:
            comp = FeatureMatrix(np.vstack([b.values for b in baselines]), list(matrix.columns),
                                 [b.index[0] for b in baselines])
            prefix = f"{plan.group_label} group" if plan.group_label else "group"
            return DispatchOutcome(table, comp, f"{prefix} {comparison.label}")
        return DispatchOutcome(table if flat else nested, plan.baseline, comparison.label)
