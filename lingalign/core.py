"""
Linguistic Matching Engine
==========================

LingMatcher measures how similar texts (or any rows of a feature matrix)
are to each other, to a baseline, or to the turn that came before them.

One call runs the whole pipeline:

    1. resolve the input into texts or a feature matrix
    2. resolve and classify the comparison
    3. resolve grouping, comparison groups and ordering
    4. build the document-term matrix and process it (weighting,
       percentages, dictionary categories), unless an already
       categorized matrix makes that unnecessary
    5. bring input and baseline into one column space
    6. dispatch the comparisons and assemble the result

Usage:
    >>> from lingalign import LingMatcher
    >>> matcher = LingMatcher(profiles={"books": {...}, "speech": {...}})
    >>> result = matcher.match(texts, type="lsm")                  # all pairs
    >>> result = matcher.match(texts, group=speakers, comp="seq")   # turn taking
    >>> result = matcher.match(texts, "auto", type="lsm")           # best profile
    >>> print(result.report())
"""

from dataclasses import replace
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping, Optional, Set, Tuple
import warnings

import numpy as np

from .comparison import ComparisonKind, ComparisonSpec, Supplied, classify_comparison
from .dispatch import DispatchPlan, SimilarityDispatcher
from .errors import ConfigurationError, DataError, IntegrityWarning, NotFoundError
from .grouping import GroupSpec, apply_order, match_comparison_groups, normalize_groups
from .matrix import (FeatureMatrix, apply_aliases, is_table, reconcile_columns,
                     restrict_to_common, table_columns)
from .processing import MatchSettings, build_dtm, is_text_path, process_matrix, read_texts
from .resolver import ArgumentResolver, Column, Expr, describe_argument
from .resources import COVERAGE_THRESHOLD, DEFAULT_ALIASES, BaselineProfiles
from .results import MatchResult, assemble_result


class LingMatcher:
    """
    Matching engine bound to a set of baseline profiles and column aliases.

    Args:
        profiles: BaselineProfiles, or {profile name: {column: value}};
            needed for named-profile and "auto" comparisons
        aliases: variant column name -> canonical name
        verbose: print progress
    """

    def __init__(self, profiles=None, aliases: Mapping[str, str] = DEFAULT_ALIASES,
                 verbose: bool = False):
        if profiles is not None and not isinstance(profiles, BaselineProfiles):
            profiles = BaselineProfiles.from_dict(profiles)
        self.profiles = profiles
        self.aliases = MappingProxyType(dict(aliases))
        self.verbose = verbose

    def __repr__(self):
        return f"LingMatcher(profiles={self.profiles!r}, aliases={len(self.aliases)})"

    def match(
        self,
        input=None,
        comp=None,
        data=None,
        group=None,
        comp_data=None,
        comp_group=None,
        order=None,
        drop: bool = False,
        all_levels: bool = False,
        type: Optional[str] = None,
        env: Optional[Mapping[str, Any]] = None,
        **options
    ) -> MatchResult:
        """
        Compare rows of the input.

        Args:
            input: texts, a path to a .txt/.csv/.tsv file, a FeatureMatrix,
                a 2-D array, a table, or column name(s) of `data`
            comp: what to compare against: a reducer (np.mean, np.median, ...),
                a keyword ("pairwise", "sequential", "auto", a profile name),
                texts, row selection (row indices, or a boolean or 0/1 mask
                with one entry per row), or a comparison
                matrix / named vector; omitted means pairwise without
                grouping and mean otherwise. Profile names match by
                prefix, but the mode keywords only look at their first
                two letters, so "meh" means "mean" and "paste" means
                "pairwise"
            data: dataset that column-name arguments are looked up in
            group: grouping vector(s) or column reference(s)
            comp_data: dataset holding comparison rows (and comp_group)
            comp_group: grouping of the comparison rows
            order: permutation of row positions applied before comparing
            drop: remove all-zero columns after processing
            all_levels: compare at every level of multiple grouping vectors
                instead of their combination
            type: preset, "lsm" (style matching) or "lsa" (content matching)
            env: extra names for reference lookup
            **options: metric, weight, percent, dictionary, pairwise, mean,
                agg, agg_mean, lowercase, token_pattern, exclude, vocabulary

        Returns:
            MatchResult

        Raises:
            ConfigurationError: arguments cannot be made into a comparison
            DataError: the data cannot support the comparison
        """
        settings = MatchSettings.from_options(type=type, **options)
        if input is None:
            if data is None:
                raise ConfigurationError("input or data must be supplied")
            input = data
        resolver = ArgumentResolver.from_context(data=data, comp_data=comp_data, env=env)
        supplied = Supplied(comp=comp is not None, group=group is not None,
                            comp_data=comp_data is not None, comp_group=comp_group is not None)

        # -- input and comparison ---------------------------------------------
        texts, matrix = self._resolve_input(input, data, resolver,
                                            _referenced_columns(group, comp_group, order))
        n_rows = len(texts) if texts is not None else matrix.n_rows
        comp_value, comp_label = self._resolve_comp(comp, comp_data, data, resolver,
                                                    _referenced_columns(comp_group, group))
        comparison = classify_comparison(comp_value, n_rows, self.profiles, supplied, label=comp_label)
        if self.verbose:
            source = f"{n_rows} texts" if texts is not None else f"{matrix.n_rows} x {matrix.n_cols} matrix"
            print(f"Matching {source}; comparison: {comparison.kind.value} ({comparison.label})")

        # -- grouping ---------------------------------------------------------
        groups = normalize_groups(group, n_rows, resolver)
        group_label = groups.description if groups is not None else describe_argument(comp_group)
        sequential = comparison.kind is ComparisonKind.SEQUENTIAL
        if groups is not None and not all_levels and not sequential:
            groups = groups.collapse()

        # -- feature matrix ---------------------------------------------------
        n_prefix = 0
        if texts is not None:
            if comparison.texts is not None:
                n_prefix = len(comparison.texts)
                raw = build_dtm(list(comparison.texts) + list(texts), **settings.dtm_options)
            else:
                raw = build_dtm(texts, **settings.dtm_options)
            processed = process_matrix(raw, settings)
        else:
            raw = matrix
            if comparison.texts is not None:
                comp_matrix = process_matrix(build_dtm(comparison.texts, **settings.dtm_options), settings)
                comparison = ComparisonSpec(ComparisonKind.EXTERNAL_MATRIX, "text", matrix=comp_matrix)
            process = True
            if settings.dictionary is not None:
                matrix, process = self._dictionary_shortcut(matrix, settings.dictionary)
            processed = process_matrix(matrix, settings) if process else matrix
        baseline = None
        baseline_groups = None
        if n_prefix:
            baseline = processed.take(np.arange(n_prefix)).with_index(
                [f"text{i}" for i in range(n_prefix)])
            processed = processed.take(np.arange(n_prefix, processed.n_rows)).with_index(
                [str(i) for i in range(n_rows)])

        # -- ordering and row selection ---------------------------------------
        selected = None
        if comparison.indices is not None:
            selected = np.zeros(n_rows, dtype=bool)
            selected[comparison.indices] = True
        processed, groups, selected = apply_order(processed, groups,
                                                  self._resolve_order(order, resolver), selected)
        if selected is not None:
            if selected.all():
                raise DataError("comp selects every input row, leaving nothing to compare")
            if not selected.any():
                raise DataError("comp does not select any input rows")
            baseline = processed.take(selected)
            processed = processed.take(~selected)
            if groups is not None:
                if baseline.n_rows > 1:
                    baseline_groups = groups.take(np.flatnonzero(selected))
                groups = groups.take(np.flatnonzero(~selected))

        # -- column space -----------------------------------------------------
        if comparison.kind is ComparisonKind.EXTERNAL_MATRIX:
            processed, baseline = reconcile_columns(processed, comparison.matrix)
        elif comparison.kind is ComparisonKind.NAMED_PROFILE:
            processed, baseline, comparison = self._profile_baseline(processed, comparison)
        elif comp_data is not None and comparison.is_reducer:
            columns = [c for c in table_columns(comp_data)
                       if c not in _referenced_columns(comp_group, group)]
            comp_matrix = FeatureMatrix.from_table(comp_data, columns, numeric_only=True)
            processed, baseline = restrict_to_common(processed, comp_matrix, "comp_data")
            comparison = replace(comparison, label=f"comp_data {comparison.label}")

        if drop:
            processed, baseline = self._drop_zero_columns(processed, baseline, comparison)

        # -- comparison groups ------------------------------------------------
        if baseline is not None and baseline_groups is None and not sequential:
            comp_table = comp_data if comp_data is not None else (comp if is_table(comp) else None)
            baseline_groups = self._comparison_groups(group, comp_group, comp_table,
                                                      baseline.n_rows, resolver)
        if groups is not None and baseline_groups is not None:
            if all_levels and groups.n_levels > 1:
                if baseline_groups.n_levels != groups.n_levels:
                    raise ConfigurationError(
                        f"comp.group has {baseline_groups.n_levels} levels, group has {groups.n_levels}"
                    )
                keep = match_comparison_groups(groups.composite(), baseline_groups.composite())
            else:
                groups, baseline_groups = groups.collapse(), baseline_groups.collapse()
                keep = match_comparison_groups(groups.vectors[0], baseline_groups.vectors[0])
            if not keep.all():
                processed = processed.take(keep)
                groups = groups.take(np.flatnonzero(keep))

        if groups is not None and baseline is not None and baseline_groups is None:
            reason = "comp is a single row" if baseline.n_rows == 1 else "comp has no comparison groups"
            warnings.warn(f"{reason}, so group was ignored", IntegrityWarning)
            groups, group_label = None, None

        # -- dispatch ---------------------------------------------------------
        plan = DispatchPlan(
            matrix=processed,
            comparison=comparison,
            baseline=baseline,
            baseline_groups=baseline_groups,
            groups=groups,
            all_levels=all_levels,
            group_label=group_label,
        )
        outcome = SimilarityDispatcher(settings, verbose=self.verbose).run(plan)
        return assemble_result(raw, processed, outcome.comp_type, outcome.comp, group_label, outcome.sim)

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    def _resolve_input(self, input, data, resolver: ArgumentResolver,
                       exclude: Set[str]) -> Tuple[Optional[List[str]], Optional[FeatureMatrix]]:
        """Texts or a feature matrix (exactly one of the pair is set)."""
        if isinstance(input, (Column, Expr)):
            input = resolver.resolve(input)
        if callable(input):
            raise ConfigurationError("input cannot be a function")
        if isinstance(input, str):
            found, value = resolver.lookup(input)
            if found:
                input = value
            elif is_text_path(input):
                return read_texts(input), None
            else:
                return [input], None
        if isinstance(input, FeatureMatrix):
            return None, input
        if is_table(input):
            columns = [c for c in table_columns(input) if c not in exclude]
            return None, FeatureMatrix.from_table(input, columns, numeric_only=bool(exclude))
        if isinstance(input, (list, tuple)) and input and all(isinstance(v, str) for v in input):
            names = table_columns(data)
            if names and all(v in names for v in input):
                return None, FeatureMatrix.from_table(data, list(input))
            return [str(v) for v in input], None

        arr = np.asarray(input)
        if arr.ndim == 2:
            if arr.dtype.kind not in "biuf":
                raise ConfigurationError("a 2-D input must be numeric")
            return None, FeatureMatrix.from_array(arr)
        if arr.ndim == 1 and arr.dtype.kind in "USO":
            return [str(v) for v in arr.tolist()], None
        raise ConfigurationError("enter a sequence of texts or a matrix-like object as input")

    def _resolve_comp(self, comp, comp_data, data, resolver: ArgumentResolver,
                      exclude: Set[str]) -> Tuple[Any, Optional[str]]:
        """Comparison value with references resolved, and its descriptor."""
        if comp is None:
            return None, None
        source = resolver.with_primary(comp_data, "comp_data")
        if isinstance(comp, (Column, Expr)):
            return source.resolve(comp), str(comp)
        if isinstance(comp, str):
            found, value = source.lookup(comp)
            if found:
                return value, comp
            if is_text_path(comp):
                return read_texts(comp), None
            return comp, None
        if isinstance(comp, (list, tuple)) and comp and all(isinstance(v, str) for v in comp):
            table = comp_data if comp_data is not None else data
            names = table_columns(table)
            if names and all(v in names for v in comp):
                return FeatureMatrix.from_table(table, list(comp)), ", ".join(comp)
            return list(comp), None
        if is_table(comp) and not isinstance(comp, FeatureMatrix):
            columns = [c for c in table_columns(comp) if c not in exclude]
            return FeatureMatrix.from_table(comp, columns, numeric_only=True), None
        return comp, None

    def _resolve_order(self, order, resolver: ArgumentResolver):
        if order is None:
            return None
        try:
            return resolver.resolve(order, strict=isinstance(order, str))
        except NotFoundError:
            warnings.warn("failed to apply order", IntegrityWarning)
            return None


    def _comparison_groups(self, group, comp_group, comp_table, n_rows: int,
                           resolver: ArgumentResolver) -> Optional[GroupSpec]:
        """
        Group labels of the baseline rows.

        An explicit comp_group must resolve; otherwise the input's group
        references are tried against the comparison dataset.
        """
        source = resolver.with_primary(comp_table, "comp_data")
        if comp_group is not None:
            return normalize_groups(comp_group, n_rows, source)
        if comp_table is None or not _is_reference(group):
            return None
        try:
            return normalize_groups(group, n_rows, source)
        except ConfigurationError:
            return None

    # =========================================================================
    # COLUMN SPACE
    # =========================================================================

    def _dictionary_shortcut(self, matrix: FeatureMatrix,
                             dictionary: Mapping) -> Tuple[FeatureMatrix, bool]:
        """
        Use an already categorized matrix as is.

        Returns the matrix to use and whether it still needs processing.
        """
        categories = [str(k) for k in dictionary.keys()]
        renamed = matrix
        if not all(c in matrix.columns for c in categories):
            renamed = matrix.rename_columns(apply_aliases(matrix.columns, self.aliases))
        present = [c for c in categories if c in renamed.columns]
        if len(present) / len(categories) < COVERAGE_THRESHOLD:
            return matrix, True
        if self.verbose:
            print(f"  Input already has {len(present)} of {len(categories)} dictionary categories; "
                  f"skipping processing")
        return renamed.select(present), False

    def _profile_baseline(self, matrix: FeatureMatrix, comparison: ComparisonSpec):
        """Baseline row of a named (or automatically chosen) profile."""
        profiles = self.profiles
        aliased = BaselineProfiles(profiles.names, tuple(apply_aliases(profiles.columns, self.aliases)),
                                   profiles.values)
        matrix = matrix.rename_columns(apply_aliases(matrix.columns, self.aliases))
        name = comparison.profile
        if comparison.auto:
            name = aliased.best_match(matrix.column_means(), matrix.columns)
            comparison = replace(comparison, profile=name, label=f"auto: {name}")
            if self.verbose:
                print(f"  Best matching profile: {name}")
        matrix, baseline = restrict_to_common(matrix, aliased.row(name), label=name)
        return matrix, baseline, comparison

    def _drop_zero_columns(self, matrix: FeatureMatrix, baseline: Optional[FeatureMatrix],
                           comparison: ComparisonSpec):
        if baseline is None or comparison.kind is ComparisonKind.NAMED_PROFILE:
            matrix = matrix.drop_zero_columns()
            return matrix, (baseline.select(matrix.columns) if baseline is not None else None)
        columns = matrix.stack(baseline).drop_zero_columns().columns
        return matrix.select(columns), baseline.select(columns)


# =============================================================================
# CONVENIENCE
# =============================================================================

def match(input=None, comp=None, profiles=None, aliases: Mapping[str, str] = DEFAULT_ALIASES,
          verbose: bool = False, **kwargs) -> MatchResult:
    """
    One-off matching call; see LingMatcher.match for the arguments.

    Example:
        >>> result = match(["I went there.", "We went too."], type="lsm")
        >>> result.sim["canberra"]
    """
    matcher = LingMatcher(profiles=profiles, aliases=aliases, verbose=verbose)
    return matcher.match(input, comp, **kwargs)


def _is_reference(value: Any) -> bool:
    if isinstance(value, (str, Column, Expr)):
        return True
    return isinstance(value, (list, tuple)) and bool(value) and \
        all(isinstance(v, (str, Column, Expr)) for v in value)


def _referenced_columns(*values: Any) -> Set[str]:
    """Column names mentioned by reference-style arguments."""
    names = set()
    for value in values:
        items: Iterable = value if isinstance(value, (list, tuple)) else [value]
        for item in items:
            if isinstance(item, str):
                names.add(item)
            elif isinstance(item, Column):
                names.add(item.name)
    return names
