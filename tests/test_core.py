#!/usr/bin/env python3
"""
test_core.py - Tests for the Linguistic Matching Engine
========================================================

End-to-end tests of LingMatcher.match: input and comparison resolution,
grouping, ordering, column reconciliation, profiles and error handling.

Usage:
    python test_core.py
    pytest tests/test_core.py
"""

import os
import sys

import numpy as np
import pytest

# Add parent directory (package root) to path for imports
package_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if package_root not in sys.path:
    sys.path.insert(0, package_root)

from lingalign import Column, Expr, LingMatcher, match
from lingalign.errors import ConfigurationError, DataError, IntegrityWarning, NotFoundError
from lingalign.matrix import FeatureMatrix
from lingalign.results import MatchResult, PairwiseSimilarity, SimilarityTable

R2 = 1 / np.sqrt(2)


def create_toy_matrix():
    return FeatureMatrix(np.array([[1, 0], [0, 1], [1, 1]]), ["A", "B"])


def create_toy_nested_matrix():
    return FeatureMatrix(np.array([[1, 0], [0, 1], [1, 1], [2, 2]]), ["A", "B"])


def create_toy_texts():
    return [
        "I went to the store",
        "We went to the park",
        "The dog is not here",
    ]


def create_toy_data(teams=("a", "a", "b")):
    return {
        "team": np.array(teams),
        "A": np.array([1, 0, 1]),
        "B": np.array([0, 1, 1]),
    }


def create_toy_profiles():
    return {
        "books": {"ppron": 2.0, "article": 8.0, "prep": 14.0},
        "speech": {"ppron": 12.0, "article": 4.0, "prep": 10.0},
    }


def create_profile_matrix():
    return FeatureMatrix(np.array([[10, 5, 10], [14, 3, 9]]), ["ppron", "article", "prep"])


# =============================================================================
# COMPARISON MODES
# =============================================================================

def test_default_pairwise():
    print("=" * 60)
    print("TEST: Default pairwise comparison")
    print("=" * 60)

    result = match(create_toy_matrix())
    print(result.report())
    assert isinstance(result, MatchResult)
    assert result.comp_type == "pairwise"
    assert result.comp is None
    assert result.group is None
    assert isinstance(result.sim, PairwiseSimilarity)
    assert result.sim.shape == (3, 3)
    assert result.sim["cosine"][0, 2] == pytest.approx(R2)

    print("\n✓ Default pairwise test PASSED")


def test_grouped_mean():
    print("\n" + "=" * 60)
    print("TEST: Group means with every metric")
    print("=" * 60)

    result = match(create_toy_matrix(), group=["a", "a", "b"], metric="all")
    print(result.sim.to_string())
    assert result.comp_type == "['a', 'a', 'b'] group mean"
    assert result.sim.columns == ["g1", "jaccard", "euclidean", "canberra", "cosine", "pearson"]
    np.testing.assert_allclose(result.sim["cosine"], [R2, R2, 1.0])
    for metric in ("jaccard", "euclidean", "canberra", "cosine", "pearson"):
        assert result.sim[metric][2] == pytest.approx(1.0)
    assert result.sim.to_dict()["g1"] == ["a", "a", "b"]

    median = match(create_toy_matrix(), np.median, group=["a", "a", "b"])
    assert median.comp_type.endswith("group median")

    print("\n✓ Group means test PASSED")


def test_composite_groups():
    print("\n" + "=" * 60)
    print("TEST: Several grouping vectors combine into one label")
    print("=" * 60)

    result = match(create_toy_matrix(), group=[["a", "a", "b"], ["x", "y", "x"]])
    assert list(result.sim["g1"]) == ["a x", "a y", "b x"]
    assert result.comp.index == ["a x", "a y", "b x"]
    np.testing.assert_allclose(result.sim["cosine"], 1.0)

    print("\n✓ Composite groups test PASSED")


def test_all_levels():
    print("\n" + "=" * 60)
    print("TEST: Comparisons at every grouping level")
    print("=" * 60)

    result = match(create_toy_nested_matrix(),
                   group=[["a", "a", "b", "b"], ["x", "y", "x", "x"]], all_levels=True)
    print(result.sim.to_string())
    assert result.sim.columns == ["g1", "g2", "g1_cosine", "g1_g2_cosine"]
    np.testing.assert_allclose(result.sim["g1_cosine"], [R2, R2, 1.0, 1.0])
    np.testing.assert_allclose(result.sim["g1_g2_cosine"], 1.0)
    assert result.comp_type.endswith("group mean")

    print("\n✓ All levels test PASSED")


def test_grouped_pairwise():
    print("\n" + "=" * 60)
    print("TEST: Pairwise comparisons within groups")
    print("=" * 60)

    nested = match(create_toy_matrix(), "pairwise", group=["a", "a", "b"])
    assert nested.is_nested
    assert list(nested.sim) == ["a", "b"]
    assert nested.sim["a"].shape == (2, 2)
    assert nested.comp is None

    flat = match(create_toy_matrix(), "pairwise", group=["a", "a", "b"], mean=True)
    assert not flat.is_nested
    np.testing.assert_allclose(flat.sim["cosine"], [0.0, 0.0, 1.0])

    print("\n✓ Grouped pairwise test PASSED")


def test_sequential():
    print("\n" + "=" * 60)
    print("TEST: Sequential comparisons")
    print("=" * 60)

    single = match(create_toy_matrix(), "sequential", group=["s", "s", "s"])
    assert single.comp_type == "sequential"
    assert single.sim.index == ["0, 1, 2"]
    assert single.sim["cosine"][0] == 1.0

    split = match(create_toy_nested_matrix(), "seq",
                  group=[["c1", "c1", "c2", "c2"], ["a", "b", "a", "b"]])
    print(split.sim.to_string())
    assert split.sim.index == ["0 <-> 1", "2 <-> 3"]
    assert list(split.sim["group"]) == ["c1", "c2"]
    np.testing.assert_allclose(split.sim["cosine"], [0.0, 1.0])

    print("\n✓ Sequential test PASSED")


# =============================================================================
# BASELINES
# =============================================================================

def test_external_matrix():
    print("\n" + "=" * 60)
    print("TEST: Comparison matrix with other columns")
    print("=" * 60)

    comp = FeatureMatrix.from_vector({"B": 1.0, "C": 1.0})
    result = match(create_toy_matrix(), comp)
    assert result.comp_type == "comp"
    assert result.processed.columns == ["A", "B", "C"]
    assert result.comp.columns == ["A", "B", "C"]
    np.testing.assert_allclose(result.sim["cosine"], [0.0, R2, 0.5])

    print("\n✓ Comparison matrix test PASSED")


def test_row_selection():
    print("\n" + "=" * 60)
    print("TEST: Selected rows as the baseline")
    print("=" * 60)

    result = match(create_toy_matrix(), [0])
    assert result.comp_type == "[0]"
    assert result.comp.index == ["0"]
    assert result.sim.index == ["1", "2"]
    np.testing.assert_allclose(result.sim["cosine"], [0.0, R2])

    reordered = match(create_toy_matrix(), [0], order=[2, 1, 0])
    assert reordered.comp.index == ["0"]
    assert reordered.sim.index == ["2", "1"]
    np.testing.assert_allclose(reordered.sim["cosine"], [R2, 0.0])

    repeated = match(create_toy_matrix(), [2, 2, 1])
    assert repeated.comp_type == "[2, 2, 1]"
    assert repeated.sim.index == ["0"]
    np.testing.assert_allclose(repeated.sim["cosine"], [1 / np.sqrt(5)])


    print("\n✓ Row selection test PASSED")


def test_texts():
    print("\n" + "=" * 60)
    print("TEST: Style matching of texts")
    print("=" * 60)

    result = match(create_toy_texts(), type="lsm")
    print(result.report())
    assert result.dtm.n_rows == 3
    assert result.processed.n_cols == 9
    assert result.sim["canberra"][0, 1] == pytest.approx(1.0)
    assert result.sim["canberra"][0, 2] == pytest.approx(1 / 6)

    print("\n✓ Style matching test PASSED")


def test_text_comparison():
    print("\n" + "=" * 60)
    print("TEST: Comparison text")
    print("=" * 60)

    result = match(create_toy_texts(), "I went to the store")
    assert result.comp_type == "text"
    assert result.dtm.n_rows == 4
    assert result.comp.index == ["text0"]
    assert result.processed.index == ["0", "1", "2"]
    assert result.sim["cosine"][0] == pytest.approx(1.0)

    terms = FeatureMatrix(np.array([[1, 1], [0, 2]]), ["store", "went"])
    on_matrix = match(terms, "went to the store")
    assert on_matrix.comp_type == "text"
    np.testing.assert_allclose(on_matrix.sim["cosine"], [R2, 0.5])

    print("\n✓ Comparison text test PASSED")


def test_data_references():
    print("\n" + "=" * 60)
    print("TEST: Column references into a dataset")
    print("=" * 60)

    data = create_toy_data()
    result = match(data=data, group="team")
    assert result.comp_type == "team group mean"
    assert result.group == "team"
    assert result.processed.columns == ["A", "B"]
    np.testing.assert_allclose(result.sim["cosine"], [R2, R2, 1.0])

    by_name = match(["A", "B"], data=data, group="team")
    np.testing.assert_allclose(by_name.sim["cosine"], result.sim["cosine"])

    timed = dict(data, turn=np.array([1, 2, 3]))
    late = Expr(lambda d: np.where(d["turn"] > 1, "late", "early"), "late")
    result = match(["A", "B"], data=timed, group=late)
    assert result.comp_type == "late group mean"
    assert list(result.sim["g1"]) == ["early", "late", "late"]
    assert result.sim["cosine"][0] == pytest.approx(1.0)

    env = match(create_toy_matrix(), group=Column("speaker"), env={"speaker": ["x", "x", "y"]})
    assert env.comp_type == "speaker group mean"

    print("\n✓ Column references test PASSED")


def test_comparison_data():
    print("\n" + "=" * 60)
    print("TEST: Grouped comparison dataset")
    print("=" * 60)

    comp_data = {
        "team": np.array(["a", "b"]),
        "A": np.array([1.0, 1.0]),
        "B": np.array([0.0, 1.0]),
    }
    result = match(data=create_toy_data(), group="team", comp_data=comp_data, comp_group="team")
    assert result.comp_type == "comp_data mean"
    np.testing.assert_allclose(result.sim["cosine"], [1.0, 0.0, 1.0])

    with pytest.warns(IntegrityWarning, match="levels not found"):
        partial = match(data=create_toy_data(("a", "a", "c")), group="team",
                        comp_data=comp_data, comp_group="team")
    assert partial.sim.n_rows == 2

    print("\n✓ Comparison dataset test PASSED")


def test_profiles():
    print("\n" + "=" * 60)
    print("TEST: Baseline profiles")
    print("=" * 60)

    matcher = LingMatcher(profiles=create_toy_profiles())
    fm = create_profile_matrix()

    auto = matcher.match(fm, "auto")
    print(f"  {auto!r}")
    assert auto.comp_type == "auto: speech"
    assert auto.comp.index == ["speech"]

    books = matcher.match(fm, "bo")
    assert books.comp_type == "books"
    assert isinstance(books.sim, SimilarityTable)

    with pytest.warns(IntegrityWarning, match="group was ignored"):
        ignored = matcher.match(fm, "books", group=["a", "b"])
    assert ignored.group is None
    assert ignored.sim.n_rows == 2

    print("\n✓ Baseline profiles test PASSED")


def test_categorized_input():
    print("\n" + "=" * 60)
    print("TEST: Already categorized input is used as is")
    print("=" * 60)

    names = ["personal_pronouns", "impersonal_pronouns", "articles", "auxiliary_verbs",
             "adverbs", "prepositions", "conjunctions"]
    rng = np.random.RandomState(42)
    fm = FeatureMatrix(rng.uniform(1, 10, size=(3, len(names))), names)

    result = match(fm, type="lsm")
    assert result.dtm.columns == names
    assert result.processed.columns == ["ppron", "ipron", "article", "auxverb",
                                        "adverb", "prep", "conj"]
    np.testing.assert_allclose(result.processed.values, fm.values)

    print("\n✓ Categorized input test PASSED")


def test_drop():
    print("\n" + "=" * 60)
    print("TEST: Dropping all-zero columns")
    print("=" * 60)

    fm = FeatureMatrix(np.array([[1, 0, 0], [0, 1, 0], [1, 1, 0]]), ["A", "B", "C"])
    result = match(fm, drop=True)
    assert result.processed.columns == ["A", "B"]

    with pytest.raises(DataError, match="all 0s"):
        match(FeatureMatrix(np.zeros((2, 2)), ["A", "B"]), drop=True)

    print("\n✓ Drop test PASSED")


# =============================================================================
# ERRORS AND WARNINGS
# =============================================================================

def test_errors():
    print("\n" + "=" * 60)
    print("TEST: Configuration and data errors")
    print("=" * 60)

    fm = create_toy_matrix()
    with pytest.raises(ConfigurationError, match="length of group"):
        match(fm, group=["a", "b"])
    with pytest.raises(ConfigurationError):
        match(np.array([1, 2, 3]))
    with pytest.raises(ConfigurationError, match="function"):
        match(np.mean)
    with pytest.raises(ConfigurationError, match="unrecognized options"):
        match(fm, colour="red")
    with pytest.raises(NotFoundError):
        match(fm, group=Column("nope"))
    with pytest.raises(ConfigurationError, match="input or data"):
        LingMatcher().match()
    with pytest.raises(ConfigurationError, match="profiles"):
        match(fm, "auto")
    with pytest.raises(DataError, match="every input row"):
        match(fm, [True, True, True])

    print("\n✓ Errors test PASSED")


def test_invalid_order():
    print("\n" + "=" * 60)
    print("TEST: Invalid orderings are ignored")
    print("=" * 60)

    fm = create_toy_matrix()
    with pytest.warns(IntegrityWarning, match="not a permutation"):
        result = match(fm, [0], order=[0, 0, 1])
    assert result.sim.index == ["1", "2"]

    with pytest.warns(IntegrityWarning, match="failed to apply order"):
        match(fm, order="missing")

    print("\n✓ Invalid order test PASSED")


def test_determinism_and_output():
    print("\n" + "=" * 60)
    print("TEST: Repeatable output")
    print("=" * 60)

    first = match(create_toy_texts(), type="lsm")
    second = match(create_toy_texts(), type="lsm")
    np.testing.assert_array_equal(first.sim["canberra"], second.sim["canberra"])

    assert set(first.as_dict()) == {"dtm", "processed", "comp.type", "comp", "group", "sim"}
    assert "LINGUISTIC MATCHING" in first.report()

    print("\n✓ Repeatable output test PASSED")


def run_all_tests():
    tests = [
        test_default_pairwise,
        test_grouped_mean,
        test_composite_groups,
        test_all_levels,
        test_grouped_pairwise,
        test_sequential,
        test_external_matrix,
        test_row_selection,
        test_texts,
        test_text_comparison,
        test_data_references,
        test_comparison_data,
        test_profiles,
        test_categorized_input,
        test_drop,
        test_errors,
        test_invalid_order,
        test_determinism_and_output,
    ]
    failed = 0
    for test in tests:
        try:
            test()
        except AssertionError as e:
            failed += 1
            print(f"\n✗ {test.__name__} FAILED: {e}")
    return failed


def main():
    print("#" * 70)
    print("# MATCHING ENGINE TESTS")
    print("#" * 70)

    failed = run_all_tests()

    print("\n" + "#" * 70)
    print("# ALL TESTS PASSED ✓" if not failed else f"# {failed} TEST(S) FAILED ✗")
    print("#" * 70)
    return 0 if not failed else 1


if __name__ == "__main__":
    sys.exit(main())
