#!/usr/bin/env python3
"""
test_processing.py - Tests for Text Processing and Settings
============================================================

Usage:
    python test_processing.py
    pytest tests/test_processing.py
"""

import os
import sys
import tempfile

import numpy as np
import pytest

# Add parent directory (package root) to path for imports
package_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if package_root not in sys.path:
    sys.path.insert(0, package_root)

from lingalign.errors import ConfigurationError, DataError
from lingalign.lexicon import FUNCTION_WORDS
from lingalign.matrix import FeatureMatrix
from lingalign.processing import (MatchSettings, build_dtm, categorize, is_text_path,
                                  process_matrix, read_texts, resolve_type, weight_matrix)


def create_toy_texts():
    return [
        "I went to the store",
        "We went to the park",
        "The dog is not here",
    ]


def test_settings():
    print("=" * 60)
    print("TEST: Settings and presets")
    print("=" * 60)

    assert resolve_type(None) is None
    assert resolve_type("lsm") == "lsm"
    assert resolve_type("Style") == "lsm"
    assert resolve_type("lsa") == "lsa"
    assert resolve_type("semantic") == "lsa"

    lsm = MatchSettings.from_options(type="lsm")
    print(f"  lsm: metrics={lsm.metrics} percent={lsm.percent}")
    assert lsm.metrics == ["canberra"]
    assert lsm.percent
    assert lsm.dictionary is FUNCTION_WORDS

    lsa = MatchSettings.from_options(type="lsa", metric="pearson")
    assert lsa.weight == "tfidf"
    assert lsa.metrics == ["pearson"]

    plain = MatchSettings.from_options(lowercase=False, mean=True)
    assert plain.metrics == ["cosine"]
    assert plain.dtm_options == {"lowercase": False}
    assert plain.mean is True

    with pytest.raises(ConfigurationError, match="unrecognized options"):
        MatchSettings.from_options(colour="red")
    with pytest.raises(ConfigurationError, match="weight"):
        MatchSettings.from_options(weight="bogus")

    print("\n✓ Settings test PASSED")


def test_build_dtm():
    print("\n" + "=" * 60)
    print("TEST: Document-term matrix")
    print("=" * 60)

    dtm = build_dtm(["the cat sat", "the dog"])
    print(f"  {dtm!r}")
    assert dtm.columns == ["cat", "dog", "sat", "the"]
    np.testing.assert_array_equal(dtm.values, [[1, 0, 1, 1], [0, 1, 0, 1]])

    assert "the" not in build_dtm(["the cat sat", "the dog"], exclude=["the"]).columns
    assert "the" not in build_dtm(["the cat sat", "the dog"], exclude="function").columns
    assert "I" in build_dtm(["I am"], lowercase=False).columns

    with pytest.raises(DataError):
        build_dtm([""])

    print("\n✓ Document-term matrix test PASSED")


def test_weighting():
    print("\n" + "=" * 60)
    print("TEST: Weighting")
    print("=" * 60)

    fm = FeatureMatrix(np.array([[2, 2], [0, 0]]), ["A", "B"])
    np.testing.assert_allclose(weight_matrix(fm, percent=True).values, [[50, 50], [0, 0]])
    np.testing.assert_allclose(weight_matrix(fm, "binary").values, [[1, 1], [0, 0]])
    np.testing.assert_allclose(weight_matrix(fm, "log").values, np.log1p([[2, 2], [0, 0]]))

    counts = FeatureMatrix(np.array([[1, 1], [1, 0]]), ["common", "rare"])
    tfidf = weight_matrix(counts, "tfidf")
    np.testing.assert_allclose(tfidf.column("common"), [1, 1])
    assert tfidf.values[0, 1] > 1

    print("\n✓ Weighting test PASSED")


def test_categorize():
    print("\n" + "=" * 60)
    print("TEST: Dictionary categories")
    print("=" * 60)

    fm = FeatureMatrix(np.array([[1, 2, 1, 1, 3]]), ["i", "we", "toward", "towards", "the"])
    dictionary = {"ppron": ["i", "we"], "prep": ["toward*"], "article": ["the"], "negate": ["not"]}
    cats = categorize(fm, dictionary)
    assert cats.columns == ["ppron", "prep", "article", "negate"]
    np.testing.assert_array_equal(cats.values, [[3, 2, 3, 0]])

    texts = create_toy_texts()
    settings = MatchSettings.from_options(type="lsm")
    processed = process_matrix(build_dtm(texts), settings)
    print(f"  {processed!r}")
    assert processed.columns == list(FUNCTION_WORDS)
    assert processed["ppron"][0] == pytest.approx(20.0)
    assert processed["article"][0] == pytest.approx(20.0)
    assert processed["negate"][2] == pytest.approx(20.0)

    print("\n✓ Dictionary categories test PASSED")


def test_read_texts():
    print("\n" + "=" * 60)
    print("TEST: Reading texts from files")
    print("=" * 60)

    with tempfile.TemporaryDirectory() as tmp:
        txt = os.path.join(tmp, "texts.txt")
        with open(txt, "w", encoding="utf-8") as f:
            f.write("first text\n\nsecond text\n")
        assert is_text_path(txt)
        assert read_texts(txt) == ["first text", "second text"]

        csv_path = os.path.join(tmp, "texts.csv")
        with open(csv_path, "w", encoding="utf-8") as f:
            f.write("id,text\n1,hello there\n2,general reply\n")
        assert read_texts(csv_path) == ["hello there", "general reply"]

        with pytest.raises(ConfigurationError, match="does not exist"):
            read_texts(os.path.join(tmp, "missing.txt"))

    assert not is_text_path("just some words")

    print("\n✓ Reading texts test PASSED")


def run_all_tests():
    tests = [
        test_settings,
        test_build_dtm,
        test_weighting,
        test_categorize,
        test_read_texts,
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
    print("# TEXT PROCESSING TESTS")
    print("#" * 70)

    failed = run_all_tests()

    print("\n" + "#" * 70)
    print("# ALL TESTS PASSED ✓" if not failed else f"# {failed} TEST(S) FAILED ✗")
    print("#" * 70)
    return 0 if not failed else 1


if __name__ == "__main__":
    sys.exit(main())
