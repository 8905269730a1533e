"""
Text Processing

Turns texts into feature matrices and prepares them for comparison:

    read_texts      - texts from .txt (lines) or .csv/.tsv (first text column)
    build_dtm       - document-term counts (scikit-learn CountVectorizer)
    weight_matrix   - raw, binary, log or tf-idf weights; optional percentages
    categorize      - sum term columns into dictionary categories
    process_matrix  - weight -> percent -> categorize, as configured

MatchSettings gathers these options for one call, starting from a `type`
preset ("lsm": function-word style matching, "lsa": tf-idf content
matching) and applying explicit options on top.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence
import csv
import re

import numpy as np
from sklearn.feature_extraction.text import CountVectorizer, TfidfTransformer

from .errors import ConfigurationError, DataError
from .lexicon import FUNCTION_WORDS
from .matrix import FeatureMatrix
from .similarity import match_metric


TEXT_FILE = re.compile(r"\.(?:csv|txt|tsv|tab)$", re.IGNORECASE)

TOKEN_PATTERN = r"(?u)\b\w[\w']*\b"

WEIGHTS = ("freq", "count", "binary", "log", "tfidf")

TYPE_PRESETS: Dict[str, Dict[str, Any]] = {
    "lsm": {"dictionary": FUNCTION_WORDS, "percent": True, "metric": "canberra"},
    "lsa": {"weight": "tfidf", "metric": "cosine"},
}

DTM_OPTIONS = ("lowercase", "token_pattern", "exclude", "vocabulary")
SIM_OPTIONS = ("pairwise", "mean", "agg", "agg_mean")


# =============================================================================
# SETTINGS
# =============================================================================

def resolve_type(type: Optional[str]) -> Optional[str]:
    """Map a loose type name onto "lsm" or "lsa"."""
    if type is None:
        return None
    return "lsm" if re.search("lsm|lang|ling|style|match", type, re.IGNORECASE) else "lsa"


@dataclass
class MatchSettings:
    """Processing and similarity options for one matching call."""
    metrics: List[str] = field(default_factory=lambda: ["cosine"])
    weight: Optional[str] = None
    percent: bool = False
    dictionary: Optional[Mapping[str, Sequence[str]]] = None
    dtm_options: Dict[str, Any] = field(default_factory=dict)
    pairwise: Optional[bool] = None
    mean: Optional[bool] = None
    agg: bool = True
    agg_mean: bool = True
    type: Optional[str] = None

    @classmethod
    def from_options(cls, type: Optional[str] = None, **options) -> 'MatchSettings':
        """
        Build settings from a type preset plus explicit options.

        Raises:
            ConfigurationError: unknown option names or values
        """
        known = {"metric", "weight", "percent", "dictionary"} | set(DTM_OPTIONS) | set(SIM_OPTIONS)
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigurationError(f"unrecognized options: {', '.join(unknown)}")
        resolved = resolve_type(type)
        merged = dict(TYPE_PRESETS[resolved]) if resolved else {}
        merged.update({k: v for k, v in options.items() if v is not None})

        weight = merged.get("weight")
        if weight is not None and weight not in WEIGHTS:
            raise ConfigurationError(f"unrecognized weight {weight!r}; use one of {', '.join(WEIGHTS)}")
        return cls(
            metrics=match_metric(merged.get("metric")),
            weight=weight,
            percent=bool(merged.get("percent", False)),
            dictionary=merged.get("dictionary"),
            dtm_options={k: merged[k] for k in DTM_OPTIONS if k in merged},
            pairwise=merged.get("pairwise"),
            mean=merged.get("mean"),
            agg=bool(merged.get("agg", True)),
            agg_mean=bool(merged.get("agg_mean", True)),
            type=resolved,
        )


# =============================================================================
# TEXTS
# =============================================================================

def is_text_path(value: Any) -> bool:
    return isinstance(value, (str, Path)) and bool(TEXT_FILE.search(str(value)))


def read_texts(path) -> List[str]:
    """
    Read texts from a file.

    .txt files give one text per non-empty line; delimited files give the
    values of their first non-numeric column.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"{path} does not exist")
    if path.suffix.lower() == ".txt":
        with open(path, encoding="utf-8") as f:
            return [line.rstrip("\n") for line in f if line.strip()]

    delimiter = "," if path.suffix.lower() == ".csv" else "\t"
    with open(path, encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f, delimiter=delimiter))
    if not rows:
        return []
    for name in rows[0].keys():
        values = [r[name] for r in rows if r[name]]
        if not all(_is_number(v) for v in values):
            return values
    raise ConfigurationError(f"{path} has no text column")


def _is_number(value: str) -> bool:
    try:
        float(value)
    except ValueError:
        return False
    return True


def build_dtm(
    texts: Sequence[str],
    lowercase: bool = True,
    token_pattern: str = TOKEN_PATTERN,
    exclude: Any = None,
    vocabulary: Optional[Sequence[str]] = None
) -> FeatureMatrix:
    """
    Document-term matrix of raw counts.

    Args:
        texts: one string per document
        lowercase: fold case before tokenizing
        token_pattern: regular expression defining tokens
        exclude: terms to leave out, or "function" for the built-in
            function-word list
        vocabulary: fixed set of terms to count
    """
    if exclude == "function":
        exclude = sorted({t for terms in FUNCTION_WORDS.values() for t in terms if not t.endswith("*")})
    elif isinstance(exclude, str):
        exclude = [exclude]
    vectorizer = CountVectorizer(
        lowercase=lowercase,
        token_pattern=token_pattern,
        stop_words=list(exclude) if exclude else None,
        vocabulary=list(vocabulary) if vocabulary is not None else None,
    )
    try:
        counts = vectorizer.fit_transform([str(t) for t in texts])
    except ValueError as e:
        raise DataError(f"could not build a document-term matrix: {e}") from e
    return FeatureMatrix(counts.toarray().astype(float), list(vectorizer.get_feature_names_out()))


# =============================================================================
# WEIGHTING AND CATEGORIES
# =============================================================================

def weight_matrix(matrix: FeatureMatrix, weight: Optional[str] = None,
                  percent: bool = False) -> FeatureMatrix:
    """Apply a term weight, then optionally convert rows to percentages."""
    values = matrix.values
    if weight == "binary":
        values = (values > 0).astype(float)
    elif weight == "log":
        values = np.log1p(values)
    elif weight == "tfidf":
        values = TfidfTransformer(norm=None).fit_transform(values).toarray()
    if percent:
        totals = values.sum(axis=1, keepdims=True)
        values = np.divide(values * 100, totals, out=np.zeros_like(values), where=totals != 0)
    return FeatureMatrix(values, list(matrix.columns), list(matrix.index))


def categorize(matrix: FeatureMatrix, dictionary: Mapping[str, Sequence[str]]) -> FeatureMatrix:
    """
    Sum term columns into dictionary categories.

    Terms ending in "*" match every column starting with the rest of the
    term; other terms match exactly (case-insensitively).
    """
    lowered = [c.lower() for c in matrix.columns]
    values = np.zeros((matrix.n_rows, len(dictionary)))
    for k, terms in enumerate(dictionary.values()):
        hit = np.zeros(matrix.n_cols, dtype=bool)
        for term in terms:
            term = term.lower()
            if term.endswith("*"):
                hit |= np.array([c.startswith(term[:-1]) for c in lowered], dtype=bool)
            else:
                hit |= np.array([c == term for c in lowered], dtype=bool)
        if hit.any():
            values[:, k] = matrix.values[:, hit].sum(axis=1)
    return FeatureMatrix(values, [str(c) for c in dictionary.keys()], list(matrix.index))


def process_matrix(matrix: FeatureMatrix, settings: MatchSettings) -> FeatureMatrix:
    """Weight, convert to percentages, and categorize as the settings ask."""
    if settings.weight is not None or settings.percent:
        matrix = weight_matrix(matrix, settings.weight, settings.percent)
    if settings.dictionary is not None:
        matrix = categorize(matrix, settings.dictionary)
    return matrix
