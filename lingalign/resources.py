"""
Baseline Profiles and Column Aliases

Static reference data consumed by the matching engine:

    BaselineProfiles  - named reference rows (e.g. average function-word
                        rates of a genre) over canonical category columns
    DEFAULT_ALIASES   - variant category names -> canonical names
    LSM_CATEGORIES    - the canonical function-word categories

Both the profile table and the alias map are immutable and handed to
LingMatcher at construction; nothing here is looked up implicitly.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Tuple

import numpy as np

from .errors import ConfigurationError, DataError
from .matrix import FeatureMatrix
from .similarity import vector_similarity


LSM_CATEGORIES: Tuple[str, ...] = (
    "ppron", "ipron", "article", "auxverb", "adverb",
    "prep", "conj", "negate", "quant",
)

_LONG_NAMES = (
    "personal_pronouns", "impersonal_pronouns", "articles", "auxiliary_verbs",
    "adverbs", "prepositions", "conjunctions", "negations", "quantifiers",
)

DEFAULT_ALIASES: Mapping[str, str] = MappingProxyType({
    **{c: c for c in LSM_CATEGORIES},
    **dict(zip(_LONG_NAMES, LSM_CATEGORIES)),
    "preps": "prep",
})

# Share of dictionary categories that must already be matrix columns for
# the matrix to be used as-is.
COVERAGE_THRESHOLD = 0.75


@dataclass(frozen=True, eq=False)
class BaselineProfiles:
    """
    Table of named baseline profiles.

    Rows are profiles (e.g. "books", "speech"), columns are canonical
    feature names. Instances are read-only.
    """
    names: Tuple[str, ...]
    columns: Tuple[str, ...]
    values: np.ndarray

    def __post_init__(self):
        values = np.array(self.values, dtype=float)
        values.setflags(write=False)
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "names", tuple(str(n) for n in self.names))
        object.__setattr__(self, "columns", tuple(str(c) for c in self.columns))
        if values.shape != (len(self.names), len(self.columns)):
            raise ConfigurationError(
                f"profile values have shape {values.shape}, expected "
                f"({len(self.names)}, {len(self.columns)})"
            )

    @classmethod
    def from_dict(cls, profiles: Mapping[str, Mapping[str, float]],
                  columns: Sequence[str] = None) -> 'BaselineProfiles':
        """Build from {profile name: {column: value}}; absent entries are 0."""
        names = list(profiles.keys())
        if columns is None:
            columns = []
            for row in profiles.values():
                columns.extend(c for c in row if c not in columns)
        values = [[float(profiles[n].get(c, 0.0)) for c in columns] for n in names]
        return cls(tuple(names), tuple(columns), np.array(values, dtype=float).reshape(len(names), len(columns)))

    def __len__(self):
        return len(self.names)

    def __contains__(self, name):
        return name in self.names

    def vector(self, name: str) -> np.ndarray:
        return self.values[self.names.index(name)].copy()

    def row(self, name: str) -> FeatureMatrix:
        """One profile as a one-row FeatureMatrix labelled with its name."""
        return FeatureMatrix(self.vector(name).reshape(1, -1), list(self.columns), [name])

    def match(self, keyword: str) -> Optional[str]:
        """
        Case-insensitive partial match of a keyword against profile names.

        An exact match wins; otherwise the keyword must be a prefix of
        exactly one name. Returns None when nothing matches.
        """
        key = keyword.lower()
        lowered = [n.lower() for n in self.names]
        if key in lowered:
            return self.names[lowered.index(key)]
        hits = [n for n, low in zip(self.names, lowered) if low.startswith(key)]
        if len(hits) > 1:
            raise ConfigurationError(
                f"{keyword!r} matches more than one profile: {', '.join(hits)}"
            )
        return hits[0] if hits else None

    def best_match(self, vector: np.ndarray, columns: Sequence[str]) -> str:
        """Profile with the highest Pearson correlation with `vector`."""
        shared = [c for c in columns if c in self.columns]
        if not shared:
            raise DataError("input and profiles have no columns in common")
        lookup = dict(zip(columns, np.asarray(vector, dtype=float)))
        target = np.array([lookup[c] for c in shared])
        idx = [self.columns.index(c) for c in shared]
        scores = [vector_similarity(self.values[i, idx], target, "pearson")
                  for i in range(len(self.names))]
        return self.names[int(np.argmax(scores))]

    def __repr__(self):
        return f"BaselineProfiles({len(self.names)} profiles x {len(self.columns)} columns)"
