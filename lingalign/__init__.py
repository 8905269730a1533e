"""
lingalign: Linguistic Similarity and Accommodation Measures
===========================================================

Score how alike texts are: each text against every other, against a
group baseline, against a reference profile, or against the turn that
came before it in a conversation.

Package Structure:
    lingalign
        ├── core.py        - LingMatcher engine and match()
        ├── comparison.py  - what a comparison argument means
        ├── grouping.py    - grouping vectors, levels and ordering
        ├── sequential.py  - turn-taking (speaker) comparisons
        ├── dispatch.py    - routes comparisons to the metric layouts
        ├── similarity.py  - similarity metrics
        ├── processing.py  - texts -> weighted/categorized feature matrix
        ├── matrix.py      - FeatureMatrix and column reconciliation
        ├── resolver.py    - column references into datasets
        ├── resources.py   - baseline profiles and column aliases
        └── results.py     - result tables and MatchResult

Basic Usage:
    >>> from lingalign import match
    >>> texts = ["I think we should go.", "We should go now.", "The report is due."]

    # every text against every other text
    >>> result = match(texts)
    >>> result.sim["cosine"]

    # language style matching against the mean of each group
    >>> data = {"text": texts, "team": ["a", "a", "b"]}
    >>> result = match("text", data=data, group="team", type="lsm")
    >>> result.comp_type
    'team group mean'

    # adjacent turns of a conversation
    >>> result = match(texts, "sequential", group=["s1", "s2", "s1"])

    # the closest of a set of reference profiles
    >>> from lingalign import LingMatcher
    >>> matcher = LingMatcher(profiles={"books": {...}, "speech": {...}})
    >>> matcher.match(texts, "auto", type="lsm").comp_type
    'auto: speech'
"""

__version__ = "0.3.0"

from .errors import (
    LingalignError,
    ConfigurationError,
    NotFoundError,
    DataError,
    IntegrityWarning,
)

from .matrix import (
    FeatureMatrix,
    reconcile_columns,
    restrict_to_common,
    apply_aliases,
)

from .resources import (
    BaselineProfiles,
    DEFAULT_ALIASES,
    LSM_CATEGORIES,
    COVERAGE_THRESHOLD,
)

from .resolver import (
    ArgumentResolver,
    Column,
    Expr,
    ValueSource,
)

from .comparison import (
    ComparisonKind,
    ComparisonSpec,
    classify_comparison,
)

from .grouping import (
    GroupSpec,
    normalize_groups,
    apply_order,
    match_comparison_groups,
)

from .similarity import (
    METRICS,
    compute_similarity,
    match_metric,
    vector_similarity,
)

from .processing import (
    MatchSettings,
    TYPE_PRESETS,
    build_dtm,
    categorize,
    read_texts,
    weight_matrix,
)

from .results import (
    MatchResult,
    PairwiseSimilarity,
    SimilarityTable,
)

from .core import (
    LingMatcher,
    match,
)

__all__ = [
    # Engine
    'LingMatcher',
    'match',
    'MatchResult',

    # Data model
    'FeatureMatrix',
    'GroupSpec',
    'ComparisonKind',
    'ComparisonSpec',
    'SimilarityTable',
    'PairwiseSimilarity',
    'MatchSettings',

    # Resolution and grouping
    'ArgumentResolver',
    'Column',
    'Expr',
    'ValueSource',
    'classify_comparison',
    'normalize_groups',
    'apply_order',
    'match_comparison_groups',

    # Columns and resources
    'reconcile_columns',
    'restrict_to_common',
    'apply_aliases',
    'BaselineProfiles',
    'DEFAULT_ALIASES',
    'LSM_CATEGORIES',
    'COVERAGE_THRESHOLD',

    # Metrics and processing
    'METRICS',
    'TYPE_PRESETS',
    'compute_similarity',
    'match_metric',
    'vector_similarity',
    'build_dtm',
    'categorize',
    'read_texts',
    'weight_matrix',

    # Errors
    'LingalignError',
    'ConfigurationError',
    'NotFoundError',
    'DataError',
    'IntegrityWarning',
]
