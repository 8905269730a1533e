"""
Argument Resolution

Comparison, grouping and ordering arguments may be given as literal values
or as references into an accompanying dataset. References are looked up
through an explicit, ordered list of value sources:

    1. the primary dataset (exact column name)
    2. every further source in order (comparison dataset, caller namespace)

A reference is either a plain string that happens to name a column, an
explicit Column("name"), or an Expr(fn) evaluated against each source in
turn. Explicit references that no source can satisfy raise NotFoundError;
plain strings that name nothing are passed through as literals (they may
be keywords or texts).
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .errors import NotFoundError
from .matrix import FeatureMatrix, is_table, table_column, table_columns


# =============================================================================
# REFERENCES
# =============================================================================

@dataclass(frozen=True)
class Column:
    """Explicit reference to a column of a dataset."""
    name: str

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class Expr:
    """
    Expression evaluated against a dataset, e.g.
    Expr(lambda d: d["role"] == "prompt", "role == 'prompt'").
    """
    fn: Callable[[Any], Any]
    label: str = "<expr>"

    def __str__(self):
        return self.label


@dataclass
class ValueSource:
    """A named place to look references up: a dataset or a plain namespace."""
    name: str
    table: Any

    def names(self) -> List[str]:
        if self.table is None:
            return []
        if is_table(self.table) or table_columns(self.table):
            return table_columns(self.table)
        if isinstance(self.table, Mapping):
            return [str(k) for k in self.table.keys()]
        return []

    def get(self, name: str) -> Any:
        if isinstance(self.table, Mapping) and not is_table(self.table):
            return self.table[name]
        return table_column(self.table, name)


# =============================================================================
# RESOLVER
# =============================================================================

class ArgumentResolver:
    """
    Resolve argument values against an ordered list of sources.

    Usage:
        resolver = ArgumentResolver.from_context(data=df, env={"cond": labels})
        resolver.resolve("speaker")           # column of df
        resolver.resolve(Column("cond"))      # from env
        resolver.resolve(Expr(lambda d: d["turn"] > 1, "turn > 1"))
    """

    def __init__(self, sources: Sequence[ValueSource] = ()):
        self.sources = [s for s in sources if s.table is not None]

    @classmethod
    def from_context(cls, data=None, comp_data=None, env: Mapping[str, Any] = None) -> 'ArgumentResolver':
        return cls([
            ValueSource("data", data),
            ValueSource("comp_data", comp_data),
            ValueSource("env", env),
        ])

    def with_primary(self, table: Any, name: str = "primary") -> 'ArgumentResolver':
        """Resolver that checks `table` before the existing sources."""
        if table is None:
            return self
        rest = [s for s in self.sources if s.table is not table]
        return ArgumentResolver([ValueSource(name, table)] + rest)

    @property
    def source_names(self) -> List[str]:
        return [s.name for s in self.sources]

    def primary_columns(self) -> List[str]:
        return self.sources[0].names() if self.sources else []

    def lookup(self, name: str) -> Tuple[bool, Any]:
        """Find `name` in the first source that has it."""
        for source in self.sources:
            if name in source.names():
                return True, source.get(name)
        return False, None

    def resolve(self, value: Any, strict: bool = False) -> Any:
        """
        Resolve one argument value.

        Args:
            value: literal, str, Column or Expr
            strict: treat a plain string as a reference that must resolve

        Raises:
            NotFoundError: an explicit reference was not found in any source
        """
        if isinstance(value, Column):
            found, result = self.lookup(value.name)
            if not found:
                raise NotFoundError(value.name, self.source_names)
            return result
        if isinstance(value, Expr):
            return self._evaluate(value)
        if isinstance(value, str):
            found, result = self.lookup(value)
            if found:
                return result
            if strict:
                raise NotFoundError(value, self.source_names)
        return value

    def is_reference(self, value: Any) -> bool:
        if isinstance(value, (Column, Expr)):
            return True
        return isinstance(value, str) and self.lookup(value)[0]

    def _evaluate(self, expr: Expr) -> Any:
        for source in self.sources:
            try:
                return expr.fn(source.table)
            except (KeyError, NameError, AttributeError, IndexError, TypeError):
                continue
        raise NotFoundError(expr.label, self.source_names)


# =============================================================================
# DESCRIPTORS
# =============================================================================

def describe_argument(value: Any, limit: int = 60) -> Optional[str]:
    """Short human-readable rendering of an argument as it was supplied."""
    if value is None:
        return None
    if isinstance(value, (Column, Expr, str)):
        return str(value)
    if callable(value):
        return getattr(value, "__name__", None) or repr(value)
    if isinstance(value, FeatureMatrix):
        return repr(value)
    if isinstance(value, Mapping):
        return ", ".join(str(k) for k in value.keys())
    if isinstance(value, (list, tuple)) and value and all(isinstance(v, (Column, Expr)) for v in value):
        return ", ".join(str(v) for v in value)
    text = repr(np.asarray(value, dtype=object).tolist()) if np.ndim(value) else repr(value)
    return text if len(text) <= limit else text[:limit - 3] + "..."
