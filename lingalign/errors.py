"""
Error taxonomy for lingalign.

Fatal problems are raised as exceptions and abort the call; integrity
problems are reported with ``warnings.warn(..., IntegrityWarning)`` and the
call continues on the filtered data.
"""


class LingalignError(Exception):
    """Base class for all lingalign errors."""


class ConfigurationError(LingalignError, ValueError):
    """Arguments cannot be reconciled into a valid comparison."""


class NotFoundError(ConfigurationError, KeyError):
    """A referenced argument could not be resolved from any source."""

    def __init__(self, reference: str, sources=None):
        self.reference = reference
        self.sources = list(sources or [])
        where = f" (searched: {', '.join(self.sources)})" if self.sources else ""
        super().__init__(f"could not find {reference!r}{where}")

    def __str__(self):
        return self.args[0]


class DataError(LingalignError, ValueError):
    """The data cannot support the requested comparison."""


class IntegrityWarning(UserWarning):
    """Recoverable mismatch; offending rows or columns were dropped."""
