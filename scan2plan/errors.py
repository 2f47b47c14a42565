"""
Error types for the quoting core.

ConfigurationError is fatal: the computation aborts, no partial result.
DataGapWarning is recorded, never raised: a rate-table lookup missed and
a documented default was used instead.
"""


class ConfigurationError(ValueError):
    """Raised when rate tables or mapping declarations cannot produce a valid result."""


class DataGapWarning(UserWarning):
    """A rate-table row was missing and the lookup fell back to a default."""

    def __init__(self, table: str, key, default):
        self.table = table
        self.key = key
        self.default = default
        super().__init__(f"{table}: no row for {key!r}, using default {default!r}")
