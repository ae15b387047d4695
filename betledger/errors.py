"""Exception hierarchy for the bet ledger.

"Not found" and "already resolved" are ordinary results (``None`` and
``ResolveOutcome.NOOP``), not exceptions.
"""


class LedgerError(Exception):
    """Base exception for every failure raised by this package."""


class ValidationError(LedgerError, ValueError):
    """Input rejected before it reached storage."""

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = fields or []


class StorageError(LedgerError):
    """Connectivity, constraint, or query failure at the storage boundary."""


class SchemaBootstrapError(StorageError):
    """Schema could not be applied. Fatal at process start."""


class RulesNotConfiguredError(LedgerError):
    """The game_rules table is empty."""
