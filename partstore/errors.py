"""Error taxonomy for partstore.

Each error also derives from the builtin exception callers would naturally
catch for the same situation, so ``except ValueError`` and friends keep working.
"""

from __future__ import annotations


class PartstoreError(Exception):
    """Base class for all partstore errors."""


class ConfigurationError(PartstoreError, ValueError):
    """Invalid table definition (e.g. a non-identity partition transform)."""


class SchemaMismatchError(PartstoreError, ValueError):
    """Inserted data does not match the table schema."""


class UnsupportedFilterError(PartstoreError, ValueError):
    """Overwrite filters cannot be fully attributed to partition-field equality."""


class InternalConsistencyError(PartstoreError, RuntimeError):
    """A non-append insertion found a partition that should have been removed."""


class ContractViolationError(PartstoreError, RuntimeError):
    """A write-path caller broke the builder/insert calling contract."""


class TableNotFoundError(PartstoreError, KeyError):
    """Lookup of a table name that is not registered."""

    def __str__(self) -> str:
        # KeyError repr-quotes its argument; keep multi-line messages readable.
        return str(self.args[0]) if self.args else ""


__all__ = [
    "ConfigurationError",
    "ContractViolationError",
    "InternalConsistencyError",
    "PartstoreError",
    "SchemaMismatchError",
    "TableNotFoundError",
    "UnsupportedFilterError",
]
