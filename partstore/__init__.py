"""In-memory partitioned tables with legacy-write fallback."""

from __future__ import annotations

from partstore.catalog import FallbackTableCatalog
from partstore.contracts import TableCapability
from partstore.errors import (
    ConfigurationError,
    ContractViolationError,
    InternalConsistencyError,
    PartstoreError,
    SchemaMismatchError,
    TableNotFoundError,
    UnsupportedFilterError,
)
from partstore.filters import filters_to_keys
from partstore.partitioning import extract_partition_key, group_rows_by_partition
from partstore.planner import save, write_dataframe
from partstore.provider import InMemoryProvider
from partstore.registry import TableRegistry
from partstore.schemas.types import ColumnSpec, TableSpec
from partstore.table import PartitionedTable
from partstore.transforms import identity
from partstore.write import FallbackWriteBuilder, SessionState, WriteMode

__all__ = [
    "ColumnSpec",
    "ConfigurationError",
    "ContractViolationError",
    "FallbackTableCatalog",
    "FallbackWriteBuilder",
    "InMemoryProvider",
    "InternalConsistencyError",
    "PartitionedTable",
    "PartstoreError",
    "SchemaMismatchError",
    "SessionState",
    "TableCapability",
    "TableNotFoundError",
    "TableRegistry",
    "TableSpec",
    "UnsupportedFilterError",
    "WriteMode",
    "extract_partition_key",
    "filters_to_keys",
    "group_rows_by_partition",
    "identity",
    "save",
    "write_dataframe",
]
