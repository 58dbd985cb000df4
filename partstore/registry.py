"""Named registry of in-memory tables.

A ``TableRegistry`` is created by its owner (a test session, the CLI, an
application) and passed to providers and catalogs explicitly. Clear it between
test cases with ``clear_all()``; dropping the last reference releases all data.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence

import polars as pl

from partstore._error_messages import table_not_found_error
from partstore.errors import TableNotFoundError
from partstore.schemas.types import TableSpec
from partstore.table import PartitionedTable
from partstore.transforms import Transform

logger = logging.getLogger(__name__)


class TableRegistry:
    """Thread-safe mapping of table name to ``PartitionedTable``."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tables: dict[str, PartitionedTable] = {}

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tables

    def __len__(self) -> int:
        with self._lock:
            return len(self._tables)

    def get(self, name: str) -> PartitionedTable:
        with self._lock:
            table = self._tables.get(name)
            if table is None:
                raise TableNotFoundError(table_not_found_error(name, list(self._tables)))
            return table

    def get_or_create(
        self,
        name: str,
        spec: TableSpec,
        partitioning: Sequence[Transform],
        properties: Mapping[str, str] | None = None,
    ) -> PartitionedTable:
        """Return the table registered as ``name``, creating it on first use.

        An existing table is returned as-is; ``spec`` and ``partitioning`` only
        apply when the table is created.
        """
        with self._lock:
            table = self._tables.get(name)
            if table is not None:
                return table
            table = PartitionedTable(name, spec, partitioning, properties)
            self._tables[name] = table
        logger.info("Created table %s partitioned by %s", name, table.partition_field_names)
        return table

    def create(
        self,
        name: str,
        spec: TableSpec,
        partitioning: Sequence[Transform],
        properties: Mapping[str, str] | None = None,
    ) -> PartitionedTable:
        """Create and register a new table, failing if ``name`` is taken."""
        table = PartitionedTable(name, spec, partitioning, properties)
        self.register(table)
        logger.info("Created table %s partitioned by %s", name, table.partition_field_names)
        return table

    def register(self, table: PartitionedTable) -> None:
        with self._lock:
            if table.name in self._tables:
                raise ValueError(f"Table '{table.name}' is already registered")
            self._tables[table.name] = table

    def drop(self, name: str) -> bool:
        """Remove ``name``; returns False when it was not registered."""
        with self._lock:
            return self._tables.pop(name, None) is not None

    def list_tables(self) -> list[str]:
        with self._lock:
            return sorted(self._tables)

    def table_data(self, name: str) -> pl.DataFrame:
        """Read back a table's rows as a DataFrame with its schema."""
        return self.get(name).to_frame()

    def clear_all(self) -> None:
        with self._lock:
            count = len(self._tables)
            self._tables.clear()
        logger.info("Cleared %d table(s)", count)


__all__ = ["TableRegistry"]
