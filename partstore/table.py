"""In-memory partitioned table with legacy-write fallback support."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType
from typing import Any

import polars as pl

from partstore._error_messages import partition_not_removed_error
from partstore.contracts import TableCapability
from partstore.errors import InternalConsistencyError, SchemaMismatchError
from partstore.partitioning import (
    PartitionKey,
    Row,
    extract_partition_key,
    resolve_partition_positions,
)
from partstore.schemas.types import TableSpec
from partstore.transforms import Transform
from partstore.write import FallbackWriteBuilder, WriteMode

logger = logging.getLogger(__name__)


class PartitionedTable:
    """Rows grouped by identity-partition key, held entirely in memory.

    The partition map is only mutated through ``clear``, ``remove_keys`` and
    ``merge_or_replace``; write builders drive those in order. A single writer
    per table is assumed, ``lock`` serializes the mutating calls against
    ``snapshot`` readers.
    """

    CAPABILITIES: frozenset[TableCapability] = frozenset(
        {
            TableCapability.BATCH_WRITE,
            TableCapability.V1_BATCH_WRITE,
            TableCapability.OVERWRITE_BY_FILTER,
            TableCapability.TRUNCATE,
        }
    )

    def __init__(
        self,
        name: str,
        spec: TableSpec,
        partitioning: Sequence[Transform],
        properties: Mapping[str, str] | None = None,
    ) -> None:
        self._partitioning = tuple(partitioning)
        # Raises ConfigurationError before any state exists.
        self._partition_names, self._partition_positions = resolve_partition_positions(
            spec, self._partitioning
        )
        self._name = name
        self._spec = spec
        self._properties = MappingProxyType(dict(properties or {}))
        self._partitions: dict[PartitionKey, list[Row]] = {}
        self.lock = threading.RLock()

    def __repr__(self) -> str:
        return (
            f"PartitionedTable(name={self._name!r}, partitions={len(self._partitions)}, "
            f"rows={self.row_count})"
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def spec(self) -> TableSpec:
        return self._spec

    @property
    def partitioning(self) -> tuple[Transform, ...]:
        return self._partitioning

    @property
    def properties(self) -> Mapping[str, str]:
        return self._properties

    @property
    def capabilities(self) -> frozenset[TableCapability]:
        return self.CAPABILITIES

    @property
    def partition_field_names(self) -> tuple[str, ...]:
        return self._partition_names

    @property
    def partition_positions(self) -> tuple[int, ...]:
        return self._partition_positions

    @property
    def row_count(self) -> int:
        with self.lock:
            return sum(len(rows) for rows in self._partitions.values())

    def partition_key(self, row: Sequence[Any]) -> PartitionKey:
        return extract_partition_key(row, self._partition_positions)

    def partition_keys(self) -> list[PartitionKey]:
        with self.lock:
            return list(self._partitions)

    def rows_for(self, key: PartitionKey) -> list[Row]:
        with self.lock:
            return list(self._partitions.get(tuple(key), ()))

    def clear(self) -> None:
        with self.lock:
            self._partitions.clear()

    def remove_keys(self, keys: Iterable[PartitionKey]) -> None:
        """Drop the given partitions; keys that are not present are ignored."""
        with self.lock:
            for key in keys:
                self._partitions.pop(tuple(key), None)

    def check_replaceable(self, keys: Iterable[PartitionKey], mode: WriteMode) -> None:
        """Raise before any mutation if a truncate/overwrite would hit a live partition."""
        if mode is WriteMode.APPEND:
            return
        with self.lock:
            for key in keys:
                key = tuple(key)
                if key in self._partitions:
                    raise InternalConsistencyError(partition_not_removed_error(key, mode.value))

    def merge_or_replace(
        self, key: PartitionKey, rows: Sequence[Row], mode: WriteMode
    ) -> None:
        """Store ``rows`` under ``key`` according to ``mode``.

        Appends concatenate onto an existing partition. Truncate and overwrite
        writes expect their pre-step to have evicted ``key`` already and raise
        ``InternalConsistencyError`` when it is still present.
        """
        key = tuple(key)
        with self.lock:
            existing = self._partitions.get(key)
            if existing is not None and mode is WriteMode.APPEND:
                logger.debug("%s: appending %d rows to partition %r", self._name, len(rows), key)
                existing.extend(rows)
            elif existing is not None:
                raise InternalConsistencyError(partition_not_removed_error(key, mode.value))
            else:
                logger.debug("%s: new partition %r with %d rows", self._name, key, len(rows))
                self._partitions[key] = list(rows)

    def snapshot(self) -> list[Row]:
        """All rows; partition order is unspecified, row order within a partition is kept."""
        with self.lock:
            return [row for rows in self._partitions.values() for row in rows]

    def to_frame(self) -> pl.DataFrame:
        rows = self.snapshot()
        if not rows:
            return pl.DataFrame(schema=self._spec.to_polars())
        return pl.DataFrame(rows, schema=self._spec.to_polars(), orient="row")

    def rows_from(self, data: pl.DataFrame | Iterable[Sequence[Any]]) -> list[Row]:
        """Convert incoming data to row tuples ordered like the table schema."""
        if isinstance(data, pl.DataFrame):
            return list(self._normalize_frame(data).iter_rows())

        width = len(self._spec.column_specs)
        required = [self._spec.field_index(name) for name in self._spec.required_columns()]
        rows: list[Row] = []
        for idx, row in enumerate(data):
            row = tuple(row)
            if len(row) != width:
                raise SchemaMismatchError(
                    f"{self._name}: row {idx} has {len(row)} values, expected {width}"
                )
            nulls = [self._spec.column_specs[pos].name for pos in required if row[pos] is None]
            if nulls:
                raise SchemaMismatchError(
                    f"{self._name}: row {idx} has nulls in non-nullable columns {nulls}"
                )
            rows.append(row)
        return rows

    def _normalize_frame(self, df: pl.DataFrame) -> pl.DataFrame:
        expected = self._spec.to_polars()
        missing = sorted(set(expected) - set(df.columns))
        if missing:
            raise SchemaMismatchError(f"{self._name}: missing columns {missing}")
        unexpected = sorted(set(df.columns) - set(expected))
        if unexpected:
            raise SchemaMismatchError(f"{self._name}: unexpected columns {unexpected}")
        try:
            normalized = df.select([pl.col(name).cast(dtype) for name, dtype in expected.items()])
        except pl.exceptions.PolarsError as exc:
            raise SchemaMismatchError(f"{self._name}: cannot cast to table schema ({exc})") from exc
        nulls = [name for name in self._spec.required_columns() if normalized[name].null_count()]
        if nulls:
            raise SchemaMismatchError(f"{self._name}: nulls in non-nullable columns {nulls}")
        return normalized

    def new_write_builder(self, options: Mapping[str, Any] | None = None) -> FallbackWriteBuilder:
        return FallbackWriteBuilder(self, options)
