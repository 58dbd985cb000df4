"""Write builders that layer truncate/overwrite on top of legacy inserts."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

import polars as pl

from partstore.errors import ContractViolationError
from partstore.filters import Filter, filters_to_keys
from partstore.partitioning import group_rows_by_partition

if TYPE_CHECKING:
    from partstore.table import PartitionedTable

logger = logging.getLogger(__name__)


class WriteMode(str, Enum):
    APPEND = "append"
    TRUNCATE = "truncate"
    OVERWRITE = "overwrite"


class SessionState(str, Enum):
    PENDING = "pending"
    FINALIZED = "finalized"


class FallbackWriteBuilder:
    """One write against a ``PartitionedTable``.

    At most one of ``truncate()``/``overwrite()`` may be called, and only before
    rows are inserted. Both evict partitions immediately, so the insert that
    follows only ever adds partitions (or appends to them in append mode).
    The builder is single use: once rows are inserted it is finalized and any
    further call raises ``ContractViolationError``.
    """

    def __init__(
        self, table: PartitionedTable, options: Mapping[str, Any] | None = None
    ) -> None:
        self.table = table
        self.options = MappingProxyType(dict(options or {}))
        self.mode = WriteMode.APPEND
        self.state = SessionState.PENDING
        self.removed_keys: frozenset[tuple] = frozenset()

    def _require_pending(self, action: str) -> None:
        if self.state is SessionState.FINALIZED:
            raise ContractViolationError(
                f"{self.table.name}: cannot {action} after the write was finalized"
            )

    def _require_mode_unset(self, action: str) -> None:
        self._require_pending(action)
        if self.mode is not WriteMode.APPEND:
            raise ContractViolationError(
                f"{self.table.name}: cannot {action}, write mode already set to "
                f"'{self.mode.value}'"
            )

    def truncate(self) -> FallbackWriteBuilder:
        self._require_mode_unset("truncate")
        self.table.clear()
        self.mode = WriteMode.TRUNCATE
        logger.info("%s: truncated", self.table.name)
        return self

    def overwrite(self, filters: Iterable[Filter]) -> FallbackWriteBuilder:
        self._require_mode_unset("overwrite")
        filters = list(filters)
        with self.table.lock:
            # Fully computed before anything is removed.
            keys = filters_to_keys(
                self.table.partition_keys(), self.table.partition_field_names, filters
            )
            self.table.remove_keys(keys)
        self.removed_keys = frozenset(keys)
        self.mode = WriteMode.OVERWRITE
        logger.info(
            "%s: overwrite removed %d partition(s) for filters %s",
            self.table.name,
            len(keys),
            filters,
        )
        return self

    def build_for_v1_write(self) -> FallbackInsertableRelation:
        self._require_pending("build a legacy write")
        return FallbackInsertableRelation(self)

    def insert(
        self, data: pl.DataFrame | Iterable[Sequence[Any]], overwrite: bool = False
    ) -> None:
        """Partition ``data`` and apply it under the accumulated mode."""
        if overwrite:
            raise ContractViolationError(
                "V1 write fallbacks cannot be called with overwrite=true; "
                "use truncate() or overwrite(filters) on the write builder"
            )
        self._require_pending("insert")

        rows = self.table.rows_from(data)
        groups = group_rows_by_partition(rows, self.table.partition_positions)
        if not rows:
            logger.warning("%s: insert called with no rows", self.table.name)

        try:
            with self.table.lock:
                # All or nothing: no group is applied if any key is still present.
                self.table.check_replaceable(groups, self.mode)
                for key, group in groups.items():
                    self.table.merge_or_replace(key, group, self.mode)
        finally:
            self.state = SessionState.FINALIZED
        logger.info(
            "%s: %s write inserted %d rows into %d partition(s)",
            self.table.name,
            self.mode.value,
            len(rows),
            len(groups),
        )


class FallbackInsertableRelation:
    """Legacy insertion target bound to one write builder."""

    def __init__(self, builder: FallbackWriteBuilder) -> None:
        self.builder = builder

    def insert(self, data: pl.DataFrame | Iterable[Sequence[Any]], overwrite: bool) -> None:
        self.builder.insert(data, overwrite=overwrite)


__all__ = [
    "FallbackInsertableRelation",
    "FallbackWriteBuilder",
    "SessionState",
    "WriteMode",
]
