"""Contracts between tables and the write planner."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import polars as pl

if TYPE_CHECKING:
    from partstore.filters import Filter
    from partstore.schemas.types import TableSpec
    from partstore.transforms import Transform


class TableCapability(str, Enum):
    BATCH_READ = "batch_read"
    BATCH_WRITE = "batch_write"
    V1_BATCH_WRITE = "v1_batch_write"
    TRUNCATE = "truncate"
    OVERWRITE_BY_FILTER = "overwrite_by_filter"
    OVERWRITE_DYNAMIC = "overwrite_dynamic"


@runtime_checkable
class InsertableRelation(Protocol):
    """Legacy single-shot insertion target."""

    def insert(self, data: pl.DataFrame | Iterable[tuple], overwrite: bool) -> None:
        """Insert all rows of ``data``; ``overwrite`` re-asserts replace intent."""


@runtime_checkable
class WriteBuilder(Protocol):
    """Accumulates the configuration of one write."""


@runtime_checkable
class SupportsTruncate(WriteBuilder, Protocol):
    def truncate(self) -> WriteBuilder:
        """Replace all existing data with the data being written."""


@runtime_checkable
class SupportsOverwrite(WriteBuilder, Protocol):
    def overwrite(self, filters: Iterable[Filter]) -> WriteBuilder:
        """Replace data matching ``filters`` with the data being written."""


@runtime_checkable
class V1WriteBuilder(WriteBuilder, Protocol):
    def build_for_v1_write(self) -> InsertableRelation:
        """Return the legacy insertion target for this write."""


@runtime_checkable
class Table(Protocol):
    @property
    def name(self) -> str:
        """Table identifier."""

    @property
    def spec(self) -> TableSpec:
        """Row schema."""

    @property
    def partitioning(self) -> tuple[Transform, ...]:
        """Partition transforms."""

    @property
    def properties(self) -> Mapping[str, str]:
        """Free-form table properties."""

    @property
    def capabilities(self) -> frozenset[TableCapability]:
        """Capabilities advertised to the write planner."""


@runtime_checkable
class SupportsWrite(Table, Protocol):
    def new_write_builder(self, options: Mapping[str, Any] | None = None) -> WriteBuilder:
        """Start a write against this table."""


@runtime_checkable
class TableProvider(Protocol):
    def get_table(self, options: Mapping[str, str]) -> Table:
        """Resolve (or create) the table described by ``options``."""


__all__ = [
    "InsertableRelation",
    "SupportsOverwrite",
    "SupportsTruncate",
    "SupportsWrite",
    "Table",
    "TableCapability",
    "TableProvider",
    "V1WriteBuilder",
    "WriteBuilder",
]
