"""Plan DataFrame writes onto table write builders.

Save modes map onto builder calls using only the table's advertised
capabilities:

- ``append``: no mode call, rows are merged into existing partitions.
- ``overwrite`` with filters: ``overwrite(filters)``, needs ``OVERWRITE_BY_FILTER``.
- ``overwrite`` without filters: ``truncate()``, needs ``TRUNCATE``.

Data is always submitted through the legacy ``insert(df, overwrite=False)`` path.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

import polars as pl

from partstore.contracts import (
    SupportsOverwrite,
    SupportsTruncate,
    SupportsWrite,
    TableCapability,
    TableProvider,
    V1WriteBuilder,
)
from partstore.errors import ContractViolationError
from partstore.filters import Filter

logger = logging.getLogger(__name__)

SAVE_MODES: tuple[str, ...] = ("append", "overwrite")


def _require(table: SupportsWrite, capability: TableCapability, purpose: str) -> None:
    if capability not in table.capabilities:
        raise ContractViolationError(
            f"Table '{table.name}' does not support {purpose} "
            f"(missing capability {capability.value})"
        )


def write_dataframe(
    table: SupportsWrite,
    df: pl.DataFrame,
    *,
    mode: str = "append",
    filters: Sequence[Filter] | None = None,
    options: Mapping[str, Any] | None = None,
) -> None:
    """Write ``df`` to ``table`` with save-mode semantics."""
    mode = mode.lower()
    if mode not in SAVE_MODES:
        raise ValueError(f"Unsupported save mode {mode!r}. Expected one of {SAVE_MODES}")
    if filters and mode != "overwrite":
        raise ValueError("filters are only valid with mode='overwrite'")

    _require(table, TableCapability.BATCH_WRITE, "batch writes")
    builder = table.new_write_builder(options)

    if mode == "overwrite" and filters:
        _require(table, TableCapability.OVERWRITE_BY_FILTER, "overwrite by filter")
        if not isinstance(builder, SupportsOverwrite):
            raise ContractViolationError(f"Write builder for '{table.name}' cannot overwrite")
        builder = builder.overwrite(list(filters))
    elif mode == "overwrite":
        _require(table, TableCapability.TRUNCATE, "truncate")
        if not isinstance(builder, SupportsTruncate):
            raise ContractViolationError(f"Write builder for '{table.name}' cannot truncate")
        builder = builder.truncate()

    _require(table, TableCapability.V1_BATCH_WRITE, "legacy batch writes")
    if not isinstance(builder, V1WriteBuilder):
        raise ContractViolationError(f"Write builder for '{table.name}' has no legacy write path")

    logger.debug("Writing %d rows to %s (mode=%s)", df.height, table.name, mode)
    builder.build_for_v1_write().insert(df, overwrite=False)


def save(
    provider: TableProvider,
    df: pl.DataFrame,
    *,
    mode: str = "append",
    filters: Sequence[Filter] | None = None,
    options: Mapping[str, str],
) -> None:
    """Resolve the table from ``options`` via ``provider`` and write ``df`` to it."""
    table = provider.get_table(options)
    if not isinstance(table, SupportsWrite):
        raise ContractViolationError(f"Table '{table.name}' does not support writes")
    write_dataframe(table, df, mode=mode, filters=filters, options=options)


__all__ = ["SAVE_MODES", "save", "write_dataframe"]
