"""Partition key extraction for identity-partitioned tables."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from partstore._error_messages import (
    non_identity_transform_error,
    unknown_partition_column_error,
)
from partstore.errors import ConfigurationError
from partstore.schemas.types import TableSpec
from partstore.transforms import IdentityTransform, Transform

PartitionKey = tuple[Any, ...]
Row = tuple[Any, ...]


def resolve_partition_positions(
    spec: TableSpec, partitioning: Sequence[Transform]
) -> tuple[tuple[str, ...], tuple[int, ...]]:
    """Validate ``partitioning`` against ``spec`` and return (field names, row positions)."""
    names: list[str] = []
    for transform in partitioning:
        if not isinstance(transform, IdentityTransform):
            raise ConfigurationError(non_identity_transform_error(transform))
        names.extend(transform.references())

    if len(names) != len(set(names)):
        raise ConfigurationError(f"{spec.name}: duplicate partition columns {names}")

    positions: list[int] = []
    for name in names:
        if not spec.has_column(name):
            raise ConfigurationError(
                unknown_partition_column_error(spec.name, name, spec.columns())
            )
        positions.append(spec.field_index(name))
    return tuple(names), tuple(positions)


def extract_partition_key(row: Sequence[Any], positions: Sequence[int]) -> PartitionKey:
    return tuple(row[pos] for pos in positions)


def group_rows_by_partition(
    rows: Iterable[Sequence[Any]], positions: Sequence[int]
) -> dict[PartitionKey, list[Row]]:
    """Group rows by partition key, keeping first-seen key order and row order."""
    groups: dict[PartitionKey, list[Row]] = {}
    for row in rows:
        groups.setdefault(extract_partition_key(row, positions), []).append(tuple(row))
    return groups


__all__ = [
    "PartitionKey",
    "Row",
    "extract_partition_key",
    "group_rows_by_partition",
    "resolve_partition_positions",
]
