"""Schema primitives for in-memory tables."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import polars as pl


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    dtype: pl.DataType
    nullable: bool = True
    description: str = ""


@dataclass(frozen=True)
class TableSpec:
    name: str
    column_specs: tuple[ColumnSpec, ...]

    def __post_init__(self) -> None:
        column_names = self.columns()
        if not column_names:
            raise ValueError(f"Table spec '{self.name}' has no columns")
        if len(column_names) != len(set(column_names)):
            raise ValueError(f"Duplicate column in spec '{self.name}'")

    @classmethod
    def from_mapping(cls, name: str, columns: Mapping[str, pl.DataType | str]) -> TableSpec:
        """Build a spec from ``{column: dtype}``; dtypes may be Polars names like ``"Int64"``."""
        return cls(
            name=name,
            column_specs=tuple(
                ColumnSpec(col, dtype_from_name(dtype) if isinstance(dtype, str) else dtype)
                for col, dtype in columns.items()
            ),
        )

    def columns(self) -> tuple[str, ...]:
        return tuple(col.name for col in self.column_specs)

    def required_columns(self) -> tuple[str, ...]:
        return tuple(col.name for col in self.column_specs if not col.nullable)

    def to_polars(self) -> dict[str, pl.DataType]:
        return {col.name: col.dtype for col in self.column_specs}

    def has_column(self, name: str) -> bool:
        return name in self.columns()

    def get_column(self, name: str) -> ColumnSpec:
        for column in self.column_specs:
            if column.name == name:
                return column
        raise KeyError(f"Column '{name}' not found in table '{self.name}'")

    def field_index(self, name: str) -> int:
        """Position of ``name`` in row tuples."""
        try:
            return self.columns().index(name)
        except ValueError as exc:
            raise KeyError(f"Column '{name}' not found in table '{self.name}'") from exc

    def renamed(self, name: str) -> TableSpec:
        return TableSpec(name=name, column_specs=self.column_specs)


def dtype_from_name(name: str) -> pl.DataType:
    """Resolve a Polars dtype by its class name (``Int64``, ``Utf8``, ``Date``...)."""
    dtype = getattr(pl, name, None)
    if dtype is None or not (isinstance(dtype, type) and issubclass(dtype, pl.DataType)):
        raise ValueError(f"Unknown Polars dtype name {name!r}")
    return dtype
