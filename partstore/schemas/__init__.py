"""Public exports for table schema primitives."""

from partstore.schemas.types import ColumnSpec, TableSpec, dtype_from_name

__all__ = [
    "ColumnSpec",
    "TableSpec",
    "dtype_from_name",
]
