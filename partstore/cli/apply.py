"""``partstore apply``: replay CSV writes through an in-memory table."""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path

import polars as pl

from partstore.filters import EqualNullSafe, EqualTo, Filter
from partstore.schemas.types import TableSpec


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser(
        "apply",
        help="Load BASE by append, apply DATA with a save mode, print the result",
    )
    parser.add_argument("base", help="CSV file that seeds the table (schema is inferred)")
    parser.add_argument("data", nargs="?", help="CSV file written with --mode")
    parser.add_argument("--table", default="t1", help="Table name (default: t1)")
    parser.add_argument(
        "--partition-by",
        action="append",
        default=[],
        help="Identity partition column; repeat or comma-separate",
    )
    parser.add_argument(
        "--mode",
        choices=["append", "overwrite"],
        default="append",
        help="Save mode for DATA (default: append)",
    )
    parser.add_argument(
        "--where",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Partition equality filter for --mode overwrite (repeatable)",
    )
    parser.add_argument(
        "--format",
        choices=["table", "csv", "json"],
        default="table",
        help="Output format (default: table)",
    )
    parser.set_defaults(handler=_handle)


def parse_where(items: Sequence[str], spec: TableSpec) -> list[Filter]:
    """Parse ``KEY=VALUE`` items into equality filters typed by the table schema."""
    filters: list[Filter] = []
    for item in items:
        if "=" not in item:
            raise ValueError(f"Invalid filter: {item}")
        key, value = item.split("=", 1)
        key = key.strip()
        value = value.strip().strip("\"'")
        if not spec.has_column(key):
            raise ValueError(f"Unknown filter column '{key}'. Columns: {list(spec.columns())}")
        if value.lower() == "null":
            # SQL equality never matches null, so pin null partitions null-safely.
            filters.append(EqualNullSafe(key, None))
            continue
        dtype = spec.get_column(key).dtype
        try:
            literal = pl.Series([value]).cast(dtype).item()
        except pl.exceptions.PolarsError as exc:
            raise ValueError(f"Invalid value for {key} ({dtype}): {value}") from exc
        filters.append(EqualTo(key, literal))
    return filters


def _read_csv(path: str) -> pl.DataFrame:
    csv_path = Path(path).expanduser()
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV file not found: {csv_path}")
    return pl.read_csv(csv_path)


def _handle(args: argparse.Namespace) -> int:
    from partstore.catalog import FallbackTableCatalog
    from partstore.cli._output import write_output
    from partstore.errors import PartstoreError
    from partstore.planner import write_dataframe
    from partstore.registry import TableRegistry
    from partstore.transforms import identity

    partition_by = [
        col.strip() for item in args.partition_by for col in item.split(",") if col.strip()
    ]

    try:
        base = _read_csv(args.base)
        data = _read_csv(args.data) if args.data else None
    except FileNotFoundError as exc:
        print(f"Error: {exc}")
        return 1

    catalog = FallbackTableCatalog.from_settings(TableRegistry(), args.settings)
    spec = TableSpec.from_mapping(args.table, dict(base.schema))
    try:
        table = catalog.create_table(
            args.table, spec, tuple(identity(col) for col in partition_by)
        )
        filters = parse_where(args.where, table.spec)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 1

    try:
        write_dataframe(table, base, mode="append")
        if data is not None:
            write_dataframe(table, data, mode=args.mode, filters=filters)
    except PartstoreError as exc:
        print(f"Error: {exc}")
        return 2
    except ValueError as exc:
        print(f"Error: {exc}")
        return 1

    result = table.to_frame()
    if partition_by:
        result = result.sort(partition_by, maintain_order=True)
    write_output(result, fmt=args.format)
    return 0
