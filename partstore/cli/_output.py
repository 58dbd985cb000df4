"""Output formatting helpers for CLI commands."""

from __future__ import annotations

import json
import sys

import polars as pl


def write_output(df: pl.DataFrame, *, fmt: str = "table") -> None:
    """Write a Polars DataFrame to stdout as table, csv or json."""
    if fmt == "table":
        with pl.Config(tbl_rows=-1):
            print(df)
    elif fmt == "csv":
        sys.stdout.write(df.write_csv())
    elif fmt == "json":
        # row-oriented JSON
        sys.stdout.write(json.dumps(df.to_dicts(), default=str, indent=2))
        sys.stdout.write("\n")
    else:
        raise SystemExit(f"error: unknown format '{fmt}'")
