"""``partstore capabilities``: show what in-memory tables advertise to the planner."""

from __future__ import annotations

import argparse


def register(subparsers: argparse._SubParsersAction) -> None:
    parser = subparsers.add_parser("capabilities", help="List table capabilities")
    parser.add_argument(
        "--format",
        choices=["table", "csv", "json"],
        default="table",
        help="Output format (default: table)",
    )
    parser.set_defaults(handler=_handle)


def _handle(args: argparse.Namespace) -> int:
    import polars as pl

    from partstore.cli._output import write_output
    from partstore.contracts import TableCapability
    from partstore.table import PartitionedTable

    df = pl.DataFrame(
        {
            "capability": [cap.value for cap in TableCapability],
            "supported": [cap in PartitionedTable.CAPABILITIES for cap in TableCapability],
        }
    )
    write_output(df, fmt=args.format)
    return 0
