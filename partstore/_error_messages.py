"""Error message templates for partstore.

Messages include:
- Clear problem description
- Suggested fixes
- Fuzzy matching for common typos ("Did you mean...?")
"""

from __future__ import annotations

from collections.abc import Sequence
from difflib import get_close_matches


def table_not_found_error(table_name: str, available_tables: Sequence[str]) -> str:
    """Error message when a table name is not registered.

    Args:
        table_name: The table name that was not found
        available_tables: Names currently registered

    Returns:
        Formatted error message with suggestions
    """
    suggestions = get_close_matches(table_name, list(available_tables), n=3, cutoff=0.6)

    msg = f"Table '{table_name}' doesn't exist.\n"

    if suggestions:
        msg += "\nDid you mean one of these?\n"
        for suggestion in suggestions:
            msg += f"  - {suggestion}\n"

    if available_tables:
        msg += "\nRegistered tables:\n"
        for table in sorted(available_tables)[:10]:
            msg += f"  - {table}\n"
        if len(available_tables) > 10:
            msg += f"  ... and {len(available_tables) - 10} more\n"
    else:
        msg += "\nNo tables are registered yet.\n"

    return msg


def non_identity_transform_error(transform: object) -> str:
    """Error message when a partitioning uses anything other than identity transforms."""
    return (
        f"Transform {transform} must be IdentityTransform.\n"
        "\n"
        "In-memory tables only partition on raw column values, e.g.:\n"
        "  partitioning=(identity('a'),)"
    )


def unknown_partition_column_error(
    table_name: str, column: str, available_columns: Sequence[str]
) -> str:
    """Error message when a partition transform references a missing column."""
    suggestions = get_close_matches(column, list(available_columns), n=1, cutoff=0.6)
    msg = f"{table_name}: partition column '{column}' is not in the schema"
    if suggestions:
        msg += f" (did you mean '{suggestions[0]}'?)"
    return msg + f". Columns: {list(available_columns)}"


def partition_not_removed_error(key: tuple, mode: str) -> str:
    """Error message when a replace-mode insert finds a partition still present."""
    return (
        f"Partition was not removed properly: key={key!r} is still present "
        f"during a '{mode}' write.\n"
        "\n"
        "Overwrite and truncate must evict every partition they replace before "
        "rows are inserted."
    )


def unsupported_filter_error(filter_: object, reason: str) -> str:
    """Error message when an overwrite filter cannot select whole partitions."""
    return (
        f"Unsupported filter type: {filter_} ({reason}).\n"
        "\n"
        "Overwrite-by-filter only accepts equality filters that pin every "
        "partition column, e.g.:\n"
        "  builder.overwrite([EqualTo('a', 2)])"
    )


__all__ = [
    "non_identity_transform_error",
    "partition_not_removed_error",
    "table_not_found_error",
    "unknown_partition_column_error",
    "unsupported_filter_error",
]
