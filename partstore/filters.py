"""Filter values and the overwrite-by-filter key matcher."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from partstore._error_messages import unsupported_filter_error
from partstore.errors import UnsupportedFilterError
from partstore.partitioning import PartitionKey


@dataclass(frozen=True)
class Filter:
    """Base class for data source filters."""


@dataclass(frozen=True)
class EqualTo(Filter):
    attribute: str
    value: Any


@dataclass(frozen=True)
class EqualNullSafe(Filter):
    attribute: str
    value: Any


@dataclass(frozen=True)
class In(Filter):
    attribute: str
    values: tuple[Any, ...]


@dataclass(frozen=True)
class GreaterThan(Filter):
    attribute: str
    value: Any


@dataclass(frozen=True)
class GreaterThanOrEqual(Filter):
    attribute: str
    value: Any


@dataclass(frozen=True)
class LessThan(Filter):
    attribute: str
    value: Any


@dataclass(frozen=True)
class LessThanOrEqual(Filter):
    attribute: str
    value: Any


@dataclass(frozen=True)
class IsNull(Filter):
    attribute: str


@dataclass(frozen=True)
class IsNotNull(Filter):
    attribute: str


@dataclass(frozen=True)
class And(Filter):
    left: Filter
    right: Filter


@dataclass(frozen=True)
class Or(Filter):
    left: Filter
    right: Filter


@dataclass(frozen=True)
class Not(Filter):
    child: Filter


@dataclass(frozen=True)
class AlwaysTrue(Filter):
    pass


@dataclass(frozen=True)
class AlwaysFalse(Filter):
    pass


def split_conjunctions(filters: Iterable[Filter]) -> list[Filter]:
    """Flatten nested ``And`` filters into a flat list of conjuncts."""
    out: list[Filter] = []
    stack = list(reversed(list(filters)))
    while stack:
        item = stack.pop()
        if isinstance(item, And):
            stack.append(item.right)
            stack.append(item.left)
        else:
            out.append(item)
    return out


def filters_to_keys(
    existing_keys: Iterable[PartitionKey],
    partition_field_names: Sequence[str],
    filters: Iterable[Filter],
) -> set[PartitionKey]:
    """Return the existing partition keys fully selected by ``filters``.

    Every conjunct must be an equality (``EqualTo``/``EqualNullSafe``) on a
    partition field and every partition field must be pinned; anything else
    raises ``UnsupportedFilterError`` before a key set is produced, so callers
    can mutate only after this returns.
    """
    filters = list(filters)
    positions = {name: idx for idx, name in enumerate(partition_field_names)}
    # Per partition position, the literals it must equal and whether null matches.
    constraints: dict[int, list[tuple[Any, bool]]] = {}
    always_false = False

    for conjunct in split_conjunctions(filters):
        if isinstance(conjunct, AlwaysTrue):
            continue
        if isinstance(conjunct, AlwaysFalse):
            always_false = True
            continue
        if not isinstance(conjunct, (EqualTo, EqualNullSafe)):
            raise UnsupportedFilterError(
                unsupported_filter_error(conjunct, "only partition equality is supported")
            )
        if conjunct.attribute not in positions:
            raise UnsupportedFilterError(
                unsupported_filter_error(
                    conjunct, f"'{conjunct.attribute}' is not a partition column"
                )
            )
        null_safe = isinstance(conjunct, EqualNullSafe)
        constraints.setdefault(positions[conjunct.attribute], []).append(
            (conjunct.value, null_safe)
        )

    if always_false:
        return set()

    missing = [name for name, idx in positions.items() if idx not in constraints]
    if missing:
        raise UnsupportedFilterError(
            unsupported_filter_error(
                filters, f"partition columns {missing} are not constrained"
            )
        )

    return {
        key
        for key in existing_keys
        if all(
            _value_matches(key[idx], literal, null_safe)
            for idx, literals in constraints.items()
            for literal, null_safe in literals
        )
    }


def _value_matches(actual: Any, literal: Any, null_safe: bool) -> bool:
    if literal is None or actual is None:
        # SQL equality never matches null; null-safe equality matches null to null.
        return null_safe and literal is None and actual is None
    return actual == literal


__all__ = [
    "AlwaysFalse",
    "AlwaysTrue",
    "And",
    "EqualNullSafe",
    "EqualTo",
    "Filter",
    "GreaterThan",
    "GreaterThanOrEqual",
    "In",
    "IsNotNull",
    "IsNull",
    "LessThan",
    "LessThanOrEqual",
    "Not",
    "Or",
    "filters_to_keys",
    "split_conjunctions",
]
