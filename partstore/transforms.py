"""Partition transform values.

A table's partitioning is a tuple of transforms over its columns. Only
``IdentityTransform`` is accepted by in-memory tables; the other kinds exist so
callers can describe a partitioning that a table then rejects.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class Transform(ABC):
    """Base class for partition transforms."""

    name = "transform"

    @abstractmethod
    def references(self) -> tuple[str, ...]:
        """Source columns the transform reads."""

    def __str__(self) -> str:
        return f"{self.name}({', '.join(self.references())})"


@dataclass(frozen=True)
class IdentityTransform(Transform):
    column: str

    name = "identity"

    def references(self) -> tuple[str, ...]:
        return (self.column,)


@dataclass(frozen=True)
class BucketTransform(Transform):
    num_buckets: int
    columns: tuple[str, ...]

    name = "bucket"

    def references(self) -> tuple[str, ...]:
        return self.columns

    def __str__(self) -> str:
        return f"bucket({self.num_buckets}, {', '.join(self.columns)})"


@dataclass(frozen=True)
class YearsTransform(Transform):
    column: str

    name = "years"

    def references(self) -> tuple[str, ...]:
        return (self.column,)


@dataclass(frozen=True)
class MonthsTransform(Transform):
    column: str

    name = "months"

    def references(self) -> tuple[str, ...]:
        return (self.column,)


@dataclass(frozen=True)
class DaysTransform(Transform):
    column: str

    name = "days"

    def references(self) -> tuple[str, ...]:
        return (self.column,)


@dataclass(frozen=True)
class HoursTransform(Transform):
    column: str

    name = "hours"

    def references(self) -> tuple[str, ...]:
        return (self.column,)


def identity(column: str) -> IdentityTransform:
    return IdentityTransform(column)


def bucket(num_buckets: int, *columns: str) -> BucketTransform:
    return BucketTransform(num_buckets, tuple(columns))


def years(column: str) -> YearsTransform:
    return YearsTransform(column)


def months(column: str) -> MonthsTransform:
    return MonthsTransform(column)


def days(column: str) -> DaysTransform:
    return DaysTransform(column)


def hours(column: str) -> HoursTransform:
    return HoursTransform(column)


__all__ = [
    "BucketTransform",
    "DaysTransform",
    "HoursTransform",
    "IdentityTransform",
    "MonthsTransform",
    "Transform",
    "YearsTransform",
    "bucket",
    "days",
    "hours",
    "identity",
    "months",
    "years",
]
