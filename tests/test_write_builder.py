from __future__ import annotations

import logging

import polars as pl
import pytest

from partstore.contracts import (
    InsertableRelation,
    SupportsOverwrite,
    SupportsTruncate,
    V1WriteBuilder,
)
from partstore.errors import (
    ContractViolationError,
    InternalConsistencyError,
    UnsupportedFilterError,
)
from partstore.filters import EqualTo, GreaterThan
from partstore.schemas.types import TableSpec
from partstore.table import PartitionedTable
from partstore.transforms import identity
from partstore.write import FallbackWriteBuilder, SessionState, WriteMode


def _table() -> PartitionedTable:
    spec = TableSpec.from_mapping("t1", {"a": pl.Int64, "b": pl.Utf8})
    return PartitionedTable("t1", spec, (identity("a"),))


def _df(*rows: tuple[int, str]) -> pl.DataFrame:
    if not rows:
        return pl.DataFrame(schema={"a": pl.Int64, "b": pl.Utf8})
    return pl.DataFrame(list(rows), schema={"a": pl.Int64, "b": pl.Utf8}, orient="row")


def _append(table: PartitionedTable, *rows: tuple[int, str]) -> None:
    table.new_write_builder().build_for_v1_write().insert(_df(*rows), overwrite=False)


def test_builder_implements_write_contracts() -> None:
    builder = _table().new_write_builder({"name": "t1"})
    assert isinstance(builder, SupportsTruncate)
    assert isinstance(builder, SupportsOverwrite)
    assert isinstance(builder, V1WriteBuilder)
    assert isinstance(builder.build_for_v1_write(), InsertableRelation)
    assert builder.options["name"] == "t1"


def test_builder_starts_pending_in_append_mode() -> None:
    builder = _table().new_write_builder()
    assert builder.mode is WriteMode.APPEND
    assert builder.state is SessionState.PENDING


def test_append_accumulates() -> None:
    table = _table()
    _append(table, (1, "x"), (2, "y"))
    _append(table, (1, "z"), (3, "w"))

    assert table.rows_for((1,)) == [(1, "x"), (1, "z")]
    assert sorted(table.snapshot()) == [(1, "x"), (1, "z"), (2, "y"), (3, "w")]


def test_truncate_clears_at_call_time_and_returns_builder() -> None:
    table = _table()
    _append(table, (1, "x"), (2, "y"))

    builder = table.new_write_builder()
    assert builder.truncate() is builder
    assert table.snapshot() == []
    assert builder.mode is WriteMode.TRUNCATE


def test_truncate_then_write_replaces_fully() -> None:
    table = _table()
    _append(table, (1, "x"), (2, "y"), (3, "z"))

    table.new_write_builder().truncate().build_for_v1_write().insert(
        _df((2, "new"), (4, "k")), overwrite=False
    )
    assert sorted(table.snapshot()) == [(2, "new"), (4, "k")]


def test_overwrite_by_filter_is_partition_precise() -> None:
    table = _table()
    _append(table, (1, "x1"), (2, "y1"), (2, "y2"), (3, "z1"))

    builder = table.new_write_builder()
    assert builder.overwrite([EqualTo("a", 2)]) is builder
    assert builder.mode is WriteMode.OVERWRITE
    assert builder.removed_keys == {(2,)}
    assert table.partition_keys() == [(1,), (3,)]

    builder.build_for_v1_write().insert(_df((2, "new")), overwrite=False)
    assert table.rows_for((1,)) == [(1, "x1")]
    assert table.rows_for((3,)) == [(3, "z1")]
    assert table.rows_for((2,)) == [(2, "new")]


def test_empty_overwrite_leaves_prior_partitions_untouched() -> None:
    table = _table()
    _append(table, (1, "x"), (2, "y"))

    builder = table.new_write_builder().overwrite([EqualTo("a", 42)])
    assert builder.removed_keys == frozenset()
    builder.build_for_v1_write().insert(_df((42, "new")), overwrite=False)

    assert sorted(table.snapshot()) == [(1, "x"), (2, "y"), (42, "new")]


def test_overwrite_inserting_unremoved_partition_raises() -> None:
    table = _table()
    _append(table, (1, "x"), (2, "y"))

    builder = table.new_write_builder().overwrite([EqualTo("a", 2)])
    with pytest.raises(InternalConsistencyError, match="Partition was not removed properly"):
        builder.insert(_df((1, "oops")))
    assert table.rows_for((1,)) == [(1, "x")]


def test_failed_overwrite_insert_applies_no_partitions() -> None:
    table = _table()
    _append(table, (1, "x"), (2, "y"))

    builder = table.new_write_builder().overwrite([EqualTo("a", 2)])
    with pytest.raises(InternalConsistencyError, match=r"key=\(1,\)"):
        builder.insert(_df((5, "new"), (1, "oops")))

    assert table.snapshot() == [(1, "x")]
    assert table.partition_keys() == [(1,)]
    assert builder.state is SessionState.FINALIZED


def test_failed_truncate_insert_applies_no_partitions() -> None:
    table = _table()
    builder = table.new_write_builder().truncate()
    # A concurrent writer slipped a partition in after the truncate.
    _append(table, (3, "late"))

    with pytest.raises(InternalConsistencyError):
        builder.insert([(4, "new"), (3, "oops")])

    assert table.snapshot() == [(3, "late")]


def test_unsupported_filter_leaves_partition_map_unchanged() -> None:
    table = _table()
    _append(table, (1, "x"), (2, "y"))
    before = table.snapshot()

    builder = table.new_write_builder()
    with pytest.raises(UnsupportedFilterError):
        builder.overwrite([GreaterThan("a", 1)])
    with pytest.raises(UnsupportedFilterError):
        builder.overwrite([EqualTo("a", 1), EqualTo("b", "x")])

    assert table.snapshot() == before
    assert builder.mode is WriteMode.APPEND


def test_insert_with_overwrite_flag_is_contract_violation() -> None:
    table = _table()
    relation = table.new_write_builder().build_for_v1_write()
    with pytest.raises(ContractViolationError, match="overwrite=true"):
        relation.insert(_df((1, "x")), overwrite=True)
    assert table.snapshot() == []


def test_second_mode_call_is_rejected() -> None:
    table = _table()
    builder = table.new_write_builder().truncate()
    with pytest.raises(ContractViolationError, match="already set to 'truncate'"):
        builder.overwrite([EqualTo("a", 1)])
    with pytest.raises(ContractViolationError):
        builder.truncate()


def test_builder_is_single_use() -> None:
    table = _table()
    builder = table.new_write_builder()
    builder.insert(_df((1, "x")))
    assert builder.state is SessionState.FINALIZED

    with pytest.raises(ContractViolationError, match="finalized"):
        builder.insert(_df((1, "y")))
    with pytest.raises(ContractViolationError, match="finalized"):
        builder.truncate()
    with pytest.raises(ContractViolationError, match="finalized"):
        builder.build_for_v1_write()
    assert table.snapshot() == [(1, "x")]


def test_insert_accepts_row_tuples() -> None:
    table = _table()
    FallbackWriteBuilder(table).insert([(1, "x"), (1, "y")])
    assert table.rows_for((1,)) == [(1, "x"), (1, "y")]


def test_empty_insert_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    table = _table()
    with caplog.at_level(logging.WARNING, logger="partstore.write"):
        table.new_write_builder().insert(_df())
    assert "no rows" in caplog.text
    assert table.snapshot() == []
