from __future__ import annotations

import polars as pl
import pytest

from partstore.contracts import SupportsWrite, TableCapability
from partstore.errors import ConfigurationError, InternalConsistencyError, SchemaMismatchError
from partstore.schemas.types import ColumnSpec, TableSpec
from partstore.table import PartitionedTable
from partstore.transforms import bucket, identity
from partstore.write import WriteMode


def _table(name: str = "t1") -> PartitionedTable:
    spec = TableSpec.from_mapping(name, {"a": pl.Int64, "b": pl.Utf8})
    return PartitionedTable(name, spec, (identity("a"),), {"provider": "test"})


def test_table_rejects_non_identity_partitioning() -> None:
    spec = TableSpec.from_mapping("t1", {"a": pl.Int64, "b": pl.Utf8})
    with pytest.raises(ConfigurationError, match="must be IdentityTransform"):
        PartitionedTable("t1", spec, (bucket(4, "a"),))


def test_table_advertises_static_capabilities() -> None:
    table = _table()
    assert table.capabilities == {
        TableCapability.BATCH_WRITE,
        TableCapability.V1_BATCH_WRITE,
        TableCapability.OVERWRITE_BY_FILTER,
        TableCapability.TRUNCATE,
    }
    assert table.capabilities is PartitionedTable.CAPABILITIES
    assert isinstance(table, SupportsWrite)


def test_table_metadata_is_read_only() -> None:
    table = _table()
    assert table.partitioning == (identity("a"),)
    assert table.partition_field_names == ("a",)
    assert table.partition_positions == (0,)
    with pytest.raises(TypeError):
        table.properties["provider"] = "other"  # type: ignore[index]


def test_append_merges_after_existing_rows() -> None:
    table = _table()
    table.merge_or_replace((1,), [(1, "x")], WriteMode.APPEND)
    table.merge_or_replace((1,), [(1, "y"), (1, "z")], WriteMode.APPEND)
    assert table.rows_for((1,)) == [(1, "x"), (1, "y"), (1, "z")]


@pytest.mark.parametrize("mode", [WriteMode.TRUNCATE, WriteMode.OVERWRITE])
def test_replace_modes_insert_absent_partitions(mode: WriteMode) -> None:
    table = _table()
    table.merge_or_replace((1,), [(1, "x")], mode)
    assert table.rows_for((1,)) == [(1, "x")]


@pytest.mark.parametrize("mode", [WriteMode.TRUNCATE, WriteMode.OVERWRITE])
def test_replace_mode_on_present_partition_fails_loudly(mode: WriteMode) -> None:
    table = _table()
    table.merge_or_replace((1,), [(1, "x")], WriteMode.APPEND)

    with pytest.raises(InternalConsistencyError, match="Partition was not removed properly"):
        table.merge_or_replace((1,), [(1, "new")], mode)
    assert table.rows_for((1,)) == [(1, "x")]


def test_remove_keys_is_idempotent() -> None:
    table = _table()
    table.merge_or_replace((1,), [(1, "x")], WriteMode.APPEND)
    table.merge_or_replace((2,), [(2, "y")], WriteMode.APPEND)

    table.remove_keys({(2,), (99,)})
    table.remove_keys({(2,)})
    assert table.partition_keys() == [(1,)]


def test_clear_empties_all_partitions() -> None:
    table = _table()
    table.merge_or_replace((1,), [(1, "x")], WriteMode.APPEND)
    table.clear()
    assert table.snapshot() == []
    assert table.row_count == 0


def test_snapshot_preserves_order_within_partition() -> None:
    table = _table()
    table.merge_or_replace((2,), [(2, "b1"), (2, "b2")], WriteMode.APPEND)
    table.merge_or_replace((1,), [(1, "a1")], WriteMode.APPEND)
    table.merge_or_replace((2,), [(2, "b3")], WriteMode.APPEND)

    rows = table.snapshot()
    assert sorted(rows) == sorted([(2, "b1"), (2, "b2"), (2, "b3"), (1, "a1")])
    assert [r for r in rows if r[0] == 2] == [(2, "b1"), (2, "b2"), (2, "b3")]


def test_to_frame_uses_table_schema() -> None:
    table = _table()
    empty = table.to_frame()
    assert empty.is_empty()
    assert dict(empty.schema) == {"a": pl.Int64, "b": pl.Utf8}

    table.merge_or_replace((1,), [(1, "x")], WriteMode.APPEND)
    df = table.to_frame()
    assert df.rows() == [(1, "x")]


def test_rows_from_frame_reorders_and_casts_columns() -> None:
    table = _table()
    df = pl.DataFrame({"b": ["x", "y"], "a": [1, 2]}, schema={"b": pl.Utf8, "a": pl.Int32})
    assert table.rows_from(df) == [(1, "x"), (2, "y")]


def test_rows_from_frame_rejects_missing_and_extra_columns() -> None:
    table = _table()
    with pytest.raises(SchemaMismatchError, match="missing columns"):
        table.rows_from(pl.DataFrame({"a": [1]}))
    with pytest.raises(SchemaMismatchError, match="unexpected columns"):
        table.rows_from(pl.DataFrame({"a": [1], "b": ["x"], "c": [0]}))


def test_rows_from_frame_rejects_uncastable_values() -> None:
    table = _table()
    with pytest.raises(SchemaMismatchError, match="cannot cast"):
        table.rows_from(pl.DataFrame({"a": ["not-a-number"], "b": ["x"]}))


def test_rows_from_tuples_checks_width() -> None:
    table = _table()
    assert table.rows_from([[1, "x"]]) == [(1, "x")]
    with pytest.raises(SchemaMismatchError, match="row 0 has 1 values"):
        table.rows_from([(1,)])


def _strict_table() -> PartitionedTable:
    spec = TableSpec(
        name="t2",
        column_specs=(
            ColumnSpec("a", pl.Int64, nullable=False),
            ColumnSpec("b", pl.Utf8),
        ),
    )
    return PartitionedTable("t2", spec, (identity("a"),))


def test_rows_from_frame_rejects_nulls_in_non_nullable_columns() -> None:
    table = _strict_table()
    assert table.rows_from(pl.DataFrame({"a": [1], "b": [None]})) == [(1, None)]
    with pytest.raises(SchemaMismatchError, match=r"non-nullable columns \['a'\]"):
        table.rows_from(pl.DataFrame({"a": [1, None], "b": ["x", "y"]}))


def test_rows_from_tuples_rejects_nulls_in_non_nullable_columns() -> None:
    table = _strict_table()
    with pytest.raises(SchemaMismatchError, match=r"row 1 has nulls in non-nullable"):
        table.rows_from([(1, "x"), (None, "y")])


def test_non_nullable_violation_writes_no_rows() -> None:
    table = _strict_table()
    table.merge_or_replace((1,), [(1, "x")], WriteMode.APPEND)
    relation = table.new_write_builder().build_for_v1_write()
    with pytest.raises(SchemaMismatchError):
        relation.insert([(2, "y"), (None, "z")], overwrite=False)
    assert table.snapshot() == [(1, "x")]
