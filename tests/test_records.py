"""Tests for the grouping engine and the record assembler."""

from __future__ import annotations

import pytest

from ddhouse.domain.models import MetricRecord
from ddhouse.domain.records import (
    NARROW_COLUMNS,
    GroupAccumulator,
    RecordAssembler,
    explode_tags,
    group_of,
)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("system.load.norm.1", ("system.load", "norm.1")),
        ("system.cpu.idle", ("system.cpu", "idle")),
        ("system.uptime", ("system", "uptime")),
        ("uptime", ("uptime", "value")),
    ],
)
def test_group_of(name, expected):
    assert group_of(name) == expected


def test_explode_tags_splits_on_first_colon_only():
    tags = explode_tags(["env:prod", "url:http://x", "bare"])
    assert tags == {"env": "prod", "url": "http://x", "bare": ""}


def test_hostname_tag_overrides_host_slot():
    assembler = RecordAssembler("m")
    row = assembler.add_row({"time": 1, "hostname": "a"}, {"hostname": "b"})
    assert row["hostname"] == "b"
    record = assembler.build()
    assert record.columns == ["time", "hostname"]


def test_empty_hostname_tag_keeps_host_and_is_renamed():
    assembler = RecordAssembler("m")
    row = assembler.add_row({"time": 1, "hostname": "a"}, {"hostname": ""})
    assert row["hostname"] == "a"
    assert row["_hostname"] == ""
    record = assembler.build()
    assert record.columns == ["time", "hostname", "_hostname"]
    assert record.points == [[1, "a", ""]]


def test_generic_hostname_tag_is_preserved_as_renamed_column():
    groups = GroupAccumulator()
    groups.add("system.cpu.idle", 1.0, tags={"hostname": ""})
    groups.add("system.cpu.user", 2.0, tags={"hostname": None})
    row = groups.records("web-1", 5)[0].as_dicts()[0]
    assert row["hostname"] == "web-1"
    assert "_hostname" in row
    assert row["_hostname"] is None


def test_reserved_time_tag_is_prefixed():
    assembler = RecordAssembler("m")
    assembler.add_row({"time": 1, "hostname": "a"}, {"time": "t"})
    record = assembler.build()
    assert record.columns == ["time", "hostname", "_time"]
    assert record.points == [[1, "a", "t"]]


def test_tag_colliding_with_field_is_prefixed_until_unique():
    assembler = RecordAssembler("m")
    assembler.add_row(
        {"time": 1, "hostname": "a", "idle": 5, "_idle": 6}, {"idle": "tag"}
    )
    record = assembler.build()
    assert record.columns[-1] == "__idle"
    assert record.as_dicts()[0]["__idle"] == "tag"


def test_rows_with_different_tags_are_padded():
    assembler = RecordAssembler("m", NARROW_COLUMNS)
    assembler.add_row({"time": 1, "value": 1, "hostname": "h"}, {"a": "1"})
    assembler.add_row({"time": 2, "value": 2, "hostname": "h"}, {"b": "2"})
    record = assembler.build()
    assert record.columns == ["time", "value", "hostname", "a", "b"]
    assert record.points == [[1, 1, "h", "1", None], [2, 2, "h", None, "2"]]


def test_group_accumulator_packs_one_wide_row_per_group():
    groups = GroupAccumulator()
    groups.add("system.cpu.idle", 93.5)
    groups.add("system.cpu.user", 4.0)
    groups.add("system.load.norm.1", 0.1)
    records = groups.records("web-1", 1000)
    assert [r.name for r in records] == ["system.cpu", "system.load"]
    cpu = records[0]
    assert cpu.columns == ["time", "hostname", "idle", "user"]
    assert cpu.points == [[1000, "web-1", 93.5, 4.0]]
    assert records[1].as_dicts()[0]["norm.1"] == 0.1


def test_group_accumulator_renames_field_named_like_leading_column():
    groups = GroupAccumulator()
    groups.add("system.hostname", "x")
    record = groups.records("web-1", 1)[0]
    assert record.name == "system"
    assert record.as_dicts()[0] == {"time": 1, "hostname": "web-1", "_hostname": "x"}


def test_metric_record_rejects_ragged_rows():
    with pytest.raises(ValueError):
        MetricRecord(name="m", columns=["time", "hostname"], points=[[1]])


def test_metric_record_rejects_duplicate_columns():
    with pytest.raises(ValueError):
        MetricRecord(name="m", columns=["time", "time"], points=[])
