"""Tests for the disk/inode and io stat mappers."""

from __future__ import annotations

import pytest

from ddhouse.domain.mappers import map_disk_table, map_io_stats


def test_disk_rows_are_parsed():
    rows = [
        ["/dev/sda1", "1000", "420", "580", "42%", "/"],
        ["/dev/sdb1", "2000", "0", "2000", "0%", "/data"],
    ]
    records = map_disk_table("system.disk", rows, "web-1", 1000)
    assert len(records) == 1
    disk = records[0]
    assert disk.name == "system.disk"
    assert disk.columns == [
        "time",
        "hostname",
        "device",
        "total",
        "used",
        "free",
        "in_use",
        "mount",
    ]
    first, second = disk.as_dicts()
    assert first["total"] == 1000
    assert first["in_use"] == pytest.approx(0.42)
    assert first["mount"] == "/"
    assert second["in_use"] == 0.0


def test_disk_garbage_numbers_become_zero():
    rows = [["/dev/sda1", "lots", "420", "580", "?", "/"]]
    row = map_disk_table("system.fs.inodes", rows, "h", 1)[0].as_dicts()[0]
    assert row["total"] == 0
    assert row["in_use"] == 0.0


def test_disk_malformed_rows_are_skipped():
    rows = [["/dev/sda1", "1"], "junk", ["/dev/sdb1", "1", "1", "0", "100%", "/b"]]
    records = map_disk_table("system.disk", rows, "h", 1)
    assert [r["device"] for r in records[0].as_dicts()] == ["/dev/sdb1"]


def test_empty_disk_table_emits_nothing():
    assert map_disk_table("system.disk", [], "h", 1) == []
    assert map_disk_table("system.disk", [["x"]], "h", 1) == []


def test_io_stats_use_canonical_columns():
    stats = {
        "sda": {"%util": "12.5", "avgqu-sz": "0.1", "r/s": "3", "wkB/s": "bad"},
        "sdb": {},
    }
    records = map_io_stats(stats, "web-1", 1000)
    assert len(records) == 1
    io = records[0]
    assert io.name == "system.io"
    assert io.columns[:4] == ["time", "hostname", "device", "util"]
    assert "%util" not in io.columns
    sda, sdb = io.as_dicts()
    assert sda["util"] == 12.5
    assert sda["avg_q_sz"] == 0.1
    assert sda["r_s"] == 3.0
    assert sda["wkb_s"] == 0.0
    assert sdb["device"] == "sdb"
    assert sdb["await"] == 0.0


def test_io_stats_empty_or_malformed():
    assert map_io_stats({}, "h", 1) == []
    assert map_io_stats({"sda": "nope"}, "h", 1) == []
