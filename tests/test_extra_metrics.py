"""Tests for extra metric fan-out."""

from __future__ import annotations

from ddhouse.domain.mappers import map_extra_metrics


def test_single_samples_pack_into_wide_group_rows():
    entries = [
        ["nginx.net.conn_opened", 100, 5, {"hostname": "web-1"}],
        ["nginx.net.conn_dropped", 100, 1, {"hostname": "web-1"}],
    ]
    records = map_extra_metrics(entries, "web-1", 999)
    assert len(records) == 1
    record = records[0]
    assert record.name == "nginx.net"
    assert record.as_dicts() == [
        {
            "time": 100000,
            "hostname": "web-1",
            "conn_opened": 5,
            "conn_dropped": 1,
        }
    ]


def test_repeated_samples_fan_out_into_narrow_record():
    entries = [
        ["mysql.perf.queries", 100, 1, {"tags": ["db:a"]}],
        ["mysql.perf.queries", 110, 2, {"tags": ["db:b"]}],
        ["mysql.perf.slow", 100, 0, {}],
    ]
    records = map_extra_metrics(entries, "db-1", 999)
    assert [r.name for r in records] == ["mysql.perf", "mysql.perf.queries"]
    wide, narrow = records
    assert wide.as_dicts()[0]["slow"] == 0
    assert "queries" not in wide.columns
    assert narrow.columns == ["time", "value", "hostname", "db"]
    assert narrow.points == [
        [100000, 1, "db-1", "a"],
        [110000, 2, "db-1", "b"],
    ]


def test_hostname_tag_overrides_narrow_rows():
    entries = [
        ["app.q.depth", 1, 1, {"hostname": "other"}],
        ["app.q.depth", 2, 2, {"hostname": ""}],
    ]
    narrow = map_extra_metrics(entries, "me", 0)[0]
    assert narrow.column("hostname") == ["other", "me"]


def test_malformed_entries_are_skipped():
    entries = [["only.name"], "junk", ["a.b.c", "bad-ts", 3]]
    records = map_extra_metrics(entries, "h", 5000)
    assert len(records) == 1
    assert records[0].as_dicts()[0] == {"time": 5000, "hostname": "h", "c": 3}
