"""Tests for lenient numeric parsing and timestamp helpers."""

from __future__ import annotations

import logging

import pytest

from ddhouse.domain.utils.parsing import (
    parse_float,
    parse_int,
    parse_percent,
    strict_float,
    strict_int,
)
from ddhouse.domain.utils.timestamps import now_millis, seconds_to_millis
from ddhouse.errors import MappingFallback


def test_percent_string_becomes_fraction():
    assert parse_percent("42%") == pytest.approx(0.42)
    assert parse_percent("0%") == 0.0
    assert parse_percent("100%") == 1.0


def test_percent_garbage_falls_back_to_zero():
    assert parse_percent("n/a") == 0.0
    assert parse_percent(None) == 0.0


def test_parse_int_accepts_numeric_strings():
    assert parse_int("1024") == 1024
    assert parse_int(" 7 ") == 7
    assert parse_int(3.0) == 3


def test_parse_int_falls_back_on_garbage():
    assert parse_int("") == 0
    assert parse_int("12.5") == 0
    assert parse_int(None, default=-1) == -1


def test_parse_float_falls_back_on_non_finite():
    assert parse_float("nan") == 0.0
    assert parse_float("inf") == 0.0
    assert parse_float("0.25") == 0.25


def test_strict_parsers_reject_booleans():
    with pytest.raises(MappingFallback):
        strict_float(True)
    with pytest.raises(MappingFallback):
        strict_int(False)


def test_fallback_is_logged_at_debug(caplog):
    caplog.set_level(logging.DEBUG, logger="ddhouse.domain.utils.parsing")
    parse_float("bogus")
    fallbacks = [r for r in caplog.records if r.getMessage() == "mapping.fallback"]
    assert fallbacks
    assert fallbacks[0].value == "'bogus'"
    assert fallbacks[0].target == "float"


def test_seconds_to_millis_truncates():
    assert seconds_to_millis(1697385600.5) == 1697385600500
    assert seconds_to_millis("1697385600") == 1697385600000


def test_seconds_to_millis_uses_default_then_now():
    assert seconds_to_millis("garbage", default=42) == 42
    before = now_millis()
    assert seconds_to_millis(None) >= before
