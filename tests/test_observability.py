"""Tests for logging setup."""

from __future__ import annotations

import logging

import pytest

from ddhouse.observability import TRANSPORT_LOGGERS, resolve_level, setup_logging


@pytest.fixture
def restore_transport_levels():
    saved = {name: logging.getLogger(name).level for name in TRANSPORT_LOGGERS}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


def test_resolve_level():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level("WARNING") == logging.WARNING
    assert resolve_level("chatty") == logging.INFO


def test_transport_loggers_quiet_unless_debug(restore_transport_levels):
    setup_logging("INFO")
    assert all(logging.getLogger(n).level == logging.WARNING for n in TRANSPORT_LOGGERS)
    setup_logging("DEBUG")
    assert all(logging.getLogger(n).level == logging.DEBUG for n in TRANSPORT_LOGGERS)
