"""Pytest configuration for test suite.

Ensures the project root is on ``sys.path`` so imports like ``import ddhouse``
resolve correctly regardless of the working directory pytest chooses.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest


def _ensure_project_root_on_syspath() -> None:
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)
    if project_root_str not in sys.path:
        # Prepend to prefer local sources over site-packages
        sys.path.insert(0, project_root_str)


_ensure_project_root_on_syspath()


@pytest.fixture(autouse=True)
def isolate_settings_env(monkeypatch, tmp_path):
    """Drop ambient DDHOUSE_* variables and run from an empty directory.

    Keeps a developer's environment or ``.env`` file from leaking into
    settings-driven tests.
    """
    for key in list(os.environ):
        if key.startswith("DDHOUSE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
