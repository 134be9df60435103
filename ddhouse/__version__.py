"""
Version information for ddhouse.

Read from the installed distribution metadata; a source checkout that was
never installed falls back to the ``[project]`` table of pyproject.toml.
"""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

try:
    __version__ = version("ddhouse")
except PackageNotFoundError:
    import tomllib

    _pyproject = Path(__file__).resolve().parent.parent / "pyproject.toml"
    try:
        with open(_pyproject, "rb") as f:
            __version__ = tomllib.load(f)["project"]["version"]
    except (OSError, KeyError, tomllib.TOMLDecodeError):
        __version__ = "0.0.0-dev"
