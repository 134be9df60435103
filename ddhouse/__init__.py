"""
ddhouse Python package.

This package hosts the agent intake server, the metric mapping engine, the
time-series sink adapter, and the discrete event writer.
"""

from .__version__ import __version__

__all__ = ["__version__"]
