"""
Shared utilities for the mappers.

Modules
-------
parsing
    Strict and lenient numeric parsing of agent-supplied strings
timestamps
    Epoch seconds to epoch milliseconds conversion
"""

__all__ = []
