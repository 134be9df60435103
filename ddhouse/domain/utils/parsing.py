"""
Numeric parsing utilities for agent-supplied values.

The agent reports most numbers as strings (``"12.5"``, ``"42%"``). The strict
parsers raise :class:`~ddhouse.errors.MappingFallback` on anything they cannot
read; the lenient wrappers catch it and substitute a zero-like default so a
single bad field never aborts a whole batch.

Note
----
A substituted zero is indistinguishable from a reported zero once it reaches
the sink, so aggregates over a field with frequent parse failures will be
skewed low. Every substitution is logged at DEBUG under
``mapping.fallback`` with the offending value.
"""

import logging
import math
from typing import Any, Union

from ...errors import MappingFallback

logger = logging.getLogger(__name__)

Number = Union[int, float]


def strict_float(value: Any) -> float:
    """
    Parse ``value`` as a finite float.

    Parameters
    ----------
    value : Any
        Number or numeric string

    Returns
    -------
    float
        Parsed value

    Raises
    ------
    MappingFallback
        If the value is not numeric or not finite

    Examples
    --------
    >>> strict_float("12.5")
    12.5
    >>> strict_float(3)
    3.0
    """
    if isinstance(value, bool):
        raise MappingFallback(value, "float")
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise MappingFallback(value, "float") from exc
    if not math.isfinite(parsed):
        raise MappingFallback(value, "float")
    return parsed


def strict_int(value: Any) -> int:
    """
    Parse ``value`` as an integer.

    Integral floats (``3.0``) are accepted; fractional values are not.

    Raises
    ------
    MappingFallback
        If the value is not an integer
    """
    if isinstance(value, bool):
        raise MappingFallback(value, "int")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise MappingFallback(value, "int")
    try:
        return int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise MappingFallback(value, "int") from exc


def parse_float(value: Any, default: float = 0.0) -> float:
    """
    Parse ``value`` as a float, returning ``default`` on failure.

    Examples
    --------
    >>> parse_float("0.25")
    0.25
    >>> parse_float("n/a")
    0.0
    """
    try:
        return strict_float(value)
    except MappingFallback as exc:
        _log_fallback(exc, default)
        return default


def parse_int(value: Any, default: int = 0) -> int:
    """
    Parse ``value`` as an int, returning ``default`` on failure.

    Examples
    --------
    >>> parse_int("1024")
    1024
    >>> parse_int("")
    0
    """
    try:
        return strict_int(value)
    except MappingFallback as exc:
        _log_fallback(exc, default)
        return default


def parse_percent(value: Any, default: float = 0.0) -> float:
    """
    Parse a percentage into a 0..1 fraction.

    Accepts ``"42%"`` and bare numbers alike; the trailing ``%`` is optional.

    Examples
    --------
    >>> parse_percent("42%")
    0.42
    >>> parse_percent("0%")
    0.0
    """
    raw = value.strip().rstrip("%") if isinstance(value, str) else value
    try:
        return strict_float(raw) / 100.0
    except MappingFallback as exc:
        _log_fallback(exc, default)
        return default


def _log_fallback(exc: MappingFallback, default: Number) -> None:
    logger.debug(
        "mapping.fallback",
        extra={"value": repr(exc.value), "target": exc.target, "default": default},
    )
