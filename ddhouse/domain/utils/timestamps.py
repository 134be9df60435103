"""
Timestamp conversion utilities.

The agent reports epoch seconds (often fractional); the sink expects integer
epoch milliseconds.
"""

import logging
import time
from typing import Any, Optional

from .parsing import strict_float
from ...errors import MappingFallback

logger = logging.getLogger(__name__)


def seconds_to_millis(value: Any, default: Optional[int] = None) -> int:
    """
    Convert epoch seconds to integer epoch milliseconds.

    Parameters
    ----------
    value : Any
        Epoch seconds as a number or numeric string
    default : int, optional
        Milliseconds to return when ``value`` cannot be parsed. If None, the
        current time is used.

    Returns
    -------
    int
        Epoch milliseconds (truncated)

    Examples
    --------
    >>> seconds_to_millis(1697385600.5)
    1697385600500
    """
    try:
        return int(strict_float(value) * 1000)
    except MappingFallback:
        fallback = default if default is not None else now_millis()
        logger.debug(
            "timestamps.fallback",
            extra={"value": repr(value), "default": fallback},
        )
        return fallback


def now_millis() -> int:
    """Return the current time in integer epoch milliseconds."""
    return int(time.time() * 1000)
