"""Logging setup for the intake server.

ddhouse logs through module loggers (``logging.getLogger(__name__)``). The
message is a dotted event name such as ``intake.mapped`` or
``influxdb.push_failed`` and the context travels in ``extra``. This module
configures the root handler once per process, keeps the sink client's
per-request chatter out of INFO output, and hands the same level to
`structlog` when it is installed.
"""

from __future__ import annotations

import importlib
import logging
from typing import Tuple

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# Loggers that emit one line per sink request
TRANSPORT_LOGGERS: Tuple[str, ...] = ("httpx", "httpcore")


def resolve_level(level: str) -> int:
    """Map a level name to its numeric value; unknown names mean INFO."""
    numeric = getattr(logging, str(level).upper(), None)
    return numeric if isinstance(numeric, int) else logging.INFO


def setup_logging(level: str = "INFO") -> None:
    """Configure process-wide logging.

    Parameters
    ----------
    level: str
        Level name (e.g., "DEBUG", "INFO"). Unknown names fall back to INFO.

    Behavior
    --------
    - Installs the root handler with the ddhouse line format.
    - Raises the transport loggers to WARNING unless DEBUG is requested, so
      each forwarded batch logs once (``influxdb.push``) rather than per
      HTTP call.
    - Configures `structlog`'s filtering bound logger at the same level when
      the package is importable.
    """
    numeric_level = resolve_level(level)
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, datefmt=DATE_FORMAT)

    transport_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)

    try:
        structlog = importlib.import_module("structlog")
    except ModuleNotFoundError:  # pragma: no cover
        return
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
    )
