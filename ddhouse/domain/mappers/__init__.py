"""Specialized mappers.

Each mapper consumes one sub-structure of the decoded agent document and
returns zero or more :class:`~ddhouse.domain.models.MetricRecord` objects.
Mappers never raise for bad field values; see
:mod:`ddhouse.domain.utils.parsing`.
"""

from .checks import map_agent_checks, map_service_checks
from .disk import map_disk_table
from .extra import map_extra_metrics
from .io import map_io_stats
from .metadata import map_metadata
from .processes import map_processes
from .root import classify_root
from .statsd import map_statsd

__all__ = [
    "classify_root",
    "map_agent_checks",
    "map_disk_table",
    "map_extra_metrics",
    "map_io_stats",
    "map_metadata",
    "map_processes",
    "map_service_checks",
    "map_statsd",
]
