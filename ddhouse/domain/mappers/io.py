"""Per-device IO statistics (``iostat -x`` output)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from ..models import MetricRecord
from ..records import HOSTNAME, TIME, RecordAssembler
from ..tables import IO_METRICS
from ..utils.parsing import parse_float

logger = logging.getLogger(__name__)


def map_io_stats(
    stats: Any,
    hostname: str,
    timestamp: int,
    io_metrics: Mapping[str, str] = IO_METRICS,
) -> List[MetricRecord]:
    """Map ``{device: {raw_field: value}}`` into one ``system.io`` record.

    Raw tool field names (``%util``, ``avgqu-sz``, ...) are looked up through
    ``io_metrics`` and every value is parsed as a float; a missing or
    unparseable field becomes ``0.0``.
    """
    if not isinstance(stats, Mapping) or not stats:
        return []
    assembler = RecordAssembler("system.io", (TIME, HOSTNAME, "device"))
    for device, raw_fields in stats.items():
        if not isinstance(raw_fields, Mapping):
            logger.warning("io.device.malformed", extra={"device": device})
            continue
        row: Dict[str, Any] = {TIME: timestamp, HOSTNAME: hostname, "device": device}
        for column, raw_name in io_metrics.items():
            row[column] = parse_float(raw_fields.get(raw_name))
        assembler.add_row(row)
    if not len(assembler):
        return []
    return [assembler.build()]
