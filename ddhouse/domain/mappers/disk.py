"""Disk usage and inode tables (``df`` output)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Sequence

from ..models import MetricRecord
from ..records import HOSTNAME, TIME, RecordAssembler
from ..tables import DISK_COLUMNS
from ..utils.parsing import parse_int, parse_percent

logger = logging.getLogger(__name__)

_INTEGER_COLUMNS = ("total", "used", "free")


def map_disk_table(
    name: str,
    rows: Any,
    hostname: str,
    timestamp: int,
    columns: Sequence[str] = DISK_COLUMNS,
) -> List[MetricRecord]:
    """Map one ``df``-style table into a single record, one row per device.

    Parameters
    ----------
    name: str
        Record name ("system.disk" or "system.fs.inodes").
    rows: Any
        List of ``[device, total, used, free, in_use%, mount]`` tuples.
    hostname: str
        Reporting host.
    timestamp: int
        Submission time in epoch milliseconds.
    columns: Sequence[str]
        Positional column names of a tuple.

    Returns
    -------
    List[MetricRecord]
        One record, or none when the table is empty or not a list.
    """
    if not isinstance(rows, list) or not rows:
        return []
    assembler = RecordAssembler(name)
    for raw in rows:
        if not isinstance(raw, (list, tuple)) or len(raw) < len(columns):
            logger.warning(
                "disk.row.malformed", extra={"record": name, "row": repr(raw)[:200]}
            )
            continue
        fields: Dict[str, Any] = dict(zip(columns, raw))
        for column in _INTEGER_COLUMNS:
            if column in fields:
                fields[column] = parse_int(fields[column])
        if "in_use" in fields:
            fields["in_use"] = parse_percent(fields["in_use"])
        assembler.add_row({TIME: timestamp, HOSTNAME: hostname, **fields})
    if not len(assembler):
        return []
    return [assembler.build()]
