"""Process snapshot aggregation.

The agent sends one ``ps`` row per process. Rows are folded into buckets
keyed by their command line; kernel threads (commands starting with ``[``)
all land in a single ``kernel`` bucket. A bucket keeps the fields of the most
recent row folded into it plus a running count, and is forwarded only when
its cpu% or mem% reaches the configured threshold.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..models import MetricRecord
from ..records import HOSTNAME, TIME, RecordAssembler
from ..tables import PROCESS_COLUMNS
from ..utils.parsing import parse_float, parse_int

logger = logging.getLogger(__name__)

KERNEL = "kernel"

_FLOAT_COLUMNS = ("pct_cpu", "pct_mem")
_INT_COLUMNS = ("pid", "vsz", "rss")
_WHITESPACE = re.compile(r"[ \t]")


def aggregation_key(command: str) -> str:
    """Return the bucket key: the literal command, or ``kernel``."""
    if command.startswith("["):
        return KERNEL
    return command


def process_family(command: str) -> str:
    """Return the executable's basename, or ``kernel`` for kernel threads.

    >>> process_family("/usr/bin/python3 -m http.server")
    'python3'
    >>> process_family("[kworker/0:1]")
    'kernel'
    """
    if command.startswith("["):
        return KERNEL
    stripped = command.strip()
    if not stripped:
        return ""
    executable = _WHITESPACE.split(stripped, 1)[0]
    return executable.rsplit("/", 1)[-1]


@dataclass
class ProcessBucket:
    """Aggregation state for one key.

    Attributes
    ----------
    key: str
        Aggregation key (command line or ``kernel``).
    family: str
        Executable basename shared by the bucket.
    fields: Dict[str, Any]
        Parsed fields of the most recently folded row.
    count: int
        Number of rows folded into the bucket.
    command: str
        Raw command string of the most recently folded row.
    """

    key: str
    family: str
    fields: Dict[str, Any] = field(default_factory=dict)
    count: int = 0
    command: str = ""

    def fold(self, fields: Dict[str, Any]) -> None:
        self.fields = fields
        self.command = str(fields.get("command", ""))
        self.count += 1

    def passes(self, threshold: float) -> bool:
        """True when cpu% or mem% is at or above ``threshold``."""
        return (
            self.fields.get("pct_cpu", 0.0) >= threshold
            or self.fields.get("pct_mem", 0.0) >= threshold
        )


class ProcessAggregator:
    """Fold process rows into :class:`ProcessBucket` objects.

    Parameters
    ----------
    threshold: float
        Inclusive cpu%/mem% floor for emitting a bucket.
    columns: Sequence[str]
        Positional names of a process tuple.
    """

    def __init__(
        self, threshold: float, columns: Sequence[str] = PROCESS_COLUMNS
    ) -> None:
        self.threshold = threshold
        self.columns = tuple(columns)
        self.buckets: Dict[str, ProcessBucket] = {}

    def parse_row(self, raw: Sequence[Any]) -> Dict[str, Any]:
        fields: Dict[str, Any] = dict(zip(self.columns, raw))
        for column in _FLOAT_COLUMNS:
            if column in fields:
                fields[column] = parse_float(fields[column])
        for column in _INT_COLUMNS:
            if column in fields:
                fields[column] = parse_int(fields[column])
        fields["command"] = str(fields.get("command") or "")
        return fields

    def add(self, raw: Any) -> Optional[ProcessBucket]:
        """Fold one raw row; malformed rows are skipped and return None."""
        if not isinstance(raw, (list, tuple)) or len(raw) < len(self.columns):
            logger.warning("processes.row.malformed", extra={"row": repr(raw)[:200]})
            return None
        fields = self.parse_row(raw)
        command = fields["command"]
        key = aggregation_key(command)
        bucket = self.buckets.get(key)
        if bucket is None:
            bucket = ProcessBucket(key=key, family=process_family(command))
            self.buckets[key] = bucket
        bucket.fold(fields)
        return bucket

    def emitted(self) -> List[ProcessBucket]:
        """Buckets passing the threshold, in first-seen order."""
        return [b for b in self.buckets.values() if b.passes(self.threshold)]

    def record(self, hostname: str, timestamp: int) -> Optional[MetricRecord]:
        buckets = self.emitted()
        logger.debug(
            "processes.aggregated",
            extra={
                "buckets": len(self.buckets),
                "emitted": len(buckets),
                "threshold": self.threshold,
            },
        )
        if not buckets:
            return None
        assembler = RecordAssembler(
            "processes", (TIME, HOSTNAME, "family", "count", *self.columns)
        )
        for bucket in buckets:
            row: Dict[str, Any] = {
                TIME: timestamp,
                HOSTNAME: hostname,
                "family": bucket.family,
                "count": bucket.count,
            }
            for column in self.columns:
                row[column] = bucket.fields.get(column)
            assembler.add_row(row)
        return assembler.build()


def map_processes(
    data: Any,
    hostname: str,
    timestamp: int,
    threshold: float,
    columns: Sequence[str] = PROCESS_COLUMNS,
) -> List[MetricRecord]:
    """Map ``{"host": ..., "processes": [...]}`` into one aggregated record.

    The payload's own ``host`` is preferred over ``hostname``.
    """
    if not isinstance(data, Mapping):
        return []
    host = data.get("host") or hostname
    rows = data.get("processes")
    if not isinstance(rows, list):
        return []
    aggregator = ProcessAggregator(threshold, columns)
    for raw in rows:
        aggregator.add(raw)
    record = aggregator.record(str(host), timestamp)
    return [record] if record is not None else []
