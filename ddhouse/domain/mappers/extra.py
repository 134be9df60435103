"""Ad-hoc "extra" metrics reported by agent checks.

Each entry is ``[name, epoch_seconds, value, tag_map]``. Names are grouped
with :func:`~ddhouse.domain.records.group_of`. A ``(group, field)`` observed
once folds into its group's wide row; one observed several times in the same
submission cannot share a single wide row (several timestamps and values) and
becomes its own narrow record instead, one row per sample.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..models import MetricRecord
from ..records import (
    HOSTNAME,
    NARROW_COLUMNS,
    TIME,
    VALUE,
    GroupAccumulator,
    RecordAssembler,
    explode_tags,
    group_of,
)
from ..utils.timestamps import seconds_to_millis

logger = logging.getLogger(__name__)


@dataclass
class ExtraMetricAccumulator:
    """Samples seen for one ``(group, field)`` during a submission."""

    name: str
    group: str
    field: str
    first_seen: int
    samples: List[Tuple[int, Any, Dict[str, Any]]] = field(default_factory=list)

    def add(self, timestamp: int, value: Any, tags: Dict[str, Any]) -> None:
        self.samples.append((timestamp, value, tags))


def flatten_tags(raw: Any) -> Dict[str, Any]:
    """Flatten a sample's tag map, exploding its ``tags`` list in place."""
    tags: Dict[str, Any] = {}
    if not isinstance(raw, Mapping):
        return tags
    for key, value in raw.items():
        if key == "tags":
            if isinstance(value, (list, tuple)):
                tags.update(explode_tags(value))
            continue
        tags[key] = value
    return tags


def map_extra_metrics(
    entries: Any, hostname: str, default_timestamp: Optional[int] = None
) -> List[MetricRecord]:
    """Map extra metric entries into wide and narrow records.

    Parameters
    ----------
    entries: Any
        List of ``[name, epoch_seconds, value, tag_map]`` entries.
    hostname: str
        Submission host; a non-empty ``hostname`` tag overrides it per row.
    default_timestamp: Optional[int]
        Milliseconds used when an entry's timestamp cannot be parsed.

    Returns
    -------
    List[MetricRecord]
        Wide group records first, then narrow per-metric records.
    """
    if not isinstance(entries, list):
        return []
    accumulators: Dict[Tuple[str, str], ExtraMetricAccumulator] = {}
    for entry in entries:
        if not isinstance(entry, (list, tuple)) or len(entry) < 3:
            logger.warning("extra.entry.malformed", extra={"entry": repr(entry)[:200]})
            continue
        name = str(entry[0])
        timestamp = seconds_to_millis(entry[1], default_timestamp)
        tags = flatten_tags(entry[3] if len(entry) > 3 else None)
        group, field_name = group_of(name)
        acc = accumulators.get((group, field_name))
        if acc is None:
            acc = ExtraMetricAccumulator(name, group, field_name, timestamp)
            accumulators[(group, field_name)] = acc
        acc.add(timestamp, entry[2], tags)

    wide = GroupAccumulator()
    narrow: List[MetricRecord] = []
    for acc in accumulators.values():
        if len(acc.samples) == 1:
            _, value, tags = acc.samples[0]
            wide.add_field(acc.group, acc.field, value, tags=tags, timestamp=acc.first_seen)
            continue
        assembler = RecordAssembler(acc.name, NARROW_COLUMNS)
        for timestamp, value, tags in acc.samples:
            assembler.add_row({TIME: timestamp, VALUE: value, HOSTNAME: hostname}, tags)
        narrow.append(assembler.build())

    fallback_time = default_timestamp if default_timestamp is not None else 0
    records = wide.records(hostname, fallback_time)
    if narrow:
        logger.debug(
            "extra.fanout",
            extra={"narrow": [r.name for r in narrow], "wide": len(records)},
        )
    return records + narrow
