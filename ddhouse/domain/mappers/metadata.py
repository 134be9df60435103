"""Host metadata, host tags and system stats."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping

import orjson

from ..models import MetricRecord
from ..records import HOSTNAME, TIME, RecordAssembler

TAG_SEPARATOR = ","
STAT_SEPARATOR = "-"


def _flatten(value: Any, separator: str) -> Any:
    if isinstance(value, (list, tuple)):
        return separator.join("" if v is None else str(v) for v in value)
    if isinstance(value, Mapping):
        return orjson.dumps(value).decode("utf-8")
    return value


def map_metadata(
    document: Dict[str, Any], hostname: str, timestamp: int
) -> List[MetricRecord]:
    """Consume ``meta``, ``host-tags`` and ``systemStats`` from ``document``.

    Produces up to two records:

    - ``host.meta``: host identity fields plus one ``tags_<group>`` column per
      host-tag group. List values are joined with ``,``. A non-empty
      ``hostname`` identity field takes over the row's host slot.
    - ``host.system_stats``: platform fields; list values (e.g. the
      ``nixV`` distribution triple) are joined with ``-``.
    """
    records: List[MetricRecord] = []
    meta = document.pop("meta", None)
    host_tags = document.pop("host-tags", None)
    stats = document.pop("systemStats", None)

    identity: Dict[str, Any] = {}
    if isinstance(meta, Mapping):
        for key, value in meta.items():
            identity[key] = _flatten(value, TAG_SEPARATOR)
    if isinstance(host_tags, Mapping):
        for group, tags in host_tags.items():
            identity[f"tags_{group}"] = _flatten(tags, TAG_SEPARATOR)
    if identity:
        assembler = RecordAssembler("host.meta")
        assembler.add_row({TIME: timestamp, HOSTNAME: hostname}, identity)
        records.append(assembler.build())

    if isinstance(stats, Mapping) and stats:
        fields = {key: _flatten(value, STAT_SEPARATOR) for key, value in stats.items()}
        assembler = RecordAssembler("host.system_stats")
        assembler.add_row({TIME: timestamp, HOSTNAME: hostname}, fields)
        records.append(assembler.build())
    return records
