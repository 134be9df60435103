"""Typed statsd series (``/api/v1/series`` submissions)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List

from ..models import MetricRecord, StatsdSeries
from ..records import HOSTNAME, NARROW_COLUMNS, TIME, VALUE, RecordAssembler, explode_tags
from ..utils.timestamps import seconds_to_millis

logger = logging.getLogger(__name__)

STATSD_PREFIX = "statsd."


def map_statsd(series: Iterable[StatsdSeries]) -> List[MetricRecord]:
    """Map each series into its own ``statsd.<metric>`` record.

    - point timestamps are float seconds and become integer milliseconds;
    - ``host`` is sticky: a series without one inherits the host of the most
      recent earlier series that had one. Stickiness never reaches back to
      series processed before the host first appeared, and rows stay
      hostless if no series supplies a host at all;
    - a ``hostname`` tag overrides the host of every point of its series;
    - ``interval`` and ``type`` are added as ``metric_interval`` and
      ``metric_type`` columns.
    """
    records: List[MetricRecord] = []
    host = ""
    for item in series:
        if item.host:
            host = item.host
        if not item.metric:
            logger.warning("statsd.series.unnamed", extra={"points": len(item.points)})
            continue
        tags: Dict[str, Any] = {}
        if item.device_name:
            tags["device_name"] = item.device_name
        tags.update(explode_tags(item.tags))

        assembler = RecordAssembler(
            STATSD_PREFIX + item.metric,
            (*NARROW_COLUMNS, "metric_interval", "metric_type"),
        )
        for point in item.points:
            if not isinstance(point, (list, tuple)) or len(point) < 2:
                logger.warning(
                    "statsd.point.malformed",
                    extra={"metric": item.metric, "point": repr(point)[:200]},
                )
                continue
            assembler.add_row(
                {
                    TIME: seconds_to_millis(point[0]),
                    VALUE: point[1],
                    HOSTNAME: host,
                    "metric_interval": item.interval,
                    "metric_type": item.type,
                },
                tags,
            )
        if not len(assembler):
            logger.debug("statsd.series.empty", extra={"metric": item.metric})
            continue
        records.append(assembler.build())
    return records
