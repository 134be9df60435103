"""Intake mapping pipeline.

:class:`IntakeMapper` runs the root classifier, the grouping engine and every
specialized mapper over one decoded document, in a fixed order, and returns
the assembled records. The document is consumed in place; whatever is left
afterwards is logged so the classification tables can be extended.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import orjson

from .mappers import (
    classify_root,
    map_agent_checks,
    map_disk_table,
    map_extra_metrics,
    map_io_stats,
    map_metadata,
    map_processes,
    map_service_checks,
    map_statsd,
)
from .models import MetricRecord, StatsdPayload
from .records import GroupAccumulator
from .tables import DEFAULT_TABLES, MappingTables
from .utils.timestamps import seconds_to_millis

logger = logging.getLogger(__name__)

# Envelope keys that carry no metric data
ENVELOPE_KEYS = ("apiKey", "internalHostname", "collection_timestamp")

DEFAULT_PROCESS_THRESHOLD = 0.1


class IntakeMapper:
    """Map decoded agent documents into metric records.

    Parameters
    ----------
    tables: MappingTables
        Classification tables (root metrics, io field names, tuple layouts).
    process_threshold: float
        Inclusive cpu%/mem% floor for forwarding a process bucket.
    """

    def __init__(
        self,
        tables: MappingTables = DEFAULT_TABLES,
        process_threshold: float = DEFAULT_PROCESS_THRESHOLD,
    ) -> None:
        self.tables = tables
        self.process_threshold = process_threshold

    def map_document(self, document: Dict[str, Any]) -> List[MetricRecord]:
        """Map a generic intake document, consuming it in place."""
        hostname = str(document.get("internalHostname") or "")
        timestamp = seconds_to_millis(document.get("collection_timestamp"))
        for key in ENVELOPE_KEYS:
            document.pop(key, None)
        logger.debug("intake.mapping", extra={"hostname": hostname, "time": timestamp})

        groups = GroupAccumulator()
        for path, value in classify_root(document, self.tables.root_metrics):
            groups.add(path, value)
        records = groups.records(hostname, timestamp)

        if "processes" in document:
            records += map_processes(
                document.pop("processes"),
                hostname,
                timestamp,
                self.process_threshold,
                self.tables.process_columns,
            )
        if "diskUsage" in document:
            records += map_disk_table(
                "system.disk",
                document.pop("diskUsage"),
                hostname,
                timestamp,
                self.tables.disk_columns,
            )
        if "inodes" in document:
            records += map_disk_table(
                "system.fs.inodes",
                document.pop("inodes"),
                hostname,
                timestamp,
                self.tables.disk_columns,
            )
        if "ioStats" in document:
            records += map_io_stats(
                document.pop("ioStats"), hostname, timestamp, self.tables.io_metrics
            )
        if "metrics" in document:
            records += map_extra_metrics(document.pop("metrics"), hostname, timestamp)
        if "agent_checks" in document:
            records += map_agent_checks(document.pop("agent_checks"), hostname, timestamp)
        if "service_checks" in document:
            records += map_service_checks(
                document.pop("service_checks"), hostname, timestamp
            )
        records += map_metadata(document, hostname, timestamp)

        self.report_residue(document, hostname)
        logger.info(
            "intake.mapped",
            extra={"hostname": hostname, "records": len(records)},
        )
        return records

    def map_statsd(self, payload: StatsdPayload) -> List[MetricRecord]:
        """Map a typed statsd envelope."""
        records = map_statsd(payload.series)
        logger.info(
            "statsd.mapped",
            extra={"series": len(payload.series), "records": len(records)},
        )
        return records

    @staticmethod
    def report_residue(document: Dict[str, Any], hostname: str = "") -> List[str]:
        """Log keys no mapper consumed; returns them sorted."""
        residue = sorted(document)
        if not residue:
            return residue
        logger.info(
            "intake.residual_keys",
            extra={"hostname": hostname, "keys": residue},
        )
        if logger.isEnabledFor(logging.DEBUG):
            dump = orjson.dumps(
                document, option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS,
                default=str,
            )
            logger.debug("intake.residue\n%s", dump.decode("utf-8"))
        return residue
