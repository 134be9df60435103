"""Agent check statuses and service check results."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from ..models import MetricRecord
from ..records import HOSTNAME, TIME, RecordAssembler, explode_tags
from ..utils.parsing import parse_int
from ..utils.timestamps import seconds_to_millis

logger = logging.getLogger(__name__)


def join_message(message: Any) -> str:
    """Join multi-line message arrays with newlines."""
    if message is None:
        return ""
    if isinstance(message, (list, tuple)):
        return "\n".join(str(line) for line in message)
    return str(message)


def map_agent_checks(
    checks: Any, hostname: str, timestamp: int
) -> List[MetricRecord]:
    """Map ``agent_checks`` tuples, one ``agent.check.<name>`` record each.

    Tuple layout: ``[check_name, source_type, instance_id, status, message,
    metadata]``; ``metadata`` is optional and merged as tags.
    """
    if not isinstance(checks, list):
        return []
    records: List[MetricRecord] = []
    for check in checks:
        if not isinstance(check, (list, tuple)) or len(check) < 5:
            logger.warning("checks.agent.malformed", extra={"check": repr(check)[:200]})
            continue
        name, source_type, instance_id, status, message = check[:5]
        metadata = check[5] if len(check) > 5 and isinstance(check[5], Mapping) else {}
        assembler = RecordAssembler(f"agent.check.{name}")
        assembler.add_row(
            {
                TIME: timestamp,
                HOSTNAME: hostname,
                "source_type": source_type,
                "instance_id": instance_id,
                "status": status,
                "message": join_message(message),
            },
            metadata,
        )
        records.append(assembler.build())
    return records


def map_service_checks(
    checks: Any, hostname: str, timestamp: int
) -> List[MetricRecord]:
    """Map ``service_checks`` results, one ``service_check.<check>`` record each.

    Each result is ``{check, host_name, timestamp, status, message, tags,
    id}``. The result's own host and timestamp win over the submission's.
    """
    if not isinstance(checks, list):
        return []
    records: List[MetricRecord] = []
    for check in checks:
        if not isinstance(check, Mapping) or not check.get("check"):
            logger.warning("checks.service.malformed", extra={"check": repr(check)[:200]})
            continue
        row: Dict[str, Any] = {
            TIME: seconds_to_millis(check.get("timestamp"), timestamp),
            HOSTNAME: check.get("host_name") or hostname,
            "status": parse_int(check.get("status")),
            "message": join_message(check.get("message")),
        }
        if check.get("id") is not None:
            row["check_run_id"] = check["id"]
        assembler = RecordAssembler(f"service_check.{check['check']}")
        assembler.add_row(row, explode_tags(check.get("tags")))
        records.append(assembler.build())
    return records
