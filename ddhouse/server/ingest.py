"""Ingest service: acknowledgment logic shared by the HTTP routes.

The acknowledgment only says whether the submission could be decoded.
Mapped records are handed to the forwarder as detached tasks with no join
point; the caller has already been told ``ok`` by the time they are sent,
and two submissions' batches may reach the sink in either order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Set

from ..adapters.influxdb import InfluxDBForwarder
from ..domain.decoder import decode_document, decode_statsd, inflate
from ..domain.models import MetricRecord
from ..domain.pipeline import IntakeMapper
from ..errors import DecodeError
from ..events.extractor import extract_events
from ..events.writer import EventWriter

logger = logging.getLogger(__name__)

STATUS_OK: Dict[str, str] = {"status": "ok"}
STATUS_FAILED: Dict[str, str] = {"status": "failed"}


class IngestService:
    """Decode, map and dispatch agent submissions.

    Parameters
    ----------
    mapper: IntakeMapper
        Mapping engine configured with the classification tables.
    forwarder: Optional[InfluxDBForwarder]
        Sink adapter; without one, mapped records are only logged.
    writer: Optional[EventWriter]
        Event writer; without one, extracted events are dropped with a
        debug log.
    """

    def __init__(
        self,
        mapper: IntakeMapper,
        forwarder: Optional[InfluxDBForwarder] = None,
        writer: Optional[EventWriter] = None,
    ) -> None:
        self.mapper = mapper
        self.forwarder = forwarder
        self.writer = writer
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of forward tasks still in flight."""
        return len(self._pending)

    async def handle_intake(
        self, raw: bytes, content_encoding: Optional[str] = None
    ) -> Dict[str, str]:
        """Handle a generic agent submission and return the acknowledgment."""
        try:
            document = decode_document(inflate(raw, content_encoding))
        except DecodeError as exc:
            logger.warning("intake.decode_failed", extra={"error": str(exc)})
            return dict(STATUS_FAILED)

        await self.publish_events(document)
        records = self.mapper.map_document(document)
        self.dispatch(records)
        return dict(STATUS_OK)

    async def handle_series(
        self, raw: bytes, content_encoding: Optional[str] = None
    ) -> Dict[str, str]:
        """Handle a typed statsd envelope and return the acknowledgment."""
        try:
            payload = decode_statsd(inflate(raw, content_encoding))
        except DecodeError as exc:
            logger.warning("series.decode_failed", extra={"error": str(exc)})
            return dict(STATUS_FAILED)

        records = self.mapper.map_statsd(payload)
        self.dispatch(records)
        return dict(STATUS_OK)

    async def publish_events(self, document: Dict[str, Any]) -> int:
        """Extract events from ``document`` and queue them for the writer."""
        events = extract_events(document)
        if not events:
            return 0
        if self.writer is None:
            logger.debug("events.dropped.no_writer", extra={"count": len(events)})
            return 0
        for event in events:
            await self.writer.submit(event)
        return len(events)

    def dispatch(self, records: Sequence[MetricRecord]) -> Optional[asyncio.Task]:
        """Start forwarding ``records`` in the background; never awaited here."""
        if not records:
            return None
        if self.forwarder is None:
            logger.info("forward.skipped.no_sink", extra={"records": len(records)})
            return None
        task = asyncio.create_task(self.forwarder.push_metrics(list(records)))
        self._pending.add(task)
        task.add_done_callback(self._forward_done)
        return task

    def _forward_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("forward.task_failed", exc_info=exc)

    async def drain(self) -> List[Any]:
        """Wait for in-flight forward tasks (shutdown and tests only)."""
        if not self._pending:
            return []
        return await asyncio.gather(*list(self._pending), return_exceptions=True)
