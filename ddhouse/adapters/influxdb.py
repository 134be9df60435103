"""InfluxDB (0.8 series API) sink adapter.

This adapter ships assembled :class:`~ddhouse.domain.models.MetricRecord`
batches to the sink and bootstraps the target database. It encapsulates
transport concerns (base URL, credentials, timeouts) behind a small async
interface.

Notes
-----
- Delivery is at-most-once: a failed push is logged and the batch dropped.
  There is no retry queue.
- ``ensure_database`` is idempotent and tolerates another instance creating
  the database concurrently.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx
import orjson

from ..domain.models import MetricRecord
from ..errors import ForwardError

logger = logging.getLogger(__name__)

_BODY_PREVIEW = 500


def _preview(response: httpx.Response) -> str:
    text = response.text
    return text if len(text) <= _BODY_PREVIEW else text[:_BODY_PREVIEW] + "..."


class InfluxDBForwarder:
    """Forwarder for an InfluxDB 0.8-style HTTP API.

    Parameters
    ----------
    base_url: str
        Sink base URL (e.g., "http://localhost:8086").
    database: str
        Database that receives the series.
    username: str
        Sink user, sent as the ``u`` query parameter.
    password: str
        Sink password, sent as the ``p`` query parameter.
    timeout: float
        Request timeout in seconds for all HTTP operations.
    client: Optional[httpx.AsyncClient]
        Pre-built client (tests pass one backed by ``httpx.MockTransport``).

    Attributes
    ----------
    databases_path: str
        Relative path used to list and create databases.
    series_path: str
        Relative path series batches are POSTed to.
    """

    def __init__(
        self,
        base_url: str,
        database: str,
        username: str = "root",
        password: str = "root",
        timeout: float = 30.0,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.database = database
        self.databases_path = "/db"
        self.series_path = f"/db/{database}/series"
        self._client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            params={"u": username, "p": password},
            headers={"Content-Type": "application/json"},
        )
        logger.info(
            "influxdb.adapter.init",
            extra={"base_url": self.base_url, "database": database, "timeout": timeout},
        )

    @property
    def series_url(self) -> str:
        return self.base_url + self.series_path

    @property
    def databases_url(self) -> str:
        return self.base_url + self.databases_path

    async def list_databases(self) -> List[str]:
        """Return the names of existing databases.

        Raises
        ------
        ForwardError
            On transport errors, non-2xx responses or a malformed listing.
        """
        try:
            resp = await self._client.get(self.databases_path)
        except httpx.HTTPError as exc:
            raise ForwardError(f"sink unreachable: {exc}") from exc
        if not resp.is_success:
            raise ForwardError(
                f"listing databases returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        try:
            listing = resp.json()
        except ValueError as exc:
            raise ForwardError("database listing is not JSON") from exc
        return [
            str(entry.get("name"))
            for entry in listing or []
            if isinstance(entry, dict) and entry.get("name")
        ]

    async def ensure_database(self) -> bool:
        """Create the target database unless it already exists.

        Returns True when the database exists afterwards (found or created).
        Every failure is logged and reported as False; none is raised. A
        non-2xx create answer is only a warning since another instance may
        have created the database in the meantime.
        """
        try:
            existing = await self.list_databases()
        except ForwardError as exc:
            logger.error(
                "influxdb.bootstrap.list_failed",
                extra={"url": self.databases_url, "error": str(exc)},
            )
            return False
        if self.database in existing:
            logger.info("influxdb.bootstrap.exists", extra={"database": self.database})
            return True

        try:
            resp = await self._client.post(
                self.databases_path,
                content=orjson.dumps({"name": self.database}),
            )
        except httpx.HTTPError as exc:
            logger.error(
                "influxdb.bootstrap.create_failed",
                extra={"database": self.database, "error": str(exc)},
            )
            return False
        if resp.is_success:
            logger.info("influxdb.bootstrap.created", extra={"database": self.database})
            return True
        logger.warning(
            "influxdb.bootstrap.create_rejected",
            extra={
                "database": self.database,
                "status": resp.status_code,
                "body": _preview(resp),
            },
        )
        return False

    @staticmethod
    def serialize(records: Sequence[MetricRecord]) -> bytes:
        """Serialize records as the sink's JSON array of series."""
        payload: List[Dict[str, Any]] = [r.model_dump() for r in records]
        return orjson.dumps(payload)

    async def submit(self, records: Sequence[MetricRecord]) -> None:
        """POST one batch of records.

        Raises
        ------
        ForwardError
            On transport errors or a non-2xx response.
        """
        body = self.serialize(records)
        try:
            resp = await self._client.post(self.series_path, content=body)
        except httpx.HTTPError as exc:
            raise ForwardError(f"sink unreachable: {exc}") from exc
        if not resp.is_success:
            raise ForwardError(
                f"sink returned HTTP {resp.status_code}: {_preview(resp)}",
                status_code=resp.status_code,
            )

    async def push_metrics(self, records: Sequence[MetricRecord]) -> bool:
        """Forward a batch best-effort; never raises.

        An empty batch is a no-op. Returns True when the sink accepted the
        batch.
        """
        if not records:
            return False
        logger.info(
            "influxdb.push",
            extra={"records": len(records), "rows": sum(len(r.points) for r in records)},
        )
        try:
            await self.submit(records)
        except ForwardError as exc:
            logger.error(
                "influxdb.push_failed",
                extra={
                    "records": len(records),
                    "status": exc.status_code,
                    "error": str(exc),
                },
            )
            return False
        return True

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()
