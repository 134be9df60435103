"""Sequential append-only event writer.

Producers (concurrent request handlers) share one bounded
:class:`asyncio.Queue`; a single consumer task drains it in FIFO order and
appends each event as one JSON line. A full queue makes ``submit`` wait for
space, which slows the producing request down instead of dropping events.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

import orjson

from ..domain.models import Event
from ..errors import WriteError

logger = logging.getLogger(__name__)


class EventWriter:
    """Bounded-queue front end for the newline-delimited event log.

    Parameters
    ----------
    path: Union[str, Path]
        Event log file; created on first append, never truncated.
    capacity: int
        Maximum number of queued events before ``submit`` blocks.

    Attributes
    ----------
    written: int
        Events appended successfully.
    failed: int
        Events whose append raised :class:`WriteError`.
    """

    def __init__(self, path: Union[str, Path], capacity: int = 100) -> None:
        self.path = Path(path)
        self.capacity = capacity
        self._queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=capacity)
        self._task: Optional[asyncio.Task] = None
        self.written = 0
        self.failed = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def qsize(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        """Start the consumer task. Idempotent."""
        if self.running:
            logger.debug("events.writer.start no-op: already running")
            return
        self._task = asyncio.create_task(self._consume(), name="event-writer")
        logger.info(
            "events.writer.started",
            extra={"path": str(self.path), "capacity": self.capacity},
        )

    async def submit(self, event: Event) -> None:
        """Enqueue one event, waiting while the queue is full."""
        if self._queue.full():
            logger.warning(
                "events.queue.full",
                extra={"capacity": self.capacity, "source": event.source},
            )
        await self._queue.put(event)

    async def join(self) -> None:
        """Wait until every queued event has been processed."""
        await self._queue.join()

    async def stop(self) -> None:
        """Drain the queue, then stop the consumer. Idempotent."""
        task = self._task
        if task is None or task.done():
            return
        await self._queue.join()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(
            "events.writer.stopped",
            extra={"written": self.written, "failed": self.failed},
        )

    async def _consume(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await asyncio.to_thread(self.append, event)
                self.written += 1
            except WriteError as exc:
                self.failed += 1
                logger.error(
                    "events.write_failed",
                    extra={"path": str(self.path), "error": str(exc)},
                )
            finally:
                self._queue.task_done()

    def append(self, event: Event) -> None:
        """Append one event as a JSON line.

        Raises
        ------
        WriteError
            If the log file cannot be opened or written.
        """
        line = orjson.dumps(event.model_dump()) + b"\n"
        try:
            with open(self.path, "ab") as fh:
                fh.write(line)
        except OSError as exc:
            raise WriteError(f"cannot append to {self.path}: {exc}") from exc
