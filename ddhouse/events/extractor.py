"""Pull embedded discrete events out of an intake document."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from pydantic import ValidationError

from ..domain.models import Event

logger = logging.getLogger(__name__)


def extract_events(document: Dict[str, Any]) -> List[Event]:
    """Consume ``document["events"]`` and return one :class:`Event` per entry.

    The sub-structure maps a source name to a list of event objects; each
    event is tagged with its source. Entries that are not objects are skipped
    with a warning. An event's own ``source`` field is replaced by the
    source it was reported under.
    """
    raw = document.pop("events", None)
    if not isinstance(raw, Mapping):
        return []
    events: List[Event] = []
    for source, entries in raw.items():
        if not isinstance(entries, list):
            logger.warning("events.source.malformed", extra={"source": source})
            continue
        for entry in entries:
            if not isinstance(entry, Mapping):
                logger.warning(
                    "events.entry.malformed",
                    extra={"source": source, "entry": repr(entry)[:200]},
                )
                continue
            try:
                events.append(Event.model_validate({**entry, "source": str(source)}))
            except ValidationError as exc:
                logger.warning(
                    "events.entry.invalid", extra={"source": source, "error": str(exc)}
                )
    if events:
        logger.debug("events.extracted", extra={"count": len(events)})
    return events
