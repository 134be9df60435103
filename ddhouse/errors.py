"""Error taxonomy for the intake pipeline.

Only :class:`DecodeError` is ever visible to the submitting agent (as a
``failed`` acknowledgment). Everything downstream of a successful decode is
best-effort and log-only.
"""

from __future__ import annotations

from typing import Any, Optional


class DDHouseError(Exception):
    """Base class for all ddhouse errors."""


class DecodeError(DDHouseError):
    """Raw submission bytes could not be turned into a document.

    Covers malformed compression, malformed UTF-8/JSON and a top-level value
    of the wrong shape. No partial document is produced.
    """


class MappingFallback(DDHouseError):
    """A field expected to be numeric could not be parsed.

    Raised by the strict parsers and always caught by their lenient
    wrappers, which substitute a zero-like default and continue.
    """

    def __init__(self, value: Any, target: str) -> None:
        super().__init__(f"cannot parse {value!r} as {target}")
        self.value = value
        self.target = target


class ForwardError(DDHouseError):
    """The sink was unreachable or answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class WriteError(DDHouseError):
    """Appending an event to the durable log failed."""
