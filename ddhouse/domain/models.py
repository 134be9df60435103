"""Canonical data model shared by the mappers, the forwarder and the writer.

These Pydantic models represent the normalized records that leave the
mapping engine and the typed envelopes that enter it. Keeping the model small
and stable lets every mapper target the same shape regardless of which part
of the agent payload it consumes.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .utils.parsing import parse_float


class MetricRecord(BaseModel):
    """One named series batch in the sink's columnar wire format.

    Attributes
    ----------
    name: str
        Series name (e.g., "system.cpu", "statsd.requests").
    columns: List[str]
        Unique column names. Wide records start with ``time, hostname``;
        narrow records with ``time, value, hostname``.
    points: List[List[Any]]
        Rows aligned positionally with ``columns``. ``time`` is integer epoch
        milliseconds.
    """

    name: str
    columns: List[str]
    points: List[List[Any]] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_shape(self) -> "MetricRecord":
        if len(set(self.columns)) != len(self.columns):
            raise ValueError(f"duplicate columns in {self.name}: {self.columns}")
        width = len(self.columns)
        for row in self.points:
            if len(row) != width:
                raise ValueError(
                    f"row width {len(row)} does not match {width} columns in {self.name}"
                )
        return self

    def column(self, name: str) -> List[Any]:
        """Return every value of one column, in row order."""
        index = self.columns.index(name)
        return [row[index] for row in self.points]

    def as_dicts(self) -> List[dict]:
        """Return rows as column -> value mappings."""
        return [dict(zip(self.columns, row)) for row in self.points]


class Event(BaseModel):
    """A discrete agent event tagged with the source it was reported under.

    All original event fields are preserved as extra attributes; the model is
    frozen once built.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    source: str


class StatsdSeries(BaseModel):
    """One series of the typed statsd envelope.

    Every field is lenient: ``null`` or a wrong-shaped value becomes an
    empty/zero default instead of failing the whole envelope, so one bad
    series never drops its siblings.

    Attributes
    ----------
    metric: str
        Metric name; the record is named ``statsd.<metric>``. Empty when the
        agent omitted it (such series are skipped by the mapper).
    points: List[Any]
        ``[epoch_seconds, value]`` pairs. Seconds may be fractional.
    tags: Optional[List[str]]
        ``"key:value"`` strings.
    host: str
        Reporting host; may be empty (see sticky host handling).
    interval: float
        Flush interval in seconds.
    type: str
        Metric type reported by the agent (e.g., "gauge", "rate").
    device_name: Optional[str]
        Optional device the series refers to.
    """

    model_config = ConfigDict(extra="ignore")

    metric: str = ""
    points: List[Any] = Field(default_factory=list)
    tags: Optional[List[str]] = None
    host: str = ""
    interval: float = 0.0
    type: str = ""
    device_name: Optional[str] = None

    @field_validator("metric", "host", "type", mode="before")
    @classmethod
    def _text_or_empty(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("points", mode="before")
    @classmethod
    def _points_or_empty(cls, value: Any) -> List[Any]:
        return value if isinstance(value, list) else []

    @field_validator("tags", mode="before")
    @classmethod
    def _tag_strings(cls, value: Any) -> Optional[List[str]]:
        if not isinstance(value, list):
            return None
        return [str(tag) for tag in value if tag is not None]

    @field_validator("interval", mode="before")
    @classmethod
    def _interval_seconds(cls, value: Any) -> float:
        return parse_float(value)

    @field_validator("device_name", mode="before")
    @classmethod
    def _device_text(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)


class StatsdPayload(BaseModel):
    """Typed statsd submission: ``{"series": [...]}``.

    ``null`` series and entries that are not objects are dropped; a
    ``series`` value of any other shape still fails validation.
    """

    model_config = ConfigDict(extra="ignore")

    series: List[StatsdSeries] = Field(default_factory=list)

    @field_validator("series", mode="before")
    @classmethod
    def _object_entries(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [entry for entry in value if isinstance(entry, dict)]
        return value
