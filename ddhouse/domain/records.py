"""Grouping engine and record assembler.

Every mapper builds its rows through :class:`RecordAssembler`, which owns the
single implementation of the tag merge rule:

- a ``hostname`` tag with a non-empty value overwrites the row's host slot;
- any other tag whose key collides with a column already present in the row
  (the reserved ``time``/``hostname`` columns, a field, or an earlier tag) is
  renamed with a leading ``_`` until it is unique;
- every remaining tag becomes a new column.

Rows within one record may carry different tag sets; columns are the union in
first-seen order and missing cells are ``None``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import MetricRecord

logger = logging.getLogger(__name__)

TIME = "time"
HOSTNAME = "hostname"
VALUE = "value"

WIDE_COLUMNS: Tuple[str, ...] = (TIME, HOSTNAME)
NARROW_COLUMNS: Tuple[str, ...] = (TIME, VALUE, HOSTNAME)


def group_of(name: str) -> Tuple[str, str]:
    """Split a canonical dotted metric name into ``(group, field)``.

    - three or more segments: the first two form the group, the remainder
      (dots included) is the field: ``system.load.norm.1`` ->
      ``("system.load", "norm.1")``;
    - exactly two segments: ``("system", "uptime")``;
    - a single segment has no field of its own and maps to
      ``(name, "value")``.
    """
    parts = name.split(".", 2)
    if len(parts) > 2:
        return f"{parts[0]}.{parts[1]}", parts[2]
    if len(parts) == 2:
        return parts[0], parts[1]
    return parts[0], VALUE


def explode_tags(tags: Optional[Iterable[Any]]) -> Dict[str, Any]:
    """Turn ``["key:value", ...]`` into a mapping.

    Only the first ``:`` separates key from value. A tag without a separator
    maps to an empty value. Later duplicates win.
    """
    exploded: Dict[str, Any] = {}
    for tag in tags or ():
        key, _, value = str(tag).partition(":")
        exploded[key] = value
    return exploded


class RecordAssembler:
    """Accumulate rows for one named record and apply the tag merge rule.

    Parameters
    ----------
    name: str
        Record name.
    leading: Sequence[str]
        Columns every row starts with, in order. Defaults to ``time,
        hostname``.
    """

    def __init__(self, name: str, leading: Sequence[str] = WIDE_COLUMNS) -> None:
        self.name = name
        self._columns: List[str] = []
        self._seen: set = set()
        self._rows: List[Dict[str, Any]] = []
        for column in leading:
            self._add_column(column)

    def __len__(self) -> int:
        return len(self._rows)

    def _add_column(self, column: str) -> None:
        if column not in self._seen:
            self._seen.add(column)
            self._columns.append(column)

    def add_row(
        self,
        values: Mapping[str, Any],
        tags: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Add one row built from a base value map plus a tag map.

        ``values`` must include the leading columns (``time``, ``hostname``,
        ...); its remaining keys become field columns in iteration order.
        Returns the merged row as a column -> value mapping.
        """
        row: Dict[str, Any] = {}
        for key, value in values.items():
            row[key] = value
            self._add_column(key)
        for key, value in (tags or {}).items():
            if key == HOSTNAME and value:
                row[HOSTNAME] = value
                continue
            column = key
            while column in row:
                column = "_" + column
            row[column] = value
            self._add_column(column)
        self._rows.append(row)
        return row

    def build(self) -> MetricRecord:
        """Return the record with every row padded to the full column set."""
        columns = list(self._columns)
        points = [[row.get(column) for column in columns] for row in self._rows]
        return MetricRecord(name=self.name, columns=columns, points=points)


class GroupAccumulator:
    """Merge ``(canonical_path, value)`` pairs into one wide row per group.

    Lives for a single mapping pass. Each group becomes exactly one
    :class:`MetricRecord` with a single row stamped with the pass's host and
    timestamp, plus whatever tags were attached to the group.
    """

    def __init__(self) -> None:
        self._fields: Dict[str, Dict[str, Any]] = {}
        self._tags: Dict[str, Dict[str, Any]] = {}
        self._times: Dict[str, int] = {}

    def __contains__(self, group: str) -> bool:
        return group in self._fields

    def __len__(self) -> int:
        return len(self._fields)

    def add(
        self,
        path: str,
        value: Any,
        tags: Optional[Mapping[str, Any]] = None,
        timestamp: Optional[int] = None,
    ) -> Tuple[str, str]:
        """Place one value in its group's row; returns ``(group, field)``."""
        group, field = group_of(path)
        self.add_field(group, field, value, tags=tags, timestamp=timestamp)
        return group, field

    def add_field(
        self,
        group: str,
        field: str,
        value: Any,
        tags: Optional[Mapping[str, Any]] = None,
        timestamp: Optional[int] = None,
    ) -> None:
        """Place one already-split ``(group, field)`` value."""
        self._fields.setdefault(group, {})[field] = value
        group_tags = self._tags.setdefault(group, {})
        if tags:
            group_tags.update(tags)
        if timestamp is not None:
            self._times.setdefault(group, timestamp)

    def records(self, hostname: str, timestamp: int) -> List[MetricRecord]:
        """Build one record per group.

        ``timestamp`` is used for groups that never received an explicit
        time of their own.
        """
        records: List[MetricRecord] = []
        for group, fields in self._fields.items():
            assembler = RecordAssembler(group)
            base: Dict[str, Any] = {
                TIME: self._times.get(group, timestamp),
                HOSTNAME: hostname,
            }
            # Field names equal to a leading column are renamed like tags
            for field, value in fields.items():
                column = field
                while column in base:
                    column = "_" + column
                base[column] = value
            assembler.add_row(base, self._tags.get(group))
            records.append(assembler.build())
        return records
