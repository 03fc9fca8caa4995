"""
Filter-predicate builder: turns a table configuration and a Filter Set into
backend constraints. The on-screen history and the CSV export both build
their queries from here, so they always see the same population of sessions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone, tzinfo
from typing import Optional

from chat_history.models.filters import FilterSet, is_active
from chat_history.models.message import parse_timestamp
from chat_history.models.table import FilterDef, TableConfig
from chat_history.transport.query import Constraint

SEARCH_FILTER_ID = "q"
TEXT_COLUMN = "message->>text"
TIMESTAMP_COLUMN = "created_at"
REQUESTED = "requested"

END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class SpecialFilter:
    """Session-level refinement from the configuration's select filter.

    `constraint` selects the positive rows; None means every row is positive.
    With `include` the result keeps candidates in the positive set, otherwise
    it drops them.
    """
    filter_id: str
    value: str
    constraint: Optional[Constraint]

    @property
    def include(self) -> bool:
        return self.value == REQUESTED

    def refine(self, candidates: set[str], positive: set[str]) -> set[str]:
        return candidates & positive if self.include else candidates - positive


@dataclass(frozen=True)
class Predicate:
    constraints: tuple[Constraint, ...] = ()
    special: Optional[SpecialFilter] = None
    skipped: tuple[str, ...] = field(default=())


def to_iso(moment: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a `Z` suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _as_date(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def range_start(value: str, tz: Optional[tzinfo] = None) -> str:
    """Inclusive lower bound. Bare dates start at UTC midnight; naive datetimes are read in `tz`."""
    day = _as_date(value)
    if day is not None:
        return to_iso(datetime.combine(day, time.min, tzinfo=timezone.utc))
    return to_iso(_parse_moment(value, tz))


def range_end(value: str, tz: Optional[tzinfo] = None) -> str:
    """Inclusive upper bound covering the whole day in `tz` (process local zone when None)."""
    day = _as_date(value)
    if day is None:
        day = _parse_moment(value, tz).astimezone(tz).date()
    end = datetime.combine(day, END_OF_DAY)
    end = end.replace(tzinfo=tz) if tz is not None else end.astimezone()
    return to_iso(end)


def _parse_moment(value: str, tz: Optional[tzinfo]) -> datetime:
    moment = parse_timestamp(value) if _has_offset(value) else datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=tz) if tz is not None else moment.astimezone()
    return moment


def _has_offset(value: str) -> bool:
    tail = value[10:]
    return tail.endswith("Z") or "+" in tail or "-" in tail


def text_column(filter_def: FilterDef) -> str:
    return TEXT_COLUMN if filter_def.id == SEARCH_FILTER_ID else filter_def.id


def filter_constraint(filter_def: FilterDef, value: str, tz: Optional[tzinfo] = None) -> Optional[Constraint]:
    """Constraint for one text/date filter value, or None when it has no backend form."""
    if filter_def.kind == "text":
        return Constraint("ilike", text_column(filter_def), f"%{value}%")
    if filter_def.kind == "date":
        if "from" in filter_def.id:
            return Constraint("gte", TIMESTAMP_COLUMN, range_start(value, tz))
        if "to" in filter_def.id:
            return Constraint("lte", TIMESTAMP_COLUMN, range_end(value, tz))
    return None


def special_constraint(filter_def: FilterDef) -> Optional[Constraint]:
    column = filter_def.db_column
    if filter_def.db_column_type == "boolean" and column:
        return Constraint("eq", column, True)
    if filter_def.db_column_type == "text_match" and column and filter_def.db_match_string:
        return Constraint("ilike", column, f"%{filter_def.db_match_string}%")
    return None


def build_predicate(config: TableConfig, filters: FilterSet, tz: Optional[tzinfo] = None) -> Predicate:
    """Constraints for the candidate query plus the optional special-filter refinement.

    The page number never contributes.
    """
    constraints: list[Constraint] = []
    skipped: list[str] = []
    for filter_def in config.filters:
        if filter_def.kind == "select":
            continue
        value = filters.active(filter_def.id)
        if value is None:
            continue
        try:
            constraint = filter_constraint(filter_def, value, tz)
        except ValueError:
            constraint = None
        if constraint is None:
            skipped.append(filter_def.id)
            continue
        constraints.append(constraint)

    special = None
    special_def = config.special_filter
    if special_def is not None:
        value = filters.active(special_def.id)
        if value is not None:
            special = SpecialFilter(special_def.id, value, special_constraint(special_def))

    return Predicate(tuple(constraints), special, tuple(skipped))
