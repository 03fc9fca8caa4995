"""
Dashboard summary and session analytics — group-and-count over message rows.
"""

from __future__ import annotations

from datetime import date, timedelta, timezone, tzinfo
from typing import Optional, Union

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from chat_history.errors import GatewayError, ResolutionError
from chat_history.gateway import Gateway
from chat_history.models.message import Message, parse_timestamp
from chat_history.models.table import TableConfig
from chat_history.paginator import group_by_session
from chat_history.predicates import TIMESTAMP_COLUMN, range_end, range_start

RECENT_SESSIONS = 5
DEFAULT_RANGE_DAYS = 30


class StatValue(BaseModel):
    id: str
    title: str
    value: Union[str, int]


class SessionSummary(BaseModel):
    session_id: str
    message_count: int
    last_message_at: str


class DashboardSummary(BaseModel):
    table_id: str
    stats: list[StatValue] = Field(default_factory=list)
    recent_sessions: list[SessionSummary] = Field(default_factory=list)


class DayBucket(BaseModel):
    date: str
    positive: int = 0
    negative: int = 0


class PieSlice(BaseModel):
    name: str
    value: int
    color: str


class AnalyticsReport(BaseModel):
    table_id: str
    date_from: Optional[str] = None
    date_to: Optional[str] = None
    total_sessions: int = 0
    total_messages: int = 0
    positive_sessions: int = 0
    by_day: list[DayBucket] = Field(default_factory=list)
    pie: list[PieSlice] = Field(default_factory=list)


def recent_sessions(sessions: dict[str, list[Message]], limit: int = RECENT_SESSIONS) -> list[SessionSummary]:
    summaries = [
        SessionSummary(
            session_id=session_id,
            message_count=len(messages),
            last_message_at=max(messages, key=lambda m: m.timestamp).created_at,
        )
        for session_id, messages in sessions.items()
        if messages
    ]
    summaries.sort(key=lambda s: parse_timestamp(s.last_message_at), reverse=True)
    return summaries[:limit]


def sessions_by_day(config: TableConfig, sessions: dict[str, list[Message]]) -> list[DayBucket]:
    """Count sessions per UTC day of their first message, split by the classifier."""
    buckets: dict[str, DayBucket] = {}
    for messages in sessions.values():
        if not messages:
            continue
        day = min(m.timestamp for m in messages).astimezone(timezone.utc).date().isoformat()
        bucket = buckets.setdefault(day, DayBucket(date=day))
        if config.analytics.is_positive(messages):
            bucket.positive += 1
        else:
            bucket.negative += 1
    return [buckets[day] for day in sorted(buckets)]


class AnalyticsService:
    def __init__(self, gateway: Gateway, tz: Optional[tzinfo] = None):
        self._gateway = gateway
        self._tz = tz

    async def dashboard(self, config: Optional[TableConfig]) -> Optional[DashboardSummary]:
        if config is None:
            return None
        try:
            rows = await (
                self._gateway.select(config.table_name, "*", row_key=config.row_key)
                .order(TIMESTAMP_COLUMN, ascending=False)
                .execute()
            )
        except GatewayError as e:
            raise ResolutionError(f"Failed to load dashboard: {e}", details={"status": e.status}) from e

        try:
            data = [Message.model_validate(row) for row in rows]
            sessions = group_by_session(rows)
            return DashboardSummary(
                table_id=config.id,
                stats=[StatValue(id=s.id, title=s.title, value=s.get_value(data, sessions)) for s in config.stats],
                recent_sessions=recent_sessions(sessions),
            )
        except ValidationError as e:
            raise ResolutionError(f"Malformed row in {config.table_name}: {e}") from e

    async def analyze(
        self,
        config: Optional[TableConfig],
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Optional[AnalyticsReport]:
        """Session counts for a date range; defaults to the last 30 days."""
        if config is None:
            return None
        if date_from is None and date_to is None:
            end = today or date.today()
            date_from = (end - timedelta(days=DEFAULT_RANGE_DAYS)).isoformat()
            date_to = end.isoformat()

        analysis = config.analytics
        columns = ["created_at", "session_id", "message"]
        if "->" not in analysis.filter_column and analysis.filter_column not in columns:
            columns.append(analysis.filter_column)

        query = self._gateway.select(config.table_name, ",".join(columns), row_key=config.row_key)
        if date_from:
            query = query.gte(TIMESTAMP_COLUMN, range_start(date_from, self._tz))
        if date_to:
            query = query.lte(TIMESTAMP_COLUMN, range_end(date_to, self._tz))
        try:
            rows = await query.order(TIMESTAMP_COLUMN, ascending=True).execute()
        except GatewayError as e:
            raise ResolutionError(f"Failed to load analytics: {e}", details={"status": e.status}) from e

        try:
            sessions = group_by_session(rows)
            positive = sum(1 for messages in sessions.values() if analysis.is_positive(messages))
            by_day = sessions_by_day(config, sessions)
        except ValidationError as e:
            raise ResolutionError(f"Malformed row in {config.table_name}: {e}") from e

        logger.info(f"Analytics for {config.table_name}: {len(sessions)} sessions, {positive} positive")
        return AnalyticsReport(
            table_id=config.id,
            date_from=date_from,
            date_to=date_to,
            total_sessions=len(sessions),
            total_messages=len(rows),
            positive_sessions=positive,
            by_day=by_day,
            pie=[
                PieSlice(name=analysis.legend["positive"], value=positive, color=analysis.colors["positive"]),
                PieSlice(name=analysis.legend["negative"], value=len(sessions) - positive,
                         color=analysis.colors["negative"]),
            ],
        )
