"""
Session resolver — which sessions match a Filter Set, newest first.

Two round-trips at most: a candidate query over (session_id, created_at)
pairs and, when the special filter is set, a query for the positive
session ids. Message bodies are never fetched here.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Any, Iterable, Optional

from loguru import logger
from pydantic import ValidationError

from chat_history.errors import GatewayError, ResolutionError
from chat_history.gateway import Gateway
from chat_history.models.filters import FilterSet
from chat_history.models.message import parse_timestamp
from chat_history.models.session import ResolvedSessions
from chat_history.models.table import TableConfig
from chat_history.predicates import TIMESTAMP_COLUMN, Predicate, SpecialFilter, build_predicate


def latest_activity(rows: Iterable[dict[str, Any]]) -> dict[str, datetime]:
    """Max created_at per session id."""
    latest: dict[str, datetime] = {}
    for row in rows:
        session_id = row.get("session_id")
        created_at = row.get(TIMESTAMP_COLUMN)
        if session_id is None or created_at is None:
            continue
        session_id = str(session_id)
        moment = parse_timestamp(created_at)
        if session_id not in latest or moment > latest[session_id]:
            latest[session_id] = moment
    return latest


def order_sessions(session_ids: Iterable[str], last_activity: dict[str, datetime]) -> list[str]:
    """Newest last activity first; equal timestamps fall back to session id ascending."""
    return sorted(sorted(session_ids), key=last_activity.__getitem__, reverse=True)


class SessionResolver:
    def __init__(self, gateway: Gateway, tz: Optional[tzinfo] = None):
        self._gateway = gateway
        self._tz = tz

    def predicate(self, config: TableConfig, filters: FilterSet) -> Predicate:
        return build_predicate(config, filters, self._tz)

    async def candidates(self, config: TableConfig, predicate: Predicate) -> dict[str, datetime]:
        query = (
            self._gateway.select(config.table_name, f"session_id,{TIMESTAMP_COLUMN}", row_key=config.row_key)
            .apply(predicate.constraints)
        )
        return latest_activity(await query.execute())

    async def positive_ids(self, config: TableConfig, special: SpecialFilter) -> set[str]:
        query = self._gateway.select(config.table_name, "session_id", row_key=config.row_key)
        if special.constraint is not None:
            query = query.apply([special.constraint])
        rows = await query.execute()
        return {str(row["session_id"]) for row in rows if row.get("session_id") is not None}

    async def resolve(self, config: Optional[TableConfig], filters: FilterSet) -> ResolvedSessions:
        if config is None:
            return ResolvedSessions()

        predicate = self.predicate(config, filters)
        if predicate.skipped:
            logger.warning(f"Ignoring filters without a backend form: {', '.join(predicate.skipped)}")
        logger.debug(f"Resolving {config.table_name}: {len(predicate.constraints)} constraints, special={predicate.special}")

        try:
            last_activity = await self.candidates(config, predicate)
            final = set(last_activity)
            if predicate.special is not None:
                positive = await self.positive_ids(config, predicate.special)
                final = predicate.special.refine(final, positive)
        except GatewayError as e:
            raise ResolutionError(f"Failed to resolve sessions: {e}", details={"status": e.status}) from e
        except ValidationError as e:
            raise ResolutionError(f"Malformed row in {config.table_name}: {e}") from e

        ordered = order_sessions(final, last_activity)
        logger.info(f"Resolved {len(ordered)} sessions from {len(last_activity)} candidates in {config.table_name}")
        return ResolvedSessions(session_ids=ordered, last_activity={sid: last_activity[sid] for sid in ordered})
