"""
Session paginator — fixed-size pages over resolved session ids, with message
detail fetched only for the sessions on the requested page.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from loguru import logger
from pydantic import ValidationError

from chat_history.errors import GatewayError, ResolutionError
from chat_history.gateway import Gateway
from chat_history.models.message import Message
from chat_history.models.session import PAGE_SIZE, ResolvedSessions, SessionPage
from chat_history.models.table import TableConfig
from chat_history.predicates import TIMESTAMP_COLUMN


def page_slice(session_ids: list[str], page: int, page_size: int = PAGE_SIZE) -> list[str]:
    """Ids on a 1-based page. Out-of-range pages are empty, never an error."""
    if page < 1:
        return []
    start = (page - 1) * page_size
    return session_ids[start:start + page_size]


def group_by_session(rows: Iterable[dict[str, Any]]) -> dict[str, list[Message]]:
    """Group rows by session id, keeping their incoming order."""
    groups: dict[str, list[Message]] = {}
    for row in rows:
        message = Message.model_validate(row)
        groups.setdefault(message.session_id, []).append(message)
    return groups


class SessionPaginator:
    def __init__(self, gateway: Gateway, page_size: int = PAGE_SIZE):
        self._gateway = gateway
        self._page_size = page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    async def fetch_details(self, config: TableConfig, session_ids: list[str]) -> dict[str, list[Message]]:
        rows = await (
            self._gateway.select(config.table_name, "*", row_key=config.row_key)
            .in_("session_id", session_ids)
            .order(TIMESTAMP_COLUMN, ascending=True)
            .execute()
        )
        return group_by_session(rows)

    async def page(self, config: Optional[TableConfig], resolved: ResolvedSessions, page: int) -> SessionPage:
        empty = SessionPage(page=page, page_size=self._page_size, total_count=resolved.total_count)
        if config is None:
            return empty

        page_ids = page_slice(resolved.session_ids, page, self._page_size)
        if not page_ids:
            logger.debug(f"Page {page} of {resolved.total_pages(self._page_size)} is empty; skipping detail fetch")
            return empty

        try:
            groups = await self.fetch_details(config, page_ids)
        except GatewayError as e:
            raise ResolutionError(f"Failed to load page {page}: {e}", details={"status": e.status}) from e
        except ValidationError as e:
            raise ResolutionError(f"Malformed row in {config.table_name}: {e}") from e

        return SessionPage(
            page=page,
            page_size=self._page_size,
            total_count=resolved.total_count,
            order=page_ids,
            groups=groups,
        )
