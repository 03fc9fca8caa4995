"""
Remote Data Gateway — one configured connection to the table store, shared
by every core component that reads from it.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from loguru import logger

from chat_history.config import Settings
from chat_history.errors import GatewayError
from chat_history.transport.http import HttpClient
from chat_history.transport.query import Query

DEFAULT_BATCH_SIZE = 1000


class Gateway:
    """Executes Query objects, paging through the service's row cap with limit/offset."""

    def __init__(self, http: HttpClient, batch_size: int = DEFAULT_BATCH_SIZE):
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self._http = http
        self._batch_size = batch_size

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> Gateway:
        http = HttpClient(
            base_url=settings.SUPABASE_URL,
            api_key=settings.SUPABASE_ANON_KEY,
            timeout=settings.REQUEST_TIMEOUT,
            transport=transport,
        )
        return cls(http, batch_size=settings.FETCH_BATCH_SIZE)

    def select(self, table: str, columns: str = "*", row_key: Optional[str] = "id") -> Query:
        return Query(self, table, columns, row_key=row_key)

    async def run(self, query: Query) -> list[dict[str, Any]]:
        params = query.to_params(stable=True)
        rows: list[dict[str, Any]] = []
        offset = 0
        while True:
            batch = await self._http.get(
                f"/{query.table}",
                params + [("limit", str(self._batch_size)), ("offset", str(offset))],
            )
            if not isinstance(batch, list):
                raise GatewayError(f"Unexpected response shape from {query.table}: {type(batch).__name__}")
            if not batch:
                break
            rows.extend(batch)
            # the service's max-rows cap may be lower than batch_size
            offset += len(batch)
        logger.debug(f"{query!r} -> {len(rows)} rows")
        return rows

    async def close(self) -> None:
        await self._http.close()
