"""
AsyncChatHistory / ChatHistory — composition roots for the history core.

The gateway is built once from settings and injected into every component.
"""

import asyncio
from datetime import date
from typing import Any, Optional

from chat_history.analytics import AnalyticsReport, AnalyticsService, DashboardSummary
from chat_history.config import Settings, load_settings
from chat_history.export import DEFAULT_CHUNK, CsvExport, ExportAssembler
from chat_history.gateway import Gateway
from chat_history.history import HistoryView
from chat_history.models.filters import FilterSet
from chat_history.models.session import ResolvedSessions, SessionPage
from chat_history.models.table import TableConfig
from chat_history.paginator import SessionPaginator
from chat_history.registry import TableRegistry
from chat_history.resolver import SessionResolver


class AsyncChatHistory:
    """Async client (primary)."""

    def __init__(
        self,
        gateway: Gateway,
        registry: Optional[TableRegistry] = None,
        settings: Optional[Settings] = None,
    ):
        tz = settings.tz if settings else None
        self.gateway = gateway
        self.registry = registry or TableRegistry.default(settings.TABLE_ID if settings else None)
        self.resolver = SessionResolver(gateway, tz=tz)
        self.paginator = SessionPaginator(gateway)
        self.exporter = ExportAssembler(
            gateway, self.resolver, chunk_size=settings.IN_FILTER_CHUNK if settings else DEFAULT_CHUNK,
        )
        self.analytics = AnalyticsService(gateway, tz=tz)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs: Any) -> "AsyncChatHistory":
        settings = settings or load_settings()
        return cls(Gateway.from_settings(settings), settings=settings, **kwargs)

    @property
    def current(self) -> Optional[TableConfig]:
        return self.registry.current

    def select_table(self, table_id: str) -> TableConfig:
        return self.registry.select(table_id)

    def history_view(self, filters: Optional[FilterSet] = None) -> HistoryView:
        return HistoryView(self.registry, self.resolver, self.paginator, self.exporter, filters=filters)

    async def resolve(self, filters: FilterSet) -> ResolvedSessions:
        return await self.resolver.resolve(self.current, filters)

    async def page(self, filters: FilterSet) -> SessionPage:
        """Resolve and load the page named by `filters.page`."""
        resolved = await self.resolver.resolve(self.current, filters)
        return await self.paginator.page(self.current, resolved, filters.page)

    async def export(self, filters: FilterSet, on: Optional[date] = None) -> Optional[CsvExport]:
        return await self.exporter.export(self.current, filters, on=on)

    async def dashboard(self) -> Optional[DashboardSummary]:
        return await self.analytics.dashboard(self.current)

    async def analyze(self, date_from: Optional[str] = None, date_to: Optional[str] = None) -> Optional[AnalyticsReport]:
        return await self.analytics.analyze(self.current, date_from, date_to)

    async def close(self) -> None:
        await self.gateway.close()


class ChatHistory:
    """Sync wrapper around AsyncChatHistory. Runs the event loop internally."""

    def __init__(self, gateway: Optional[Gateway] = None, **kwargs: Any):
        if gateway is None:
            self._async = AsyncChatHistory.from_settings(**kwargs)
        else:
            self._async = AsyncChatHistory(gateway, **kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def registry(self) -> TableRegistry:
        return self._async.registry

    @property
    def current(self) -> Optional[TableConfig]:
        return self._async.current

    def select_table(self, table_id: str) -> TableConfig:
        return self._async.select_table(table_id)

    def resolve(self, filters: FilterSet) -> ResolvedSessions:
        return self._run(self._async.resolve(filters))

    def page(self, filters: FilterSet) -> SessionPage:
        return self._run(self._async.page(filters))

    def export(self, filters: FilterSet, on: Optional[date] = None) -> Optional[CsvExport]:
        return self._run(self._async.export(filters, on=on))

    def dashboard(self) -> Optional[DashboardSummary]:
        return self._run(self._async.dashboard())

    def analyze(self, date_from: Optional[str] = None, date_to: Optional[str] = None) -> Optional[AnalyticsReport]:
        return self._run(self._async.analyze(date_from, date_to))

    def close(self) -> None:
        self._run(self._async.close())
        self._loop.close()
