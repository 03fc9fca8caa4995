"""
History view state — owns the Filter Set and applies fetch results.

Every refresh is tagged with a generation number. Fetches may complete out
of order; only the result of the most recently issued refresh is applied.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Mapping, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict

from chat_history.errors import ChatHistoryError
from chat_history.export import CsvExport, ExportAssembler
from chat_history.models.filters import FilterSet
from chat_history.models.session import SessionPage
from chat_history.paginator import SessionPaginator
from chat_history.registry import TableRegistry
from chat_history.resolver import SessionResolver


class ResultStatus(str, Enum):
    INACTIVE = "inactive"  # no table configuration selected
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


class HistoryResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ResultStatus
    filters: FilterSet
    page: Optional[SessionPage] = None
    error: Optional[str] = None
    generation: int = 0
    stale: bool = False


class HistoryView:
    def __init__(
        self,
        registry: TableRegistry,
        resolver: SessionResolver,
        paginator: SessionPaginator,
        exporter: ExportAssembler,
        filters: Optional[FilterSet] = None,
    ):
        self._registry = registry
        self._resolver = resolver
        self._paginator = paginator
        self._exporter = exporter
        self._filters = filters or FilterSet()
        self._generation = 0
        self._state = HistoryResult(status=ResultStatus.INACTIVE, filters=self._filters)

    @property
    def filters(self) -> FilterSet:
        return self._filters

    @property
    def state(self) -> HistoryResult:
        """The last applied result."""
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    def set_filter(self, filter_id: str, value: Optional[str]) -> FilterSet:
        self._filters = self._filters.with_filter(filter_id, value)
        return self._filters

    def set_page(self, page: int) -> FilterSet:
        self._filters = self._filters.with_page(page)
        return self._filters

    def apply_preset(self, preset: str, today: Optional[date] = None) -> FilterSet:
        self._filters = self._filters.with_preset(preset, today)
        return self._filters

    def load_query_params(self, params: Mapping[str, str]) -> FilterSet:
        self._filters = FilterSet.from_query_params(params)
        return self._filters

    def query_params(self) -> dict[str, str]:
        return self._filters.to_query_params()

    async def refresh(self) -> HistoryResult:
        self._generation += 1
        generation = self._generation
        filters = self._filters
        config = self._registry.current

        if config is None:
            result = HistoryResult(status=ResultStatus.INACTIVE, filters=filters, generation=generation)
        else:
            try:
                resolved = await self._resolver.resolve(config, filters)
                page = await self._paginator.page(config, resolved, filters.page)
                status = ResultStatus.EMPTY if page.is_empty else ResultStatus.OK
                result = HistoryResult(status=status, filters=filters, page=page, generation=generation)
            except ChatHistoryError as e:
                logger.error(f"History refresh {generation} failed: {e}")
                result = HistoryResult(
                    status=ResultStatus.FAILED,
                    filters=filters,
                    page=self._state.page,
                    error=str(e),
                    generation=generation,
                )

        if generation != self._generation:
            logger.debug(f"Discarding stale refresh {generation}; latest is {self._generation}")
            return result.model_copy(update={"stale": True})
        self._state = result
        return result

    async def export(self, on: Optional[date] = None) -> Optional[CsvExport]:
        return await self._exporter.export(self._registry.current, self._filters, on=on)
