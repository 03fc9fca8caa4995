"""
Table configuration registry — loaded once, read-only, one configuration current at a time.
"""

from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger

from chat_history.errors import ConfigurationMissingError
from chat_history.models.table import TableConfig
from chat_history.tables import BUILTIN_TABLES


class TableRegistry:
    def __init__(self, configs: Iterable[TableConfig], current_id: Optional[str] = None):
        self._configs: dict[str, TableConfig] = {}
        for config in configs:
            if config.id in self._configs:
                raise ValueError(f"Duplicate table configuration id: {config.id!r}")
            self._configs[config.id] = config
        self._current_id: Optional[str] = next(iter(self._configs), None)
        if current_id is not None:
            self.select(current_id)

    @classmethod
    def default(cls, current_id: Optional[str] = None) -> TableRegistry:
        return cls(BUILTIN_TABLES, current_id=current_id)

    def __len__(self) -> int:
        return len(self._configs)

    def __contains__(self, table_id: str) -> bool:
        return table_id in self._configs

    def ids(self) -> list[str]:
        return list(self._configs)

    def all(self) -> list[TableConfig]:
        return list(self._configs.values())

    def get(self, table_id: str) -> TableConfig:
        try:
            return self._configs[table_id]
        except KeyError:
            raise ConfigurationMissingError(
                f"Unknown table {table_id!r}. Available: {', '.join(self.ids()) or 'none'}"
            ) from None

    @property
    def current(self) -> Optional[TableConfig]:
        return self._configs.get(self._current_id) if self._current_id else None

    def select(self, table_id: str) -> TableConfig:
        config = self.get(table_id)
        self._current_id = table_id
        logger.debug(f"Current table: {table_id}")
        return config
