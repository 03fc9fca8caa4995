"""
Export assembler — the full filtered population, one CSV row per message.

Sessions are resolved exactly as the on-screen history resolves them; only
the page slicing is skipped.
"""

from __future__ import annotations

import csv
import io
from datetime import date
from pathlib import Path
from typing import Any, Iterable, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError

from chat_history.errors import ExportEmptyError, ExportError, GatewayError, ResolutionError
from chat_history.gateway import Gateway
from chat_history.models.filters import FilterSet
from chat_history.models.message import Message
from chat_history.models.table import TableConfig
from chat_history.predicates import TIMESTAMP_COLUMN
from chat_history.resolver import SessionResolver

CSV_HEADER = ("session_id", "created_at", "message_content")
DEFAULT_CHUNK = 200


def export_filename(on: Optional[date] = None) -> str:
    return f"historial_chat_{(on or date.today()).isoformat()}.csv"


def flatten(message: Message) -> tuple[str, str, str]:
    return message.session_id, message.created_at, message.text.replace("\n", " ")


def to_csv(messages: Iterable[Message]) -> str:
    """Minimal quoting: only fields with a comma, quote or line break are quoted."""
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for message in messages:
        writer.writerow(flatten(message))
    return out.getvalue()


class CsvExport(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str
    content: bytes
    session_count: int
    row_count: int

    def write_to(self, directory: Path | str = ".") -> Path:
        path = Path(directory) / self.filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.content)
        return path


def _chunks(items: list[str], size: int) -> Iterable[list[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class ExportAssembler:
    def __init__(self, gateway: Gateway, resolver: SessionResolver, chunk_size: int = DEFAULT_CHUNK):
        self._gateway = gateway
        self._resolver = resolver
        self._chunk_size = chunk_size

    async def fetch_messages(self, config: TableConfig, session_ids: list[str]) -> list[Message]:
        rows: list[dict[str, Any]] = []
        for chunk in _chunks(session_ids, self._chunk_size):
            rows.extend(
                await self._gateway.select(config.table_name, "*", row_key=config.row_key)
                .in_("session_id", chunk)
                .order(TIMESTAMP_COLUMN, ascending=True)
                .execute()
            )
        messages = [Message.model_validate(row) for row in rows]
        # chunks are each sorted; merge them back into one chronological sequence
        messages.sort(key=lambda m: m.timestamp)
        return messages

    async def export(
        self, config: Optional[TableConfig], filters: FilterSet, on: Optional[date] = None,
    ) -> Optional[CsvExport]:
        """Build the CSV for `filters`. Returns None without a table configuration.

        Raises ExportEmptyError when nothing matches and ExportError on backend failure.
        """
        if config is None:
            return None

        try:
            resolved = await self._resolver.resolve(config, filters)
        except ResolutionError as e:
            raise ExportError(f"Failed to export: {e}", details=e.details) from e

        if not resolved.session_ids:
            logger.warning(f"Nothing to export from {config.table_name} for {filters.to_query_params()}")
            raise ExportEmptyError()

        try:
            messages = await self.fetch_messages(config, resolved.session_ids)
        except GatewayError as e:
            raise ExportError(f"Failed to export: {e}", details={"status": e.status}) from e
        except ValidationError as e:
            raise ExportError(f"Malformed row in {config.table_name}: {e}") from e

        export = CsvExport(
            filename=export_filename(on),
            content=to_csv(messages).encode("utf-8"),
            session_count=resolved.total_count,
            row_count=len(messages),
        )
        logger.info(f"Exported {export.row_count} messages from {export.session_count} sessions to {export.filename}")
        return export
