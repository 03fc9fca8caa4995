"""
Message model — one chat turn as stored in the history table.
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter

_datetime = TypeAdapter(datetime)
_AI_MARKER = re.compile(r"IA:|IA\n")
_USER_PREFIX = re.compile(r"^\s*(humano|usuario):\s*", re.IGNORECASE)


def extract_text(payload: Any) -> str:
    """Normalize a message payload to display text.

    Payloads are either an object carrying a `text` member or an opaque scalar.
    """
    if payload is None:
        return ""
    if isinstance(payload, dict):
        if "text" in payload:
            return str(payload["text"])
        return json.dumps(payload, ensure_ascii=False)
    if isinstance(payload, list):
        return json.dumps(payload, ensure_ascii=False)
    return str(payload)


def parse_timestamp(value: Any) -> datetime:
    """Parse a stored timestamp; naive values are taken as UTC."""
    parsed = value if isinstance(value, datetime) else _datetime.validate_python(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def split_exchange(text: str) -> Optional[tuple[str, str]]:
    """Split a "Humano: ... IA: ..." transcript into (user, assistant), or None."""
    lowered = text.lower()
    if "humano:" not in lowered and "usuario:" not in lowered:
        return None
    parts = _AI_MARKER.split(text, maxsplit=1)
    if len(parts) < 2:
        return None
    user = _USER_PREFIX.sub("", parts[0]).strip()
    return user, parts[1].strip()


class Message(BaseModel):
    """A row of the history table. Table-specific columns are kept as extras."""

    model_config = ConfigDict(extra="allow", frozen=True, coerce_numbers_to_str=True)

    id: Any = None
    session_id: str
    message: Any = None
    created_at: str

    @property
    def text(self) -> str:
        return extract_text(self.message)

    @property
    def timestamp(self) -> datetime:
        return parse_timestamp(self.created_at)

    @property
    def extra(self) -> dict[str, Any]:
        return dict(self.model_extra or {})
