"""
Session models — sessions are derived from message rows, never stored.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field

from chat_history.models.message import Message
from chat_history.models.table import Classifier

PAGE_SIZE = 15


class Session(BaseModel):
    """Messages sharing a session id, oldest first.

    Last activity and classification are computed from the member list on
    every access, so they always reflect the current members.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
    messages: list[Message] = Field(default_factory=list)

    @property
    def last_activity(self) -> Optional[datetime]:
        return max((m.timestamp for m in self.messages), default=None)

    @property
    def first(self) -> Optional[Message]:
        return self.messages[0] if self.messages else None

    def classify(self, is_positive: Classifier) -> bool:
        return is_positive(list(self.messages))


class ResolvedSessions(BaseModel):
    """Resolver output: session ids ordered by last activity, newest first."""

    model_config = ConfigDict(frozen=True)

    session_ids: list[str] = Field(default_factory=list)
    last_activity: dict[str, datetime] = Field(default_factory=dict)

    @property
    def total_count(self) -> int:
        return len(self.session_ids)

    def total_pages(self, page_size: int = PAGE_SIZE) -> int:
        return math.ceil(self.total_count / page_size)


class SessionPage(BaseModel):
    """One page of sessions. Render in `order`; `groups` has no meaningful order."""

    model_config = ConfigDict(frozen=True)

    page: int = 1
    page_size: int = PAGE_SIZE
    total_count: int = 0
    order: list[str] = Field(default_factory=list)
    groups: dict[str, list[Message]] = Field(default_factory=dict)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size)

    @property
    def is_empty(self) -> bool:
        return not self.order

    def sessions(self) -> Iterator[Session]:
        for session_id in self.order:
            messages = self.groups.get(session_id)
            if messages:
                yield Session(session_id=session_id, messages=messages)
