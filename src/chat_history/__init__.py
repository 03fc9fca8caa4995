"""
chat-history-dashboard — read-only history and analytics for chatbot conversation logs.

Resolves, pages and exports conversation sessions stored as message rows
in a hosted PostgREST table.
"""

from chat_history.client import ChatHistory, AsyncChatHistory
from chat_history.errors import (
    ChatHistoryError,
    ConfigurationMissingError,
    ExportEmptyError,
    ExportError,
    GatewayError,
    ResolutionError,
)
from chat_history.gateway import Gateway
from chat_history.history import HistoryView, ResultStatus
from chat_history.models.filters import FilterSet
from chat_history.models.session import PAGE_SIZE
from chat_history.registry import TableRegistry

__version__ = "0.1.0"
__all__ = [
    "ChatHistory",
    "AsyncChatHistory",
    "Gateway",
    "HistoryView",
    "ResultStatus",
    "FilterSet",
    "TableRegistry",
    "PAGE_SIZE",
    "ChatHistoryError",
    "GatewayError",
    "ResolutionError",
    "ExportError",
    "ExportEmptyError",
    "ConfigurationMissingError",
]
