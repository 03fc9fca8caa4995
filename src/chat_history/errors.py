"""
Chat history error types.

Gateway failures are never retried here; callers decide whether to re-run
the action that triggered the fetch.
"""

from typing import Any, Optional


class ChatHistoryError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details


class GatewayError(ChatHistoryError):
    """A backend call failed (network, query syntax, permission)."""

    def __init__(self, message: str, status: Optional[int] = None, details: Optional[dict[str, Any]] = None):
        super().__init__("gateway_error", message, details)
        self.status = status


class ResolutionError(ChatHistoryError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("resolution_error", message, details)


class ExportError(ChatHistoryError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("export_error", message, details)


class ExportEmptyError(ChatHistoryError):
    """Nothing matched the current filters at export time. Not a failure."""

    def __init__(self, message: str = "No data to export for the selected filters."):
        super().__init__("export_empty", message)


class ConfigurationMissingError(ChatHistoryError):
    def __init__(self, message: str, code: str = "configuration_missing"):
        super().__init__(code, message)
