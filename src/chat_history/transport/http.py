"""
REST HTTP client for the hosted table store (PostgREST over HTTPS).
"""

from typing import Any, Optional, Sequence

import httpx
from loguru import logger

from chat_history.errors import GatewayError

REST_PREFIX = "/rest/v1"


class HttpClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}{REST_PREFIX}",
            headers={
                "User-Agent": "chat-history-dashboard/0.1.0",
                "Accept": "application/json",
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
            },
            timeout=timeout,
            transport=transport,
        )

    @staticmethod
    def _error_message(resp: httpx.Response) -> tuple[str, Optional[dict[str, Any]]]:
        """PostgREST errors look like { "code", "message", "details", "hint" }."""
        try:
            body = resp.json()
        except ValueError:
            return f"HTTP {resp.status_code}: {resp.text[:200]}", None
        if isinstance(body, dict) and body.get("message"):
            return f"HTTP {resp.status_code}: {body['message']}", body
        return f"HTTP {resp.status_code}: {resp.text[:200]}", None

    async def get(self, path: str, params: Optional[Sequence[tuple[str, str]]] = None) -> Any:
        try:
            resp = await self._client.get(path, params=list(params or []))
        except httpx.HTTPError as e:
            logger.error(f"GET {path} failed: {e}")
            raise GatewayError(f"Request to {path} failed: {e}") from e
        if resp.status_code >= 400:
            message, details = self._error_message(resp)
            logger.error(f"GET {path} -> {message}")
            raise GatewayError(message, status=resp.status_code, details=details)
        return resp.json()

    async def close(self) -> None:
        await self._client.aclose()
