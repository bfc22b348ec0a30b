from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from noteflow.core.exceptions import GatewayUnavailableError, RemoteError
from noteflow.core.settings import Settings, get_settings
from .base import RemoteGateway


class HttpGateway(RemoteGateway):
    """Remote gateway speaking JSON over HTTP to the local backend process.

    Every operation is ``POST {backend_url}/invoke/{operation}`` with body
    ``{"args": {...}}``. The backend answers ``{"ok": true, "data": ...}`` or
    ``{"ok": false, "error": "..."}``. No timeout is applied: a hung call
    stays pending until the backend answers or the caller cancels it.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.logger = logging.getLogger(__name__)
        headers = {}
        if self.settings.backend_token:
            headers["Authorization"] = f"Bearer {self.settings.backend_token}"
        self._client = client or httpx.AsyncClient(
            base_url=self.settings.backend_url.rstrip("/"),
            headers=headers,
            timeout=None,
        )

    async def invoke(self, operation: str, args: Dict[str, Any]) -> Any:
        self.logger.debug("invoke %s", operation)
        try:
            response = await self._client.post(f"/invoke/{operation}", json={"args": args})
        except httpx.HTTPError as exc:
            raise GatewayUnavailableError(
                f"Backend unreachable: {exc}", operation=operation
            ) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise GatewayUnavailableError(
                f"Backend returned HTTP {response.status_code} without JSON",
                operation=operation,
            ) from exc

        if not isinstance(payload, dict) or "ok" not in payload:
            raise GatewayUnavailableError(
                f"Backend returned HTTP {response.status_code} with an unexpected body",
                operation=operation,
            )
        if not payload["ok"]:
            raise RemoteError(str(payload.get("error") or "unknown error"), operation=operation)
        return payload.get("data")

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["HttpGateway"]
