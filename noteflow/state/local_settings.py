from __future__ import annotations

import logging

from noteflow.db import LocalDatabase, LocalSettingRepo

MCP_AUTO_START = "mcp_auto_start"
MCP_PORT = "mcp_port"


class LocalSettings:
    """Typed access to machine-local keys (the automation service's launch options).

    These two keys deliberately bypass the backend config store.
    """

    def __init__(self, db: LocalDatabase, default_mcp_port: int = 8001) -> None:
        self.db = db
        self.default_mcp_port = default_mcp_port
        self.logger = logging.getLogger(__name__)

    async def _get(self, key: str) -> str | None:
        async with self.db.session() as session:
            return await LocalSettingRepo(session).get(key)

    async def _set(self, key: str, value: str) -> None:
        async with self.db.session() as session:
            await LocalSettingRepo(session).set(key, value)

    async def mcp_auto_start(self) -> bool:
        return await self._get(MCP_AUTO_START) == "true"

    async def set_mcp_auto_start(self, enabled: bool) -> None:
        await self._set(MCP_AUTO_START, "true" if enabled else "false")

    async def mcp_port(self) -> int:
        raw = await self._get(MCP_PORT)
        if raw is None:
            return self.default_mcp_port
        try:
            return int(raw)
        except ValueError:
            self.logger.warning("ignoring bad stored port", extra={"key": MCP_PORT, "value": raw})
            return self.default_mcp_port

    async def set_mcp_port(self, port: int) -> None:
        await self._set(MCP_PORT, str(int(port)))


__all__ = ["LocalSettings", "MCP_AUTO_START", "MCP_PORT"]
