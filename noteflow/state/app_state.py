"""Single owner of every piece of shared client state.

Components never reach each other through globals: they are built here,
wired to one :class:`EventBus`, and handed to views and use-cases explicitly.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Set

from noteflow.core.models import User
from noteflow.core.settings import Settings, get_settings
from noteflow.db import LocalDatabase
from noteflow.gateway import RemoteGateway
from .config_store import ConfigSyncStore
from .drafts import DraftModel
from .events import EventBus
from .local_settings import LocalSettings
from .preferences import Preferences
from .providers import ProviderRegistry
from .session import SessionManager
from .status import ApiService, McpService
from .trends import TrendsCache

TABS = ("publish", "accounts", "ai", "assets", "trends", "mcp", "api", "settings")
ACTIVE_TAB_TOPIC = "ui.active_tab"


class AppState:
    def __init__(
        self,
        gateway: RemoteGateway,
        settings: Optional[Settings] = None,
        local_db: Optional[LocalDatabase] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.gateway = gateway
        self.logger = logging.getLogger(__name__)
        self.bus = EventBus()
        self.local_db = local_db or LocalDatabase(self.settings.local_store_uri)
        self.local_settings = LocalSettings(self.local_db, self.settings.default_mcp_port)

        self.store = ConfigSyncStore(gateway, self.bus)
        self.preferences = Preferences(self.store)
        self.providers = ProviderRegistry(gateway, self.bus)
        self.session = SessionManager(gateway, self.bus)
        self.drafts = DraftModel(gateway, self.bus, self.session)
        self.mcp = McpService(
            gateway,
            self.bus,
            self.local_settings,
            interval=self.settings.mcp_poll_interval,
            default_port=self.settings.default_mcp_port,
        )
        self.api = ApiService(
            gateway,
            self.bus,
            interval=self.settings.api_poll_interval,
            default_port=self.settings.default_api_port,
        )
        self.trends = TrendsCache(gateway, self.bus)
        self._active_tab = "publish"
        self._tasks: Set[asyncio.Task] = set()
        self._unsubscribe = self.bus.subscribe(SessionManager.CURRENT_TOPIC, self._on_identity_change)

    # ------------------------------------------------------------------
    @property
    def active_tab(self) -> str:
        return self._active_tab

    @active_tab.setter
    def active_tab(self, tab: str) -> None:
        if tab not in TABS:
            raise ValueError(f"Unknown tab: {tab}")
        if tab == self._active_tab:
            return
        self._active_tab = tab
        self.bus.publish(ACTIVE_TAB_TOPIC, tab)

    def subscribe(self, topic: str, callback: Callable[[str, Any], None]) -> Callable[[], None]:
        return self.bus.subscribe(topic, callback)

    def _on_identity_change(self, topic: str, user: Optional[User]) -> None:
        # back at the account picker: the roster may have changed meanwhile
        if user is not None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        task = loop.create_task(self.session.fetch_users())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    async def start(self) -> None:
        """Initial load, in the order the first screen needs it."""

        await self.local_db.init()
        await self.session.fetch_users()
        await self.preferences.load()
        await self.providers.refresh()
        self.mcp.mount()
        await self.mcp.auto_start()
        self.logger.info(
            "client state ready",
            extra={"users": len(self.session.users), "providers": len(self.providers.providers)},
        )

    async def close(self) -> None:
        self._unsubscribe()
        for task in list(self._tasks):
            task.cancel()
        await self.mcp.unmount()
        await self.api.unmount()
        await self.store.flush()
        self.drafts.close()
        await self.gateway.aclose()
        await self.local_db.dispose()


__all__ = ["AppState", "TABS", "ACTIVE_TAB_TOPIC"]
