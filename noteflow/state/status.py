"""Periodic status mirrors of the two backend-owned background services.

The backend owns the truth; these objects sample it. Right after a start or
stop the view can lag the real process state by one poll.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Optional

from noteflow.core.exceptions import DomainError, RemoteError, ValidationError
from noteflow.core.models import ServiceStatus
from noteflow.gateway import RemoteGateway
from .events import EventBus
from .local_settings import LocalSettings


class ServicePoller:
    """Immediate fetch on mount, then a fixed-interval poll until unmount.

    Every fetch carries a monotonic sequence number; a reply older than the
    last applied one is dropped. Fetch failures are logged and the last known
    status stays in place.
    """

    def __init__(
        self,
        name: str,
        bus: EventBus,
        fetch: Callable[[], Awaitable[ServiceStatus]],
        interval: float,
        default: ServiceStatus,
    ) -> None:
        self.name = name
        self.topic = f"status.{name}"
        self.bus = bus
        self.interval = interval
        self.logger = logging.getLogger(__name__)
        self._fetch = fetch
        self._status = default
        self._issued = 0
        self._applied = 0
        self._task: Optional[asyncio.Task] = None
        self.busy = False

    @property
    def status(self) -> ServiceStatus:
        return self._status

    @property
    def mounted(self) -> bool:
        return self._task is not None and not self._task.done()

    async def refresh(self) -> bool:
        self._issued += 1
        seq = self._issued
        try:
            status = await self._fetch()
        except DomainError as exc:
            self.logger.warning(
                "%s status poll failed: %s", self.name, exc, extra={"service": self.name}
            )
            return False
        if seq < self._applied:
            self.logger.debug("dropping superseded %s status #%d", self.name, seq)
            return False
        self._applied = seq
        self._status = status
        self.bus.publish(self.topic, status)
        return True

    def mount(self) -> None:
        if self.mounted:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def unmount(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        await self.refresh()
        while True:
            await asyncio.sleep(self.interval)
            await self.refresh()

    async def _transition(self, action: Awaitable[None]) -> None:
        self.busy = True
        try:
            await action
        finally:
            self.busy = False
        await self.refresh()


class McpService(ServicePoller):
    """Automation-protocol server; launch options live in the local store."""

    def __init__(
        self,
        gateway: RemoteGateway,
        bus: EventBus,
        local: LocalSettings,
        interval: float = 5.0,
        default_port: int = 8001,
    ) -> None:
        super().__init__(
            "mcp",
            bus,
            gateway.get_mcp_status,
            interval,
            ServiceStatus(is_running=False, port=default_port),
        )
        self.gateway = gateway
        self.local = local
        self._auto_start_attempted = False

    @property
    def connection_url(self) -> str:
        return f"http://127.0.0.1:{self.status.port}/mcp"

    async def start(self, port: Optional[int] = None, token: Optional[str] = None) -> None:
        if port is None:
            port = await self.local.mcp_port()
        await self._transition(self.gateway.start_mcp_server(port, token))

    async def stop(self) -> None:
        await self._transition(self.gateway.stop_mcp_server())

    async def toggle(self, port: Optional[int] = None) -> None:
        if self.status.is_running:
            await self.stop()
        else:
            await self.start(port)

    async def set_port(self, port: int) -> None:
        await self.local.set_mcp_port(port)

    async def set_auto_start(self, enabled: bool) -> None:
        await self.local.set_mcp_auto_start(enabled)

    async def auto_start(self) -> bool:
        """Start the server once per process if the user asked for it."""

        if self._auto_start_attempted or self.status.is_running:
            return False
        if not await self.local.mcp_auto_start():
            return False
        self._auto_start_attempted = True
        try:
            await self.start()
        except RemoteError as exc:
            self.logger.error("mcp auto-start failed: %s", exc, extra={"service": self.name})
            return False
        return True


class ApiService(ServicePoller):
    """HTTP API server and its access key."""

    def __init__(
        self,
        gateway: RemoteGateway,
        bus: EventBus,
        interval: float = 2.0,
        default_port: int = 8080,
    ) -> None:
        super().__init__(
            "api",
            bus,
            gateway.get_api_status,
            interval,
            ServiceStatus(is_running=False, port=default_port),
        )
        self.gateway = gateway
        self.api_key: str = ""

    @property
    def base_url(self) -> str:
        return f"http://127.0.0.1:{self.status.port}"

    async def load_api_key(self) -> str:
        try:
            self.api_key = await self.gateway.get_api_key() or ""
        except DomainError as exc:
            self.logger.warning("api key load failed: %s", exc, extra={"operation": "get_api_key"})
        return self.api_key

    async def save_api_key(self, key: str) -> None:
        key = key.strip()
        if not key:
            raise ValidationError("api_key_required")
        await self.gateway.save_api_key(key)
        self.api_key = key

    async def generate_api_key(self) -> str:
        self.api_key = await self.gateway.generate_api_key()
        return self.api_key

    async def start(self, port: int) -> None:
        if not self.api_key:
            raise ValidationError("api_key_required")
        await self._transition(self.gateway.start_api_server(port))

    async def stop(self) -> None:
        await self._transition(self.gateway.stop_api_server())


__all__ = ["ServicePoller", "McpService", "ApiService"]
