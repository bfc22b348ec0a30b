import asyncio
from unittest.mock import AsyncMock

import pytest

from noteflow.core.exceptions import RemoteError, ValidationError
from noteflow.state import ApiService, LocalSettings, McpService


def _local(auto_start: bool = False, port: int = 8001) -> AsyncMock:
    local = AsyncMock(spec=LocalSettings)
    local.mcp_auto_start.return_value = auto_start
    local.mcp_port.return_value = port
    return local


def test_late_status_reply_is_discarded(gateway, bus) -> None:
    gate = asyncio.Event()
    replies = iter(
        [
            {"is_running": False, "port": 8001},
            {"is_running": True, "port": 9000},
        ]
    )

    async def status(args):
        reply = next(replies)
        if not reply["is_running"]:
            await gate.wait()
        return reply

    gateway.handlers["get_mcp_status"] = status

    async def scenario():
        mcp = McpService(gateway, bus, _local())
        slow = asyncio.create_task(mcp.refresh())
        await asyncio.sleep(0)
        fresh = await mcp.refresh()
        gate.set()
        return mcp, fresh, await slow

    mcp, fresh, stale = asyncio.run(scenario())

    assert (fresh, stale) == (True, False)
    assert mcp.status.is_running is True
    assert mcp.status.port == 9000


def test_mount_polls_until_unmount(gateway, bus, events) -> None:
    seen = events("status.api")

    async def scenario():
        api = ApiService(gateway, bus, interval=0.01)
        api.mount()
        api.mount()
        await asyncio.sleep(0.05)
        await api.unmount()
        polls = len(gateway.calls_to("get_api_status"))
        await asyncio.sleep(0.03)
        return api, polls

    api, polls = asyncio.run(scenario())

    assert polls >= 2
    assert len(gateway.calls_to("get_api_status")) == polls
    assert api.mounted is False
    assert seen[0][1].port == 8080


def test_poll_failure_keeps_last_status(gateway, bus) -> None:
    gateway.api = {"is_running": True, "port": 8123}
    api = ApiService(gateway, bus)
    asyncio.run(api.refresh())
    gateway.failures["get_api_status"] = "backend busy"

    assert asyncio.run(api.refresh()) is False
    assert (api.status.is_running, api.status.port) == (True, 8123)


def test_start_and_stop_refresh_status(gateway, bus) -> None:
    mcp = McpService(gateway, bus, _local(port=8011))

    asyncio.run(mcp.start())
    assert mcp.status.is_running and mcp.status.port == 8011
    assert mcp.connection_url == "http://127.0.0.1:8011/mcp"
    assert gateway.calls_to("start_mcp_server") == [{"port": 8011, "token": None}]

    asyncio.run(mcp.toggle())
    assert mcp.status.is_running is False
    assert mcp.busy is False


def test_start_failure_is_raised(gateway, bus) -> None:
    gateway.failures["start_mcp_server"] = "port 8001 in use"
    mcp = McpService(gateway, bus, _local())

    with pytest.raises(RemoteError, match="port 8001 in use"):
        asyncio.run(mcp.start(8001))
    assert mcp.busy is False
    assert gateway.calls_to("get_mcp_status") == []


def test_auto_start_runs_once_when_enabled(gateway, bus) -> None:
    local = _local(auto_start=True, port=9001)
    mcp = McpService(gateway, bus, local)

    assert asyncio.run(mcp.auto_start()) is True
    gateway.mcp = {"is_running": False, "port": 9001}
    assert asyncio.run(mcp.auto_start()) is False
    assert gateway.calls_to("start_mcp_server") == [{"port": 9001, "token": None}]


def test_auto_start_disabled_or_failing(gateway, bus) -> None:
    disabled = McpService(gateway, bus, _local(auto_start=False))
    assert asyncio.run(disabled.auto_start()) is False
    assert gateway.calls_to("start_mcp_server") == []

    gateway.failures["start_mcp_server"] = "no browser"
    failing = McpService(gateway, bus, _local(auto_start=True))
    assert asyncio.run(failing.auto_start()) is False


def test_api_server_needs_a_key(gateway, bus) -> None:
    api = ApiService(gateway, bus)

    with pytest.raises(ValidationError, match="api_key_required"):
        asyncio.run(api.start(8080))
    with pytest.raises(ValidationError, match="api_key_required"):
        asyncio.run(api.save_api_key("   "))
    assert gateway.calls_to("start_api_server") == []

    assert asyncio.run(api.generate_api_key()) == "generated-key"
    asyncio.run(api.start(8085))
    assert api.status.is_running and api.base_url == "http://127.0.0.1:8085"


def test_api_key_load_and_save(gateway, bus) -> None:
    gateway.api_key = "stored"
    api = ApiService(gateway, bus)

    assert asyncio.run(api.load_api_key()) == "stored"
    asyncio.run(api.save_api_key(" fresh "))
    assert gateway.api_key == "fresh" and api.api_key == "fresh"

    gateway.failures["get_api_key"] = "locked"
    assert asyncio.run(api.load_api_key()) == "fresh"
