import asyncio
from pathlib import Path

import pytest

from conftest import text_provider
from noteflow.core.settings import Settings
from noteflow.db import LocalDatabase
from noteflow.state import AppState
from noteflow.state.app_state import ACTIVE_TAB_TOPIC


def _state(gateway, tmp_path: Path) -> AppState:
    uri = f"sqlite+aiosqlite:///{tmp_path / 'local.db'}"
    settings = Settings(local_store_uri=uri, mcp_poll_interval=0.01)
    return AppState(gateway, settings, LocalDatabase(uri))


def test_start_loads_everything_and_close_releases(gateway, tmp_path: Path) -> None:
    gateway.users = [{"id": 1, "nickname": "alice", "phone": "111"}]
    gateway.providers = [text_provider(1)]
    gateway.config = {"theme_mode": "dark"}

    async def scenario():
        state = _state(gateway, tmp_path)
        await state.start()
        assert state.mcp.mounted
        await asyncio.sleep(0.03)
        await state.close()
        return state

    state = asyncio.run(scenario())

    assert [u.phone for u in state.session.users] == ["111"]
    assert state.preferences.theme_mode == "dark"
    assert [p.id for p in state.providers.providers] == [1]
    assert len(gateway.calls_to("get_mcp_status")) >= 2
    assert gateway.calls_to("start_mcp_server") == []
    assert state.mcp.mounted is False
    assert gateway.closed is True


def test_start_honours_local_auto_start(gateway, tmp_path: Path) -> None:
    async def scenario():
        state = _state(gateway, tmp_path)
        await state.local_db.init()
        await state.local_settings.set_mcp_auto_start(True)
        await state.local_settings.set_mcp_port(8123)
        await state.start()
        await state.close()
        return state

    asyncio.run(scenario())

    assert gateway.calls_to("start_mcp_server") == [{"port": 8123, "token": None}]
    assert all(args["key"] not in ("mcp_auto_start", "mcp_port") for args in gateway.calls_to("get_config_value"))


def test_start_survives_backend_failures(gateway, tmp_path: Path) -> None:
    for op in ("get_users", "get_config_value", "get_ai_providers", "get_mcp_status"):
        gateway.failures[op] = "backend down"

    async def scenario():
        state = _state(gateway, tmp_path)
        await state.start()
        await state.close()
        return state

    state = asyncio.run(scenario())

    assert state.session.users == []
    assert state.preferences.theme_mode == "system"
    assert state.mcp.status.port == 8001


def test_active_tab(gateway, tmp_path: Path) -> None:
    state = _state(gateway, tmp_path)
    seen = []
    state.subscribe(ACTIVE_TAB_TOPIC, lambda topic, tab: seen.append(tab))

    state.active_tab = "assets"
    state.active_tab = "assets"
    with pytest.raises(ValueError):
        state.active_tab = "nowhere"

    assert state.active_tab == "assets"
    assert seen == ["assets"]


def test_logout_refetches_roster(gateway, tmp_path: Path) -> None:
    alice = {"id": 1, "nickname": "alice", "phone": "111"}
    gateway.users = [dict(alice)]

    async def scenario():
        state = _state(gateway, tmp_path)
        await state.session.fetch_users()
        await state.session.switch(state.session.users[0])
        await state.drafts.wait_idle()
        gateway.users.append({"id": 2, "nickname": "bob", "phone": "222"})
        before = len(gateway.calls_to("get_users"))
        state.session.logout()
        await state.wait_idle()
        return state, before

    state, before = asyncio.run(scenario())

    assert state.session.current_user is None
    assert len(gateway.calls_to("get_users")) == before + 1
    assert [u.phone for u in state.session.users] == ["111", "222"]
