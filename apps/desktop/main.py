"""Desktop client bootstrap.

Builds the gateway and the state container, performs the initial load and
keeps the background pollers alive until interrupted. The window layer
attaches to ``AppState`` through its topics; here every topic is mirrored
to the log so a headless run shows what a view would render.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from noteflow.core.i18n import I18n
from noteflow.core.settings import get_settings
from noteflow.gateway import HttpGateway
from noteflow.logging import setup_logging
from noteflow.state import UNSAVED_TOPIC, AppState

logger = logging.getLogger("desktop")

WATCHED_TOPICS = (
    "session.current_user",
    "session.users",
    "drafts.collection",
    "providers.registry",
    "status.mcp",
    "status.api",
    UNSAVED_TOPIC,
)


def _mirror(i18n: I18n) -> Callable[[str, Any], None]:
    def on_change(topic: str, payload: Any) -> None:
        if topic == UNSAVED_TOPIC:
            if payload:
                logger.warning(i18n.t("settings_unsaved", keys=", ".join(sorted(payload))))
            return
        logger.info("state changed", extra={"topic": topic})

    return on_change


async def run() -> None:
    settings = get_settings()
    state = AppState(HttpGateway(settings), settings)
    on_change = _mirror(I18n(settings.locale))
    for topic in WATCHED_TOPICS:
        state.subscribe(topic, on_change)

    await state.start()
    try:
        await asyncio.Event().wait()
    finally:
        await state.close()


def main() -> None:
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("shutting down")


if __name__ == "__main__":
    setup_logging()
    main()
