from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any, Callable, DefaultDict, List

Callback = Callable[[str, Any], None]

logger = logging.getLogger(__name__)


class EventBus:
    """Synchronous publish/subscribe hub shared by all state components.

    Subscribers receive ``(topic, payload)``. A subscriber that raises is
    logged and skipped; the remaining subscribers still run.
    """

    def __init__(self) -> None:
        self._subscribers: DefaultDict[str, List[Callback]] = defaultdict(list)

    def subscribe(self, topic: str, callback: Callback) -> Callable[[], None]:
        self._subscribers[topic].append(callback)

        def unsubscribe() -> None:
            try:
                self._subscribers[topic].remove(callback)
            except ValueError:
                pass

        return unsubscribe

    def publish(self, topic: str, payload: Any = None) -> None:
        for callback in list(self._subscribers.get(topic, ())):
            try:
                callback(topic, payload)
            except Exception:
                logger.exception("subscriber failed", extra={"topic": topic})


__all__ = ["EventBus", "Callback"]
