"""Write-through cache over the backend's string key/value store.

Reads are served from memory. A ``set`` is visible to every reader at once
and is mirrored to the backend by a background ``save_config`` task. Nothing
is rolled back when that task fails; instead the key is listed in
``unsaved_keys`` until a later write of the same key succeeds.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Iterable, List, Optional, Set, TypeVar, Union

from noteflow.core.exceptions import DomainError
from noteflow.gateway import RemoteGateway
from .events import EventBus

T = TypeVar("T")

UNSAVED_TOPIC = "config.unsaved"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigKey(Generic[T]):
    """A persisted key, its default and its string codec."""

    name: str
    default: T
    encode: Callable[[T], str] = field(default=str)
    decode: Callable[[str], T] = field(default=lambda raw: raw)  # type: ignore[assignment]

    @property
    def topic(self) -> str:
        return f"config.{self.name}"


def json_key(name: str, default: Any, decode: Callable[[Any], Any], encode: Callable[[Any], Any]) -> ConfigKey:
    """Build a key whose wire value is JSON."""

    return ConfigKey(
        name=name,
        default=default,
        encode=lambda value: json.dumps(encode(value), ensure_ascii=False),
        decode=lambda raw: decode(json.loads(raw)),
    )


class PendingWrite:
    """Handle on one background persist; awaiting it yields ``True`` on success."""

    def __init__(self, key: str) -> None:
        self.key = key
        self.error: Optional[DomainError] = None
        self._task: Optional["asyncio.Task[bool]"] = None

    def __await__(self):
        return self._task.__await__()

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    @property
    def failed(self) -> bool:
        return self.done and self.error is not None


KeyRef = Union[ConfigKey, str]


class ConfigSyncStore:
    """In-memory values for registered :class:`ConfigKey` objects."""

    def __init__(
        self,
        gateway: RemoteGateway,
        bus: EventBus,
        keys: Iterable[ConfigKey] = (),
    ) -> None:
        self.gateway = gateway
        self.bus = bus
        self._keys: Dict[str, ConfigKey] = {}
        self._values: Dict[str, Any] = {}
        self._generation: Dict[str, int] = {}
        self._loaded: Set[str] = set()
        self._loading: Set[str] = set()
        self._attempted: Set[str] = set()
        self._tasks: Set[asyncio.Task] = set()
        self._persisting: Dict[str, int] = {}
        self.unsaved_keys: Set[str] = set()
        for key in keys:
            self.register(key)

    # ------------------------------------------------------------------
    def register(self, key: ConfigKey) -> ConfigKey:
        self._keys[key.name] = key
        self._values.setdefault(key.name, key.default)
        self._generation.setdefault(key.name, 0)
        return key

    def _key(self, ref: KeyRef) -> ConfigKey:
        name = ref.name if isinstance(ref, ConfigKey) else ref
        try:
            return self._keys[name]
        except KeyError:
            raise KeyError(f"Unregistered config key: {name}") from None

    @property
    def keys(self) -> List[str]:
        return list(self._keys)

    def is_loaded(self, ref: KeyRef) -> bool:
        return self._key(ref).name in self._loaded

    # ------------------------------------------------------------------
    def get(self, ref: KeyRef) -> Any:
        """Return the cached value; the first read of an unloaded key starts its load.

        A key whose load has already been tried is not fetched again here,
        even if that load failed; only an explicit :meth:`load` retries.
        """

        key = self._key(ref)
        if key.name not in self._attempted and key.name not in self._loading:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            if loop is not None:
                self._loading.add(key.name)
                self._spawn(self._load_one(key, self._generation[key.name]))
        return self._values[key.name]

    def set(self, ref: KeyRef, value: Any, *, persist: bool = True) -> Optional[PendingWrite]:
        """Apply ``value`` now and schedule its persistence.

        Must be called from the event loop when ``persist`` is true.
        """

        key = self._key(ref)
        self._values[key.name] = value
        self._generation[key.name] += 1
        # a local write is authoritative; no lazy load may replace it
        self._loaded.add(key.name)
        self._attempted.add(key.name)
        self.bus.publish(key.topic, value)
        if not persist:
            return None
        encoded = key.encode(value)
        pending = PendingWrite(key.name)
        self._persisting[key.name] = self._persisting.get(key.name, 0) + 1
        pending._task = self._spawn(
            self._persist(key, encoded, self._generation[key.name], pending)
        )
        return pending

    async def load(self, refs: Iterable[KeyRef] | None = None) -> None:
        """Fetch each key once; failures leave the default in place."""

        keys = [self._key(r) for r in refs] if refs is not None else list(self._keys.values())
        for key in keys:
            await self._load_one(key)

    async def flush(self) -> None:
        """Wait for every scheduled persist and background load to settle."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _load_one(self, key: ConfigKey, started_at: Optional[int] = None) -> None:
        self._loading.add(key.name)
        self._attempted.add(key.name)
        if started_at is None:
            started_at = self._generation[key.name]
        try:
            raw = await self.gateway.get_config_value(key.name)
        except DomainError as exc:
            logger.warning(
                "config load failed: %s", exc, extra={"operation": "get_config_value", "key": key.name}
            )
            return
        finally:
            self._loading.discard(key.name)

        self._loaded.add(key.name)
        if raw is None or raw == "":
            return
        try:
            value = key.decode(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("ignoring undecodable config value: %s", exc, extra={"key": key.name})
            return
        if self._generation[key.name] != started_at or self._persisting.get(key.name):
            # a local write landed while the load was in flight, or is still
            # being saved; the local value wins
            return
        self._values[key.name] = value
        self.bus.publish(key.topic, value)

    async def _persist(
        self, key: ConfigKey, encoded: str, generation: int, pending: PendingWrite
    ) -> bool:
        try:
            await self.gateway.save_config(key.name, encoded)
        except DomainError as exc:
            logger.warning(
                "config persist failed: %s", exc, extra={"operation": "save_config", "key": key.name}
            )
            pending.error = exc
            if generation == self._generation[key.name] and key.name not in self.unsaved_keys:
                self.unsaved_keys.add(key.name)
                self.bus.publish(UNSAVED_TOPIC, set(self.unsaved_keys))
            return False
        finally:
            self._persisting[key.name] -= 1

        if generation == self._generation[key.name] and key.name in self.unsaved_keys:
            self.unsaved_keys.discard(key.name)
            self.bus.publish(UNSAVED_TOPIC, set(self.unsaved_keys))
        return True


__all__ = ["ConfigKey", "ConfigSyncStore", "PendingWrite", "json_key", "UNSAVED_TOPIC"]
