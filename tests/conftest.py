import asyncio
import inspect
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

import pytest

# Ensure project root on sys.path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from noteflow.core.exceptions import RemoteError
from noteflow.gateway import RemoteGateway
from noteflow.state import EventBus


class FakeGateway(RemoteGateway):
    """In-memory backend.

    ``failures`` maps an operation to the message it should fail with;
    ``handlers`` overrides an operation with a custom (possibly async) callable.
    Every invocation is recorded in ``calls`` after argument validation.
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.failures: Dict[str, str] = {}
        self.handlers: Dict[str, Callable[[Dict[str, Any]], Any]] = {}
        self.users: List[Dict[str, Any]] = []
        self.expired: set = set()
        self.posts: Dict[int, List[Dict[str, Any]]] = {}
        self.config: Dict[str, str] = {}
        self.providers: List[Dict[str, Any]] = []
        self.mcp = {"is_running": False, "port": 8001}
        self.api = {"is_running": False, "port": 8080}
        self.api_key: str | None = None
        self.images: List[str] = []
        self.closed = False
        self._next_id = 100

    def calls_to(self, operation: str) -> List[Dict[str, Any]]:
        return [args for op, args in self.calls if op == operation]

    async def invoke(self, operation: str, args: Dict[str, Any]) -> Any:
        self.calls.append((operation, args))
        await asyncio.sleep(0)
        if operation in self.failures:
            raise RemoteError(self.failures[operation], operation=operation)
        handler = self.handlers.get(operation) or getattr(self, f"_op_{operation}", None)
        if handler is None:
            return None
        result = handler(args)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def aclose(self) -> None:
        self.closed = True

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    # roster
    def _op_get_users(self, args):
        return [dict(u) for u in self.users]

    def _op_validate_login_status(self, args):
        if args["phone"] in self.expired:
            raise RemoteError("session expired", operation="validate_login_status")
        user = next((u for u in self.users if u["phone"] == args["phone"]), None)
        if user is None:
            raise RemoteError("user not found", operation="validate_login_status")
        return dict(user)

    def _op_logout_user(self, args):
        self.users = [u for u in self.users if u["phone"] != args["phone"]]

    # drafts
    def _op_get_posts(self, args):
        return [dict(p) for p in self.posts.get(args["user_id"], [])]

    def _op_save_post(self, args):
        posts = self.posts.setdefault(args["user_id"], [])
        post_id = args["post_id"] or self._new_id()
        record = {
            "id": post_id,
            "title": args["title"],
            "content": args["content"],
            "images": list(args["images"]),
            "cover_image": args["cover_image"],
        }
        posts[:] = [p for p in posts if p["id"] != post_id] + [record]
        return post_id

    def _op_delete_post(self, args):
        for posts in self.posts.values():
            posts[:] = [p for p in posts if p["id"] != args["post_id"]]

    # config
    def _op_get_config_value(self, args):
        return self.config.get(args["key"])

    def _op_save_config(self, args):
        self.config[args["key"]] = args["value"]

    # providers
    def _op_get_ai_providers(self, args):
        return [dict(p) for p in self.providers]

    def _op_save_ai_provider(self, args):
        provider = dict(args["provider"])
        if provider.get("id") is None:
            provider["id"] = self._new_id()
        self.providers = [p for p in self.providers if p["id"] != provider["id"]] + [provider]
        return provider["id"]

    def _op_delete_ai_provider(self, args):
        self.providers = [p for p in self.providers if p["id"] != args["id"]]

    # services
    def _op_get_mcp_status(self, args):
        return dict(self.mcp)

    def _op_start_mcp_server(self, args):
        self.mcp = {"is_running": True, "port": args["port"]}

    def _op_stop_mcp_server(self, args):
        self.mcp = {**self.mcp, "is_running": False}

    def _op_get_api_status(self, args):
        return dict(self.api)

    def _op_start_api_server(self, args):
        self.api = {"is_running": True, "port": args["port"]}

    def _op_stop_api_server(self, args):
        self.api = {**self.api, "is_running": False}

    def _op_get_api_key(self, args):
        return self.api_key

    def _op_save_api_key(self, args):
        self.api_key = args["key"]

    def _op_generate_api_key(self, args):
        self.api_key = "generated-key"
        return self.api_key

    # assets
    def _op_list_local_images(self, args):
        return list(self.images)

    def _op_import_local_images(self, args):
        self.images.extend(args["paths"])

    def _op_delete_local_image(self, args):
        self.images.remove(args["path"])


def text_provider(provider_id: int = 1, *models: Tuple[str, str]) -> Dict[str, Any]:
    models = models or (("gpt-4o", "text"),)
    return {
        "id": provider_id,
        "name": f"provider-{provider_id}",
        "api_key": "sk-test",
        "base_url": "https://api.openai.com/v1",
        "models": [{"name": name, "model_type": kind} for name, kind in models],
    }


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def events(bus):
    """Record every publication on the listed topics."""

    seen: List[Tuple[str, Any]] = []

    def watch(*topics: str) -> List[Tuple[str, Any]]:
        for topic in topics:
            bus.subscribe(topic, lambda t, p: seen.append((t, p)))
        return seen

    return watch
