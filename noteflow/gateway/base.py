from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type, TypeVar

import pydantic

from noteflow.core.exceptions import GatewayUnavailableError, ValidationError
from noteflow.core.models import (
    AIProvider,
    Post,
    ProbeResult,
    ServiceStatus,
    User,
    UserAnalytics,
)
from .operations import OPERATIONS

M = TypeVar("M", bound=pydantic.BaseModel)


class RemoteGateway(ABC):
    """Typed call boundary to the backend.

    Subclasses only implement :meth:`invoke`. Everything else validates the
    argument record for a named operation and decodes its result. A failed
    operation raises :class:`~noteflow.core.exceptions.RemoteError` whose
    message is the backend's text, unparsed.
    """

    @abstractmethod
    async def invoke(self, operation: str, args: Dict[str, Any]) -> Any:
        """Run ``operation`` remotely and return its decoded result."""

    async def aclose(self) -> None:
        """Release transport resources."""

    async def call(self, operation: str, **kwargs: Any) -> Any:
        try:
            record_type = OPERATIONS[operation]
        except KeyError as exc:
            raise ValidationError(f"Unknown remote operation: {operation}") from exc
        try:
            record = record_type(**kwargs)
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Invalid arguments for {operation}: {exc}") from exc
        return await self.invoke(operation, record.model_dump(mode="json"))

    # ------------------------------------------------------------------
    # decoding helpers
    @staticmethod
    def _parse(operation: str, model: Type[M], data: Any) -> M:
        try:
            return model.model_validate(data)
        except pydantic.ValidationError as exc:
            raise GatewayUnavailableError(
                f"Malformed reply from {operation}: {exc}", operation=operation
            ) from exc

    def _parse_list(self, operation: str, model: Type[M], data: Any) -> List[M]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise GatewayUnavailableError(
                f"Malformed reply from {operation}: expected a list", operation=operation
            )
        return [self._parse(operation, model, item) for item in data]

    def _parse_probe(self, operation: str, data: Any) -> ProbeResult:
        if not isinstance(data, dict):
            raise GatewayUnavailableError(
                f"Malformed reply from {operation}: expected an object", operation=operation
            )
        success = bool(data.get("success"))
        message = data.get("response") if success else data.get("error_message")
        return ProbeResult(success=success, message=str(message or ""))

    # ------------------------------------------------------------------
    # roster and session lifecycle
    async def get_users(self) -> List[User]:
        return self._parse_list("get_users", User, await self.call("get_users"))

    async def validate_login_status(self, phone: str) -> User:
        data = await self.call("validate_login_status", phone=phone)
        return self._parse("validate_login_status", User, data)

    async def logout_user(self, phone: str) -> None:
        await self.call("logout_user", phone=phone)

    async def open_user_data_dir(self, phone: str) -> None:
        await self.call("open_user_data_dir", phone=phone)

    async def fetch_user_analytics(self, phone: str) -> UserAnalytics:
        data = await self.call("fetch_user_analytics", phone=phone)
        return self._parse("fetch_user_analytics", UserAnalytics, data)

    async def start_login_process(self, phone: str) -> str:
        return str(await self.call("start_login_process", phone=phone))

    async def submit_verification_code(self, phone: str, code: str) -> User:
        data = await self.call("submit_verification_code", phone=phone, code=code)
        return self._parse("submit_verification_code", User, data)

    # ------------------------------------------------------------------
    # drafts
    async def get_posts(self, user_id: int) -> List[Post]:
        return self._parse_list("get_posts", Post, await self.call("get_posts", user_id=user_id))

    async def save_post(
        self,
        user_id: int,
        title: str,
        content: str,
        images: List[str],
        cover_image: Optional[str] = None,
        post_id: Optional[int] = None,
    ) -> int:
        data = await self.call(
            "save_post",
            user_id=user_id,
            title=title,
            content=content,
            images=images,
            cover_image=cover_image,
            post_id=post_id,
        )
        try:
            return int(data)
        except (TypeError, ValueError) as exc:
            raise GatewayUnavailableError(
                f"Malformed reply from save_post: {data!r}", operation="save_post"
            ) from exc

    async def delete_post(self, post_id: int) -> None:
        await self.call("delete_post", post_id=post_id)

    # ------------------------------------------------------------------
    # generic key/value config
    async def get_config_value(self, key: str) -> Optional[str]:
        data = await self.call("get_config_value", key=key)
        return None if data is None else str(data)

    async def save_config(self, key: str, value: str) -> None:
        await self.call("save_config", key=key, value=value)

    # ------------------------------------------------------------------
    # provider registry
    async def get_ai_providers(self) -> List[AIProvider]:
        data = await self.call("get_ai_providers")
        return self._parse_list("get_ai_providers", AIProvider, data)

    async def save_ai_provider(self, provider: AIProvider) -> Any:
        return await self.call("save_ai_provider", provider=provider)

    async def delete_ai_provider(self, provider_id: int) -> None:
        await self.call("delete_ai_provider", id=provider_id)

    async def test_ai_provider(self, provider: AIProvider) -> str:
        return str(await self.call("test_ai_provider", provider=provider))

    async def test_model_chat(self, provider: AIProvider, model_name: str) -> ProbeResult:
        data = await self.call("test_model_chat", provider=provider, model_name=model_name)
        return self._parse_probe("test_model_chat", data)

    async def test_model_structured_output(
        self, provider: AIProvider, model_name: str
    ) -> ProbeResult:
        data = await self.call(
            "test_model_structured_output", provider=provider, model_name=model_name
        )
        return self._parse_probe("test_model_structured_output", data)

    # ------------------------------------------------------------------
    # inference
    async def generate_ai_text(
        self, prompt: str, provider: AIProvider, model_name: str, system: Optional[str] = None
    ) -> str:
        data = await self.call(
            "generate_ai_text",
            prompt=prompt,
            system=system,
            provider=provider,
            model_name=model_name,
        )
        return str(data or "")

    async def generate_ai_image(
        self, prompt: str, provider: AIProvider, model_name: str, size: Optional[str] = None
    ) -> str:
        data = await self.call(
            "generate_ai_image",
            prompt=prompt,
            provider=provider,
            model_name=model_name,
            size=size,
        )
        return str(data or "")

    async def analyze_local_image(
        self, image_path: str, prompt: str, provider: AIProvider, model_name: str
    ) -> str:
        data = await self.call(
            "analyze_local_image",
            image_path=image_path,
            prompt=prompt,
            provider=provider,
            model_name=model_name,
        )
        return str(data or "")

    async def polish_title_with_options(
        self,
        title: str,
        provider: AIProvider,
        model_name: str,
        instruction: Optional[str] = None,
    ) -> List[str]:
        data = await self.call(
            "polish_title_with_options",
            title=title,
            instruction=instruction,
            provider=provider,
            model_name=model_name,
        )
        return [str(option) for option in data or []]

    # ------------------------------------------------------------------
    # background services
    async def get_mcp_status(self) -> ServiceStatus:
        return self._parse("get_mcp_status", ServiceStatus, await self.call("get_mcp_status"))

    async def start_mcp_server(self, port: int, token: Optional[str] = None) -> None:
        await self.call("start_mcp_server", port=port, token=token)

    async def stop_mcp_server(self) -> None:
        await self.call("stop_mcp_server")

    async def get_api_status(self) -> ServiceStatus:
        return self._parse("get_api_status", ServiceStatus, await self.call("get_api_status"))

    async def start_api_server(self, port: int) -> None:
        await self.call("start_api_server", port=port)

    async def stop_api_server(self) -> None:
        await self.call("stop_api_server")

    async def get_api_key(self) -> Optional[str]:
        data = await self.call("get_api_key")
        return str(data) if data else None

    async def save_api_key(self, key: str) -> None:
        await self.call("save_api_key", key=key)

    async def generate_api_key(self) -> str:
        return str(await self.call("generate_api_key"))

    # ------------------------------------------------------------------
    # pass-through
    async def get_trends(self) -> Dict[str, Any]:
        data = await self.call("get_trends")
        if not isinstance(data, dict):
            raise GatewayUnavailableError(
                "Malformed reply from get_trends: expected an object", operation="get_trends"
            )
        return data

    async def list_local_images(self) -> List[str]:
        return [str(p) for p in await self.call("list_local_images") or []]

    async def import_local_images(self, paths: List[str]) -> None:
        await self.call("import_local_images", paths=paths)

    async def delete_local_image(self, path: str) -> None:
        await self.call("delete_local_image", path=path)

    async def publish_post(
        self,
        phone: str,
        title: str,
        content: str,
        images: List[str],
        cover_image: Optional[str] = None,
    ) -> None:
        await self.call(
            "publish_post",
            phone=phone,
            title=title,
            content=content,
            images=images,
            cover_image=cover_image,
        )


__all__ = ["RemoteGateway"]
