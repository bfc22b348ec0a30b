"""AI provider registry and the model pickers built from it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from noteflow.core.exceptions import DomainError, RemoteError, ValidationError
from noteflow.core.models import AIModel, AIProvider, ModelSelection, ModelType, ProbeResult
from noteflow.gateway import RemoteGateway
from .events import EventBus
from .selection import Resolution, resolve

DEFAULT_BASE_URL = "https://api.openai.com/v1"


@dataclass(frozen=True)
class ModelCandidate:
    """One entry of a model picker."""

    provider_id: int
    provider_name: str
    model_name: str

    def to_selection(self) -> ModelSelection:
        return ModelSelection(provider_id=self.provider_id, model_name=self.model_name)


class ProviderRegistry:
    """Owns the provider list; always rebuilt from the backend after a mutation."""

    TOPIC = "providers.registry"

    def __init__(self, gateway: RemoteGateway, bus: EventBus) -> None:
        self.gateway = gateway
        self.bus = bus
        self.logger = logging.getLogger(__name__)
        self._providers: List[AIProvider] = []
        self.testing: Set[str] = set()

    # ------------------------------------------------------------------
    # reads
    @property
    def providers(self) -> List[AIProvider]:
        return list(self._providers)

    def find(self, provider_id: Optional[int]) -> Optional[AIProvider]:
        return next((p for p in self._providers if p.id == provider_id), None)

    def list_models(self, model_type: ModelType) -> List[ModelCandidate]:
        """Flatten every provider's models of ``model_type``, order preserved."""

        return [
            ModelCandidate(provider.id, provider.name, model.name)
            for provider in self._providers
            if provider.id is not None
            for model in provider.models
            if model.model_type == model_type
        ]

    def grouped_models(self, model_type: ModelType) -> List[Tuple[AIProvider, List[ModelCandidate]]]:
        groups: List[Tuple[AIProvider, List[ModelCandidate]]] = []
        for candidate in self.list_models(model_type):
            if groups and groups[-1][0].id == candidate.provider_id:
                groups[-1][1].append(candidate)
            else:
                groups.append((self.find(candidate.provider_id), [candidate]))
        return groups

    def models_for_provider(self, provider_id: Optional[int], model_type: ModelType) -> List[AIModel]:
        provider = self.find(provider_id)
        if provider is None:
            return []
        return [m for m in provider.models if m.model_type == model_type]

    def resolve(
        self, selection: Optional[ModelSelection], model_type: Optional[ModelType] = None
    ) -> Optional[Resolution]:
        return resolve(self._providers, selection, model_type)

    # ------------------------------------------------------------------
    # remote round-trips
    async def refresh(self) -> bool:
        """Replace the registry with the backend's list; failures keep the old one."""

        try:
            providers = await self.gateway.get_ai_providers()
        except DomainError as exc:
            self.logger.warning(
                "provider refresh failed: %s", exc, extra={"operation": "get_ai_providers"}
            )
            return False
        self._providers = providers
        self.bus.publish(self.TOPIC, self.providers)
        return True

    async def save(self, provider: AIProvider) -> None:
        self.validate(provider)
        await self.gateway.save_ai_provider(provider)
        await self.refresh()

    async def delete(self, provider_id: int) -> None:
        await self.gateway.delete_ai_provider(provider_id)
        await self.refresh()

    async def test(self, provider: AIProvider) -> ProbeResult:
        key = str(provider.id) if provider.id is not None else "new"
        self.testing.add(key)
        try:
            reply = await self.gateway.test_ai_provider(provider)
        except RemoteError as exc:
            return ProbeResult(success=False, message=str(exc))
        finally:
            self.testing.discard(key)
        return ProbeResult(success=True, message=reply)

    async def test_model_chat(self, provider: AIProvider, model_name: str) -> ProbeResult:
        return await self._probe_model("chat", provider, model_name)

    async def test_model_structured_output(self, provider: AIProvider, model_name: str) -> ProbeResult:
        return await self._probe_model("structured", provider, model_name)

    async def _probe_model(self, kind: str, provider: AIProvider, model_name: str) -> ProbeResult:
        key = f"{provider.id if provider.id is not None else 'new'}-{model_name}"
        self.testing.add(key)
        try:
            if kind == "chat":
                return await self.gateway.test_model_chat(provider, model_name)
            return await self.gateway.test_model_structured_output(provider, model_name)
        except RemoteError as exc:
            return ProbeResult(success=False, message=str(exc))
        finally:
            self.testing.discard(key)

    # ------------------------------------------------------------------
    # editing helpers; all work on detached copies
    @staticmethod
    def validate(provider: AIProvider) -> None:
        if not provider.name.strip():
            raise ValidationError("provider_name_required")
        seen: Set[str] = set()
        for model in provider.models:
            name = model.name.strip()
            if not name:
                raise ValidationError("model_name_required")
            if name in seen:
                raise ValidationError("model_name_duplicate")
            seen.add(name)

    @staticmethod
    def new_provider() -> AIProvider:
        return AIProvider(name="", api_key="", base_url=DEFAULT_BASE_URL, models=[])

    @staticmethod
    def add_model(provider: AIProvider, name: str = "", model_type: ModelType = "text") -> AIProvider:
        models = provider.models + [AIModel(name=name, model_type=model_type)]
        return provider.model_copy(update={"models": models})

    @staticmethod
    def update_model(provider: AIProvider, index: int, **fields) -> AIProvider:
        models = list(provider.models)
        models[index] = AIModel.model_validate({**models[index].model_dump(), **fields})
        return provider.model_copy(update={"models": models})

    @staticmethod
    def remove_model(provider: AIProvider, index: int) -> AIProvider:
        models = list(provider.models)
        del models[index]
        return provider.model_copy(update={"models": models})


__all__ = ["ProviderRegistry", "ModelCandidate", "DEFAULT_BASE_URL"]
