from __future__ import annotations

import logging
from typing import List, Literal, Optional

from noteflow.core.exceptions import ValidationError
from noteflow.core.models import ModelSelection, ModelType
from noteflow.gateway import RemoteGateway
from noteflow.state import DraftModel, Preferences, ProviderRegistry, ResolvedSelection, resolved_or_none
from .prompts import PromptCatalog


class _ModelAction:
    """Shared plumbing: a gateway, the provider list and the prompt catalog."""

    def __init__(
        self,
        gateway: RemoteGateway,
        providers: ProviderRegistry,
        preferences: Preferences,
        prompts: PromptCatalog | None = None,
    ) -> None:
        self.gateway = gateway
        self.providers = providers
        self.preferences = preferences
        self.prompts = prompts or PromptCatalog()
        self.logger = logging.getLogger(__name__)

    def _require_model(
        self, selection: Optional[ModelSelection], model_type: ModelType, error: str
    ) -> ResolvedSelection:
        # a selection that no longer resolves counts as no selection
        resolved = resolved_or_none(self.providers.resolve(selection, model_type))
        if resolved is None:
            raise ValidationError(error)
        return resolved

    def _text_model(self, selection: Optional[ModelSelection] = None) -> ResolvedSelection:
        return self._require_model(
            selection or self.preferences.selected_text_model, "text", "text_model_required"
        )


class ComposeContent(_ModelAction):
    """Write the post body from its title and put it into the current post."""

    def __init__(
        self,
        gateway: RemoteGateway,
        providers: ProviderRegistry,
        preferences: Preferences,
        drafts: DraftModel,
        prompts: PromptCatalog | None = None,
    ) -> None:
        super().__init__(gateway, providers, preferences, prompts)
        self.drafts = drafts

    async def __call__(self) -> str:
        title = self.drafts.current_post.title.strip()
        if not title:
            raise ValidationError("title_required")
        model = self._text_model()
        content = await self.gateway.generate_ai_text(
            prompt=self.prompts.get("compose", "user"),
            system=self.prompts.render("compose", "system", title=title),
            provider=model.provider,
            model_name=model.model_name,
        )
        self.drafts.set_current_post(content=content)
        return content


class GenerateImagePrompt(_ModelAction):
    """Ask the text model for an image prompt that fits a post."""

    async def __call__(self, title: str, content: str = "") -> str:
        model = self._text_model()
        result = await self.gateway.generate_ai_text(
            prompt=self.prompts.get("image_prompt", "user"),
            system=self.prompts.render("image_prompt", "system", title=title, content=content),
            provider=model.provider,
            model_name=model.model_name,
        )
        return result.strip()


class GenerateImage(_ModelAction):
    """Generate one image at the preferred size; optionally attach it to the post."""

    def __init__(
        self,
        gateway: RemoteGateway,
        providers: ProviderRegistry,
        preferences: Preferences,
        drafts: DraftModel,
        prompts: PromptCatalog | None = None,
    ) -> None:
        super().__init__(gateway, providers, preferences, prompts)
        self.drafts = drafts

    async def __call__(self, prompt: str, attach: bool = True) -> str:
        model = self._require_model(
            self.preferences.selected_image_model, "image", "image_model_required"
        )
        if not prompt.strip():
            raise ValidationError("image_prompt_required")
        url = await self.gateway.generate_ai_image(
            prompt=prompt,
            provider=model.provider,
            model_name=model.model_name,
            size=self.preferences.image_size,
        )
        if attach:
            self.drafts.add_images([url])
        return url


class PolishText(_ModelAction):
    """Rewrite a title (several options) or a body (one result).

    Titles go through ``polish_title_with_options``, whose structured-output
    instructions live on the backend; ``instruction`` is optional there.
    Bodies need an instruction, typically a saved custom prompt.
    """

    async def __call__(
        self,
        text: str,
        target: Literal["title", "content"] = "content",
        instruction: str = "",
        selection: Optional[ModelSelection] = None,
    ) -> List[str]:
        if not text.strip():
            raise ValidationError("text_required")
        if target == "content" and not instruction.strip():
            raise ValidationError("instruction_required")
        model = self._text_model(selection)

        if target == "title":
            return await self.gateway.polish_title_with_options(
                title=text,
                provider=model.provider,
                model_name=model.model_name,
                instruction=instruction or None,
            )
        result = await self.gateway.generate_ai_text(
            prompt=text,
            system=instruction + self.prompts.get("polish", "suffix"),
            provider=model.provider,
            model_name=model.model_name,
        )
        return [result]

    async def with_prompt(
        self, text: str, prompt_id: str, selection: Optional[ModelSelection] = None
    ) -> List[str]:
        prompt = self.preferences.find_prompt(prompt_id)
        return await self(text, "content", prompt.content, selection)


class AnalyzeImage(_ModelAction):
    """Describe a local image with the selected text model."""

    async def __call__(self, image_path: str, prompt: str | None = None) -> str:
        model = self._text_model()
        if prompt is None:
            prompt = self.prompts.get("analyze", "default")
        if not prompt.strip():
            raise ValidationError("prompt_required")
        return await self.gateway.analyze_local_image(
            image_path=image_path,
            prompt=prompt,
            provider=model.provider,
            model_name=model.model_name,
        )


__all__ = [
    "ComposeContent",
    "GenerateImagePrompt",
    "GenerateImage",
    "PolishText",
    "AnalyzeImage",
]
