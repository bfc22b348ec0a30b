"""Typed user preferences, each an independently persisted config key."""

from __future__ import annotations

from typing import Any, List, Optional, Tuple, Union, get_args

from noteflow.core.exceptions import NotFoundError, ValidationError
from noteflow.core.models import ModelSelection, Prompt, ThemeMode
from .config_store import ConfigKey, ConfigSyncStore, PendingWrite, json_key

THEME_MODES: Tuple[str, ...] = get_args(ThemeMode)
IMAGE_SIZE_PRESETS: Tuple[str, ...] = (
    "256x256",
    "512x512",
    "1024x1024",
    "1024x1792",
    "1792x1024",
)
MIN_IMAGE_SIDE = 256
MAX_IMAGE_SIDE = 2048
DEFAULT_IMAGE_SIDE = 1024


def _decode_selection(data: Any) -> Optional[ModelSelection]:
    if data is None:
        return None
    return ModelSelection.model_validate(data)


def _encode_selection(selection: Optional[ModelSelection]) -> Any:
    return selection.model_dump(by_alias=True) if selection is not None else None


def _decode_theme(raw: str) -> str:
    if raw not in THEME_MODES:
        raise ValueError(f"unknown theme mode {raw!r}")
    return raw


def clamp_dimension(value: Union[str, int, None]) -> int:
    """Parse one side of an image size and clamp it to [256, 2048].

    Unparseable or zero input falls back to 1024.
    """
    try:
        side = int(str(value).strip())
    except (TypeError, ValueError):
        side = 0
    if not side:
        side = DEFAULT_IMAGE_SIDE
    return max(MIN_IMAGE_SIDE, min(MAX_IMAGE_SIDE, side))


def parse_image_size(size: str) -> Tuple[int, int]:
    width, _, height = (size or "").partition("x")
    return clamp_dimension(width), clamp_dimension(height)


SELECTED_TEXT_MODEL = json_key("selected_text_model", None, _decode_selection, _encode_selection)
SELECTED_IMAGE_MODEL = json_key("selected_image_model", None, _decode_selection, _encode_selection)
ANALYTICS_AI_MODEL = json_key("analytics_ai_model", None, _decode_selection, _encode_selection)
IMAGE_SIZE = ConfigKey("image_size", "1024x1024")
THEME_MODE = ConfigKey("theme_mode", "system", decode=_decode_theme)
CUSTOM_PROMPTS = json_key(
    "custom_prompts",
    [],
    lambda data: [Prompt.model_validate(item) for item in data or []],
    lambda prompts: [p.model_dump() for p in prompts],
)
HEADLESS_MODE = ConfigKey(
    "headless_mode",
    True,
    encode=lambda enabled: "true" if enabled else "false",
    decode=lambda raw: raw != "false",
)

PREFERENCE_KEYS: Tuple[ConfigKey, ...] = (
    SELECTED_TEXT_MODEL,
    SELECTED_IMAGE_MODEL,
    IMAGE_SIZE,
    THEME_MODE,
    CUSTOM_PROMPTS,
    ANALYTICS_AI_MODEL,
    HEADLESS_MODE,
)


class Preferences:
    """Facade over the config store for every user-facing preference."""

    def __init__(self, store: ConfigSyncStore) -> None:
        self.store = store
        for key in PREFERENCE_KEYS:
            store.register(key)

    async def load(self) -> None:
        await self.store.load(PREFERENCE_KEYS)

    # ------------------------------------------------------------------
    # model selections
    @property
    def selected_text_model(self) -> Optional[ModelSelection]:
        return self.store.get(SELECTED_TEXT_MODEL)

    @property
    def selected_image_model(self) -> Optional[ModelSelection]:
        return self.store.get(SELECTED_IMAGE_MODEL)

    @property
    def analytics_ai_model(self) -> Optional[ModelSelection]:
        return self.store.get(ANALYTICS_AI_MODEL)

    def select_text_model(self, selection: Optional[ModelSelection]) -> Optional[PendingWrite]:
        # clearing is local only; the stored reference is re-resolved on next start
        return self.store.set(SELECTED_TEXT_MODEL, selection, persist=selection is not None)

    def select_image_model(self, selection: Optional[ModelSelection]) -> Optional[PendingWrite]:
        return self.store.set(SELECTED_IMAGE_MODEL, selection, persist=selection is not None)

    def set_analytics_model(self, provider_id: Optional[int], model_name: Optional[str]) -> PendingWrite:
        if not provider_id or not model_name:
            raise ValidationError("select_provider_and_model")
        selection = ModelSelection(provider_id=provider_id, model_name=model_name)
        return self.store.set(ANALYTICS_AI_MODEL, selection)

    # ------------------------------------------------------------------
    # appearance and image generation
    @property
    def theme_mode(self) -> str:
        return self.store.get(THEME_MODE)

    def set_theme_mode(self, mode: str) -> PendingWrite:
        if mode not in THEME_MODES:
            raise ValidationError(f"Unknown theme mode: {mode}")
        return self.store.set(THEME_MODE, mode)

    @property
    def image_size(self) -> str:
        return self.store.get(IMAGE_SIZE)

    @property
    def image_dimensions(self) -> Tuple[int, int]:
        return parse_image_size(self.image_size)

    @property
    def is_custom_image_size(self) -> bool:
        return self.image_size not in IMAGE_SIZE_PRESETS

    def set_image_size(self, size: str) -> PendingWrite:
        if size in IMAGE_SIZE_PRESETS:
            return self.store.set(IMAGE_SIZE, size)
        width, height = parse_image_size(size)
        return self.store.set(IMAGE_SIZE, f"{width}x{height}")

    def set_custom_image_size(self, width: Union[str, int], height: Union[str, int]) -> PendingWrite:
        return self.store.set(IMAGE_SIZE, f"{clamp_dimension(width)}x{clamp_dimension(height)}")

    @property
    def headless_mode(self) -> bool:
        return self.store.get(HEADLESS_MODE)

    def set_headless_mode(self, enabled: bool) -> PendingWrite:
        return self.store.set(HEADLESS_MODE, bool(enabled))

    # ------------------------------------------------------------------
    # custom prompts
    @property
    def custom_prompts(self) -> List[Prompt]:
        return list(self.store.get(CUSTOM_PROMPTS))

    def find_prompt(self, prompt_id: str) -> Prompt:
        for prompt in self.custom_prompts:
            if prompt.id == prompt_id:
                return prompt
        raise NotFoundError(f"Prompt {prompt_id} not found")

    def add_prompt(self, prompt: Prompt) -> PendingWrite:
        if not prompt.name.strip() or not prompt.content.strip():
            raise ValidationError("prompt_incomplete")
        return self.store.set(CUSTOM_PROMPTS, self.custom_prompts + [prompt])

    def update_prompt(self, prompt_id: str, **fields: Any) -> PendingWrite:
        prompts = [
            p.model_copy(update=fields) if p.id == prompt_id else p for p in self.custom_prompts
        ]
        return self.store.set(CUSTOM_PROMPTS, prompts)

    def delete_prompt(self, prompt_id: str) -> PendingWrite:
        prompts = [p for p in self.custom_prompts if p.id != prompt_id]
        return self.store.set(CUSTOM_PROMPTS, prompts)


__all__ = [
    "Preferences",
    "PREFERENCE_KEYS",
    "IMAGE_SIZE_PRESETS",
    "THEME_MODES",
    "clamp_dimension",
    "parse_image_size",
]
