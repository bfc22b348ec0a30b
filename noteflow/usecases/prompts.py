"""System prompts for the AI actions, kept in YAML next to the i18n catalogs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

import yaml

from noteflow.core.exceptions import DomainError


class PromptsError(DomainError):
    """Raised when the prompt catalog is missing or incomplete."""


def _default_path() -> Path:
    # noteflow/usecases/prompts.py -> project_root/config/prompts.yaml
    return Path(__file__).resolve().parents[2] / "config" / "prompts.yaml"


class PromptCatalog:
    """Two-level ``section.key`` lookup over ``config/prompts.yaml``."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else _default_path()
        self.logger = logging.getLogger(__name__)
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                self.prompts: Dict[str, Dict[str, str]] = yaml.safe_load(fh) or {}
            self.logger.debug("Prompts loaded from: %s", str(self.path))
        except FileNotFoundError as exc:
            raise PromptsError(f"Prompts file not found: {self.path}") from exc
        except yaml.YAMLError as exc:
            raise PromptsError("Failed to parse prompts file") from exc

    def get(self, section: str, key: str) -> str:
        try:
            return self.prompts[section][key]
        except KeyError as exc:
            raise PromptsError(f"Prompt '{section}.{key}' not found in {self.path}") from exc

    def render(self, section: str, key: str, **params: Any) -> str:
        return self.get(section, key).format(**params)


__all__ = ["PromptCatalog", "PromptsError"]
