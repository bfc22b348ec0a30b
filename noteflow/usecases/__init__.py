"""User actions that combine client state with remote operations."""

from .prompts import PromptCatalog, PromptsError
from .ai_actions import AnalyzeImage, ComposeContent, GenerateImage, GenerateImagePrompt, PolishText
from .publish import PublishPost
from .assets import AssetLibrary

__all__ = [
    "PromptCatalog",
    "PromptsError",
    "ComposeContent",
    "GenerateImagePrompt",
    "GenerateImage",
    "PolishText",
    "AnalyzeImage",
    "PublishPost",
    "AssetLibrary",
]
