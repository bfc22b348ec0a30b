"""Resolution of stored model selections against the live provider list.

A selection is only a reference. Whether it still points at something is
computed on every read and never cached.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, Optional, Union

from noteflow.core.models import AIModel, AIProvider, ModelSelection, ModelType

DanglingReason = Literal["provider_missing", "model_missing", "type_mismatch"]


@dataclass(frozen=True)
class ResolvedSelection:
    selection: ModelSelection
    provider: AIProvider
    model: AIModel

    @property
    def model_name(self) -> str:
        return self.model.name


@dataclass(frozen=True)
class DanglingSelection:
    selection: ModelSelection
    reason: DanglingReason


Resolution = Union[ResolvedSelection, DanglingSelection]


def resolve(
    providers: Iterable[AIProvider],
    selection: Optional[ModelSelection],
    model_type: Optional[ModelType] = None,
) -> Optional[Resolution]:
    """Look ``selection`` up in ``providers``; never raises.

    ``None`` means nothing is selected. Presence is decided by provider id and
    exact model name; ``model_type`` adds the usage-context check.
    """
    if selection is None:
        return None
    provider = next((p for p in providers if p.id == selection.provider_id), None)
    if provider is None:
        return DanglingSelection(selection, "provider_missing")
    model = next((m for m in provider.models if m.name == selection.model_name), None)
    if model is None:
        return DanglingSelection(selection, "model_missing")
    if model_type is not None and model.model_type != model_type:
        return DanglingSelection(selection, "type_mismatch")
    return ResolvedSelection(selection, provider, model)


def resolved_or_none(resolution: Optional[Resolution]) -> Optional[ResolvedSelection]:
    """Collapse a dangling selection to "nothing selected"."""
    return resolution if isinstance(resolution, ResolvedSelection) else None


__all__ = [
    "ResolvedSelection",
    "DanglingSelection",
    "Resolution",
    "resolve",
    "resolved_or_none",
]
