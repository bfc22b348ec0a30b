"""Pydantic models representing core domain entities."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

ModelType = Literal["text", "image"]
ThemeMode = Literal["light", "dark", "system"]


class User(BaseModel):
    """A bound publishing-platform account."""

    id: int = Field(..., description="Stable backend identifier")
    nickname: str = ""
    phone: str = Field(..., description="Natural key used by most remote operations")
    avatar: Optional[str] = None
    created_at: Optional[str] = None


class AIModel(BaseModel):
    """A model offered by a provider; unique by name within that provider."""

    id: Optional[int] = None
    provider_id: Optional[int] = None
    name: str
    model_type: ModelType = "text"
    supports_structured_output: Optional[bool] = None
    test_status: Optional[str] = None


class AIProvider(BaseModel):
    """An AI endpoint and the ordered models it exposes."""

    id: Optional[int] = None
    name: str = ""
    api_key: str = ""
    base_url: Optional[str] = None
    models: List[AIModel] = Field(default_factory=list)


class ModelSelection(BaseModel):
    """Reference to a provider/model pair; may dangle after registry edits."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    provider_id: int = Field(..., alias="providerId")
    model_name: str = Field(..., alias="modelName")


class Post(BaseModel):
    """A composition; with an ``id`` it aliases a persisted draft."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    title: str = ""
    content: str = ""
    images: List[str] = Field(default_factory=list)
    cover_image: Optional[str] = Field(default=None, alias="coverImage")
    created_at: Optional[str] = None
    status: Optional[str] = None


class Prompt(BaseModel):
    """User-defined reusable instruction."""

    id: str
    name: str
    content: str


class ServiceStatus(BaseModel):
    """Backend-owned process state as last sampled by the client."""

    is_running: bool = False
    port: int = 0
    token: Optional[str] = None


class ProbeResult(BaseModel):
    """Outcome of a connectivity or model test; never mutates the registry."""

    success: bool
    message: str = ""


class TrendItem(BaseModel):
    id: Optional[str] = None
    index: int = 0
    url: str = ""
    title: str = ""
    img: Optional[str] = None
    desc: Optional[str] = None
    user: Optional[str] = None
    user_id: Optional[int] = None
    user_face: Optional[str] = None
    reason: Optional[str] = None
    sorting: Optional[Union[str, int]] = None
    time: Optional[str] = None


TrendData = Dict[str, List[TrendItem]]


class UserAnalytics(BaseModel):
    """Account dashboard numbers scraped by the backend."""

    following_count: int = 0
    followers_count: int = 0
    likes_and_collections: int = 0
    exposure_count: int = 0
    view_count: int = 0
    cover_click_rate: float = 0.0
    video_completion_rate: float = 0.0
    like_count: int = 0
    comment_count: int = 0
    collection_count: int = 0
    share_count: int = 0
    net_follower_growth: int = 0
    new_followers: int = 0
    unfollowers: int = 0
    profile_visitors: int = 0
    period: str = ""


__all__ = [
    "ModelType",
    "ThemeMode",
    "User",
    "AIModel",
    "AIProvider",
    "ModelSelection",
    "Post",
    "Prompt",
    "ServiceStatus",
    "ProbeResult",
    "TrendItem",
    "TrendData",
    "UserAnalytics",
]
