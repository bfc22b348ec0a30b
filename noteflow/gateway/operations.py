"""Argument records for every remote operation the client may invoke.

Each operation name maps to a pydantic model; the gateway validates call
arguments against it before anything leaves the process.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict

from noteflow.core.models import AIProvider


class _Args(BaseModel):
    model_config = ConfigDict(extra="forbid")


class NoArgs(_Args):
    pass


class PhoneArgs(_Args):
    phone: str


class VerificationArgs(_Args):
    phone: str
    code: str


class UserIdArgs(_Args):
    user_id: int


class SavePostArgs(_Args):
    user_id: int
    title: str
    content: str
    images: List[str]
    cover_image: Optional[str] = None
    post_id: Optional[int] = None


class PostIdArgs(_Args):
    post_id: int


class ConfigKeyArgs(_Args):
    key: str


class SaveConfigArgs(_Args):
    key: str
    value: str


class ProviderArgs(_Args):
    provider: AIProvider


class ProviderIdArgs(_Args):
    id: int


class ModelProbeArgs(_Args):
    provider: AIProvider
    model_name: str


class GenerateTextArgs(_Args):
    prompt: str
    system: Optional[str] = None
    provider: AIProvider
    model_name: str


class GenerateImageArgs(_Args):
    prompt: str
    provider: AIProvider
    model_name: str
    size: Optional[str] = None


class AnalyzeImageArgs(_Args):
    image_path: str
    prompt: str
    provider: AIProvider
    model_name: str


class PolishTitleArgs(_Args):
    title: str
    instruction: Optional[str] = None
    provider: AIProvider
    model_name: str


class StartMcpArgs(_Args):
    port: int
    token: Optional[str] = None


class PortArgs(_Args):
    port: int


class ApiKeyArgs(_Args):
    key: str


class PathArgs(_Args):
    path: str


class PathsArgs(_Args):
    paths: List[str]


class PublishArgs(_Args):
    phone: str
    title: str
    content: str
    images: List[str]
    cover_image: Optional[str] = None


OPERATIONS: Dict[str, Type[_Args]] = {
    # roster and session lifecycle
    "get_users": NoArgs,
    "validate_login_status": PhoneArgs,
    "logout_user": PhoneArgs,
    "open_user_data_dir": PhoneArgs,
    "fetch_user_analytics": PhoneArgs,
    # credential acquisition
    "start_login_process": PhoneArgs,
    "submit_verification_code": VerificationArgs,
    # drafts
    "get_posts": UserIdArgs,
    "save_post": SavePostArgs,
    "delete_post": PostIdArgs,
    # generic key/value config
    "get_config_value": ConfigKeyArgs,
    "save_config": SaveConfigArgs,
    # provider registry
    "get_ai_providers": NoArgs,
    "save_ai_provider": ProviderArgs,
    "delete_ai_provider": ProviderIdArgs,
    "test_ai_provider": ProviderArgs,
    "test_model_chat": ModelProbeArgs,
    "test_model_structured_output": ModelProbeArgs,
    # inference
    "generate_ai_text": GenerateTextArgs,
    "generate_ai_image": GenerateImageArgs,
    "analyze_local_image": AnalyzeImageArgs,
    "polish_title_with_options": PolishTitleArgs,
    # automation-protocol service
    "get_mcp_status": NoArgs,
    "start_mcp_server": StartMcpArgs,
    "stop_mcp_server": NoArgs,
    # HTTP API service
    "get_api_status": NoArgs,
    "start_api_server": PortArgs,
    "stop_api_server": NoArgs,
    "get_api_key": NoArgs,
    "save_api_key": ApiKeyArgs,
    "generate_api_key": NoArgs,
    # pass-through
    "get_trends": NoArgs,
    "list_local_images": NoArgs,
    "import_local_images": PathsArgs,
    "delete_local_image": PathArgs,
    "publish_post": PublishArgs,
}


__all__ = ["OPERATIONS"]
