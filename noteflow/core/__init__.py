"""Core library exposing domain models, settings, exceptions and i18n."""

from .settings import Settings, get_settings
from .exceptions import (
    DomainError,
    NotFoundError,
    ValidationError,
    NotAuthenticatedError,
    RemoteError,
    GatewayUnavailableError,
    Error,
)
from .models import (
    User,
    AIModel,
    AIProvider,
    ModelSelection,
    Post,
    Prompt,
    ServiceStatus,
    ProbeResult,
    TrendItem,
    UserAnalytics,
)
from .i18n import I18n

__all__ = [
    "Settings",
    "get_settings",
    "DomainError",
    "NotFoundError",
    "ValidationError",
    "NotAuthenticatedError",
    "RemoteError",
    "GatewayUnavailableError",
    "Error",
    "User",
    "AIModel",
    "AIProvider",
    "ModelSelection",
    "Post",
    "Prompt",
    "ServiceStatus",
    "ProbeResult",
    "TrendItem",
    "UserAnalytics",
    "I18n",
]
