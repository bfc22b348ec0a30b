"""Shared client state: one container, explicit components, topic notifications."""

from .events import EventBus
from .config_store import ConfigKey, ConfigSyncStore, PendingWrite, json_key, UNSAVED_TOPIC
from .preferences import Preferences, clamp_dimension, parse_image_size
from .selection import DanglingSelection, ResolvedSelection, resolve, resolved_or_none
from .providers import ModelCandidate, ProviderRegistry
from .session import AccountStatus, LoginStarted, SessionManager
from .drafts import DraftModel, MAX_IMAGES
from .local_settings import LocalSettings
from .status import ApiService, McpService, ServicePoller
from .trends import TrendsCache
from .app_state import AppState

__all__ = [
    "EventBus",
    "ConfigKey",
    "ConfigSyncStore",
    "PendingWrite",
    "json_key",
    "UNSAVED_TOPIC",
    "Preferences",
    "clamp_dimension",
    "parse_image_size",
    "DanglingSelection",
    "ResolvedSelection",
    "resolve",
    "resolved_or_none",
    "ModelCandidate",
    "ProviderRegistry",
    "AccountStatus",
    "LoginStarted",
    "SessionManager",
    "DraftModel",
    "MAX_IMAGES",
    "LocalSettings",
    "ApiService",
    "McpService",
    "ServicePoller",
    "TrendsCache",
    "AppState",
]
