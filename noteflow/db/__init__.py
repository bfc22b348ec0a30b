"""Client-local persistence for keys that never reach the backend."""

from . import models
from .database import Base, LocalDatabase
from .repositories import LocalSettingRepo

__all__ = ["models", "Base", "LocalDatabase", "LocalSettingRepo"]
