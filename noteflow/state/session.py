"""Current identity and the roster of bound accounts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple, Union

from noteflow.core.exceptions import DomainError, RemoteError, ValidationError
from noteflow.core.models import User, UserAnalytics
from noteflow.gateway import RemoteGateway
from .events import EventBus

ALREADY_LOGGED_IN_PREFIX = "already_logged_in:"


class AccountStatus(str, Enum):
    """Per-account validity as last observed; only changes on explicit checks."""

    UNKNOWN = "unknown"
    VALIDATING = "validating"
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class LoginStarted:
    """The backend sent a verification code to ``phone``."""

    phone: str


class SessionManager:
    CURRENT_TOPIC = "session.current_user"
    USERS_TOPIC = "session.users"
    STATUS_TOPIC = "session.account_status"

    def __init__(self, gateway: RemoteGateway, bus: EventBus) -> None:
        self.gateway = gateway
        self.bus = bus
        self.logger = logging.getLogger(__name__)
        self._current: Optional[User] = None
        self._users: List[User] = []
        self._status: Dict[str, AccountStatus] = {}
        self.validating: Set[str] = set()

    # ------------------------------------------------------------------
    @property
    def current_user(self) -> Optional[User]:
        return self._current

    @property
    def users(self) -> List[User]:
        return list(self._users)

    def status_of(self, phone: str) -> AccountStatus:
        return self._status.get(phone, AccountStatus.UNKNOWN)

    def is_current(self, user: User) -> bool:
        return self._current is not None and self._current.phone == user.phone

    def _set_current(self, user: Optional[User]) -> None:
        self._current = user
        self.bus.publish(self.CURRENT_TOPIC, user)

    def _set_status(self, phone: str, status: AccountStatus) -> None:
        self._status[phone] = status
        self.bus.publish(self.STATUS_TOPIC, (phone, status))

    # ------------------------------------------------------------------
    async def fetch_users(self) -> bool:
        """Replace the roster; the last fetch to complete wins."""

        try:
            users = await self.gateway.get_users()
        except DomainError as exc:
            self.logger.warning("roster refresh failed: %s", exc, extra={"operation": "get_users"})
            return False
        self._users = users
        self.bus.publish(self.USERS_TOPIC, self.users)
        return True

    async def validate(self, phone: str) -> User:
        """Confirm the account's credential still works.

        Raises :class:`RemoteError` on failure and leaves the current identity
        alone. On success a refreshed record replaces the roster entry and,
        for the current account, the current identity.
        """
        self.validating.add(phone)
        self._set_status(phone, AccountStatus.VALIDATING)
        try:
            user = await self.gateway.validate_login_status(phone)
        except RemoteError:
            self._set_status(phone, AccountStatus.INVALID)
            raise
        finally:
            self.validating.discard(phone)
        self._set_status(phone, AccountStatus.VALID)
        self._users = [user if u.phone == user.phone else u for u in self._users]
        if self.is_current(user) and user != self._current:
            self._set_current(user)
        return user

    async def validate_all(self) -> Tuple[int, int]:
        """Validate every rostered account in turn; returns ``(valid, invalid)``."""

        valid = invalid = 0
        for user in self.users:
            try:
                await self.validate(user.phone)
            except RemoteError:
                invalid += 1
            else:
                valid += 1
        return valid, invalid

    async def switch(self, user: User) -> User:
        if self.is_current(user):
            return self._current
        validated = await self.validate(user.phone)
        self._set_current(validated)
        return validated

    async def unbind(self, user: User) -> None:
        """Remove the account's credentials on the backend, then re-fetch the roster."""

        await self.gateway.logout_user(user.phone)
        if self.is_current(user):
            self._set_current(None)
        self._status.pop(user.phone, None)
        await self.fetch_users()

    def logout(self) -> None:
        """Return to the account picker; the remote binding stays."""

        if self._current is not None:
            self._set_current(None)

    # ------------------------------------------------------------------
    # credential acquisition
    async def start_login(self, phone: str) -> Union[LoginStarted, User]:
        phone = phone.strip()
        if not phone:
            raise ValidationError("phone_required")
        reply = await self.gateway.start_login_process(phone)
        if reply.startswith(ALREADY_LOGGED_IN_PREFIX):
            payload = reply[len(ALREADY_LOGGED_IN_PREFIX):]
            try:
                return User.model_validate_json(payload)
            except ValueError as exc:
                raise RemoteError(
                    f"Malformed login reply: {payload[:200]}", operation="start_login_process"
                ) from exc
        return LoginStarted(phone)

    async def submit_code(self, phone: str, code: str) -> User:
        if not code.strip():
            raise ValidationError("code_required")
        return await self.gateway.submit_verification_code(phone, code.strip())

    async def complete_login(self, user: User) -> None:
        await self.fetch_users()
        self._set_status(user.phone, AccountStatus.VALID)
        self._set_current(user)

    # ------------------------------------------------------------------
    async def open_user_data_dir(self, phone: str) -> None:
        await self.gateway.open_user_data_dir(phone)

    async def fetch_analytics(self, phone: str) -> UserAnalytics:
        return await self.gateway.fetch_user_analytics(phone)


__all__ = ["SessionManager", "AccountStatus", "LoginStarted", "ALREADY_LOGGED_IN_PREFIX"]
