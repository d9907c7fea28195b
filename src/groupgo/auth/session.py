"""The signed-in identity shared by every store."""

import logging
from typing import TYPE_CHECKING

from groupgo.auth.interface import AuthProvider, AuthUser
from groupgo.errors import NotAuthenticatedError
from groupgo.result import returns_result

if TYPE_CHECKING:
    from groupgo.stores.users import UserDirectory

logger = logging.getLogger(__name__)


class AuthSession:
    def __init__(
        self,
        provider: AuthProvider,
        users: "UserDirectory | None" = None,
        user: AuthUser | None = None,
    ) -> None:
        # ``user`` restores a session persisted by the caller.
        self._provider = provider
        self._users = users
        self._current = user

    @property
    def current_user(self) -> AuthUser | None:
        return self._current

    @property
    def is_signed_in(self) -> bool:
        return self._current is not None

    def require_user(self) -> AuthUser:
        if self._current is None:
            raise NotAuthenticatedError()
        return self._current

    @returns_result
    async def sign_up(self, email: str, password: str, first_name: str, last_name: str) -> AuthUser:
        display_name = f"{first_name} {last_name}".strip()
        user = await self._provider.create_user(email.strip(), password, first_name, last_name, display_name)
        if self._users is not None:
            (await self._users.save_user(user.user_id, first_name, last_name, user.email or email.strip())).unwrap()
        self._current = user
        logger.info("Signed up user %s", user.user_id)
        return user

    @returns_result
    async def sign_in(self, email: str, password: str) -> AuthUser:
        user = await self._provider.verify_password(email.strip(), password)
        if self._users is not None:
            (await self._users.merge_user(user.user_id, user.email or email.strip(), user.display_name)).unwrap()
        self._current = user
        logger.info("Signed in user %s", user.user_id)
        return user

    @returns_result
    async def sign_in_with_token(self, token: str) -> AuthUser:
        user = await self._provider.verify_token(token)
        self._current = user
        return user

    def sign_out(self) -> None:
        if self._current is not None:
            logger.info("Signed out user %s", self._current.user_id)
        self._current = None

    @returns_result
    async def update_display_name(self, display_name: str) -> AuthUser:
        user = self.require_user()
        updated = await self._provider.update_display_name(user.user_id, display_name.strip())
        if self._users is not None:
            (await self._users.merge_user(updated.user_id, updated.email, updated.display_name)).unwrap()
        self._current = updated
        return updated
