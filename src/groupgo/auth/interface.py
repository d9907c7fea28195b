from abc import ABC, abstractmethod

from pydantic import BaseModel


class AuthUser(BaseModel):
    user_id: str
    email: str
    display_name: str
    metadata: dict[str, str] = {}


class AuthProvider(ABC):
    @abstractmethod
    async def create_user(
        self, email: str, password: str, first_name: str, last_name: str, display_name: str
    ) -> AuthUser: ...

    @abstractmethod
    async def verify_password(self, email: str, password: str) -> AuthUser: ...

    @abstractmethod
    async def verify_token(self, token: str) -> AuthUser: ...

    @abstractmethod
    async def get_user(self, user_id: str) -> AuthUser: ...

    @abstractmethod
    async def update_display_name(self, user_id: str, display_name: str) -> AuthUser: ...


def get_auth_provider() -> AuthProvider:
    from groupgo.config import get_config

    config = get_config()
    clerk_secret = config.clerk_secret_key
    if not clerk_secret:
        raise ValueError("CLERK_SECRET_KEY not configured")

    from groupgo.auth.clerk_provider import ClerkAuthProvider

    return ClerkAuthProvider(secret_key=clerk_secret)
