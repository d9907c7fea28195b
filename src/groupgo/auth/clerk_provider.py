from typing import Any

from clerk_backend_api import Clerk, authenticate_request
from clerk_backend_api.security.types import AuthenticateRequestOptions

from groupgo.errors import ErrorCode, NotAuthenticatedError

from .interface import AuthProvider, AuthUser

DISPLAY_NAME_KEY = "displayName"


class _FakeRequest:
    """Adapts a raw Bearer token to the Requestish protocol expected by Clerk SDK."""

    def __init__(self, token: str):
        self.headers = {"Authorization": f"Bearer {token}"}


def _auth_failed(message: str) -> NotAuthenticatedError:
    return NotAuthenticatedError(message, code=ErrorCode.AUTH_FAILED)


class ClerkAuthProvider(AuthProvider):
    def __init__(self, secret_key: str):
        self._client = Clerk(bearer_auth=secret_key)
        self._secret_key = secret_key

    @staticmethod
    def _to_auth_user(user: Any) -> AuthUser:
        metadata = dict(user.public_metadata) if user.public_metadata else {}
        display_name = (
            str(metadata.get(DISPLAY_NAME_KEY) or "").strip()
            or f"{user.first_name or ''} {user.last_name or ''}".strip()
            or user.username
            or ""
        )
        return AuthUser(
            user_id=user.id,
            email=user.email_addresses[0].email_address if user.email_addresses else "",
            display_name=display_name,
            metadata={k: str(v) for k, v in metadata.items()},
        )

    async def create_user(
        self, email: str, password: str, first_name: str, last_name: str, display_name: str
    ) -> AuthUser:
        try:
            user = self._client.users.create(
                request={
                    "email_address": [email],
                    "password": password,
                    "first_name": first_name,
                    "last_name": last_name,
                    "public_metadata": {DISPLAY_NAME_KEY: display_name},
                }
            )
            return self._to_auth_user(user)
        except Exception as e:
            raise _auth_failed(f"Sign up failed: {e}") from e

    async def verify_password(self, email: str, password: str) -> AuthUser:
        try:
            users = self._client.users.list(request={"email_address": [email]}) or []
            if not users:
                raise _auth_failed("No account for that email")
            user = users[0]
            result = self._client.users.verify_password(user_id=user.id, password=password)
            if result is None or not result.verified:
                raise _auth_failed("Incorrect password")
            return self._to_auth_user(user)
        except NotAuthenticatedError:
            raise
        except Exception as e:
            raise _auth_failed(f"Sign in failed: {e}") from e

    async def verify_token(self, token: str) -> AuthUser:
        try:
            request_state = authenticate_request(
                _FakeRequest(token),
                AuthenticateRequestOptions(secret_key=self._secret_key),
            )
            if not request_state.is_signed_in or request_state.payload is None:
                raise _auth_failed(f"Token verification failed: {request_state.message or 'unknown'}")
            user_id = str(request_state.payload["sub"])
            return await self.get_user(user_id)
        except NotAuthenticatedError:
            raise
        except Exception as e:
            raise _auth_failed(f"Token verification failed: {e}") from e

    async def get_user(self, user_id: str) -> AuthUser:
        try:
            return self._to_auth_user(self._client.users.get(user_id=user_id))
        except Exception as e:
            raise _auth_failed(f"Failed to fetch user: {e}") from e

    async def update_display_name(self, user_id: str, display_name: str) -> AuthUser:
        try:
            user = self._client.users.update_metadata(
                user_id=user_id,
                public_metadata={DISPLAY_NAME_KEY: display_name},
            )
            return self._to_auth_user(user)
        except Exception as e:
            raise _auth_failed(f"Profile update failed: {e}") from e
