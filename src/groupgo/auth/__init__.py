"""Authentication abstraction layer."""

from groupgo.auth.clerk_provider import ClerkAuthProvider
from groupgo.auth.interface import AuthProvider, AuthUser, get_auth_provider
from groupgo.auth.session import AuthSession

__all__ = ["AuthProvider", "AuthSession", "AuthUser", "ClerkAuthProvider", "get_auth_provider"]
