"""Authentication: token and user profile."""

from .api import AuthApi
from .schemas import AuthResponse, User
from .store import AuthState, AuthStore

__all__ = [
    "AuthApi",
    "AuthResponse",
    "AuthState",
    "AuthStore",
    "User",
]
