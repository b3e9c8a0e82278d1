"""Endpoint wrappers for /api/auth."""

from typing import Optional

from ..api.client import ApiClient, CancelToken
from .schemas import AuthResponse, User


class AuthApi:
    """Thin wrapper over the authentication endpoints."""

    def __init__(self, client: ApiClient):
        self.client = client

    def login(
        self, email: str, password: str, cancel: Optional[CancelToken] = None
    ) -> AuthResponse:
        data = self.client.post(
            "/api/auth/login", json={"email": email, "password": password}, cancel=cancel
        )
        return AuthResponse.model_validate(data)

    def register(
        self,
        username: str,
        email: str,
        password: str,
        cancel: Optional[CancelToken] = None,
    ) -> AuthResponse:
        data = self.client.post(
            "/api/auth/register",
            json={"username": username, "email": email, "password": password},
            cancel=cancel,
        )
        return AuthResponse.model_validate(data)

    def me(self, cancel: Optional[CancelToken] = None) -> User:
        data = self.client.get("/api/auth/me", cancel=cancel)
        return User.model_validate(data["user"])
