"""Pydantic schemas for authentication."""

from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, Field

from ..schemas import ServerModel

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6


class User(ServerModel):
    """Profile of the signed-in user."""

    id: str = Field(..., validation_alias=AliasChoices("id", "_id"))
    username: str
    email: Optional[str] = None
    profile_image: Optional[str] = None
    bio: Optional[str] = None
    level: Optional[int] = None
    points: Optional[int] = None
    current_streak: Optional[int] = None
    longest_streak: Optional[int] = None
    created_at: Optional[datetime] = None


class AuthResponse(ServerModel):
    """Response of the login and register endpoints."""

    token: str
    user: User


def validate_login(email: str, password: str) -> Optional[str]:
    """Return an error message if the login form is incomplete."""
    if not email.strip() or not password:
        return "All fields are required"
    return None


def validate_registration(username: str, email: str, password: str) -> Optional[str]:
    """Return an error message if the registration form is invalid."""
    if not username.strip() or not email.strip() or not password:
        return "All fields are required"
    if len(username.strip()) < MIN_USERNAME_LENGTH:
        return f"Username should be at least {MIN_USERNAME_LENGTH} characters long"
    if len(password) < MIN_PASSWORD_LENGTH:
        return f"Password should be at least {MIN_PASSWORD_LENGTH} characters long"
    return None
