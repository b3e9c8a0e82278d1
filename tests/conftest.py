"""Pytest configuration and shared fixtures.

This module provides fixtures for testing the readclub stores, including
temporary on-device storage, mocked endpoint wrappers and fake HTTP
responses.
"""

import os
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock

import pytest

from readclub.config import reset_config
from readclub.reading import SessionsApi
from readclub.storage import KeyValueStorage
from readclub.streaks import StreaksApi


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    """Directory used as on-device storage."""
    return tmp_path / "storage"


@pytest.fixture
def storage(storage_dir: Path) -> KeyValueStorage:
    """Key/value storage in a temporary directory."""
    return KeyValueStorage(storage_dir)


@pytest.fixture
def clean_env(storage_dir: Path) -> Generator[None, None, None]:
    """Point configuration at a test backend and temporary storage."""
    reset_config()
    saved = {k: os.environ.get(k) for k in ("READCLUB_API_URL", "READCLUB_STORAGE_DIR")}
    os.environ["READCLUB_API_URL"] = "http://test.local"
    os.environ["READCLUB_STORAGE_DIR"] = str(storage_dir)

    yield

    reset_config()
    for key, value in saved.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


# ============================================================================
# HTTP Fixtures
# ============================================================================


@pytest.fixture
def make_response():
    """Factory for fake requests.Response objects."""

    def _make(status_code: int = 200, json_data=None):
        response = MagicMock()
        response.status_code = status_code
        response.ok = 200 <= status_code < 300
        if json_data is None:
            response.content = b""
            response.json.side_effect = ValueError("No JSON")
        else:
            response.content = b"{...}"
            response.json.return_value = json_data
        return response

    return _make


# ============================================================================
# Endpoint Fixtures
# ============================================================================


@pytest.fixture
def sessions_api() -> MagicMock:
    """Mocked reading session endpoints."""
    return MagicMock(spec=SessionsApi)


@pytest.fixture
def streaks_api() -> MagicMock:
    """Mocked streak endpoints."""
    return MagicMock(spec=StreaksApi)


# ============================================================================
# Sample Payloads
# ============================================================================


@pytest.fixture
def session_payload():
    """Factory for server reading-session JSON."""

    def _make(session_id: str = "sess-1", **overrides):
        data = {
            "_id": session_id,
            "bookId": "b1",
            "bookshelfItemId": "s1",
            "startTime": "2025-03-01T10:00:00.000Z",
            "endTime": "2025-03-01T10:00:00.000Z",
            "startPage": 10,
            "endPage": 10,
            "duration": 0,
            "pagesRead": 0,
            "sessionDate": "2025-03-01",
            "isCompleteSession": False,
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def streak_payload():
    """Factory for GET /api/streaks/my-streak JSON."""

    def _make(current: int = 5, **overrides):
        data = {
            "currentStreak": current,
            "longestStreak": max(current, 12),
            "lastCheckIn": "2025-03-01T08:00:00.000Z",
            "canRestore": False,
            "milestones": {
                "day7": {"achieved": current >= 7, "date": None},
                "day30": {"achieved": False, "date": None},
                "day100": {"achieved": False, "date": None},
                "day365": {"achieved": False, "date": None},
            },
            "totalCheckIns": 40,
            "currentStreakStartDate": "2025-02-25T08:00:00.000Z",
        }
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def user_payload():
    """Server user JSON as returned by the auth endpoints."""
    return {
        "id": "u1",
        "username": "reader",
        "email": "reader@example.com",
        "profileImage": "https://example.com/reader.svg",
        "bio": "",
        "level": 3,
        "points": 120,
        "currentStreak": 5,
        "longestStreak": 12,
        "createdAt": "2024-12-01T00:00:00.000Z",
    }


# ============================================================================
# CLI Testing Fixtures
# ============================================================================


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner
    return CliRunner()
