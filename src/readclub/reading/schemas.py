"""Pydantic schemas for reading sessions and reading statistics."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, Field, model_validator

from ..schemas import ServerModel


class SessionSource(str, Enum):
    """How a session was recorded."""

    MANUAL = "manual"
    AUTO = "auto"
    IMPORTED = "imported"


class DeviceType(str, Enum):
    """Device a session was recorded on."""

    MOBILE = "mobile"
    TABLET = "tablet"
    WEB = "web"
    UNKNOWN = "unknown"


class ReadingSession(ServerModel):
    """Client mirror of a server reading session.

    Duration, pages read, speed, focus score and ink drops are computed by
    the server and only ever copied from its responses.
    """

    id: Optional[str] = Field(None, validation_alias=AliasChoices("_id", "id"))
    book_id: str
    bookshelf_item_id: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    start_page: int = 0
    end_page: Optional[int] = None

    # Server-computed
    duration: Optional[float] = None  # minutes
    pages_read: Optional[int] = None
    words_read: Optional[int] = None
    reading_speed: Optional[float] = None  # pages per hour
    focus_score: Optional[float] = None  # 0-100
    ink_drops_earned: Optional[int] = None
    session_date: Optional[str] = None  # YYYY-MM-DD
    contributes_to_streak: Optional[bool] = None
    is_complete_session: Optional[bool] = None

    # Pause telemetry as reported back by the server
    pause_count: Optional[int] = None
    average_pause_duration: Optional[float] = None

    source: Optional[SessionSource] = None
    device_type: Optional[DeviceType] = None
    location: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_references(cls, data: Any) -> Any:
        """Accept populated references ({"_id": ...}) for book fields."""
        if isinstance(data, dict):
            data = dict(data)
            for key in ("bookId", "bookshelfItemId", "book_id", "bookshelf_item_id"):
                value = data.get(key)
                if isinstance(value, dict):
                    data[key] = value.get("_id") or value.get("id")
        return data


class StartSessionRequest(ServerModel):
    """Body for POST /api/sessions/start."""

    book_id: str = Field(..., min_length=1)
    bookshelf_item_id: str = Field(..., min_length=1)
    start_page: int = Field(..., ge=0)
    source: Optional[SessionSource] = None
    device_type: Optional[DeviceType] = None
    location: Optional[str] = Field(None, max_length=100)


class EndSessionRequest(ServerModel):
    """Body for POST /api/sessions/:id/end."""

    end_page: int = Field(..., ge=0)
    pause_count: int = Field(0, ge=0)
    average_pause_duration: float = Field(0, ge=0)


class ManualSessionCreate(ServerModel):
    """Body for POST /api/sessions/manual."""

    book_id: str = Field(..., min_length=1)
    bookshelf_item_id: str = Field(..., min_length=1)
    start_time: datetime
    end_time: datetime
    start_page: int = Field(..., ge=0)
    end_page: int = Field(..., ge=0)
    source: Optional[SessionSource] = None
    location: Optional[str] = Field(None, max_length=100)


class EndSessionResult(ServerModel):
    """Response of POST /api/sessions/:id/end."""

    session: ReadingSession = Field(..., validation_alias=AliasChoices("data", "session"))
    ink_drops_earned: int = 0
    message: Optional[str] = None


class SessionFilters(ServerModel):
    """Query filters for GET /api/sessions."""

    bookshelf_item_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    limit: Optional[int] = Field(None, gt=0, le=100)
    offset: Optional[int] = Field(None, ge=0)

    def to_params(self) -> dict:
        return self.to_payload()


class Pagination(ServerModel):
    """Server-supplied pagination, trusted as-is."""

    total: int = 0
    limit: int = 50
    offset: int = 0
    has_more: bool = False


class SessionPage(ServerModel):
    """Response of GET /api/sessions."""

    sessions: list[ReadingSession] = Field(
        default_factory=list, validation_alias=AliasChoices("data", "sessions")
    )
    pagination: Pagination = Field(default_factory=Pagination)


class OverallStats(ServerModel):
    """Lifetime reading aggregates."""

    total_sessions: int = 0
    total_minutes: float = 0
    total_pages: int = 0
    total_words: int = 0
    average_speed: Optional[float] = 0
    average_focus_score: Optional[float] = 0
    longest_session: float = 0
    streak_valid_sessions: int = 0


class _PeriodStat(ServerModel):
    total_minutes: float = 0
    total_pages: int = 0
    total_words: int = 0
    session_count: int = 0
    avg_focus_score: Optional[float] = None


class DailyStat(_PeriodStat):
    """Aggregate for one day."""

    date: str = Field(..., validation_alias=AliasChoices("_id", "date"))  # YYYY-MM-DD


class WeeklyStat(_PeriodStat):
    """Aggregate for one week."""

    year: int
    week: int

    @model_validator(mode="before")
    @classmethod
    def _unpack_group_key(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("_id"), dict):
            data = {**data, **data["_id"]}
        return data


class MonthlyStat(_PeriodStat):
    """Aggregate for one month."""

    year: int
    month: int
    avg_reading_speed: Optional[float] = None

    @model_validator(mode="before")
    @classmethod
    def _unpack_group_key(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("_id"), dict):
            data = {**data, **data["_id"]}
        return data


class CalendarMonth(ServerModel):
    """Days of a month that count towards the reading streak."""

    year: int
    month: int
    streak_days: list[str] = Field(default_factory=list)


class ReadingLeaderboardEntry(ServerModel):
    """Monthly reading-time leaderboard row."""

    user_id: str = Field(..., validation_alias=AliasChoices("userId", "_id"))
    username: Optional[str] = None
    profile_image: Optional[str] = None
    total_minutes: float = 0
    total_pages: int = 0
    session_count: int = 0


class BookSessionSummary(ServerModel):
    total_minutes: float = 0
    total_pages: int = 0
    session_count: int = 0


class BookSessions(ServerModel):
    """Sessions and totals for one bookshelf item."""

    sessions: list[ReadingSession] = Field(default_factory=list)
    summary: BookSessionSummary = Field(default_factory=BookSessionSummary)
