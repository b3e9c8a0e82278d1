"""Reading session tracking and reading statistics."""

from .api import SessionsApi
from .schemas import (
    BookSessions,
    CalendarMonth,
    DailyStat,
    EndSessionResult,
    ManualSessionCreate,
    MonthlyStat,
    OverallStats,
    Pagination,
    ReadingLeaderboardEntry,
    ReadingSession,
    SessionFilters,
    SessionPage,
    WeeklyStat,
)
from .store import SessionState, SessionStore

__all__ = [
    "SessionsApi",
    "SessionState",
    "SessionStore",
    "BookSessions",
    "CalendarMonth",
    "DailyStat",
    "EndSessionResult",
    "ManualSessionCreate",
    "MonthlyStat",
    "OverallStats",
    "Pagination",
    "ReadingLeaderboardEntry",
    "ReadingSession",
    "SessionFilters",
    "SessionPage",
    "WeeklyStat",
]
