"""Endpoint wrappers for /api/sessions."""

from typing import Optional

from ..api.client import ApiClient, CancelToken
from .schemas import (
    BookSessions,
    CalendarMonth,
    DailyStat,
    EndSessionRequest,
    EndSessionResult,
    ManualSessionCreate,
    MonthlyStat,
    OverallStats,
    ReadingLeaderboardEntry,
    ReadingSession,
    SessionFilters,
    SessionPage,
    StartSessionRequest,
    WeeklyStat,
)


class SessionsApi:
    """Thin wrapper over the reading-session endpoints."""

    BASE_PATH = "/api/sessions"

    def __init__(self, client: ApiClient):
        self.client = client

    def start(
        self, request: StartSessionRequest, cancel: Optional[CancelToken] = None
    ) -> ReadingSession:
        data = self.client.post(f"{self.BASE_PATH}/start", json=request.to_payload(), cancel=cancel)
        return ReadingSession.model_validate(data["data"])

    def end(
        self,
        session_id: str,
        request: EndSessionRequest,
        cancel: Optional[CancelToken] = None,
    ) -> EndSessionResult:
        data = self.client.post(
            f"{self.BASE_PATH}/{session_id}/end", json=request.to_payload(), cancel=cancel
        )
        return EndSessionResult.model_validate(data)

    def create_manual(
        self, request: ManualSessionCreate, cancel: Optional[CancelToken] = None
    ) -> ReadingSession:
        data = self.client.post(f"{self.BASE_PATH}/manual", json=request.to_payload(), cancel=cancel)
        return ReadingSession.model_validate(data["data"])

    def list_sessions(
        self, filters: SessionFilters, cancel: Optional[CancelToken] = None
    ) -> SessionPage:
        data = self.client.get(self.BASE_PATH, params=filters.to_params(), cancel=cancel)
        return SessionPage.model_validate(data)

    def delete(self, session_id: str, cancel: Optional[CancelToken] = None) -> None:
        self.client.delete(f"{self.BASE_PATH}/{session_id}", cancel=cancel)

    def for_book(
        self, bookshelf_item_id: str, cancel: Optional[CancelToken] = None
    ) -> BookSessions:
        data = self.client.get(f"{self.BASE_PATH}/book/{bookshelf_item_id}", cancel=cancel)
        return BookSessions.model_validate(data["data"])

    # ========================================================================
    # Statistics
    # ========================================================================

    def overall_stats(self, cancel: Optional[CancelToken] = None) -> OverallStats:
        data = self.client.get(f"{self.BASE_PATH}/stats/overall", cancel=cancel)
        return OverallStats.model_validate(data["data"])

    def daily_stats(self, days: int = 30, cancel: Optional[CancelToken] = None) -> list[DailyStat]:
        data = self.client.get(f"{self.BASE_PATH}/stats/daily", params={"days": days}, cancel=cancel)
        return [DailyStat.model_validate(item) for item in data["data"]]

    def weekly_stats(self, weeks: int = 12, cancel: Optional[CancelToken] = None) -> list[WeeklyStat]:
        data = self.client.get(f"{self.BASE_PATH}/stats/weekly", params={"weeks": weeks}, cancel=cancel)
        return [WeeklyStat.model_validate(item) for item in data["data"]]

    def monthly_stats(
        self, months: int = 12, cancel: Optional[CancelToken] = None
    ) -> list[MonthlyStat]:
        data = self.client.get(
            f"{self.BASE_PATH}/stats/monthly", params={"months": months}, cancel=cancel
        )
        return [MonthlyStat.model_validate(item) for item in data["data"]]

    def calendar(self, year: int, month: int, cancel: Optional[CancelToken] = None) -> CalendarMonth:
        data = self.client.get(
            f"{self.BASE_PATH}/calendar", params={"year": year, "month": month}, cancel=cancel
        )
        return CalendarMonth.model_validate(data["data"])

    def leaderboard(
        self, limit: int = 50, cancel: Optional[CancelToken] = None
    ) -> list[ReadingLeaderboardEntry]:
        data = self.client.get(f"{self.BASE_PATH}/leaderboard", params={"limit": limit}, cancel=cancel)
        return [ReadingLeaderboardEntry.model_validate(item) for item in data["data"]]
