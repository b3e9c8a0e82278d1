"""Endpoint wrappers for /api/streaks and /api/challenges."""

from typing import Optional

from ..api.client import ApiClient, CancelToken
from .schemas import (
    ChallengeProgress,
    ChallengeType,
    CheckInResult,
    DailyChallenge,
    LeaderboardPeriod,
    RestoreResult,
    Streak,
    StreakLeaderboard,
)


class StreaksApi:
    """Thin wrapper over the streak and daily challenge endpoints."""

    def __init__(self, client: ApiClient):
        self.client = client

    def my_streak(self, cancel: Optional[CancelToken] = None) -> Streak:
        data = self.client.get("/api/streaks/my-streak", cancel=cancel)
        return Streak.model_validate(data)

    def check_in(self, cancel: Optional[CancelToken] = None) -> CheckInResult:
        data = self.client.post("/api/streaks/check-in", cancel=cancel)
        return CheckInResult.model_validate(data)

    def restore(self, cancel: Optional[CancelToken] = None) -> RestoreResult:
        data = self.client.post("/api/streaks/restore", cancel=cancel)
        return RestoreResult.model_validate(data)

    def leaderboard(
        self,
        period: LeaderboardPeriod = LeaderboardPeriod.GLOBAL,
        limit: int = 50,
        offset: int = 0,
        cancel: Optional[CancelToken] = None,
    ) -> StreakLeaderboard:
        data = self.client.get(
            "/api/streaks/leaderboard",
            params={"period": period.value, "limit": limit, "offset": offset},
            cancel=cancel,
        )
        return StreakLeaderboard.model_validate(data)

    def today_challenge(self, cancel: Optional[CancelToken] = None) -> Optional[DailyChallenge]:
        data = self.client.get("/api/challenges/today", cancel=cancel)
        challenge = data.get("challenge")
        if not challenge:
            return None
        return DailyChallenge.model_validate(challenge)

    def track_progress(
        self, action_type: ChallengeType, cancel: Optional[CancelToken] = None
    ) -> ChallengeProgress:
        data = self.client.post(
            "/api/challenges/track-progress",
            json={"actionType": action_type.value},
            cancel=cancel,
        )
        return ChallengeProgress.model_validate(data)
