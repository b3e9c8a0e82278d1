"""Reading streaks, daily check-ins and challenges."""

from .api import StreaksApi
from .schemas import (
    ChallengeProgress,
    ChallengeType,
    CheckInPhase,
    CheckInResult,
    DailyChallenge,
    LeaderboardPeriod,
    Milestone,
    Milestones,
    RestoreResult,
    Streak,
    StreakLeaderboard,
    StreakLeaderboardEntry,
)
from .store import StreakState, StreakStore

__all__ = [
    "StreaksApi",
    "StreakState",
    "StreakStore",
    "ChallengeProgress",
    "ChallengeType",
    "CheckInPhase",
    "CheckInResult",
    "DailyChallenge",
    "LeaderboardPeriod",
    "Milestone",
    "Milestones",
    "RestoreResult",
    "Streak",
    "StreakLeaderboard",
    "StreakLeaderboardEntry",
]
