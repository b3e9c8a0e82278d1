"""Pydantic schemas for streaks, check-ins and daily challenges."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import AliasChoices, Field

from ..schemas import ServerModel


class CheckInPhase(str, Enum):
    """Where the streak store is in the check-in transition."""

    IDLE = "idle"
    TENTATIVE = "tentative"  # optimistic value shown, server not yet confirmed


class LeaderboardPeriod(str, Enum):
    GLOBAL = "global"
    MONTHLY = "monthly"


class ChallengeType(str, Enum):
    READ_POSTS = "read_posts"
    LIKE_POSTS = "like_posts"
    COMMENT = "comment"
    RECOMMEND_BOOK = "recommend_book"


class Milestone(ServerModel):
    achieved: bool = False
    date: Optional[datetime] = None


class Milestones(ServerModel):
    day7: Milestone = Field(default_factory=Milestone)
    day30: Milestone = Field(default_factory=Milestone)
    day100: Milestone = Field(default_factory=Milestone)
    day365: Milestone = Field(default_factory=Milestone)

    def achieved(self) -> list[int]:
        """Day thresholds already reached, ascending."""
        return [
            days
            for days, milestone in (
                (7, self.day7),
                (30, self.day30),
                (100, self.day100),
                (365, self.day365),
            )
            if milestone.achieved
        ]


class Streak(ServerModel):
    """The user's check-in streak as reported by the server."""

    current_streak: int = 0
    longest_streak: int = 0
    last_check_in: Optional[datetime] = None
    total_check_ins: int = 0
    can_restore: bool = False
    current_streak_start_date: Optional[datetime] = None
    milestones: Milestones = Field(default_factory=Milestones)


class CheckInResult(ServerModel):
    """Response of POST /api/streaks/check-in."""

    success: bool = True
    streak_count: int = 0
    is_first_check_in_today: bool = False
    ink_drops_earned: int = 0
    milestone_achieved: Optional[str] = None  # badge name, e.g. "One Week Warrior"


class RestoreResult(ServerModel):
    """Response of POST /api/streaks/restore."""

    success: bool = True
    new_streak_count: int = 0
    ink_drops_deducted: int = 0


class StreakLeaderboardEntry(ServerModel):
    rank: int
    user_id: str
    username: Optional[str] = None
    profile_image: Optional[str] = None
    streak_count: int = 0
    is_current_user: bool = False


class StreakLeaderboard(ServerModel):
    """Response of GET /api/streaks/leaderboard."""

    entries: list[StreakLeaderboardEntry] = Field(
        default_factory=list, validation_alias=AliasChoices("leaderboard", "entries")
    )
    current_user_rank: Optional[int] = None


class DailyChallenge(ServerModel):
    """Today's challenge."""

    type: ChallengeType
    description: str = ""
    target_count: int = 1
    current_progress: int = 0
    reward_ink_drops: int = 0
    expires_at: Optional[datetime] = None
    completed: bool = False

    @property
    def progress_ratio(self) -> float:
        if self.target_count <= 0:
            return 1.0
        return min(1.0, self.current_progress / self.target_count)


class ChallengeProgress(ServerModel):
    """Response of POST /api/challenges/track-progress."""

    progress_updated: bool = False
    current_progress: Optional[int] = None
    challenge_completed: bool = False
    ink_drops_earned: int = 0
    message: Optional[str] = None
