"""Streak store: daily check-in, restore, challenge and leaderboard caches.

Check-in is a two-phase transition. While the request is in flight the
displayed streak is a tentative copy (one day longer, stamped now) and the
last server-confirmed streak is kept beside it. Once the request settles,
success or failure, the streak is always refetched and the server's answer
replaces both. If that refetch fails too, the display falls back to the last
confirmed value, so a tentative streak never outlives its request.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ..api.client import CancelToken, RequestCancelled
from ..state import HANDLED_ERRORS, ActionResult, Store, error_message
from .api import StreaksApi
from .schemas import (
    ChallengeProgress,
    ChallengeType,
    CheckInPhase,
    CheckInResult,
    DailyChallenge,
    LeaderboardPeriod,
    Streak,
    StreakLeaderboard,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StreakState:
    """Snapshot of the streak store."""

    streak: Optional[Streak] = None  # what the UI shows
    confirmed_streak: Optional[Streak] = None  # last server answer
    check_in_phase: CheckInPhase = CheckInPhase.IDLE

    challenge: Optional[DailyChallenge] = None
    leaderboard: Optional[StreakLeaderboard] = None
    leaderboard_period: LeaderboardPeriod = LeaderboardPeriod.GLOBAL

    loading: bool = False
    error: Optional[str] = None

    @property
    def current_streak(self) -> int:
        return self.streak.current_streak if self.streak else 0

    @property
    def is_tentative(self) -> bool:
        return self.check_in_phase is CheckInPhase.TENTATIVE


class StreakStore(Store[StreakState]):
    """Manages the user's streak and related gamification caches."""

    def __init__(self, api: StreaksApi):
        super().__init__(StreakState())
        self.api = api

    def _record_error(self, exc: Exception, action: str) -> str:
        message = error_message(exc)
        if isinstance(exc, RequestCancelled):
            logger.debug("%s cancelled", action)
        else:
            logger.info("%s failed: %s", action, message)
            self.set_state(error=message)
        return message

    # -------------------------------------------------------------------------
    # Streak
    # -------------------------------------------------------------------------

    def fetch_streak(self, cancel: Optional[CancelToken] = None) -> Optional[Streak]:
        """Replace the cached streak with the server's."""
        try:
            streak = self.api.my_streak(cancel=cancel)
        except HANDLED_ERRORS as e:
            self._record_error(e, "Fetch streak")
            return None

        self.set_state(
            streak=streak,
            confirmed_streak=streak,
            check_in_phase=CheckInPhase.IDLE,
        )
        return streak

    def _reconcile(self) -> Optional[Streak]:
        """Refetch the streak and leave the tentative phase whatever happens."""
        try:
            streak = self.api.my_streak()
        except HANDLED_ERRORS as e:
            logger.warning("Streak reconciliation failed: %s", error_message(e))
            self.set_state(
                streak=self.state.confirmed_streak,
                check_in_phase=CheckInPhase.IDLE,
            )
            return None

        self.set_state(
            streak=streak,
            confirmed_streak=streak,
            check_in_phase=CheckInPhase.IDLE,
        )
        return streak

    def check_in(self, cancel: Optional[CancelToken] = None) -> CheckInResult:
        """Check in for today.

        Returns:
            CheckInResult from the server

        Raises:
            ApiError: If the check-in failed; raised after reconciliation
        """
        confirmed = self.state.streak if not self.state.is_tentative else self.state.confirmed_streak
        base = confirmed or Streak()
        tentative = base.model_copy(update={
            "current_streak": base.current_streak + 1,
            "last_check_in": datetime.now(timezone.utc),
        })
        self.set_state(
            streak=tentative,
            confirmed_streak=confirmed,
            check_in_phase=CheckInPhase.TENTATIVE,
            loading=True,
            error=None,
        )

        try:
            result = self.api.check_in(cancel=cancel)
        except HANDLED_ERRORS as e:
            self._reconcile()
            self.set_state(loading=False)
            self._record_error(e, "Check-in")
            raise

        self._reconcile()
        self.set_state(loading=False)
        logger.info(
            "Checked in: streak %s, %s ink drops", result.streak_count, result.ink_drops_earned
        )
        return result

    def restore_streak(self, cancel: Optional[CancelToken] = None) -> ActionResult:
        """Restore a broken streak (costs ink drops), then refetch."""
        self.set_state(loading=True, error=None)
        try:
            result = self.api.restore(cancel=cancel)
        except HANDLED_ERRORS as e:
            self._reconcile()
            self.set_state(loading=False)
            return ActionResult.fail(self._record_error(e, "Restore streak"))

        self._reconcile()
        self.set_state(loading=False)
        return ActionResult.ok(result)

    # -------------------------------------------------------------------------
    # Challenge and leaderboard
    # -------------------------------------------------------------------------

    def fetch_today_challenge(
        self, cancel: Optional[CancelToken] = None
    ) -> Optional[DailyChallenge]:
        try:
            challenge = self.api.today_challenge(cancel=cancel)
        except HANDLED_ERRORS as e:
            self._record_error(e, "Fetch challenge")
            return None

        self.set_state(challenge=challenge)
        return challenge

    def track_challenge_progress(
        self, action_type: ChallengeType, cancel: Optional[CancelToken] = None
    ) -> Optional[ChallengeProgress]:
        """Report an action towards today's challenge and refresh it."""
        try:
            progress = self.api.track_progress(action_type, cancel=cancel)
        except HANDLED_ERRORS as e:
            self._record_error(e, "Track challenge progress")
            return None

        if progress.progress_updated:
            self.fetch_today_challenge()
        return progress

    def fetch_leaderboard(
        self,
        period: LeaderboardPeriod = LeaderboardPeriod.GLOBAL,
        cancel: Optional[CancelToken] = None,
    ) -> Optional[StreakLeaderboard]:
        try:
            leaderboard = self.api.leaderboard(period, cancel=cancel)
        except HANDLED_ERRORS as e:
            self._record_error(e, "Fetch streak leaderboard")
            return None

        self.set_state(leaderboard=leaderboard, leaderboard_period=period)
        return leaderboard

    def clear_error(self) -> None:
        self.set_state(error=None)
