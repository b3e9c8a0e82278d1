"""Reading session store.

Tracks the single in-flight reading session (start, pause, end) and keeps
read-through caches of session history and reading statistics. Every action
catches its own errors, records a message in the shared ``error`` field and
returns an ActionResult rather than raising.
"""

import logging
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from typing import Callable, Optional

from pydantic import ValidationError

from ..api.client import CancelToken, RequestCancelled
from ..state import HANDLED_ERRORS, ActionResult, Store, error_message
from ..storage import KeyValueStorage
from .api import SessionsApi
from .schemas import (
    BookSessions,
    CalendarMonth,
    DailyStat,
    EndSessionRequest,
    ManualSessionCreate,
    MonthlyStat,
    OverallStats,
    ReadingLeaderboardEntry,
    ReadingSession,
    SessionFilters,
    StartSessionRequest,
    WeeklyStat,
)

logger = logging.getLogger(__name__)

ACTIVE_SESSION_KEY = "active_session"


def _log_refresh_failure(future: Future) -> None:
    """Log an exception that escaped a background refresh."""
    exc = future.exception()
    if exc is not None:
        logger.error("Background stats refresh failed", exc_info=exc)


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the reading session store."""

    active_session: Optional[ReadingSession] = None
    pause_count: int = 0
    total_pause_duration: float = 0.0

    # History
    sessions: list[ReadingSession] = field(default_factory=list)
    filters: SessionFilters = field(default_factory=SessionFilters)
    offset: int = 0
    total: int = 0
    has_more: bool = False

    # Statistics caches
    overall_stats: Optional[OverallStats] = None
    daily_stats: list[DailyStat] = field(default_factory=list)
    weekly_stats: list[WeeklyStat] = field(default_factory=list)
    monthly_stats: list[MonthlyStat] = field(default_factory=list)
    calendar: Optional[CalendarMonth] = None
    leaderboard: list[ReadingLeaderboardEntry] = field(default_factory=list)
    book_sessions: dict[str, BookSessions] = field(default_factory=dict)

    loading: bool = False
    error: Optional[str] = None

    @property
    def average_pause_duration(self) -> float:
        if self.pause_count:
            return self.total_pause_duration / self.pause_count
        return 0.0


class SessionStore(Store[SessionState]):
    """Manages the active reading session and reading statistics."""

    def __init__(
        self,
        api: SessionsApi,
        storage: Optional[KeyValueStorage] = None,
        background: Optional[Executor] = None,
        page_size: int = 20,
    ):
        """Initialize session store.

        Args:
            api: Reading session endpoints
            storage: Persists the active session across restarts, if given
            background: Runs post-session refreshes; inline when None
            page_size: Default page size for history fetches
        """
        super().__init__(SessionState(filters=SessionFilters(limit=page_size)))
        self.api = api
        self.storage = storage
        self.background = background
        self.page_size = page_size
        self._load_session()

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load_session(self) -> None:
        """Restore the active session from storage if present."""
        if not self.storage:
            return
        data = self.storage.get(ACTIVE_SESSION_KEY)
        if not data:
            return
        try:
            session = ReadingSession.model_validate(data["session"])
        except (ValidationError, KeyError, TypeError):
            logger.warning("Discarding unreadable persisted session")
            self.storage.remove(ACTIVE_SESSION_KEY)
            return
        self.set_state(
            active_session=session,
            pause_count=int(data.get("pause_count", 0)),
            total_pause_duration=float(data.get("total_pause_duration", 0.0)),
        )

    def _save_session(self) -> None:
        """Persist the active session, or remove it once ended."""
        if not self.storage:
            return
        state = self.state
        if state.active_session:
            self.storage.set(ACTIVE_SESSION_KEY, {
                "session": state.active_session.model_dump(mode="json", by_alias=True),
                "pause_count": state.pause_count,
                "total_pause_duration": state.total_pause_duration,
            })
        else:
            self.storage.remove(ACTIVE_SESSION_KEY)

    def _fail(self, exc: Exception, action: str, **changes) -> ActionResult:
        """Record a caught error and build the failed result."""
        if isinstance(exc, RequestCancelled):
            logger.debug("%s cancelled", action)
            self.set_state(**changes)
            return ActionResult.fail(exc.message)
        message = error_message(exc)
        logger.info("%s failed: %s", action, message)
        self.set_state(error=message, **changes)
        return ActionResult.fail(message)

    # -------------------------------------------------------------------------
    # Active session lifecycle
    # -------------------------------------------------------------------------

    def has_active_session(self) -> bool:
        return self.state.active_session is not None

    def start_session(
        self,
        book_id: str,
        bookshelf_item_id: str,
        start_page: int,
        cancel: Optional[CancelToken] = None,
    ) -> ActionResult:
        """Start a new reading session.

        Returns:
            ActionResult carrying the server-confirmed ReadingSession
        """
        if self.state.active_session:
            message = (
                "You already have an active reading session. "
                "Please end it before starting a new one."
            )
            self.set_state(error=message)
            return ActionResult.fail(message)

        try:
            request = StartSessionRequest(
                book_id=book_id,
                bookshelf_item_id=bookshelf_item_id,
                start_page=start_page,
            )
        except ValidationError:
            message = "Book, bookshelf item and a non-negative start page are required"
            self.set_state(error=message)
            return ActionResult.fail(message)

        self.set_state(loading=True, error=None)
        try:
            session = self.api.start(request, cancel=cancel)
        except HANDLED_ERRORS as e:
            return self._fail(e, "Start session", loading=False)

        self.set_state(
            active_session=session,
            pause_count=0,
            total_pause_duration=0.0,
            loading=False,
        )
        self._save_session()
        logger.info("Started reading session %s", session.id)
        return ActionResult.ok(session)

    def record_pause(self, duration: float) -> None:
        """Record a pause of the given duration. Local only."""
        state = self.state
        self.set_state(
            pause_count=state.pause_count + 1,
            total_pause_duration=state.total_pause_duration + duration,
        )
        self._save_session()

    def end_session(self, end_page: int, cancel: Optional[CancelToken] = None) -> ActionResult:
        """End the active session and add the finalized record to history.

        Returns:
            ActionResult carrying the EndSessionResult
        """
        state = self.state
        if not state.active_session or not state.active_session.id:
            message = "No active reading session"
            self.set_state(error=message)
            return ActionResult.fail(message)

        try:
            request = EndSessionRequest(
                end_page=end_page,
                pause_count=state.pause_count,
                average_pause_duration=state.average_pause_duration,
            )
        except ValidationError:
            message = "End page must be a non-negative number"
            self.set_state(error=message)
            return ActionResult.fail(message)

        self.set_state(loading=True, error=None)
        try:
            result = self.api.end(state.active_session.id, request, cancel=cancel)
        except HANDLED_ERRORS as e:
            return self._fail(e, "End session", loading=False)

        record = result.session
        history = [record] + [s for s in self.state.sessions if s.id != record.id]
        self.set_state(
            active_session=None,
            pause_count=0,
            total_pause_duration=0.0,
            sessions=history,
            loading=False,
        )
        self._save_session()
        logger.info(
            "Ended reading session %s (%s ink drops)", record.id, result.ink_drops_earned
        )

        self._refresh_after_end()
        return ActionResult.ok(result)

    def _refresh_after_end(self) -> None:
        """Refresh overall and daily stats without reporting failures."""
        refreshes: list[Callable[[], None]] = [
            lambda: self._load_stat(
                "overall_stats", self.api.overall_stats, "Overall stats", record_error=False
            ),
            lambda: self._load_stat(
                "daily_stats", self.api.daily_stats, "Daily stats", record_error=False
            ),
        ]
        for refresh in refreshes:
            if self.background:
                self.background.submit(refresh).add_done_callback(_log_refresh_failure)
            else:
                refresh()

    # -------------------------------------------------------------------------
    # History
    # -------------------------------------------------------------------------

    def fetch_sessions(
        self,
        filters: Optional[SessionFilters] = None,
        append: bool = False,
        cancel: Optional[CancelToken] = None,
    ) -> ActionResult:
        """Fetch a page of session history.

        Args:
            filters: Query filters; defaults to the configured page size
            append: Concatenate to the current list instead of replacing it
        """
        filters = filters or SessionFilters(limit=self.page_size)

        self.set_state(loading=True, error=None)
        try:
            page = self.api.list_sessions(filters, cancel=cancel)
        except HANDLED_ERRORS as e:
            return self._fail(e, "Fetch sessions", loading=False)

        if append:
            sessions = self.state.sessions + list(page.sessions)
        else:
            sessions = list(page.sessions)

        self.set_state(
            sessions=sessions,
            filters=filters,
            offset=filters.offset or 0,
            total=page.pagination.total,
            has_more=page.pagination.has_more,
            loading=False,
        )
        return ActionResult.ok(page.sessions)

    def load_more(self, cancel: Optional[CancelToken] = None) -> ActionResult:
        """Fetch the next page of history and append it."""
        state = self.state
        if not state.has_more:
            return ActionResult.fail("No more sessions to load")
        if state.loading:
            return ActionResult.fail("Sessions are already loading")

        limit = state.filters.limit or self.page_size
        filters = state.filters.model_copy(update={"offset": state.offset + limit, "limit": limit})
        return self.fetch_sessions(filters, append=True, cancel=cancel)

    def create_manual_session(
        self, session: ManualSessionCreate, cancel: Optional[CancelToken] = None
    ) -> ActionResult:
        """Log a session that was not timed live."""
        if session.end_time <= session.start_time:
            message = "End time must be after start time"
            self.set_state(error=message)
            return ActionResult.fail(message)

        self.set_state(loading=True, error=None)
        try:
            record = self.api.create_manual(session, cancel=cancel)
        except HANDLED_ERRORS as e:
            return self._fail(e, "Create manual session", loading=False)

        self.set_state(sessions=[record] + self.state.sessions, loading=False)
        return ActionResult.ok(record)

    def delete_session(self, session_id: str, cancel: Optional[CancelToken] = None) -> ActionResult:
        """Delete a session from the server and from cached history."""
        try:
            self.api.delete(session_id, cancel=cancel)
        except HANDLED_ERRORS as e:
            return self._fail(e, "Delete session")

        self.set_state(sessions=[s for s in self.state.sessions if s.id != session_id])
        return ActionResult.ok()

    def fetch_book_sessions(
        self, bookshelf_item_id: str, cancel: Optional[CancelToken] = None
    ) -> Optional[BookSessions]:
        """Fetch sessions and totals for one bookshelf item."""
        try:
            result = self.api.for_book(bookshelf_item_id, cancel=cancel)
        except HANDLED_ERRORS as e:
            self._fail(e, "Fetch book sessions")
            return None

        self.set_state(book_sessions={**self.state.book_sessions, bookshelf_item_id: result})
        return result

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def _load_stat(self, field_name: str, fetch: Callable, label: str, record_error: bool = True):
        """Fetch one statistics cache and replace it.

        Failures are logged; they only reach ``error`` when record_error is set.
        """
        try:
            value = fetch()
        except HANDLED_ERRORS as e:
            if record_error:
                self._fail(e, label)
            else:
                logger.warning("%s refresh failed: %s", label, error_message(e))
            return None

        self.set_state(**{field_name: value})
        return value

    def fetch_overall_stats(self, cancel: Optional[CancelToken] = None) -> Optional[OverallStats]:
        return self._load_stat(
            "overall_stats", lambda: self.api.overall_stats(cancel=cancel), "Overall stats"
        )

    def fetch_daily_stats(self, days: int = 30, cancel: Optional[CancelToken] = None):
        return self._load_stat(
            "daily_stats", lambda: self.api.daily_stats(days, cancel=cancel), "Daily stats"
        )

    def fetch_weekly_stats(self, weeks: int = 12, cancel: Optional[CancelToken] = None):
        return self._load_stat(
            "weekly_stats", lambda: self.api.weekly_stats(weeks, cancel=cancel), "Weekly stats"
        )

    def fetch_monthly_stats(self, months: int = 12, cancel: Optional[CancelToken] = None):
        return self._load_stat(
            "monthly_stats", lambda: self.api.monthly_stats(months, cancel=cancel), "Monthly stats"
        )

    def fetch_calendar(
        self, year: int, month: int, cancel: Optional[CancelToken] = None
    ) -> Optional[CalendarMonth]:
        return self._load_stat(
            "calendar", lambda: self.api.calendar(year, month, cancel=cancel), "Calendar"
        )

    def fetch_leaderboard(self, limit: int = 50, cancel: Optional[CancelToken] = None):
        return self._load_stat(
            "leaderboard", lambda: self.api.leaderboard(limit, cancel=cancel), "Leaderboard"
        )

    def clear_error(self) -> None:
        self.set_state(error=None)
