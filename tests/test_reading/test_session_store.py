"""Tests for SessionStore."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from readclub.api.client import ApiError, CancelToken, RequestCancelled
from readclub.reading.schemas import (
    CalendarMonth,
    DailyStat,
    EndSessionResult,
    ManualSessionCreate,
    OverallStats,
    Pagination,
    ReadingSession,
    SessionFilters,
    SessionPage,
)
from readclub.reading.store import ACTIVE_SESSION_KEY, SessionStore


@pytest.fixture
def store(sessions_api):
    """Create a SessionStore with mocked endpoints."""
    return SessionStore(sessions_api)


@pytest.fixture
def started(store, sessions_api, session_payload):
    """Store with an active session sess-1."""
    sessions_api.start.return_value = ReadingSession.model_validate(session_payload("sess-1"))
    store.start_session("b1", "s1", 10)
    return store


def end_result(session_payload, session_id="sess-1", ink_drops=5):
    return EndSessionResult.model_validate({
        "success": True,
        "data": session_payload(
            session_id, endPage=40, pagesRead=30, duration=25, isCompleteSession=True
        ),
        "inkDropsEarned": ink_drops,
        "message": f"Session completed! You earned {ink_drops} Ink Drops!",
    })


def page_of(session_payload, start, count, total, has_more):
    return SessionPage.model_validate({
        "success": True,
        "data": [session_payload(f"sess-{i}") for i in range(start, start + count)],
        "pagination": {"total": total, "limit": count, "offset": start, "hasMore": has_more},
    })


class TestStartSession:
    """Tests for starting a session."""

    def test_start_session_sets_active(self, started):
        """Test that a successful start stores the active session."""
        state = started.state
        assert state.active_session is not None
        assert state.active_session.id == "sess-1"
        assert state.loading is False
        assert state.error is None

    def test_start_session_resets_pause_counters(self, store, sessions_api, session_payload):
        """Test that pause counters are zeroed on start."""
        store.set_state(pause_count=3, total_pause_duration=42.0)
        sessions_api.start.return_value = ReadingSession.model_validate(session_payload())

        result = store.start_session("b1", "s1", 10)

        assert result.success
        assert store.state.pause_count == 0
        assert store.state.total_pause_duration == 0

    def test_start_session_sends_request(self, store, sessions_api, session_payload):
        """Test the request built for the start endpoint."""
        sessions_api.start.return_value = ReadingSession.model_validate(session_payload())

        store.start_session("b1", "s1", 10)

        request = sessions_api.start.call_args[0][0]
        assert request.to_payload() == {"bookId": "b1", "bookshelfItemId": "s1", "startPage": 10}

    def test_start_session_failure_keeps_state(self, store, sessions_api):
        """Test that a failed start leaves the active session untouched."""
        sessions_api.start.side_effect = ApiError("Bookshelf item not found", status_code=404)

        result = store.start_session("b1", "s1", 10)

        assert not result.success
        assert result.error == "Bookshelf item not found"
        assert store.state.active_session is None
        assert store.state.error == "Bookshelf item not found"
        assert store.state.loading is False

    def test_start_session_rejected_while_active(self, started, sessions_api):
        """Test that a second start is refused locally."""
        sessions_api.start.reset_mock()

        result = started.start_session("b2", "s2", 0)

        assert not result.success
        assert "already have an active reading session" in result.error
        sessions_api.start.assert_not_called()
        assert started.state.active_session.id == "sess-1"

    def test_start_session_invalid_input(self, store, sessions_api):
        """Test local validation before any request."""
        result = store.start_session("", "s1", -1)

        assert not result.success
        sessions_api.start.assert_not_called()

    def test_start_session_loading_flag_during_call(self, store, sessions_api, session_payload):
        """Test that loading is set while the request is in flight."""
        seen = {}

        def fake_start(request, cancel=None):
            seen["loading"] = store.state.loading
            return ReadingSession.model_validate(session_payload())

        sessions_api.start.side_effect = fake_start

        store.start_session("b1", "s1", 10)

        assert seen["loading"] is True
        assert store.state.loading is False

    def test_start_session_cancelled(self, store, sessions_api):
        """Test that a cancelled start records no error."""
        sessions_api.start.side_effect = RequestCancelled("Request was cancelled")

        result = store.start_session("b1", "s1", 10, cancel=CancelToken())

        assert not result.success
        assert store.state.error is None
        assert store.state.loading is False


class TestRecordPause:
    """Tests for local pause tracking."""

    def test_record_pause_accumulates(self, started):
        """Test N pauses give count N and the summed duration."""
        for duration in (5, 10, 2.5):
            started.record_pause(duration)

        assert started.state.pause_count == 3
        assert started.state.total_pause_duration == 17.5

    def test_record_pause_makes_no_request(self, started, sessions_api):
        """Test that pauses are local only."""
        sessions_api.reset_mock()

        started.record_pause(30)

        assert sessions_api.method_calls == []

    def test_record_pause_interleaved_with_fetches(self, started, sessions_api, session_payload):
        """Test pause accumulation is unaffected by other actions."""
        sessions_api.list_sessions.return_value = page_of(session_payload, 0, 2, 2, False)
        sessions_api.overall_stats.return_value = OverallStats()

        started.record_pause(10)
        started.fetch_sessions()
        started.record_pause(20)
        started.fetch_overall_stats()
        started.record_pause(30)

        assert started.state.pause_count == 3
        assert started.state.total_pause_duration == 60


class TestEndSession:
    """Tests for ending a session."""

    def test_end_without_active_session(self, store, sessions_api):
        """Test that ending with no session fails locally."""
        result = store.end_session(40)

        assert not result.success
        assert result.error == "No active reading session"
        sessions_api.end.assert_not_called()

    def test_end_session_sends_pause_telemetry(self, store, sessions_api, session_payload):
        """Test start(b1, s1, 10), pauses of 30 and 45, end at 40."""
        sessions_api.start.return_value = ReadingSession.model_validate(session_payload())
        sessions_api.end.return_value = end_result(session_payload)

        store.start_session("b1", "s1", 10)
        store.record_pause(30)
        store.record_pause(45)
        store.end_session(40)

        session_id, request = sessions_api.end.call_args[0]
        assert session_id == "sess-1"
        assert request.to_payload() == {
            "endPage": 40,
            "pauseCount": 2,
            "averagePauseDuration": 37.5,
        }

    def test_end_session_without_pauses_sends_zero_average(self, started, sessions_api, session_payload):
        """Test that no pauses means an average of zero."""
        sessions_api.end.return_value = end_result(session_payload)

        started.end_session(40)

        request = sessions_api.end.call_args[0][1]
        assert request.pause_count == 0
        assert request.average_pause_duration == 0

    def test_end_session_clears_and_prepends(self, started, sessions_api, session_payload):
        """Test active session cleared and record prepended exactly once."""
        older = ReadingSession.model_validate(session_payload("sess-0"))
        started.set_state(sessions=[older])
        sessions_api.end.return_value = end_result(session_payload)

        result = started.end_session(40)

        assert result.success
        assert result.data.ink_drops_earned == 5
        state = started.state
        assert state.active_session is None
        assert [s.id for s in state.sessions] == ["sess-1", "sess-0"]
        assert state.sessions[0].end_page == 40
        assert state.pause_count == 0

    def test_end_session_does_not_duplicate_history(self, started, sessions_api, session_payload):
        """Test a record already in history is not listed twice."""
        started.set_state(sessions=[ReadingSession.model_validate(session_payload("sess-1"))])
        sessions_api.end.return_value = end_result(session_payload)

        started.end_session(40)

        assert [s.id for s in started.state.sessions] == ["sess-1"]

    def test_end_session_refreshes_stats(self, started, sessions_api, session_payload):
        """Test that overall and daily stats refresh after ending."""
        sessions_api.end.return_value = end_result(session_payload)
        sessions_api.overall_stats.return_value = OverallStats(total_sessions=8)
        sessions_api.daily_stats.return_value = [DailyStat(date="2025-03-01", total_minutes=25)]

        started.end_session(40)

        sessions_api.overall_stats.assert_called_once()
        sessions_api.daily_stats.assert_called_once()
        assert started.state.overall_stats.total_sessions == 8
        assert started.state.daily_stats[0].date == "2025-03-01"

    def test_end_session_refresh_failures_are_swallowed(self, started, sessions_api, session_payload):
        """Test refresh failures neither fail the end nor set error."""
        sessions_api.end.return_value = end_result(session_payload)
        sessions_api.overall_stats.side_effect = ApiError("boom", status_code=500)
        sessions_api.daily_stats.side_effect = ApiError("boom", status_code=500)

        result = started.end_session(40)

        assert result.success
        assert started.state.error is None
        assert started.state.active_session is None

    def test_end_session_refreshes_in_background(self, sessions_api, session_payload):
        """Test that refreshes are submitted to the background executor."""
        with ThreadPoolExecutor(max_workers=2) as executor:
            store = SessionStore(sessions_api, background=executor)
            sessions_api.start.return_value = ReadingSession.model_validate(session_payload())
            sessions_api.end.return_value = end_result(session_payload)
            sessions_api.overall_stats.return_value = OverallStats(total_sessions=3)
            sessions_api.daily_stats.return_value = []

            store.start_session("b1", "s1", 10)
            result = store.end_session(40)

        assert result.success
        assert store.state.overall_stats.total_sessions == 3

    def test_background_refresh_crash_is_logged(self, sessions_api, session_payload, caplog):
        """Test an unexpected exception in a background refresh reaches the log."""
        with ThreadPoolExecutor(max_workers=1) as executor:
            store = SessionStore(sessions_api, background=executor)
            sessions_api.start.return_value = ReadingSession.model_validate(session_payload())
            sessions_api.end.return_value = end_result(session_payload)
            sessions_api.overall_stats.side_effect = RuntimeError("stats exploded")
            sessions_api.daily_stats.return_value = []

            with caplog.at_level(logging.ERROR, logger="readclub.reading.store"):
                store.start_session("b1", "s1", 10)
                result = store.end_session(40)
                executor.shutdown(wait=True)

        assert result.success
        assert "Background stats refresh failed" in caplog.text
        assert "stats exploded" in caplog.text

    def test_end_session_failure_keeps_active(self, started, sessions_api):
        """Test that a failed end keeps the session and counters."""
        started.record_pause(12)
        sessions_api.end.side_effect = ApiError("This session has already been completed", status_code=400)

        result = started.end_session(40)

        assert not result.success
        assert started.state.active_session.id == "sess-1"
        assert started.state.pause_count == 1
        assert started.state.error == "This session has already been completed"


class TestPersistence:
    """Tests for persisting the active session."""

    def test_active_session_survives_restart(self, sessions_api, storage, session_payload):
        """Test that a new store restores the active session and pauses."""
        sessions_api.start.return_value = ReadingSession.model_validate(session_payload())
        first = SessionStore(sessions_api, storage=storage)
        first.start_session("b1", "s1", 10)
        first.record_pause(30)

        second = SessionStore(sessions_api, storage=storage)

        assert second.state.active_session.id == "sess-1"
        assert second.state.active_session.book_id == "b1"
        assert second.state.pause_count == 1
        assert second.state.total_pause_duration == 30

    def test_ended_session_removed_from_storage(self, sessions_api, storage, session_payload):
        """Test that ending a session removes the stored copy."""
        sessions_api.start.return_value = ReadingSession.model_validate(session_payload())
        sessions_api.end.return_value = end_result(session_payload)
        store = SessionStore(sessions_api, storage=storage)
        store.start_session("b1", "s1", 10)

        store.end_session(40)

        assert not storage.has(ACTIVE_SESSION_KEY)

    def test_corrupt_stored_session_discarded(self, sessions_api, storage):
        """Test an unreadable stored session is dropped."""
        storage.set(ACTIVE_SESSION_KEY, {"session": {"startPage": "not a number"}})

        store = SessionStore(sessions_api, storage=storage)

        assert store.state.active_session is None
        assert not storage.has(ACTIVE_SESSION_KEY)


class TestSessionHistory:
    """Tests for history fetching and pagination."""

    def test_fetch_sessions_replaces(self, store, sessions_api, session_payload):
        """Test that a non-append fetch replaces the list."""
        store.set_state(sessions=[ReadingSession.model_validate(session_payload("old"))], offset=30)
        sessions_api.list_sessions.return_value = page_of(session_payload, 0, 3, 3, False)

        result = store.fetch_sessions(SessionFilters(limit=10))

        assert result.success
        assert [s.id for s in store.state.sessions] == ["sess-0", "sess-1", "sess-2"]
        assert store.state.offset == 0
        assert store.state.total == 3
        assert store.state.has_more is False

    def test_fetch_sessions_default_filters(self, store, sessions_api, session_payload):
        """Test that the default page size is used without filters."""
        sessions_api.list_sessions.return_value = page_of(session_payload, 0, 1, 1, False)

        store.fetch_sessions()

        filters = sessions_api.list_sessions.call_args[0][0]
        assert filters.limit == 20

    def test_load_more_appends_next_page(self, store, sessions_api, session_payload):
        """Test fetch(limit=10) then load_more requests offset 10 and appends."""
        sessions_api.list_sessions.side_effect = [
            page_of(session_payload, 0, 10, 25, True),
            page_of(session_payload, 10, 10, 25, True),
        ]

        store.fetch_sessions(SessionFilters(limit=10), append=False)
        result = store.load_more()

        assert result.success
        second_filters = sessions_api.list_sessions.call_args_list[1][0][0]
        assert second_filters.offset == 10
        assert second_filters.limit == 10
        assert len(store.state.sessions) == 20
        assert store.state.offset == 10
        assert store.state.sessions[10].id == "sess-10"

    def test_append_concatenates_server_page(self, store, sessions_api, session_payload):
        """Test an appended page is added as returned by the server."""
        store.set_state(sessions=[ReadingSession.model_validate(session_payload("sess-0"))])
        sessions_api.list_sessions.return_value = page_of(session_payload, 0, 2, 3, False)

        store.fetch_sessions(SessionFilters(limit=2), append=True)

        assert [s.id for s in store.state.sessions] == ["sess-0", "sess-0", "sess-1"]

    def test_load_more_noop_without_more(self, store, sessions_api, session_payload):
        """Test load_more does nothing when has_more is false."""
        sessions_api.list_sessions.return_value = page_of(session_payload, 0, 3, 3, False)
        store.fetch_sessions(SessionFilters(limit=10))
        sessions_api.list_sessions.reset_mock()
        before = store.state

        result = store.load_more()

        assert not result.success
        sessions_api.list_sessions.assert_not_called()
        assert store.state is before

    def test_load_more_noop_while_loading(self, store, sessions_api):
        """Test load_more does nothing while a load is in flight."""
        store.set_state(has_more=True, loading=True)

        store.load_more()

        sessions_api.list_sessions.assert_not_called()

    def test_fetch_sessions_failure(self, store, sessions_api):
        """Test that a failed fetch records the error."""
        sessions_api.list_sessions.side_effect = ApiError("Server error", status_code=500)

        result = store.fetch_sessions()

        assert not result.success
        assert store.state.error == "Server error"
        assert store.state.loading is False

    def test_create_manual_session(self, store, sessions_api, session_payload):
        """Test that a manual session is prepended."""
        sessions_api.create_manual.return_value = ReadingSession.model_validate(
            session_payload("manual-1", source="manual")
        )
        start = datetime(2025, 3, 1, 9, tzinfo=timezone.utc)

        result = store.create_manual_session(ManualSessionCreate(
            book_id="b1",
            bookshelf_item_id="s1",
            start_time=start,
            end_time=start + timedelta(minutes=30),
            start_page=1,
            end_page=20,
        ))

        assert result.success
        assert store.state.sessions[0].id == "manual-1"

    def test_create_manual_session_rejects_bad_range(self, store, sessions_api):
        """Test end before start is rejected locally."""
        start = datetime(2025, 3, 1, 9, tzinfo=timezone.utc)

        result = store.create_manual_session(ManualSessionCreate(
            book_id="b1",
            bookshelf_item_id="s1",
            start_time=start,
            end_time=start - timedelta(minutes=5),
            start_page=1,
            end_page=20,
        ))

        assert not result.success
        sessions_api.create_manual.assert_not_called()

    def test_delete_session(self, store, sessions_api, session_payload):
        """Test deleting removes the session from history."""
        store.set_state(sessions=[
            ReadingSession.model_validate(session_payload("a")),
            ReadingSession.model_validate(session_payload("b")),
        ])

        result = store.delete_session("a")

        assert result.success
        sessions_api.delete.assert_called_once_with("a", cancel=None)
        assert [s.id for s in store.state.sessions] == ["b"]


class TestStatistics:
    """Tests for read-through statistics caches."""

    def test_fetch_overall_stats(self, store, sessions_api):
        sessions_api.overall_stats.return_value = OverallStats(total_sessions=4, total_pages=120)

        stats = store.fetch_overall_stats()

        assert stats.total_pages == 120
        assert store.state.overall_stats is stats

    def test_fetch_calendar(self, store, sessions_api):
        sessions_api.calendar.return_value = CalendarMonth(
            year=2025, month=3, streak_days=["2025-03-01", "2025-03-02"]
        )

        calendar = store.fetch_calendar(2025, 3)

        sessions_api.calendar.assert_called_once_with(2025, 3, cancel=None)
        assert calendar.streak_days == ["2025-03-01", "2025-03-02"]

    def test_stats_caches_are_independent(self, store, sessions_api):
        """Test one failing fetch does not clear another cache."""
        sessions_api.overall_stats.return_value = OverallStats(total_sessions=4)
        sessions_api.weekly_stats.side_effect = ApiError("Failed", status_code=500)

        store.fetch_overall_stats()
        result = store.fetch_weekly_stats(4)

        assert result is None
        assert store.state.overall_stats.total_sessions == 4
        assert store.state.weekly_stats == []
        assert store.state.error == "Failed"

    def test_fetch_book_sessions(self, store, sessions_api):
        from readclub.reading.schemas import BookSessions

        sessions_api.for_book.return_value = BookSessions.model_validate({
            "sessions": [],
            "summary": {"totalMinutes": 90, "totalPages": 60, "sessionCount": 3},
        })

        result = store.fetch_book_sessions("s1")

        assert result.summary.session_count == 3
        assert store.state.book_sessions["s1"] is result


class TestSubscriptions:
    """Tests for state change notifications."""

    def test_subscribers_see_each_transition(self, store, sessions_api, session_payload):
        sessions_api.start.return_value = ReadingSession.model_validate(session_payload())
        loading_states = []
        unsubscribe = store.subscribe(lambda new, old: loading_states.append(new.loading))

        store.start_session("b1", "s1", 10)
        unsubscribe()
        store.record_pause(5)

        assert loading_states == [True, False]


class TestPaginationModel:
    def test_pagination_defaults(self):
        pagination = Pagination()
        assert pagination.has_more is False
        assert pagination.offset == 0
