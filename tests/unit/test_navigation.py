"""Tests for the drill-down navigation state machine."""

from __future__ import annotations

import pytest

from glab_tui.models.pipelines import Job, Pipeline
from glab_tui.navigation import (
    PAGE_SIZE,
    Back,
    Enter,
    Exit,
    FetchFailed,
    FetchJobs,
    FetchLogs,
    FetchPipelines,
    FollowJob,
    FollowLogs,
    JobsLoaded,
    JumpFirst,
    JumpLast,
    LogsLoaded,
    MoveCursor,
    Navigator,
    PageDown,
    PageUp,
    PipelinesLoaded,
    Quit,
    Refresh,
    ScheduleTick,
    Tick,
    ToggleAutoRefresh,
    View,
    clamp_cursor,
)
from glab_tui.sample import sample_jobs, sample_pipelines
from glab_tui.source import JobListing, LogListing, PipelineListing


def _pipelines(n: int) -> PipelineListing:
    return PipelineListing([Pipeline(id=100 + i, status="success") for i in range(n)], "test")


def _jobs(n: int) -> JobListing:
    return JobListing([Job(id=10 + i, name=f"job-{i}") for i in range(n)], "test")


def _loaded(nav: Navigator, n: int) -> Navigator:
    """Start the navigator and deliver *n* pipelines."""
    fetch = nav.start()[0]
    nav.handle(PipelinesLoaded(fetch.request_id, _pipelines(n)))
    return nav


def _in_jobs(nav: Navigator, n_pipelines: int = 3, n_jobs: int = 4) -> Navigator:
    _loaded(nav, n_pipelines)
    (fetch,) = nav.handle(Enter())
    nav.handle(JobsLoaded(fetch.request_id, fetch.pipeline_id, _jobs(n_jobs)))
    return nav


@pytest.fixture
def nav() -> Navigator:
    return Navigator(refresh_interval=3.0)


def test_clamp_cursor():
    assert clamp_cursor(5, 0) == 0
    assert clamp_cursor(-1, 3) == 0
    assert clamp_cursor(7, 3) == 2
    assert clamp_cursor(1, 3) == 1


class TestStart:
    def test_initial_fetch_and_tick(self, nav):
        commands = nav.start()
        assert isinstance(commands[0], FetchPipelines)
        assert commands[1] == ScheduleTick(0, 3.0)
        assert nav.state.current_view is View.PIPELINE_LIST
        assert nav.state.loading

    def test_pipelines_loaded(self, nav):
        _loaded(nav, 3)
        assert len(nav.state.pipelines) == 3
        assert nav.state.pipelines_provenance == "test"
        assert not nav.state.loading
        assert nav.state.pipelines_request == 0


class TestCursor:
    def test_move_within_bounds(self, nav):
        _loaded(nav, 3)
        nav.handle(MoveCursor(1))
        nav.handle(MoveCursor(1))
        nav.handle(MoveCursor(1))
        assert nav.state.pipeline_cursor == 2
        nav.handle(MoveCursor(-5))
        assert nav.state.pipeline_cursor == 0

    def test_paging(self, nav):
        _loaded(nav, 12)
        nav.handle(PageDown())
        assert nav.state.pipeline_cursor == PAGE_SIZE
        nav.handle(PageDown())
        nav.handle(PageDown())
        assert nav.state.pipeline_cursor == 11
        nav.handle(PageUp())
        assert nav.state.pipeline_cursor == 11 - PAGE_SIZE

    def test_jumps(self, nav):
        _loaded(nav, 8)
        nav.handle(JumpLast())
        assert nav.state.pipeline_cursor == 7
        nav.handle(JumpFirst())
        assert nav.state.pipeline_cursor == 0

    def test_empty_list(self, nav):
        _loaded(nav, 0)
        for event in (MoveCursor(1), PageDown(), JumpLast(), MoveCursor(-1)):
            nav.handle(event)
            assert nav.state.pipeline_cursor == 0

    def test_job_cursor_moves_in_job_view(self, nav):
        _in_jobs(nav, n_jobs=4)
        nav.handle(JumpLast())
        assert nav.state.job_cursor == 3
        assert nav.state.pipeline_cursor == 0

    def test_refresh_clamps_cursor(self, nav):
        _loaded(nav, 10)
        nav.handle(JumpLast())
        (fetch,) = nav.handle(Refresh())
        nav.handle(PipelinesLoaded(fetch.request_id, _pipelines(4)))
        assert nav.state.pipeline_cursor == 3

    def test_refresh_keeps_cursor_in_range(self, nav):
        _loaded(nav, 10)
        nav.handle(MoveCursor(2))
        (fetch,) = nav.handle(Refresh())
        nav.handle(PipelinesLoaded(fetch.request_id, _pipelines(10)))
        assert nav.state.pipeline_cursor == 2


class TestDrillDown:
    def test_enter_fetches_jobs_of_selected_pipeline(self, nav):
        _loaded(nav, 3)
        nav.handle(MoveCursor(1))
        (fetch,) = nav.handle(Enter())
        assert isinstance(fetch, FetchJobs)
        assert fetch.pipeline_id == 101
        assert nav.state.current_view is View.PIPELINE_LIST

    def test_jobs_loaded_switches_view(self, nav):
        _loaded(nav, 3)
        nav.handle(MoveCursor(2))
        (fetch,) = nav.handle(Enter())
        nav.handle(JobsLoaded(fetch.request_id, fetch.pipeline_id, _jobs(2)))
        assert nav.state.current_view is View.JOB_LIST
        assert nav.state.selected_pipeline_id == 102
        assert nav.state.job_cursor == 0
        assert [j.id for j in nav.state.jobs] == [10, 11]

    def test_job_cursor_resets_on_each_drill_down(self, nav):
        _in_jobs(nav, n_jobs=4)
        nav.handle(JumpLast())
        nav.handle(Back())
        (fetch,) = nav.handle(Enter())
        nav.handle(JobsLoaded(fetch.request_id, fetch.pipeline_id, _jobs(4)))
        assert nav.state.job_cursor == 0

    def test_enter_on_empty_list_is_ignored(self, nav):
        _loaded(nav, 0)
        assert nav.handle(Enter()) == []
        assert nav.state.current_view is View.PIPELINE_LIST

    def test_enter_on_empty_job_list_is_ignored(self, nav):
        _in_jobs(nav, n_jobs=0)
        assert nav.state.current_view is View.JOB_LIST
        assert nav.handle(Enter()) == []

    def test_logs_loaded_switches_view(self, nav):
        _in_jobs(nav)
        nav.handle(MoveCursor(1))
        (fetch,) = nav.handle(Enter())
        assert isinstance(fetch, FetchLogs)
        assert fetch.job.id == 11
        nav.handle(LogsLoaded(fetch.request_id, fetch.job.id, LogListing("hello", "test")))
        assert nav.state.current_view is View.LOG_VIEW
        assert nav.state.logs == "hello"
        assert nav.state.selected_job_id == 11

    def test_enter_in_log_view_does_nothing(self, nav):
        _in_jobs(nav)
        (fetch,) = nav.handle(Enter())
        nav.handle(LogsLoaded(fetch.request_id, fetch.job.id, LogListing("x", "test")))
        assert nav.handle(Enter()) == []

    def test_back(self, nav):
        _in_jobs(nav)
        (fetch,) = nav.handle(Enter())
        nav.handle(LogsLoaded(fetch.request_id, fetch.job.id, LogListing("x", "test")))
        nav.handle(Back())
        assert nav.state.current_view is View.JOB_LIST
        nav.handle(Back())
        assert nav.state.current_view is View.PIPELINE_LIST
        nav.handle(Back())
        assert nav.state.current_view is View.PIPELINE_LIST


class TestFailuresAndStaleResults:
    def test_enter_failure_keeps_view(self, nav):
        _loaded(nav, 3)
        (fetch,) = nav.handle(Enter())
        nav.handle(FetchFailed(fetch.request_id, "boom"))
        assert nav.state.current_view is View.PIPELINE_LIST
        assert nav.state.error == "boom"
        assert not nav.state.loading

    def test_log_failure_keeps_job_view(self, nav):
        _in_jobs(nav)
        (fetch,) = nav.handle(Enter())
        nav.handle(FetchFailed(fetch.request_id, "no trace"))
        assert nav.state.current_view is View.JOB_LIST
        assert nav.state.error == "no trace"

    def test_error_cleared_by_next_result(self, nav):
        _loaded(nav, 3)
        (fetch,) = nav.handle(Enter())
        nav.handle(FetchFailed(fetch.request_id, "boom"))
        (fetch,) = nav.handle(Enter())
        nav.handle(JobsLoaded(fetch.request_id, fetch.pipeline_id, _jobs(1)))
        assert nav.state.error == ""

    def test_stale_jobs_after_back_are_discarded(self, nav):
        _loaded(nav, 3)
        (fetch,) = nav.handle(Enter())
        nav.handle(Back())
        nav.handle(JobsLoaded(fetch.request_id, fetch.pipeline_id, _jobs(2)))
        assert nav.state.current_view is View.PIPELINE_LIST
        assert nav.state.jobs == []

    def test_superseded_jobs_are_discarded(self, nav):
        _loaded(nav, 3)
        (first,) = nav.handle(Enter())
        nav.handle(MoveCursor(1))
        (second,) = nav.handle(Enter())
        nav.handle(JobsLoaded(first.request_id, first.pipeline_id, _jobs(5)))
        assert nav.state.current_view is View.PIPELINE_LIST
        nav.handle(JobsLoaded(second.request_id, second.pipeline_id, _jobs(2)))
        assert nav.state.current_view is View.JOB_LIST
        assert nav.state.selected_pipeline_id == 101
        assert len(nav.state.jobs) == 2

    def test_stale_logs_after_back_are_discarded(self, nav):
        _in_jobs(nav)
        (fetch,) = nav.handle(Enter())
        nav.handle(Back())
        nav.handle(LogsLoaded(fetch.request_id, fetch.job.id, LogListing("late", "test")))
        assert nav.state.current_view is View.PIPELINE_LIST
        assert nav.state.logs == ""

    def test_unknown_failure_is_ignored(self, nav):
        _loaded(nav, 3)
        nav.handle(FetchFailed(999, "late"))
        assert nav.state.error == ""

    def test_stale_pipelines_are_discarded(self, nav):
        first = nav.start()[0]
        nav.handle(FetchFailed(first.request_id, "down"))
        (second,) = nav.handle(Refresh())
        nav.handle(PipelinesLoaded(first.request_id, _pipelines(7)))
        assert nav.state.pipelines == []
        nav.handle(PipelinesLoaded(second.request_id, _pipelines(2)))
        assert len(nav.state.pipelines) == 2


class TestRefresh:
    def test_refresh_only_in_pipeline_list(self, nav):
        _in_jobs(nav)
        assert nav.handle(Refresh()) == []

    def test_refresh_not_while_outstanding(self, nav):
        nav.start()
        assert nav.handle(Refresh()) == []

    def test_tick_fetches_and_reschedules(self, nav):
        _loaded(nav, 2)
        commands = nav.handle(Tick(0))
        assert isinstance(commands[0], FetchPipelines)
        assert commands[1] == ScheduleTick(0, 3.0)

    def test_tick_skips_fetch_while_outstanding(self, nav):
        nav.start()
        assert nav.handle(Tick(0)) == [ScheduleTick(0, 3.0)]

    def test_tick_skips_fetch_outside_pipeline_list(self, nav):
        _in_jobs(nav)
        assert nav.handle(Tick(0)) == [ScheduleTick(0, 3.0)]

    def test_toggle_off_stops_ticks(self, nav):
        _loaded(nav, 2)
        assert nav.handle(ToggleAutoRefresh()) == []
        assert not nav.state.auto_refresh
        assert nav.handle(Tick(0)) == []

    def test_toggle_on_starts_single_chain(self, nav):
        _loaded(nav, 2)
        nav.handle(ToggleAutoRefresh())
        (schedule,) = nav.handle(ToggleAutoRefresh())
        assert schedule == ScheduleTick(2, 3.0)
        # the tick scheduled before toggling belongs to a dead chain
        assert nav.handle(Tick(0)) == []
        assert nav.handle(Tick(2))[-1] == ScheduleTick(2, 3.0)


class TestExit:
    def test_quit_from_any_view(self, nav):
        assert nav.handle(Quit()) == [Exit()]
        _in_jobs(nav)
        assert nav.handle(Quit()) == [Exit()]

    def test_follow_logs_from_job_list(self, nav):
        _in_jobs(nav)
        nav.handle(MoveCursor(2))
        assert nav.handle(FollowLogs()) == [FollowJob(12)]

    def test_follow_logs_ignored_elsewhere(self, nav):
        _loaded(nav, 3)
        assert nav.handle(FollowLogs()) == []

    def test_follow_sample_job_shows_preview(self, nav):
        fetch = nav.start()[0]
        demo = PipelineListing(sample_pipelines(), "Mock Data - Demo Mode", is_sample=True)
        nav.handle(PipelinesLoaded(fetch.request_id, demo))
        (fetch,) = nav.handle(Enter())
        listing = JobListing(sample_jobs(), "Mock Data - Demo Mode", is_sample=True)
        nav.handle(JobsLoaded(fetch.request_id, fetch.pipeline_id, listing))

        assert nav.handle(FollowLogs()) == []
        assert nav.state.current_view is View.LOG_VIEW
        assert nav.state.selected_job_id == 1001
        assert "Streaming Preview" in nav.state.logs
        assert "glab-tui logs --follow 1001" in nav.state.logs
        assert nav.state.logs_provenance == "Mock Data - Demo Mode"

    def test_real_jobs_after_sample_jobs_follow_again(self, nav):
        _loaded(nav, 3)
        (fetch,) = nav.handle(Enter())
        sample = JobListing(sample_jobs(), "Mock Data - API Error", is_sample=True)
        nav.handle(JobsLoaded(fetch.request_id, fetch.pipeline_id, sample))
        nav.handle(Back())
        (fetch,) = nav.handle(Enter())
        nav.handle(JobsLoaded(fetch.request_id, fetch.pipeline_id, _jobs(2)))
        assert nav.handle(FollowLogs()) == [FollowJob(10)]
