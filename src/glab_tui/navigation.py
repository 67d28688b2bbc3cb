"""Drill-down navigation: pipeline list → job list → log view.

:class:`Navigator` is a reducer. ``handle(event)`` mutates the
:class:`NavigationState` and returns the commands (fetches, timers, exit) the
caller must carry out; the results come back later as further events. Views
only change when a fetch result arrives, so a failed fetch never leaves the
user on a screen without data.

Every fetch carries a request ID. A result is applied only if its ID is the
one currently outstanding for that kind of fetch; anything else is a stale
answer (superseded request, or the user navigated away) and is dropped.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Union

from .models.pipelines import Job, Pipeline
from .sample import streaming_preview
from .source import JobListing, LogListing, PipelineListing

logger = logging.getLogger(__name__)

PAGE_SIZE = 5


class View(enum.Enum):
    PIPELINE_LIST = "pipelines"
    JOB_LIST = "jobs"
    LOG_VIEW = "logs"


# ════════════════════════════════════════════════════════════════════
# Events
# ════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class MoveCursor:
    delta: int


@dataclass(frozen=True)
class PageUp:
    pass


@dataclass(frozen=True)
class PageDown:
    pass


@dataclass(frozen=True)
class JumpFirst:
    pass


@dataclass(frozen=True)
class JumpLast:
    pass


@dataclass(frozen=True)
class Enter:
    pass


@dataclass(frozen=True)
class Back:
    pass


@dataclass(frozen=True)
class Refresh:
    pass


@dataclass(frozen=True)
class ToggleAutoRefresh:
    pass


@dataclass(frozen=True)
class FollowLogs:
    pass


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class Tick:
    generation: int


@dataclass(frozen=True)
class PipelinesLoaded:
    request_id: int
    listing: PipelineListing


@dataclass(frozen=True)
class JobsLoaded:
    request_id: int
    pipeline_id: int
    listing: JobListing


@dataclass(frozen=True)
class LogsLoaded:
    request_id: int
    job_id: int
    listing: LogListing


@dataclass(frozen=True)
class FetchFailed:
    request_id: int
    message: str


Event = Union[
    MoveCursor, PageUp, PageDown, JumpFirst, JumpLast, Enter, Back, Refresh,
    ToggleAutoRefresh, FollowLogs, Quit, Tick,
    PipelinesLoaded, JobsLoaded, LogsLoaded, FetchFailed,
]


# ════════════════════════════════════════════════════════════════════
# Commands
# ════════════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class FetchPipelines:
    request_id: int


@dataclass(frozen=True)
class FetchJobs:
    request_id: int
    pipeline_id: int


@dataclass(frozen=True)
class FetchLogs:
    request_id: int
    job: Job


@dataclass(frozen=True)
class ScheduleTick:
    generation: int
    delay: float


@dataclass(frozen=True)
class FollowJob:
    job_id: int


@dataclass(frozen=True)
class Exit:
    pass


Command = Union[FetchPipelines, FetchJobs, FetchLogs, ScheduleTick, FollowJob, Exit]


# ════════════════════════════════════════════════════════════════════
# State
# ════════════════════════════════════════════════════════════════════


def clamp_cursor(cursor: int, length: int) -> int:
    if length == 0:
        return 0
    return max(0, min(cursor, length - 1))


@dataclass
class NavigationState:
    current_view: View = View.PIPELINE_LIST
    pipelines: list[Pipeline] = field(default_factory=list)
    jobs: list[Job] = field(default_factory=list)
    pipeline_cursor: int = 0
    job_cursor: int = 0
    selected_pipeline_id: int = 0
    selected_job_id: int = 0
    logs: str = ""
    pipelines_provenance: str = ""
    jobs_provenance: str = ""
    jobs_sample: bool = False
    logs_provenance: str = ""
    error: str = ""
    auto_refresh: bool = True
    loading: bool = False
    # outstanding request IDs, 0 when nothing is in flight
    pipelines_request: int = 0
    jobs_request: int = 0
    logs_request: int = 0
    tick_generation: int = 0

    @property
    def selected_pipeline(self) -> Pipeline | None:
        if not self.pipelines:
            return None
        return self.pipelines[clamp_cursor(self.pipeline_cursor, len(self.pipelines))]

    @property
    def selected_job(self) -> Job | None:
        if not self.jobs:
            return None
        return self.jobs[clamp_cursor(self.job_cursor, len(self.jobs))]

    @property
    def running_count(self) -> int:
        return sum(1 for p in self.pipelines if p.status == "running")


class Navigator:
    """Owns a NavigationState and applies events to it."""

    def __init__(self, refresh_interval: float = 3.0, state: NavigationState | None = None) -> None:
        self.refresh_interval = refresh_interval
        self.state = state or NavigationState()
        self._next_request = 0

    def _request_id(self) -> int:
        self._next_request += 1
        return self._next_request

    def start(self) -> list[Command]:
        """Initial fetch plus the first refresh tick."""
        commands: list[Command] = [self._fetch_pipelines()]
        if self.state.auto_refresh:
            commands.append(self._schedule_tick())
        return commands

    def handle(self, event: Event) -> list[Command]:
        handler = getattr(self, f"_on_{type(event).__name__}", None)
        if handler is None:
            logger.debug("Ignoring unhandled event %r", event)
            return []
        return handler(event)

    # ── Helpers ───────────────────────────────────────────────────

    def _fetch_pipelines(self) -> FetchPipelines:
        request_id = self._request_id()
        self.state.pipelines_request = request_id
        self.state.loading = True
        return FetchPipelines(request_id)

    def _schedule_tick(self) -> ScheduleTick:
        return ScheduleTick(self.state.tick_generation, self.refresh_interval)

    def _set_cursor(self, cursor: int) -> None:
        s = self.state
        if s.current_view is View.PIPELINE_LIST:
            s.pipeline_cursor = clamp_cursor(cursor, len(s.pipelines))
        elif s.current_view is View.JOB_LIST:
            s.job_cursor = clamp_cursor(cursor, len(s.jobs))

    def _cursor(self) -> int:
        s = self.state
        if s.current_view is View.JOB_LIST:
            return s.job_cursor
        return s.pipeline_cursor

    def _update_loading(self) -> None:
        s = self.state
        s.loading = bool(s.pipelines_request or s.jobs_request or s.logs_request)

    # ── Cursor movement ───────────────────────────────────────────

    def _on_MoveCursor(self, event: MoveCursor) -> list[Command]:
        self._set_cursor(self._cursor() + event.delta)
        return []

    def _on_PageUp(self, event: PageUp) -> list[Command]:
        self._set_cursor(self._cursor() - PAGE_SIZE)
        return []

    def _on_PageDown(self, event: PageDown) -> list[Command]:
        self._set_cursor(self._cursor() + PAGE_SIZE)
        return []

    def _on_JumpFirst(self, event: JumpFirst) -> list[Command]:
        self._set_cursor(0)
        return []

    def _on_JumpLast(self, event: JumpLast) -> list[Command]:
        s = self.state
        length = len(s.jobs) if s.current_view is View.JOB_LIST else len(s.pipelines)
        self._set_cursor(length - 1)
        return []

    # ── Drill-down ────────────────────────────────────────────────

    def _on_Enter(self, event: Enter) -> list[Command]:
        s = self.state
        if s.current_view is View.PIPELINE_LIST:
            pipeline = s.selected_pipeline
            if pipeline is None:
                return []
            request_id = self._request_id()
            s.jobs_request = request_id
            s.loading = True
            return [FetchJobs(request_id, pipeline.id)]
        if s.current_view is View.JOB_LIST:
            job = s.selected_job
            if job is None:
                return []
            request_id = self._request_id()
            s.logs_request = request_id
            s.loading = True
            return [FetchLogs(request_id, job)]
        return []

    def _on_Back(self, event: Back) -> list[Command]:
        s = self.state
        if s.current_view is View.LOG_VIEW:
            s.current_view = View.JOB_LIST
        elif s.current_view is View.JOB_LIST:
            s.current_view = View.PIPELINE_LIST
        # a pending drill-down no longer matches what is on screen
        s.jobs_request = 0
        s.logs_request = 0
        s.error = ""
        self._update_loading()
        return []

    def _on_FollowLogs(self, event: FollowLogs) -> list[Command]:
        s = self.state
        job = s.selected_job
        if s.current_view is not View.JOB_LIST or job is None:
            return []
        if not s.jobs_sample:
            return [FollowJob(job.id)]
        # sample jobs do not exist on any GitLab instance
        s.logs = streaming_preview(job)
        s.logs_provenance = s.jobs_provenance
        s.selected_job_id = job.id
        s.logs_request = 0
        s.current_view = View.LOG_VIEW
        self._update_loading()
        return []

    def _on_Quit(self, event: Quit) -> list[Command]:
        return [Exit()]

    # ── Refresh ───────────────────────────────────────────────────

    def _on_Refresh(self, event: Refresh) -> list[Command]:
        s = self.state
        if s.current_view is not View.PIPELINE_LIST or s.pipelines_request:
            return []
        return [self._fetch_pipelines()]

    def _on_ToggleAutoRefresh(self, event: ToggleAutoRefresh) -> list[Command]:
        s = self.state
        s.auto_refresh = not s.auto_refresh
        # invalidate the tick already scheduled by the previous chain
        s.tick_generation += 1
        if s.auto_refresh:
            return [self._schedule_tick()]
        return []

    def _on_Tick(self, event: Tick) -> list[Command]:
        s = self.state
        if event.generation != s.tick_generation or not s.auto_refresh:
            return []
        commands: list[Command] = []
        if s.current_view is View.PIPELINE_LIST and not s.pipelines_request:
            commands.append(self._fetch_pipelines())
        commands.append(self._schedule_tick())
        return commands

    # ── Fetch results ─────────────────────────────────────────────

    def _on_PipelinesLoaded(self, event: PipelinesLoaded) -> list[Command]:
        s = self.state
        if event.request_id != s.pipelines_request:
            logger.debug("Discarding stale pipeline result %d", event.request_id)
            return []
        s.pipelines_request = 0
        s.pipelines = list(event.listing.pipelines)
        s.pipelines_provenance = event.listing.provenance
        s.pipeline_cursor = clamp_cursor(s.pipeline_cursor, len(s.pipelines))
        s.error = ""
        self._update_loading()
        return []

    def _on_JobsLoaded(self, event: JobsLoaded) -> list[Command]:
        s = self.state
        if event.request_id != s.jobs_request or s.current_view is not View.PIPELINE_LIST:
            logger.debug("Discarding stale job result %d", event.request_id)
            return []
        s.jobs_request = 0
        s.jobs = list(event.listing.jobs)
        s.jobs_provenance = event.listing.provenance
        s.jobs_sample = event.listing.is_sample
        s.job_cursor = 0
        s.selected_pipeline_id = event.pipeline_id
        s.current_view = View.JOB_LIST
        s.error = ""
        self._update_loading()
        return []

    def _on_LogsLoaded(self, event: LogsLoaded) -> list[Command]:
        s = self.state
        if event.request_id != s.logs_request or s.current_view is not View.JOB_LIST:
            logger.debug("Discarding stale log result %d", event.request_id)
            return []
        s.logs_request = 0
        s.logs = event.listing.text
        s.logs_provenance = event.listing.provenance
        s.selected_job_id = event.job_id
        s.current_view = View.LOG_VIEW
        s.error = ""
        self._update_loading()
        return []

    def _on_FetchFailed(self, event: FetchFailed) -> list[Command]:
        s = self.state
        if event.request_id == s.pipelines_request:
            s.pipelines_request = 0
        elif event.request_id == s.jobs_request:
            s.jobs_request = 0
        elif event.request_id == s.logs_request:
            s.logs_request = 0
        else:
            return []
        s.error = event.message
        self._update_loading()
        return []
