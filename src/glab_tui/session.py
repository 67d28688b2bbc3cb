"""Event loop driving the Navigator.

Key presses, timer ticks and fetch results all go through one queue and are
handled one at a time; fetches run as separate tasks that post their result
back as an event.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from .models.pipelines import Job
from .navigation import (
    Command,
    Event,
    Exit,
    FetchFailed,
    FetchJobs,
    FetchLogs,
    FetchPipelines,
    FollowJob,
    JobsLoaded,
    LogsLoaded,
    NavigationState,
    Navigator,
    PipelinesLoaded,
    ScheduleTick,
    Tick,
)
from .source import JobListing, LogListing, PipelineListing

logger = logging.getLogger(__name__)


class PipelineSource(Protocol):
    async def fetch_pipelines(self) -> PipelineListing: ...

    async def fetch_jobs(self, pipeline_id: int) -> JobListing: ...

    async def fetch_logs(self, job: Job) -> LogListing: ...

    async def aclose(self) -> None: ...


class Session:
    def __init__(
        self,
        navigator: Navigator,
        source: PipelineSource,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self.navigator = navigator
        self.source = source
        self.on_change = on_change
        self.follow_job_id: int | None = None
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._tasks: set[asyncio.Task] = set()
        self._timer: asyncio.TimerHandle | None = None
        self._started = False
        self._stopped = False

    @property
    def state(self) -> NavigationState:
        return self.navigator.state

    @property
    def stopped(self) -> bool:
        return self._stopped

    def post(self, event: Event) -> None:
        self._queue.put_nowait(event)

    async def start(self) -> None:
        if self._started:
            return
        self._started = True
        self._execute(self.navigator.start())
        self._notify()

    async def process(self, event: Event) -> None:
        logger.debug("Event %r", event)
        self._execute(self.navigator.handle(event))
        self._notify()

    async def run(self) -> int | None:
        """Process events until quit or follow; return the job ID to follow, if any."""
        await self.start()
        try:
            while not self._stopped:
                await self.process(await self._queue.get())
        finally:
            await self.shutdown()
        return self.follow_job_id

    async def drain(self) -> None:
        """Process queued events until no fetch is in flight."""
        while not self._stopped:
            while not self._queue.empty() and not self._stopped:
                await self.process(self._queue.get_nowait())
            pending = [t for t in self._tasks if not t.done()]
            if not pending:
                if self._queue.empty():
                    return
                continue
            await asyncio.wait(pending)

    async def shutdown(self) -> None:
        self._stopped = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()

    # ── Commands ──────────────────────────────────────────────────

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def _execute(self, commands: list[Command]) -> None:
        for command in commands:
            if isinstance(command, FetchPipelines):
                self._spawn(command.request_id, self._load_pipelines(command))
            elif isinstance(command, FetchJobs):
                self._spawn(command.request_id, self._load_jobs(command))
            elif isinstance(command, FetchLogs):
                self._spawn(command.request_id, self._load_logs(command))
            elif isinstance(command, ScheduleTick):
                self._schedule(command)
            elif isinstance(command, FollowJob):
                self.follow_job_id = command.job_id
                self._stopped = True
            elif isinstance(command, Exit):
                self._stopped = True

    def _schedule(self, command: ScheduleTick) -> None:
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(command.delay, self.post, Tick(command.generation))

    def _spawn(self, request_id: int, coro: Awaitable[Event]) -> None:
        task = asyncio.create_task(self._guarded(request_id, coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _guarded(self, request_id: int, coro: Awaitable[Event]) -> None:
        try:
            self.post(await coro)
        except Exception as e:
            logger.exception("Fetch %d failed", request_id)
            self.post(FetchFailed(request_id, str(e) or type(e).__name__))

    async def _load_pipelines(self, command: FetchPipelines) -> Event:
        return PipelinesLoaded(command.request_id, await self.source.fetch_pipelines())

    async def _load_jobs(self, command: FetchJobs) -> Event:
        listing = await self.source.fetch_jobs(command.pipeline_id)
        return JobsLoaded(command.request_id, command.pipeline_id, listing)

    async def _load_logs(self, command: FetchLogs) -> Event:
        listing = await self.source.fetch_logs(command.job)
        return LogsLoaded(command.request_id, command.job.id, listing)
