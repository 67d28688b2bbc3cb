"""Stream a job log to the terminal until the job finishes."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

import click

from .exceptions import GitLabError
from .models.pipelines import TERMINAL_STATUSES

logger = logging.getLogger(__name__)

SEPARATOR = "─" * 49


class JobLogSource(Protocol):
    async def get_job_log(self, job_id: int) -> str: ...

    async def get_job_status(self, job_id: int) -> str: ...


class LogFollower:
    """Polls a job and echoes only the part of its trace not printed yet."""

    def __init__(
        self,
        source: JobLogSource,
        job_id: int,
        *,
        interval: float = 2.0,
        echo: Callable[[str], None] = click.echo,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.source = source
        self.job_id = job_id
        self.interval = interval
        self._echo = echo
        self._sleep = sleep
        self._printed = 0
        self.final_status: str | None = None

    def _emit(self, text: str) -> None:
        if len(text) < self._printed:
            # trace was truncated or restarted; print it again from the top
            self._printed = 0
        new = text[self._printed:]
        if new:
            self._echo(new.rstrip("\n"))
        self._printed = len(text)

    async def run(self) -> str:
        """Follow until the job reaches a terminal status; return that status.

        The initial trace fetch propagates its error. Later poll failures are
        logged and retried on the next tick.
        """
        self._echo(f"🔄 Streaming logs for job {self.job_id} (Ctrl+C to exit)...")
        self._echo(SEPARATOR)
        self._emit(await self.source.get_job_log(self.job_id))

        while True:
            try:
                status = await self.source.get_job_status(self.job_id)
            except GitLabError as e:
                logger.warning("Failed to get status of job %d: %s", self.job_id, e)
                status = ""
            if status in TERMINAL_STATUSES:
                break
            await self._sleep(self.interval)
            try:
                self._emit(await self.source.get_job_log(self.job_id))
            except GitLabError as e:
                logger.warning("Failed to get logs of job %d: %s", self.job_id, e)

        # pick up whatever was written between the last poll and completion
        try:
            self._emit(await self.source.get_job_log(self.job_id))
        except GitLabError as e:
            logger.warning("Failed to get final logs of job %d: %s", self.job_id, e)

        self.final_status = status
        self._echo(f"\n{SEPARATOR}")
        self._echo(f"✅ Job {self.job_id} completed with status: {status}")
        return status
