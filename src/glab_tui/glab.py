"""Subprocess wrapper around the ``glab`` command-line tool."""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Awaitable, Callable
from urllib.parse import quote

from .exceptions import CommandError

logger = logging.getLogger(__name__)

CommandRunner = Callable[..., Awaitable[str]]

DEFAULT_COMMAND_TIMEOUT = 60.0


async def run_command(*args: str, timeout: float = DEFAULT_COMMAND_TIMEOUT) -> str:
    """Run *args* and return stdout; raise CommandError on failure."""
    logger.debug("Running %s", " ".join(args))
    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise CommandError(args, 127, f"{args[0]}: command not found") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout)
    except asyncio.TimeoutError as e:
        proc.kill()
        await proc.wait()
        raise CommandError(args, -1, f"timed out after {timeout:g}s") from e

    if proc.returncode != 0:
        raise CommandError(args, proc.returncode, stderr.decode("utf-8", errors="replace"))
    return stdout.decode("utf-8", errors="replace")


class GlabCli:
    """Runs ``glab`` against one project (``-R group/project``)."""

    def __init__(
        self,
        project_path: str,
        *,
        binary: str = "glab",
        runner: CommandRunner = run_command,
    ) -> None:
        self.project_path = project_path
        self.binary = binary
        self._run = runner

    @staticmethod
    def is_installed(binary: str = "glab") -> bool:
        return shutil.which(binary) is not None

    @property
    def _encoded_project(self) -> str:
        return quote(self.project_path, safe="")

    async def api(self, path: str) -> str:
        return await self._run(self.binary, "api", path)

    async def list_pipelines(self, per_page: int | None = None) -> str:
        args = [self.binary, "ci", "list", "-R", self.project_path]
        if per_page:
            args += ["--per-page", str(per_page)]
        return await self._run(*args)

    async def project(self) -> str:
        return await self.api(f"projects/{self._encoded_project}")

    async def pipeline_jobs(self, pipeline_id: int) -> str:
        return await self.api(f"projects/{self._encoded_project}/pipelines/{pipeline_id}/jobs")

    async def job(self, job_id: int) -> str:
        return await self.api(f"projects/{self._encoded_project}/jobs/{job_id}")

    async def job_trace(self, job_id: int) -> str:
        return await self.api(f"projects/{self._encoded_project}/jobs/{job_id}/trace")
