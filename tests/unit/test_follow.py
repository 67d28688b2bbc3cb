"""Tests for log streaming."""

from __future__ import annotations

import pytest

from glab_tui.exceptions import DataSourceError
from glab_tui.follow import LogFollower


class ScriptedJob:
    """Replays successive trace snapshots and statuses, repeating the last one."""

    def __init__(self, logs: list, statuses: list) -> None:
        self.logs = logs
        self.statuses = statuses
        self.log_calls = 0
        self.status_calls = 0

    @staticmethod
    def _next(items: list, index: int):
        item = items[min(index, len(items) - 1)]
        if isinstance(item, Exception):
            raise item
        return item

    async def get_job_log(self, job_id: int) -> str:
        self.log_calls += 1
        return self._next(self.logs, self.log_calls - 1)

    async def get_job_status(self, job_id: int) -> str:
        self.status_calls += 1
        return self._next(self.statuses, self.status_calls - 1)


async def _no_sleep(seconds: float) -> None:
    return None


def _follower(job: ScriptedJob, out: list[str]) -> LogFollower:
    return LogFollower(job, 42, interval=0, echo=out.append, sleep=_no_sleep)


class TestLogFollower:
    @pytest.mark.asyncio
    async def test_prints_only_new_content(self):
        job = ScriptedJob(
            ["step 1\n", "step 1\nstep 2\n", "step 1\nstep 2\nstep 3\n"],
            ["running", "running", "success"],
        )
        out: list[str] = []
        status = await _follower(job, out).run()
        assert status == "success"
        body = [line for line in out if line.startswith("step")]
        assert body == ["step 1", "step 2", "step 3"]

    @pytest.mark.asyncio
    async def test_completion_banner_once(self):
        job = ScriptedJob(["done\n"], ["failed"])
        out: list[str] = []
        follower = _follower(job, out)
        await follower.run()
        banners = [line for line in out if "completed with status" in line]
        assert banners == ["✅ Job 42 completed with status: failed"]
        assert follower.final_status == "failed"
        assert job.status_calls == 1

    @pytest.mark.asyncio
    async def test_canceled_is_terminal(self):
        job = ScriptedJob([""], ["running", "canceled"])
        assert await _follower(job, []).run() == "canceled"

    @pytest.mark.asyncio
    async def test_initial_failure_propagates(self):
        job = ScriptedJob([DataSourceError("no trace")], ["running"])
        with pytest.raises(DataSourceError, match="no trace"):
            await _follower(job, []).run()

    @pytest.mark.asyncio
    async def test_poll_failures_are_retried(self):
        job = ScriptedJob(
            ["a\n", DataSourceError("flaky"), "a\nb\n"],
            [DataSourceError("flaky"), "running", "success"],
        )
        out: list[str] = []
        assert await _follower(job, out).run() == "success"
        assert [line for line in out if line in ("a", "b")] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_truncated_trace_is_reprinted(self):
        job = ScriptedJob(["long first run\n", "retry\n", "retry\n"], ["running", "success"])
        out: list[str] = []
        await _follower(job, out).run()
        assert "retry" in out

    @pytest.mark.asyncio
    async def test_header(self):
        out: list[str] = []
        await _follower(ScriptedJob([""], ["success"]), out).run()
        assert out[0] == "🔄 Streaming logs for job 42 (Ctrl+C to exit)..."
