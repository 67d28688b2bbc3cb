"""Shared test fixtures for glab-tui."""

from __future__ import annotations

from typing import Any

import pytest
import respx

from glab_tui.client import GitLabClient
from glab_tui.config import GlabTuiConfig
from glab_tui.exceptions import CommandError

TEST_URL = "https://gitlab.example.com"
TEST_TOKEN = "test-token"
TEST_PROJECT = "my-group/my-project"
ENCODED_PROJECT = "my-group%2Fmy-project"

GLAB_LIST_OUTPUT = (
    "Showing 3 pipelines on my-group/my-project (Page 1)\n"
    "\n"
    "State\tIID\tRef\tCreated\n"
    "(running) • #1997196243\t(#6866)\trefs/merge-requests/406/head\t(less than a minute ago)\n"
    "(failed) • #1997196100\t(#6865)\tfix/running-tests\t(5 minutes ago)\n"
    "(success) • #1997195000\t(#6864)\tmain\t(1 hour ago)\n"
)


class FakeRunner:
    """Stands in for ``run_command``; replies keyed by the full argument tuple."""

    def __init__(self, log: list[str] | None = None) -> None:
        self.responses: dict[tuple[str, ...], str | Exception] = {}
        self.calls: list[tuple[str, ...]] = []
        self.log = log if log is not None else []

    async def __call__(self, *args: str, timeout: float = 60.0) -> str:
        self.calls.append(args)
        self.log.append("glab " + " ".join(args[1:3]))
        reply = self.responses.get(args)
        if reply is None:
            raise CommandError(args, 1, "not mocked")
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeClient:
    """Stands in for GitLabClient; each method replies from ``data`` or raises."""

    def __init__(self, log: list[str] | None = None) -> None:
        self.data: dict[str, Any] = {}
        self.calls: list[tuple[str, tuple]] = []
        self.log = log if log is not None else []
        self.closed = False

    def _reply(self, name: str, *args: Any) -> Any:
        self.calls.append((name, args))
        self.log.append(f"api {name}")
        reply = self.data.get(name)
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def get_current_user(self) -> Any:
        return self._reply("get_current_user")

    async def get_project(self, project_id: Any) -> Any:
        return self._reply("get_project", project_id)

    async def list_pipelines(self, project_id: Any, params: Any = None) -> Any:
        return self._reply("list_pipelines", project_id)

    async def list_pipeline_jobs(self, project_id: Any, pipeline_id: int) -> Any:
        return self._reply("list_pipeline_jobs", project_id, pipeline_id)

    async def get_job(self, project_id: Any, job_id: int) -> Any:
        return self._reply("get_job", project_id, job_id)

    async def get_job_log(self, project_id: Any, job_id: int) -> Any:
        return self._reply("get_job_log", project_id, job_id)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def config() -> GlabTuiConfig:
    return GlabTuiConfig(url=TEST_URL, token=TEST_TOKEN)


@pytest.fixture
def client(config: GlabTuiConfig) -> GitLabClient:
    return GitLabClient(config)


@pytest.fixture
def mock_api() -> respx.MockRouter:
    with respx.mock(base_url="https://gitlab.example.com/api/v4") as router:
        yield router


@pytest.fixture
def glab_list_output() -> str:
    return GLAB_LIST_OUTPUT


@pytest.fixture
def call_log() -> list[str]:
    return []


@pytest.fixture
def fake_runner(call_log: list[str]) -> FakeRunner:
    return FakeRunner(call_log)


@pytest.fixture
def fake_client(call_log: list[str]) -> FakeClient:
    return FakeClient(call_log)
