"""Read-only GitLab REST API client using httpx."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from . import __version__
from .config import GlabTuiConfig
from .exceptions import GitLabApiError, GitLabAuthError, GitLabNotFoundError

logger = logging.getLogger(__name__)

JOBS_PER_PAGE = 100


def encode_project(project: str | int) -> str:
    """Numeric IDs pass through; ``group/project`` paths are URL-encoded."""
    if isinstance(project, int):
        return str(project)
    try:
        return str(int(project))
    except ValueError:
        return quote(project, safe="")


def _raise_for_status(resp: httpx.Response) -> None:
    if resp.status_code in (401, 403):
        raise GitLabAuthError(resp.status_code, resp.text)
    if resp.status_code == 404:
        raise GitLabNotFoundError(resp.text)
    if not resp.is_success:
        raise GitLabApiError(resp.status_code, resp.reason_phrase or "", resp.text)


class GitLabClient:
    """Async client for the pipeline and job endpoints of the GitLab API v4."""

    def __init__(self, config: GlabTuiConfig | None = None) -> None:
        self.config = config or GlabTuiConfig.from_env()
        self.config.validate()
        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers={
                "Authorization": f"Bearer {self.config.token}",
                "Accept": "application/json",
                "User-Agent": f"glab-tui/{__version__}",
            },
            timeout=self.config.timeout,
            verify=self.config.ssl_verify,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitLabClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def get(
        self, path: str, params: dict[str, Any] | None = None, *, raw: bool = False
    ) -> Any:
        """GET ``path`` and return decoded JSON, or the body text when ``raw``."""
        logger.debug("GET %s params=%s", path, params)
        resp = await self._client.get(path, params=params)
        _raise_for_status(resp)

        if not resp.content:
            return "" if raw else None
        if raw:
            return resp.text

        if "text/html" in resp.headers.get("content-type", ""):
            msg = "Unexpected HTML response, check URL and authentication"
            raise GitLabApiError(resp.status_code, msg, resp.text[:500])
        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise GitLabApiError(resp.status_code, f"JSON parse error: {e}", resp.text[:500]) from e

    async def get_current_user(self) -> dict:
        return await self.get("/user")

    async def get_project(self, project: str | int) -> dict:
        return await self.get(f"/projects/{encode_project(project)}")

    async def list_pipelines(
        self, project: str | int, params: dict[str, Any] | None = None
    ) -> list[dict]:
        query = {
            "per_page": self.config.per_page,
            "order_by": "updated_at",
            "sort": "desc",
            **(params or {}),
        }
        return await self.get(f"/projects/{encode_project(project)}/pipelines", params=query)

    async def list_pipeline_jobs(self, project: str | int, pipeline_id: int) -> list[dict]:
        return await self.get(
            f"/projects/{encode_project(project)}/pipelines/{pipeline_id}/jobs",
            params={"per_page": JOBS_PER_PAGE},
        )

    async def get_job(self, project: str | int, job_id: int) -> dict:
        return await self.get(f"/projects/{encode_project(project)}/jobs/{job_id}")

    async def get_job_log(self, project: str | int, job_id: int) -> str:
        return await self.get(f"/projects/{encode_project(project)}/jobs/{job_id}/trace", raw=True)
