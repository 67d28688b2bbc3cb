"""Data source selection and the glab → REST API → sample fallback ladder.

The mode is picked once per session by :func:`select_mode`. Listing
operations (``fetch_*``) never raise: every failed tier is logged and the next
one is tried, ending with sample data labelled with the reason. Targeted
lookups (``get_*``) raise :class:`DataSourceError` instead, since a single job
has nothing sensible to fall back to.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Union

import httpx
from pydantic import ValidationError

from .client import GitLabClient
from .config import GlabTuiConfig
from .exceptions import (
    CommandError,
    ConfigurationError,
    DataSourceError,
    GitLabError,
    GitLabNotFoundError,
    ParseError,
)
from .glab import GlabCli
from .models.pipelines import Job, Pipeline
from .parsing import (
    job_from_mapping,
    jobs_from_payload,
    parse_job_json,
    parse_jobs_json,
    parse_pipeline_listing,
    pipeline_from_mapping,
    project_from_mapping,
)
from .sample import sample_jobs, sample_log, sample_pipelines

logger = logging.getLogger(__name__)

# Fallback reasons, rendered as "Mock Data - <reason>"
DEMO_MODE = "Demo Mode"
NO_PROJECT_CONTEXT = "No Project Context"
CONFIG_ERROR = "Config Error"
NO_TOKEN = "No Token"
PROJECT_NOT_FOUND = "Project Not Found"
NO_PROJECT_ID = "No Project ID"
API_ERROR = "API Error"
NO_PIPELINES = "No Pipelines"
NO_JOBS = "No Jobs"

# Failures that move the ladder to the next tier
API_ERRORS = (GitLabError, httpx.HTTPError, ValidationError)


@dataclass(frozen=True)
class LocalTool:
    """glab is installed; ladder glab → REST → sample."""

    project_path: str


@dataclass(frozen=True)
class RemoteApi:
    """No glab binary but a token; ladder REST → sample."""

    project_path: str


@dataclass(frozen=True)
class StaticSample:
    """Sample data only."""

    reason: str


SourceMode = Union[LocalTool, RemoteApi, StaticSample]


def select_mode(
    project_path: str | None,
    *,
    demo: bool = False,
    glab_installed: bool = True,
    has_token: bool = False,
) -> SourceMode:
    if demo:
        return StaticSample(DEMO_MODE)
    if not project_path:
        return StaticSample(NO_PROJECT_CONTEXT)
    if glab_installed:
        return LocalTool(project_path)
    if has_token:
        return RemoteApi(project_path)
    return StaticSample(NO_TOKEN)


def mock_label(reason: str) -> str:
    return f"Mock Data - {reason}"


@dataclass
class PipelineListing:
    pipelines: list[Pipeline]
    provenance: str
    is_sample: bool = False


@dataclass
class JobListing:
    jobs: list[Job]
    provenance: str
    is_sample: bool = False


@dataclass
class LogListing:
    text: str
    provenance: str
    is_sample: bool = False


@dataclass
class _Attempts:
    """Errors collected while walking the ladder for a targeted lookup."""

    errors: list[str] = field(default_factory=list)

    def add(self, tier: str, error: Exception) -> None:
        logger.warning("%s failed: %s", tier, error)
        self.errors.append(f"{tier}: {error}")

    def fail(self, what: str) -> DataSourceError:
        detail = "; ".join(self.errors) or "no data source available"
        return DataSourceError(f"Failed to get {what}: {detail}")


class DataSourceAdapter:
    """Produces pipelines, jobs and logs for one project."""

    def __init__(
        self,
        mode: SourceMode,
        *,
        glab: GlabCli | None = None,
        client: GitLabClient | None = None,
        client_error: str = NO_TOKEN,
    ) -> None:
        self.mode = mode
        self._glab = glab
        self._client = client
        self._client_error = client_error
        self._project_id: int | None = None

    @classmethod
    def from_config(
        cls,
        config: GlabTuiConfig,
        project_path: str | None,
        *,
        demo: bool = False,
    ) -> DataSourceAdapter:
        """Pick the mode and build the glab wrapper and REST client it needs."""
        mode = select_mode(
            project_path,
            demo=demo,
            glab_installed=GlabCli.is_installed(config.glab_binary),
            has_token=config.has_token,
        )
        if isinstance(mode, StaticSample):
            return cls(mode)

        glab = None
        if isinstance(mode, LocalTool):
            glab = GlabCli(mode.project_path, binary=config.glab_binary)

        client = None
        client_error = NO_TOKEN
        if config.has_token:
            try:
                client = GitLabClient(config)
            except ConfigurationError as e:
                logger.warning("Failed to create GitLab client: %s", e)
                client_error = CONFIG_ERROR
        return cls(mode, glab=glab, client=client, client_error=client_error)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()

    @property
    def project_path(self) -> str | None:
        if isinstance(self.mode, StaticSample):
            return None
        return self.mode.project_path

    @property
    def label(self) -> str:
        if isinstance(self.mode, StaticSample):
            return "demo-project"
        return self.mode.project_path.rsplit("/", 1)[-1]

    # ── Tiers ─────────────────────────────────────────────────────

    def _use_glab(self) -> GlabCli | None:
        if isinstance(self.mode, LocalTool):
            return self._glab
        return None

    async def _resolve_project_id(self) -> int:
        """Look up the numeric project ID once; it is fixed for the session."""
        if self._project_id is None:
            data = await self._client.get_project(self.project_path)
            project = project_from_mapping(data if isinstance(data, dict) else {})
            if project.id == 0:
                msg = f"project {self.project_path} has no numeric ID"
                raise DataSourceError(msg)
            self._project_id = project.id
        return self._project_id

    def _sample_pipelines(self, reason: str) -> PipelineListing:
        logger.warning("Falling back to sample pipelines: %s", reason)
        return PipelineListing(sample_pipelines(), mock_label(reason), is_sample=True)

    # ── Listings ──────────────────────────────────────────────────

    async def fetch_pipelines(self) -> PipelineListing:
        if isinstance(self.mode, StaticSample):
            return PipelineListing(sample_pipelines(), mock_label(self.mode.reason), is_sample=True)

        path = self.project_path
        glab = self._use_glab()
        if glab is not None:
            try:
                pipelines = parse_pipeline_listing(await glab.list_pipelines())
            except CommandError as e:
                logger.warning("glab command failed: %s", e)
            else:
                if pipelines:
                    return PipelineListing(pipelines, f"Real Data via glab - {path}")
                logger.warning("glab returned no pipelines for %s", path)

        if self._client is None:
            return self._sample_pipelines(self._client_error)

        try:
            project_id = await self._resolve_project_id()
        except GitLabNotFoundError as e:
            logger.warning("Failed to get project %s: %s", path, e)
            return self._sample_pipelines(PROJECT_NOT_FOUND)
        except DataSourceError as e:
            logger.warning("%s", e)
            return self._sample_pipelines(NO_PROJECT_ID)
        except API_ERRORS as e:
            logger.warning("Failed to get project %s: %s", path, e)
            return self._sample_pipelines(API_ERROR)

        try:
            data = await self._client.list_pipelines(project_id)
        except API_ERRORS as e:
            logger.warning("Failed to get pipelines: %s", e)
            return self._sample_pipelines(API_ERROR)

        pipelines = []
        for item in data if isinstance(data, list) else []:
            if not isinstance(item, dict):
                continue
            pipeline = pipeline_from_mapping(item, project_id, self.label)
            if pipeline.id != 0:
                pipelines.append(pipeline)
            else:
                logger.debug("Dropping pipeline entry without an id: %.200r", item)
        if not pipelines:
            return self._sample_pipelines(NO_PIPELINES)
        return PipelineListing(pipelines, f"Real Data via API - {path}")

    async def fetch_jobs(self, pipeline_id: int) -> JobListing:
        if isinstance(self.mode, StaticSample):
            return JobListing(sample_jobs(), mock_label(self.mode.reason), is_sample=True)

        glab = self._use_glab()
        if glab is not None:
            try:
                jobs = parse_jobs_json(await glab.pipeline_jobs(pipeline_id))
            except CommandError as e:
                logger.warning("glab failed to list jobs of pipeline %d: %s", pipeline_id, e)
            else:
                if jobs:
                    return JobListing(jobs, "Real Data via glab")
                logger.warning("No jobs found for pipeline %d via glab", pipeline_id)

        reason = self._client_error
        if self._client is not None:
            try:
                project_id = await self._resolve_project_id()
                data = await self._client.list_pipeline_jobs(project_id, pipeline_id)
            except API_ERRORS as e:
                logger.warning("Failed to get jobs of pipeline %d: %s", pipeline_id, e)
                reason = API_ERROR
            else:
                jobs = jobs_from_payload(data or [])
                if jobs:
                    return JobListing(jobs, "Real Data via API")
                reason = NO_JOBS

        logger.warning("Falling back to sample jobs for pipeline %d: %s", pipeline_id, reason)
        return JobListing(sample_jobs(), mock_label(reason), is_sample=True)

    async def fetch_logs(self, job: Job) -> LogListing:
        if isinstance(self.mode, StaticSample):
            return LogListing(sample_log(job), mock_label(self.mode.reason), is_sample=True)

        glab = self._use_glab()
        if glab is not None:
            try:
                return LogListing(await glab.job_trace(job.id), "Real Data via glab")
            except CommandError as e:
                logger.warning("glab failed to fetch trace of job %d: %s", job.id, e)

        reason = self._client_error
        if self._client is not None:
            try:
                project_id = await self._resolve_project_id()
                return LogListing(
                    await self._client.get_job_log(project_id, job.id), "Real Data via API"
                )
            except API_ERRORS as e:
                logger.warning("Failed to get logs of job %d: %s", job.id, e)
                reason = API_ERROR

        logger.warning("Falling back to sample log for job %d: %s", job.id, reason)
        return LogListing(sample_log(job), mock_label(reason), is_sample=True)

    # ── Targeted lookups ──────────────────────────────────────────

    def _require_project(self) -> None:
        if isinstance(self.mode, StaticSample):
            msg = f"No GitLab project available ({self.mode.reason})"
            raise ConfigurationError(msg)

    async def get_job(self, job_id: int) -> Job:
        self._require_project()
        attempts = _Attempts()
        glab = self._use_glab()
        if glab is not None:
            try:
                return parse_job_json(await glab.job(job_id))
            except (CommandError, ParseError) as e:
                attempts.add("glab", e)
        if self._client is not None:
            try:
                project_id = await self._resolve_project_id()
                data = await self._client.get_job(project_id, job_id)
                if not isinstance(data, dict):
                    msg = f"Expected a JSON object for job {job_id}"
                    raise ParseError(msg)
                return job_from_mapping(data)
            except API_ERRORS as e:
                attempts.add("GitLab API", e)
        raise attempts.fail(f"job {job_id}")

    async def get_job_status(self, job_id: int) -> str:
        return (await self.get_job(job_id)).status

    async def get_job_log(self, job_id: int) -> str:
        self._require_project()
        attempts = _Attempts()
        glab = self._use_glab()
        if glab is not None:
            try:
                return await glab.job_trace(job_id)
            except CommandError as e:
                attempts.add("glab", e)
        if self._client is not None:
            try:
                project_id = await self._resolve_project_id()
                return await self._client.get_job_log(project_id, job_id)
            except API_ERRORS as e:
                attempts.add("GitLab API", e)
        raise attempts.fail(f"logs of job {job_id}")
