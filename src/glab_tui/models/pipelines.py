"""Pipeline and job models."""

from __future__ import annotations

from pydantic import field_validator

from .base import GitLabModel

PIPELINE_STATUSES = ("running", "success", "failed", "waiting_for_resource")
JOB_STATUSES = PIPELINE_STATUSES + (
    "pending",
    "created",
    "canceled",
    "skipped",
    "manual",
    "scheduled",
    "preparing",
)
TERMINAL_STATUSES = frozenset({"success", "failed", "canceled"})

UNKNOWN = "unknown"

JOBS_SUMMARY = {
    "running": "in progress",
    "success": "completed",
    "failed": "failed",
    "waiting_for_resource": "queued",
}


def normalize_status(value: object, vocabulary: tuple[str, ...] = PIPELINE_STATUSES) -> str:
    if not isinstance(value, str):
        return UNKNOWN
    status = value.strip().lower()
    return status if status in vocabulary else UNKNOWN


def summarize_jobs(status: str) -> str:
    return JOBS_SUMMARY.get(status, "pending")


def format_duration(seconds: float | None) -> str:
    if seconds is None:
        return ""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs:02d}s"


class Pipeline(GitLabModel):
    id: int = 0
    status: str = UNKNOWN
    ref: str = UNKNOWN
    project_name: str = ""
    project_id: int = 0
    web_url: str = ""
    created_at: str = ""
    time_ago: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: object) -> str:
        return normalize_status(value)

    @property
    def jobs_summary(self) -> str:
        return summarize_jobs(self.status)


class Job(GitLabModel):
    id: int = 0
    name: str = ""
    status: str = UNKNOWN
    stage: str = ""
    duration: float | None = None
    web_url: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def _normalize_status(cls, value: object) -> str:
        return normalize_status(value, JOB_STATUSES)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_valid(self) -> bool:
        return self.id != 0 and self.name != ""
