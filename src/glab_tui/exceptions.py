"""Exceptions raised by glab-tui."""

from __future__ import annotations

from collections.abc import Sequence


class GitLabError(Exception):
    """Base exception for glab-tui operations."""


class GitLabApiError(GitLabError):
    """Raised when the GitLab API returns a non-success response."""

    def __init__(self, status_code: int, status_text: str, body: str = "") -> None:
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(f"GitLab API Error {status_code} {status_text}: {body}")


class GitLabAuthError(GitLabApiError):
    """Raised on 401/403 authentication failures."""

    def __init__(self, status_code: int, body: str = "") -> None:
        status_text = "Unauthorized" if status_code == 401 else "Forbidden"
        super().__init__(status_code, status_text, body)


class GitLabNotFoundError(GitLabApiError):
    """Raised on 404 responses."""

    def __init__(self, body: str = "") -> None:
        super().__init__(404, "Not Found", body)


class ConfigurationError(GitLabError):
    """Raised when no credentials or project context can be resolved."""


class ProjectDetectionError(ConfigurationError):
    """Raised when the working directory is not a GitLab checkout."""


class CommandError(GitLabError):
    """Raised when an external command exits non-zero or cannot be started."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str = "") -> None:
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        detail = stderr.strip() or f"exit status {returncode}"
        super().__init__(f"`{' '.join(self.args_list)}` failed: {detail}")


class ParseError(GitLabError):
    """Raised when tool output cannot be parsed at all."""


class DataSourceError(GitLabError):
    """Raised when every data source tier failed for a targeted lookup."""
