"""Detect the GitLab project of the current git checkout."""

from __future__ import annotations

import re

from .exceptions import CommandError, ProjectDetectionError
from .glab import CommandRunner, run_command

# git@gitlab.com:group/project.git
_SCP_RE = re.compile(r"^[\w.-]+@([^:/]+):(.+?)(?:\.git)?/?$")
# https://gitlab.com/group/project.git, ssh://git@gitlab.com:2222/group/project.git
_URL_RE = re.compile(r"^(?:https?|ssh)://(?:[^@/]+@)?([^/:]+)(?::\d+)?/(.+?)(?:\.git)?/?$")


def parse_remote_url(remote_url: str) -> str | None:
    """Extract ``group/project`` from a GitLab remote URL.

    Returns None for remotes that are not hosted on a GitLab instance.
    """
    remote_url = remote_url.strip()
    m = _SCP_RE.match(remote_url) or _URL_RE.match(remote_url)
    if not m:
        return None
    host, path = m.groups()
    if "gitlab" not in host:
        return None
    return path


async def detect_project_path(runner: CommandRunner = run_command) -> str:
    try:
        remote_url = await runner("git", "remote", "get-url", "origin")
    except CommandError as e:
        msg = f"failed to get git remote: {e}"
        raise ProjectDetectionError(msg) from e

    path = parse_remote_url(remote_url)
    if path is None:
        msg = f"not a GitLab repository or unsupported URL format: {remote_url.strip()}"
        raise ProjectDetectionError(msg)
    return path
