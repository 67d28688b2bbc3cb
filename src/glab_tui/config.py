"""glab-tui configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from .exceptions import ConfigurationError

DEFAULT_URL = "https://gitlab.com"
PLACEHOLDER_TOKEN = "your-token-here"


def glab_config_path() -> Path:
    return Path.home() / ".config" / "glab-cli" / "config.yml"


def load_glab_token(host: str = "gitlab.com", path: Path | None = None) -> str:
    """Read the token stored by ``glab auth login`` for *host*.

    The file is scanned line by line instead of parsed as YAML: glab writes
    tokens as ``token: !!null glpat-...`` which a YAML loader turns into None.
    Returns an empty string when the file or the host section is missing.
    """
    config_file = path or glab_config_path()
    try:
        lines = config_file.read_text(encoding="utf-8").splitlines()
    except OSError:
        return ""

    host_indent: int | None = None
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        indent = len(raw) - len(raw.lstrip())
        if host_indent is None:
            if line == f"{host}:":
                host_indent = indent
            continue
        if indent <= host_indent:
            break
        if line.startswith("token:"):
            token = line.split("token:", 1)[1].strip()
            return token.removeprefix("!!null").strip()
    return ""


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name, "")
    return float(value) if value else default


@dataclass
class GlabTuiConfig:
    """Configuration for glab-tui, loaded from environment variables."""

    url: str = DEFAULT_URL
    token: str = ""
    timeout: int = 30
    ssl_verify: bool = True
    per_page: int = 10
    refresh_interval: float = 3.0
    follow_interval: float = 2.0
    glab_binary: str = "glab"
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, glab_config: Path | None = None) -> GlabTuiConfig:
        url = (os.getenv("GITLAB_URL") or DEFAULT_URL).rstrip("/")
        host = urlparse(url).hostname or "gitlab.com"
        token = (
            load_glab_token(host, glab_config)
            or os.getenv("GITLAB_TOKEN", "")
            or os.getenv("GLAB_TOKEN", "")
        )
        if token == PLACEHOLDER_TOKEN:
            token = ""
        ssl_verify = os.getenv("GITLAB_SSL_VERIFY", "true").lower() not in (
            "false",
            "0",
            "no",
        )

        return cls(
            url=url,
            token=token,
            timeout=int(os.getenv("GITLAB_TIMEOUT", "30")),
            ssl_verify=ssl_verify,
            per_page=int(os.getenv("MAX_PIPELINES_PER_PROJECT", "10")),
            refresh_interval=_env_float("GLAB_TUI_REFRESH_INTERVAL", 3.0),
            follow_interval=_env_float("GLAB_TUI_FOLLOW_INTERVAL", 2.0),
            glab_binary=os.getenv("GLAB_BINARY", "glab"),
            log_level=os.getenv("GLAB_TUI_LOG_LEVEL", "WARNING").upper(),
        )

    @property
    def api_url(self) -> str:
        return f"{self.url}/api/v4"

    @property
    def has_token(self) -> bool:
        return bool(self.token)

    def validate(self) -> None:
        if not self.url:
            msg = "GITLAB_URL must not be empty"
            raise ConfigurationError(msg)
        if not self.token:
            msg = (
                "No GitLab token found. Run 'glab auth login' or set one of: "
                "GITLAB_TOKEN, GLAB_TOKEN"
            )
            raise ConfigurationError(msg)
