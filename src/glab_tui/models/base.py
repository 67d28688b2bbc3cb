"""Base model for records built from GitLab API responses and glab output."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class GitLabModel(BaseModel):
    """Base model with common behavior for all glab-tui records."""

    model_config = {"extra": "ignore", "populate_by_name": True}

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> GitLabModel:
        """Build a record from an API payload, dropping nulls so defaults apply."""
        return cls.model_validate({k: v for k, v in data.items() if v is not None})
