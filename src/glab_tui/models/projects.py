"""Project and user models."""

from __future__ import annotations

from .base import GitLabModel


class Project(GitLabModel):
    id: int = 0
    name: str = ""
    name_with_namespace: str = ""
    path_with_namespace: str = ""
    web_url: str = ""
    archived: bool = False


class User(GitLabModel):
    id: int
    username: str = ""
    name: str = ""
    state: str = ""
    web_url: str = ""
