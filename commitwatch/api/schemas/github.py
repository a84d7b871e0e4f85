"""Aggregation response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class CommitItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sha: str
    message: str
    author_name: str | None
    authored_at: datetime | None
    html_url: str | None
    author_login: str | None


class RepositoryItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    name: str
    owner: str
    full_name: str
    description: str | None
    html_url: str | None
    language: str | None
    stargazers_count: int
    updated_at: datetime | None


class RepositoryWithCommits(BaseModel):
    repo: RepositoryItem
    last_commit_date: datetime | None
    commits: list[CommitItem]


class UserItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    login: str
    id: int | None
    avatar_url: str | None
    html_url: str | None
    name: str | None


class AggregationResponse(BaseModel):
    user: UserItem
    repos: list[str]
    repos_with_commits: list[RepositoryWithCommits]
    commits: list[CommitItem]
