"""Transient GitHub data: parsed from API JSON, never persisted."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# GitHub logins: alphanumerics and single hyphens, max 39 chars
_LOGIN_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9]|-(?=[A-Za-z0-9])){0,38}$")


def is_valid_login(name: str) -> bool:
    return _LOGIN_RE.fullmatch(name) is not None


@dataclass(frozen=True)
class Commit:
    """A single commit as returned by ``GET /repos/{owner}/{repo}/commits``."""

    sha: str
    message: str
    author_name: str | None = None
    authored_at: datetime | None = None
    html_url: str | None = None
    author_login: str | None = None

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    @property
    def title(self) -> str:
        return self.message.split("\n", 1)[0]


@dataclass(frozen=True)
class RepositorySummary:
    """One entry of ``GET /users/{username}/repos``."""

    name: str
    owner: str
    full_name: str
    updated_at: datetime | None = None
    description: str | None = None
    html_url: str | None = None
    language: str | None = None
    stargazers_count: int = 0


@dataclass(frozen=True)
class UserProfile:
    login: str
    id: int | None = None
    avatar_url: str | None = None
    html_url: str | None = None
    name: str | None = None


@dataclass
class RepoWithCommits:
    """A repository plus the commits fetched for it during aggregation."""

    repo: RepositorySummary
    commits: list[Commit] = field(default_factory=list)
    last_commit_date: datetime | None = None

    @property
    def name(self) -> str:
        return self.repo.name


# ── parsing ───────────────────────────────────────────────────────────────


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 datetime string as aware UTC, returning None on failure."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError, TypeError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_commit(item: dict[str, Any]) -> Commit:
    commit = item.get("commit") or {}
    author_info = commit.get("author") or {}
    author_login = None
    if item.get("author"):
        author_login = item["author"].get("login")
    return Commit(
        sha=item["sha"],
        message=commit.get("message") or "",
        author_name=author_info.get("name"),
        authored_at=parse_datetime(author_info.get("date")),
        html_url=item.get("html_url"),
        author_login=author_login,
    )


def parse_repository(item: dict[str, Any]) -> RepositorySummary:
    owner = (item.get("owner") or {}).get("login", "")
    name = item["name"]
    return RepositorySummary(
        name=name,
        owner=owner,
        full_name=item.get("full_name") or f"{owner}/{name}",
        updated_at=parse_datetime(item.get("updated_at")),
        description=item.get("description"),
        html_url=item.get("html_url"),
        language=item.get("language"),
        stargazers_count=item.get("stargazers_count") or 0,
    )


def parse_user(item: dict[str, Any]) -> UserProfile:
    return UserProfile(
        login=item["login"],
        id=item.get("id"),
        avatar_url=item.get("avatar_url"),
        html_url=item.get("html_url"),
        name=item.get("name"),
    )
