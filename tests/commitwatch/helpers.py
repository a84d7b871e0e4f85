"""Builders for transient GitHub types used across tests."""

from __future__ import annotations

from datetime import datetime, timezone

from commitwatch.engines.github.models import Commit, RepositorySummary


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_commit(
    sha: str,
    authored_at: datetime | None = None,
    message: str | None = None,
    author: str | None = "Octo Cat",
) -> Commit:
    return Commit(
        sha=sha,
        message=message if message is not None else f"commit {sha}",
        author_name=author,
        authored_at=authored_at,
    )


def make_repo(
    name: str,
    owner: str = "octocat",
    updated_at: datetime | None = None,
) -> RepositorySummary:
    return RepositorySummary(
        name=name,
        owner=owner,
        full_name=f"{owner}/{name}",
        updated_at=updated_at,
    )
