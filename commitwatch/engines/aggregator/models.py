"""Data models for the repository aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from commitwatch.engines.github.models import Commit, RepoWithCommits, UserProfile

AggregateErrorKind = Literal["not_found", "rate_limited", "unauthorized", "failed"]


class AggregateError(Exception):
    """Aggregation failed; ``str(exc)`` is a user-facing message."""

    def __init__(
        self, kind: AggregateErrorKind, message: str, *, retry_after: int | None = None
    ) -> None:
        self.kind = kind
        self.retry_after = retry_after
        super().__init__(message)


@dataclass
class Aggregation:
    """A user's repositories ranked by most recent commit activity."""

    user: UserProfile
    ordered_repo_names: list[str] = field(default_factory=list)
    repo_details: list[RepoWithCommits] = field(default_factory=list)
    # commits of repo_details[0], already fetched
    default_repo_commits: list[Commit] = field(default_factory=list)
