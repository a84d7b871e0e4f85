"""GitHub REST access: client, error taxonomy, transient data types."""

from commitwatch.engines.github.client import GitHubClient
from commitwatch.engines.github.errors import (
    UpstreamError,
    UpstreamFailure,
    UpstreamNotFound,
    UpstreamRateLimited,
    UpstreamUnauthorized,
)
from commitwatch.engines.github.models import (
    Commit,
    RepositorySummary,
    RepoWithCommits,
    UserProfile,
)

__all__ = [
    "Commit",
    "GitHubClient",
    "RepoWithCommits",
    "RepositorySummary",
    "UpstreamError",
    "UpstreamFailure",
    "UpstreamNotFound",
    "UpstreamRateLimited",
    "UpstreamUnauthorized",
    "UserProfile",
]
