"""Repository aggregator: one user, all repos, latest commits, ranked."""

from __future__ import annotations

import structlog

from commitwatch.core.fanout import gather_settled
from commitwatch.engines.aggregator.models import AggregateError, Aggregation
from commitwatch.engines.github.client import GitHubClient
from commitwatch.engines.github.errors import (
    UpstreamError,
    UpstreamNotFound,
    UpstreamRateLimited,
    UpstreamUnauthorized,
)
from commitwatch.engines.github.models import RepoWithCommits, is_valid_login

log = structlog.get_logger("commitwatch.engine")

REPO_LIMIT = 100
COMMITS_PER_REPO = 10


async def aggregate(
    client: GitHubClient,
    username: str,
    *,
    token: str | None = None,
) -> Aggregation:
    """Fetch *username*'s repositories and their recent commits, newest activity first.

    Issues one profile call, one repository-listing call and one commit call
    per repository (all in parallel). A failed commit fetch keeps the
    repository with no commits. Raises :class:`AggregateError` when the
    profile or listing call fails.
    """
    if not username or not username.strip():
        raise AggregateError("not_found", "username is required")
    username = username.strip()
    if not is_valid_login(username):
        raise AggregateError("not_found", f"invalid GitHub username: {username!r}")

    try:
        user = await client.get_user(username, token=token)
        repos = await client.list_repos(username, REPO_LIMIT, token=token)
    except UpstreamError as exc:
        raise _to_aggregate_error(exc, username) from exc

    if not repos:
        return Aggregation(user=user)

    outcomes = await gather_settled(
        client.list_commits(username, repo.name, COMMITS_PER_REPO, token=token) for repo in repos
    )

    details: list[RepoWithCommits] = []
    for repo, outcome in zip(repos, outcomes, strict=True):
        commits = outcome.value if outcome.ok else []
        if not outcome.ok:
            log.warning(
                "aggregator.commits_failed",
                repo=f"{username}/{repo.name}",
                error=str(outcome.error),
            )
        last_commit_date = repo.updated_at
        if commits and commits[0].authored_at is not None:
            last_commit_date = commits[0].authored_at
        details.append(
            RepoWithCommits(repo=repo, commits=commits, last_commit_date=last_commit_date)
        )

    ranked = rank_repositories(details)
    return Aggregation(
        user=user,
        ordered_repo_names=[d.name for d in ranked],
        repo_details=ranked,
        default_repo_commits=list(ranked[0].commits),
    )


def rank_repositories(details: list[RepoWithCommits]) -> list[RepoWithCommits]:
    """Sort by ``last_commit_date`` descending, undated last, ties in input order."""
    # sorted() is stable under reverse=True, so equal dates keep fetch order
    dated = sorted(
        (d for d in details if d.last_commit_date is not None),
        key=lambda d: d.last_commit_date,
        reverse=True,
    )
    undated = [d for d in details if d.last_commit_date is None]
    return dated + undated


def _to_aggregate_error(exc: UpstreamError, username: str) -> AggregateError:
    log.info("aggregator.failed", username=username, error=type(exc).__name__)
    if isinstance(exc, UpstreamNotFound):
        return AggregateError("not_found", "user not found")
    if isinstance(exc, UpstreamRateLimited):
        return AggregateError(
            "rate_limited",
            f"rate limit exceeded, try again in {exc.retry_after}s",
            retry_after=exc.retry_after,
        )
    if isinstance(exc, UpstreamUnauthorized):
        return AggregateError("unauthorized", "authentication failed, check your token")
    return AggregateError("failed", "failed to fetch repositories")
