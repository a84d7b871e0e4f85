"""GitHub aggregation router: ranked repositories with recent commits."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header

from commitwatch.api.deps import get_github_client
from commitwatch.api.schemas.github import (
    AggregationResponse,
    CommitItem,
    RepositoryItem,
    RepositoryWithCommits,
    UserItem,
)
from commitwatch.engines.aggregator import aggregate
from commitwatch.engines.github.client import GitHubClient

router = APIRouter()


@router.get("/users/{username}/repositories", response_model=AggregationResponse)
async def user_repositories(
    username: str,
    x_github_token: str | None = Header(None),
    client: GitHubClient = Depends(get_github_client),
) -> AggregationResponse:
    result = await aggregate(client, username, token=x_github_token)
    return AggregationResponse(
        user=UserItem.model_validate(result.user),
        repos=result.ordered_repo_names,
        repos_with_commits=[
            RepositoryWithCommits(
                repo=RepositoryItem.model_validate(detail.repo),
                last_commit_date=detail.last_commit_date,
                commits=[CommitItem.model_validate(c) for c in detail.commits],
            )
            for detail in result.repo_details
        ],
        commits=[CommitItem.model_validate(c) for c in result.default_repo_commits],
    )
