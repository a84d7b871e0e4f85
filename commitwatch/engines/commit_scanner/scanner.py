"""CommitScanner: one pass over every active subscription."""

from __future__ import annotations

import os
from collections.abc import Iterable
from datetime import datetime, timezone

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commitwatch.core.database import ensure_utc
from commitwatch.core.fanout import gather_settled
from commitwatch.engines.commit_scanner.models import ScanResult
from commitwatch.engines.github.client import GitHubClient
from commitwatch.engines.github.errors import UpstreamError
from commitwatch.engines.github.models import Commit, RepositorySummary
from commitwatch.engines.notification.deduplicator import NotificationDeduplicator
from commitwatch.models.subscription import Subscription
from commitwatch.services.subscription_service import SubscriptionService

log = structlog.get_logger("commitwatch.engine")

COMMITS_PER_REPO = 50
_DEFAULT_CONCURRENCY = 5


def group_by_username(
    subscriptions: Iterable[Subscription],
) -> dict[str, list[Subscription]]:
    """Group subscriptions by watched username, preserving first-seen order."""
    groups: dict[str, list[Subscription]] = {}
    for sub in subscriptions:
        groups.setdefault(sub.username, []).append(sub)
    return groups


def select_new_commits(commits: Iterable[Commit], last_checked: datetime | None) -> list[Commit]:
    """Commits authored strictly after *last_checked*.

    With no watermark every commit is new. Undated commits are only new
    when there is no watermark.
    """
    if last_checked is None:
        return list(commits)
    last_checked = ensure_utc(last_checked)
    return [c for c in commits if c.authored_at is not None and c.authored_at > last_checked]


class CommitScanner:
    """Detect unseen commits for all active subscriptions and hand them to the deduplicator."""

    def __init__(
        self,
        subscription_service: SubscriptionService,
        deduplicator: NotificationDeduplicator,
        *,
        max_concurrency: int | None = None,
    ) -> None:
        self._subscription_service = subscription_service
        self._deduplicator = deduplicator
        if max_concurrency is None:
            max_concurrency = int(
                os.environ.get("COMMITWATCH_SCAN_CONCURRENCY", _DEFAULT_CONCURRENCY)
            )
        self._max_concurrency = max(max_concurrency, 1)

    async def scan(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        client: GitHubClient,
    ) -> ScanResult:
        """Run one scan pass. Failures are contained per group, repository and subscription."""
        result = ScanResult(started_at=datetime.now(timezone.utc))

        async with session_factory() as session:
            async with session.begin():
                subscriptions = await self._subscription_service.list_active(session)

        if not subscriptions:
            log.debug("scanner.no_active_subscriptions")
            return result

        groups = group_by_username(subscriptions)
        result.subscriptions = len(subscriptions)
        result.groups = len(groups)

        for username, group in groups.items():
            log.info("scanner.group_started", username=username, subscriptions=len(group))
            try:
                repos = await client.list_repos(username)
            except UpstreamError as exc:
                # stale last_checked on purpose: the group is retried next pass
                log.error(
                    "scanner.group_failed",
                    username=username,
                    error=str(exc),
                    retry_after=getattr(exc, "retry_after", None),
                )
                result.groups_failed += 1
                result.errors.append(f"{username}: {exc}")
                continue

            commits_by_repo = await self._fetch_commits(client, username, repos, result)

            for subscription in group:
                try:
                    await self._scan_subscription(
                        session_factory, subscription, commits_by_repo, result
                    )
                except Exception as exc:
                    log.error(
                        "scanner.subscription_failed",
                        subscription_id=str(subscription.id),
                        username=username,
                        exc_info=True,
                    )
                    result.subscriptions_failed += 1
                    result.errors.append(f"{subscription.id}: {exc}")

        log.info(
            "scanner.completed",
            subscriptions=result.subscriptions,
            groups=result.groups,
            groups_failed=result.groups_failed,
            repos_failed=result.repos_failed,
            notified=result.notified,
            errors=len(result.errors),
        )
        return result

    async def _fetch_commits(
        self,
        client: GitHubClient,
        username: str,
        repos: list[RepositorySummary],
        result: ScanResult,
    ) -> list[tuple[str, list[Commit]]]:
        """Fetch recent commits for every repo in parallel; failed repos are dropped."""
        outcomes = await gather_settled(
            (client.list_commits(username, repo.name, COMMITS_PER_REPO) for repo in repos),
            limit=self._max_concurrency,
        )
        commits_by_repo: list[tuple[str, list[Commit]]] = []
        for repo, outcome in zip(repos, outcomes, strict=True):
            if not outcome.ok:
                log.warning(
                    "scanner.repo_failed",
                    repo=f"{username}/{repo.name}",
                    error=str(outcome.error),
                )
                result.repos_failed += 1
                result.errors.append(f"{username}/{repo.name}: {outcome.error}")
                continue
            commits_by_repo.append((repo.name, outcome.value))
        return commits_by_repo

    async def _scan_subscription(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        subscription: Subscription,
        commits_by_repo: list[tuple[str, list[Commit]]],
        result: ScanResult,
    ) -> None:
        last_checked = ensure_utc(subscription.last_checked)
        if last_checked is None:
            # TODO: decide whether a first scan should seed a baseline instead
            # of notifying the fetched backlog
            log.info("scanner.first_scan", subscription_id=str(subscription.id))

        for repo_name, commits in commits_by_repo:
            for commit in select_new_commits(commits, last_checked):
                result.new_commits += 1
                if await self._deduplicator.notify_if_new(
                    session_factory, subscription.id, commit, repo_name
                ):
                    result.notified += 1

        # advances even if some repositories failed this pass
        async with session_factory() as session:
            async with session.begin():
                await self._subscription_service.update_last_checked(
                    session, subscription.id, datetime.now(timezone.utc)
                )
