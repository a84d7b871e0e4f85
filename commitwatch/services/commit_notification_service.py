"""CommitNotificationService: read/write access to the notification ledger."""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from commitwatch.dao.commit_notification_dao import CommitNotificationDAO
from commitwatch.engines.github.models import Commit
from commitwatch.models.commit_notification import CommitNotification


class CommitNotificationService:
    """Stateless service over the (subscription, sha) ledger."""

    def __init__(self, notification_dao: CommitNotificationDAO) -> None:
        self._dao = notification_dao

    async def find(
        self, session: AsyncSession, subscription_id: uuid.UUID, commit_sha: str
    ) -> CommitNotification | None:
        return await self._dao.find(session, subscription_id, commit_sha)

    async def record(
        self,
        session: AsyncSession,
        *,
        subscription_id: uuid.UUID,
        commit: Commit,
        repo_name: str,
    ) -> bool:
        """Record that *commit* was reported. False means it already was."""
        return await self._dao.insert_if_absent(
            session,
            subscription_id=subscription_id,
            commit_sha=commit.sha,
            commit_message=commit.message,
            repo_name=repo_name,
            author=commit.author_name or "Unknown",
            commit_date=commit.authored_at,
        )

    async def list_for_subscription(
        self, session: AsyncSession, subscription_id: uuid.UUID
    ) -> list[CommitNotification]:
        return await self._dao.list_by_subscription(session, subscription_id)
