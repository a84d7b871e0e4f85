"""CommitNotificationDAO: notification ledger operations."""

import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commitwatch.dao.base import BaseDAO
from commitwatch.models.commit_notification import CommitNotification


class CommitNotificationDAO(BaseDAO[CommitNotification]):
    model = CommitNotification

    async def find(
        self, session: AsyncSession, subscription_id: uuid.UUID, commit_sha: str
    ) -> CommitNotification | None:
        """Look up the ledger entry for (subscription, sha)."""
        return await self.first_where(
            session, subscription_id=subscription_id, commit_sha=commit_sha
        )

    async def list_by_subscription(
        self, session: AsyncSession, subscription_id: uuid.UUID
    ) -> list[CommitNotification]:
        stmt = (
            select(CommitNotification)
            .where(CommitNotification.subscription_id == subscription_id)
            .order_by(CommitNotification.created_at, CommitNotification.id)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def insert_if_absent(
        self,
        session: AsyncSession,
        *,
        subscription_id: uuid.UUID,
        commit_sha: str,
        commit_message: str,
        repo_name: str,
        author: str,
        commit_date: datetime | None,
    ) -> bool:
        """Atomic insert; ON CONFLICT (subscription_id, commit_sha) DO NOTHING.

        Returns True if a row was inserted, False if the pair was already
        recorded (possibly by an overlapping scan).
        """
        stmt = (
            self._insert(session)
            .values(
                subscription_id=subscription_id,
                commit_sha=commit_sha,
                commit_message=commit_message,
                repo_name=repo_name,
                author=author,
                commit_date=commit_date,
            )
            .on_conflict_do_nothing(index_elements=["subscription_id", "commit_sha"])
            .returning(CommitNotification.id)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None
