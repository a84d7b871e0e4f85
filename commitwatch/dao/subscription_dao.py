"""SubscriptionDAO: subscriptions table operations."""

import uuid
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from commitwatch.dao.base import BaseDAO
from commitwatch.models.subscription import Subscription


class SubscriptionConflictError(ValueError):
    """Raised when an (email, username) subscription already exists."""


class SubscriptionDAO(BaseDAO[Subscription]):
    model = Subscription

    # ── read ──────────────────────────────────────────────────────────────

    async def list_active(self, session: AsyncSession) -> list[Subscription]:
        """Return every active subscription, grouped-friendly (username, created_at)."""
        stmt = (
            select(Subscription)
            .where(Subscription.is_active.is_(True))
            .order_by(Subscription.username, Subscription.created_at, Subscription.id)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_email(
        self, session: AsyncSession, email: str | None = None
    ) -> list[Subscription]:
        """Newest first, optionally filtered by subscriber email."""
        stmt = select(Subscription)
        if email is not None:
            stmt = stmt.where(Subscription.email == email)
        stmt = stmt.order_by(Subscription.created_at.desc(), Subscription.id)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    # ── write ─────────────────────────────────────────────────────────────

    async def create_unique(
        self,
        session: AsyncSession,
        *,
        email: str,
        username: str,
        frequency: str = "daily",
    ) -> Subscription:
        """Insert a subscription; ON CONFLICT (email, username) DO NOTHING.

        Raises :class:`SubscriptionConflictError` when the pair already exists.
        """
        stmt = (
            self._insert(session)
            .values(email=email, username=username, frequency=frequency)
            .on_conflict_do_nothing(index_elements=["email", "username"])
            .returning(Subscription)
        )
        result = await session.execute(stmt)
        row = result.scalars().first()
        if row is None:
            raise SubscriptionConflictError(
                f"subscription for {email!r} -> {username!r} already exists"
            )
        return row

    async def update_last_checked(
        self, session: AsyncSession, pk: uuid.UUID, checked_at: datetime
    ) -> bool:
        """Set the scan watermark. Returns False if the row is gone."""
        self._require_pk(pk)
        stmt = (
            update(Subscription)
            .where(Subscription.id == pk)
            .values(last_checked=checked_at)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0
