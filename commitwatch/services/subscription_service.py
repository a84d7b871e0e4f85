"""SubscriptionService: subscribe / unsubscribe and the scan watermark."""

from __future__ import annotations

import re
import uuid
from datetime import datetime

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from commitwatch.dao.subscription_dao import SubscriptionConflictError, SubscriptionDAO
from commitwatch.engines.github.models import is_valid_login
from commitwatch.models.subscription import FREQUENCIES, Subscription
from commitwatch.services import (
    AlreadySubscribedError,
    NotFoundError,
    StoreError,
    ValidationError,
)

log = structlog.get_logger("commitwatch.service")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class SubscriptionService:
    """Stateless service for subscription CRUD."""

    def __init__(self, subscription_dao: SubscriptionDAO) -> None:
        self._dao = subscription_dao

    async def create(
        self,
        session: AsyncSession,
        *,
        email: str,
        username: str,
        frequency: str = "daily",
    ) -> Subscription:
        """Register interest in *username*'s commits.

        Raises :class:`AlreadySubscribedError` for a duplicate
        (email, username) pair and :class:`ValidationError` for bad input.
        """
        email = email.strip()
        username = username.strip()
        if not _EMAIL_RE.match(email):
            raise ValidationError(f"invalid email address: {email!r}")
        if not is_valid_login(username):
            raise ValidationError(f"invalid GitHub username: {username!r}")
        if frequency not in FREQUENCIES:
            raise ValidationError(f"frequency must be one of {', '.join(FREQUENCIES)}")

        try:
            subscription = await self._dao.create_unique(
                session, email=email, username=username, frequency=frequency
            )
        except SubscriptionConflictError as exc:
            raise AlreadySubscribedError("You're already subscribed to this user") from exc
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to create subscription: {exc}") from exc

        log.info("subscription.created", subscription_id=str(subscription.id), username=username)
        return subscription

    async def list(self, session: AsyncSession, email: str | None = None) -> list[Subscription]:
        """Return subscriptions newest first, optionally for one subscriber."""
        return await self._dao.list_by_email(session, email.strip() if email else None)

    async def get(self, session: AsyncSession, subscription_id: uuid.UUID) -> Subscription:
        """Raises :class:`NotFoundError` if the subscription does not exist."""
        subscription = await self._dao.get_by_id(session, subscription_id)
        if subscription is None:
            raise NotFoundError("subscription not found")
        return subscription

    async def get_by_id(
        self, session: AsyncSession, subscription_id: uuid.UUID
    ) -> Subscription | None:
        """Return raw Subscription model or None."""
        return await self._dao.get_by_id(session, subscription_id)

    async def delete(self, session: AsyncSession, subscription_id: uuid.UUID) -> None:
        """Raises :class:`NotFoundError` if the subscription does not exist."""
        if not await self._dao.delete(session, subscription_id):
            raise NotFoundError("subscription not found")
        log.info("subscription.deleted", subscription_id=str(subscription_id))

    async def list_active(self, session: AsyncSession) -> list[Subscription]:
        return await self._dao.list_active(session)

    async def update_last_checked(
        self, session: AsyncSession, subscription_id: uuid.UUID, checked_at: datetime
    ) -> bool:
        return await self._dao.update_last_checked(session, subscription_id, checked_at)
