"""NotificationDeduplicator: record each (subscription, commit) once, then email."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commitwatch.engines.github.models import Commit
from commitwatch.engines.notification.mailer import Mailer
from commitwatch.engines.notification.template import render_commit_notification
from commitwatch.services.commit_notification_service import CommitNotificationService
from commitwatch.services.subscription_service import SubscriptionService

log = structlog.get_logger("commitwatch.engine.notification")


class NotificationDeduplicator:
    """At-most-once recording, best-effort delivery.

    The ledger row is committed before the email is attempted, so a failed
    send is never retried by a later scan. The database's unique
    (subscription_id, commit_sha) constraint is what stops overlapping scans
    from double-sending.
    """

    def __init__(
        self,
        subscription_service: SubscriptionService,
        notification_service: CommitNotificationService,
        mailer: Mailer,
    ) -> None:
        self._subscription_service = subscription_service
        self._notification_service = notification_service
        self._mailer = mailer

    async def notify_if_new(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        subscription_id: uuid.UUID,
        commit: Commit,
        repo_name: str,
    ) -> bool:
        """Record and deliver *commit* unless it was already reported.

        Returns True if this call created the ledger entry.
        """
        async with session_factory() as session:
            async with session.begin():
                existing = await self._notification_service.find(
                    session, subscription_id, commit.sha
                )
                if existing is not None:
                    return False

                subscription = await self._subscription_service.get_by_id(
                    session, subscription_id
                )
                if subscription is None:
                    # deleted while the scan was running
                    return False

                created = await self._notification_service.record(
                    session,
                    subscription_id=subscription_id,
                    commit=commit,
                    repo_name=repo_name,
                )
                if not created:
                    return False

                to = subscription.email
                username = subscription.username

        subject, html_body = render_commit_notification(username, repo_name, commit)
        outcome = await self._mailer.send(to, subject, html_body)
        if outcome.success:
            log.info(
                "notification.sent",
                subscription_id=str(subscription_id),
                commit=commit.short_sha,
                repo=f"{username}/{repo_name}",
            )
        else:
            log.warning(
                "notification.delivery_failed",
                subscription_id=str(subscription_id),
                commit=commit.short_sha,
                repo=f"{username}/{repo_name}",
                error=outcome.error,
            )
        return True
