"""Dependency injection: session, runtime collaborators, and service singletons."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from commitwatch.core.database import DEFAULT_DATABASE_URL
from commitwatch.dao.commit_notification_dao import CommitNotificationDAO
from commitwatch.dao.subscription_dao import SubscriptionDAO
from commitwatch.engines.commit_scanner.scanner import CommitScanner
from commitwatch.engines.github.client import GitHubClient
from commitwatch.engines.notification.deduplicator import NotificationDeduplicator
from commitwatch.engines.notification.mailer import Mailer
from commitwatch.services.commit_notification_service import CommitNotificationService
from commitwatch.services.subscription_service import SubscriptionService

# ---------------------------------------------------------------------------
# DAO / service singletons (stateless)
# ---------------------------------------------------------------------------
_subscription_dao = SubscriptionDAO()
_notification_dao = CommitNotificationDAO()

_subscription_service = SubscriptionService(_subscription_dao)
_notification_service = CommitNotificationService(_notification_dao)


def build_scanner(mailer: Mailer | None = None) -> CommitScanner:
    """Wire the deduplicator and scanner around the shared services."""
    deduplicator = NotificationDeduplicator(
        _subscription_service, _notification_service, mailer or Mailer()
    )
    return CommitScanner(_subscription_service, deduplicator)


def database_url() -> str:
    return os.environ.get("COMMITWATCH_DATABASE_URL", DEFAULT_DATABASE_URL)


# ---------------------------------------------------------------------------
# Runtime collaborators live on app.state (set by the lifespan, or by tests)
# ---------------------------------------------------------------------------


def get_session_factory(request: Request) -> async_sessionmaker[AsyncSession]:
    factory = getattr(request.app.state, "session_factory", None)
    if factory is None:
        raise RuntimeError("session factory not initialised; is the app lifespan running?")
    return factory


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a per-request session with automatic commit/rollback."""
    factory = get_session_factory(request)
    async with factory() as session:
        async with session.begin():
            yield session


def get_github_client(request: Request) -> GitHubClient:
    return request.app.state.github_client


def get_scanner(request: Request) -> CommitScanner:
    return request.app.state.scanner


# ---------------------------------------------------------------------------
# Service getters (for Depends())
# ---------------------------------------------------------------------------


def get_subscription_service() -> SubscriptionService:
    return _subscription_service


def get_notification_service() -> CommitNotificationService:
    return _notification_service
