"""Subscriptions router."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from commitwatch.api.deps import get_notification_service, get_session, get_subscription_service
from commitwatch.api.schemas.subscription import (
    CommitNotificationItem,
    SubscriptionCreate,
    SubscriptionItem,
)
from commitwatch.services.commit_notification_service import CommitNotificationService
from commitwatch.services.subscription_service import SubscriptionService

router = APIRouter()


@router.post("/", response_model=SubscriptionItem, status_code=status.HTTP_201_CREATED)
async def create_subscription(
    body: SubscriptionCreate,
    session: AsyncSession = Depends(get_session),
    svc: SubscriptionService = Depends(get_subscription_service),
) -> SubscriptionItem:
    subscription = await svc.create(
        session, email=body.email, username=body.username, frequency=body.frequency
    )
    return SubscriptionItem.model_validate(subscription)


@router.get("/", response_model=list[SubscriptionItem])
async def list_subscriptions(
    email: str | None = Query(None),
    session: AsyncSession = Depends(get_session),
    svc: SubscriptionService = Depends(get_subscription_service),
) -> list[SubscriptionItem]:
    subscriptions = await svc.list(session, email=email)
    return [SubscriptionItem.model_validate(s) for s in subscriptions]


@router.get("/{subscription_id}", response_model=SubscriptionItem)
async def get_subscription(
    subscription_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    svc: SubscriptionService = Depends(get_subscription_service),
) -> SubscriptionItem:
    return SubscriptionItem.model_validate(await svc.get(session, subscription_id))


@router.delete("/{subscription_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subscription(
    subscription_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    svc: SubscriptionService = Depends(get_subscription_service),
) -> Response:
    await svc.delete(session, subscription_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{subscription_id}/notifications", response_model=list[CommitNotificationItem])
async def list_notifications(
    subscription_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    svc: SubscriptionService = Depends(get_subscription_service),
    ledger: CommitNotificationService = Depends(get_notification_service),
) -> list[CommitNotificationItem]:
    await svc.get(session, subscription_id)
    rows = await ledger.list_for_subscription(session, subscription_id)
    return [CommitNotificationItem.model_validate(r) for r in rows]
