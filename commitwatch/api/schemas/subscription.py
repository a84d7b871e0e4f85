"""Subscription request/response schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class SubscriptionCreate(BaseModel):
    email: str = Field(min_length=3, max_length=320)
    username: str = Field(min_length=1, max_length=39)
    frequency: Literal["daily", "weekly", "realtime"] = "daily"


class SubscriptionItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    username: str
    frequency: str
    is_active: bool
    last_checked: datetime | None
    created_at: datetime


class CommitNotificationItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    commit_sha: str
    commit_message: str
    repo_name: str
    author: str
    commit_date: datetime | None
    created_at: datetime
