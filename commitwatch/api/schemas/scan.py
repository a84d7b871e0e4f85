"""Scan trigger response schema."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ScanSummary(BaseModel):
    subscriptions: int
    groups: int
    groups_failed: int
    repos_failed: int
    new_commits: int
    notified: int
    subscriptions_failed: int
    errors: list[str] = Field(default_factory=list)


class ScanTriggerResponse(BaseModel):
    success: bool
    message: str
    timestamp: datetime
    summary: ScanSummary
