"""Data models for the commit scanner."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class ScanResult:
    """Summary of one scan pass."""

    started_at: datetime
    subscriptions: int = 0
    groups: int = 0
    groups_failed: int = 0
    repos_failed: int = 0
    new_commits: int = 0
    notified: int = 0
    subscriptions_failed: int = 0
    errors: list[str] = field(default_factory=list)
