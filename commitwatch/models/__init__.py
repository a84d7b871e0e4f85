"""SQLAlchemy ORM models: one file per table."""

from commitwatch.models.commit_notification import CommitNotification
from commitwatch.models.subscription import Subscription

__all__ = [
    "CommitNotification",
    "Subscription",
]
