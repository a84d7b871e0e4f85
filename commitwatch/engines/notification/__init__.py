"""Notification engine: ledger dedup, email rendering and SMTP delivery."""

from commitwatch.engines.notification.deduplicator import NotificationDeduplicator
from commitwatch.engines.notification.mailer import DeliveryResult, Mailer
from commitwatch.engines.notification.template import render_commit_notification

__all__ = [
    "DeliveryResult",
    "Mailer",
    "NotificationDeduplicator",
    "render_commit_notification",
]
