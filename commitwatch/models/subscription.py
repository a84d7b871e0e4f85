"""subscriptions table."""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, Index, Text, UniqueConstraint, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from commitwatch.core.database import Base, TimestampMixin

FREQUENCIES = ("daily", "weekly", "realtime")

notification_frequency_enum = Enum(
    *FREQUENCIES,
    name="notification_frequency",
    native_enum=False,
    length=16,
)


class Subscription(TimestampMixin, Base):
    __tablename__ = "subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    frequency: Mapped[str] = mapped_column(
        notification_frequency_enum, nullable=False, default="daily"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )
    # NULL = never scanned; every fetched commit counts as new
    last_checked: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        UniqueConstraint("email", "username", name="uq_subscriptions_email_username"),
        Index("idx_subscriptions_active_username", "is_active", "username"),
    )
