"""
ORM model for the membership_notifications queue table.
"""

from __future__ import annotations

import enum
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin


class MembershipNotificationType(str, enum.Enum):
    expires_in_3_days = "expires_in_3_days"
    expires_in_1_day = "expires_in_1_day"
    expires_today = "expires_today"
    expired = "expired"


class NotificationChannel(str, enum.Enum):
    email = "email"
    whatsapp = "whatsapp"
    push = "push"


class NotificationStatus(str, enum.Enum):
    queued = "queued"
    sent = "sent"
    failed = "failed"
    skipped = "skipped"


class MembershipNotification(Base, UUIDMixin, TimestampMixin):
    """One queued membership reminder for one channel."""

    __tablename__ = "membership_notifications"

    org_id: Mapped[UUID] = mapped_column(
        ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    member_id: Mapped[UUID] = mapped_column(
        ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    notification_type: Mapped[MembershipNotificationType] = mapped_column(
        Enum(MembershipNotificationType, name="membership_notification_type", create_type=False),
        nullable=False,
    )
    channel: Mapped[NotificationChannel] = mapped_column(
        Enum(NotificationChannel, name="notification_channel", create_type=False),
        nullable=False,
    )
    status: Mapped[NotificationStatus] = mapped_column(
        Enum(NotificationStatus, name="notification_status", create_type=False),
        nullable=False,
        default=NotificationStatus.queued,
        index=True,
    )

    # {org}:{member}:{type}:{date}:{channel}
    idempotency_key: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    recipient_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    recipient_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    membership_end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    scheduled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    external_message_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<MembershipNotification id={self.id} type={self.notification_type} "
            f"channel={self.channel} status={self.status}>"
        )
