"""
Pydantic schemas for membership notifications and the expiration batch.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from app.models.notification import (
    MembershipNotificationType,
    NotificationChannel,
    NotificationStatus,
)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------

class MembershipNotificationResponse(BaseModel):
    """Single queued/sent notification."""
    id: uuid.UUID
    org_id: uuid.UUID
    member_id: uuid.UUID
    notification_type: MembershipNotificationType
    channel: NotificationChannel
    status: NotificationStatus
    recipient_email: str | None
    recipient_phone: str | None
    membership_end_date: date | None
    scheduled_at: datetime
    sent_at: datetime | None
    error_message: str | None
    retry_count: int
    external_message_id: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class MembershipNotificationListResponse(BaseModel):
    """Response for GET /notifications/membership."""
    data: list[MembershipNotificationResponse]
    total: int


class MembershipNotificationStats(BaseModel):
    """Counts over the last 30 days."""
    total: int
    sent: int
    failed: int
    queued: int
    skipped: int
    by_channel: dict[str, int]
    by_type: dict[str, int]


# ---------------------------------------------------------------------------
# Batch result
# ---------------------------------------------------------------------------

class ExpirationBatchResult(BaseModel):
    """Outcome of one run of the membership expiration batch."""
    expired_count: int = 0
    notifications_queued: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0
    errors: list[str] = Field(default_factory=list)

    def to_payload(self) -> dict:
        """Dict for the cron response; ``errors`` only when there are any."""
        return self.model_dump(exclude={"errors"} if not self.errors else None)
