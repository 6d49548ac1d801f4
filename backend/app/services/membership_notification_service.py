"""
Membership expiration batch and notification queue.

One batch run:
1. collects members whose membership ends in 3 days, 1 day, today, or
   ended yesterday (before anything is expired, so the ``expired`` notice
   still goes out);
2. expires every active membership whose end date has passed;
3. queues one notification per channel, de-duplicated by idempotency key;
4. dispatches up to NOTIFICATION_BATCH_SIZE queued notifications.

A single failing notification is recorded and never aborts the batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from uuid import UUID

import redis.asyncio as aioredis
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import format_dmy, local_date, utcnow
from app.core.config import settings
from app.models.member import Member, MembershipStatus
from app.models.notification import (
    MembershipNotification,
    MembershipNotificationType,
    NotificationChannel,
    NotificationStatus,
)
from app.models.organization import Organization
from app.schemas.notification import (
    ExpirationBatchResult,
    MembershipNotificationListResponse,
    MembershipNotificationResponse,
    MembershipNotificationStats,
)
from app.services import messaging
from app.services.messaging import DefaultMessageSender, MessageSender, SendResult

logger = logging.getLogger(__name__)

DAYS_TO_TYPE: dict[int, MembershipNotificationType] = {
    3: MembershipNotificationType.expires_in_3_days,
    1: MembershipNotificationType.expires_in_1_day,
    0: MembershipNotificationType.expires_today,
    -1: MembershipNotificationType.expired,
}

STATS_WINDOW_DAYS = 30


@dataclass
class ExpirationCandidate:
    member: Member
    notification_type: MembershipNotificationType
    today: date


def idempotency_key(
    org_id: UUID,
    member_id: UUID,
    notification_type: MembershipNotificationType,
    today: date,
    channel: NotificationChannel,
) -> str:
    return f"{org_id}:{member_id}:{notification_type.value}:{today.isoformat()}:{channel.value}"


class MembershipNotificationService:
    def __init__(
        self,
        db: AsyncSession,
        redis: aioredis.Redis | None = None,
        sender: MessageSender | None = None,
    ) -> None:
        self.db = db
        self.redis = redis
        self.sender: MessageSender = sender or DefaultMessageSender()

    # -----------------------------------------------------------------------
    # Batch
    # -----------------------------------------------------------------------

    async def run_expiration_batch(self, today: date | None = None) -> ExpirationBatchResult:
        """
        Run the whole batch.

        ``today`` overrides the per-organization local date; by default each
        organization's own timezone decides what "today" is.
        """
        result = ExpirationBatchResult()

        candidates, expired = await self._scan(today)
        result.expired_count = expired
        result.notifications_queued = await self._queue(candidates)
        await self.db.flush()

        await self._dispatch(result)
        await self.db.flush()

        logger.info(
            "Membership batch: expired=%d queued=%d sent=%d failed=%d",
            result.expired_count,
            result.notifications_queued,
            result.notifications_sent,
            result.notifications_failed,
        )
        return result

    async def _scan(self, today: date | None) -> tuple[list[ExpirationCandidate], int]:
        """Collect reminder candidates, then expire lapsed memberships."""
        reference = today or utcnow().date() + timedelta(days=1)
        rows = await self.db.execute(
            select(Member, Organization.timezone)
            .join(Organization, Organization.id == Member.org_id)
            .where(
                Member.membership_status == MembershipStatus.active,
                Member.membership_end_date.is_not(None),
                Member.membership_end_date <= reference + timedelta(days=max(DAYS_TO_TYPE)),
            )
        )

        candidates: list[ExpirationCandidate] = []
        lapsed: list[Member] = []
        for member, tz_name in rows.all():
            local_today = today or local_date(utcnow(), tz_name)
            days_until = (member.membership_end_date - local_today).days
            notification_type = DAYS_TO_TYPE.get(days_until)
            if notification_type is not None:
                candidates.append(ExpirationCandidate(member, notification_type, local_today))
            if days_until < 0:
                lapsed.append(member)

        for member in lapsed:
            member.membership_status = MembershipStatus.expired

        return candidates, len(lapsed)

    async def _queue(self, candidates: list[ExpirationCandidate]) -> int:
        pending: list[MembershipNotification] = []
        for candidate in candidates:
            member = candidate.member
            channels: list[NotificationChannel] = []
            if member.email:
                channels.append(NotificationChannel.email)
            if member.phone:
                channels.append(NotificationChannel.whatsapp)

            for channel in channels:
                pending.append(
                    MembershipNotification(
                        org_id=member.org_id,
                        member_id=member.id,
                        notification_type=candidate.notification_type,
                        channel=channel,
                        status=NotificationStatus.queued,
                        idempotency_key=idempotency_key(
                            member.org_id, member.id, candidate.notification_type, candidate.today, channel
                        ),
                        recipient_email=member.email if channel is NotificationChannel.email else None,
                        recipient_phone=member.phone if channel is NotificationChannel.whatsapp else None,
                        membership_end_date=member.membership_end_date,
                        scheduled_at=utcnow(),
                        retry_count=0,
                    )
                )

        if not pending:
            return 0

        existing = await self.db.execute(
            select(MembershipNotification.idempotency_key).where(
                MembershipNotification.idempotency_key.in_([n.idempotency_key for n in pending])
            )
        )
        seen = set(existing.scalars().all())

        queued = 0
        for notification in pending:
            if notification.idempotency_key in seen:
                continue
            seen.add(notification.idempotency_key)
            self.db.add(notification)
            queued += 1
        return queued

    async def _dispatch(self, result: ExpirationBatchResult) -> None:
        rows = await self.db.execute(
            select(MembershipNotification)
            .where(MembershipNotification.status == NotificationStatus.queued)
            .order_by(MembershipNotification.created_at, MembershipNotification.scheduled_at)
            .limit(settings.NOTIFICATION_BATCH_SIZE)
        )
        notifications = rows.scalars().all()
        if not notifications:
            return

        orgs = {
            org.id: org
            for org in (
                await self.db.execute(
                    select(Organization).where(Organization.id.in_({n.org_id for n in notifications}))
                )
            ).scalars().all()
        }
        members = {
            member.id: member
            for member in (
                await self.db.execute(
                    select(Member).where(Member.id.in_({n.member_id for n in notifications}))
                )
            ).scalars().all()
        }

        for notification in notifications:
            org = orgs.get(notification.org_id)
            if org is None:
                self._mark_failed(notification, f"Org not found for notification {notification.id}")
                result.notifications_failed += 1
                result.errors.append(f"Org not found for notification {notification.id}")
                continue

            if notification.channel is NotificationChannel.push:
                notification.status = NotificationStatus.skipped
                continue

            member = members.get(notification.member_id)
            member_name = member.full_name if member and member.full_name else "Miembro"
            try:
                outcome = await self._send(notification, org, member_name)
            except Exception as exc:
                logger.exception("Notification %s crashed", notification.id)
                outcome = SendResult(False, error=str(exc))

            if outcome.success:
                notification.status = NotificationStatus.sent
                notification.sent_at = utcnow()
                notification.external_message_id = outcome.message_id
                notification.error_message = None
                result.notifications_sent += 1
            else:
                error = outcome.error or "Unknown error"
                self._mark_failed(notification, error)
                result.notifications_failed += 1
                result.errors.append(f"{notification.channel.value} failed: {error}")

    async def _send(
        self, notification: MembershipNotification, org: Organization, member_name: str
    ) -> SendResult:
        end_date = format_dmy(notification.membership_end_date)
        kind = notification.notification_type

        if notification.channel is NotificationChannel.email:
            if not notification.recipient_email:
                return SendResult(False, error="No recipient email")
            return await self.sender.send_email(
                notification.recipient_email,
                messaging.email_subject(kind, org.name),
                messaging.email_html(kind, member_name, org.name, end_date, org.email, org.phone),
                messaging.email_text(kind, member_name, org.name, end_date),
            )

        if not notification.recipient_phone:
            return SendResult(False, error="No recipient phone")
        phone = messaging.normalize_phone(notification.recipient_phone)
        outcome = await self.sender.send_whatsapp_template(
            phone,
            messaging.WHATSAPP_TEMPLATES[kind],
            messaging.whatsapp_variables(kind, member_name, org.name, end_date),
        )
        if not outcome.success and outcome.error and "template" in outcome.error.lower():
            logger.info("WhatsApp template failed for %s, sending plain text: %s", notification.id, outcome.error)
            outcome = await self.sender.send_whatsapp_text(
                phone, messaging.whatsapp_fallback_text(kind, member_name, org.name, end_date)
            )
        return outcome

    @staticmethod
    def _mark_failed(notification: MembershipNotification, error: str) -> None:
        notification.status = NotificationStatus.failed
        notification.error_message = error
        notification.retry_count = (notification.retry_count or 0) + 1

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    async def list_notifications(
        self,
        org_id: UUID,
        status_filter: NotificationStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> MembershipNotificationListResponse:
        stmt = select(MembershipNotification).where(MembershipNotification.org_id == org_id)
        if status_filter is not None:
            stmt = stmt.where(MembershipNotification.status == status_filter)

        total = (await self.db.execute(select(func.count()).select_from(stmt.subquery()))).scalar_one()
        rows = await self.db.execute(
            stmt.order_by(MembershipNotification.created_at.desc()).offset(offset).limit(limit)
        )
        data = [MembershipNotificationResponse.model_validate(n) for n in rows.scalars().all()]
        return MembershipNotificationListResponse(data=data, total=total)

    async def stats(self, org_id: UUID) -> MembershipNotificationStats:
        """Counts over the last 30 days."""
        since = utcnow() - timedelta(days=STATS_WINDOW_DAYS)
        rows = await self.db.execute(
            select(
                MembershipNotification.status,
                MembershipNotification.channel,
                MembershipNotification.notification_type,
            ).where(
                MembershipNotification.org_id == org_id,
                MembershipNotification.created_at >= since,
            )
        )

        by_status: dict[str, int] = {s.value: 0 for s in NotificationStatus}
        by_channel: dict[str, int] = {c.value: 0 for c in NotificationChannel if c is not NotificationChannel.push}
        by_type: dict[str, int] = {}
        total = 0
        for status_value, channel, notification_type in rows.all():
            total += 1
            by_status[status_value.value] += 1
            by_channel[channel.value] = by_channel.get(channel.value, 0) + 1
            by_type[notification_type.value] = by_type.get(notification_type.value, 0) + 1

        return MembershipNotificationStats(
            total=total,
            sent=by_status["sent"],
            failed=by_status["failed"],
            queued=by_status["queued"],
            skipped=by_status["skipped"],
            by_channel=by_channel,
            by_type=by_type,
        )
