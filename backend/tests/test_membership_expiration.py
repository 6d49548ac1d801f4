"""
Membership expiration batch: reminder selection, expiry, idempotent
queueing, dispatch with WhatsApp template fallback, and the notification
log endpoints.
"""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from uuid import UUID, uuid4

import pytest
from sqlalchemy import select

from app.core.clock import today_in
from app.core.config import settings
from app.models.member import Member, MembershipStatus
from app.models.notification import (
    MembershipNotification,
    MembershipNotificationType,
    NotificationChannel,
    NotificationStatus,
)
from app.models.organization import Organization
from app.services.membership_notification_service import MembershipNotificationService
from app.services.messaging import SendResult
from app.workers.membership_tasks import run_membership_expiration
from conftest import unique_email, unique_slug

TODAY = date(2030, 3, 10)


@dataclass
class FakeSender:
    """Records outgoing messages; behaviour is switched per test."""

    email_error: Exception | None = None
    template_result: SendResult = field(default_factory=lambda: SendResult(True, message_id="wa-template"))
    emails: list[tuple[str, str]] = field(default_factory=list)
    templates: list[tuple[str, str, list[str]]] = field(default_factory=list)
    texts: list[tuple[str, str]] = field(default_factory=list)

    async def send_email(self, to: str, subject: str, html: str, text: str) -> SendResult:
        if self.email_error is not None:
            raise self.email_error
        self.emails.append((to, subject))
        return SendResult(True, message_id=f"email-{len(self.emails)}")

    async def send_whatsapp_template(self, to: str, template_name: str, variables: list[str]) -> SendResult:
        self.templates.append((to, template_name, variables))
        return self.template_result

    async def send_whatsapp_text(self, to: str, body: str) -> SendResult:
        self.texts.append((to, body))
        return SendResult(True, message_id="wa-text")


async def _gym(db) -> Organization:
    org = Organization(name="Fit Box", slug=unique_slug("batch"), email="hola@fitbox.mx")
    db.add(org)
    await db.flush()
    return org


async def _member(db, org: Organization, end_offset: int | None, phone: str | None = None, **extra) -> Member:
    member = Member(
        org_id=org.id,
        email=unique_email("m"),
        full_name="Ana Torres",
        phone=phone,
        membership_end_date=None if end_offset is None else TODAY + timedelta(days=end_offset),
        **extra,
    )
    db.add(member)
    await db.flush()
    return member


async def _notifications(db) -> list[MembershipNotification]:
    return list((await db.execute(select(MembershipNotification))).scalars().all())


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_batch_selects_reminders_and_expires_lapsed(db):
    org = await _gym(db)
    in_three = await _member(db, org, 3, phone="55 1234 5678")
    await _member(db, org, 1)
    await _member(db, org, 0)
    yesterday = await _member(db, org, -1)
    long_gone = await _member(db, org, -20)
    await _member(db, org, 2)
    await _member(db, org, 30)
    await _member(db, org, None)
    await _member(db, org, 3, membership_status=MembershipStatus.cancelled)

    sender = FakeSender()
    result = await MembershipNotificationService(db, sender=sender).run_expiration_batch(today=TODAY)

    assert result.expired_count == 2
    assert result.notifications_queued == 5
    assert result.notifications_sent == 5
    assert result.notifications_failed == 0
    assert result.to_payload() == {
        "expired_count": 2,
        "notifications_queued": 5,
        "notifications_sent": 5,
        "notifications_failed": 0,
    }

    assert yesterday.membership_status == MembershipStatus.expired
    assert long_gone.membership_status == MembershipStatus.expired
    assert in_three.membership_status == MembershipStatus.active

    assert len(sender.emails) == 4
    assert sender.templates == [
        ("+525512345678", "notification_expire_memberships", ["Ana Torres", "Fit Box", "13/03/2030"])
    ]

    notifications = await _notifications(db)
    assert {n.status for n in notifications} == {NotificationStatus.sent}
    assert sorted(n.notification_type.value for n in notifications) == [
        "expired",
        "expires_in_1_day",
        "expires_in_3_days",
        "expires_in_3_days",
        "expires_today",
    ]
    assert all(n.sent_at is not None and n.external_message_id for n in notifications)


@pytest.mark.asyncio
async def test_rerunning_the_same_day_queues_nothing(db):
    org = await _gym(db)
    await _member(db, org, 3, phone="5512345678")
    await _member(db, org, -1)

    service = MembershipNotificationService(db, sender=FakeSender())
    first = await service.run_expiration_batch(today=TODAY)
    second = await service.run_expiration_batch(today=TODAY)

    assert first.notifications_queued == 3
    assert second.expired_count == 0
    assert second.notifications_queued == 0
    assert second.notifications_sent == 0
    assert len(await _notifications(db)) == 3


@pytest.mark.asyncio
async def test_next_day_sends_the_next_reminder(db):
    org = await _gym(db)
    await _member(db, org, 3)

    service = MembershipNotificationService(db, sender=FakeSender())
    await service.run_expiration_batch(today=TODAY)
    await service.run_expiration_batch(today=TODAY + timedelta(days=1))
    result = await service.run_expiration_batch(today=TODAY + timedelta(days=2))

    assert result.notifications_queued == 1
    kinds = sorted(n.notification_type.value for n in await _notifications(db))
    assert kinds == ["expires_in_1_day", "expires_in_3_days"]


@pytest.mark.asyncio
async def test_whatsapp_template_failure_falls_back_to_text(db):
    org = await _gym(db)
    await _member(db, org, 0, phone="5512345678")

    sender = FakeSender(template_result=SendResult(False, error="No WhatsApp template configured for x"))
    result = await MembershipNotificationService(db, sender=sender).run_expiration_batch(today=TODAY)

    assert result.notifications_sent == 2
    assert len(sender.texts) == 1
    to, body = sender.texts[0]
    assert to == "+525512345678"
    assert "Ana Torres" in body
    assert "Fit Box" in body


@pytest.mark.asyncio
async def test_other_whatsapp_errors_do_not_fall_back(db):
    org = await _gym(db)
    await _member(db, org, 1, phone="5512345678")

    sender = FakeSender(template_result=SendResult(False, error="Invalid 'To' phone number"))
    result = await MembershipNotificationService(db, sender=sender).run_expiration_batch(today=TODAY)

    assert result.notifications_failed == 1
    assert sender.texts == []
    assert result.errors == ["whatsapp failed: Invalid 'To' phone number"]


@pytest.mark.asyncio
async def test_crashing_sender_is_recorded_and_batch_continues(db):
    org = await _gym(db)
    await _member(db, org, 3, phone="5512345678")

    sender = FakeSender(email_error=RuntimeError("smtp down"))
    result = await MembershipNotificationService(db, sender=sender).run_expiration_batch(today=TODAY)

    assert result.notifications_failed == 1
    assert result.notifications_sent == 1
    assert "errors" in result.to_payload()

    failed = [n for n in await _notifications(db) if n.status == NotificationStatus.failed]
    assert len(failed) == 1
    assert failed[0].error_message == "smtp down"
    assert failed[0].retry_count == 1


async def _queued(
    db, org_id: UUID, member: Member, channel: NotificationChannel, created_at: datetime | None = None
) -> MembershipNotification:
    notification = MembershipNotification(
        org_id=org_id,
        member_id=member.id,
        notification_type=MembershipNotificationType.expires_today,
        channel=channel,
        status=NotificationStatus.queued,
        idempotency_key=f"{org_id}:{member.id}:{uuid4().hex}:{channel.value}",
        recipient_email=member.email,
        membership_end_date=TODAY,
    )
    if created_at is not None:
        notification.created_at = created_at
    db.add(notification)
    await db.flush()
    return notification


@pytest.mark.asyncio
async def test_push_notifications_are_skipped_and_not_counted(db):
    org = await _gym(db)
    member = await _member(db, org, None)
    push = await _queued(db, org.id, member, NotificationChannel.push)

    sender = FakeSender()
    result = await MembershipNotificationService(db, sender=sender).run_expiration_batch(today=TODAY)

    assert push.status == NotificationStatus.skipped
    assert push.sent_at is None
    assert result.notifications_sent == 0
    assert result.notifications_failed == 0
    assert sender.emails == []


@pytest.mark.asyncio
async def test_dispatch_is_capped_at_batch_size_oldest_first(db, monkeypatch):
    monkeypatch.setattr(settings, "NOTIFICATION_BATCH_SIZE", 2)
    org = await _gym(db)
    first_queued = datetime(2030, 3, 1, 8, tzinfo=UTC)
    newest = await _queued(
        db, org.id, await _member(db, org, None), NotificationChannel.email, first_queued + timedelta(hours=2)
    )
    oldest = await _queued(
        db, org.id, await _member(db, org, None), NotificationChannel.email, first_queued
    )
    middle = await _queued(
        db, org.id, await _member(db, org, None), NotificationChannel.email, first_queued + timedelta(hours=1)
    )

    sender = FakeSender()
    result = await MembershipNotificationService(db, sender=sender).run_expiration_batch(today=TODAY)

    assert result.notifications_sent == 2
    assert [to for to, _ in sender.emails] == [oldest.recipient_email, middle.recipient_email]
    assert oldest.status == NotificationStatus.sent
    assert middle.status == NotificationStatus.sent
    assert newest.status == NotificationStatus.queued


@pytest.mark.asyncio
async def test_notification_for_missing_org_fails(db):
    org = await _gym(db)
    member = await _member(db, org, None)
    orphan = await _queued(db, uuid4(), member, NotificationChannel.email)

    sender = FakeSender()
    result = await MembershipNotificationService(db, sender=sender).run_expiration_batch(today=TODAY)

    message = f"Org not found for notification {orphan.id}"
    assert orphan.status == NotificationStatus.failed
    assert orphan.error_message == message
    assert orphan.retry_count == 1
    assert result.notifications_failed == 1
    assert result.errors == [message]
    assert sender.emails == []


def test_expiration_task_retries_three_times():
    assert run_membership_expiration.max_retries == 3


# ---------------------------------------------------------------------------
# Notification log endpoints
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_notification_log_and_stats(client, api, gym, db):
    today = today_in("America/Mexico_City")
    await api.create_member(
        gym.admin_token,
        gym.slug,
        phone="5512345678",
        membership_end_date=(today + timedelta(days=3)).isoformat(),
    )

    sender = FakeSender(template_result=SendResult(False, error="Twilio HTTP 500"))
    await MembershipNotificationService(db, sender=sender).run_expiration_batch(today=today)
    await db.commit()

    resp = await client.get(gym.url("/notifications/membership"), headers=gym.headers)
    assert resp.status_code == 200
    assert resp.json()["total"] == 2

    resp = await client.get(gym.url("/notifications/membership"), params={"status": "failed"}, headers=gym.headers)
    data = resp.json()
    assert data["total"] == 1
    assert data["data"][0]["channel"] == "whatsapp"
    assert data["data"][0]["error_message"] == "Twilio HTTP 500"

    resp = await client.get(gym.url("/notifications/membership/stats"), headers=gym.headers)
    stats = resp.json()
    assert stats["total"] == 2
    assert stats["sent"] == 1
    assert stats["failed"] == 1
    assert stats["by_channel"] == {"email": 1, "whatsapp": 1}
    assert stats["by_type"] == {"expires_in_3_days": 2}
