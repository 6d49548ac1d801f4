"""create_membership_notifications_table

Revision ID: 7c8d9eafb0c6
Revises: 6b7c8d9eafb5
Create Date: 2026-03-05 08:00:00.000000
"""
from __future__ import annotations

from alembic import op

revision = "7c8d9eafb0c6"
down_revision = "6b7c8d9eafb5"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute(
        "CREATE TYPE membership_notification_type AS ENUM "
        "('expires_in_3_days', 'expires_in_1_day', 'expires_today', 'expired')"
    )
    op.execute("CREATE TYPE notification_channel AS ENUM ('email', 'whatsapp', 'push')")
    op.execute("CREATE TYPE notification_status AS ENUM ('queued', 'sent', 'failed', 'skipped')")

    op.execute("""
        CREATE TABLE membership_notifications (
            id                   UUID         PRIMARY KEY DEFAULT gen_random_uuid(),
            org_id               UUID         NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            member_id            UUID         NOT NULL REFERENCES members(id) ON DELETE CASCADE,
            notification_type    membership_notification_type NOT NULL,
            channel              notification_channel NOT NULL,
            status               notification_status NOT NULL DEFAULT 'queued',
            idempotency_key      VARCHAR(255) NOT NULL UNIQUE,
            recipient_email      VARCHAR(255),
            recipient_phone      VARCHAR(50),
            membership_end_date  DATE,
            scheduled_at         TIMESTAMPTZ  NOT NULL DEFAULT now(),
            sent_at              TIMESTAMPTZ,
            error_message        TEXT,
            retry_count          INTEGER      NOT NULL DEFAULT 0,
            external_message_id  VARCHAR(255),
            created_at           TIMESTAMPTZ  NOT NULL DEFAULT now(),
            updated_at           TIMESTAMPTZ  NOT NULL DEFAULT now()
        )
    """)

    op.execute("CREATE INDEX ix_membership_notifications_org_id ON membership_notifications(org_id)")
    op.execute("CREATE INDEX ix_membership_notifications_member_id ON membership_notifications(member_id)")
    op.execute(
        "CREATE INDEX ix_membership_notifications_status_created "
        "ON membership_notifications(status, created_at)"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS membership_notifications")
    op.execute("DROP TYPE IF EXISTS notification_status")
    op.execute("DROP TYPE IF EXISTS notification_channel")
    op.execute("DROP TYPE IF EXISTS membership_notification_type")
