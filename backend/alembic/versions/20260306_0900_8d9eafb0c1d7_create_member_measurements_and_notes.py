"""create_member_measurements_and_notes

Revision ID: 8d9eafb0c1d7
Revises: 7c8d9eafb0c6
Create Date: 2026-03-06 09:00:00.000000
"""
from __future__ import annotations

from alembic import op

revision = "8d9eafb0c1d7"
down_revision = "7c8d9eafb0c6"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE member_measurements (
            id                        UUID          PRIMARY KEY DEFAULT gen_random_uuid(),
            org_id                    UUID          NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            member_id                 UUID          NOT NULL REFERENCES members(id) ON DELETE CASCADE,
            measured_at               TIMESTAMPTZ   NOT NULL DEFAULT now(),
            height_cm                 NUMERIC(5, 1),
            weight_kg                 NUMERIC(5, 2),
            body_mass_index           NUMERIC(4, 1),
            body_fat_percentage       NUMERIC(4, 1),
            muscle_mass_kg            NUMERIC(5, 2),
            heart_rate_bpm            INTEGER,
            blood_pressure_systolic   INTEGER,
            blood_pressure_diastolic  INTEGER,
            waist_cm                  NUMERIC(5, 1),
            hip_cm                    NUMERIC(5, 1),
            chest_cm                  NUMERIC(5, 1),
            arm_cm                    NUMERIC(5, 1),
            thigh_cm                  NUMERIC(5, 1),
            notes                     TEXT,
            recorded_by_id            UUID          REFERENCES users(id) ON DELETE SET NULL,
            created_at                TIMESTAMPTZ   NOT NULL DEFAULT now(),
            updated_at                TIMESTAMPTZ   NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_member_measurements_org_id ON member_measurements(org_id)")
    op.execute("CREATE INDEX ix_member_measurements_member_id ON member_measurements(member_id)")
    op.execute("CREATE INDEX ix_member_measurements_measured_at ON member_measurements(measured_at DESC)")

    op.execute(
        "CREATE TYPE note_type AS ENUM ('notes', 'trainer_comments', 'progress', 'medical', 'general')"
    )
    op.execute("""
        CREATE TABLE member_notes (
            id               UUID          PRIMARY KEY DEFAULT gen_random_uuid(),
            org_id           UUID          NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
            member_id        UUID          NOT NULL REFERENCES members(id) ON DELETE CASCADE,
            note_type        note_type     NOT NULL DEFAULT 'general',
            title            VARCHAR(200)  NOT NULL,
            content          TEXT          NOT NULL,
            created_by_id    UUID          REFERENCES users(id) ON DELETE SET NULL,
            created_by_name  VARCHAR(100),
            created_at       TIMESTAMPTZ   NOT NULL DEFAULT now(),
            updated_at       TIMESTAMPTZ   NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_member_notes_org_id ON member_notes(org_id)")
    op.execute("CREATE INDEX ix_member_notes_member_id ON member_notes(member_id)")
    op.execute("CREATE INDEX ix_member_notes_note_type ON member_notes(note_type)")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS member_notes")
    op.execute("DROP TYPE IF EXISTS note_type")
    op.execute("DROP TABLE IF EXISTS member_measurements")
