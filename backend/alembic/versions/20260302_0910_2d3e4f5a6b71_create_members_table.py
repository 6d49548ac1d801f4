"""create_members_table

Revision ID: 2d3e4f5a6b71
Revises: 1c2d3e4f5a60
Create Date: 2026-03-02 09:10:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = '2d3e4f5a6b71'
down_revision: Union[str, None] = '1c2d3e4f5a60'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create members table (gym customers)."""
    op.create_table(
        'members',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('profile_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=100), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column(
            'gender',
            sa.Enum('male', 'female', 'other', 'prefer_not_to_say', name='member_gender'),
            nullable=True,
        ),
        sa.Column('emergency_contact_name', sa.String(length=100), nullable=True),
        sa.Column('emergency_contact_phone', sa.String(length=20), nullable=True),
        sa.Column('medical_conditions', sa.Text(), nullable=True),
        sa.Column('injuries', sa.Text(), nullable=True),
        sa.Column('fitness_goals', JSONB(), nullable=True),
        sa.Column(
            'experience_level',
            sa.Enum('beginner', 'intermediate', 'advanced', name='experience_level'),
            nullable=False,
            server_default='beginner',
        ),
        sa.Column(
            'status',
            sa.Enum('active', 'inactive', 'suspended', 'cancelled', name='member_status'),
            nullable=False,
            server_default='active',
        ),
        sa.Column(
            'current_plan_id',
            UUID(as_uuid=True),
            sa.ForeignKey('membership_plans.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('membership_start_date', sa.Date(), nullable=True),
        sa.Column('membership_end_date', sa.Date(), nullable=True),
        sa.Column(
            'membership_status',
            sa.Enum('active', 'expired', 'cancelled', 'frozen', name='membership_status'),
            nullable=False,
            server_default='active',
        ),
        sa.Column('access_code', sa.String(length=20), nullable=True),
        sa.Column('check_in_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_check_in', sa.DateTime(timezone=True), nullable=True),
        sa.Column('internal_notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
        sa.UniqueConstraint('org_id', 'email', name='uq_members_org_email'),
    )
    op.create_index('idx_members_org_id', 'members', ['org_id'])
    op.create_index('idx_members_profile_id', 'members', ['profile_id'])
    op.create_index('idx_members_membership_end_date', 'members', ['membership_end_date'])
    op.create_index('idx_members_org_access_code', 'members', ['org_id', 'access_code'])


def downgrade() -> None:
    op.drop_index('idx_members_org_access_code', table_name='members')
    op.drop_index('idx_members_membership_end_date', table_name='members')
    op.drop_index('idx_members_profile_id', table_name='members')
    op.drop_index('idx_members_org_id', table_name='members')
    op.drop_table('members')
    for enum_name in ('membership_status', 'member_status', 'experience_level', 'member_gender'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
