"""create_classes_tables

Revision ID: 4f5a6b7c8d93
Revises: 3e4f5a6b7c82
Create Date: 2026-03-03 10:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = '4f5a6b7c8d93'
down_revision: Union[str, None] = '3e4f5a6b7c82'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _booking_rules() -> list[sa.Column]:
    return [
        sa.Column('max_capacity', sa.Integer(), nullable=False, server_default='20'),
        sa.Column('waitlist_enabled', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('max_waitlist', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('booking_opens_hours', sa.Integer(), nullable=False, server_default='168'),
        sa.Column('booking_closes_minutes', sa.Integer(), nullable=False, server_default='60'),
        sa.Column('cancellation_deadline_hours', sa.Integer(), nullable=False, server_default='2'),
    ]


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create class_templates, classes, bookings and class_generation_log."""
    op.create_table(
        'class_templates',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('class_type', sa.String(length=50), nullable=True),
        sa.Column('instructor_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('instructor_name', sa.String(length=100), nullable=True),
        sa.Column('location', sa.String(length=100), nullable=True),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.String(length=5), nullable=False),
        sa.Column('end_time', sa.String(length=5), nullable=False),
        *_booking_rules(),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        *_timestamps(),
        sa.CheckConstraint('day_of_week >= 0 AND day_of_week <= 6', name='day_of_week_range'),
    )
    op.create_index('idx_class_templates_org_day', 'class_templates', ['org_id', 'day_of_week'])

    op.create_table(
        'classes',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('class_type', sa.String(length=50), nullable=True),
        sa.Column('start_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('current_bookings', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('instructor_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('instructor_name', sa.String(length=100), nullable=True),
        sa.Column('location', sa.String(length=100), nullable=True),
        *_booking_rules(),
        sa.Column('is_cancelled', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('cancellation_reason', sa.Text(), nullable=True),
        sa.Column(
            'template_id',
            UUID(as_uuid=True),
            sa.ForeignKey('class_templates.id', ondelete='SET NULL'),
            nullable=True,
        ),
        *_timestamps(),
        sa.CheckConstraint('end_time > start_time', name='valid_class_times'),
    )
    op.create_index('idx_classes_org_start', 'classes', ['org_id', 'start_time'])

    op.create_table(
        'bookings',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('class_id', UUID(as_uuid=True), sa.ForeignKey('classes.id', ondelete='CASCADE'), nullable=False),
        sa.Column('member_id', UUID(as_uuid=True), sa.ForeignKey('members.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'status',
            sa.Enum('confirmed', 'cancelled', 'attended', 'no_show', 'waitlist', name='booking_status'),
            nullable=False,
            server_default='confirmed',
        ),
        sa.Column('waitlist_position', sa.Integer(), nullable=True),
        sa.Column('checked_in_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('class_id', 'member_id', name='uq_bookings_class_member'),
    )
    op.create_index('idx_bookings_org_id', 'bookings', ['org_id'])
    op.create_index('idx_bookings_member_status', 'bookings', ['member_id', 'status'])

    op.create_table(
        'class_generation_log',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'template_id',
            UUID(as_uuid=True),
            sa.ForeignKey('class_templates.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column(
            'generated_class_id',
            UUID(as_uuid=True),
            sa.ForeignKey('classes.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('generated_date', sa.Date(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('template_id', 'generated_date', name='uq_generation_template_date'),
    )
    op.create_index('idx_class_generation_log_org_id', 'class_generation_log', ['org_id'])


def downgrade() -> None:
    op.drop_index('idx_class_generation_log_org_id', table_name='class_generation_log')
    op.drop_table('class_generation_log')
    op.drop_index('idx_bookings_member_status', table_name='bookings')
    op.drop_index('idx_bookings_org_id', table_name='bookings')
    op.drop_table('bookings')
    op.drop_index('idx_classes_org_start', table_name='classes')
    op.drop_table('classes')
    op.drop_index('idx_class_templates_org_day', table_name='class_templates')
    op.drop_table('class_templates')
    sa.Enum(name='booking_status').drop(op.get_bind(), checkfirst=True)
