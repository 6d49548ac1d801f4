"""create_exercises_and_workouts

Revision ID: 6b7c8d9eafb5
Revises: 5a6b7c8d9ea4
Create Date: 2026-03-04 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID

revision: str = '6b7c8d9eafb5'
down_revision: Union[str, None] = '5a6b7c8d9ea4'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create exercises (org NULL = global library) and workouts."""
    op.create_table(
        'exercises',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=True),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=50), nullable=True),
        sa.Column('muscle_groups', JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('equipment', JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column(
            'difficulty',
            ENUM(name='experience_level', create_type=False),
            nullable=False,
            server_default='beginner',
        ),
        sa.Column('video_url', sa.String(length=500), nullable=True),
        sa.Column('instructions', JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('is_global', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
    )
    op.create_index('idx_exercises_org_id', 'exercises', ['org_id'])

    op.create_table(
        'workouts',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column(
            'workout_type',
            sa.Enum('routine', 'wod', 'program', name='workout_type'),
            nullable=False,
            server_default='routine',
        ),
        sa.Column(
            'wod_type',
            sa.Enum('amrap', 'emom', 'for_time', 'tabata', 'rounds', name='wod_type'),
            nullable=True,
        ),
        sa.Column('wod_time_cap', sa.Integer(), nullable=True),
        sa.Column('exercises', JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column(
            'assigned_to_member_id',
            UUID(as_uuid=True),
            sa.ForeignKey('members.id', ondelete='CASCADE'),
            nullable=True,
        ),
        sa.Column('assigned_by_id', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('scheduled_date', sa.Date(), nullable=True),
        sa.Column('is_template', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
    )
    op.create_index('idx_workouts_org_id', 'workouts', ['org_id'])
    op.create_index('idx_workouts_assigned_to_member_id', 'workouts', ['assigned_to_member_id'])


def downgrade() -> None:
    op.drop_index('idx_workouts_assigned_to_member_id', table_name='workouts')
    op.drop_index('idx_workouts_org_id', table_name='workouts')
    op.drop_table('workouts')
    op.drop_index('idx_exercises_org_id', table_name='exercises')
    op.drop_table('exercises')
    for enum_name in ('wod_type', 'workout_type'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
