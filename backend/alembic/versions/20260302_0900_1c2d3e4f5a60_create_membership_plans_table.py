"""create_membership_plans_table

Revision ID: 1c2d3e4f5a60
Revises: 7af100f5f209
Create Date: 2026-03-02 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision: str = '1c2d3e4f5a60'
down_revision: Union[str, None] = '7af100f5f209'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create membership_plans table."""
    op.create_table(
        'membership_plans',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='MXN'),
        sa.Column(
            'billing_period',
            sa.Enum('monthly', 'quarterly', 'yearly', 'one_time', name='billing_period'),
            nullable=False,
            server_default='monthly',
        ),
        sa.Column('unlimited_access', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('classes_per_period', sa.Integer(), nullable=True),
        sa.Column('duration_days', sa.Integer(), nullable=False, server_default='30'),
        sa.Column('features', JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('is_featured', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
    )
    op.create_index('idx_membership_plans_org_id', 'membership_plans', ['org_id'])


def downgrade() -> None:
    op.drop_index('idx_membership_plans_org_id', table_name='membership_plans')
    op.drop_table('membership_plans')
    sa.Enum(name='billing_period').drop(op.get_bind(), checkfirst=True)
