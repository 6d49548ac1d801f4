"""create_organizations_table

Revision ID: e4c062ff27cf
Revises: 
Create Date: 2026-02-21 07:04:12.345678

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic.
revision: str = 'e4c062ff27cf'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create organizations (gyms) table."""
    op.create_table(
        'organizations',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('slug', sa.String(length=50), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('timezone', sa.String(length=50), nullable=False, server_default='America/Mexico_City'),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='MXN'),
        sa.Column('language', sa.String(length=5), nullable=False, server_default='es'),
        sa.Column(
            'subscription_plan',
            sa.Enum('starter', 'growth', 'pro', 'enterprise', name='subscription_plan'),
            nullable=False,
            server_default='starter',
        ),
        sa.Column('subscription_started_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('max_members', sa.Integer(), nullable=True),
        sa.Column('max_classes_per_day', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            'max_classes_per_day IS NULL OR (max_classes_per_day >= 1 AND max_classes_per_day <= 10)',
            name='max_classes_per_day_range',
        ),
    )

    # Create indexes
    op.create_index('idx_organizations_slug', 'organizations', ['slug'], unique=True)
    op.create_index('idx_organizations_created_at', 'organizations', ['created_at'])


def downgrade() -> None:
    """Drop organizations table."""
    op.drop_index('idx_organizations_created_at', table_name='organizations')
    op.drop_index('idx_organizations_slug', table_name='organizations')
    op.drop_table('organizations')
    sa.Enum(name='subscription_plan').drop(op.get_bind(), checkfirst=True)
