"""create_finance_tables

Revision ID: 3e4f5a6b7c82
Revises: 2d3e4f5a6b71
Create Date: 2026-03-02 09:20:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = '3e4f5a6b7c82'
down_revision: Union[str, None] = '2d3e4f5a6b71'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create membership_payments, expenses and income tables."""
    op.create_table(
        'membership_payments',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('member_id', UUID(as_uuid=True), sa.ForeignKey('members.id', ondelete='CASCADE'), nullable=False),
        sa.Column('plan_id', UUID(as_uuid=True), sa.ForeignKey('membership_plans.id', ondelete='SET NULL'), nullable=True),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='MXN'),
        sa.Column(
            'payment_method',
            sa.Enum('cash', 'card', 'transfer', 'sinpe', 'other', name='payment_method'),
            nullable=False,
            server_default='cash',
        ),
        sa.Column('reference_number', sa.String(length=100), nullable=True),
        sa.Column(
            'period_type',
            sa.Enum(
                'monthly', 'bimonthly', 'quarterly', 'semiannual', 'annual', 'custom',
                name='payment_period_type',
            ),
            nullable=False,
            server_default='monthly',
        ),
        sa.Column('period_months', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('period_start_date', sa.Date(), nullable=False),
        sa.Column('period_end_date', sa.Date(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
        sa.CheckConstraint('period_months >= 1 AND period_months <= 36', name='period_months_range'),
        sa.CheckConstraint('period_end_date > period_start_date', name='valid_period_dates'),
    )
    op.create_index('idx_membership_payments_org_id', 'membership_payments', ['org_id'])
    op.create_index('idx_membership_payments_member_id', 'membership_payments', ['member_id'])
    op.create_index('idx_membership_payments_created_at', 'membership_payments', ['created_at'])

    op.create_table(
        'expenses',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='MXN'),
        sa.Column(
            'category',
            sa.Enum(
                'rent', 'utilities', 'salaries', 'equipment', 'maintenance',
                'marketing', 'supplies', 'insurance', 'taxes', 'other',
                name='expense_category',
            ),
            nullable=False,
            server_default='other',
        ),
        sa.Column('expense_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('vendor', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_recurring', sa.Boolean(), nullable=False, server_default=sa.text('false')),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_expenses_org_date', 'expenses', ['org_id', 'expense_date'])

    op.create_table(
        'income',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='MXN'),
        sa.Column(
            'category',
            sa.Enum('product_sale', 'service', 'rental', 'event', 'donation', 'other', name='income_category'),
            nullable=False,
            server_default='other',
        ),
        sa.Column('income_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_income_org_date', 'income', ['org_id', 'income_date'])


def downgrade() -> None:
    op.drop_index('idx_income_org_date', table_name='income')
    op.drop_table('income')
    op.drop_index('idx_expenses_org_date', table_name='expenses')
    op.drop_table('expenses')
    op.drop_index('idx_membership_payments_created_at', table_name='membership_payments')
    op.drop_index('idx_membership_payments_member_id', table_name='membership_payments')
    op.drop_index('idx_membership_payments_org_id', table_name='membership_payments')
    op.drop_table('membership_payments')
    for enum_name in ('income_category', 'expense_category', 'payment_period_type', 'payment_method'):
        sa.Enum(name=enum_name).drop(op.get_bind(), checkfirst=True)
