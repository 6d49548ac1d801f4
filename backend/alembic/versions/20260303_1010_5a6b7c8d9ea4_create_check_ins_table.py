"""create_check_ins_table

Revision ID: 5a6b7c8d9ea4
Revises: 4f5a6b7c8d93
Create Date: 2026-03-03 10:10:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = '5a6b7c8d9ea4'
down_revision: Union[str, None] = '4f5a6b7c8d93'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create check_ins table."""
    op.create_table(
        'check_ins',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), sa.ForeignKey('organizations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('member_id', UUID(as_uuid=True), sa.ForeignKey('members.id', ondelete='CASCADE'), nullable=False),
        sa.Column('checked_in_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            'check_in_method',
            sa.Enum('qr', 'pin', 'manual', 'biometric', name='check_in_method'),
            nullable=False,
            server_default='manual',
        ),
        sa.Column('location', sa.String(length=100), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('booking_id', UUID(as_uuid=True), sa.ForeignKey('bookings.id', ondelete='SET NULL'), nullable=True),
        sa.Column('performed_by', UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), onupdate=sa.func.now(), nullable=False),
    )
    op.create_index('idx_check_ins_org_checked_in_at', 'check_ins', ['org_id', 'checked_in_at'])
    op.create_index('idx_check_ins_member_id', 'check_ins', ['member_id'])


def downgrade() -> None:
    op.drop_index('idx_check_ins_member_id', table_name='check_ins')
    op.drop_index('idx_check_ins_org_checked_in_at', table_name='check_ins')
    op.drop_table('check_ins')
    sa.Enum(name='check_in_method').drop(op.get_bind(), checkfirst=True)
