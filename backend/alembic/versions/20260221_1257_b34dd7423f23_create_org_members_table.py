"""create_org_members_table

Revision ID: b34dd7423f23
Revises: a54c165357e6
Create Date: 2026-02-21 12:57:00

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = 'b34dd7423f23'
down_revision: Union[str, None] = 'a54c165357e6'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

APP_ROLES = ('super_admin', 'admin', 'assistant', 'trainer', 'nutritionist', 'client')


def upgrade() -> None:
    """Create org_members table with the app_role enum."""
    op.create_table(
        'org_members',
        sa.Column('id', UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('org_id', UUID(as_uuid=True), nullable=False),
        sa.Column('user_id', UUID(as_uuid=True), nullable=False),
        sa.Column('role', sa.Enum(*APP_ROLES, name='app_role'), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_foreign_key(
        'org_members_org_id_fkey',
        'org_members', 'organizations',
        ['org_id'], ['id'],
        ondelete='CASCADE'
    )
    op.create_foreign_key(
        'org_members_user_id_fkey',
        'org_members', 'users',
        ['user_id'], ['id'],
        ondelete='CASCADE'
    )

    op.create_index('idx_org_members_org_id', 'org_members', ['org_id'])
    op.create_index('idx_org_members_user_id', 'org_members', ['user_id'])
    op.create_index('idx_org_members_org_user', 'org_members', ['org_id', 'user_id'], unique=True)


def downgrade() -> None:
    """Drop org_members table and role enum."""
    op.drop_index('idx_org_members_org_user', table_name='org_members')
    op.drop_index('idx_org_members_user_id', table_name='org_members')
    op.drop_index('idx_org_members_org_id', table_name='org_members')
    op.drop_constraint('org_members_user_id_fkey', 'org_members', type_='foreignkey')
    op.drop_constraint('org_members_org_id_fkey', 'org_members', type_='foreignkey')
    op.drop_table('org_members')
    sa.Enum(name='app_role').drop(op.get_bind(), checkfirst=True)
