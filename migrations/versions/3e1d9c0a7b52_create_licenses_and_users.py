"""create licenses and users

Revision ID: 3e1d9c0a7b52
Revises:
Create Date: 2026-10-19 10:00:00
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3e1d9c0a7b52'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('display_name', sa.String(), nullable=True),
    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'licenses',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('key', sa.String(64), nullable=False),
        sa.Column('product_name', sa.String(), nullable=False),
        sa.Column(
            'owner_id',
            sa.Integer(),
            sa.ForeignKey('users.id', name='fk_licenses_owner_id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('status', sa.String(16), nullable=False, server_default='unused'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('domain', sa.String(253), nullable=True),
        sa.Column('activated_at', sa.DateTime(), nullable=True),
        sa.Column('expires_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_licenses_id', 'licenses', ['id'])
    op.create_index('ix_licenses_key', 'licenses', ['key'], unique=True)
    op.create_index('ix_licenses_domain', 'licenses', ['domain'])


def downgrade() -> None:
    op.drop_index('ix_licenses_domain', table_name='licenses')
    op.drop_index('ix_licenses_key', table_name='licenses')
    op.drop_index('ix_licenses_id', table_name='licenses')
    op.drop_table('licenses')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_index('ix_users_id', table_name='users')
    op.drop_table('users')
