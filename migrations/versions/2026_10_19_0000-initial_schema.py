"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create initial database schema:
    - short_urls table: alias -> target mappings, owned by a user
    - visits table: one attributed visit per redirect
    """
    bind = op.get_bind()
    existing_tables = inspect(bind).get_table_names()

    if 'short_urls' not in existing_tables:
        op.create_table(
            'short_urls',
            sa.Column('id', sa.String(length=32), nullable=False),
            sa.Column('alias', sa.String(length=64), nullable=False),
            sa.Column('target', sa.Text(), nullable=False),
            sa.Column('owner_id', sa.String(length=255), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('ix_short_urls_alias', 'short_urls', ['alias'], unique=True)
        op.create_index('ix_short_urls_owner_id', 'short_urls', ['owner_id'])
        op.create_index('ix_short_urls_created_at', 'short_urls', ['created_at'])

    # The foreign key is declared inline so SQLite gets it too
    if 'visits' not in existing_tables:
        op.create_table(
            'visits',
            sa.Column('id', sa.String(length=32), nullable=False),
            sa.Column('url_id', sa.String(length=32), nullable=False),
            sa.Column('device', sa.String(length=32), nullable=False),
            sa.Column('os', sa.String(length=32), nullable=False),
            sa.Column('browser', sa.String(length=32), nullable=False),
            sa.Column('location', sa.String(length=255), nullable=False),
            sa.Column('referrer', sa.Text(), nullable=False),
            sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
            sa.PrimaryKeyConstraint('id'),
            sa.ForeignKeyConstraint(
                ['url_id'], ['short_urls.id'],
                name='fk_visits_url_id',
                ondelete='CASCADE'
            )
        )
        op.create_index('ix_visits_url_id', 'visits', ['url_id'])
        op.create_index('ix_visits_created_at', 'visits', ['created_at'])


def downgrade() -> None:
    """
    Drop all tables and indexes.
    """
    op.drop_index('ix_visits_created_at', table_name='visits')
    op.drop_index('ix_visits_url_id', table_name='visits')
    op.drop_table('visits')

    op.drop_index('ix_short_urls_created_at', table_name='short_urls')
    op.drop_index('ix_short_urls_owner_id', table_name='short_urls')
    op.drop_index('ix_short_urls_alias', table_name='short_urls')
    op.drop_table('short_urls')
