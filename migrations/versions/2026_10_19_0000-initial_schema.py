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
    - short_urls table: Stores shortcode -> URL mappings with expiry and click count
    - clicks table: One row per resolution, referencing short_urls by shortcode
    """
    bind = op.get_bind()
    inspector = inspect(bind)
    existing_tables = inspector.get_table_names()

    if 'short_urls' not in existing_tables:
        op.create_table(
            'short_urls',
            sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
            sa.Column('shortcode', sa.String(length=20), nullable=False),
            sa.Column('original_url', sa.Text(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.Column('expiry', sa.DateTime(), nullable=False),
            sa.Column('clicks', sa.Integer(), nullable=False, server_default='0'),
            sa.PrimaryKeyConstraint('id')
        )

        op.create_index(
            'ix_short_urls_shortcode',
            'short_urls',
            ['shortcode'],
            unique=True
        )

        op.create_index(
            'ix_short_urls_expiry',
            'short_urls',
            ['expiry']
        )

    if 'clicks' not in existing_tables:
        # No foreign key: clicks reference short_urls by shortcode value and
        # are removed by the expiry sweep together with their parent row
        op.create_table(
            'clicks',
            sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
            sa.Column('shortcode', sa.String(length=20), nullable=False),
            sa.Column('timestamp', sa.DateTime(), nullable=False),
            sa.Column('referrer', sa.String(length=500), nullable=False, server_default='direct'),
            sa.Column('geo_location', sa.Text(), nullable=False, server_default='{}'),
            sa.PrimaryKeyConstraint('id')
        )

        op.create_index(
            'ix_clicks_shortcode',
            'clicks',
            ['shortcode']
        )


def downgrade() -> None:
    """
    Drop all tables and indexes.
    """
    op.drop_index('ix_clicks_shortcode', table_name='clicks')
    op.drop_table('clicks')

    op.drop_index('ix_short_urls_expiry', table_name='short_urls')
    op.drop_index('ix_short_urls_shortcode', table_name='short_urls')
    op.drop_table('short_urls')
