"""create hot updater tables

Revision ID: 3b8f1c2d9a10
Revises: 
Create Date: 2026-10-19 10:12:41.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from ota_server.config import DEFAULT_SCHEMA_VERSION, settings

# revision identifiers, used by Alembic.
revision: str = '3b8f1c2d9a10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create bundles and private_hot_updater_settings, seed the settings row."""
    op.create_table(
        'bundles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('platform', sa.String(length=255), nullable=False),
        sa.Column('should_force_update', sa.Boolean(), nullable=False),
        sa.Column('enabled', sa.Boolean(), nullable=False),
        sa.Column('file_hash', sa.String(length=255), nullable=False),
        sa.Column('git_commit_hash', sa.String(length=255), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('channel', sa.String(length=255), nullable=False),
        sa.Column('storage_uri', sa.Text(), nullable=False),
        sa.Column('target_app_version', sa.String(length=255), nullable=True),
        sa.Column('fingerprint_hash', sa.String(length=255), nullable=True),
        sa.Column('metadata', sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    settings_table = op.create_table(
        'private_hot_updater_settings',
        sa.Column('id', sa.String(length=255), nullable=False),
        sa.Column('version', sa.String(length=255), nullable=False, server_default=DEFAULT_SCHEMA_VERSION),
        sa.PrimaryKeyConstraint('id'),
    )
    op.bulk_insert(settings_table, [{'id': 'default', 'version': settings.SCHEMA_VERSION}])


def downgrade() -> None:
    """Drop both tables."""
    op.drop_table('private_hot_updater_settings')
    op.drop_table('bundles')
