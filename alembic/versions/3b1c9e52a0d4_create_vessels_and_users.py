"""create vessels and users

Revision ID: 3b1c9e52a0d4
Revises: 
Create Date: 2026-10-18 21:12:07.481530

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b1c9e52a0d4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the vessel registry and operator tables."""
    op.create_table(
        'vessels',
        sa.Column('uuid', sa.String(length=36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('flag_nation', sa.String()),
        sa.Column('port_of_registry', sa.String()),
        sa.Column('build_details', sa.Text()),
        sa.Column('official_number', sa.String()),
        sa.Column('hull_id_number', sa.String()),
        sa.Column('keel_offset', sa.Float()),
        sa.Column('waterline_offset', sa.Float()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_vessels_name', 'vessels', ['name'])
    op.create_table(
        'users',
        sa.Column('uuid', sa.String(length=36), primary_key=True),
        sa.Column('handle', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('vessel_uuid', sa.String(length=36), sa.ForeignKey('vessels.uuid'), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_users_handle', 'users', ['handle'], unique=True)


def downgrade() -> None:
    """Drop the operator and vessel tables."""
    op.drop_index('ix_users_handle', table_name='users')
    op.drop_table('users')
    op.drop_index('ix_vessels_name', table_name='vessels')
    op.drop_table('vessels')
