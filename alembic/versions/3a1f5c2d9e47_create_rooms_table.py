"""Create rooms table

Revision ID: 3a1f5c2d9e47
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '3a1f5c2d9e47'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        'rooms',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('building_name', sa.Text(), nullable=False),
        sa.Column('room_number', sa.Text(), nullable=False),
        sa.Column('floor', sa.Integer(), nullable=False),
        sa.Column('status', sa.Text(), nullable=False, server_default='ready'),
        sa.Column('memo', sa.Text(), nullable=False, server_default=''),
        sa.UniqueConstraint('building_name', 'room_number', name='uq_rooms_building_room'),
    )


def downgrade() -> None:
    op.drop_table('rooms')
