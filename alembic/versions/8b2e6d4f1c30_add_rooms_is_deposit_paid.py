"""Add is_deposit_paid flag to rooms

Revision ID: 8b2e6d4f1c30
Revises: 3a1f5c2d9e47
Create Date: 2026-10-19 00:10:00.000000
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '8b2e6d4f1c30'
down_revision = '3a1f5c2d9e47'
branch_labels = None
depends_on = None


def upgrade() -> None:
    # existing rows get false through the server default
    op.add_column(
        'rooms',
        sa.Column('is_deposit_paid', sa.Boolean(), nullable=False, server_default=sa.false()),
    )


def downgrade() -> None:
    with op.batch_alter_table('rooms') as batch_op:
        batch_op.drop_column('is_deposit_paid')
