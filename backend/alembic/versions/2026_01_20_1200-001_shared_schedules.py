"""shared schedules

Revision ID: 001
Revises:
Create Date: 2026-01-20 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'shared_schedules',
        sa.Column('share_id', sa.String(length=64), nullable=False),
        sa.Column('owner_name', sa.String(length=200), nullable=False, server_default=''),
        sa.Column('films', JSONB(), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('share_id')
    )


def downgrade() -> None:
    op.drop_table('shared_schedules')
