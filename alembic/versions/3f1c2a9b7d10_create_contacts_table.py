"""create contacts table

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2026-10-18 21:04:12.418230

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c2a9b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLE_NAME = "contacts"


def upgrade() -> None:
    """Create the contacts table; ids come from the database sequence."""
    op.create_table(
        TABLE_NAME,
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("first_name", sa.String(length=255), nullable=False),
        sa.Column("last_name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=64), nullable=False),
        sa.Column("address", sa.String(length=512), nullable=False),
    )


def downgrade() -> None:
    op.drop_table(TABLE_NAME)
