"""create card table

Revision ID: 3f1c2a9d7b10
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from board_order.db.types import PositionType

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the card table with its per-column position uniqueness."""
    op.create_table(
        "card",
        sa.Column(
            "id",
            sa.BigInteger().with_variant(sa.Integer(), "sqlite"),
            autoincrement=True,
            nullable=False,
        ),
        sa.Column("column_key", sa.Text(), nullable=False),
        sa.Column("position", PositionType(scale=10), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("column_key", "position", name="uq_card_column_position"),
    )
    op.create_index("ix_card_column_key", "card", ["column_key"])


def downgrade() -> None:
    """Drop the card table."""
    op.drop_index("ix_card_column_key", table_name="card")
    op.drop_table("card")
