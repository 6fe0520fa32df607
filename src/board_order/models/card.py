# src/board_order/models/card.py
"""SQLAlchemy model for ordered cards."""

from typing import Any

from sqlalchemy import JSON, BigInteger, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from board_order.core.settings import settings
from board_order.db.session import Base
from board_order.db.types import PositionType

POSITION_UNIQUE_CONSTRAINT = "uq_card_column_position"


class Card(Base):
    """A card placed in a board column.

    Cards of one column are displayed by ascending ``position``. The unique
    constraint on ``(column_key, position)`` is what keeps concurrent moves
    from ever producing two cards in the same slot.
    """

    __tablename__ = "card"
    __table_args__ = (
        UniqueConstraint("column_key", "position", name=POSITION_UNIQUE_CONSTRAINT),
        Index("ix_card_column_key", "column_key"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    column_key: Mapped[str] = mapped_column(Text, nullable=False)
    # Nullable so imported rows can be repaired; every write path assigns one.
    position: Mapped[str | None] = mapped_column(
        PositionType(scale=settings.position_scale),
        nullable=True,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
