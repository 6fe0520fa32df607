"""Data access helpers for working with cards."""
from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from board_order.models.card import Card

__all__ = ["CardRepository"]


class CardRepository:
    """Thin wrapper around database access for card entities.

    Position reads select column values instead of ORM instances so they always
    reflect the current database state rather than the session's identity map.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, card_id: int) -> Card | None:
        """Return a card by identifier, refreshed from the database."""
        return self.session.get(Card, card_id, populate_existing=True)

    def position_in_column(self, card_id: int, column_key: str) -> str | None:
        """Return the position of a card if it currently sits in ``column_key``."""
        return self.session.execute(
            select(Card.position).where(Card.id == card_id, Card.column_key == column_key)
        ).scalar_one_or_none()

    def last_position(self, column_key: str, exclude_id: int | None = None) -> str | None:
        """Return the highest position in a column, or None for an empty column."""
        stmt = select(Card.position).where(
            Card.column_key == column_key, Card.position.is_not(None)
        )
        if exclude_id is not None:
            stmt = stmt.where(Card.id != exclude_id)
        return self.session.execute(
            stmt.order_by(Card.position.desc()).limit(1)
        ).scalar_one_or_none()

    def next_position(
        self, column_key: str, position: str, exclude_id: int | None = None
    ) -> str | None:
        """Return the smallest position in a column strictly above ``position``."""
        stmt = select(Card.position).where(
            Card.column_key == column_key, Card.position > position
        )
        if exclude_id is not None:
            stmt = stmt.where(Card.id != exclude_id)
        return self.session.execute(
            stmt.order_by(Card.position).limit(1)
        ).scalar_one_or_none()

    def previous_position(
        self, column_key: str, position: str, exclude_id: int | None = None
    ) -> str | None:
        """Return the largest position in a column strictly below ``position``."""
        stmt = select(Card.position).where(
            Card.column_key == column_key, Card.position < position
        )
        if exclude_id is not None:
            stmt = stmt.where(Card.id != exclude_id)
        return self.session.execute(
            stmt.order_by(Card.position.desc()).limit(1)
        ).scalar_one_or_none()

    def column_positions(self, column_key: str) -> list[str]:
        """Return the non-null positions of a column in ascending order."""
        result = self.session.execute(
            select(Card.position)
            .where(Card.column_key == column_key, Card.position.is_not(None))
            .order_by(Card.position)
        )
        return list(result.scalars())

    def list_column(self, column_key: str) -> list[Card]:
        """Return the cards of a column in display order.

        Ties are broken by insertion order and cards without a position come last.
        """
        result = self.session.execute(
            select(Card)
            .where(Card.column_key == column_key)
            .order_by(Card.position.is_(None), Card.position, Card.id)
        )
        return list(result.scalars())

    def column_keys(self) -> list[str]:
        """Return every distinct column key present in storage."""
        result = self.session.execute(
            select(Card.column_key).distinct().order_by(Card.column_key)
        )
        return list(result.scalars())

    def count_null_positions(self, column_key: str) -> int:
        return self.session.execute(
            select(func.count())
            .select_from(Card)
            .where(Card.column_key == column_key, Card.position.is_(None))
        ).scalar_one()

    def duplicate_positions(self, column_key: str) -> dict[str, int]:
        """Return ``{position: occurrences}`` for positions used more than once."""
        rows = self.session.execute(
            select(Card.position, func.count())
            .where(Card.column_key == column_key, Card.position.is_not(None))
            .group_by(Card.position)
            .having(func.count() > 1)
        )
        return {position: int(count) for position, count in rows}

    def add(
        self,
        *,
        column_key: str,
        title: str,
        position: str | None,
        payload: dict[str, Any] | None = None,
    ) -> Card:
        """Stage a new card in the session without flushing it."""
        card = Card(column_key=column_key, title=title, position=position, payload=payload)
        self.session.add(card)
        return card
