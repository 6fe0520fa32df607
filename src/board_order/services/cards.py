# src/board_order/services/cards.py
"""Creation and listing of cards."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from board_order.core.position import DecimalPosition
from board_order.core.settings import settings
from board_order.models.card import Card
from board_order.repositories.card_repo import CardRepository
from board_order.services.conflicts import ConflictClassifier
from board_order.services.move import CardNotFoundError, PositionWriter
from board_order.services.rebalancer import PositionRebalancer

logger = logging.getLogger(__name__)


class CardService:
    """Adds cards to columns using the same conflict handling as moves."""

    def __init__(
        self,
        session: Session,
        algebra: DecimalPosition | None = None,
        *,
        classifier: ConflictClassifier | None = None,
        max_retries: int | None = None,
    ) -> None:
        self.session = session
        self.algebra = algebra or DecimalPosition(settings.position_config)
        self.repo = CardRepository(session)
        self.rebalancer = PositionRebalancer(session, self.algebra)
        self.writer = PositionWriter(session, self.rebalancer, classifier, max_retries)

    def get_card(self, card_id: int) -> Card:
        card = self.repo.get_by_id(card_id)
        if card is None:
            raise CardNotFoundError(card_id)
        return card

    def list_column(self, column_key: str) -> list[Card]:
        return self.repo.list_column(column_key)

    def create_card(
        self, column_key: str, title: str, payload: dict[str, Any] | None = None
    ) -> Card:
        """Append a card at the end of a column.

        Retries land at a random point of the default gap past the last card, so
        concurrent appends stop competing for the same slot.
        """

        def compute(attempt: int) -> str:
            return self._append_position(column_key, attempt)

        def apply(position: str) -> Card:
            return self.repo.add(
                column_key=column_key, title=title, position=position, payload=payload
            )

        placement = self.writer.place(column_key, compute, apply)
        card = placement.value
        logger.debug("Created card %d in column %r at %s", card.id, column_key, card.position)
        return card

    def bulk_create(
        self,
        column_key: str,
        titles: list[str],
        after_card_id: int | None = None,
        before_card_id: int | None = None,
    ) -> list[Card]:
        """Insert several cards in one transaction, keeping the order of ``titles``.

        Without neighbours the cards are appended. With only one neighbour the
        batch goes directly next to it, splitting the gap to the following (or
        preceding) card when there is one.
        """
        if not titles:
            return []

        def compute(attempt: int) -> list[str]:
            return self._batch_positions(
                column_key, len(titles), after_card_id, before_card_id, attempt
            )

        def apply(positions: list[str]) -> list[Card]:
            return [
                self.repo.add(column_key=column_key, title=title, position=position)
                for title, position in zip(titles, positions)
            ]

        placement = self.writer.place(column_key, compute, apply)
        logger.info(
            "Created %d card(s) in column %r (%d attempt(s))",
            len(placement.value),
            column_key,
            placement.attempts,
        )
        return placement.value

    def _batch_positions(
        self,
        column_key: str,
        count: int,
        after_card_id: int | None,
        before_card_id: int | None,
        attempt: int = 1,
    ) -> list[str]:
        lower = (
            self.repo.position_in_column(after_card_id, column_key)
            if after_card_id is not None
            else None
        )
        upper = (
            self.repo.position_in_column(before_card_id, column_key)
            if before_card_id is not None
            else None
        )

        if lower is None and upper is None:
            if self.repo.last_position(column_key) is None and attempt == 1:
                return self.algebra.generate_sequence(count)
            first = self._append_position(column_key, attempt)
            return [first, *self._chain_after(first, count - 1)]
        if upper is None:
            upper = self.repo.next_position(column_key, lower)
            if upper is None:
                return self._chain_after(lower, count)
        elif lower is None:
            lower = self.repo.previous_position(column_key, upper)
            if lower is None:
                return self._chain_before(upper, count)
        return self.algebra.generate_between(lower, upper, count)

    def _append_position(self, column_key: str, attempt: int) -> str:
        last = self.repo.last_position(column_key)
        if last is None or attempt == 1:
            return self.algebra.calculate(last, None)
        return self.algebra.between(last, self.algebra.after(last))

    def _chain_after(self, start: str, count: int) -> list[str]:
        positions = []
        current = start
        for _ in range(count):
            current = self.algebra.after(current)
            positions.append(current)
        return positions

    def _chain_before(self, start: str, count: int) -> list[str]:
        positions = []
        current = start
        for _ in range(count):
            current = self.algebra.before(current)
            positions.append(current)
        positions.reverse()
        return positions


def get_card_service(session: Session) -> CardService:
    """Return a card service bound to ``session``."""
    return CardService(session)
