# src/board_order/services/move.py
"""Optimistic-concurrency moves of cards between and within columns.

A move never takes a lock. The new position is computed from the current
neighbours, written, and committed; the unique constraint on
``(column_key, position)`` rejects a slot another writer already took. Such
conflicts are recognized by the conflict classifier and retried with a freshly
computed position a bounded number of times.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from board_order.core.position import DecimalPosition, PrecisionExhaustedError
from board_order.core.settings import settings
from board_order.models.card import Card
from board_order.repositories.card_repo import CardRepository
from board_order.services.conflicts import ConflictClassifier, get_conflict_classifier
from board_order.services.rebalancer import PositionRebalancer

logger = logging.getLogger(__name__)

CandidateT = TypeVar("CandidateT")
ResultT = TypeVar("ResultT")


class MoveError(RuntimeError):
    """Base exception for moves that could not be completed."""


class CardNotFoundError(MoveError, LookupError):
    """Raised when the card to place does not exist."""

    def __init__(self, card_id: int) -> None:
        super().__init__(f"Card {card_id} not found")
        self.card_id = card_id


class PersistenceConflictError(MoveError):
    """Raised when every attempt collided with a concurrently written position."""

    def __init__(self, column_key: str, attempts: int) -> None:
        super().__init__(
            f"Could not find a free position in column {column_key!r} "
            f"after {attempts} attempt(s)"
        )
        self.column_key = column_key
        self.attempts = attempts


class WriteStatus(Enum):
    COMMITTED = "committed"
    CONFLICT = "conflict"
    FAILED = "failed"


@dataclass(frozen=True)
class WriteOutcome:
    """Result of a single commit attempt."""

    status: WriteStatus
    error: SQLAlchemyError | None = None


@dataclass(frozen=True)
class Placement(Generic[ResultT]):
    """What a successful write loop produced."""

    value: ResultT
    attempts: int
    rebalanced: bool = False


@dataclass(frozen=True)
class MoveResult:
    """Outcome reported to callers and move listeners."""

    card_id: int
    column_key: str
    position: str
    attempts: int
    rebalanced: bool = False


MoveListener = Callable[[MoveResult], None]


class PositionWriter:
    """Commits position writes and retries them on uniqueness conflicts."""

    def __init__(
        self,
        session: Session,
        rebalancer: PositionRebalancer,
        classifier: ConflictClassifier | None = None,
        max_retries: int | None = None,
    ) -> None:
        self.session = session
        self.rebalancer = rebalancer
        self.classifier = classifier or get_conflict_classifier(session.get_bind().dialect.name)
        retries = settings.move_max_retries if max_retries is None else max_retries
        self.max_attempts = 1 + max(0, retries)

    def commit(self, stage: Callable[[], object]) -> WriteOutcome:
        """Stage changes and commit them, classifying any failure."""
        try:
            stage()
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if self.classifier.is_position_conflict(exc):
                return WriteOutcome(WriteStatus.CONFLICT, exc)
            return WriteOutcome(WriteStatus.FAILED, exc)
        except SQLAlchemyError as exc:
            self.session.rollback()
            return WriteOutcome(WriteStatus.FAILED, exc)
        return WriteOutcome(WriteStatus.COMMITTED)

    def place(
        self,
        column_key: str,
        compute: Callable[[int], CandidateT],
        apply: Callable[[CandidateT], ResultT],
    ) -> Placement[ResultT]:
        """Run the compute/commit loop until a write sticks.

        Args:
            column_key: Column the write targets; rebalanced when it runs out of room.
            compute: Returns a fresh candidate for the given 1-based attempt number.
            apply: Stages the candidate in the session and returns the caller's result.

        Raises:
            PersistenceConflictError: If every attempt hit a uniqueness conflict.
            SQLAlchemyError: Any other storage failure, unmodified.
        """
        rebalanced = False
        for attempt in range(1, self.max_attempts + 1):
            try:
                candidate = compute(attempt)
            except PrecisionExhaustedError:
                logger.warning(
                    "Column %r ran out of precision; rebalancing before retrying",
                    column_key,
                )
                self.rebalancer.rebalance_column(column_key)
                rebalanced = True
                candidate = compute(attempt)

            holder: list[ResultT] = []
            outcome = self.commit(lambda: holder.append(apply(candidate)))
            if outcome.status is WriteStatus.COMMITTED:
                return Placement(holder[0], attempt, rebalanced)
            if outcome.status is WriteStatus.FAILED:
                if outcome.error is None:
                    raise MoveError(f"Write to column {column_key!r} failed")
                raise outcome.error

            logger.info(
                "Position conflict in column %r (attempt %d/%d)",
                column_key,
                attempt,
                self.max_attempts,
            )

        raise PersistenceConflictError(column_key, self.max_attempts)


class MoveService:
    """Moves cards to a new slot described by the cards around the drop point."""

    def __init__(
        self,
        session: Session,
        algebra: DecimalPosition | None = None,
        *,
        classifier: ConflictClassifier | None = None,
        max_retries: int | None = None,
        auto_rebalance: bool | None = None,
        listeners: list[MoveListener] | None = None,
    ) -> None:
        self.session = session
        self.algebra = algebra or DecimalPosition(settings.position_config)
        self.repo = CardRepository(session)
        self.rebalancer = PositionRebalancer(session, self.algebra)
        self.writer = PositionWriter(session, self.rebalancer, classifier, max_retries)
        self.auto_rebalance = settings.auto_rebalance if auto_rebalance is None else auto_rebalance
        self.listeners: list[MoveListener] = list(listeners or [])

    def add_listener(self, listener: MoveListener) -> None:
        """Register a callback invoked after every completed move."""
        self.listeners.append(listener)

    def move(
        self,
        card_id: int,
        target_column: str,
        after_card_id: int | None = None,
        before_card_id: int | None = None,
    ) -> MoveResult:
        """Place a card between two neighbours of the target column.

        Args:
            card_id: Card being moved.
            target_column: Column the card ends up in.
            after_card_id: Card directly above the drop point; None for the top.
            before_card_id: Card directly below the drop point; None for the bottom.

        Neighbours that no longer exist or left the target column count as absent.
        Retries re-read the column and close an open end with the card that now
        follows (or precedes) the remaining neighbour.

        Raises:
            CardNotFoundError: If ``card_id`` does not exist.
            InvalidBoundsError: If the neighbours are in inverted order.
            PersistenceConflictError: If the retry budget is exhausted.
        """

        def compute(attempt: int) -> str:
            self._load_card(card_id)
            lower = self._neighbour_position(after_card_id, target_column, card_id)
            upper = self._neighbour_position(before_card_id, target_column, card_id)
            if attempt > 1:
                lower, upper = self._close_open_ends(target_column, card_id, lower, upper)
            return self.algebra.calculate(lower, upper)

        def apply(position: str) -> Card:
            card = self._load_card(card_id)
            card.column_key = target_column
            card.position = position
            return card

        placement = self.writer.place(target_column, compute, apply)
        position = placement.value.position
        rebalanced = placement.rebalanced

        if self.auto_rebalance and self.rebalancer.needs_rebalancing(target_column):
            self.rebalancer.rebalance_column(target_column)
            rebalanced = True
            position = self._load_card(card_id).position

        if position is None:
            raise MoveError(f"Card {card_id} lost its position after the move")
        result = MoveResult(
            card_id=card_id,
            column_key=target_column,
            position=position,
            attempts=placement.attempts,
            rebalanced=rebalanced,
        )
        logger.debug(
            "Moved card %d to column %r at %s (%d attempt(s))",
            card_id,
            target_column,
            position,
            placement.attempts,
        )
        self._notify(result)
        return result

    def _load_card(self, card_id: int) -> Card:
        card = self.repo.get_by_id(card_id)
        if card is None:
            raise CardNotFoundError(card_id)
        return card

    def _neighbour_position(
        self, neighbour_id: int | None, column_key: str, card_id: int
    ) -> str | None:
        if neighbour_id is None or neighbour_id == card_id:
            return None
        return self.repo.position_in_column(neighbour_id, column_key)

    def _close_open_ends(
        self, column_key: str, card_id: int, lower: str | None, upper: str | None
    ) -> tuple[str | None, str | None]:
        if lower is None and upper is None:
            return self.repo.last_position(column_key, exclude_id=card_id), None
        if upper is None:
            return lower, self.repo.next_position(column_key, lower, exclude_id=card_id)
        if lower is None:
            return self.repo.previous_position(column_key, upper, exclude_id=card_id), upper
        return lower, upper

    def _notify(self, result: MoveResult) -> None:
        for listener in self.listeners:
            try:
                listener(result)
            except Exception:
                logger.warning("Move listener %r failed", listener, exc_info=True)


def get_move_service(session: Session) -> MoveService:
    """Return a move service bound to ``session`` with configured defaults."""
    return MoveService(session)
