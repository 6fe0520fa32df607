"""Card endpoints: creation, lookup and moves."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from board_order.core.position import PositionError
from board_order.db.session import get_db
from board_order.models import Card
from board_order.schemas.card import (
    CardBulkCreate,
    CardCreate,
    CardMove,
    CardResponse,
    MoveResponse,
)
from board_order.services.cards import CardService, get_card_service
from board_order.services.move import (
    CardNotFoundError,
    MoveResult,
    MoveService,
    PersistenceConflictError,
    get_move_service,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cards", tags=["cards"])
SessionDep = Annotated[Session, Depends(get_db)]


def get_card_service_dep(db: SessionDep) -> CardService:
    """Get CardService dependency for dependency injection."""
    return get_card_service(db)


def get_move_service_dep(db: SessionDep) -> MoveService:
    """Get MoveService dependency for dependency injection."""
    return get_move_service(db)


CardServiceDep = Annotated[CardService, Depends(get_card_service_dep)]
MoveServiceDep = Annotated[MoveService, Depends(get_move_service_dep)]


def _conflict(exc: PersistenceConflictError) -> HTTPException:
    logger.warning("%s", exc)
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Position conflict persisted; reload the column and try again",
    )


@router.post("/", response_model=CardResponse, status_code=status.HTTP_201_CREATED)
async def create_card(card_data: CardCreate, cards: CardServiceDep) -> Card:
    """Append a card to the end of a column."""
    try:
        return cards.create_card(card_data.column_key, card_data.title, card_data.payload)
    except PersistenceConflictError as exc:
        raise _conflict(exc) from exc


@router.post("/bulk", response_model=list[CardResponse], status_code=status.HTTP_201_CREATED)
async def bulk_create_cards(batch: CardBulkCreate, cards: CardServiceDep) -> list[Card]:
    """Insert several cards at one drop point, keeping their order."""
    try:
        return cards.bulk_create(
            batch.column_key,
            batch.titles,
            after_card_id=batch.after_card_id,
            before_card_id=batch.before_card_id,
        )
    except PositionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except PersistenceConflictError as exc:
        raise _conflict(exc) from exc


@router.get("/{card_id}", response_model=CardResponse)
async def get_card(card_id: int, cards: CardServiceDep) -> Card:
    """Get a specific card by ID."""
    try:
        return cards.get_card(card_id)
    except CardNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Card not found"
        ) from exc


@router.post("/{card_id}/move", response_model=MoveResponse)
async def move_card(card_id: int, move: CardMove, mover: MoveServiceDep) -> MoveResult:
    """Move a card between two neighbours of the target column.

    Returns 404 for an unknown card, 400 when the neighbours are in inverted
    order and 409 when concurrent writers kept taking the computed slot.
    """
    try:
        return mover.move(
            card_id,
            move.target_column,
            after_card_id=move.after_card_id,
            before_card_id=move.before_card_id,
        )
    except CardNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Card not found"
        ) from exc
    except PositionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except PersistenceConflictError as exc:
        raise _conflict(exc) from exc
