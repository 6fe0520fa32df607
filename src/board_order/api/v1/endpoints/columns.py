"""Column endpoints: listing and gap maintenance."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from board_order.db.session import get_db
from board_order.models import Card
from board_order.repositories.card_repo import CardRepository
from board_order.schemas.card import CardResponse
from board_order.schemas.column import GapStatistics, RebalanceResponse
from board_order.services.rebalancer import PositionRebalancer

router = APIRouter(prefix="/columns", tags=["columns"])
SessionDep = Annotated[Session, Depends(get_db)]


def get_rebalancer_dep(db: SessionDep) -> PositionRebalancer:
    """Get PositionRebalancer dependency for dependency injection."""
    return PositionRebalancer(db)


RebalancerDep = Annotated[PositionRebalancer, Depends(get_rebalancer_dep)]


@router.get("/{column_key}/cards", response_model=list[CardResponse])
async def list_column_cards(column_key: str, db: SessionDep) -> list[Card]:
    """List the cards of a column in display order."""
    return CardRepository(db).list_column(column_key)


@router.get("/{column_key}/gap-stats", response_model=GapStatistics)
async def column_gap_statistics(column_key: str, rebalancer: RebalancerDep) -> GapStatistics:
    """Summarize the spacing between adjacent cards."""
    stats = rebalancer.get_gap_statistics(column_key)
    return GapStatistics(column_key=column_key, **stats)


@router.post("/rebalance", response_model=RebalanceResponse)
async def rebalance_all_columns(rebalancer: RebalancerDep) -> RebalanceResponse:
    """Rebalance every column that has gaps below the minimum."""
    return RebalanceResponse(rebalanced=rebalancer.rebalance_all())


@router.post("/{column_key}/rebalance", response_model=RebalanceResponse)
async def rebalance_column(column_key: str, rebalancer: RebalancerDep) -> RebalanceResponse:
    """Re-space a column unconditionally."""
    return RebalanceResponse(rebalanced={column_key: rebalancer.rebalance_column(column_key)})
