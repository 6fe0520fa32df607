"""System and diagnostics endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from board_order.core.settings import settings
from board_order.db.session import get_db
from board_order.schemas.diagnostics import PositionReport
from board_order.services.diagnostics import PositionDiagnostics

router = APIRouter(prefix="/system", tags=["system"])
SessionDep = Annotated[Session, Depends(get_db)]


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of runtime configuration.

    Connection strings are excluded.
    """
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.app_version,
            "debug": settings.debug,
        },
        "positions": {
            "default_gap": str(settings.position_default_gap),
            "min_gap": str(settings.position_min_gap),
            "scale": settings.position_scale,
            "jitter_ratio": str(settings.position_jitter_ratio),
        },
        "moves": {
            "max_retries": settings.move_max_retries,
            "auto_rebalance": settings.auto_rebalance,
        },
    }


@router.get("/diagnostics", response_model=PositionReport)
async def get_diagnostics(db: SessionDep) -> PositionReport:
    """Run the read-only position diagnostics over every column."""
    return PositionDiagnostics(db).run()
