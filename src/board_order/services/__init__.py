# src/board_order/services/__init__.py
"""Business logic services for ordering cards."""

from .cards import CardService
from .conflicts import ConflictClassifier, get_conflict_classifier
from .diagnostics import PositionDiagnostics
from .move import CardNotFoundError, MoveError, MoveResult, MoveService, PersistenceConflictError
from .rebalancer import PositionRebalancer, RepairStrategy

__all__ = [
    "CardService",
    "ConflictClassifier",
    "get_conflict_classifier",
    "PositionDiagnostics",
    "MoveService",
    "MoveResult",
    "MoveError",
    "CardNotFoundError",
    "PersistenceConflictError",
    "PositionRebalancer",
    "RepairStrategy",
]
