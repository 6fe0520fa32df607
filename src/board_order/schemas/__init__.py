# src/board_order/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .card import CardBulkCreate, CardCreate, CardMove, CardResponse, MoveResponse
from .column import GapStatistics, RebalanceResponse
from .diagnostics import ColumnReport, PositionIssue, PositionReport

__all__ = [
    "CardBulkCreate", "CardCreate", "CardMove", "CardResponse", "MoveResponse",
    "GapStatistics", "RebalanceResponse",
    "ColumnReport", "PositionIssue", "PositionReport",
]
