# src/board_order/schemas/column.py
"""Column maintenance schemas."""

from pydantic import BaseModel


class GapStatistics(BaseModel):
    """Gap summary of one column."""

    column_key: str
    count: int
    min_gap: str | None = None
    max_gap: str | None = None
    avg_gap: str | None = None
    small_gaps: int = 0


class RebalanceResponse(BaseModel):
    """Cards rewritten per rebalanced column."""

    rebalanced: dict[str, int]
