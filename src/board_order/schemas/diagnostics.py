# src/board_order/schemas/diagnostics.py
"""Pydantic schemas for the position diagnostics report."""

from typing import Literal

from pydantic import BaseModel, Field, computed_field

Severity = Literal["critical", "high", "medium", "low"]
IssueType = Literal["storage_type", "inversion", "duplicate", "null", "small_gap"]


class PositionIssue(BaseModel):
    """A single anomaly found while scanning positions."""

    type: IssueType
    severity: Severity
    column_key: str | None = None
    count: int = 0
    detail: str = ""
    examples: list[str] = Field(default_factory=list)


class ColumnReport(BaseModel):
    """Position health of one column."""

    column_key: str
    count: int
    null_positions: int = 0
    duplicate_values: int = 0
    duplicate_cards: int = 0
    inversions: int = 0
    small_gaps: int = 0
    min_gap: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def needs_repair(self) -> bool:
        return bool(
            self.null_positions or self.duplicate_values or self.inversions or self.small_gaps
        )


class PositionReport(BaseModel):
    """Read-only summary of every column, intended for operators."""

    position_column_type: str
    groups: list[ColumnReport] = Field(default_factory=list)
    issues: list[PositionIssue] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def healthy(self) -> bool:
        return not self.issues
