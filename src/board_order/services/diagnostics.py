"""Read-only diagnostics over stored card positions."""

from __future__ import annotations

import logging

from sqlalchemy import String, inspect
from sqlalchemy.orm import Session

from board_order.core.position import DecimalPosition
from board_order.core.settings import settings
from board_order.models.card import Card
from board_order.repositories.card_repo import CardRepository
from board_order.schemas.diagnostics import ColumnReport, PositionIssue, PositionReport

logger = logging.getLogger(__name__)

MAX_EXAMPLES = 3


class PositionDiagnostics:
    """Scans every column for ordering anomalies.

    Nothing here is needed for correct moves; the report exists so operators can
    spot damaged data (for example rows imported from another system) and decide
    whether to run a repair.
    """

    def __init__(self, session: Session, algebra: DecimalPosition | None = None) -> None:
        self.session = session
        self.algebra = algebra or DecimalPosition(settings.position_config)
        self.repo = CardRepository(session)

    def run(self) -> PositionReport:
        """Build the full report."""
        column_type, storage_issue = self.check_storage_type()
        report = PositionReport(position_column_type=column_type)
        if storage_issue is not None:
            report.issues.append(storage_issue)

        for column_key in self.repo.column_keys():
            group, issues = self.check_column(column_key)
            report.groups.append(group)
            report.issues.extend(issues)

        logger.info(
            "Position diagnostics: %d column(s), %d issue(s)",
            len(report.groups),
            len(report.issues),
        )
        return report

    def check_storage_type(self) -> tuple[str, PositionIssue | None]:
        """Verify the position column sorts numerically rather than by collation."""
        columns = inspect(self.session.get_bind()).get_columns(Card.__tablename__)
        column = next(col for col in columns if col["name"] == "position")
        column_type = column["type"]
        if isinstance(column_type, String):
            return str(column_type), PositionIssue(
                type="storage_type",
                severity="critical",
                count=1,
                detail=(
                    f"position is stored as {column_type}; string ordering depends on "
                    "collation and breaks once integer parts differ in length"
                ),
            )
        return str(column_type), None

    def check_column(self, column_key: str) -> tuple[ColumnReport, list[PositionIssue]]:
        """Inspect one column and return its summary plus any issues."""
        positions = self.repo.column_positions(column_key)
        nulls = self.repo.count_null_positions(column_key)
        duplicates = self.repo.duplicate_positions(column_key)

        inversions: list[str] = []
        gaps: list[str] = []
        for lower, upper in zip(positions, positions[1:]):
            if self.algebra.greater_than(lower, upper):
                inversions.append(f"{lower} sorted before {upper}")
            else:
                gaps.append(self.algebra.gap(lower, upper))
        # Zero gaps are duplicates and reported as such.
        zero = self.algebra.normalize(0)
        small_gaps = [gap for gap in gaps if gap != zero and self.algebra.is_small_gap(gap)]

        group = ColumnReport(
            column_key=column_key,
            count=len(positions) + nulls,
            null_positions=nulls,
            duplicate_values=len(duplicates),
            duplicate_cards=sum(duplicates.values()),
            inversions=len(inversions),
            small_gaps=len(small_gaps),
            min_gap=min(gaps, key=self.algebra.to_decimal) if gaps else None,
        )

        issues: list[PositionIssue] = []
        if inversions:
            issues.append(
                PositionIssue(
                    type="inversion",
                    severity="high",
                    column_key=column_key,
                    count=len(inversions),
                    detail="database order disagrees with decimal order",
                    examples=inversions[:MAX_EXAMPLES],
                )
            )
        if duplicates:
            issues.append(
                PositionIssue(
                    type="duplicate",
                    severity="medium",
                    column_key=column_key,
                    count=sum(duplicates.values()),
                    detail=f"{len(duplicates)} position value(s) shared by several cards",
                    examples=list(duplicates)[:MAX_EXAMPLES],
                )
            )
        if small_gaps:
            issues.append(
                PositionIssue(
                    type="small_gap",
                    severity="low",
                    column_key=column_key,
                    count=len(small_gaps),
                    detail=f"gaps below {self.algebra.normalize(self.algebra.config.min_gap)}",
                    examples=small_gaps[:MAX_EXAMPLES],
                )
            )
        if nulls:
            issues.append(
                PositionIssue(
                    type="null",
                    severity="low",
                    column_key=column_key,
                    count=nulls,
                    detail="cards without a position",
                )
            )
        return group, issues
