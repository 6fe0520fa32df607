# src/board_order/services/rebalancer.py
"""Gap maintenance for card columns.

Every split of an interval roughly halves the gap between two neighbours, so
about thirty splits at the same spot exhaust the distance the algebra
considers safe. The rebalancer resets a column to evenly spaced positions
without changing the order of its cards.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from board_order.core.position import DecimalPosition
from board_order.core.settings import settings
from board_order.repositories.card_repo import CardRepository
from board_order.services.diagnostics import PositionDiagnostics

logger = logging.getLogger(__name__)


class RepairStrategy(Enum):
    REGENERATE = "regenerate"
    FIX_MISSING = "fix_missing"


class PositionRebalancer:
    """Detects crowded columns and re-spaces them."""

    def __init__(self, session: Session, algebra: DecimalPosition | None = None) -> None:
        self.session = session
        self.algebra = algebra or DecimalPosition(settings.position_config)
        self.repo = CardRepository(session)

    def needs_rebalancing(self, column_key: str) -> bool:
        """Return True if any two adjacent cards of the column are too close."""
        positions = self.repo.column_positions(column_key)
        return any(
            self.algebra.needs_rebalancing(lower, upper)
            for lower, upper in zip(positions, positions[1:])
        )

    def rebalance_column(self, column_key: str) -> int:
        """Rewrite the column with evenly spaced positions and commit.

        Cards keep their display order: ascending position, ties by id, cards
        without a position last. The rewrite goes through temporary positions
        above every current and target value so no intermediate state breaks
        the unique constraint.

        Returns:
            Number of cards rewritten.
        """
        cards = self.repo.list_column(column_key)
        if not cards:
            return 0

        targets = self.algebra.generate_sequence(len(cards))
        occupied = [card.position for card in cards if card.position is not None]
        ceiling = max(self.algebra.to_decimal(value) for value in [targets[-1], *occupied])
        offset = max(ceiling, Decimal(0))

        for card, target in zip(cards, targets):
            card.position = self.algebra.normalize(offset + self.algebra.to_decimal(target))
        self.session.flush()

        for card, target in zip(cards, targets):
            card.position = target
        self.session.commit()

        logger.info("Rebalanced column %r: %d card(s) re-spaced", column_key, len(cards))
        return len(cards)

    def find_groups_needing_rebalancing(self) -> list[str]:
        """Return the column keys whose gaps are below the minimum."""
        return [key for key in self.repo.column_keys() if self.needs_rebalancing(key)]

    def rebalance_all(self) -> dict[str, int]:
        """Rebalance every flagged column; returns ``{column_key: rewritten}``."""
        return {
            column_key: self.rebalance_column(column_key)
            for column_key in self.find_groups_needing_rebalancing()
        }

    def get_gap_statistics(self, column_key: str) -> dict[str, Any]:
        """Summarize the gaps between adjacent cards of a column.

        Returns:
            ``count`` of positioned cards, ``min_gap``/``max_gap``/``avg_gap`` as
            position strings (None for fewer than two cards) and ``small_gaps``,
            the number of adjacent pairs closer than the minimum gap.
        """
        positions = self.repo.column_positions(column_key)
        stats: dict[str, Any] = {
            "count": len(positions),
            "min_gap": None,
            "max_gap": None,
            "avg_gap": None,
            "small_gaps": 0,
        }
        if len(positions) < 2:
            return stats

        gaps = [self.algebra.gap(lower, upper) for lower, upper in zip(positions, positions[1:])]
        stats["min_gap"] = min(gaps, key=self.algebra.to_decimal)
        stats["max_gap"] = max(gaps, key=self.algebra.to_decimal)
        stats["avg_gap"] = self.algebra.divide(self.algebra.sum_gaps(gaps), len(gaps))
        stats["small_gaps"] = sum(1 for gap in gaps if self.algebra.is_small_gap(gap))
        return stats

    def repair(
        self,
        dry_run: bool = False,
        strategy: RepairStrategy = RepairStrategy.REGENERATE,
        column_key: str | None = None,
    ) -> dict[str, int]:
        """Fix the columns the diagnostics report flags.

        ``REGENERATE`` rebalances each flagged column, which covers null
        positions, duplicates, inversions and small gaps. ``FIX_MISSING`` only
        places cards without a position, appending them after the last placed
        card of their column and leaving every other card untouched.

        Args:
            dry_run: Return the affected columns and card counts without writing.
            strategy: How affected columns are fixed.
            column_key: Limit the repair to this column.

        Returns:
            ``{column_key: cards changed (or to change)}``.
        """
        report = PositionDiagnostics(self.session, self.algebra).run()
        repaired: dict[str, int] = {}
        for group in report.groups:
            if column_key is not None and group.column_key != column_key:
                continue
            if strategy is RepairStrategy.FIX_MISSING:
                if not group.null_positions:
                    continue
                if dry_run:
                    repaired[group.column_key] = group.null_positions
                else:
                    repaired[group.column_key] = self.place_missing(group.column_key)
            elif group.needs_repair:
                if dry_run:
                    repaired[group.column_key] = group.count
                else:
                    repaired[group.column_key] = self.rebalance_column(group.column_key)
        return repaired

    def place_missing(self, column_key: str) -> int:
        """Append the column's unplaced cards after its last position and commit."""
        missing = [card for card in self.repo.list_column(column_key) if card.position is None]
        if not missing:
            return 0

        last = self.repo.last_position(column_key)
        if last is None:
            positions = self.algebra.generate_sequence(len(missing))
        else:
            positions = []
            for _ in missing:
                last = self.algebra.after(last)
                positions.append(last)
        for card, position in zip(missing, positions):
            card.position = position
        self.session.commit()

        logger.info("Placed %d card(s) without a position in column %r", len(missing), column_key)
        return len(missing)
