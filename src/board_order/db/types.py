# src/board_order/db/types.py
"""Column types for database models."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from sqlalchemy import Float, Numeric
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine

from board_order.core.position import DecimalPosition, PositionConfig

# Digits of the integer part kept by NUMERIC columns.
POSITION_INTEGER_DIGITS = 28


class PositionType(TypeDecorator[str]):
    """Stores fixed-scale position strings in a numerically ordered column.

    PostgreSQL and MySQL get ``NUMERIC(38, 10)``. SQLite has no exact decimal
    type, so positions are kept as REAL there: ordering stays numeric and
    values up to about 1e5 round-trip exactly at scale 10. The Python side
    always sees the canonical string form.
    """

    impl = Numeric
    cache_ok = True

    def __init__(self, scale: int = 10) -> None:
        super().__init__(precision=POSITION_INTEGER_DIGITS + scale, scale=scale)
        self.scale = scale
        self._algebra = DecimalPosition(PositionConfig(scale=scale))

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if dialect.name == "sqlite":
            return dialect.type_descriptor(Float(asdecimal=False))
        return dialect.type_descriptor(
            Numeric(precision=POSITION_INTEGER_DIGITS + self.scale, scale=self.scale)
        )

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        number = Decimal(self._algebra.normalize(value))
        if dialect.name == "sqlite":
            return float(number)
        return number

    def process_result_value(self, value: Any, dialect: Dialect) -> str | None:
        if value is None:
            return None
        return self._algebra.normalize(value)
