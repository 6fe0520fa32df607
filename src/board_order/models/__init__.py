# src/board_order/models/__init__.py
"""SQLAlchemy models for the board-order application."""

from .card import POSITION_UNIQUE_CONSTRAINT, Card

__all__ = ["Card", "POSITION_UNIQUE_CONSTRAINT"]
