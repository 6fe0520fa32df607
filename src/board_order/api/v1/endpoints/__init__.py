# src/board_order/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .cards import router as cards_router
from .columns import router as columns_router
from .system import router as system_router

__all__ = [
    "cards_router",
    "columns_router",
    "system_router",
]
