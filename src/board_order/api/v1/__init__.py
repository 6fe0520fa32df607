# src/board_order/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import cards_router, columns_router, system_router

__all__ = [
    "cards_router",
    "columns_router",
    "system_router",
]
