# src/link_manager/services/__init__.py
"""Ordering services for the Link Manager."""

from .ordering import InvalidOrderError
from .position_service import PositionConflictError, PositionService

__all__ = [
    "InvalidOrderError",
    "PositionConflictError",
    "PositionService",
]
