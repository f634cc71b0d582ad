# src/link_manager/schemas/__init__.py
"""Pydantic schemas describing ordering requests and results."""

from .ordering import CollectionName, Placement, RebalanceResult

__all__ = ["CollectionName", "Placement", "RebalanceResult"]
