# src/link_manager/models/__init__.py
"""SQLAlchemy models for the Link Manager."""

from .category import Category
from .link import Link
from .ordered import OrderedMixin
from .project import Project

__all__ = [
    "Category",
    "Link",
    "OrderedMixin",
    "Project",
]
