"""Shared column definitions for rows kept in a user-defined order."""

from datetime import UTC, datetime
from typing import ClassVar

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

# Order keys must sort byte-wise; locale collations reorder them.
POSITION_TYPE = Text().with_variant(Text(collation="C"), "postgresql")


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


class OrderedMixin:
    """Columns common to every ordered collection row.

    Subclasses name the column that scopes their key space in
    ``__order_scope__`` and their plural collection name in
    ``__collection_name__``; positions are only comparable within one scope.
    """

    __order_scope__: ClassVar[str]
    __collection_name__: ClassVar[str]

    # Opaque order key produced by link_manager.services.ordering.
    position: Mapped[str] = mapped_column(POSITION_TYPE, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    @classmethod
    def scope_column(cls):
        """Return the mapped column that scopes this model's key space."""
        return getattr(cls, cls.__order_scope__)

    def scope_value(self) -> int:
        """Return the collection identifier this row belongs to."""
        return getattr(self, self.__order_scope__)
