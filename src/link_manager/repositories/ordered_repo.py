"""Data access helpers for rows kept in a user-defined order."""
from __future__ import annotations

from typing import Generic, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from link_manager.models.ordered import OrderedMixin

__all__ = ["OrderedRepository"]

ModelT = TypeVar("ModelT", bound=OrderedMixin)


class OrderedRepository(Generic[ModelT]):
    """Thin wrapper around database access for one ordered model.

    Every query is confined to a single scope (for example the categories of
    one project), since positions are only comparable inside their scope.
    """

    def __init__(self, session: Session, model: type[ModelT]) -> None:
        """Initialize the repository with a SQLAlchemy session and model class."""
        self.session = session
        self.model = model

    def _in_scope(self, scope_id: int, exclude_id: int | None = None):
        stmt = select(self.model).where(self.model.scope_column() == scope_id)
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        return stmt

    def get(self, item_id: int) -> ModelT | None:
        """Return a row by identifier."""
        return self.session.get(self.model, item_id)

    def list_ordered(self, scope_id: int) -> list[ModelT]:
        """Return the rows of a scope in display order."""
        result = self.session.execute(
            self._in_scope(scope_id).order_by(self.model.position)
        )
        return list(result.scalars())

    def keys(self, scope_id: int) -> list[str]:
        """Return the positions of a scope in display order."""
        result = self.session.execute(
            select(self.model.position)
            .where(self.model.scope_column() == scope_id)
            .order_by(self.model.position)
        )
        return list(result.scalars())

    def first(self, scope_id: int, exclude_id: int | None = None) -> ModelT | None:
        """Return the row sorted first, optionally ignoring one row."""
        result = self.session.execute(
            self._in_scope(scope_id, exclude_id).order_by(self.model.position).limit(1)
        )
        return result.scalars().first()

    def last(self, scope_id: int, exclude_id: int | None = None) -> ModelT | None:
        """Return the row sorted last, optionally ignoring one row."""
        result = self.session.execute(
            self._in_scope(scope_id, exclude_id)
            .order_by(self.model.position.desc())
            .limit(1)
        )
        return result.scalars().first()

    def key_before(
        self, scope_id: int, key: str, exclude_id: int | None = None
    ) -> str | None:
        """Return the nearest position below ``key``, if any."""
        result = self.session.execute(
            select(func.max(self.model.position)).where(
                self.model.scope_column() == scope_id,
                self.model.position < key,
                *self._exclusion(exclude_id),
            )
        )
        return result.scalar()

    def key_after(
        self, scope_id: int, key: str, exclude_id: int | None = None
    ) -> str | None:
        """Return the nearest position above ``key``, if any."""
        result = self.session.execute(
            select(func.min(self.model.position)).where(
                self.model.scope_column() == scope_id,
                self.model.position > key,
                *self._exclusion(exclude_id),
            )
        )
        return result.scalar()

    def _exclusion(self, exclude_id: int | None) -> list:
        if exclude_id is None:
            return []
        return [self.model.id != exclude_id]

    def max_key_length(self, scope_id: int) -> int:
        """Return the length of the longest position in a scope."""
        result = self.session.execute(
            select(func.max(func.length(self.model.position))).where(
                self.model.scope_column() == scope_id
            )
        )
        return result.scalar() or 0

    def scopes_needing_rebalance(self, threshold: int) -> list[int]:
        """Return the scopes holding at least one position longer than ``threshold``."""
        scope = self.model.scope_column()
        result = self.session.execute(
            select(scope)
            .where(func.length(self.model.position) > threshold)
            .distinct()
            .order_by(scope)
        )
        return list(result.scalars())
