"""Ordering policy for persisted collections.

``PositionService`` is the bridge between the pure key allocator in
:mod:`link_manager.services.ordering` and the database. It reads the
neighbors of the slot an item should occupy, asks the allocator for a key,
and writes it inside a SAVEPOINT. Two writers that read the same neighbors
compute the same key; the unique ``(scope, position)`` constraint rejects
the second one, which then re-reads its neighbors and tries again.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Final, Generic, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from link_manager.core.settings import settings
from link_manager.models.ordered import OrderedMixin
from link_manager.repositories.ordered_repo import OrderedRepository
from link_manager.schemas.ordering import Placement, RebalanceResult
from link_manager.services import ordering
from link_manager.services.ordering import InvalidOrderError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=OrderedMixin)
Bounds = tuple[str | None, str | None]

# Sorts above every key over a..z, so staged keys never collide with live ones.
_STAGING_PREFIX: Final[str] = "~"


class PositionConflictError(RuntimeError):
    """Raised when a placement keeps colliding with concurrent writers."""


class PositionService(Generic[ModelT]):
    """Place, move and rebalance the rows of one ordered model."""

    def __init__(
        self,
        session: Session,
        model: type[ModelT],
        *,
        threshold: int | None = None,
        spacing: int | None = None,
        max_retries: int | None = None,
    ) -> None:
        """Bind the service to a session and model.

        Args:
            session: Session used for reads and writes; the caller commits.
            model: Ordered model class, e.g. ``Category``.
            threshold: Key length that triggers a rebalance of the scope.
            spacing: Density knob handed to :func:`ordering.rebalance`.
            max_retries: Placement attempts before giving up.
        """
        self.session = session
        self.model = model
        self.repo: OrderedRepository[ModelT] = OrderedRepository(session, model)
        self.threshold = (
            threshold if threshold is not None else settings.ordering_rebalance_threshold
        )
        self.spacing = spacing if spacing is not None else settings.ordering_rebalance_spacing
        self.max_retries = max(
            1, max_retries if max_retries is not None else settings.ordering_max_retries
        )
        if self.threshold <= 0:
            self.threshold = ordering.DEFAULT_REBALANCE_THRESHOLD
        if self.spacing <= 0:
            self.spacing = ordering.DEFAULT_REBALANCE_SPACING

    # --- Placement ------------------------------------------------------------------
    def append(self, item: ModelT) -> str:
        """Put ``item`` after every other row of its scope and return its key.

        ``item`` may be new (not yet flushed) or an existing row being moved.
        """
        scope_id = item.scope_value()

        def bounds() -> Bounds:
            last = self.repo.last(scope_id, exclude_id=item.id)
            return (last.position if last is not None else None), None

        return self._place(item, bounds)

    def prepend(self, item: ModelT) -> str:
        """Put ``item`` before every other row of its scope and return its key."""
        scope_id = item.scope_value()

        def bounds() -> Bounds:
            head = self.repo.first(scope_id, exclude_id=item.id)
            return None, (head.position if head is not None else None)

        return self._place(item, bounds)

    def move_before(self, item: ModelT, anchor: ModelT) -> str:
        """Put ``item`` directly before ``anchor`` and return its key."""
        self._check_anchor(item, anchor)
        scope_id = item.scope_value()

        def bounds() -> Bounds:
            after = anchor.position
            return self.repo.key_before(scope_id, after, exclude_id=item.id), after

        return self._place(item, bounds, anchor=anchor)

    def move_after(self, item: ModelT, anchor: ModelT) -> str:
        """Put ``item`` directly after ``anchor`` and return its key."""
        self._check_anchor(item, anchor)
        scope_id = item.scope_value()

        def bounds() -> Bounds:
            before = anchor.position
            return before, self.repo.key_after(scope_id, before, exclude_id=item.id)

        return self._place(item, bounds, anchor=anchor)

    def place(self, item: ModelT, placement: Placement) -> str:
        """Apply a validated placement request to ``item``.

        Raises:
            LookupError: If the anchor row does not exist.
        """
        if placement.before_id is not None:
            return self.move_before(item, self._require(placement.before_id))
        if placement.after_id is not None:
            return self.move_after(item, self._require(placement.after_id))
        return self.append(item)

    def _require(self, item_id: int) -> ModelT:
        anchor = self.repo.get(item_id)
        if anchor is None:
            raise LookupError(f"{self.model.__name__} {item_id} not found")
        return anchor

    def _check_anchor(self, item: ModelT, anchor: ModelT) -> None:
        if item is anchor or (item.id is not None and item.id == anchor.id):
            raise ValueError("An item cannot be positioned relative to itself")
        if anchor.position is None:
            raise ValueError("Anchor item has no position yet")
        if item.scope_value() != anchor.scope_value():
            raise ValueError(
                f"Anchor belongs to {self.model.__order_scope__}={anchor.scope_value()}, "
                f"item to {item.scope_value()}"
            )

    def _place(
        self,
        item: ModelT,
        bounds: Callable[[], Bounds],
        anchor: ModelT | None = None,
    ) -> str:
        """Run the read-allocate-write loop for one placement."""
        scope_id = item.scope_value()
        for attempt in range(1, self.max_retries + 1):
            if attempt > 1 and anchor is not None:
                self.session.refresh(anchor, ["position"])
            with self.session.no_autoflush:
                before, after = bounds()

            current = item.position
            if current is not None and item.id is not None and _fits(current, before, after):
                return current

            try:
                key = ordering.between(before, after)
            except InvalidOrderError as exc:
                if before is None and after is not None:
                    # Nothing sorts below the head; it gives up its key instead.
                    if self._take_head_key(item, scope_id):
                        return self._after_write(item, scope_id)
                elif before is not None and after is not None and before >= after:
                    logger.warning(
                        "Stale neighbors for %s in %s=%s (attempt %d/%d): %s",
                        self.model.__name__,
                        self.model.__order_scope__,
                        scope_id,
                        attempt,
                        self.max_retries,
                        exc,
                    )
                else:
                    logger.info(
                        "No key space left in %s=%s; rebalancing before retry",
                        self.model.__order_scope__,
                        scope_id,
                    )
                    self.rebalance_scope(scope_id)
                continue

            if self._write(item, key, scope_id, attempt):
                return self._after_write(item, scope_id)

        raise PositionConflictError(
            f"Could not position {self.model.__name__} in "
            f"{self.model.__order_scope__}={scope_id} after {self.max_retries} attempts"
        )

    def _write(self, item: ModelT, key: str, scope_id: int, attempt: int) -> bool:
        try:
            with self.session.begin_nested():
                self.session.add(item)
                item.position = key
                self.session.flush()
        except IntegrityError as exc:
            logger.warning(
                "Key %r already taken in %s=%s (attempt %d/%d): %s",
                key,
                self.model.__order_scope__,
                scope_id,
                attempt,
                self.max_retries,
                exc.orig,
            )
            return False
        logger.debug(
            "Positioned %s %s at %r in %s=%s",
            self.model.__name__,
            item.id,
            key,
            self.model.__order_scope__,
            scope_id,
        )
        return True

    def _take_head_key(self, item: ModelT, scope_id: int) -> bool:
        """Give ``item`` the head's key and move the head one step forward."""
        with self.session.no_autoflush:
            head = self.repo.first(scope_id, exclude_id=item.id)
            if head is None:
                return False
            head_key = head.position
            next_key = self.repo.key_after(scope_id, head_key, exclude_id=item.id)
        try:
            shifted = ordering.between(head_key, next_key)
        except InvalidOrderError:
            self.rebalance_scope(scope_id)
            return False
        try:
            with self.session.begin_nested():
                # Park the item first; its old key may be the one the head moves to.
                self.session.add(item)
                item.position = _STAGING_PREFIX + head_key
                self.session.flush()
                head.position = shifted
                self.session.flush()
                item.position = head_key
                self.session.flush()
        except IntegrityError as exc:
            logger.warning("Head key %r changed concurrently: %s", head_key, exc.orig)
            return False
        logger.debug(
            "Shifted head %s %s to %r to make room at the front",
            self.model.__name__,
            head.id,
            shifted,
        )
        return True

    def _after_write(self, item: ModelT, scope_id: int) -> str:
        if ordering.needs_rebalance(item.position, self.threshold):
            self.rebalance_scope(scope_id)
        return item.position

    # --- Rebalancing ----------------------------------------------------------------
    def rebalance_scope(self, scope_id: int, *, dry_run: bool = False) -> RebalanceResult:
        """Replace every key of a scope with fresh, evenly spaced keys.

        Rows are re-keyed in two flushes: first to staging keys above the
        alphabet, then to their final keys. The unique position constraint
        therefore holds after every single UPDATE.

        Args:
            scope_id: Identifier of the collection to compact.
            dry_run: Compute the mapping without writing it.

        Returns:
            The old-to-new key mapping for the scope.
        """
        with self.session.no_autoflush:
            items = self.repo.list_ordered(scope_id)
        mapping = ordering.rebalance([item.position for item in items], self.spacing)
        result = RebalanceResult(
            collection=self.model.__collection_name__,
            scope_id=scope_id,
            mapping=mapping,
            dry_run=dry_run,
        )
        if dry_run or result.changed == 0:
            return result

        moves = [
            (item, mapping[item.position])
            for item in items
            if mapping[item.position] != item.position
        ]
        with self.session.begin_nested():
            for item, new_key in moves:
                item.position = _STAGING_PREFIX + new_key
            self.session.flush()
            for item, new_key in moves:
                item.position = new_key
            self.session.flush()

        logger.info(
            "Rebalanced %d of %d keys in %s %s=%s",
            result.changed,
            len(items),
            result.collection,
            self.model.__order_scope__,
            scope_id,
        )
        return result


def _fits(key: str, before: str | None, after: str | None) -> bool:
    """Return True if ``key`` already sorts strictly between the bounds."""
    return (before is None or before < key) and (after is None or key < after)
