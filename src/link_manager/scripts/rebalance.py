# src/link_manager/scripts/rebalance.py
"""Compact order keys that grew past the rebalance threshold.

Dense reordering in one spot makes keys longer; this job finds every
collection holding an overlong key and gives its rows fresh, short keys.
Run it periodically or after bulk imports.
"""

from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.orm import Session

from link_manager.core.logging import setup_logging
from link_manager.core.settings import settings
from link_manager.db.session import SessionLocal, create_tables
from link_manager.models import Category, Link, Project
from link_manager.models.ordered import OrderedMixin
from link_manager.schemas.ordering import RebalanceResult
from link_manager.services.position_service import PositionService

logger = logging.getLogger(__name__)

COLLECTIONS: dict[str, type[OrderedMixin]] = {
    "projects": Project,
    "categories": Category,
    "links": Link,
}


def rebalance_collection(
    db: Session,
    collection: str,
    *,
    threshold: int,
    spacing: int,
    dry_run: bool = False,
) -> list[RebalanceResult]:
    """Rebalance every scope of ``collection`` holding an overlong key.

    Args:
        db: Database session; committed unless ``dry_run`` is set.
        collection: One of ``projects``, ``categories`` or ``links``.
        threshold: Keys longer than this mark their scope for rebalancing.
        spacing: Density knob passed to the key generator.
        dry_run: Report the new keys without writing them.

    Returns:
        One result per rebalanced scope.
    """
    service = PositionService(db, COLLECTIONS[collection], threshold=threshold, spacing=spacing)
    results = [
        service.rebalance_scope(scope_id, dry_run=dry_run)
        for scope_id in service.repo.scopes_needing_rebalance(service.threshold)
    ]
    if not dry_run:
        db.commit()
    logger.info(
        "%s %d %s scope(s)",
        "Checked" if dry_run else "Rebalanced",
        len(results),
        collection,
    )
    return results


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``link-manager-rebalance`` console script."""
    parser = argparse.ArgumentParser(description="Rebalance overlong order keys")
    parser.add_argument(
        "--collection",
        choices=sorted(COLLECTIONS),
        action="append",
        help="Collection to scan; repeatable (defaults to all).",
    )
    parser.add_argument(
        "--threshold",
        type=int,
        default=settings.ordering_rebalance_threshold,
        help="Rebalance scopes holding keys longer than this.",
    )
    parser.add_argument(
        "--spacing",
        type=int,
        default=settings.ordering_rebalance_spacing,
        help="Gap between consecutive generated keys.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the new keys without writing them.",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create missing tables before scanning.",
    )
    args = parser.parse_args(argv)

    setup_logging()
    if args.create_tables:
        create_tables()

    db = SessionLocal()
    try:
        for collection in args.collection or sorted(COLLECTIONS):
            for result in rebalance_collection(
                db,
                collection,
                threshold=args.threshold,
                spacing=args.spacing,
                dry_run=args.dry_run,
            ):
                print(result.model_dump_json())
    except Exception as exc:
        logger.error("Rebalance failed: %s", exc, exc_info=True)
        db.rollback()
        return 1
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
