"""
Batch job reconciling interrupted image moves.

Moving an image between the private and public buckets is a copy followed
by a delete. Each move is journaled in ``storage_moves``; a move that never
reached COMPLETED may have left the object in both buckets, or in the bucket
its image status does not allow. This job walks unfinished moves older than
a grace period and puts every object back in the bucket implied by the
stored image status (private when no image record exists):

- in both buckets: delete the copy outside the target bucket
- only in the target bucket: nothing to move, only the journal is stale
- only in the other bucket: copy it back into the target, then delete it
- in neither: logged as missing

The move is marked COMPLETED when the object ends up in the move's
destination and FAILED otherwise.

Usage:
    python -m workstay.batch.reconcile_images [--older-than-minutes N] [--limit N] [--dry-run]
"""

import argparse
import asyncio
import logging
import os
import sys
from collections import Counter
from datetime import UTC, datetime, timedelta
from typing import Any

# Add parent directory to path for imports when running as script
if __name__ == "__main__":
    sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(__file__))))

from workstay import db
from workstay.config import get_settings
from workstay.db.images import ImageRepository, MovePhase, StorageMoveJournal
from workstay.models.image import Image
from workstay.services.moderation import BucketPair
from workstay.storage import ObjectStore

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


async def find_image(move: dict[str, Any], images: ImageRepository) -> Image | None:
    # Uploads are journaled before the image record exists, so fall back to the key.
    if move.get("imageId"):
        image = await images.get_by_id(move["imageId"])
        if image is not None:
            return image
    return await images.get_by_key(move["key"])


async def reconcile_move(
    move: dict[str, Any],
    store: ObjectStore,
    journal: StorageMoveJournal,
    images: ImageRepository,
    buckets: BucketPair,
    dry_run: bool = False,
) -> str:
    """Bring one unfinished move to a terminal phase. Returns the outcome label."""
    key = move["key"]
    image = await find_image(move, images)
    target = buckets.for_status(image.status) if image is not None else buckets.private
    other = buckets.public if target == buckets.private else buckets.private

    in_target = await store.exists(target, key)
    in_other = await store.exists(other, key)

    if in_target and in_other:
        outcome = "duplicate_removed"
    elif in_target:
        outcome = "in_place"
    elif in_other:
        outcome = "restored"
    else:
        outcome = "missing"

    logger.info(
        "move=%s key=%s image=%s status=%s target=%s(%s) other=%s(%s) -> %s",
        move["id"],
        key,
        image.id if image else None,
        image.status if image else None,
        target,
        in_target,
        other,
        in_other,
        outcome,
    )
    if dry_run:
        return outcome

    if outcome == "missing":
        logger.error("Object missing from both buckets key=%s image=%s", key, move.get("imageId"))
        await journal.mark(move["id"], MovePhase.FAILED, error="object missing from both buckets")
        return outcome

    if outcome == "restored":
        await store.copy(other, key, target, key)
    if outcome in ("restored", "duplicate_removed"):
        await store.delete(other, key)

    if target == move["destinationBucket"]:
        await journal.mark(move["id"], MovePhase.COMPLETED)
    else:
        await journal.mark(move["id"], MovePhase.FAILED, error=f"reverted, object kept in {target}")
    return outcome


async def run_batch_job(older_than_minutes: int = 15, limit: int = 500, dry_run: bool = False) -> dict[str, Any]:
    logger.info(
        "Starting image reconciliation (older_than=%dm, limit=%d, dry_run=%s)",
        older_than_minutes,
        limit,
        dry_run,
    )
    settings = get_settings()
    database = db.init_client(settings.mongo)
    store = ObjectStore.from_settings(settings.gcp)
    journal = StorageMoveJournal(database)
    images = ImageRepository(database)
    buckets = BucketPair(public=settings.gcp.public_bucket, private=settings.gcp.private_bucket)

    started = datetime.now(UTC)
    outcomes: Counter[str] = Counter()
    try:
        moves = await journal.list_unfinished(started - timedelta(minutes=older_than_minutes), limit=limit)
        logger.info("Found %d unfinished moves", len(moves))
        for move in moves:
            outcomes[await reconcile_move(move, store, journal, images, buckets, dry_run=dry_run)] += 1
    finally:
        db.close_client()

    summary = {
        "job_started_at": started.isoformat(),
        "job_completed_at": datetime.now(UTC).isoformat(),
        "dry_run": dry_run,
        "moves_examined": sum(outcomes.values()),
        "outcomes": dict(outcomes),
    }
    logger.info("Reconciliation completed: %s", summary)
    return summary


def main() -> None:
    """CLI entry point for the batch job."""
    parser = argparse.ArgumentParser(
        description="Reconcile interrupted image moves between storage buckets.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--older-than-minutes",
        type=int,
        default=15,
        help="Only consider moves idle for at least this long (default: 15)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=500,
        help="Maximum number of moves to examine (default: 500)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would be done without touching buckets or the journal",
    )
    args = parser.parse_args()

    asyncio.run(run_batch_job(older_than_minutes=args.older_than_minutes, limit=args.limit, dry_run=args.dry_run))


if __name__ == "__main__":
    main()
