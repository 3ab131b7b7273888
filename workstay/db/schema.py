"""Collection names and index management.

Indexes are created at startup and ``create_index`` is idempotent, so this can
run on every boot.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, GEOSPHERE, TEXT, IndexModel

logger = logging.getLogger(__name__)

OPPORTUNITIES = "opportunities"
APPLICATIONS = "applications"
HOSTS = "hosts"
IMAGES = "images"
NOTIFICATIONS = "notifications"
STORAGE_MOVES = "storage_moves"

INDEXES: dict[str, list[IndexModel]] = {
    OPPORTUNITIES: [
        IndexModel([("location.coordinates", GEOSPHERE)]),
        IndexModel(
            [
                ("title", TEXT),
                ("description", TEXT),
                ("shortDescription", TEXT),
                ("location.city", TEXT),
                ("location.country", TEXT),
            ],
            name="opportunity_text",
        ),
        IndexModel([("slug", ASCENDING)], unique=True),
        IndexModel([("publicId", ASCENDING)], unique=True),
        IndexModel([("hostId", ASCENDING)]),
        IndexModel([("status", ASCENDING), ("createdAt", DESCENDING)]),
        IndexModel([("type", ASCENDING)]),
        IndexModel([("location.city", ASCENDING)]),
        IndexModel([("location.country", ASCENDING)]),
    ],
    APPLICATIONS: [
        IndexModel([("userId", ASCENDING), ("createdAt", DESCENDING)]),
        IndexModel([("hostId", ASCENDING), ("status", ASCENDING)]),
        IndexModel([("opportunityId", ASCENDING)]),
    ],
    HOSTS: [
        IndexModel([("userId", ASCENDING)]),
        IndexModel([("slug", ASCENDING)], unique=True),
    ],
    IMAGES: [
        IndexModel([("userId", ASCENDING)]),
        IndexModel([("gcsPath", ASCENDING)], unique=True),
        IndexModel([("status", ASCENDING), ("createdAt", DESCENDING)]),
    ],
    NOTIFICATIONS: [
        IndexModel([("userId", ASCENDING), ("createdAt", DESCENDING)]),
        IndexModel([("userId", ASCENDING), ("isRead", ASCENDING)]),
    ],
    STORAGE_MOVES: [
        IndexModel([("phase", ASCENDING), ("createdAt", ASCENDING)]),
        IndexModel([("key", ASCENDING)]),
    ],
}


async def ensure_indexes(database: AsyncIOMotorDatabase) -> int:
    """Create every declared index. Returns the number of index specs applied."""
    applied = 0
    for collection, models in INDEXES.items():
        names = await database[collection].create_indexes(models)
        applied += len(names)
        logger.debug("Indexes ensured on %s: %s", collection, ", ".join(names))
    logger.info("Ensured %d indexes across %d collections", applied, len(INDEXES))
    return applied
