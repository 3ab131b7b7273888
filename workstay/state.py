from typing import Optional

import redis.asyncio as redis
from motor.motor_asyncio import AsyncIOMotorDatabase

from workstay.bus import EventBus
from workstay.services.notifications import NotificationDispatcher
from workstay.storage import ObjectStore
from workstay.vision import SafeSearchClassifier

# Global runtime state initialized in lifespan
redis_client: Optional[redis.Redis] = None
event_bus: Optional[EventBus] = None
database: Optional[AsyncIOMotorDatabase] = None
object_store: Optional[ObjectStore] = None
classifier: Optional[SafeSearchClassifier] = None
dispatcher: Optional[NotificationDispatcher] = None
