"""
Event bus for realtime delivery, backed by Redis pub/sub.
"""
import json
from typing import Final

import redis.asyncio as redis

from workstay.events import NotificationEvent

CHANNEL_NOTIFICATIONS_PREFIX: Final[str] = "notifications:"


class EventBus:
    def __init__(self, redis_client: redis.Redis):
        self.redis_client = redis_client

    @staticmethod
    def notification_channel(user_id: str) -> str:
        return f"{CHANNEL_NOTIFICATIONS_PREFIX}{user_id}"

    async def publish_notification(self, user_id: str, event: NotificationEvent) -> None:
        await self.redis_client.publish(self.notification_channel(user_id), json.dumps(event))
