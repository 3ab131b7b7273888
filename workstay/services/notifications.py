"""In-app notifications and the outbound delivery queue.

Request handlers never deliver notifications themselves. They push a
``NotificationMessage`` onto a Redis list and return; a small pool of worker
tasks pops messages, resolves the recipient and delivers them. A failed
delivery is re-queued with its attempt counter bumped until
``max_attempts`` is reached, after which the message lands on the
dead-letter list.
"""

import asyncio
import logging

import pydantic
import redis.asyncio as redis

from workstay.bus import EventBus
from workstay.config import NotificationSettings
from workstay.db.hosts import HostRepository
from workstay.db.notifications import NotificationRepository
from workstay.errors import NotFoundError, ValidationError
from workstay.events import NotificationEvent
from workstay.models.notification import (
    Notification,
    NotificationListResponse,
    NotificationMessage,
    NotificationType,
)

logger = logging.getLogger("workstay.notifications")


class NotificationService:
    def __init__(self, repo: NotificationRepository, bus: EventBus | None = None):
        self.repo = repo
        self.bus = bus

    async def send(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        data: dict[str, str] | None = None,
    ) -> Notification:
        """Persist a notification for ``user_id`` and publish it for live clients.

        The stored record is authoritative; a failed publish is only logged.
        """
        notification = await self.repo.create(
            Notification(user_id=user_id, type=type, title=title, message=message, data=data or {})
        )
        if self.bus is not None:
            event: NotificationEvent = {
                "type": "notification",
                "id": notification.id or "",
                "notification_type": str(notification.type),
                "title": notification.title,
                "message": notification.message,
                "data": notification.data,
                "created_at": notification.created_at.isoformat() if notification.created_at else "",
            }
            try:
                await self.bus.publish_notification(user_id, event)
            except redis.RedisError as e:
                logger.warning("notification.publish failed user=%s id=%s err=%r", user_id, notification.id, e)
        return notification

    async def list_for_user(self, user_id: str, limit: int, offset: int) -> NotificationListResponse:
        items, total = await self.repo.list_by_user(user_id, limit, offset)
        unread = await self.repo.count_unread(user_id)
        return NotificationListResponse(
            data=items,
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(items) < total,
            unread=unread,
        )

    async def mark_as_read(self, notification_id: str, user_id: str) -> None:
        if not await self.repo.mark_as_read(notification_id, user_id):
            raise NotFoundError(detail="notification not found", resource_id=notification_id)

    async def mark_all_as_read(self, user_id: str) -> int:
        return await self.repo.mark_all_as_read(user_id)


class NotificationDispatcher:
    """Redis-list backed queue in front of ``NotificationService``."""

    def __init__(
        self,
        redis_client: redis.Redis,
        service: NotificationService,
        hosts: HostRepository,
        settings: NotificationSettings,
    ):
        self.redis_client = redis_client
        self.service = service
        self.hosts = hosts
        self.queue_key = settings.queue_key
        self.dead_letter_key = settings.dead_letter_key
        self.max_attempts = settings.max_attempts
        self.workers = settings.workers
        self.poll_timeout_sec = settings.poll_timeout_sec

    async def enqueue(self, message: NotificationMessage) -> bool:
        """Queue a message for delivery. Never raises; returns False if it could not be queued."""
        try:
            await self.redis_client.lpush(self.queue_key, message.model_dump_json(by_alias=True))
        except redis.RedisError as e:
            logger.error(
                "notification.enqueue failed type=%s user=%s host=%s err=%r",
                message.type,
                message.user_id,
                message.host_id,
                e,
            )
            return False
        return True

    async def resolve_recipient(self, message: NotificationMessage) -> str:
        if message.user_id:
            return message.user_id
        if not message.host_id:
            raise ValidationError(detail="notification has no recipient")
        host = await self.hosts.get_by_id(message.host_id)
        if host is None:
            raise NotFoundError(detail="host not found", resource_id=message.host_id)
        return host.user_id

    async def deliver(self, message: NotificationMessage) -> Notification:
        user_id = await self.resolve_recipient(message)
        return await self.service.send(user_id, message.type, message.title, message.message, message.data)

    async def _dead_letter(self, payload: str) -> None:
        await self.redis_client.lpush(self.dead_letter_key, payload)

    async def process_one(self, timeout: int | None = None) -> bool:
        """Pop and handle a single message. Returns False when the queue stayed empty."""
        item = await self.redis_client.brpop([self.queue_key], timeout=self.poll_timeout_sec if timeout is None else timeout)
        if item is None:
            return False
        _, raw = item

        try:
            message = NotificationMessage.model_validate_json(raw)
        except pydantic.ValidationError as e:
            logger.error("notification.malformed payload=%r err=%s", raw, e)
            await self._dead_letter(raw)
            return True

        try:
            notification = await self.deliver(message)
        except (NotFoundError, ValidationError) as e:
            # The recipient cannot be resolved; retrying will not help.
            failed = message.model_copy(update={"attempts": message.attempts + 1, "last_error": e.detail})
            logger.error("notification.undeliverable type=%s host=%s err=%s", message.type, message.host_id, e.detail)
            await self._dead_letter(failed.model_dump_json(by_alias=True))
            return True
        except Exception as e:
            failed = message.model_copy(update={"attempts": message.attempts + 1, "last_error": repr(e)})
            if failed.attempts >= self.max_attempts:
                logger.error(
                    "notification.dead_letter type=%s attempts=%d err=%r",
                    message.type,
                    failed.attempts,
                    e,
                )
                await self._dead_letter(failed.model_dump_json(by_alias=True))
            else:
                logger.warning(
                    "notification.retry type=%s attempt=%d/%d err=%r",
                    message.type,
                    failed.attempts,
                    self.max_attempts,
                    e,
                )
                await self.redis_client.lpush(self.queue_key, failed.model_dump_json(by_alias=True))
            return True

        logger.info("notification.delivered id=%s user=%s type=%s", notification.id, notification.user_id, notification.type)
        return True

    async def run(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                await self.process_one()
            except redis.RedisError as e:
                logger.warning("notification.worker redis error err=%r", e)
                await asyncio.sleep(1)

    def start_workers(self, stop_event: asyncio.Event) -> list[asyncio.Task]:
        return [asyncio.create_task(self.run(stop_event)) for _ in range(self.workers)]
