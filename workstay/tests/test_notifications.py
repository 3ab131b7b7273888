"""Tests for notification persistence, publishing and the delivery queue."""

import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
import redis.asyncio as redis

from conftest import new_id
from workstay.bus import EventBus
from workstay.errors import NotFoundError, PersistenceError
from workstay.models.host import Host
from workstay.models.notification import Notification, NotificationMessage, NotificationType
from workstay.services.notifications import NotificationDispatcher, NotificationService


def _stored(notification: Notification) -> Notification:
    return notification.model_copy(update={"id": new_id(), "created_at": datetime.now(UTC)})


@pytest.fixture
def notification_repo():
    repo = MagicMock()
    repo.create = AsyncMock(side_effect=_stored)
    repo.list_by_user = AsyncMock(return_value=([], 0))
    repo.count_unread = AsyncMock(return_value=0)
    repo.mark_as_read = AsyncMock(return_value=True)
    repo.mark_all_as_read = AsyncMock(return_value=0)
    return repo


@pytest.fixture
def hosts():
    h = MagicMock()
    h.get_by_id = AsyncMock(return_value=None)
    return h


def _message(**kwargs) -> NotificationMessage:
    defaults = {
        "type": NotificationType.APPLICATION_CREATED,
        "title": "New application received",
        "message": "You have received a new application for Organic farm helper",
        "data": {"applicationId": "a1"},
    }
    defaults.update(kwargs)
    return NotificationMessage(**defaults)


class TestNotificationService:
    @pytest.mark.asyncio
    async def test_send_persists_and_publishes(self, fake_redis, notification_repo):
        bus = EventBus(fake_redis)
        user_id = new_id()
        pubsub = fake_redis.pubsub()
        await pubsub.subscribe(EventBus.notification_channel(user_id))
        await pubsub.get_message(timeout=1)  # subscribe confirmation

        service = NotificationService(notification_repo, bus)
        notification = await service.send(user_id, NotificationType.APPLICATION_CREATED, "t", "m", {"k": "v"})

        assert notification.user_id == user_id
        msg = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1)
        assert msg is not None
        event = json.loads(msg["data"])
        assert event["type"] == "notification"
        assert event["id"] == notification.id
        assert event["notification_type"] == "APPLICATION_CREATED"
        assert event["data"] == {"k": "v"}
        await pubsub.aclose()

    @pytest.mark.asyncio
    async def test_publish_failure_is_not_raised(self, notification_repo):
        bus = MagicMock()
        bus.publish_notification = AsyncMock(side_effect=redis.ConnectionError("down"))
        service = NotificationService(notification_repo, bus)

        notification = await service.send(new_id(), NotificationType.APPLICATION_CREATED, "t", "m")
        assert notification.id is not None

    @pytest.mark.asyncio
    async def test_list_includes_unread(self, notification_repo):
        notification_repo.count_unread.return_value = 4
        notification_repo.list_by_user.return_value = ([], 10)
        service = NotificationService(notification_repo)

        page = await service.list_for_user(new_id(), limit=5, offset=10)
        assert page.unread == 4
        assert page.total == 10
        assert page.has_more is False

    @pytest.mark.asyncio
    async def test_mark_unknown_as_read(self, notification_repo):
        notification_repo.mark_as_read.return_value = False
        service = NotificationService(notification_repo)
        with pytest.raises(NotFoundError):
            await service.mark_as_read(new_id(), new_id())


class TestDispatcher:
    @pytest.fixture
    def delivery(self):
        service = MagicMock()
        service.send = AsyncMock(side_effect=lambda user_id, *args: Notification(
            id=new_id(), user_id=user_id, type=args[0], title=args[1], message=args[2]
        ))
        return service

    @pytest.fixture
    def dispatcher(self, fake_redis, delivery, hosts, notification_settings):
        return NotificationDispatcher(fake_redis, delivery, hosts, notification_settings)

    @pytest.mark.asyncio
    async def test_enqueue_pushes_to_queue(self, dispatcher, fake_redis):
        assert await dispatcher.enqueue(_message(user_id=new_id())) is True
        assert await fake_redis.llen("test:notifications") == 1

    @pytest.mark.asyncio
    async def test_enqueue_failure_returns_false(self, delivery, hosts, notification_settings):
        broken = MagicMock()
        broken.lpush = AsyncMock(side_effect=redis.ConnectionError("down"))
        dispatcher = NotificationDispatcher(broken, delivery, hosts, notification_settings)

        assert await dispatcher.enqueue(_message(user_id=new_id())) is False

    @pytest.mark.asyncio
    async def test_host_message_delivered_to_owner(self, dispatcher, delivery, hosts):
        owner = new_id()
        host_id = new_id()
        hosts.get_by_id.return_value = Host(id=host_id, user_id=owner)
        await dispatcher.enqueue(_message(host_id=host_id))

        assert await dispatcher.process_one(timeout=1) is True

        hosts.get_by_id.assert_awaited_once_with(host_id)
        assert delivery.send.await_args.args[0] == owner

    @pytest.mark.asyncio
    async def test_failed_delivery_requeued_with_attempt(self, dispatcher, delivery, fake_redis):
        delivery.send.side_effect = PersistenceError()
        await dispatcher.enqueue(_message(user_id=new_id()))

        await dispatcher.process_one(timeout=1)

        raw = await fake_redis.rpop("test:notifications")
        requeued = NotificationMessage.model_validate_json(raw)
        assert requeued.attempts == 1
        assert requeued.last_error
        assert await fake_redis.llen("test:notifications:dead") == 0

    @pytest.mark.asyncio
    async def test_exhausted_message_dead_lettered(self, dispatcher, delivery, fake_redis):
        delivery.send.side_effect = PersistenceError()
        await dispatcher.enqueue(_message(user_id=new_id()))

        for _ in range(3):
            await dispatcher.process_one(timeout=1)

        assert await fake_redis.llen("test:notifications") == 0
        dead = NotificationMessage.model_validate_json(await fake_redis.rpop("test:notifications:dead"))
        assert dead.attempts == 3
        assert delivery.send.await_count == 3

    @pytest.mark.asyncio
    async def test_unknown_host_dead_lettered_immediately(self, dispatcher, delivery, fake_redis):
        await dispatcher.enqueue(_message(host_id=new_id()))

        await dispatcher.process_one(timeout=1)

        delivery.send.assert_not_awaited()
        assert await fake_redis.llen("test:notifications") == 0
        assert await fake_redis.llen("test:notifications:dead") == 1

    @pytest.mark.asyncio
    async def test_malformed_payload_dead_lettered(self, dispatcher, fake_redis):
        await fake_redis.lpush("test:notifications", "{not json")

        await dispatcher.process_one(timeout=1)

        assert await fake_redis.lrange("test:notifications:dead", 0, -1) == ["{not json"]

    @pytest.mark.asyncio
    async def test_empty_queue(self, delivery, hosts, notification_settings):
        client = MagicMock()
        client.brpop = AsyncMock(return_value=None)
        dispatcher = NotificationDispatcher(client, delivery, hosts, notification_settings)

        assert await dispatcher.process_one() is False
        client.brpop.assert_awaited_once_with(["test:notifications"], timeout=1)
