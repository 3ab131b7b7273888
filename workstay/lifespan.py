"""Application startup and shutdown.

``setup_resources`` opens every shared client, publishes them on
``workstay.state`` and starts the notification workers;
``cleanup_resources`` undoes all of it in reverse.
"""

import asyncio
import logging
from dataclasses import dataclass, field

import redis.asyncio as redis
from google.api_core import exceptions as gcp_exceptions
from google.auth import exceptions as auth_exceptions
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
from redis.asyncio import BlockingConnectionPool as RedisConnectionPool

from workstay import db, state
from workstay.bus import EventBus
from workstay.config import Settings
from workstay.db.hosts import HostRepository
from workstay.db.notifications import NotificationRepository
from workstay.services.notifications import NotificationDispatcher, NotificationService
from workstay.storage import ObjectStore
from workstay.vision import SafeSearchClassifier

logger = logging.getLogger(__name__)

WORKER_SHUTDOWN_TIMEOUT_SEC = 10


@dataclass
class LifespanResources:
    """Container for resources initialized during lifespan."""

    redis_client: redis.Redis | None = None
    event_bus: EventBus | None = None
    database: AsyncIOMotorDatabase | None = None
    object_store: ObjectStore | None = None
    classifier: SafeSearchClassifier | None = None
    dispatcher: NotificationDispatcher | None = None
    stop_event: asyncio.Event | None = None
    background_tasks: list[asyncio.Task] = field(default_factory=list)


def init_redis(settings: Settings) -> redis.Redis:
    pool = RedisConnectionPool(
        host=settings.redis.host,
        port=settings.redis.port,
        password=settings.redis.password if settings.redis.password else None,
        max_connections=settings.redis.max_connections,
        timeout=settings.redis.pool_timeout_sec,
        socket_timeout=settings.redis.socket_timeout,
        decode_responses=True,
    )
    return redis.Redis(connection_pool=pool)


async def init_database(settings: Settings) -> AsyncIOMotorDatabase:
    database = db.init_client(settings.mongo)
    if settings.features.ensure_indexes:
        try:
            await db.ensure_indexes(database)
        except PyMongoError as e:
            logger.warning("Failed to ensure indexes: %s", e)
    return database


def init_object_store(settings: Settings) -> ObjectStore | None:
    try:
        return ObjectStore.from_settings(settings.gcp)
    except auth_exceptions.DefaultCredentialsError as e:
        logger.warning("Object store disabled, no GCP credentials: %s", e)
        return None


def init_classifier(settings: Settings) -> SafeSearchClassifier | None:
    if not settings.features.vision:
        logger.info("Vision classification disabled; uploads wait for manual review")
        return None
    try:
        return SafeSearchClassifier.create()
    except (auth_exceptions.DefaultCredentialsError, gcp_exceptions.GoogleAPIError) as e:
        logger.warning("Vision classifier unavailable, uploads wait for manual review: %s", e)
        return None


async def setup_resources(settings: Settings) -> LifespanResources:
    """Set up all shared resources and start background workers."""
    resources = LifespanResources()

    resources.redis_client = init_redis(settings)
    resources.event_bus = EventBus(resources.redis_client)
    resources.database = await init_database(settings)
    resources.object_store = init_object_store(settings)
    resources.classifier = init_classifier(settings)

    notifications = NotificationService(NotificationRepository(resources.database), resources.event_bus)
    resources.dispatcher = NotificationDispatcher(
        resources.redis_client,
        notifications,
        HostRepository(resources.database),
        settings.notifications,
    )
    if settings.features.notification_worker:
        resources.stop_event = asyncio.Event()
        resources.background_tasks = resources.dispatcher.start_workers(resources.stop_event)
        logger.info("Started %d notification workers", len(resources.background_tasks))

    state.redis_client = resources.redis_client
    state.event_bus = resources.event_bus
    state.database = resources.database
    state.object_store = resources.object_store
    state.classifier = resources.classifier
    state.dispatcher = resources.dispatcher

    return resources


async def cleanup_resources(resources: LifespanResources) -> None:
    if resources.background_tasks and resources.stop_event:
        resources.stop_event.set()
        try:
            await asyncio.wait_for(
                asyncio.gather(*resources.background_tasks, return_exceptions=True),
                timeout=WORKER_SHUTDOWN_TIMEOUT_SEC,
            )
        except asyncio.TimeoutError:
            for t in resources.background_tasks:
                t.cancel()

    if resources.database is not None:
        db.close_client()

    if resources.redis_client:
        await resources.redis_client.aclose()

    state.redis_client = None
    state.event_bus = None
    state.database = None
    state.object_store = None
    state.classifier = None
    state.dispatcher = None
