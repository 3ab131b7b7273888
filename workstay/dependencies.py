"""Dependency injection for FastAPI endpoints.

Resources opened in the lifespan (the event bus, the MongoDB database,
the object store, the classifier and the notification dispatcher) are
exposed through small getters, and each service is assembled per request
from those resources and the relevant settings section.

Usage in controllers:
    from workstay.dependencies import Applications

    @router.get("/applications/{application_id}")
    async def get_application(application_id: str, service: Applications):
        return await service.get(application_id)
"""

from typing import Annotated

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from workstay import state
from workstay.bus import EventBus
from workstay.config import Settings, get_settings
from workstay.db.applications import ApplicationRepository
from workstay.db.hosts import HostRepository
from workstay.db.images import ImageRepository, StorageMoveJournal
from workstay.db.notifications import NotificationRepository
from workstay.db.opportunities import OpportunityRepository
from workstay.errors import ServiceUnavailableError
from workstay.services.applications import ApplicationService
from workstay.services.images import ImageService
from workstay.services.notifications import NotificationDispatcher, NotificationService
from workstay.services.opportunities import OpportunityService
from workstay.storage import ObjectStore
from workstay.vision import SafeSearchClassifier


def get_app_settings() -> Settings:
    return get_settings()


def get_optional_event_bus() -> EventBus | None:
    return state.event_bus


def get_database() -> AsyncIOMotorDatabase:
    """Get the MongoDB database handle.

    Raises:
        ServiceUnavailableError: If the database client is not initialized.
    """
    if state.database is None:
        raise ServiceUnavailableError(detail="Database not initialized")
    return state.database


def get_object_store() -> ObjectStore:
    if state.object_store is None:
        raise ServiceUnavailableError(detail="Object store not initialized")
    return state.object_store


def get_classifier() -> SafeSearchClassifier | None:
    # No classifier means every upload waits for manual review.
    return state.classifier


def get_dispatcher() -> NotificationDispatcher | None:
    return state.dispatcher


AppSettings = Annotated[Settings, Depends(get_app_settings)]
OptionalBus = Annotated[EventBus | None, Depends(get_optional_event_bus)]
Database = Annotated[AsyncIOMotorDatabase, Depends(get_database)]
Store = Annotated[ObjectStore, Depends(get_object_store)]
Classifier = Annotated[SafeSearchClassifier | None, Depends(get_classifier)]
Dispatcher = Annotated[NotificationDispatcher | None, Depends(get_dispatcher)]


def get_opportunity_service(database: Database) -> OpportunityService:
    return OpportunityService(OpportunityRepository(database), HostRepository(database))


def get_application_service(database: Database, dispatcher: Dispatcher) -> ApplicationService:
    return ApplicationService(
        ApplicationRepository(database),
        OpportunityRepository(database),
        HostRepository(database),
        dispatcher=dispatcher,
    )


def get_image_service(
    database: Database,
    store: Store,
    classifier: Classifier,
    settings: AppSettings,
) -> ImageService:
    return ImageService(
        ImageRepository(database),
        store,
        StorageMoveJournal(database),
        classifier,
        settings.gcp,
        settings.image,
    )


def get_notification_service(database: Database, bus: OptionalBus) -> NotificationService:
    return NotificationService(NotificationRepository(database), bus)


Opportunities = Annotated[OpportunityService, Depends(get_opportunity_service)]
Applications = Annotated[ApplicationService, Depends(get_application_service)]
Images = Annotated[ImageService, Depends(get_image_service)]
Notifications = Annotated[NotificationService, Depends(get_notification_service)]
