from workstay.db.applications import ApplicationRepository, build_list_query
from workstay.db.core import close_client, get_client, init_client, to_object_id
from workstay.db.hosts import HostRepository
from workstay.db.images import ImageRepository, MovePhase, StorageMoveJournal
from workstay.db.notifications import NotificationRepository
from workstay.db.opportunities import OpportunityRepository
from workstay.db.schema import ensure_indexes

__all__ = [
    "ApplicationRepository",
    "HostRepository",
    "ImageRepository",
    "MovePhase",
    "NotificationRepository",
    "OpportunityRepository",
    "StorageMoveJournal",
    "build_list_query",
    "close_client",
    "ensure_indexes",
    "get_client",
    "init_client",
    "to_object_id",
]
