from datetime import datetime
from enum import StrEnum

from workstay.models.common import CamelModel, PageMeta


class NotificationType(StrEnum):
    APPLICATION_CREATED = "APPLICATION_CREATED"
    APPLICATION_STATUS_CHANGED = "APPLICATION_STATUS_CHANGED"


class Notification(CamelModel):
    id: str | None = None
    user_id: str
    type: NotificationType
    title: str
    message: str
    is_read: bool = False
    data: dict[str, str] = {}
    created_at: datetime | None = None


class NotificationMessage(CamelModel):
    """Queued delivery request.

    Either ``user_id`` is known up front, or ``host_id`` is set and the worker
    resolves the host's owning user before delivery.
    """

    type: NotificationType
    title: str
    message: str
    data: dict[str, str] = {}
    user_id: str | None = None
    host_id: str | None = None
    attempts: int = 0
    last_error: str | None = None


class NotificationListResponse(PageMeta):
    data: list[Notification]
    unread: int = 0
