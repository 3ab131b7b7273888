from typing import Literal, TypedDict


class NotificationEvent(TypedDict):
    type: Literal["notification"]
    id: str
    notification_type: str
    title: str
    message: str
    data: dict[str, str]
    created_at: str
