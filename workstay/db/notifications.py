from datetime import UTC, datetime

from motor.motor_asyncio import AsyncIOMotorDatabase

from workstay.db.core import from_document, to_document, to_object_id, translate_errors
from workstay.db.schema import NOTIFICATIONS
from workstay.models.notification import Notification

_OBJECT_ID_FIELDS = ("userId",)


def _load(doc: dict) -> Notification:
    return Notification.model_validate(from_document(doc, _OBJECT_ID_FIELDS))


class NotificationRepository:
    def __init__(self, database: AsyncIOMotorDatabase):
        self.collection = database[NOTIFICATIONS]

    async def create(self, notification: Notification) -> Notification:
        notification = notification.model_copy(update={"created_at": datetime.now(UTC)})
        with translate_errors("notifications.create"):
            res = await self.collection.insert_one(to_document(notification, _OBJECT_ID_FIELDS))
        return notification.model_copy(update={"id": str(res.inserted_id)})

    async def list_by_user(self, user_id: str, limit: int, offset: int) -> tuple[list[Notification], int]:
        query = {"userId": to_object_id(user_id, "user id")}
        with translate_errors("notifications.list_by_user"):
            total = await self.collection.count_documents(query)
            cursor = self.collection.find(query).sort("createdAt", -1).skip(offset).limit(limit)
            docs = await cursor.to_list(length=limit)
        return [_load(d) for d in docs], total

    async def count_unread(self, user_id: str) -> int:
        query = {"userId": to_object_id(user_id, "user id"), "isRead": False}
        with translate_errors("notifications.count_unread"):
            return await self.collection.count_documents(query)

    async def mark_as_read(self, notification_id: str, user_id: str) -> bool:
        query = {
            "_id": to_object_id(notification_id, "notification id"),
            "userId": to_object_id(user_id, "user id"),
        }
        with translate_errors("notifications.mark_as_read"):
            res = await self.collection.update_one(query, {"$set": {"isRead": True}})
        return res.matched_count > 0

    async def mark_all_as_read(self, user_id: str) -> int:
        query = {"userId": to_object_id(user_id, "user id"), "isRead": False}
        with translate_errors("notifications.mark_all_as_read"):
            res = await self.collection.update_many(query, {"$set": {"isRead": True}})
        return res.modified_count
