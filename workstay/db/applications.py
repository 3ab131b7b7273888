from datetime import UTC, datetime
from typing import Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from workstay.db.core import from_document, to_document, to_object_id, translate_errors
from workstay.db.schema import APPLICATIONS
from workstay.models.application import Application, ApplicationStatus

_OBJECT_ID_FIELDS = ("userId", "opportunityId", "hostId")


def _load(doc: dict) -> Application:
    return Application.model_validate(from_document(doc, _OBJECT_ID_FIELDS))


def build_list_query(
    user_id: str | None = None,
    host_id: str | None = None,
    opportunity_id: str | None = None,
    status: ApplicationStatus | None = None,
) -> dict[str, Any]:
    query: dict[str, Any] = {}
    if user_id:
        query["userId"] = to_object_id(user_id, "user id")
    if host_id:
        query["hostId"] = to_object_id(host_id, "host id")
    if opportunity_id:
        query["opportunityId"] = to_object_id(opportunity_id, "opportunity id")
    if status:
        query["status"] = str(status)
    return query


class ApplicationRepository:
    def __init__(self, database: AsyncIOMotorDatabase):
        self.collection = database[APPLICATIONS]

    async def create(self, application: Application) -> Application:
        now = datetime.now(UTC)
        application = application.model_copy(update={"created_at": now, "updated_at": now})
        with translate_errors("applications.create"):
            res = await self.collection.insert_one(to_document(application, _OBJECT_ID_FIELDS))
        return application.model_copy(update={"id": str(res.inserted_id)})

    async def get_by_id(self, application_id: str) -> Application | None:
        oid = to_object_id(application_id, "application id")
        with translate_errors("applications.get_by_id"):
            doc = await self.collection.find_one({"_id": oid})
        return _load(doc) if doc else None

    async def list_page(self, query: dict[str, Any], limit: int, offset: int) -> tuple[list[Application], int]:
        with translate_errors("applications.list"):
            total = await self.collection.count_documents(query)
            cursor = self.collection.find(query).sort("createdAt", -1).skip(offset).limit(limit)
            docs = await cursor.to_list(length=limit)
        return [_load(d) for d in docs], total

    async def count_created_since(self, since: datetime) -> int:
        with translate_errors("applications.count_created_since"):
            return await self.collection.count_documents({"createdAt": {"$gte": since}})

    async def update_status(
        self,
        application_id: str,
        expected_status: ApplicationStatus,
        new_status: ApplicationStatus,
        note: str,
    ) -> datetime | None:
        """Set status and note only if the stored status is still ``expected_status``.

        Returns the new ``updatedAt`` on success, ``None`` when the precondition
        no longer holds (record gone or changed by someone else).
        """
        oid = to_object_id(application_id, "application id")
        now = datetime.now(UTC)
        with translate_errors("applications.update_status"):
            res = await self.collection.update_one(
                {"_id": oid, "status": str(expected_status)},
                {"$set": {"status": str(new_status), "statusNote": note, "updatedAt": now}},
            )
        return now if res.matched_count else None

    async def delete(self, application_id: str) -> bool:
        oid = to_object_id(application_id, "application id")
        with translate_errors("applications.delete"):
            res = await self.collection.delete_one({"_id": oid})
        return res.deleted_count > 0
