from motor.motor_asyncio import AsyncIOMotorDatabase

from workstay.db.core import from_document, to_object_id, translate_errors
from workstay.db.schema import HOSTS
from workstay.models.host import Host

_OBJECT_ID_FIELDS = ("userId",)


def _load(doc: dict) -> Host:
    return Host.model_validate(from_document(doc, _OBJECT_ID_FIELDS))


class HostRepository:
    """Read access to hosts; host profile management lives elsewhere."""

    def __init__(self, database: AsyncIOMotorDatabase):
        self.collection = database[HOSTS]

    async def get_by_id(self, host_id: str) -> Host | None:
        oid = to_object_id(host_id, "host id")
        with translate_errors("hosts.get_by_id"):
            doc = await self.collection.find_one({"_id": oid})
        return _load(doc) if doc else None

    async def get_by_user_id(self, user_id: str) -> Host | None:
        oid = to_object_id(user_id, "user id")
        with translate_errors("hosts.get_by_user_id"):
            doc = await self.collection.find_one({"userId": oid})
        return _load(doc) if doc else None
