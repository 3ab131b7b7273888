from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from workstay.db.core import from_document, to_document, to_object_id, translate_errors
from workstay.db.schema import IMAGES, STORAGE_MOVES
from workstay.models.image import Image, ImageStatus

_OBJECT_ID_FIELDS = ("userId",)


def _load(doc: dict) -> Image:
    return Image.model_validate(from_document(doc, _OBJECT_ID_FIELDS))


class ImageRepository:
    def __init__(self, database: AsyncIOMotorDatabase):
        self.collection = database[IMAGES]

    async def create(self, image: Image) -> Image:
        now = datetime.now(UTC)
        image = image.model_copy(update={"created_at": now, "updated_at": now})
        with translate_errors("images.create"):
            res = await self.collection.insert_one(to_document(image, _OBJECT_ID_FIELDS))
        return image.model_copy(update={"id": str(res.inserted_id)})

    async def get_by_id(self, image_id: str) -> Image | None:
        oid = to_object_id(image_id, "image id")
        with translate_errors("images.get_by_id"):
            doc = await self.collection.find_one({"_id": oid})
        return _load(doc) if doc else None

    async def get_by_key(self, key: str) -> Image | None:
        with translate_errors("images.get_by_key"):
            doc = await self.collection.find_one({"gcsPath": key})
        return _load(doc) if doc else None

    async def update_status(self, image_id: str, status: ImageStatus, public_url: str) -> datetime:
        oid = to_object_id(image_id, "image id")
        now = datetime.now(UTC)
        with translate_errors("images.update_status"):
            await self.collection.update_one(
                {"_id": oid},
                {"$set": {"status": str(status), "publicUrl": public_url, "updatedAt": now}},
            )
        return now

    async def count_by_status(self, status: ImageStatus) -> int:
        with translate_errors("images.count_by_status"):
            return await self.collection.count_documents({"status": str(status)})

    async def list_by_status(self, status: ImageStatus, limit: int, offset: int) -> tuple[list[Image], int]:
        query = {"status": str(status)}
        with translate_errors("images.list_by_status"):
            total = await self.collection.count_documents(query)
            cursor = self.collection.find(query).sort("createdAt", -1).skip(offset).limit(limit)
            docs = await cursor.to_list(length=limit)
        return [_load(d) for d in docs], total


class MovePhase(StrEnum):
    STARTED = "STARTED"
    COPIED = "COPIED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class StorageMoveJournal:
    """Durable record of every cross-bucket move.

    A move that never reaches COMPLETED may have left the object in both
    buckets (or, after a failed copy, still only in the source).
    """

    def __init__(self, database: AsyncIOMotorDatabase):
        self.collection = database[STORAGE_MOVES]

    async def start(self, key: str, source_bucket: str, destination_bucket: str, image_id: str | None) -> str:
        now = datetime.now(UTC)
        doc = {
            "key": key,
            "sourceBucket": source_bucket,
            "destinationBucket": destination_bucket,
            "imageId": image_id,
            "phase": MovePhase.STARTED.value,
            "error": None,
            "createdAt": now,
            "updatedAt": now,
        }
        with translate_errors("storage_moves.start"):
            res = await self.collection.insert_one(doc)
        return str(res.inserted_id)

    async def mark(self, move_id: str, phase: MovePhase, error: str | None = None) -> None:
        update: dict[str, Any] = {"phase": phase.value, "updatedAt": datetime.now(UTC)}
        if error is not None:
            update["error"] = error
        with translate_errors("storage_moves.mark"):
            await self.collection.update_one({"_id": to_object_id(move_id, "move id")}, {"$set": update})

    async def list_unfinished(self, older_than: datetime, limit: int = 500) -> list[dict[str, Any]]:
        query = {
            "phase": {"$in": [MovePhase.STARTED.value, MovePhase.COPIED.value]},
            "updatedAt": {"$lt": older_than},
        }
        with translate_errors("storage_moves.list_unfinished"):
            docs = await self.collection.find(query).sort("createdAt", 1).limit(limit).to_list(length=limit)
        return [from_document(d) for d in docs]
