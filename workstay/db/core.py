"""Core MongoDB client management and document helpers."""

import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError, PyMongoError

from workstay.config import MongoSettings
from workstay.errors import ConflictError, PersistenceError, ValidationError

_logger = logging.getLogger(__name__)

# Global client, opened in lifespan
_client: AsyncIOMotorClient | None = None


def init_client(settings: MongoSettings) -> AsyncIOMotorDatabase:
    """Create the shared client (connections are opened lazily by the driver)."""
    global _client
    if _client is None:
        _client = AsyncIOMotorClient(
            settings.uri,
            serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
            maxPoolSize=settings.max_pool_size,
            tz_aware=True,
        )
        _logger.info(
            "MongoDB client initialized (database=%s, max_pool_size=%d)",
            settings.database,
            settings.max_pool_size,
        )
    return _client[settings.database]


def close_client() -> None:
    global _client
    if _client is not None:
        _client.close()
        _client = None
        _logger.info("MongoDB client closed")


def get_client() -> AsyncIOMotorClient | None:
    return _client


def to_object_id(value: str | ObjectId, field: str = "id") -> ObjectId:
    """Parse a hex id, rejecting malformed input as a validation error."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise ValidationError(detail=f"malformed {field}", value=str(value)) from e


@contextmanager
def translate_errors(operation: str) -> Iterator[None]:
    """Map driver exceptions onto the API error taxonomy."""
    try:
        yield
    except DuplicateKeyError as e:
        raise ConflictError(detail="a record with the same unique key already exists", operation=operation) from e
    except PyMongoError as e:
        _logger.error("mongo operation failed op=%s err=%r", operation, e)
        raise PersistenceError(operation=operation, reason=str(e)) from e


def to_document(model: BaseModel, object_id_fields: Iterable[str] = ()) -> dict[str, Any]:
    doc = model.model_dump(by_alias=True, exclude={"id"})
    for field in object_id_fields:
        if doc.get(field):
            doc[field] = to_object_id(doc[field], field)
    return doc


def from_document(doc: dict[str, Any], object_id_fields: Iterable[str] = ()) -> dict[str, Any]:
    out = dict(doc)
    if "_id" in out:
        out["id"] = str(out.pop("_id"))
    for field in object_id_fields:
        if isinstance(out.get(field), ObjectId):
            out[field] = str(out[field])
    return out


__all__ = [
    "close_client",
    "from_document",
    "get_client",
    "init_client",
    "to_document",
    "to_object_id",
    "translate_errors",
]
