from typing import Dict

import redis.asyncio as redis
from fastapi import APIRouter
from pymongo.errors import PyMongoError

from workstay import state

router = APIRouter()


@router.get("/health")
async def health() -> Dict[str, str]:
    redis_status = "disconnected"
    if state.redis_client:
        try:
            await state.redis_client.ping()
            redis_status = "healthy"
        except redis.RedisError:
            redis_status = "unhealthy"

    mongo_status = "disconnected"
    if state.database is not None:
        try:
            await state.database.command("ping")
            mongo_status = "healthy"
        except PyMongoError:
            mongo_status = "unhealthy"

    return {"status": "ok", "redis": redis_status, "mongo": mongo_status}
