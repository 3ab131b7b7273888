from typing import Dict

from fastapi import APIRouter, Query

from workstay.dependencies import Notifications
from workstay.models.notification import NotificationListResponse
from workstay.security import AuthUser

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    user: AuthUser,
    service: Notifications,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> NotificationListResponse:
    return await service.list_for_user(user.user_id, limit, offset)


@router.put("/read-all")
async def mark_all_as_read(user: AuthUser, service: Notifications) -> Dict[str, int]:
    updated = await service.mark_all_as_read(user.user_id)
    return {"updated": updated}


@router.put("/{notification_id}/read")
async def mark_as_read(notification_id: str, user: AuthUser, service: Notifications) -> Dict[str, str]:
    await service.mark_as_read(notification_id, user.user_id)
    return {"status": "ok"}
