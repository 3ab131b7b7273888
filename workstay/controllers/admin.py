from fastapi import APIRouter, Query

from workstay.dependencies import Applications, Images
from workstay.models.image import (
    Image,
    ImageListResponse,
    ImageReviewRequest,
    ImageStatus,
    ImageStatusUpdateRequest,
    ModerationStats,
)
from workstay.security import AdminUser

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/stats", response_model=ModerationStats)
async def moderation_stats(_admin: AdminUser, service: Images, applications: Applications) -> ModerationStats:
    stats = await service.moderation_stats()
    return stats.model_copy(update={"today_applications": await applications.count_created_today()})


@router.get("/images", response_model=ImageListResponse)
async def list_images(
    _admin: AdminUser,
    service: Images,
    status: ImageStatus = Query(ImageStatus.PENDING),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> ImageListResponse:
    return await service.list_images(status, limit, offset)


@router.put("/images/{image_id}/status", response_model=Image)
async def update_image_status(
    image_id: str,
    request: ImageStatusUpdateRequest,
    _admin: AdminUser,
    service: Images,
) -> Image:
    return await service.update_image_status(image_id, ImageStatus(request.status))


@router.post("/images/{image_id}/review", response_model=Image)
async def review_image(
    image_id: str,
    request: ImageReviewRequest,
    _admin: AdminUser,
    service: Images,
) -> Image:
    return await service.review_image(image_id, request.approved)
