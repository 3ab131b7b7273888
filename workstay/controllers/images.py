import mimetypes

from fastapi import APIRouter, File, UploadFile
from fastapi.responses import StreamingResponse

from workstay.dependencies import Images
from workstay.errors import ForbiddenError
from workstay.models.image import Image
from workstay.security import AuthUser

router = APIRouter(prefix="/images", tags=["images"])


@router.post("", response_model=Image, status_code=201)
async def upload_image(user: AuthUser, service: Images, image: UploadFile = File(...)) -> Image:
    data = await image.read()
    return await service.upload_image(user.user_id, data, filename=image.filename, content_type=image.content_type)


@router.get("/{image_id}", response_model=Image)
async def get_image(image_id: str, user: AuthUser, service: Images) -> Image:
    image = await service.get_image(image_id)
    if not user.is_admin and image.user_id != user.user_id:
        raise ForbiddenError(detail="you cannot view this image")
    return image


@router.get("/{image_id}/content")
async def get_image_content(image_id: str, user: AuthUser, service: Images) -> StreamingResponse:
    image = await service.get_image(image_id)
    if not user.is_admin and image.user_id != user.user_id:
        raise ForbiddenError(detail="you cannot view this image")
    content = await service.get_image_content(image)
    media_type = mimetypes.guess_type(image.gcs_path)[0] or "application/octet-stream"
    return StreamingResponse(content, media_type=media_type)
