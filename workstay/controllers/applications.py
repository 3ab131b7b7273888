from fastapi import APIRouter, Query, Response

from workstay.dependencies import Applications
from workstay.errors import ForbiddenError
from workstay.models.application import (
    Application,
    ApplicationCreateRequest,
    ApplicationListResponse,
    ApplicationStatus,
    ApplicationStatusUpdateRequest,
)
from workstay.security import AuthUser, CurrentUser

router = APIRouter(prefix="/applications", tags=["applications"])

HOST_STATUSES = frozenset({ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED})
APPLICANT_STATUSES = frozenset({ApplicationStatus.PENDING, ApplicationStatus.CANCELLED})


def authorize_status_change(
    user: CurrentUser,
    application: Application,
    host_user_id: str | None,
    new_status: ApplicationStatus,
) -> None:
    """Admins may request any transition; hosts decide, applicants submit or withdraw."""
    if user.is_admin:
        return
    if new_status in HOST_STATUSES and host_user_id == user.user_id:
        return
    if new_status in APPLICANT_STATUSES and application.user_id == user.user_id:
        return
    raise ForbiddenError(detail=f"not allowed to set application status to {new_status}")


@router.post("", response_model=Application, status_code=201)
async def create_application(
    request: ApplicationCreateRequest,
    user: AuthUser,
    service: Applications,
) -> Application:
    return await service.create(user.user_id, request)


@router.get("", response_model=ApplicationListResponse)
async def list_applications(
    user: AuthUser,
    service: Applications,
    host_id: str | None = Query(None, alias="hostId"),
    opportunity_id: str | None = Query(None, alias="opportunityId"),
    status: ApplicationStatus | None = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> ApplicationListResponse:
    user_id: str | None = None
    if not user.is_admin:
        if host_id:
            if await service.resolve_host_user_id(host_id) != user.user_id:
                raise ForbiddenError(detail="you can only list applications for your own host")
        else:
            user_id = user.user_id
    return await service.list_applications(
        limit,
        offset,
        user_id=user_id,
        host_id=host_id,
        opportunity_id=opportunity_id,
        status=status,
    )


@router.get("/{application_id}", response_model=Application)
async def get_application(application_id: str, user: AuthUser, service: Applications) -> Application:
    application = await service.get(application_id)
    if user.is_admin or application.user_id == user.user_id:
        return application
    if await service.resolve_host_user_id(application.host_id) == user.user_id:
        return application
    raise ForbiddenError(detail="you cannot view this application")


@router.put("/{application_id}/status", response_model=Application)
async def update_application_status(
    application_id: str,
    request: ApplicationStatusUpdateRequest,
    user: AuthUser,
    service: Applications,
) -> Application:
    application = await service.get(application_id)
    new_status = ApplicationStatus(request.status)
    host_user_id = None
    if not user.is_admin and new_status in HOST_STATUSES:
        host_user_id = await service.resolve_host_user_id(application.host_id)
    authorize_status_change(user, application, host_user_id, new_status)
    return await service.update_status(application_id, new_status, request.note, acting_user_id=user.user_id)


@router.delete("/{application_id}", status_code=204)
async def delete_application(application_id: str, user: AuthUser, service: Applications) -> Response:
    await service.delete(application_id, user.user_id)
    return Response(status_code=204)
