"""Application admission and lifecycle.

An application is admitted against an opportunity: the opportunity must
exist and, when it publishes time slots, the requested stay must fit inside
one OPEN slot. Admitted applications start PENDING and the host is notified
through the outbound queue.
"""

import logging
from datetime import UTC, datetime

from workstay.db.applications import ApplicationRepository, build_list_query
from workstay.db.hosts import HostRepository
from workstay.db.opportunities import OpportunityRepository
from workstay.errors import (
    APIError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from workstay.models.application import (
    Application,
    ApplicationCreateRequest,
    ApplicationListResponse,
    ApplicationStatus,
)
from workstay.models.notification import NotificationMessage, NotificationType
from workstay.services.availability import is_date_range_available, requires_slot_check
from workstay.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)

UNAVAILABLE_DATES = "selected dates are not available in any open time slot"

ALLOWED_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.DRAFT: frozenset({ApplicationStatus.PENDING, ApplicationStatus.CANCELLED}),
    ApplicationStatus.PENDING: frozenset(
        {ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED, ApplicationStatus.CANCELLED}
    ),
    ApplicationStatus.ACCEPTED: frozenset({ApplicationStatus.CANCELLED}),
    ApplicationStatus.REJECTED: frozenset(),
    ApplicationStatus.CANCELLED: frozenset(),
}

DELETABLE_STATUSES = frozenset({ApplicationStatus.DRAFT, ApplicationStatus.PENDING})


def can_transition(current: ApplicationStatus, new: ApplicationStatus) -> bool:
    return new in ALLOWED_TRANSITIONS.get(ApplicationStatus(current), frozenset())


class ApplicationService:
    def __init__(
        self,
        applications: ApplicationRepository,
        opportunities: OpportunityRepository,
        hosts: HostRepository,
        dispatcher: NotificationDispatcher | None = None,
    ):
        self.applications = applications
        self.opportunities = opportunities
        self.hosts = hosts
        self.dispatcher = dispatcher

    async def create(self, user_id: str, request: ApplicationCreateRequest) -> Application:
        opportunity = await self.opportunities.get_by_id(request.opportunity_id)
        if opportunity is None:
            raise NotFoundError(detail="opportunity not found", resource_id=request.opportunity_id)

        details = request.application_details
        if details.start_date and details.end_date and details.start_date > details.end_date:
            raise ValidationError(detail="startDate must not be after endDate")

        if requires_slot_check(opportunity):
            if details.start_date is None or details.end_date is None:
                raise ValidationError(detail="startDate and endDate are required for this opportunity")
            if not is_date_range_available(opportunity.time_slots, details.start_date, details.end_date):
                raise ValidationError(
                    detail=UNAVAILABLE_DATES,
                    start_date=details.start_date.isoformat(),
                    end_date=details.end_date.isoformat(),
                )

        application = await self.applications.create(
            Application(
                user_id=user_id,
                opportunity_id=request.opportunity_id,
                host_id=opportunity.host_id,
                status=ApplicationStatus.PENDING,
                application_details=details,
            )
        )
        logger.info(
            "Application created id=%s user=%s opportunity=%s",
            application.id,
            user_id,
            request.opportunity_id,
        )

        try:
            await self.opportunities.increment_stat(request.opportunity_id, "applications")
        except APIError as e:
            logger.warning("Failed to bump application count opportunity=%s err=%s", request.opportunity_id, e.detail)

        if self.dispatcher is not None:
            await self.dispatcher.enqueue(
                NotificationMessage(
                    type=NotificationType.APPLICATION_CREATED,
                    title="New application received",
                    message=f"You have received a new application for {opportunity.title}",
                    host_id=opportunity.host_id,
                    data={"applicationId": application.id or "", "opportunityId": request.opportunity_id},
                )
            )
        return application

    async def resolve_host_user_id(self, host_id: str | None) -> str | None:
        """Return the user who owns ``host_id``, or None if the host is unknown."""
        if not host_id:
            return None
        host = await self.hosts.get_by_id(host_id)
        return host.user_id if host else None

    async def get(self, application_id: str) -> Application:
        application = await self.applications.get_by_id(application_id)
        if application is None:
            raise NotFoundError(detail="application not found", resource_id=application_id)
        return application

    async def list_applications(
        self,
        limit: int,
        offset: int,
        user_id: str | None = None,
        host_id: str | None = None,
        opportunity_id: str | None = None,
        status: ApplicationStatus | None = None,
    ) -> ApplicationListResponse:
        query = build_list_query(user_id=user_id, host_id=host_id, opportunity_id=opportunity_id, status=status)
        items, total = await self.applications.list_page(query, limit, offset)
        return ApplicationListResponse(
            data=items,
            total=total,
            limit=limit,
            offset=offset,
            has_more=offset + len(items) < total,
        )

    async def count_created_today(self, now: datetime | None = None) -> int:
        """Applications created since midnight UTC."""
        now = now or datetime.now(UTC)
        midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return await self.applications.count_created_since(midnight)

    async def update_status(
        self,
        application_id: str,
        new_status: ApplicationStatus,
        note: str = "",
        acting_user_id: str | None = None,
    ) -> Application:
        """Move an application to ``new_status``.

        The write only succeeds if the stored status is still the one read
        here; a concurrent change raises ConflictError. Who may request which
        transition is decided by the caller.
        """
        application = await self.get(application_id)
        current = ApplicationStatus(application.status)
        if current == new_status:
            return application
        if not can_transition(current, new_status):
            raise InvalidStateError(
                detail=f"cannot change application status from {current} to {new_status}",
                current_status=str(current),
                requested_status=str(new_status),
            )

        updated_at = await self.applications.update_status(application_id, current, new_status, note)
        if updated_at is None:
            raise ConflictError(detail="application was modified concurrently", resource_id=application_id)

        logger.info(
            "Application status changed id=%s %s -> %s by=%s",
            application_id,
            current,
            new_status,
            acting_user_id,
        )
        application = application.model_copy(
            update={"status": new_status, "status_note": note, "updated_at": updated_at}
        )

        if self.dispatcher is not None:
            await self.dispatcher.enqueue(
                NotificationMessage(
                    type=NotificationType.APPLICATION_STATUS_CHANGED,
                    title="Application status updated",
                    message=f"Your application is now {str(new_status).lower()}",
                    user_id=application.user_id,
                    data={
                        "applicationId": application_id,
                        "opportunityId": application.opportunity_id,
                        "status": str(new_status),
                    },
                )
            )
        return application

    async def delete(self, application_id: str, acting_user_id: str) -> None:
        application = await self.get(application_id)
        if application.status not in DELETABLE_STATUSES:
            raise InvalidStateError(
                detail="only draft or pending applications can be deleted",
                current_status=str(application.status),
            )
        if application.user_id != acting_user_id:
            raise ForbiddenError(detail="you can only delete your own applications")
        if not await self.applications.delete(application_id):
            raise NotFoundError(detail="application not found", resource_id=application_id)
        logger.info("Application deleted id=%s user=%s", application_id, acting_user_id)
