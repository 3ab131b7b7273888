import logging
import re
from datetime import date
from uuid import uuid4

from workstay.db.hosts import HostRepository
from workstay.db.opportunities import OpportunityRepository
from workstay.errors import ForbiddenError, NotFoundError, ValidationError
from workstay.models.opportunity import (
    AvailabilityResponse,
    Opportunity,
    OpportunityCreateRequest,
    OpportunitySearchResponse,
    OpportunityStatus,
)
from workstay.services.availability import find_covering_slot, remaining_capacity, requires_slot_check
from workstay.services.search import OpportunityFilter, build_search_plan

logger = logging.getLogger(__name__)

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def generate_slug(title: str) -> str:
    base = _NON_SLUG.sub("-", title.lower()).strip("-") or "opportunity"
    return f"{base}-{uuid4().hex[:8]}"


class OpportunityService:
    def __init__(self, opportunities: OpportunityRepository, hosts: HostRepository):
        self.opportunities = opportunities
        self.hosts = hosts

    async def create(self, user_id: str, request: OpportunityCreateRequest) -> Opportunity:
        """Create a DRAFT opportunity owned by the caller's host profile."""
        host = await self.hosts.get_by_user_id(user_id)
        if host is None:
            raise ForbiddenError(detail="only hosts can create opportunities")

        opportunity = Opportunity(
            host_id=host.id,
            title=request.title,
            slug=generate_slug(request.title),
            public_id=str(uuid4()),
            description=request.description,
            short_description=request.short_description,
            status=OpportunityStatus.DRAFT,
            type=request.type,
            location=request.location,
            time_slots=request.time_slots,
            has_time_slots=(
                bool(request.time_slots) if request.has_time_slots is None else request.has_time_slots
            ),
        )
        opportunity = await self.opportunities.create(opportunity)
        logger.info("Opportunity created id=%s host=%s slug=%s", opportunity.id, host.id, opportunity.slug)
        return opportunity

    async def get(self, opportunity_id: str) -> Opportunity:
        opportunity = await self.opportunities.get_by_id(opportunity_id)
        if opportunity is None:
            raise NotFoundError(detail="opportunity not found", resource_id=opportunity_id)
        return opportunity

    async def search(self, f: OpportunityFilter) -> OpportunitySearchResponse:
        plan = build_search_plan(f)
        items, total = await self.opportunities.search(plan)
        return OpportunitySearchResponse(
            data=items,
            total=total,
            limit=f.limit,
            offset=f.offset,
            has_more=f.offset + len(items) < total,
        )

    async def check_availability(self, opportunity_id: str, start: date, end: date) -> AvailabilityResponse:
        if start > end:
            raise ValidationError(detail="startDate must not be after endDate")
        opportunity = await self.get(opportunity_id)
        if not requires_slot_check(opportunity):
            return AvailabilityResponse(available=True, start_date=start, end_date=end)

        slot = find_covering_slot(opportunity.time_slots, start, end)
        if slot is None:
            return AvailabilityResponse(available=False, start_date=start, end_date=end)
        return AvailabilityResponse(
            available=True,
            start_date=start,
            end_date=end,
            slot=slot,
            remaining_capacity=remaining_capacity(slot, start, end),
        )
