from datetime import date

from fastapi import APIRouter, Query

from workstay.dependencies import Opportunities
from workstay.models.opportunity import (
    AvailabilityResponse,
    Opportunity,
    OpportunityCreateRequest,
    OpportunitySearchResponse,
    OpportunityType,
)
from workstay.security import AuthUser
from workstay.services.search import OpportunityFilter

router = APIRouter(prefix="/opportunities", tags=["opportunities"])


@router.get("/search", response_model=OpportunitySearchResponse)
async def search_opportunities(
    service: Opportunities,
    q: str = Query("", description="Full-text query"),
    type: OpportunityType | None = Query(None),
    city: str = Query(""),
    country: str = Query(""),
    start_date: date | None = Query(None, alias="startDate"),
    end_date: date | None = Query(None, alias="endDate"),
    lat: float | None = Query(None, ge=-90, le=90),
    lng: float | None = Query(None, ge=-180, le=180),
    distance: float | None = Query(None, gt=0, description="Search radius in metres"),
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> OpportunitySearchResponse:
    f = OpportunityFilter(
        query=q,
        type=type.value if type else "",
        city=city,
        country=country,
        start_date=start_date,
        end_date=end_date,
        lat=lat,
        lng=lng,
        distance=distance,
        limit=limit,
        offset=offset,
    )
    return await service.search(f)


@router.get("/{opportunity_id}", response_model=Opportunity)
async def get_opportunity(opportunity_id: str, service: Opportunities) -> Opportunity:
    return await service.get(opportunity_id)


@router.get("/{opportunity_id}/availability", response_model=AvailabilityResponse)
async def check_availability(
    opportunity_id: str,
    service: Opportunities,
    start_date: date = Query(..., alias="startDate"),
    end_date: date = Query(..., alias="endDate"),
) -> AvailabilityResponse:
    return await service.check_availability(opportunity_id, start_date, end_date)


@router.post("", response_model=Opportunity, status_code=201)
async def create_opportunity(
    request: OpportunityCreateRequest,
    user: AuthUser,
    service: Opportunities,
) -> Opportunity:
    return await service.create(user.user_id, request)
