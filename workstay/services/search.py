"""Opportunity search query composition.

Every filter is optional and they are ANDed together on top of
``status == ACTIVE``:

- ``query``: full-text match, results ordered by text score
- ``type`` / ``city`` / ``country``: exact matches
- ``lat`` + ``lng`` (+ ``distance`` metres, default 50 km): radius filter,
  nearest first when there is no text query
- ``start_date`` + ``end_date``: at least one OPEN slot containing the range

MongoDB refuses ``$near`` inside ``countDocuments`` and alongside ``$text``,
so those cases use the equivalent ``$geoWithin``/``$centerSphere`` radius.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any

from workstay.errors import ValidationError
from workstay.models.opportunity import OpportunityStatus
from workstay.services.availability import slot_containment_filter

DEFAULT_DISTANCE_METERS = 50_000.0
EARTH_RADIUS_METERS = 6_378_100.0
TEXT_SCORE = {"$meta": "textScore"}


@dataclass
class OpportunityFilter:
    query: str = ""
    type: str = ""
    city: str = ""
    country: str = ""
    start_date: date | None = None
    end_date: date | None = None
    lat: float | None = None
    lng: float | None = None
    distance: float | None = None
    limit: int = 10
    offset: int = 0

    @property
    def has_text(self) -> bool:
        return bool(self.query and self.query.strip())

    @property
    def has_geo(self) -> bool:
        return self.lat is not None and self.lng is not None

    @property
    def has_date_range(self) -> bool:
        return self.start_date is not None and self.end_date is not None

    @property
    def radius(self) -> float:
        return self.distance if self.distance and self.distance > 0 else DEFAULT_DISTANCE_METERS


@dataclass(frozen=True)
class SearchPlan:
    query: dict[str, Any]
    count_query: dict[str, Any]
    sort: list[tuple[str, Any]] | None
    projection: dict[str, Any] | None
    limit: int
    offset: int


def _near(lng: float, lat: float, radius: float) -> dict[str, Any]:
    return {
        "$near": {
            "$geometry": {"type": "Point", "coordinates": [lng, lat]},
            "$maxDistance": radius,
        }
    }


def _within(lng: float, lat: float, radius: float) -> dict[str, Any]:
    return {"$geoWithin": {"$centerSphere": [[lng, lat], radius / EARTH_RADIUS_METERS]}}


def build_search_plan(f: OpportunityFilter) -> SearchPlan:
    if f.has_date_range and f.start_date > f.end_date:
        raise ValidationError(detail="startDate must not be after endDate")
    if f.limit < 0 or f.offset < 0:
        raise ValidationError(detail="limit and offset must be non-negative")

    base: dict[str, Any] = {"status": OpportunityStatus.ACTIVE.value}

    if f.has_text:
        base["$text"] = {"$search": f.query.strip()}
    if f.type:
        base["type"] = f.type
    if f.city:
        base["location.city"] = f.city
    if f.country:
        base["location.country"] = f.country
    if f.has_date_range:
        base["timeSlots"] = slot_containment_filter(f.start_date, f.end_date)

    query = dict(base)
    count_query = dict(base)
    if f.has_geo:
        within = _within(f.lng, f.lat, f.radius)
        count_query["location.coordinates"] = within
        if f.has_text:
            query["location.coordinates"] = within
        else:
            query["location.coordinates"] = _near(f.lng, f.lat, f.radius)

    if f.has_text:
        sort = [("score", TEXT_SCORE)]
        projection = {"score": TEXT_SCORE}
    elif f.has_geo:
        # $near already returns nearest first
        sort = None
        projection = None
    else:
        sort = [("createdAt", -1)]
        projection = None

    return SearchPlan(
        query=query,
        count_query=count_query,
        sort=sort,
        projection=projection,
        limit=f.limit,
        offset=f.offset,
    )
