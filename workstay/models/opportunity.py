from datetime import date, datetime
from enum import StrEnum

from pydantic import Field, field_serializer, field_validator, model_validator

from workstay.models.common import CamelModel, GeoPoint, PageMeta, iso_date


class OpportunityStatus(StrEnum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    EXPIRED = "EXPIRED"
    FILLED = "FILLED"
    REJECTED = "REJECTED"
    ADMIN_PAUSED = "ADMIN_PAUSED"
    DELETED = "DELETED"


class OpportunityType(StrEnum):
    FARMING = "FARMING"
    GARDENING = "GARDENING"
    ANIMAL_CARE = "ANIMAL_CARE"
    CONSTRUCTION = "CONSTRUCTION"
    HOSPITALITY = "HOSPITALITY"
    COOKING = "COOKING"
    CLEANING = "CLEANING"
    CHILDCARE = "CHILDCARE"
    ELDERLY_CARE = "ELDERLY_CARE"
    TEACHING = "TEACHING"
    LANGUAGE_EXCHANGE = "LANGUAGE_EXCHANGE"
    CREATIVE = "CREATIVE"
    DIGITAL_NOMAD = "DIGITAL_NOMAD"
    ADMINISTRATION = "ADMINISTRATION"
    MAINTENANCE = "MAINTENANCE"
    TOURISM = "TOURISM"
    CONSERVATION = "CONSERVATION"
    COMMUNITY = "COMMUNITY"
    EVENT = "EVENT"
    OTHER = "OTHER"


class TimeSlotStatus(StrEnum):
    OPEN = "OPEN"
    FILLED = "FILLED"
    CLOSED = "CLOSED"


class CapacityOverride(CamelModel):
    start_date: date
    end_date: date
    capacity: int = Field(ge=0)

    @field_serializer("start_date", "end_date")
    def serialize_dates(self, value: date) -> str:
        return iso_date(value)


class TimeSlot(CamelModel):
    """A bookable stay window on an opportunity. Both bounds are inclusive."""

    id: str | None = None
    start_date: date
    end_date: date
    default_capacity: int = Field(default=1, ge=0)
    minimum_stay: int = Field(default=0, ge=0)
    work_days_per_week: int = Field(default=0, ge=0, le=7)
    work_hours_per_day: int = Field(default=0, ge=0, le=24)
    applied_count: int = Field(default=0, ge=0)
    confirmed_count: int = Field(default=0, ge=0)
    status: TimeSlotStatus = TimeSlotStatus.OPEN
    description: str = ""
    capacity_overrides: list[CapacityOverride] = []

    @model_validator(mode="after")
    def check_window(self) -> "TimeSlot":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self

    @field_serializer("start_date", "end_date")
    def serialize_dates(self, value: date) -> str:
        return iso_date(value)


class OpportunityLocation(CamelModel):
    address: str = ""
    city: str
    district: str = ""
    country: str
    coordinates: GeoPoint | None = None


class OpportunityStats(CamelModel):
    views: int = 0
    applications: int = 0
    bookmarks: int = 0
    shares: int = 0


class Opportunity(CamelModel):
    id: str | None = None
    host_id: str
    title: str
    slug: str
    public_id: str
    description: str = ""
    short_description: str = ""
    status: OpportunityStatus = OpportunityStatus.DRAFT
    status_note: str = ""
    type: OpportunityType = OpportunityType.OTHER
    location: OpportunityLocation
    time_slots: list[TimeSlot] = []
    has_time_slots: bool = False
    stats: OpportunityStats = Field(default_factory=OpportunityStats)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OpportunityCreateRequest(CamelModel):
    title: str
    description: str = ""
    short_description: str = ""
    type: OpportunityType = OpportunityType.OTHER
    location: OpportunityLocation
    time_slots: list[TimeSlot] = []
    has_time_slots: bool | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        v = v.strip()
        if not v or len(v) > 200:
            raise ValueError("title must be 1-200 characters")
        return v


class OpportunitySearchResponse(PageMeta):
    data: list[Opportunity]


class AvailabilityResponse(CamelModel):
    available: bool
    start_date: date
    end_date: date
    slot: TimeSlot | None = None
    remaining_capacity: int | None = None

    @field_serializer("start_date", "end_date")
    def serialize_dates(self, value: date) -> str:
        return iso_date(value)
