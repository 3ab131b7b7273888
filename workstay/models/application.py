from datetime import date, datetime
from enum import StrEnum

from pydantic import Field, field_serializer, field_validator

from workstay.models.common import CamelModel, PageMeta, iso_date


class ApplicationStatus(StrEnum):
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class TravelingWith(CamelModel):
    partner: bool = False
    children: bool = False
    pets: bool = False


class ApplicationDetails(CamelModel):
    message: str = ""
    start_date: date | None = None
    end_date: date | None = None
    duration: int = Field(default=0, ge=0)
    traveling_with: TravelingWith = Field(default_factory=TravelingWith)
    languages: list[str] = []
    relevant_experience: str = ""

    @field_serializer("start_date", "end_date")
    def serialize_dates(self, value: date | None) -> str | None:
        return iso_date(value)


class Application(CamelModel):
    id: str | None = None
    user_id: str
    opportunity_id: str
    host_id: str | None = None
    status: ApplicationStatus = ApplicationStatus.PENDING
    status_note: str = ""
    application_details: ApplicationDetails = Field(default_factory=ApplicationDetails)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ApplicationCreateRequest(CamelModel):
    opportunity_id: str
    application_details: ApplicationDetails = Field(default_factory=ApplicationDetails)


class ApplicationStatusUpdateRequest(CamelModel):
    status: ApplicationStatus
    note: str = ""

    @field_validator("note")
    @classmethod
    def validate_note(cls, v: str) -> str:
        if len(v) > 1000:
            raise ValueError("note must be at most 1000 characters")
        return v


class ApplicationListResponse(PageMeta):
    data: list[Application]
