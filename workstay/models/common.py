from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for stored documents and API payloads (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
    )


def iso_date(value: date | None) -> str | None:
    # Calendar dates are kept as YYYY-MM-DD so range queries compare lexically.
    return value.isoformat() if value is not None else None


class GeoPoint(CamelModel):
    type: Literal["Point"] = "Point"
    coordinates: list[float]

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v: list[float]) -> list[float]:
        if len(v) != 2:
            raise ValueError("coordinates must be [lng, lat]")
        lng, lat = v
        if not -180 <= lng <= 180 or not -90 <= lat <= 90:
            raise ValueError("coordinates out of range")
        return v


class PageMeta(CamelModel):
    total: int
    limit: int
    offset: int
    has_more: bool
