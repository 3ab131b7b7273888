from datetime import datetime
from enum import IntEnum, StrEnum

from pydantic import Field

from workstay.models.common import CamelModel, PageMeta


class ImageStatus(StrEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Likelihood(IntEnum):
    """Ordinal classifier confidence, same numbering as Vision's enum."""

    UNKNOWN = 0
    VERY_UNLIKELY = 1
    UNLIKELY = 2
    POSSIBLE = 3
    LIKELY = 4
    VERY_LIKELY = 5


MODERATION_CATEGORIES = ("adult", "spoof", "medical", "violence", "racy")


class VisionAIRawData(CamelModel):
    """Raw SafeSearch labels as returned by the classifier (empty when unknown)."""

    adult: str = ""
    racy: str = ""
    violence: str = ""
    medical: str = ""
    spoof: str = ""


class Image(CamelModel):
    id: str | None = None
    user_id: str
    gcs_path: str
    public_url: str = ""
    status: ImageStatus = ImageStatus.PENDING
    vision_data: VisionAIRawData = Field(default_factory=VisionAIRawData)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ImageStatusUpdateRequest(CamelModel):
    status: ImageStatus


class ImageReviewRequest(CamelModel):
    approved: bool


class ImageListResponse(PageMeta):
    data: list[Image]


class ModerationStats(CamelModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    today_applications: int = 0
