"""Image moderation policy.

The classifier reports one ordinal likelihood per category. Each category may
carry a reject threshold; an image is rejected as soon as any category is at
or above its threshold, and approved otherwise. With no classification at all
the image waits for manual review.

Storage placement follows status: APPROVED images live in the public bucket,
everything else in the private one.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from workstay.config import ImageModerationSettings
from workstay.models.image import MODERATION_CATEGORIES, ImageStatus, Likelihood, VisionAIRawData

logger = logging.getLogger(__name__)


def parse_threshold(label: str | None) -> Likelihood | None:
    """Parse a configured threshold label.

    Empty or unrecognised labels disable rejection for the category.
    """
    if not label:
        return None
    try:
        return Likelihood[label.strip().upper()]
    except KeyError:
        logger.warning("Unknown likelihood threshold %r, category will never reject", label)
        return None


def parse_likelihood(label: str | None) -> Likelihood:
    """Parse a classifier label; anything unrecognised is UNKNOWN."""
    if not label:
        return Likelihood.UNKNOWN
    try:
        return Likelihood[label.strip().upper()]
    except KeyError:
        return Likelihood.UNKNOWN


@dataclass(frozen=True)
class ModerationThresholds:
    adult: Likelihood | None = None
    spoof: Likelihood | None = None
    medical: Likelihood | None = None
    violence: Likelihood | None = None
    racy: Likelihood | None = None

    @classmethod
    def from_labels(cls, labels: Mapping[str, str | None]) -> "ModerationThresholds":
        return cls(**{c: parse_threshold(labels.get(c)) for c in MODERATION_CATEGORIES})

    @classmethod
    def from_settings(cls, settings: ImageModerationSettings) -> "ModerationThresholds":
        return cls.from_labels(settings.thresholds)

    def for_category(self, category: str) -> Likelihood | None:
        return getattr(self, category)


@dataclass(frozen=True)
class Classification:
    adult: Likelihood = Likelihood.UNKNOWN
    spoof: Likelihood = Likelihood.UNKNOWN
    medical: Likelihood = Likelihood.UNKNOWN
    violence: Likelihood = Likelihood.UNKNOWN
    racy: Likelihood = Likelihood.UNKNOWN

    @classmethod
    def from_raw(cls, raw: VisionAIRawData) -> "Classification":
        return cls(**{c: parse_likelihood(getattr(raw, c)) for c in MODERATION_CATEGORIES})

    def to_raw(self) -> VisionAIRawData:
        return VisionAIRawData(**{c: getattr(self, c).name for c in MODERATION_CATEGORIES})

    def for_category(self, category: str) -> Likelihood:
        return getattr(self, category)


def triggered_categories(classification: Classification, thresholds: ModerationThresholds) -> list[str]:
    triggered = []
    for category in MODERATION_CATEGORIES:
        threshold = thresholds.for_category(category)
        if threshold is not None and classification.for_category(category) >= threshold:
            triggered.append(category)
    return triggered


def decide(classification: Classification | None, thresholds: ModerationThresholds) -> ImageStatus:
    """Map a classification to a moderation status."""
    if classification is None:
        return ImageStatus.PENDING
    if triggered_categories(classification, thresholds):
        return ImageStatus.REJECTED
    return ImageStatus.APPROVED


@dataclass(frozen=True)
class BucketPair:
    public: str
    private: str

    def for_status(self, status: ImageStatus) -> str:
        return self.public if status == ImageStatus.APPROVED else self.private


def plan_relocation(
    current: ImageStatus,
    new: ImageStatus,
    buckets: BucketPair,
) -> tuple[str, str] | None:
    """Return ``(source, destination)`` when a status change crosses APPROVED."""
    entering = new == ImageStatus.APPROVED and current != ImageStatus.APPROVED
    leaving = current == ImageStatus.APPROVED and new != ImageStatus.APPROVED
    if entering:
        return buckets.private, buckets.public
    if leaving:
        return buckets.public, buckets.private
    return None
