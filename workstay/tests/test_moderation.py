"""Tests for the image moderation policy."""

import pytest

from workstay.models.image import MODERATION_CATEGORIES, ImageStatus, Likelihood, VisionAIRawData
from workstay.services.moderation import (
    BucketPair,
    Classification,
    ModerationThresholds,
    decide,
    parse_likelihood,
    parse_threshold,
    plan_relocation,
    triggered_categories,
)

LIKELY_EVERYWHERE = ModerationThresholds.from_labels({c: "LIKELY" for c in MODERATION_CATEGORIES})
BUCKETS = BucketPair(public="ws-public", private="ws-private")


def _all(level: Likelihood, **overrides: Likelihood) -> Classification:
    values = {c: level for c in MODERATION_CATEGORIES}
    values.update(overrides)
    return Classification(**values)


class TestDecide:
    def test_no_classification_is_pending(self):
        assert decide(None, LIKELY_EVERYWHERE) == ImageStatus.PENDING

    def test_all_very_unlikely_is_approved(self):
        assert decide(_all(Likelihood.VERY_UNLIKELY), LIKELY_EVERYWHERE) == ImageStatus.APPROVED

    def test_adult_likely_is_rejected(self):
        classification = _all(Likelihood.VERY_UNLIKELY, adult=Likelihood.LIKELY)
        assert decide(classification, LIKELY_EVERYWHERE) == ImageStatus.REJECTED
        assert triggered_categories(classification, LIKELY_EVERYWHERE) == ["adult"]

    def test_just_below_threshold_is_approved(self):
        assert decide(_all(Likelihood.POSSIBLE), LIKELY_EVERYWHERE) == ImageStatus.APPROVED

    def test_unknown_likelihoods_are_approved(self):
        assert decide(Classification(), LIKELY_EVERYWHERE) == ImageStatus.APPROVED

    def test_unset_threshold_never_rejects(self):
        thresholds = ModerationThresholds.from_labels({"adult": "", "racy": "LIKELY"})
        classification = _all(Likelihood.VERY_UNLIKELY, adult=Likelihood.VERY_LIKELY)
        assert decide(classification, thresholds) == ImageStatus.APPROVED

    @pytest.mark.parametrize("category", MODERATION_CATEGORIES)
    def test_monotonic_in_each_category(self, category):
        previous_rejected = False
        for level in Likelihood:
            status = decide(_all(Likelihood.VERY_UNLIKELY, **{category: level}), LIKELY_EVERYWHERE)
            rejected = status == ImageStatus.REJECTED
            # once rejected, a higher likelihood never approves again
            assert rejected or not previous_rejected
            previous_rejected = rejected
        assert previous_rejected is True


class TestThresholdParsing:
    def test_known_labels(self):
        assert parse_threshold("LIKELY") is Likelihood.LIKELY
        assert parse_threshold("very_likely") is Likelihood.VERY_LIKELY

    def test_empty_and_unknown_disable_category(self):
        assert parse_threshold("") is None
        assert parse_threshold(None) is None
        assert parse_threshold("SOMEWHAT") is None

    def test_classifier_labels_fall_back_to_unknown(self):
        assert parse_likelihood("POSSIBLE") is Likelihood.POSSIBLE
        assert parse_likelihood("garbage") is Likelihood.UNKNOWN
        assert parse_likelihood("") is Likelihood.UNKNOWN

    def test_from_settings(self, moderation_settings):
        thresholds = ModerationThresholds.from_settings(moderation_settings)
        assert thresholds.adult is Likelihood.LIKELY
        assert thresholds.spoof is Likelihood.LIKELY


class TestClassificationRaw:
    def test_round_trip_through_raw_labels(self):
        classification = _all(Likelihood.UNLIKELY, violence=Likelihood.VERY_LIKELY)
        raw = classification.to_raw()
        assert raw.violence == "VERY_LIKELY"
        assert raw.adult == "UNLIKELY"
        assert Classification.from_raw(raw) == classification

    def test_from_empty_raw(self):
        assert Classification.from_raw(VisionAIRawData()) == Classification()


class TestPlanRelocation:
    def test_entering_approved_moves_to_public(self):
        assert plan_relocation(ImageStatus.PENDING, ImageStatus.APPROVED, BUCKETS) == ("ws-private", "ws-public")

    def test_leaving_approved_moves_to_private(self):
        assert plan_relocation(ImageStatus.APPROVED, ImageStatus.REJECTED, BUCKETS) == ("ws-public", "ws-private")

    @pytest.mark.parametrize(
        "current, new",
        [
            (ImageStatus.PENDING, ImageStatus.REJECTED),
            (ImageStatus.REJECTED, ImageStatus.PENDING),
            (ImageStatus.APPROVED, ImageStatus.APPROVED),
        ],
    )
    def test_no_move_when_approved_is_not_crossed(self, current, new):
        assert plan_relocation(current, new, BUCKETS) is None

    def test_bucket_for_status(self):
        assert BUCKETS.for_status(ImageStatus.APPROVED) == "ws-public"
        assert BUCKETS.for_status(ImageStatus.PENDING) == "ws-private"
        assert BUCKETS.for_status(ImageStatus.REJECTED) == "ws-private"
