"""Unit tests for confidence aggregation and extraction quality scoring."""

import pytest

from activity_normalizer.conversion.scoring import (
    FIELD_WEIGHTS,
    MAX_QUALITY_SCORE,
    activity_quality,
    calculate_conversion_quality,
    calculate_extraction_quality_score,
    compute_confidence_score,
)
from activity_normalizer.schemas.activity import (
    Activity,
    Location,
    Pricing,
    PricingType,
    Schedule,
)


def make_activity(**overrides) -> Activity:
    data = {
        "title": "Family Science Workshop",
        "description": "Hands-on experiments for the whole family",
        "location": Location(name="Ballard Library"),
        "schedule": Schedule(start_date="2024-12-15"),
        "pricing": Pricing(type=PricingType.FREE),
    }
    data.update(overrides)
    return Activity(**data)


class TestConfidenceScore:
    def test_all_fields_perfect(self):
        assert compute_confidence_score({name: 1.0 for name in FIELD_WEIGHTS}) == 100.0

    def test_nothing_mapped(self):
        assert compute_confidence_score({}) == 0.0

    def test_title_only(self):
        assert compute_confidence_score({"title": 1.0}) == pytest.approx(25.0)

    def test_out_of_range_confidences_are_clamped(self):
        score = compute_confidence_score({"title": 5.0, "type": -1.0})
        assert score == pytest.approx(25.0)

    def test_unknown_fields_ignored(self):
        assert compute_confidence_score({"tags": 1.0}) == 0.0

    def test_custom_weights_are_normalized(self):
        weights = {"title": 2.0, "description": 2.0}
        assert compute_confidence_score({"title": 1.0, "description": 0.5}, weights) == pytest.approx(75.0)

    def test_rounded_to_one_decimal(self):
        score = compute_confidence_score({"title": 0.333})
        assert score == round(score, 1)

    def test_weights_sum_to_one(self):
        assert sum(FIELD_WEIGHTS.values()) == pytest.approx(1.0)


class TestActivityQuality:
    def test_complete_activity(self):
        assert activity_quality(make_activity()) == pytest.approx(MAX_QUALITY_SCORE)

    def test_short_description_not_counted(self):
        assert activity_quality(make_activity(description="Fun")) == pytest.approx(0.9)

    def test_address_counts_as_location(self):
        activity = make_activity(location=Location(address="5614 22nd Ave NW"))
        assert activity_quality(activity) == pytest.approx(1.0)

    def test_time_counts_as_schedule(self):
        activity = make_activity(schedule=Schedule(start_time="10:00"))
        assert activity_quality(activity) == pytest.approx(1.0)

    def test_empty_activity(self):
        assert activity_quality(Activity()) == 0.0


class TestExtractionQuality:
    def test_average(self):
        activities = [make_activity(), Activity(title="Untimed Meetup")]
        assert calculate_extraction_quality_score(activities) == pytest.approx(0.65)

    def test_empty_batch(self):
        assert calculate_extraction_quality_score([]) == 0.0

    def test_accepts_generator(self):
        assert calculate_extraction_quality_score(make_activity() for _ in range(3)) == pytest.approx(1.0)


class TestConversionQuality:
    def test_complete(self):
        quality = calculate_conversion_quality(make_activity())
        assert quality.activities_with_dates == 1
        assert quality.activities_with_locations == 1
        assert quality.activities_with_pricing == 1

    def test_bare_activity(self):
        quality = calculate_conversion_quality(Activity(title="Mystery"))
        assert (
            quality.activities_with_dates,
            quality.activities_with_locations,
            quality.activities_with_pricing,
        ) == (0, 0, 0)

    def test_none(self):
        assert calculate_conversion_quality(None).activities_with_dates == 0
