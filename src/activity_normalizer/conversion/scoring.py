"""Confidence aggregation and quality scoring for converted activities.

Two distinct scores live here:

- the per-conversion **confidence score** (0-100), a weighted mean of the
  mapping confidence of every canonical field; and
- the **extraction quality score** (0-1), a completeness measure averaged
  over a batch of activities, used by extraction monitoring.
"""

import logging
from typing import Dict, Iterable, Mapping, Optional

from activity_normalizer.schemas.activity import Activity
from activity_normalizer.schemas.metrics import ConversionQuality

logger = logging.getLogger(__name__)

# ── Confidence weights ───────────────────────────────────────────────

# Required fields (title, type, category) carry 0.55 of the total.
FIELD_WEIGHTS: Dict[str, float] = {
    "title": 0.25,
    "type": 0.15,
    "category": 0.15,
    "schedule.start_date": 0.12,
    "location.name": 0.10,
    "pricing": 0.06,
    "description": 0.06,
    "schedule.start_time": 0.04,
    "location.address": 0.03,
    "age_groups": 0.02,
    "registration.url": 0.02,
}

# ── Quality weights ──────────────────────────────────────────────────

QUALITY_WEIGHTS: Dict[str, float] = {
    "title": 0.30,
    "location": 0.25,
    "schedule": 0.20,
    "pricing": 0.15,
    "description": 0.10,
}

MAX_QUALITY_SCORE = round(sum(QUALITY_WEIGHTS.values()), 4)

MIN_DESCRIPTION_LENGTH = 10


def compute_confidence_score(
    field_confidences: Mapping[str, float],
    weights: Optional[Mapping[str, float]] = None,
) -> float:
    """Weighted mean of field confidences, scaled to 0-100.

    Fields absent from ``field_confidences`` contribute zero. The result is
    clamped to [0, 100] and rounded to one decimal.

    Args:
        field_confidences: Canonical field -> mapping confidence in [0, 1].
        weights: Field -> weight. Defaults to ``FIELD_WEIGHTS``.
    """
    weights = weights or FIELD_WEIGHTS
    total_weight = sum(weights.values())
    if total_weight <= 0:
        return 0.0

    weighted = sum(
        max(0.0, min(1.0, field_confidences.get(name, 0.0))) * w
        for name, w in weights.items()
    )
    score = 100.0 * weighted / total_weight
    return round(max(0.0, min(100.0, score)), 1)


# ── Quality ──────────────────────────────────────────────────────────


def _has_location(activity: Activity) -> bool:
    return bool(activity.location.name or activity.location.address)


def _has_schedule(activity: Activity) -> bool:
    return bool(activity.schedule.start_date or activity.schedule.start_time)


def _has_pricing(activity: Activity) -> bool:
    return activity.pricing.type is not None


def activity_quality(activity: Activity) -> float:
    """Completeness of one activity as the sum of satisfied quality weights."""
    score = 0.0
    if activity.title:
        score += QUALITY_WEIGHTS["title"]
    if _has_location(activity):
        score += QUALITY_WEIGHTS["location"]
    if _has_schedule(activity):
        score += QUALITY_WEIGHTS["schedule"]
    if _has_pricing(activity):
        score += QUALITY_WEIGHTS["pricing"]
    if len(activity.description) > MIN_DESCRIPTION_LENGTH:
        score += QUALITY_WEIGHTS["description"]
    return score


def calculate_extraction_quality_score(activities: Iterable[Activity]) -> float:
    """Average quality of a batch, rounded to 4 places; 0.0 for no activities."""
    scores = [activity_quality(a) for a in activities]
    if not scores:
        return 0.0
    return round(sum(scores) / len(scores), 4)


def calculate_conversion_quality(activity: Optional[Activity]) -> ConversionQuality:
    """Field-presence counters for one conversion, fed to the metrics aggregator."""
    if activity is None:
        return ConversionQuality()
    return ConversionQuality(
        activities_with_dates=1 if activity.schedule.start_date else 0,
        activities_with_locations=1 if _has_location(activity) else 0,
        activities_with_pricing=1 if _has_pricing(activity) else 0,
    )
