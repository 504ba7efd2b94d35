"""Whole-activity checks run after conversion.

Field validators judge one raw value; the checks here judge a finished
``Activity``: are the fields a listing needs actually populated, and does a
batch of extracted activities look plausible. Also home to the stable
activity ID and the duplicate-similarity heuristic used when merging
listings from several sources.
"""

import hashlib
import logging
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from activity_normalizer.schemas.activity import Activity
from activity_normalizer.schemas.conversion import IssueSeverity
from activity_normalizer.schemas.diagnostics import ExtractionDiagnostics, ExtractionIssue

logger = logging.getLogger(__name__)

# Score deductions for a finished activity (start at 100)
REQUIRED_PENALTIES = {
    "title": 50.0,
    "location.name": 30.0,
}
WARNING_PENALTIES = {
    "type": 10.0,
    "category": 10.0,
    "schedule.start_date": 20.0,
    "schedule.start_time": 15.0,
    "age_groups": 10.0,
    "pricing.type": 5.0,
    "source.url": 5.0,
    "source.domain": 5.0,
}

_WARNING_MESSAGES = {
    "type": "Activity type not set",
    "category": "Activity category not set",
    "schedule.start_date": "No start date specified",
    "schedule.start_time": "No start time specified",
    "age_groups": "No age groups specified",
    "pricing.type": "Pricing type not specified",
    "source.url": "No source URL",
    "source.domain": "No source domain",
}

MIN_DESCRIPTION_LENGTH = 10


class ActivityCheckResult(BaseModel):
    """Verdict on one finished activity."""

    is_valid: bool = True
    confidence_score: float = Field(default=100.0, ge=0.0, le=100.0)
    issues: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


def _missing(activity: Activity) -> List[str]:
    """Names of the checked fields that are unset on ``activity``."""
    present = {
        "title": bool(activity.title),
        "location.name": bool(activity.location.name),
        "type": activity.type is not None,
        "category": activity.category is not None,
        "schedule.start_date": bool(activity.schedule.start_date),
        "schedule.start_time": bool(activity.schedule.start_time),
        "age_groups": bool(activity.age_groups),
        "pricing.type": activity.pricing.type is not None,
        "source.url": bool(activity.source.url),
        "source.domain": bool(activity.source.domain),
    }
    return [name for name, ok in present.items() if not ok]


def check_activity(activity: Activity) -> ActivityCheckResult:
    """Score a converted activity by the fields a listing needs.

    A missing title or location name makes the activity invalid; every
    other gap is a warning. The score starts at 100 and never drops below 0.
    """
    score = 100.0
    issues: List[str] = []
    warnings: List[str] = []

    for name in _missing(activity):
        if name in REQUIRED_PENALTIES:
            score -= REQUIRED_PENALTIES[name]
            issues.append(f"Activity {name.replace('.', ' ')} is required")
        else:
            score -= WARNING_PENALTIES[name]
            warnings.append(_WARNING_MESSAGES[name])

    result = ActivityCheckResult(
        is_valid=not issues,
        confidence_score=max(0.0, score),
        issues=issues,
        warnings=warnings,
    )
    logger.debug(
        f"Checked '{activity.title or '<untitled>'}': valid={result.is_valid}, "
        f"score={result.confidence_score:.1f}, {len(issues)} issues, {len(warnings)} warnings"
    )
    return result


def check_extracted_activities(
    activities: Iterable[Activity],
    diagnostics: Optional[ExtractionDiagnostics] = None,
) -> List[ExtractionIssue]:
    """Flag implausible activities in an extracted batch.

    Issues are keyed ``activity_<n>.<field>`` (1-based). When ``diagnostics``
    is given the issues are appended to its ``validation_issues`` as well.
    """
    found: List[ExtractionIssue] = []
    for i, activity in enumerate(activities, 1):
        prefix = f"activity_{i}"
        if not activity.title:
            found.append(ExtractionIssue(
                severity=IssueSeverity.ERROR,
                field=f"{prefix}.title",
                message="Activity title is empty",
                suggestion="Ensure title extraction captures event names",
            ))
        if not activity.location.name:
            found.append(ExtractionIssue(
                severity=IssueSeverity.WARNING,
                field=f"{prefix}.location.name",
                message="Activity location name is empty",
                suggestion="Extract the location from venue or address information",
            ))
        if not activity.schedule.start_date:
            found.append(ExtractionIssue(
                severity=IssueSeverity.WARNING,
                field=f"{prefix}.schedule.start_date",
                message="Activity start date is empty",
                suggestion="Check the date patterns of the source page",
            ))
        if len(activity.description) < MIN_DESCRIPTION_LENGTH:
            found.append(ExtractionIssue(
                severity=IssueSeverity.INFO,
                field=f"{prefix}.description",
                message="Activity description is very short",
                suggestion="Consider extracting more detailed content from the source",
            ))
        if not activity.age_groups:
            found.append(ExtractionIssue(
                severity=IssueSeverity.INFO,
                field=f"{prefix}.age_groups",
                message="No age groups specified",
                suggestion="Add age group detection from content patterns",
            ))

    if diagnostics is not None:
        diagnostics.validation_issues.extend(found)
    logger.debug(f"Batch check found {len(found)} issues")
    return found


# ── Identity ─────────────────────────────────────────────────────────


def generate_activity_id(title: str, start_date: str, location: str) -> str:
    """Stable ID from normalized title, date and location: ``act_`` + 8 hex chars."""
    key = "|".join(part.strip().lower() for part in (title, start_date, location))
    return "act_" + hashlib.sha256(key.encode("utf-8")).hexdigest()[:8]


def duplicate_similarity(a: Activity, b: Activity) -> float:
    """Similarity of two listings in [0, 1].

    Title match counts double (substring match counts once), then location
    name (or, failing that, address containment for half) and start date.
    """
    score = 0.0
    title_a, title_b = a.title.lower(), b.title.lower()
    if title_a == title_b:
        score += 2.0
    elif title_a in title_b or title_b in title_a:
        score += 1.0

    if a.location.name.lower() == b.location.name.lower():
        score += 1.0
    elif b.location.address and b.location.address.lower() in a.location.address.lower():
        score += 0.5

    if a.schedule.start_date == b.schedule.start_date:
        score += 1.0
    return score / 4.0
