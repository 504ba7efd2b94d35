"""Field-level and activity-level validation."""

from activity_normalizer.validation.activity_checks import (
    ActivityCheckResult,
    check_activity,
    check_extracted_activities,
    duplicate_similarity,
    generate_activity_id,
)

__all__ = [
    "ActivityCheckResult",
    "check_activity",
    "check_extracted_activities",
    "duplicate_similarity",
    "generate_activity_id",
]
