"""Field validators for raw activity values.

Each validator takes one raw value and returns a ``ValidationResult`` with
a confidence in [0, 1], human-readable issues and suggestions, and, where
the validator can produce one, a canonical rewrite of the value.
Validators are pure and never raise on unexpected input types.
"""

import re
from datetime import date, timedelta
from typing import Any, Callable, Dict, Optional

from activity_normalizer.config.settings import ValidationRules
from activity_normalizer.conversion.normalizers import (
    coerce_text,
    is_free_price,
    price_amounts,
    safe_float,
    truncate,
)
from activity_normalizer.schemas.conversion import ValidationResult
from activity_normalizer.utils.date_parsing import parse_date, parse_time_range

_DEFAULT_RULES = ValidationRules()

_DATE_FORMATS_HINT = "Use formats like: YYYY-MM-DD, MM/DD/YYYY, or 'January 1, 2024'"
_TIME_FORMATS_HINT = "Use formats like: 14:30, 2:30 PM, or 2:30PM"

# Price vocabulary
_RE_DONATION = re.compile(r"donation|suggested|pay what you (?:can|wish)", re.IGNORECASE)
_RE_OPEN_ENDED = re.compile(r"\bvar(?:y|ies)\b|call for pricing|\bcontact\b|\btbd\b|\btba\b", re.IGNORECASE)
_RE_CURRENCY_AMOUNT = re.compile(r"\$\s?\d|\d(?:[\d,]*)(?:\.\d+)?\s*(?:usd|dollars?)\b", re.IGNORECASE)
_RE_NUMERIC_RANGE = re.compile(r"\d+(?:\.\d+)?\s*(?:-|\u2013|to)\s*\$?\d+", re.IGNORECASE)


def _text_or_issue(value: Any, field: str):
    """Coerce to text, or return an issue string explaining why it is unusable."""
    if isinstance(value, bool) or (value is not None and not isinstance(value, (str, int, float))):
        return None, f"{field} is not a text value (got {type(value).__name__})"
    text = coerce_text(value)
    if text is None:
        return None, f"{field} is empty"
    return text, ""


def _scored(
    confidence: float,
    valid_above: float,
    issue: str = "",
    suggestion: str = "",
    normalized: Optional[str] = None,
) -> ValidationResult:
    return ValidationResult(
        is_valid=confidence > valid_above,
        confidence=confidence,
        issues=[issue] if issue else [],
        suggestions=[suggestion] if suggestion else [],
        normalized_value=normalized,
    )


# =============================================================================
# FIELD VALIDATORS
# =============================================================================


def validate_title(value: Any, rules: Optional[ValidationRules] = None) -> ValidationResult:
    """Score a title by presence and length."""
    rules = rules or _DEFAULT_RULES
    title, problem = _text_or_issue(value, "Title")
    if title is None or title in rules.title_placeholders:
        return ValidationResult(
            is_valid=False,
            confidence=0.1,
            issues=[problem or "Title is missing or using default value"],
            suggestions=["Provide a descriptive title for the activity"],
        )

    if len(title) < rules.title_very_short:
        return _scored(
            rules.title_very_short_confidence, rules.valid_above,
            "Title is very short", "Consider a more descriptive title", title,
        )
    if len(title) < rules.title_short:
        return _scored(
            rules.title_short_confidence, rules.valid_above,
            "Title is short", "Consider a more descriptive title", title,
        )
    if len(title) > rules.title_max_length:
        return _scored(
            rules.title_long_confidence, rules.valid_above,
            "Title is very long", "Consider shortening the title", title,
        )
    return _scored(1.0, rules.valid_above, normalized=title)


def validate_description(value: Any, rules: Optional[ValidationRules] = None) -> ValidationResult:
    """Descriptions are optional: an empty one is still valid."""
    rules = rules or _DEFAULT_RULES
    text, problem = _text_or_issue(value, "Description")
    if text is None:
        return ValidationResult(
            is_valid=True,
            confidence=rules.description_empty_confidence,
            issues=[problem],
            suggestions=["Add a description to help families understand the activity"],
        )
    if len(text) < rules.description_min_length:
        return ValidationResult(
            is_valid=True,
            confidence=rules.description_short_confidence,
            issues=["Description is very short"],
            suggestions=["Consider adding more details about the activity"],
            normalized_value=text,
        )
    return ValidationResult(is_valid=True, confidence=1.0, normalized_value=text)


def validate_date(
    value: Any,
    rules: Optional[ValidationRules] = None,
    today: Optional[date] = None,
) -> ValidationResult:
    """Validate a date string and rewrite it to ISO ``YYYY-MM-DD``.

    Past dates stay valid with reduced confidence; dates whose year had to be
    inferred ("Dec 25") score slightly lower than fully specified ones.
    """
    rules = rules or _DEFAULT_RULES
    today = today or date.today()
    text, problem = _text_or_issue(value, "Date")
    if text is None:
        return ValidationResult(
            is_valid=False,
            confidence=0.0,
            issues=[problem],
            suggestions=["Provide a date in YYYY-MM-DD format"],
        )

    parsed = parse_date(text, today=today)
    if parsed.pattern is None:
        return ValidationResult(
            is_valid=False,
            confidence=rules.invalid_confidence,
            issues=[f"Invalid date format: {truncate(text, 50)}"],
            suggestions=[_DATE_FORMATS_HINT],
        )
    if not parsed.ok:
        return ValidationResult(
            is_valid=False,
            confidence=rules.invalid_confidence,
            issues=[f"Invalid date for pattern {parsed.pattern}: {parsed.error}"],
            suggestions=[f"Check the {parsed.pattern} components, or rewrite as YYYY-MM-DD"],
        )

    if parsed.year_inferred:
        return ValidationResult(
            is_valid=True,
            confidence=rules.inferred_year_confidence,
            issues=[f"Year not given; assumed {parsed.iso[:4]}"],
            suggestions=["Include the year to remove ambiguity"],
            normalized_value=parsed.iso,
        )

    cutoff = today - timedelta(days=rules.past_date_grace_days)
    if date.fromisoformat(parsed.iso) < cutoff:
        return ValidationResult(
            is_valid=True,
            confidence=rules.past_date_confidence,
            issues=["Date appears to be in the past"],
            suggestions=["Verify this is not an expired event"],
            normalized_value=parsed.iso,
        )
    return ValidationResult(is_valid=True, confidence=1.0, normalized_value=parsed.iso)


def validate_time(value: Any, rules: Optional[ValidationRules] = None) -> ValidationResult:
    """Validate a clock time or time range; normalize to 24-hour start time."""
    rules = rules or _DEFAULT_RULES
    text, problem = _text_or_issue(value, "Time")
    if text is None:
        return ValidationResult(
            is_valid=False,
            confidence=0.0,
            issues=[problem],
            suggestions=["Provide time in HH:MM format or '2:00 PM' format"],
        )

    parsed = parse_time_range(text)
    if not parsed.ok:
        issue = f"Invalid time format: {truncate(text, 50)}"
        if parsed.pattern is not None:
            issue = f"Invalid time for pattern {parsed.pattern}: {parsed.error}"
        return ValidationResult(
            is_valid=False,
            confidence=rules.invalid_confidence,
            issues=[issue],
            suggestions=[_TIME_FORMATS_HINT],
        )
    return ValidationResult(is_valid=True, confidence=1.0, normalized_value=parsed.start)


def validate_location(value: Any, rules: Optional[ValidationRules] = None) -> ValidationResult:
    """Score a venue/location name by length."""
    rules = rules or _DEFAULT_RULES
    text, problem = _text_or_issue(value, "Location")
    if text is None:
        return ValidationResult(
            is_valid=False,
            confidence=0.0,
            issues=[problem],
            suggestions=["Provide a venue name or location description"],
        )

    if len(text) < rules.location_min_length:
        return _scored(
            rules.location_min_confidence, rules.valid_above,
            "Location is very short", "Provide the full venue name", text,
        )
    if len(text) < rules.location_short_length:
        return _scored(
            rules.location_short_confidence, rules.valid_above,
            "Location is short", "Include a street address or neighborhood", text,
        )
    if len(text) > rules.location_max_length:
        return _scored(
            rules.location_long_confidence, rules.valid_above,
            "Location is very long", "Keep only the venue name and address", text,
        )
    return _scored(1.0, rules.valid_above, normalized=text)


def validate_price(value: Any, rules: Optional[ValidationRules] = None) -> ValidationResult:
    """Classify a price string; ``normalized_value`` is the cost as ``0.00``."""
    rules = rules or _DEFAULT_RULES
    text, problem = _text_or_issue(value, "Price")
    if text is None:
        return ValidationResult(
            is_valid=False,
            confidence=0.0,
            issues=[problem],
            suggestions=["Provide a price such as '$15', 'Free' or '$10-$20'"],
        )

    if is_free_price(text):
        return ValidationResult(is_valid=True, confidence=1.0, normalized_value="0.00")

    if _RE_DONATION.search(text):
        return ValidationResult(is_valid=True, confidence=rules.price_donation_confidence)

    if _RE_CURRENCY_AMOUNT.search(text) or _RE_NUMERIC_RANGE.search(text):
        cost = safe_float(text, default=None)
        normalized = f"{cost:.2f}" if cost is not None else None
        if cost == 0 and max(price_amounts(text), default=0.0) == 0:
            return ValidationResult(is_valid=True, confidence=1.0, normalized_value="0.00")
        return ValidationResult(
            is_valid=True,
            confidence=rules.price_numeric_confidence,
            normalized_value=normalized,
        )

    if _RE_OPEN_ENDED.search(text):
        return ValidationResult(
            is_valid=True,
            confidence=rules.price_open_ended_confidence,
            issues=["Price is open-ended"],
            suggestions=["Record the actual price range if the source lists one"],
        )

    cost = safe_float(text, default=None)
    return ValidationResult(
        is_valid=True,
        confidence=rules.price_unrecognized_confidence,
        issues=[f"Unrecognized price format: {truncate(text, 50)}"],
        suggestions=["Use formats like: $15, $10-$20, Free, or Suggested donation"],
        normalized_value=f"{cost:.2f}" if cost is not None else None,
    )


def validate_non_empty(value: Any, rules: Optional[ValidationRules] = None) -> ValidationResult:
    """Fallback validator: any non-empty text is valid."""
    text = coerce_text(value)
    if text is None:
        return ValidationResult(is_valid=False, confidence=0.0, issues=["Value is empty"])
    return ValidationResult(is_valid=True, confidence=1.0, normalized_value=text)


# =============================================================================
# REGISTRY
# =============================================================================

VALIDATORS: Dict[str, Callable[..., ValidationResult]] = {
    "title": validate_title,
    "description": validate_description,
    "date": validate_date,
    "time": validate_time,
    "location": validate_location,
    "price": validate_price,
    "non_empty": validate_non_empty,
}


def get_validator(name: str) -> Callable[..., ValidationResult]:
    """Get validator function by name."""
    return VALIDATORS.get(name, validate_non_empty)
