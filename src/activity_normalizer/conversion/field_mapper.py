"""Priority-ordered field mapping from raw keys to canonical Activity fields.

For every canonical field the mapper walks a fixed list of candidate raw
keys, validates the first present value and either selects it or keeps
walking. The outcome records which key won, which keys were tried, the
validator verdict and any issue worth reporting.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from activity_normalizer.config.settings import ValidationRules
from activity_normalizer.conversion.normalizers import coerce_text, get_text_list, truncate
from activity_normalizer.schemas.conversion import (
    ConversionIssue,
    FieldMapping,
    IssueSeverity,
    IssueType,
    MappingType,
    ValidationResult,
    ValidationStatus,
)
from activity_normalizer.validation.validators import get_validator, validate_date

logger = logging.getLogger(__name__)

# ── Candidate tables ─────────────────────────────────────────────────

FIELD_CANDIDATES: Dict[str, List[str]] = {
    "title": ["title", "name", "event_name", "activity_name", "subject", "heading"],
    "description": ["description", "details", "summary", "content", "about", "info"],
    "schedule.start_date": ["date", "start_date", "event_date", "schedule_date", "when"],
    "schedule.start_time": ["time", "start_time", "event_time", "hours"],
    "schedule.end_date": ["end_date", "until", "through"],
    "schedule.duration": ["duration", "length"],
    "schedule.frequency": ["schedule", "frequency", "recurring", "recurrence"],
    "location.name": ["location", "venue", "venue_name", "place", "where"],
    "location.address": ["address", "location_address", "venue_address", "location"],
    "pricing": ["price", "cost", "fee", "admission_fee", "pricing", "admission"],
    "age_groups": ["age_groups", "age_suitability", "ages", "age_range"],
    "registration.url": ["registration_url", "website", "url", "link"],
}

FIELD_VALIDATORS: Dict[str, str] = {
    "title": "title",
    "description": "description",
    "schedule.start_date": "date",
    "schedule.start_time": "time",
    "schedule.end_date": "date",
    "location.name": "location",
    "pricing": "price",
}

REQUIRED_FIELDS = ("title", "type", "category")

# Optional fields whose absence is only informational
INFO_FIELDS = ("description",)

# Keys read from a nested object when a location candidate holds a mapping
_NESTED_LOCATION_KEYS = {
    "location.name": ("name", "venue", "title"),
    "location.address": ("address", "street", "full_address"),
}

# Candidates that only count when they hold a nested object; a plain
# "location" string is a venue name, not an address
_NESTED_ONLY = {("location.address", "location")}


@dataclass
class MappedField:
    """Outcome of mapping one canonical field."""

    field: str
    value: Any = None
    source_field: str = ""
    mapping: Optional[FieldMapping] = None
    validation: Optional[ValidationResult] = None
    issues: List[ConversionIssue] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.mapping is not None


def missing_severity(field_name: str) -> IssueSeverity:
    if field_name in REQUIRED_FIELDS:
        return IssueSeverity.ERROR
    if field_name in INFO_FIELDS:
        return IssueSeverity.INFO
    return IssueSeverity.WARNING


def validation_status(result: Optional[ValidationResult]) -> ValidationStatus:
    if result is None:
        return ValidationStatus.NOT_VALIDATED
    if not result.is_valid:
        return ValidationStatus.INVALID
    if result.issues:
        return ValidationStatus.WARNING
    return ValidationStatus.VALID


class FieldMapper:
    """Resolves canonical fields from a raw event mapping."""

    def __init__(
        self,
        rules: Optional[ValidationRules] = None,
        default_unvalidated_confidence: float = 0.7,
        today: Optional[date] = None,
        candidates: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        self.rules = rules or ValidationRules()
        self.default_unvalidated_confidence = default_unvalidated_confidence
        self.today = today
        self.candidates = dict(candidates or FIELD_CANDIDATES)

    def _read(self, record: Mapping[str, Any], key: str, field_name: str) -> Any:
        """Usable value of ``record[key]`` for ``field_name``, or None."""
        if field_name == "age_groups":
            texts = get_text_list(record, key)
            if texts is not None:
                return texts
            text = coerce_text(record.get(key))
            return [text] if text else None

        value = record.get(key)
        if (field_name, key) in _NESTED_ONLY and not isinstance(value, Mapping):
            return None
        if isinstance(value, Mapping) and field_name in _NESTED_LOCATION_KEYS:
            for nested_key in _NESTED_LOCATION_KEYS[field_name]:
                text = coerce_text(value.get(nested_key))
                if text:
                    return text
            return None
        return coerce_text(value)

    def _validate(self, field_name: str, value: Any) -> Optional[ValidationResult]:
        validator_name = FIELD_VALIDATORS.get(field_name)
        if validator_name is None:
            return None
        if validator_name == "date":
            return validate_date(value, rules=self.rules, today=self.today)
        return get_validator(validator_name)(value, rules=self.rules)

    def map_field(self, record: Mapping[str, Any], field_name: str) -> MappedField:
        """Walk the candidates of ``field_name`` and pick the first usable value."""
        candidates = self.candidates.get(field_name, [])
        attempted: List[str] = []
        rejected: Optional[tuple] = None

        for index, key in enumerate(candidates):
            attempted.append(key)
            value = self._read(record, key, field_name)
            if value is None:
                continue

            result = self._validate(field_name, value)
            if result is not None and not result.is_valid:
                logger.debug(f"Rejected '{key}' for {field_name}: {result.issues}")
                if rejected is None:
                    rejected = (key, value, result)
                continue

            mapping_type = MappingType.DIRECT if index == 0 else MappingType.FALLBACK
            confidence = result.confidence if result is not None else self.default_unvalidated_confidence
            mapping = FieldMapping(
                activity_field=field_name,
                source_field=key,
                source_fields=list(attempted),
                mapping_type=mapping_type,
                confidence=confidence,
                validation_status=validation_status(result),
            )
            return MappedField(
                field=field_name,
                value=value,
                source_field=key,
                mapping=mapping,
                validation=result,
            )

        return self._unresolved(field_name, candidates, rejected)

    def _unresolved(
        self,
        field_name: str,
        candidates: List[str],
        rejected: Optional[tuple],
    ) -> MappedField:
        issues = [ConversionIssue(
            type=IssueType.MISSING_FIELD,
            field=field_name,
            message=f"No usable value for '{field_name}'",
            suggestion=f"Provide one of: {', '.join(candidates)}",
            severity=missing_severity(field_name),
        )]

        if rejected is not None:
            key, value, result = rejected
            issues.append(ConversionIssue(
                type=IssueType.INVALID_FORMAT,
                field=field_name,
                message=f"Value from '{key}' rejected: {'; '.join(result.issues)}",
                suggestion="; ".join(result.suggestions),
                raw_value=truncate(str(value)),
                severity=IssueSeverity.WARNING,
            ))
            validation = result
        else:
            validation = self._validate(field_name, None)

        return MappedField(field=field_name, validation=validation, issues=issues)

    def map_record(self, record: Mapping[str, Any]) -> Dict[str, MappedField]:
        """Map every field of the candidate table, in table order."""
        return {name: self.map_field(record, name) for name in self.candidates}
