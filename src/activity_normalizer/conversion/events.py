"""Locate the list of event objects inside a raw extracted record.

Extractors nest events under a schema-specific key (``events``,
``activities``, ``venues``), but real payloads drift: the key may be
renamed, a single object may replace the list, or the record may itself be
one flat event. ``locate_events`` tolerates those shapes and reports what
it did through a ``ConversionAttempt`` and a list of ``ConversionIssue``.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from activity_normalizer.conversion.normalizers import describe_type, truncate
from activity_normalizer.schemas.conversion import ConversionIssue, IssueSeverity, IssueType
from activity_normalizer.schemas.diagnostics import ConversionAttempt

logger = logging.getLogger(__name__)

SCHEMA_ARRAY_KEYS: Dict[str, str] = {
    "events": "events",
    "activities": "activities",
    "venues": "venues",
}
CUSTOM_SCHEMA = "custom"

EVENT_ARRAY_TERMS = ["event", "activity", "activities", "item", "result", "data", "content", "listing", "program"]

# Keys that mark a mapping as a flat event rather than a wrapper
EVENT_MARKER_KEYS = [
    "title", "name", "event_name", "activity_name",
    "date", "start_date", "event_date", "time", "start_time",
    "location", "venue", "description",
]


class ConversionError(Exception):
    """Base class for conversion failures."""


class StructuralConversionError(ConversionError):
    """The raw record has no recognizable event content.

    Attributes:
        issues: ConversionIssues collected while searching for events.
    """

    def __init__(self, message: str, issues: Optional[List[ConversionIssue]] = None):
        super().__init__(message)
        self.issues = list(issues or [])


def looks_like_event(item: Any) -> bool:
    """A mapping that carries at least one typical event key."""
    return isinstance(item, Mapping) and any(k in item for k in EVENT_MARKER_KEYS)


def looks_like_event_array(key: str, array: List[Any]) -> bool:
    if not array:
        return False
    lowered = key.lower()
    if any(term in lowered for term in EVENT_ARRAY_TERMS):
        return True
    return isinstance(array[0], Mapping)


def find_alternative_arrays(raw: Mapping[str, Any], expected_key: str) -> List[str]:
    """Non-empty, event-like arrays other than ``expected_key``, largest first."""
    candidates = [
        key for key, value in raw.items()
        if key != expected_key and isinstance(value, list) and looks_like_event_array(key, value)
    ]
    return sorted(candidates, key=lambda k: len(raw[k]), reverse=True)


def _collect_items(
    items: List[Any],
    array_key: str,
    attempt: ConversionAttempt,
    issues: List[ConversionIssue],
) -> List[Mapping[str, Any]]:
    """Keep the non-empty mapping items; record a warning for every other one."""
    events: List[Mapping[str, Any]] = []
    invalid = 0
    for i, item in enumerate(items):
        if not isinstance(item, Mapping):
            invalid += 1
            message = f"Array item is not an object (type: {describe_type(item)})"
            attempt.issues.append(f"Item {i + 1} in '{array_key}': {message}")
            issues.append(ConversionIssue(
                type=IssueType.INVALID_FORMAT,
                field=f"{array_key}[{i}]",
                message=message,
                suggestion="Items should be objects with event fields",
                raw_value=truncate(str(item)),
                severity=IssueSeverity.WARNING,
            ))
            continue
        if not item:
            invalid += 1
            attempt.issues.append(f"Item {i + 1} in '{array_key}' is empty")
            issues.append(ConversionIssue(
                type=IssueType.MISSING_FIELD,
                field=f"{array_key}[{i}]",
                message="Array item is empty",
                suggestion="Check if extraction captured the expected fields",
                severity=IssueSeverity.WARNING,
            ))
            continue
        events.append(item)

    attempt.details[f"{array_key}_valid_items"] = len(events)
    attempt.details[f"{array_key}_invalid_items"] = invalid
    if events:
        attempt.details[f"{array_key}_sample_fields"] = sorted(events[0].keys())
    logger.debug(f"Array '{array_key}': {len(events)} valid, {invalid} invalid items")
    return events


def _from_key(
    raw: Mapping[str, Any],
    array_key: str,
    attempt: ConversionAttempt,
    issues: List[ConversionIssue],
) -> Optional[List[Mapping[str, Any]]]:
    """Read events under ``array_key``; ``None`` means the key gave nothing usable."""
    value = raw.get(array_key)

    if isinstance(value, Mapping):
        attempt.details["single_object"] = array_key
        if value:
            logger.debug(f"Key '{array_key}' holds a single object, treating it as one event")
            return [value]
        return None

    if not isinstance(value, list):
        if array_key in raw:
            issues.append(ConversionIssue(
                type=IssueType.INVALID_FORMAT,
                field=array_key,
                message=f"Expected array but got {describe_type(value)}",
                suggestion="Check the extraction schema configuration",
                raw_value=truncate(str(value)),
                severity=IssueSeverity.ERROR,
            ))
        return None

    attempt.details[f"{array_key}_array_length"] = len(value)
    if not value:
        attempt.issues.append(f"Array '{array_key}' is empty")
        issues.append(ConversionIssue(
            type=IssueType.MISSING_FIELD,
            field=array_key,
            message=f"Array '{array_key}' contains no items",
            suggestion="Check if the source website contains the expected data",
            severity=IssueSeverity.WARNING,
        ))
        return []

    events = _collect_items(value, array_key, attempt, issues)
    if not events:
        issues.append(ConversionIssue(
            type=IssueType.DATA_QUALITY,
            field=array_key,
            message="No valid items in array",
            suggestion="Check source data quality and extraction schema",
            severity=IssueSeverity.ERROR,
        ))
        raise StructuralConversionError(f"No valid items found in '{array_key}' array", issues)
    return events


def locate_events(
    raw: Any,
    schema_type: str,
    attempt: ConversionAttempt,
    issues: List[ConversionIssue],
) -> List[Mapping[str, Any]]:
    """Return the event mappings of ``raw``.

    An empty list is a legitimate outcome (the source had no events).

    Raises:
        StructuralConversionError: If the record is not a mapping, the schema
            type is unknown, or no event content can be found at all.
    """
    if not isinstance(raw, Mapping) or not raw:
        issues.append(ConversionIssue(
            type=IssueType.DATA_QUALITY,
            field="raw_data",
            message="Raw data is empty or not an object",
            severity=IssueSeverity.ERROR,
        ))
        raise StructuralConversionError("Raw data is empty or not an object", issues)

    if schema_type == CUSTOM_SCHEMA:
        arrays = {k: len(v) for k, v in raw.items() if isinstance(v, list)}
        attempt.details["found_arrays"] = arrays
        if not arrays:
            if looks_like_event(raw):
                attempt.details["flat_record"] = True
                return [raw]
            issues.append(ConversionIssue(
                type=IssueType.MISSING_FIELD,
                field="arrays",
                message="No arrays found in custom schema data",
                suggestion="Check if the extraction returned the expected structure",
                severity=IssueSeverity.ERROR,
            ))
            raise StructuralConversionError("No arrays found in raw data for custom schema", issues)
        best_key = max(arrays, key=lambda k: arrays[k])
        attempt.details["selected_array"] = best_key
        logger.debug(f"Using array '{best_key}' with {arrays[best_key]} items for custom schema")
        events = _from_key(raw, best_key, attempt, issues)
        return events if events is not None else []

    array_key = SCHEMA_ARRAY_KEYS.get(schema_type)
    if array_key is None:
        issues.append(ConversionIssue(
            type=IssueType.VALIDATION_ERROR,
            field="schema_type",
            message=f"Unknown schema type '{schema_type}'",
            suggestion=f"Use one of: {', '.join(sorted([*SCHEMA_ARRAY_KEYS, CUSTOM_SCHEMA]))}",
            raw_value=str(schema_type),
            severity=IssueSeverity.ERROR,
        ))
        raise StructuralConversionError(f"Unknown schema type '{schema_type}'", issues)

    events = _from_key(raw, array_key, attempt, issues)
    if events is not None:
        return events

    available = sorted(raw.keys())
    attempt.issues.append(f"Key '{array_key}' not usable. Available keys: {available}")
    issues.append(ConversionIssue(
        type=IssueType.MISSING_FIELD,
        field=array_key,
        message=f"Expected key '{array_key}' not found in raw data",
        suggestion=f"Check if the extraction uses different key names. Available: {available}",
        severity=IssueSeverity.WARNING,
    ))

    alternatives = find_alternative_arrays(raw, array_key)
    if alternatives:
        attempt.details["alternative_arrays"] = alternatives
        logger.info(f"Using alternative array '{alternatives[0]}' instead of '{array_key}'")
        events = _from_key(raw, alternatives[0], attempt, issues)
        if events is not None:
            return events

    if looks_like_event(raw):
        attempt.details["flat_record"] = True
        logger.info("Raw data looks like a single flat event")
        return [raw]

    issues.append(ConversionIssue(
        type=IssueType.DATA_QUALITY,
        field="raw_data",
        message="No recognizable event content",
        suggestion="Check the extraction output format",
        severity=IssueSeverity.ERROR,
    ))
    raise StructuralConversionError(f"No '{array_key}' array found in raw data", issues)
