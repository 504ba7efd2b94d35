"""Schema conversion service: raw extracted record -> canonical Activity.

Conversion is best-effort. Only a record without any recognizable event
content raises (``StructuralConversionError``); every field-level problem
becomes a ``ConversionIssue`` and lowers the confidence score instead.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from activity_normalizer.config.settings import ConversionSettings, ValidationRules
from activity_normalizer.conversion.classifiers import (
    category_matched_keyword,
    contains_keywords,
    describe_source_reliability,
    determine_activity_type,
    determine_category,
    extract_domain,
    extract_zip_code,
    parse_age_groups,
    parse_location_from_address,
    parse_pricing,
    parse_recurrence,
)
from activity_normalizer.conversion.events import (
    SCHEMA_ARRAY_KEYS,
    ConversionError,
    StructuralConversionError,
    locate_events,
)
from activity_normalizer.conversion.field_mapper import FieldMapper, MappedField
from activity_normalizer.conversion.normalizers import get_bool, get_text, get_text_list, truncate
from activity_normalizer.conversion.scoring import FIELD_WEIGHTS, compute_confidence_score
from activity_normalizer.diagnostics.recorder import (
    DiagnosticsRecorder,
    log_conversion_diagnostics,
    summarize_raw_structure,
)
from activity_normalizer.schemas.activity import (
    Activity,
    Location,
    Pricing,
    Provider,
    Registration,
    Schedule,
    ScheduleType,
    Source,
    TimeSlot,
    VenueType,
)
from activity_normalizer.schemas.conversion import (
    ConversionIssue,
    ConversionPreview,
    ConversionResult,
    FieldMapping,
    IssueSeverity,
    IssueType,
    MappingType,
    ValidationResult,
    ValidationStatus,
)
from activity_normalizer.schemas.diagnostics import ConversionAttempt, ConversionDiagnostics
from activity_normalizer.utils.date_parsing import parse_time_range, split_date_time

logger = logging.getLogger(__name__)

__all__ = [
    "ConversionError",
    "SchemaConversionService",
    "StructuralConversionError",
]

OUTDOOR_KEYWORDS = ["park", "beach", "outdoor", "trail", "garden", "playground", "field"]
PROVIDER_KEYS = ["organizer", "provider", "host", "organization"]

# Issue ordering in the result: structure, missing, failed validation, low confidence
_ISSUE_ORDER = {
    IssueType.DATA_QUALITY: 0,
    IssueType.MISSING_FIELD: 1,
    IssueType.INVALID_FORMAT: 2,
    IssueType.VALIDATION_ERROR: 2,
    IssueType.LOW_CONFIDENCE: 3,
}


def _format_issue(issue: ConversionIssue) -> str:
    return f"{issue.field}: {issue.message}"


class SchemaConversionService:
    """Converts raw extracted records into canonical activities."""

    def __init__(
        self,
        settings: Optional[ConversionSettings] = None,
        rules: Optional[ValidationRules] = None,
        recorder: Optional[DiagnosticsRecorder] = None,
        today: Optional[date] = None,
    ) -> None:
        self.settings = settings or ConversionSettings()
        self.rules = rules or ValidationRules()
        self.recorder = recorder or DiagnosticsRecorder()
        self.weights: Dict[str, float] = dict(self.settings.field_weights or FIELD_WEIGHTS)
        self.mapper = FieldMapper(
            rules=self.rules,
            default_unvalidated_confidence=self.settings.default_unvalidated_confidence,
            today=today,
        )

    # ── Public API ───────────────────────────────────────────────────

    def convert_to_activity(
        self,
        raw_data: Any,
        *,
        source_url: str = "",
        schema_type: str = "events",
        event_id: str = "",
        extracted_at: Optional[datetime] = None,
    ) -> ConversionResult:
        """Convert the first event of ``raw_data`` into an Activity.

        Args:
            raw_data: Parsed JSON from the extractor.
            source_url: Page the record was extracted from.
            schema_type: ``events``, ``activities``, ``venues`` or ``custom``.
            event_id: Identifier of the raw record, for diagnostics.
            extracted_at: When the record was scraped.

        Returns:
            ConversionResult. ``activity`` is None only when the record holds
            an empty event list.

        Raises:
            StructuralConversionError: If no event content can be found.
        """
        diagnostics = ConversionDiagnostics(
            admin_event_id=event_id,
            source_url=source_url,
            schema_type=schema_type,
        )
        if isinstance(raw_data, Mapping):
            structure, sample = summarize_raw_structure(raw_data)
            diagnostics.raw_data_structure = structure
            diagnostics.raw_data_sample = sample

        structural_issues: List[ConversionIssue] = []
        locate = ConversionAttempt(step="locate_events")
        diagnostics.attempts.append(locate)
        try:
            events = locate_events(raw_data, schema_type, locate, structural_issues)
        except StructuralConversionError as e:
            diagnostics.conversion_issues = list(e.issues)
            diagnostics.finish(False, str(e))
            self._record(diagnostics)
            logger.warning(f"Conversion failed for '{event_id or source_url}': {e}")
            raise

        locate.success = True
        locate.events_found = len(events)

        if not events:
            result = ConversionResult(
                activity=None,
                confidence_score=0.0,
                issues=[_format_issue(i) for i in structural_issues],
                issue_details=structural_issues,
                events_found=0,
            )
            diagnostics.conversion_issues = list(structural_issues)
            diagnostics.finish(True)
            self._record(diagnostics)
            logger.info(f"No events found for '{event_id or source_url}'")
            return result

        convert = ConversionAttempt(step="convert_event", events_found=len(events))
        diagnostics.attempts.append(convert)
        activity, mapped, inferred = self._build_activity(
            events[0], schema_type, source_url, extracted_at,
        )

        detailed: Dict[str, FieldMapping] = {}
        validation_results: Dict[str, ValidationResult] = {}
        field_issues: List[ConversionIssue] = []
        for name, m in mapped.items():
            if m.mapping is not None:
                detailed[name] = m.mapping
            if m.validation is not None:
                validation_results[name] = m.validation
            field_issues.extend(m.issues)
        detailed.update(inferred)

        field_issues.extend(self._validation_warnings(mapped))
        field_issues.extend(self._low_confidence_issues(detailed))

        all_issues = structural_issues + sorted(
            field_issues, key=lambda i: _ISSUE_ORDER.get(i.type, 2)
        )
        score = compute_confidence_score(
            {name: fm.confidence for name, fm in detailed.items()},
            self.weights,
        )

        convert.success = True
        convert.details["mapped_fields"] = sorted(detailed)
        convert.details["unmapped_fields"] = sorted(n for n, m in mapped.items() if not m.resolved)

        result = ConversionResult(
            activity=activity,
            confidence_score=score,
            issues=[_format_issue(i) for i in all_issues],
            issue_details=all_issues,
            field_mappings={name: fm.source_field for name, fm in detailed.items()},
            detailed_mappings=detailed,
            validation_results=validation_results,
            events_found=len(events),
        )

        diagnostics.field_mappings = dict(detailed)
        diagnostics.validation_results = dict(validation_results)
        diagnostics.conversion_issues = list(all_issues)
        diagnostics.confidence_score = score
        diagnostics.finish(True)
        self._record(diagnostics)

        logger.info(
            f"Converted '{activity.title or '<untitled>'}' from {source_url or 'unknown source'} "
            f"(score {score:.1f}, {len(all_issues)} issues, {len(events)} events found)"
        )
        return result

    def preview_conversion(
        self,
        raw_data: Any,
        *,
        source_url: str = "",
        schema_type: str = "events",
        event_id: str = "",
        extracted_at: Optional[datetime] = None,
    ) -> ConversionPreview:
        """Convert and decide whether the result could be approved as-is."""
        result = self.convert_to_activity(
            raw_data,
            source_url=source_url,
            schema_type=schema_type,
            event_id=event_id,
            extracted_at=extracted_at,
        )
        can_approve = (
            result.activity is not None
            and not result.has_errors
            and result.confidence_score > self.settings.approval_threshold
        )
        return ConversionPreview(
            activity=result.activity,
            issues=result.issues,
            field_mappings=result.field_mappings,
            confidence_score=result.confidence_score,
            can_approve=can_approve,
        )

    def get_last_conversion_diagnostics(self) -> Optional[ConversionDiagnostics]:
        return self.recorder.get_last_conversion()

    # ── Building ─────────────────────────────────────────────────────

    def _record(self, diagnostics: ConversionDiagnostics) -> None:
        self.recorder.record_conversion(diagnostics)
        log_conversion_diagnostics(diagnostics)

    def _build_activity(
        self,
        event: Mapping[str, Any],
        schema_type: str,
        source_url: str,
        extracted_at: Optional[datetime],
    ):
        """Returns (activity, mapped fields, inferred mappings)."""
        mapped = self.mapper.map_record(event)
        inferred: Dict[str, FieldMapping] = {}

        title = mapped["title"].value or ""
        description = mapped["description"].value or ""

        activity_type = determine_activity_type(schema_type, title, description)
        inferred["type"] = FieldMapping(
            activity_field="type",
            source_field="schema_type" if schema_type in SCHEMA_ARRAY_KEYS else "title+description",
            mapping_type=MappingType.INFERRED,
            confidence=self.settings.inferred_confidence,
        )

        category = determine_category(title, description)
        keyword_hit = category_matched_keyword(title, description)
        inferred["category"] = FieldMapping(
            activity_field="category",
            source_field="title+description",
            mapping_type=MappingType.INFERRED,
            confidence=(
                self.settings.inferred_confidence if keyword_hit
                else self.settings.default_category_confidence
            ),
        )

        schedule = self._build_schedule(mapped, inferred)
        now = datetime.now()
        domain = extract_domain(source_url)

        activity = Activity(
            title=title,
            description=description,
            type=activity_type,
            category=category,
            subcategory=get_text(event, "subcategory") or "",
            schedule=schedule,
            age_groups=parse_age_groups(mapped["age_groups"].value or []),
            location=self._build_location(mapped),
            pricing=self._build_pricing(mapped),
            registration=self._build_registration(event, mapped),
            tags=get_text_list(event, "tags") or [],
            provider=self._build_provider(event),
            source=Source(
                url=source_url,
                domain=domain,
                scraped_at=extracted_at,
                last_checked=now,
                reliability=describe_source_reliability(domain),
            ),
            created_at=now,
            updated_at=now,
        )
        return activity, mapped, inferred

    def _build_schedule(
        self,
        mapped: Dict[str, MappedField],
        inferred: Dict[str, FieldMapping],
    ) -> Schedule:
        schedule = Schedule(timezone=self.settings.timezone)

        start_date = mapped["schedule.start_date"]
        if start_date.resolved:
            schedule.start_date = start_date.validation.normalized_value or ""

        start_time = mapped["schedule.start_time"]
        if start_time.resolved:
            parsed = parse_time_range(start_time.value)
            schedule.start_time = parsed.start or ""
            schedule.end_time = parsed.end or ""
        elif start_date.resolved:
            # "2024-12-15 10:00 AM" carries the start time in the date field
            _, time_part = split_date_time(start_date.value)
            parsed = parse_time_range(time_part) if time_part else None
            if parsed is not None and parsed.ok:
                start_time.issues = []
                schedule.start_time = parsed.start
                schedule.end_time = parsed.end or ""
                inferred["schedule.start_time"] = FieldMapping(
                    activity_field="schedule.start_time",
                    source_field=start_date.source_field,
                    source_fields=[start_date.source_field],
                    mapping_type=MappingType.INFERRED,
                    confidence=self.settings.inferred_confidence,
                    validation_status=ValidationStatus.VALID,
                )

        if schedule.start_time:
            schedule.times = [TimeSlot(start_time=schedule.start_time, end_time=schedule.end_time)]

        end_date = mapped["schedule.end_date"]
        if end_date.resolved:
            schedule.end_date = end_date.validation.normalized_value or ""
            if schedule.end_date and schedule.end_date != schedule.start_date:
                schedule.type = ScheduleType.MULTI_DAY

        if mapped["schedule.duration"].resolved:
            schedule.duration = mapped["schedule.duration"].value

        frequency = mapped["schedule.frequency"]
        if frequency.resolved:
            schedule_type, freq, days = parse_recurrence(frequency.value)
            if schedule_type != ScheduleType.ONE_TIME:
                schedule.type = schedule_type
            schedule.frequency = freq
            schedule.days_of_week = days
        return schedule

    def _build_location(self, mapped: Dict[str, MappedField]) -> Location:
        name = mapped["location.name"].value or ""
        address = mapped["location.address"].value or ""
        if not name and not address:
            return Location()

        city, neighborhood = parse_location_from_address(
            f"{address} {name}", default_city=self.settings.default_city,
        )
        venue_type = VenueType.OUTDOOR if contains_keywords(f"{name} {address}", OUTDOOR_KEYWORDS) else VenueType.INDOOR
        return Location(
            name=name,
            address=address,
            neighborhood=neighborhood,
            city=city,
            region=self.settings.default_region,
            zip_code=extract_zip_code(address),
            venue_type=venue_type,
        )

    def _build_pricing(self, mapped: Dict[str, MappedField]) -> Pricing:
        pricing = mapped["pricing"]
        if not pricing.resolved:
            return Pricing()
        return parse_pricing(pricing.value)

    def _build_registration(self, event: Mapping[str, Any], mapped: Dict[str, MappedField]) -> Registration:
        registration = Registration()
        url = mapped["registration.url"]
        if url.resolved:
            registration.url = url.value
            registration.required = True
            registration.method = "online"
        required = get_bool(event, "registration_required")
        if required is not None:
            registration.required = required
        return registration

    def _build_provider(self, event: Mapping[str, Any]) -> Provider:
        for key in PROVIDER_KEYS:
            name = get_text(event, key)
            if name:
                return Provider(name=name)
        return Provider()

    # ── Issues ───────────────────────────────────────────────────────

    def _validation_warnings(self, mapped: Dict[str, MappedField]) -> List[ConversionIssue]:
        """Issues raised by validators on values that were still accepted."""
        issues: List[ConversionIssue] = []
        for name, m in mapped.items():
            if not m.resolved or m.validation is None:
                continue
            suggestions = m.validation.suggestions
            for i, message in enumerate(m.validation.issues):
                issues.append(ConversionIssue(
                    type=IssueType.VALIDATION_ERROR,
                    field=name,
                    message=message,
                    suggestion=suggestions[i] if i < len(suggestions) else "",
                    raw_value=truncate(str(m.value)),
                    severity=IssueSeverity.INFO,
                ))
        return issues

    def _low_confidence_issues(self, detailed: Dict[str, FieldMapping]) -> List[ConversionIssue]:
        threshold = self.settings.low_confidence_threshold
        return [
            ConversionIssue(
                type=IssueType.LOW_CONFIDENCE,
                field=name,
                message=f"Low mapping confidence {fm.confidence:.2f} (from '{fm.source_field}')",
                suggestion="Review this field before approval",
                severity=IssueSeverity.WARNING,
            )
            for name, fm in detailed.items()
            if fm.confidence < threshold
        ]
