"""Unit tests for SchemaConversionService.

Covers event location in drifting payload shapes, canonical field mapping,
the weighted confidence score, issue ordering and the diagnostics trail.
"""

from datetime import date

import pytest

from activity_normalizer.config.settings import ConversionSettings
from activity_normalizer.conversion.engine import (
    ConversionError,
    SchemaConversionService,
    StructuralConversionError,
)
from activity_normalizer.diagnostics.recorder import DiagnosticsRecorder
from activity_normalizer.schemas.activity import (
    ActivityCategory,
    ActivityType,
    AgeGroupCategory,
    PricingType,
    ScheduleType,
    VenueType,
)
from activity_normalizer.schemas.conversion import IssueSeverity, IssueType, MappingType

TODAY = date(2024, 6, 1)


# ── Well-formed records ──────────────────────────────────────────────


class TestFullRecord:
    def test_produces_activity(self, service, full_record):
        result = service.convert_to_activity(full_record, source_url="https://www.spl.org/events")
        assert result.activity is not None
        assert 0.0 <= result.confidence_score <= 100.0
        assert result.events_found == 1

    def test_confidence_score(self, service, full_record):
        result = service.convert_to_activity(full_record)
        assert result.confidence_score == pytest.approx(91.6, abs=0.05)

    def test_core_fields(self, service, full_record):
        activity = service.convert_to_activity(full_record).activity
        assert activity.title == "Family Science Workshop"
        assert activity.type == ActivityType.EVENT
        assert activity.category == ActivityCategory.EDUCATIONAL_STEM
        assert activity.provider.name == "Seattle Public Library"

    def test_schedule(self, service, full_record):
        schedule = service.convert_to_activity(full_record).activity.schedule
        assert schedule.start_date == "2024-12-15"
        assert schedule.start_time == "10:00"
        assert schedule.end_time == "11:30"
        assert len(schedule.times) == 1
        assert schedule.type == ScheduleType.ONE_TIME

    def test_location(self, service, full_record):
        location = service.convert_to_activity(full_record).activity.location
        assert location.name == "Ballard Library"
        assert location.neighborhood == "Ballard"
        assert location.city == "Seattle"
        assert location.zip_code == "98107"
        assert location.venue_type == VenueType.INDOOR

    def test_pricing_and_ages(self, service, full_record):
        activity = service.convert_to_activity(full_record).activity
        assert activity.pricing.type == PricingType.PAID
        assert activity.pricing.cost == 15.0
        assert [g.category for g in activity.age_groups] == [
            AgeGroupCategory.PRESCHOOL, AgeGroupCategory.ELEMENTARY,
        ]

    def test_registration(self, service, full_record):
        registration = service.convert_to_activity(full_record).activity.registration
        assert registration.url == "https://spl.org/register"
        assert registration.required
        assert registration.method == "online"

    def test_registration_flag_override(self, service, full_record):
        full_record["events"][0]["registration_required"] = "no"
        assert not service.convert_to_activity(full_record).activity.registration.required

    def test_source(self, service, full_record):
        source = service.convert_to_activity(full_record, source_url="https://www.spl.org/events").activity.source
        assert source.url == "https://www.spl.org/events"
        assert source.domain == "spl.org"
        assert source.last_checked is not None

    def test_malformed_source_url_keeps_activity(self, service, full_record):
        result = service.convert_to_activity(full_record, source_url="http://[::1")
        assert result.activity is not None
        assert result.activity.source.url == "http://[::1"
        assert result.activity.source.domain == ""
        assert result.activity.source.reliability == "medium"
        assert service.get_last_conversion_diagnostics().success

    def test_mappings(self, service, full_record):
        result = service.convert_to_activity(full_record)
        assert result.field_mappings["title"] == "title"
        assert result.field_mappings["pricing"] == "price"
        assert result.detailed_mappings["type"].mapping_type == MappingType.INFERRED
        assert result.detailed_mappings["category"].confidence == pytest.approx(0.8)
        assert "schedule.end_date" not in result.field_mappings

    def test_only_optional_gaps(self, service, full_record):
        result = service.convert_to_activity(full_record)
        assert not result.has_errors
        missing = {i.field for i in result.issue_details if i.type == IssueType.MISSING_FIELD}
        assert missing == {"schedule.end_date", "schedule.duration", "schedule.frequency"}
        assert all(isinstance(s, str) for s in result.issues)

    def test_raw_record_not_mutated(self, service, full_record):
        before = {"events": [dict(full_record["events"][0])]}
        service.convert_to_activity(full_record)
        assert full_record == before


class TestFieldFallbacks:
    def test_title_from_name(self, service, name_only_record):
        result = service.convert_to_activity(name_only_record)
        assert result.activity.title == "Community Garden Day"
        assert result.field_mappings["title"] == "name"
        assert result.detailed_mappings["title"].mapping_type == MappingType.FALLBACK

    def test_rejected_date_reported(self, service):
        record = {"events": [{"title": "Storytime at the Park", "date": "invalid-date"}]}
        result = service.convert_to_activity(record)
        assert result.activity.schedule.start_date == ""
        assert "schedule.start_date" not in result.field_mappings
        assert not result.validation_results["schedule.start_date"].is_valid
        invalid = [i for i in result.issue_details if i.type == IssueType.INVALID_FORMAT]
        assert invalid[0].raw_value == "invalid-date"

    def test_missing_title_is_error(self, service):
        result = service.convert_to_activity({"events": [{"date": "2024-12-15", "location": "Green Lake Park"}]})
        assert result.activity is not None
        assert result.activity.title == ""
        assert result.has_errors

    def test_time_inferred_from_date(self, service):
        record = {"events": [{"title": "Holiday Concert Night", "date": "2024-12-15 7:00 PM"}]}
        result = service.convert_to_activity(record)
        schedule = result.activity.schedule
        assert schedule.start_date == "2024-12-15"
        assert schedule.start_time == "19:00"
        mapping = result.detailed_mappings["schedule.start_time"]
        assert mapping.mapping_type == MappingType.INFERRED
        assert mapping.source_field == "date"
        assert not any(i.field == "schedule.start_time" for i in result.issue_details)

    def test_multi_day(self, service):
        record = {"events": [{"title": "Winter Break Camp", "date": "2024-12-23", "end_date": "2024-12-27"}]}
        schedule = service.convert_to_activity(record).activity.schedule
        assert schedule.type == ScheduleType.MULTI_DAY
        assert schedule.end_date == "2024-12-27"

    def test_recurrence(self, service):
        record = {"events": [{"title": "Toddler Yoga", "schedule": "Every Tuesday and Thursday"}]}
        schedule = service.convert_to_activity(record).activity.schedule
        assert schedule.type == ScheduleType.RECURRING
        assert schedule.frequency == "weekly"
        assert schedule.days_of_week == ["Tuesday", "Thursday"]

    def test_outdoor_venue(self, service):
        record = {"events": [{"title": "Nature Walk", "location": "Discovery Park"}]}
        assert service.convert_to_activity(record).activity.location.venue_type == VenueType.OUTDOOR

    def test_activities_schema_type(self, service):
        record = {"activities": [{"title": "Pottery Class for Kids"}]}
        activity = service.convert_to_activity(record, schema_type="activities").activity
        assert activity.type == ActivityType.CLASS


# ── Issues and score ─────────────────────────────────────────────────


class TestIssues:
    def test_low_confidence_price(self, service):
        record = {"events": [{"title": "Family Science Workshop", "price": "Call for pricing"}]}
        result = service.convert_to_activity(record)
        low = [i for i in result.issue_details if i.type == IssueType.LOW_CONFIDENCE]
        assert "pricing" in {i.field for i in low}
        info = [i for i in result.issue_details if i.type == IssueType.VALIDATION_ERROR and i.field == "pricing"]
        assert info[0].severity == IssueSeverity.INFO
        assert result.activity.pricing.type == PricingType.VARIABLE

    def test_default_category_is_low_confidence(self, service):
        record = {"events": [{"title": "Neighborhood Potluck"}]}
        result = service.convert_to_activity(record)
        assert result.activity.category == ActivityCategory.FREE_COMMUNITY
        assert result.detailed_mappings["category"].confidence == pytest.approx(0.5)
        assert any(i.type == IssueType.LOW_CONFIDENCE and i.field == "category" for i in result.issue_details)

    def test_issue_order(self, service):
        record = {"events": [{"title": "Neighborhood Potluck", "date": "invalid-date", "price": "Varies"}]}
        order = {
            IssueType.DATA_QUALITY: 0,
            IssueType.MISSING_FIELD: 1,
            IssueType.INVALID_FORMAT: 2,
            IssueType.VALIDATION_ERROR: 2,
            IssueType.LOW_CONFIDENCE: 3,
        }
        ranks = [order[i.type] for i in service.convert_to_activity(record).issue_details]
        assert ranks == sorted(ranks)
        assert ranks[-1] == 3

    def test_issue_strings_match_details(self, service, name_only_record):
        result = service.convert_to_activity(name_only_record)
        assert result.issues == [f"{i.field}: {i.message}" for i in result.issue_details]

    def test_minimal_record_score_in_range(self, service):
        result = service.convert_to_activity({"events": [{"title": "X"}]})
        assert 0.0 <= result.confidence_score <= 100.0

    def test_custom_weights(self):
        settings = ConversionSettings(field_weights={"title": 1.0})
        service = SchemaConversionService(settings=settings, today=TODAY)
        result = service.convert_to_activity({"events": [{"title": "Family Science Workshop"}]})
        assert result.confidence_score == 100.0


# ── Payload shapes ───────────────────────────────────────────────────


class TestEventLocation:
    def test_empty_list_yields_no_activity(self, service):
        result = service.convert_to_activity({"events": []})
        assert result.activity is None
        assert result.confidence_score == 0.0
        assert result.events_found == 0
        assert result.issue_details[0].field == "events"

    def test_single_object_instead_of_list(self, service):
        result = service.convert_to_activity({"events": {"title": "Puppet Show"}})
        assert result.activity.title == "Puppet Show"
        assert result.events_found == 1

    def test_alternative_array(self, service):
        result = service.convert_to_activity({"items": [{"title": "Toddler Dance Party"}]})
        assert result.activity.title == "Toddler Dance Party"
        first = result.issue_details[0]
        assert first.type == IssueType.MISSING_FIELD
        assert first.field == "events"

    def test_flat_event(self, service):
        result = service.convert_to_activity({"title": "Open Swim", "date": "2024-12-15"})
        assert result.activity.title == "Open Swim"

    def test_non_object_items_skipped(self, service):
        result = service.convert_to_activity({"events": ["oops", {"title": "Art Walk"}]})
        assert result.activity.title == "Art Walk"
        assert result.events_found == 1
        assert any(i.field == "events[0]" for i in result.issue_details)

    def test_counts_all_events_converts_first(self, service):
        record = {"events": [{"title": "First Event Title"}, {"title": "Second Event Title"}]}
        result = service.convert_to_activity(record)
        assert result.events_found == 2
        assert result.activity.title == "First Event Title"

    def test_custom_schema_picks_largest_array(self, service):
        record = {"meta": [{"page": 1}], "listings": [{"title": "Alpha Event"}, {"title": "Beta Event"}]}
        result = service.convert_to_activity(record, schema_type="custom")
        assert result.activity.title == "Alpha Event"
        assert result.events_found == 2


class TestStructuralFailures:
    @pytest.mark.parametrize("raw", [{}, [], "not json", None])
    def test_empty_or_non_object(self, service, raw):
        with pytest.raises(StructuralConversionError):
            service.convert_to_activity(raw)

    def test_only_invalid_items(self, service):
        with pytest.raises(StructuralConversionError) as exc_info:
            service.convert_to_activity({"events": ["a", 1]})
        assert exc_info.value.issues[-1].type == IssueType.DATA_QUALITY

    def test_unknown_schema_type(self, service, full_record):
        with pytest.raises(StructuralConversionError, match="Unknown schema type"):
            service.convert_to_activity(full_record, schema_type="widgets")

    def test_no_event_content(self, service):
        with pytest.raises(StructuralConversionError):
            service.convert_to_activity({"status": "ok", "count": 0})

    def test_custom_without_arrays(self, service):
        with pytest.raises(StructuralConversionError):
            service.convert_to_activity({"foo": "bar"}, schema_type="custom")

    def test_is_conversion_error(self, service):
        with pytest.raises(ConversionError):
            service.convert_to_activity({})


# ── Diagnostics and preview ──────────────────────────────────────────


class TestDiagnostics:
    def test_success_recorded(self, service, full_record):
        result = service.convert_to_activity(full_record, source_url="https://spl.org", event_id="evt-1")
        diag = service.get_last_conversion_diagnostics()
        assert diag.success
        assert diag.admin_event_id == "evt-1"
        assert diag.source_url == "https://spl.org"
        assert diag.confidence_score == result.confidence_score
        assert [a.step for a in diag.attempts] == ["locate_events", "convert_event"]
        assert diag.raw_data_structure == {"events": "array[1]"}
        assert diag.end_time is not None

    def test_failure_recorded(self, service):
        with pytest.raises(StructuralConversionError):
            service.convert_to_activity({"events": ["a"]}, event_id="evt-2")
        diag = service.get_last_conversion_diagnostics()
        assert not diag.success
        assert diag.admin_event_id == "evt-2"
        assert "No valid items" in diag.error_message
        assert diag.conversion_issues

    def test_last_one_wins(self, service, full_record, name_only_record):
        service.convert_to_activity(full_record, event_id="a")
        service.convert_to_activity(name_only_record, event_id="b")
        assert service.get_last_conversion_diagnostics().admin_event_id == "b"

    def test_shared_recorder(self, full_record):
        recorder = DiagnosticsRecorder()
        service = SchemaConversionService(recorder=recorder, today=TODAY)
        service.convert_to_activity(full_record, event_id="shared")
        assert recorder.get_last_conversion().admin_event_id == "shared"


class TestPreview:
    def test_can_approve_complete_record(self, service, full_record):
        preview = service.preview_conversion(full_record)
        assert preview.can_approve
        assert preview.activity is not None
        assert preview.field_mappings["title"] == "title"

    def test_cannot_approve_with_errors(self, service):
        preview = service.preview_conversion({"events": [{"date": "2024-12-15"}]})
        assert not preview.can_approve

    def test_cannot_approve_empty(self, service):
        assert not service.preview_conversion({"events": []}).can_approve

    def test_threshold_from_settings(self, full_record):
        settings = ConversionSettings(approval_threshold=95)
        service = SchemaConversionService(settings=settings, today=TODAY)
        assert not service.preview_conversion(full_record).can_approve
