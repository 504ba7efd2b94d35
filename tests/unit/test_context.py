"""Unit tests for NormalizerContext and build_context."""

from datetime import date

import pytest

from activity_normalizer.config.settings import ConversionSettings, NormalizerSettings
from activity_normalizer.context import NormalizerContext, build_context
from activity_normalizer.conversion.engine import StructuralConversionError
from activity_normalizer.schemas.activity import Activity
from activity_normalizer.schemas.diagnostics import ExtractionDiagnostics
from activity_normalizer.schemas.metrics import AlertType

TODAY = date(2024, 6, 1)


class TestConversion:
    def test_convert_and_diagnostics(self, context, full_record):
        result = context.convert_to_activity(full_record, event_id="evt-1")
        assert result.activity.title == "Family Science Workshop"
        assert context.get_last_conversion_diagnostics().admin_event_id == "evt-1"

    def test_untracked_by_default(self, context, full_record):
        context.convert_to_activity(full_record)
        assert context.get_dashboard_metrics().conversion.total_attempts == 0

    def test_tracked_conversion(self, context, full_record):
        context.convert_to_activity(full_record, track=True)
        dashboard = context.get_dashboard_metrics()
        assert dashboard.conversion.successful == 1
        assert dashboard.quality.activities_with_dates == 1
        assert dashboard.quality.activities_with_locations == 1
        assert dashboard.quality.activities_with_pricing == 1

    def test_tracked_empty_record_is_failure(self, context):
        context.convert_to_activity({"events": []}, track=True)
        assert context.get_dashboard_metrics().conversion.failed == 1

    def test_structural_error_propagates(self, context):
        with pytest.raises(StructuralConversionError):
            context.convert_to_activity({}, track=True)
        assert not context.get_last_conversion_diagnostics().success

    def test_preview(self, context, full_record):
        assert context.preview_conversion(full_record, source_url="https://spl.org").can_approve

    def test_settings_reach_engine(self, full_record):
        settings = NormalizerSettings(conversion=ConversionSettings(default_city="Tacoma"))
        ctx = NormalizerContext(settings=settings, today=TODAY)
        record = {"events": [{"title": "Harbor Walk", "location": "Point Defiance"}]}
        assert ctx.convert_to_activity(record).activity.location.city == "Tacoma"

    def test_contexts_do_not_share_state(self, full_record):
        a, b = NormalizerContext(today=TODAY), NormalizerContext(today=TODAY)
        a.convert_to_activity(full_record, event_id="only-a")
        assert b.get_last_conversion_diagnostics() is None


class TestExtraction:
    def test_record_extraction_diagnostics(self, context):
        context.record_extraction_diagnostics(ExtractionDiagnostics(url="https://spl.org/events"))
        assert context.get_last_extraction_diagnostics().url == "https://spl.org/events"

    def test_check_activities_records_diagnostics(self, context):
        diagnostics = ExtractionDiagnostics(url="https://spl.org/events")
        issues = context.check_activities([Activity(title="Story Time")], diagnostics)
        assert issues
        stored = context.get_last_extraction_diagnostics()
        assert [i.field for i in stored.validation_issues] == [i.field for i in issues]

    def test_check_activities_without_diagnostics(self, context):
        context.check_activities([Activity()])
        assert context.get_last_extraction_diagnostics() is None


class TestMetrics:
    def test_alerts_use_settings(self):
        settings = NormalizerSettings.model_validate({"alerts": {"max_failure_streak": 1}})
        ctx = NormalizerContext(settings=settings)
        ctx.record_extraction_attempt("https://spl.org/events", False)
        assert [a.type for a in ctx.check_alerts()] == [AlertType.FAILURE_STREAK]

    def test_reset(self, context):
        context.record_extraction_attempt("https://spl.org/events", True, 3, 1.0)
        context.reset_metrics()
        assert context.get_dashboard_metrics().extraction.total_attempts == 0


class TestBuildContext:
    def test_explicit_settings(self):
        settings = NormalizerSettings(conversion=ConversionSettings(approval_threshold=90))
        assert build_context(settings).settings.conversion.approval_threshold == 90

    def test_settings_from_startup(self, tmp_path):
        (tmp_path / "activity_normalizer.yaml").write_text(
            "conversion:\n  default_region: Puget Sound\n", encoding="utf-8",
        )
        ctx = build_context(today=TODAY)
        assert ctx.settings.conversion.default_region == "Puget Sound"
