"""Unit tests for the diagnostics recorder and structure helpers."""

import logging

from activity_normalizer.diagnostics.recorder import (
    DiagnosticsRecorder,
    analyze_data_structure,
    log_conversion_diagnostics,
    log_extraction_diagnostics,
    summarize_raw_structure,
)
from activity_normalizer.schemas.conversion import ConversionIssue, IssueSeverity, IssueType
from activity_normalizer.schemas.diagnostics import (
    ConversionAttempt,
    ConversionDiagnostics,
    ExtractionDiagnostics,
)

RECORDER_LOGGER = "activity_normalizer.diagnostics.recorder"


class TestRecorder:
    def test_empty(self):
        recorder = DiagnosticsRecorder()
        assert recorder.get_last_conversion() is None
        assert recorder.get_last_extraction() is None

    def test_last_conversion_wins(self):
        recorder = DiagnosticsRecorder()
        recorder.record_conversion(ConversionDiagnostics(admin_event_id="first"))
        recorder.record_conversion(ConversionDiagnostics(admin_event_id="second"))
        assert recorder.get_last_conversion().admin_event_id == "second"

    def test_stored_copy_is_isolated_from_caller(self):
        recorder = DiagnosticsRecorder()
        diag = ConversionDiagnostics(admin_event_id="evt-1")
        recorder.record_conversion(diag)
        diag.admin_event_id = "mutated"
        diag.attempts.append(ConversionAttempt(step="late"))
        stored = recorder.get_last_conversion()
        assert stored.admin_event_id == "evt-1"
        assert stored.attempts == []

    def test_returned_copy_is_isolated_from_store(self):
        recorder = DiagnosticsRecorder()
        recorder.record_extraction(ExtractionDiagnostics(url="https://spl.org"))
        recorder.get_last_extraction().url = "changed"
        assert recorder.get_last_extraction().url == "https://spl.org"

    def test_clear(self):
        recorder = DiagnosticsRecorder()
        recorder.record_conversion(ConversionDiagnostics())
        recorder.record_extraction(ExtractionDiagnostics(url="https://spl.org"))
        recorder.clear()
        assert recorder.get_last_conversion() is None
        assert recorder.get_last_extraction() is None


class TestExtractionDiagnostics:
    def test_add_attempt_and_finish(self):
        diag = ExtractionDiagnostics(url="https://spl.org/events")
        attempt = diag.add_attempt("structured", True, events_found=3)
        diag.set_raw_content("x" * 800)
        diag.finish(True)
        assert diag.attempts == [attempt]
        assert diag.raw_content_length == 800
        assert len(diag.raw_content_sample) == 500
        assert diag.success
        assert diag.processing_time_ms >= 0.0


class TestStructureHelpers:
    RAW = {
        "events": [{"title": "Story Time", "date": "2024-12-15"}],
        "meta": {"page": 1, "total": 1},
        "note": "x" * 150,
        "count": 1,
        "empty": [],
    }

    def test_summarize(self):
        structure, sample = summarize_raw_structure(self.RAW)
        assert structure == {
            "events": "array[1]",
            "meta": "object",
            "note": "string",
            "count": "number",
            "empty": "array[0]",
        }
        assert sample["events_sample"] == {"title": "Story Time", "date": "2024-12-15"}
        assert sample["meta"] == {"page": 1, "total": 1}
        assert sample["note"] == "x" * 100 + "..."
        assert sample["count"] == 1
        assert "empty_sample" not in sample

    def test_summarize_non_mapping(self):
        assert summarize_raw_structure(["a"]) == ({}, {})

    def test_analyze(self):
        analysis = analyze_data_structure(self.RAW)
        assert analysis["total_keys"] == 5
        assert analysis["array_keys"] == ["events", "empty"]
        assert analysis["object_keys"] == ["meta"]
        assert analysis["primitive_keys"] == ["note", "count"]
        events = analysis["key_analysis"]["events"]
        assert events["length"] == 1
        assert events["item_type"] == "object"
        assert events["sample_item_keys"] == ["date", "title"]
        assert analysis["key_analysis"]["note"]["length"] == 150

    def test_analyze_non_mapping(self):
        assert analyze_data_structure("text")["total_keys"] == 0


class TestLogging:
    def make_diagnostics(self) -> ConversionDiagnostics:
        diag = ConversionDiagnostics(admin_event_id="evt-9", source_url="https://spl.org", schema_type="events")
        diag.raw_data_structure = {"events": "array[1]"}
        diag.attempts.append(ConversionAttempt(step="locate_events", success=True, events_found=1))
        diag.conversion_issues.append(ConversionIssue(
            type=IssueType.MISSING_FIELD,
            field="pricing",
            message="No value found for pricing",
            suggestion="Provide one of: price, cost",
            severity=IssueSeverity.WARNING,
        ))
        diag.finish(True)
        return diag

    def test_conversion_report(self, caplog):
        with caplog.at_level(logging.DEBUG, logger=RECORDER_LOGGER):
            log_conversion_diagnostics(self.make_diagnostics())
        assert "CONVERSION DIAGNOSTICS" in caplog.text
        assert "Event ID: evt-9" in caplog.text
        assert "Attempt 1: locate_events" in caplog.text
        assert "[warning/missing_field]: pricing" in caplog.text
        assert "Suggestion: Provide one of: price, cost" in caplog.text

    def test_silent_above_level(self, caplog):
        with caplog.at_level(logging.INFO, logger=RECORDER_LOGGER):
            log_conversion_diagnostics(self.make_diagnostics())
        assert caplog.records == []

    def test_extraction_report(self, caplog):
        diag = ExtractionDiagnostics(url="https://seattle.gov/parks", credits_used=2)
        diag.add_attempt("structured", False, issues=["timeout"])
        diag.finish(False, "timed out")
        with caplog.at_level(logging.DEBUG, logger=RECORDER_LOGGER):
            log_extraction_diagnostics(diag)
        assert "URL: https://seattle.gov/parks" in caplog.text
        assert "Credits Used: 2" in caplog.text
        assert "Error: timed out" in caplog.text
