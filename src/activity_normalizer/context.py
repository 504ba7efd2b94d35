"""Caller-owned runtime context bundling the conversion engine and monitors.

A ``NormalizerContext`` replaces process-wide singletons: the embedding
service builds one (``build_context``) and passes it to whatever needs
conversion, diagnostics or metrics. Tests build their own and never share
state.
"""

import logging
from datetime import date, datetime
from typing import Any, Iterable, List, Optional

from activity_normalizer.config.settings import NormalizerSettings
from activity_normalizer.conversion.engine import SchemaConversionService
from activity_normalizer.conversion.scoring import calculate_conversion_quality
from activity_normalizer.diagnostics.recorder import DiagnosticsRecorder, log_extraction_diagnostics
from activity_normalizer.monitoring.metrics import Duration, ExtractionMetrics
from activity_normalizer.schemas.activity import Activity
from activity_normalizer.schemas.conversion import ConversionPreview, ConversionResult
from activity_normalizer.schemas.diagnostics import ConversionDiagnostics, ExtractionDiagnostics, ExtractionIssue
from activity_normalizer.schemas.metrics import Alert, ConversionQuality, DashboardSnapshot
from activity_normalizer.validation.activity_checks import check_extracted_activities

logger = logging.getLogger(__name__)


class NormalizerContext:
    """Owns one conversion service, one diagnostics recorder and one metrics aggregator."""

    def __init__(
        self,
        settings: Optional[NormalizerSettings] = None,
        today: Optional[date] = None,
    ) -> None:
        self.settings = settings or NormalizerSettings()
        self.recorder = DiagnosticsRecorder()
        self.metrics = ExtractionMetrics(thresholds=self.settings.alerts)
        self.service = SchemaConversionService(
            settings=self.settings.conversion,
            rules=self.settings.validation,
            recorder=self.recorder,
            today=today,
        )

    # ── Conversion ───────────────────────────────────────────────────

    def convert_to_activity(
        self,
        raw_data: Any,
        *,
        source_url: str = "",
        schema_type: str = "events",
        event_id: str = "",
        extracted_at: Optional[datetime] = None,
        track: bool = False,
    ) -> ConversionResult:
        """Convert a record; with ``track`` the outcome is also fed to the metrics."""
        result = self.service.convert_to_activity(
            raw_data,
            source_url=source_url,
            schema_type=schema_type,
            event_id=event_id,
            extracted_at=extracted_at,
        )
        if track:
            self.record_conversion_attempt(
                success=result.activity is not None,
                quality=calculate_conversion_quality(result.activity),
            )
        return result

    def preview_conversion(self, raw_data: Any, **kwargs: Any) -> ConversionPreview:
        return self.service.preview_conversion(raw_data, **kwargs)

    def get_last_conversion_diagnostics(self) -> Optional[ConversionDiagnostics]:
        return self.recorder.get_last_conversion()

    # ── Extraction diagnostics ───────────────────────────────────────

    def record_extraction_diagnostics(self, diagnostics: ExtractionDiagnostics) -> None:
        """Store diagnostics reported by the extraction collaborator."""
        self.recorder.record_extraction(diagnostics)
        log_extraction_diagnostics(diagnostics)

    def get_last_extraction_diagnostics(self) -> Optional[ExtractionDiagnostics]:
        return self.recorder.get_last_extraction()

    def check_activities(
        self,
        activities: Iterable[Activity],
        diagnostics: Optional[ExtractionDiagnostics] = None,
    ) -> List[ExtractionIssue]:
        """Flag implausible activities of an extracted batch.

        With ``diagnostics`` the issues are also attached to it and the
        updated diagnostics become the last recorded extraction.
        """
        issues = check_extracted_activities(activities, diagnostics)
        if diagnostics is not None:
            self.record_extraction_diagnostics(diagnostics)
        return issues

    # ── Metrics ──────────────────────────────────────────────────────

    def record_extraction_attempt(
        self,
        source_url: str,
        success: bool,
        activity_count: int = 0,
        duration: Duration = 0.0,
        quality_score: float = 0.0,
    ) -> None:
        self.metrics.record_extraction_attempt(
            source_url, success, activity_count, duration, quality_score,
        )

    def record_conversion_attempt(
        self,
        success: bool,
        quality: Optional[ConversionQuality] = None,
    ) -> None:
        self.metrics.record_conversion_attempt(success, quality)

    def check_alerts(self) -> List[Alert]:
        return self.metrics.check_alerts()

    def get_dashboard_metrics(self) -> DashboardSnapshot:
        return self.metrics.dashboard_snapshot()

    def reset_metrics(self) -> None:
        self.metrics.reset()


def build_context(
    settings: Optional[NormalizerSettings] = None,
    today: Optional[date] = None,
) -> NormalizerContext:
    """Build a context from explicit settings, or from the startup settings file."""
    if settings is None:
        from activity_normalizer.startup import ensure_initialized

        settings = ensure_initialized().settings
    return NormalizerContext(settings=settings, today=today)
