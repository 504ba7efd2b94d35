"""Extraction and conversion metrics aggregator.

``ExtractionMetrics`` accumulates counters per source URL and globally.
It is explicitly constructed and owned by the caller; all updates happen
under one lock, and readers receive immutable snapshots.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Union

from activity_normalizer.monitoring.alerts import evaluate_alerts
from activity_normalizer.schemas.metrics import (
    Alert,
    AlertThresholds,
    ConversionQuality,
    DashboardSnapshot,
    MetricsSnapshot,
    QualityMetrics,
    QualityView,
    SourceMetric,
    SourceView,
    TotalsView,
)

logger = logging.getLogger(__name__)

# Weight of the previous average in the processing-time moving average
PROCESSING_TIME_DECAY = 0.8

# Overall quality = completion and field coverage, weighted
QUALITY_SCORE_WEIGHTS: Dict[str, float] = {
    "completion": 0.4,
    "locations": 0.3,
    "dates": 0.2,
    "pricing": 0.1,
}

Duration = Union[timedelta, float, int]


def _duration_ms(duration: Duration) -> float:
    """Milliseconds from a timedelta or a number of seconds."""
    if isinstance(duration, timedelta):
        return duration.total_seconds() * 1000.0
    return float(duration) * 1000.0


class ExtractionMetrics:
    """Thread-safe aggregator of extraction and conversion outcomes."""

    def __init__(self, thresholds: Optional[AlertThresholds] = None) -> None:
        self.thresholds = thresholds or AlertThresholds()
        self._lock = threading.Lock()
        self._reset_state()

    def _reset_state(self) -> None:
        self._total_extractions = 0
        self._successful_extractions = 0
        self._failed_extractions = 0
        self._total_conversions = 0
        self._successful_conversions = 0
        self._failed_conversions = 0
        self._sources: Dict[str, SourceMetric] = {}
        self._quality = QualityMetrics()
        self._last_updated = datetime.now()

    # ── Recording ────────────────────────────────────────────────────

    def record_extraction_attempt(
        self,
        source_url: str,
        success: bool,
        activity_count: int = 0,
        duration: Duration = 0.0,
        quality_score: float = 0.0,
    ) -> None:
        """Record one extraction run against ``source_url``.

        Args:
            source_url: Source the extraction ran against.
            success: Whether the extraction produced usable output.
            activity_count: Activities found in this run.
            duration: Processing time, as timedelta or seconds.
            quality_score: Extraction quality of this run (0-1); only
                positive values replace the stored score.
        """
        now = datetime.now()
        elapsed_ms = _duration_ms(duration)

        with self._lock:
            self._total_extractions += 1
            if success:
                self._successful_extractions += 1
            else:
                self._failed_extractions += 1

            metric = self._sources.get(source_url)
            if metric is None:
                metric = SourceMetric(source_url=source_url)
                self._sources[source_url] = metric

            metric.total_attempts += 1
            if success:
                metric.successful_extractions += 1
                metric.total_activities_found += activity_count
                metric.last_successful_run = now
                metric.consecutive_failures = 0
            else:
                metric.failed_extractions += 1
                metric.last_failed_run = now
                metric.consecutive_failures += 1

            metric.success_rate = metric.successful_extractions / metric.total_attempts
            metric.avg_activities_per_run += (
                (activity_count - metric.avg_activities_per_run) / metric.total_attempts
            )
            if metric.total_attempts == 1:
                metric.avg_processing_time_ms = elapsed_ms
            else:
                metric.avg_processing_time_ms = (
                    PROCESSING_TIME_DECAY * metric.avg_processing_time_ms
                    + (1 - PROCESSING_TIME_DECAY) * elapsed_ms
                )
            if quality_score > 0:
                metric.quality_score = quality_score

            self._last_updated = now
            success_rate = metric.success_rate

        logger.debug(
            f"Recorded extraction for {source_url}: success={success}, "
            f"activities={activity_count}, source success rate={success_rate:.1%}"
        )

    def record_conversion_attempt(
        self,
        success: bool,
        quality: Optional[ConversionQuality] = None,
    ) -> None:
        """Record one conversion and fold its field-presence counters in."""
        quality = quality or ConversionQuality()
        with self._lock:
            self._total_conversions += 1
            if success:
                self._successful_conversions += 1
            else:
                self._failed_conversions += 1

            q = self._quality
            q.total_activities_processed += 1
            q.activities_with_dates += max(0, quality.activities_with_dates)
            q.activities_with_locations += max(0, quality.activities_with_locations)
            q.activities_with_pricing += max(0, quality.activities_with_pricing)

            rates = q.coverage_rates()
            q.avg_completion_rate = self._successful_conversions / self._total_conversions
            q.avg_field_coverage = sum(rates.values()) / len(rates)
            q.overall_quality_score = (
                QUALITY_SCORE_WEIGHTS["completion"] * q.avg_completion_rate
                + QUALITY_SCORE_WEIGHTS["locations"] * rates["locations"]
                + QUALITY_SCORE_WEIGHTS["dates"] * rates["dates"]
                + QUALITY_SCORE_WEIGHTS["pricing"] * rates["pricing"]
            )
            self._last_updated = datetime.now()
            overall = q.overall_quality_score

        logger.debug(f"Recorded conversion: success={success}, overall quality={overall:.2f}")

    def reset(self) -> None:
        with self._lock:
            self._reset_state()
        logger.info("Extraction metrics reset")

    # ── Reading ──────────────────────────────────────────────────────

    def snapshot(self) -> MetricsSnapshot:
        """Immutable copy of the current state."""
        with self._lock:
            return MetricsSnapshot(
                total_extractions=self._total_extractions,
                successful_extractions=self._successful_extractions,
                failed_extractions=self._failed_extractions,
                total_conversions=self._total_conversions,
                successful_conversions=self._successful_conversions,
                failed_conversions=self._failed_conversions,
                source_metrics={url: m.model_copy() for url, m in self._sources.items()},
                quality_metrics=self._quality.model_copy(),
                last_updated=self._last_updated,
            )

    def get_source_metric(self, source_url: str) -> Optional[SourceMetric]:
        with self._lock:
            metric = self._sources.get(source_url)
            return metric.model_copy() if metric is not None else None

    def check_alerts(self) -> List[Alert]:
        return evaluate_alerts(self.snapshot(), self.thresholds)

    def dashboard_snapshot(self) -> DashboardSnapshot:
        """Composite view for monitoring dashboards. Never mutates state."""
        snap = self.snapshot()
        q = snap.quality_metrics
        sources = [
            SourceView(
                url=m.source_url,
                success_rate=m.success_rate,
                avg_activities=m.avg_activities_per_run,
                total_attempts=m.total_attempts,
                last_successful=m.last_successful_run,
                avg_processing_time_ms=m.avg_processing_time_ms,
            )
            for m in sorted(snap.source_metrics.values(), key=lambda m: m.source_url)
            if m.total_attempts > 0
        ]
        return DashboardSnapshot(
            extraction=TotalsView(
                total_attempts=snap.total_extractions,
                successful=snap.successful_extractions,
                failed=snap.failed_extractions,
                success_rate=snap.extraction_success_rate,
            ),
            conversion=TotalsView(
                total_attempts=snap.total_conversions,
                successful=snap.successful_conversions,
                failed=snap.failed_conversions,
                success_rate=snap.conversion_success_rate,
            ),
            quality=QualityView(
                overall_score=q.overall_quality_score,
                completion_rate=q.avg_completion_rate,
                field_coverage=q.avg_field_coverage,
                activities_with_dates=q.activities_with_dates,
                activities_with_locations=q.activities_with_locations,
                activities_with_pricing=q.activities_with_pricing,
                total_processed=q.total_activities_processed,
            ),
            sources=sources,
            alerts=evaluate_alerts(snap, self.thresholds),
            last_updated=snap.last_updated,
        )

    def log_metrics_summary(self) -> None:
        """Write a human-readable summary of the current state to the log."""
        snap = self.snapshot()
        logger.info("========== EXTRACTION METRICS SUMMARY ==========")
        logger.info(
            f"Extractions: {snap.total_extractions} total, {snap.successful_extractions} ok, "
            f"{snap.failed_extractions} failed ({snap.extraction_success_rate:.1%})"
        )
        logger.info(
            f"Conversions: {snap.total_conversions} total, {snap.successful_conversions} ok, "
            f"{snap.failed_conversions} failed ({snap.conversion_success_rate:.1%})"
        )
        q = snap.quality_metrics
        logger.info(
            f"Quality: overall {q.overall_quality_score:.2f}, completion {q.avg_completion_rate:.1%}, "
            f"field coverage {q.avg_field_coverage:.1%}"
        )
        for url in sorted(snap.source_metrics):
            m = snap.source_metrics[url]
            logger.info(
                f"  {url}: {m.success_rate:.1%} success over {m.total_attempts} attempts, "
                f"{m.avg_activities_per_run:.1f} activities/run, {m.avg_processing_time_ms:.0f}ms avg"
            )
        alerts = evaluate_alerts(snap, self.thresholds)
        if alerts:
            logger.warning(f"Active alerts: {len(alerts)}")
            for alert in alerts:
                logger.warning(f"  [{alert.severity.value}] {alert.message}")
