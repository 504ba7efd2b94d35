"""Threshold-based alert rules over a metrics snapshot.

Alerts are derived on demand and never stored. Each rule is independent;
evaluating the same snapshot twice yields the same alerts.
"""

from datetime import datetime
from typing import List, Optional

from activity_normalizer.schemas.metrics import (
    Alert,
    AlertSeverity,
    AlertThresholds,
    AlertType,
    MetricsSnapshot,
)


def evaluate_alerts(
    snapshot: MetricsSnapshot,
    thresholds: Optional[AlertThresholds] = None,
    now: Optional[datetime] = None,
) -> List[Alert]:
    """Evaluate every alert rule against ``snapshot``.

    Args:
        snapshot: Immutable copy of the aggregator state.
        thresholds: Rule thresholds. Defaults to ``AlertThresholds()``.
        now: Timestamp stamped on the alerts. Defaults to the current time.

    Returns:
        Alerts in rule order: per-source rules (sources sorted by URL), then
        global success rate, quality score and field coverage.
    """
    t = thresholds or AlertThresholds()
    now = now or datetime.now()
    alerts: List[Alert] = []

    for url in sorted(snapshot.source_metrics):
        metric = snapshot.source_metrics[url]

        if metric.total_attempts >= t.min_source_attempts and metric.success_rate < t.min_source_success_rate:
            alerts.append(Alert(
                type=AlertType.SUCCESS_RATE,
                severity=AlertSeverity.ERROR,
                message=(
                    f"Low success rate for {url}: {metric.success_rate:.1%} "
                    f"over {metric.total_attempts} attempts"
                ),
                source_url=url,
                metric="source_success_rate",
                value=metric.success_rate,
                threshold=t.min_source_success_rate,
                timestamp=now,
            ))

        if metric.avg_processing_time_ms > t.max_processing_time_ms:
            alerts.append(Alert(
                type=AlertType.PROCESSING_TIME,
                severity=AlertSeverity.WARNING,
                message=f"Slow extraction for {url}: {metric.avg_processing_time_ms:.0f}ms average",
                source_url=url,
                metric="avg_processing_time_ms",
                value=metric.avg_processing_time_ms,
                threshold=t.max_processing_time_ms,
                timestamp=now,
            ))

        if metric.consecutive_failures >= t.max_failure_streak:
            alerts.append(Alert(
                type=AlertType.FAILURE_STREAK,
                severity=AlertSeverity.ERROR,
                message=f"{metric.consecutive_failures} consecutive failures for {url}",
                source_url=url,
                metric="consecutive_failures",
                value=float(metric.consecutive_failures),
                threshold=float(t.max_failure_streak),
                timestamp=now,
            ))

    if snapshot.total_extractions >= t.min_global_attempts:
        rate = snapshot.extraction_success_rate
        if rate < t.min_global_success_rate:
            alerts.append(Alert(
                type=AlertType.SUCCESS_RATE,
                severity=AlertSeverity.WARNING,
                message=f"Overall extraction success rate is {rate:.1%}",
                metric="extraction_success_rate",
                value=rate,
                threshold=t.min_global_success_rate,
                timestamp=now,
            ))

    quality = snapshot.quality_metrics
    if 0 < quality.overall_quality_score < t.min_quality_score:
        alerts.append(Alert(
            type=AlertType.QUALITY_SCORE,
            severity=AlertSeverity.WARNING,
            message=f"Overall quality score is {quality.overall_quality_score:.2f}",
            metric="overall_quality_score",
            value=quality.overall_quality_score,
            threshold=t.min_quality_score,
            timestamp=now,
        ))

    if quality.total_activities_processed >= t.min_quality_sample:
        for field_name, rate in quality.coverage_rates().items():
            if rate < t.min_field_coverage:
                alerts.append(Alert(
                    type=AlertType.FIELD_COVERAGE,
                    severity=AlertSeverity.WARNING,
                    message=f"Only {rate:.1%} of activities have {field_name}",
                    metric=f"{field_name}_coverage",
                    value=rate,
                    threshold=t.min_field_coverage,
                    timestamp=now,
                ))

    return alerts
