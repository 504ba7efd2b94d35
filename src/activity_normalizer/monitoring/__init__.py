"""Extraction/conversion metrics and alerting."""

from activity_normalizer.monitoring.alerts import evaluate_alerts
from activity_normalizer.monitoring.metrics import ExtractionMetrics

__all__ = ["ExtractionMetrics", "evaluate_alerts"]
