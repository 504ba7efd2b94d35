"""Pydantic models for extraction/conversion metrics and alerts."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SourceMetric(BaseModel):
    """Rolling statistics for one source URL, updated incrementally."""

    source_url: str
    total_attempts: int = 0
    successful_extractions: int = 0
    failed_extractions: int = 0
    total_activities_found: int = 0
    avg_activities_per_run: float = 0.0
    avg_processing_time_ms: float = 0.0
    last_successful_run: Optional[datetime] = None
    last_failed_run: Optional[datetime] = None
    success_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    quality_score: float = 0.0
    consecutive_failures: int = 0


class ConversionQuality(BaseModel):
    """Per-conversion field presence counters fed into the aggregator."""

    activities_with_dates: int = 0
    activities_with_locations: int = 0
    activities_with_pricing: int = 0


class QualityMetrics(BaseModel):
    """Accumulated conversion quality across all conversions."""

    activities_with_dates: int = 0
    activities_with_locations: int = 0
    activities_with_pricing: int = 0
    total_activities_processed: int = 0
    avg_completion_rate: float = 0.0
    avg_field_coverage: float = 0.0
    overall_quality_score: float = 0.0

    def coverage_rates(self) -> Dict[str, float]:
        """Fraction of processed activities that carried each field."""
        total = self.total_activities_processed
        if total == 0:
            return {"dates": 0.0, "locations": 0.0, "pricing": 0.0}
        return {
            "dates": self.activities_with_dates / total,
            "locations": self.activities_with_locations / total,
            "pricing": self.activities_with_pricing / total,
        }


class MetricsSnapshot(BaseModel):
    """Immutable copy of the aggregator state at one instant."""

    model_config = {"frozen": True}

    total_extractions: int = 0
    successful_extractions: int = 0
    failed_extractions: int = 0
    total_conversions: int = 0
    successful_conversions: int = 0
    failed_conversions: int = 0
    source_metrics: Dict[str, SourceMetric] = Field(default_factory=dict)
    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)
    last_updated: datetime = Field(default_factory=datetime.now)

    @property
    def extraction_success_rate(self) -> float:
        if self.total_extractions == 0:
            return 0.0
        return self.successful_extractions / self.total_extractions

    @property
    def conversion_success_rate(self) -> float:
        if self.total_conversions == 0:
            return 0.0
        return self.successful_conversions / self.total_conversions


class AlertType(str, Enum):
    SUCCESS_RATE = "success_rate"
    QUALITY_SCORE = "quality_score"
    FIELD_COVERAGE = "field_coverage"
    PROCESSING_TIME = "processing_time"
    FAILURE_STREAK = "failure_streak"


class AlertSeverity(str, Enum):
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AlertThresholds(BaseModel):
    """Thresholds for the alert rules. All rules are evaluated independently."""

    min_source_attempts: int = Field(default=5, ge=1)
    min_source_success_rate: float = Field(default=0.5, ge=0.0, le=1.0)
    min_global_attempts: int = Field(default=10, ge=1)
    min_global_success_rate: float = Field(default=0.8, ge=0.0, le=1.0)
    min_quality_score: float = Field(default=0.7, ge=0.0, le=1.0)
    min_quality_sample: int = Field(default=5, ge=1)
    min_field_coverage: float = Field(default=0.5, ge=0.0, le=1.0)
    max_processing_time_ms: float = Field(default=30000.0, gt=0.0)
    max_failure_streak: int = Field(default=3, ge=1)


class Alert(BaseModel):
    """A derived warning. Computed on demand, never stored."""

    type: AlertType
    severity: AlertSeverity
    message: str
    source_url: Optional[str] = None
    metric: str = ""
    value: float = 0.0
    threshold: float = 0.0
    timestamp: datetime = Field(default_factory=datetime.now)


class TotalsView(BaseModel):
    total_attempts: int
    successful: int
    failed: int
    success_rate: float


class QualityView(BaseModel):
    overall_score: float
    completion_rate: float
    field_coverage: float
    activities_with_dates: int
    activities_with_locations: int
    activities_with_pricing: int
    total_processed: int


class SourceView(BaseModel):
    url: str
    success_rate: float
    avg_activities: float
    total_attempts: int
    last_successful: Optional[datetime] = None
    avg_processing_time_ms: float = 0.0


class DashboardSnapshot(BaseModel):
    """Read-only composite served to monitoring callers."""

    extraction: TotalsView
    conversion: TotalsView
    quality: QualityView
    sources: List[SourceView] = Field(default_factory=list)
    alerts: List[Alert] = Field(default_factory=list)
    last_updated: datetime
