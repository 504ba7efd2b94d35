"""Pydantic models for the diagnostic trail of extractions and conversions.

Diagnostics are independent of the business result: they exist so a human
can see *why* a record converted the way it did. Only the most recent
instance of each kind is retained (see ``DiagnosticsRecorder``).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from activity_normalizer.schemas.conversion import (
    ConversionIssue,
    FieldMapping,
    IssueSeverity,
    ValidationResult,
)


class ConversionAttempt(BaseModel):
    """One processing step inside a conversion."""

    step: str
    timestamp: datetime = Field(default_factory=datetime.now)
    success: bool = False
    events_found: int = 0
    details: Dict[str, Any] = Field(default_factory=dict)
    issues: List[str] = Field(default_factory=list)


class ConversionDiagnostics(BaseModel):
    """Full trace of a single conversion call."""

    admin_event_id: str = ""
    source_url: str = ""
    schema_type: str = ""
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    processing_time_ms: float = 0.0
    raw_data_structure: Dict[str, str] = Field(default_factory=dict)
    raw_data_sample: Dict[str, Any] = Field(default_factory=dict)
    attempts: List[ConversionAttempt] = Field(default_factory=list)
    field_mappings: Dict[str, FieldMapping] = Field(default_factory=dict)
    validation_results: Dict[str, ValidationResult] = Field(default_factory=dict)
    conversion_issues: List[ConversionIssue] = Field(default_factory=list)
    confidence_score: float = 0.0
    success: bool = False
    error_message: str = ""

    def finish(self, success: bool, error_message: str = "") -> None:
        """Close the timing window and stamp the terminal state."""
        self.end_time = datetime.now()
        self.processing_time_ms = round(
            (self.end_time - self.start_time).total_seconds() * 1000, 3
        )
        self.success = success
        self.error_message = error_message


class ExtractionAttempt(BaseModel):
    """One extraction try against one source (reported by the extractor)."""

    method: str
    timestamp: datetime = Field(default_factory=datetime.now)
    success: bool = False
    events_found: int = 0
    details: Dict[str, Any] = Field(default_factory=dict)
    issues: List[str] = Field(default_factory=list)


class ExtractionIssue(BaseModel):
    """A validation problem noticed while extracting from a source."""

    severity: IssueSeverity = IssueSeverity.WARNING
    field: str
    message: str
    suggestion: str = ""
    raw_value: str = ""


class ExtractionDiagnostics(BaseModel):
    """Trace of one extraction run, filled in by the extraction collaborator."""

    url: str
    start_time: datetime = Field(default_factory=datetime.now)
    end_time: Optional[datetime] = None
    processing_time_ms: float = 0.0
    raw_content_length: int = 0
    raw_content_sample: str = ""
    attempts: List[ExtractionAttempt] = Field(default_factory=list)
    structured_data: Dict[str, Any] = Field(default_factory=dict)
    validation_issues: List[ExtractionIssue] = Field(default_factory=list)
    credits_used: int = 0
    success: bool = False
    error_message: str = ""

    def add_attempt(
        self,
        method: str,
        success: bool,
        events_found: int = 0,
        details: Optional[Dict[str, Any]] = None,
        issues: Optional[List[str]] = None,
    ) -> ExtractionAttempt:
        """Append an attempt and return it."""
        attempt = ExtractionAttempt(
            method=method,
            success=success,
            events_found=events_found,
            details=details or {},
            issues=issues or [],
        )
        self.attempts.append(attempt)
        return attempt

    def set_raw_content(self, content: str, sample_length: int = 500) -> None:
        self.raw_content_length = len(content)
        self.raw_content_sample = content[:sample_length]

    def finish(self, success: bool, error_message: str = "") -> None:
        self.end_time = datetime.now()
        self.processing_time_ms = round(
            (self.end_time - self.start_time).total_seconds() * 1000, 3
        )
        self.success = success
        self.error_message = error_message
