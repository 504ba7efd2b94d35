"""Pydantic models describing the outcome of a schema conversion.

A ``ConversionResult`` carries the best-effort ``Activity`` together with
the provenance of every mapped field, the per-field validator verdicts and
an ordered issue list. Low quality never raises; it shows up here.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from activity_normalizer.schemas.activity import Activity


class MappingType(str, Enum):
    """How a canonical field obtained its value."""

    DIRECT = "direct"        # first-priority candidate key
    FALLBACK = "fallback"    # a later candidate key
    INFERRED = "inferred"    # derived from other content (type, category)


class ValidationStatus(str, Enum):
    VALID = "valid"
    WARNING = "warning"
    INVALID = "invalid"
    NOT_VALIDATED = "not_validated"


class IssueSeverity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class IssueType(str, Enum):
    MISSING_FIELD = "missing_field"
    INVALID_FORMAT = "invalid_format"
    LOW_CONFIDENCE = "low_confidence"
    DATA_QUALITY = "data_quality"
    VALIDATION_ERROR = "validation_error"


class ValidationResult(BaseModel):
    """Verdict of one field validator on one raw value."""

    is_valid: bool = False
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    issues: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    normalized_value: Optional[str] = Field(
        default=None,
        description="Canonical rewrite of the value (ISO date, 24-hour time)",
    )


class FieldMapping(BaseModel):
    """Provenance of one canonical field."""

    activity_field: str = Field(description="Canonical field, e.g. 'schedule.start_date'")
    source_field: str = Field(description="Raw key (or derivation tag) the value came from")
    source_fields: List[str] = Field(
        default_factory=list,
        description="Candidate keys in the order they were tried",
    )
    mapping_type: MappingType
    confidence: float = Field(ge=0.0, le=1.0)
    validation_status: ValidationStatus = ValidationStatus.NOT_VALIDATED


class ConversionIssue(BaseModel):
    """A single problem found while converting a record."""

    type: IssueType
    field: str
    message: str
    suggestion: str = ""
    raw_value: str = ""
    severity: IssueSeverity = IssueSeverity.WARNING


class ConversionResult(BaseModel):
    """Everything a caller gets back from one conversion."""

    activity: Optional[Activity] = None
    confidence_score: float = Field(default=0.0, ge=0.0, le=100.0)
    issues: List[str] = Field(default_factory=list)
    issue_details: List[ConversionIssue] = Field(default_factory=list)
    field_mappings: Dict[str, str] = Field(
        default_factory=dict,
        description="Canonical field -> chosen source field name",
    )
    detailed_mappings: Dict[str, FieldMapping] = Field(default_factory=dict)
    validation_results: Dict[str, ValidationResult] = Field(default_factory=dict)
    events_found: int = 0

    @property
    def has_errors(self) -> bool:
        """True when any issue carries error severity."""
        return any(i.severity == IssueSeverity.ERROR for i in self.issue_details)


class ConversionPreview(BaseModel):
    """What an operator sees before approving a conversion."""

    activity: Optional[Activity] = None
    issues: List[str] = Field(default_factory=list)
    field_mappings: Dict[str, str] = Field(default_factory=dict)
    confidence_score: float = 0.0
    can_approve: bool = False
