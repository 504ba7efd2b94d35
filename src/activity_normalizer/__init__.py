"""
Activity Normalizer - turn scraped event records into canonical activities.

This package maps loosely structured records from many web sources onto
one Activity schema, scores every conversion, keeps a diagnostic trail and
aggregates extraction/conversion metrics with threshold alerts.
"""

__version__ = "0.1.0"

from activity_normalizer.config.settings import ConfigurationError, NormalizerSettings, load_settings
from activity_normalizer.context import NormalizerContext, build_context
from activity_normalizer.conversion.engine import (
    ConversionError,
    SchemaConversionService,
    StructuralConversionError,
)
from activity_normalizer.diagnostics.recorder import DiagnosticsRecorder
from activity_normalizer.monitoring.alerts import evaluate_alerts
from activity_normalizer.monitoring.metrics import ExtractionMetrics
from activity_normalizer.schemas.activity import Activity
from activity_normalizer.schemas.conversion import ConversionResult, ValidationResult
from activity_normalizer.validation.activity_checks import check_activity, generate_activity_id
from activity_normalizer.validation.validators import (
    VALIDATORS,
    get_validator,
    validate_date,
    validate_description,
    validate_location,
    validate_price,
    validate_time,
    validate_title,
)

__all__ = [
    "Activity",
    "ConfigurationError",
    "ConversionError",
    "ConversionResult",
    "DiagnosticsRecorder",
    "ExtractionMetrics",
    "NormalizerContext",
    "NormalizerSettings",
    "SchemaConversionService",
    "StructuralConversionError",
    "VALIDATORS",
    "ValidationResult",
    "build_context",
    "check_activity",
    "evaluate_alerts",
    "generate_activity_id",
    "get_validator",
    "load_settings",
    "validate_date",
    "validate_description",
    "validate_location",
    "validate_price",
    "validate_time",
    "validate_title",
]
