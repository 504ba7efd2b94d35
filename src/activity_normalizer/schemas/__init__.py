"""Pydantic schemas for activities, conversion results, diagnostics and metrics."""

from activity_normalizer.schemas.activity import Activity
from activity_normalizer.schemas.conversion import ConversionIssue, ConversionResult, FieldMapping, ValidationResult

__all__ = ["Activity", "ConversionIssue", "ConversionResult", "FieldMapping", "ValidationResult"]
