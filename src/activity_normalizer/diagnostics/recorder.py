"""Last-diagnostics store and structure/log helpers.

``DiagnosticsRecorder`` keeps only the most recent conversion and
extraction diagnostics. It is owned by the caller (see ``NormalizerContext``)
rather than living in module globals, and every access is lock-guarded so
concurrent conversions never observe a half-written record.
"""

import logging
import threading
from typing import Any, Dict, List, Mapping, Optional

from activity_normalizer.conversion.normalizers import describe_type, truncate
from activity_normalizer.schemas.diagnostics import ConversionDiagnostics, ExtractionDiagnostics

logger = logging.getLogger(__name__)

SAMPLE_TEXT_LIMIT = 100


class DiagnosticsRecorder:
    """Thread-safe holder of the last conversion/extraction diagnostics."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_conversion: Optional[ConversionDiagnostics] = None
        self._last_extraction: Optional[ExtractionDiagnostics] = None

    def record_conversion(self, diagnostics: ConversionDiagnostics) -> None:
        snapshot = diagnostics.model_copy(deep=True)
        with self._lock:
            self._last_conversion = snapshot

    def record_extraction(self, diagnostics: ExtractionDiagnostics) -> None:
        snapshot = diagnostics.model_copy(deep=True)
        with self._lock:
            self._last_extraction = snapshot

    def get_last_conversion(self) -> Optional[ConversionDiagnostics]:
        """Deep copy of the last conversion diagnostics, or None."""
        with self._lock:
            current = self._last_conversion
        return current.model_copy(deep=True) if current is not None else None

    def get_last_extraction(self) -> Optional[ExtractionDiagnostics]:
        with self._lock:
            current = self._last_extraction
        return current.model_copy(deep=True) if current is not None else None

    def clear(self) -> None:
        with self._lock:
            self._last_conversion = None
            self._last_extraction = None


# ── Structure analysis ───────────────────────────────────────────────


def summarize_raw_structure(raw: Mapping[str, Any]) -> tuple:
    """Type tags and small samples of every top-level key.

    Returns:
        (structure, sample): ``structure`` maps key -> type tag such as
        ``array[3]``; ``sample`` holds the first object of each array, nested
        objects as-is and strings truncated to 100 characters.
    """
    structure: Dict[str, str] = {}
    sample: Dict[str, Any] = {}
    if not isinstance(raw, Mapping):
        return structure, sample

    for key, value in raw.items():
        structure[key] = describe_type(value)
        if isinstance(value, list):
            if value and isinstance(value[0], Mapping):
                sample[f"{key}_sample"] = dict(value[0])
        elif isinstance(value, Mapping):
            sample[key] = dict(value)
        elif isinstance(value, str):
            sample[key] = truncate(value, SAMPLE_TEXT_LIMIT)
        else:
            sample[key] = value
    return structure, sample


def analyze_data_structure(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Break top-level keys down into arrays, objects and primitives."""
    key_analysis: Dict[str, Dict[str, Any]] = {}
    array_keys: List[str] = []
    object_keys: List[str] = []
    primitive_keys: List[str] = []

    items = raw.items() if isinstance(raw, Mapping) else []
    for key, value in items:
        info: Dict[str, Any] = {"type": describe_type(value)}
        if isinstance(value, list):
            array_keys.append(key)
            info["category"] = "array"
            info["length"] = len(value)
            if value:
                info["item_type"] = describe_type(value[0])
                if isinstance(value[0], Mapping):
                    info["sample_item_keys"] = sorted(value[0].keys())
        elif isinstance(value, Mapping):
            object_keys.append(key)
            info["category"] = "object"
            info["keys_count"] = len(value)
            info["object_keys"] = sorted(value.keys())
        else:
            primitive_keys.append(key)
            info["category"] = "primitive"
            if isinstance(value, str):
                info["length"] = len(value)
        key_analysis[key] = info

    return {
        "total_keys": len(key_analysis),
        "key_analysis": key_analysis,
        "array_keys": array_keys,
        "object_keys": object_keys,
        "primitive_keys": primitive_keys,
    }


# ── Logging ──────────────────────────────────────────────────────────


def log_conversion_diagnostics(diagnostics: ConversionDiagnostics, level: int = logging.DEBUG) -> None:
    """Write a multi-line conversion report to the module logger."""
    if not logger.isEnabledFor(level):
        return
    d = diagnostics
    logger.log(level, "========== CONVERSION DIAGNOSTICS ==========")
    logger.log(level, f"Event ID: {d.admin_event_id}")
    logger.log(level, f"Source URL: {d.source_url}")
    logger.log(level, f"Schema Type: {d.schema_type}")
    logger.log(level, f"Processing Time: {d.processing_time_ms:.1f}ms")
    logger.log(level, f"Success: {d.success}")
    logger.log(level, f"Confidence Score: {d.confidence_score:.1f}")
    if d.error_message:
        logger.log(level, f"Error: {d.error_message}")

    logger.log(level, "Raw Data Structure:")
    for key, tag in d.raw_data_structure.items():
        logger.log(level, f"  {key}: {tag}")

    logger.log(level, f"Conversion Attempts: {len(d.attempts)}")
    for i, attempt in enumerate(d.attempts, 1):
        logger.log(level, f"  Attempt {i}: {attempt.step} - Success: {attempt.success}, Events: {attempt.events_found}")
        if attempt.issues:
            logger.log(level, f"    Issues: {attempt.issues}")

    logger.log(level, f"Field Mappings: {len(d.field_mappings)}")
    for name, mapping in d.field_mappings.items():
        logger.log(
            level,
            f"  {name} -> {mapping.source_field} ({mapping.mapping_type.value}, confidence: {mapping.confidence:.2f})",
        )

    logger.log(level, f"Conversion Issues: {len(d.conversion_issues)}")
    for i, issue in enumerate(d.conversion_issues, 1):
        logger.log(
            level,
            f"  Issue {i} [{issue.severity.value}/{issue.type.value}]: {issue.field} - {issue.message}",
        )
        if issue.suggestion:
            logger.log(level, f"    Suggestion: {issue.suggestion}")
        if issue.raw_value:
            logger.log(level, f"    Raw Value: {issue.raw_value}")


def log_extraction_diagnostics(diagnostics: ExtractionDiagnostics, level: int = logging.DEBUG) -> None:
    if not logger.isEnabledFor(level):
        return
    d = diagnostics
    logger.log(level, "========== EXTRACTION DIAGNOSTICS ==========")
    logger.log(level, f"URL: {d.url}")
    logger.log(level, f"Processing Time: {d.processing_time_ms:.1f}ms")
    logger.log(level, f"Success: {d.success}")
    logger.log(level, f"Credits Used: {d.credits_used}")
    logger.log(level, f"Raw Content Length: {d.raw_content_length}")
    if d.error_message:
        logger.log(level, f"Error: {d.error_message}")
    for i, attempt in enumerate(d.attempts, 1):
        logger.log(level, f"  Attempt {i}: {attempt.method} - Success: {attempt.success}, Events: {attempt.events_found}")
        if attempt.issues:
            logger.log(level, f"    Issues: {attempt.issues}")
    for issue in d.validation_issues:
        logger.log(level, f"  [{issue.severity.value}] {issue.field}: {issue.message}")
