"""Diagnostics recording for conversions and extractions."""

from activity_normalizer.diagnostics.recorder import DiagnosticsRecorder

__all__ = ["DiagnosticsRecorder"]
