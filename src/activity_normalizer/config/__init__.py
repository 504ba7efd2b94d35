"""Normalizer settings management."""

from activity_normalizer.config.settings import (
    ConfigurationError,
    ConversionSettings,
    NormalizerSettings,
    ValidationRules,
    load_settings,
)

__all__ = [
    "ConfigurationError",
    "ConversionSettings",
    "NormalizerSettings",
    "ValidationRules",
    "load_settings",
]
