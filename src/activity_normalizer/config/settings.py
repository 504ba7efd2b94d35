"""Normalizer settings schema and loader.

Settings tune validator thresholds, conversion scoring and alert rules.
They are loaded from a YAML file (``activity_normalizer.yaml`` in the
working directory by default, or the path in ``ACTIVITY_NORMALIZER_CONFIG``).
Every field has a default, so a missing file yields the stock behavior.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from activity_normalizer.schemas.metrics import AlertThresholds

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ACTIVITY_NORMALIZER_CONFIG"
DEFAULT_CONFIG_FILENAME = "activity_normalizer.yaml"


class ConfigurationError(Exception):
    """Raised when a settings file exists but cannot be used."""


class ValidationRules(BaseModel):
    """Thresholds used by the field validators.

    Attributes:
        title_very_short: Titles shorter than this score ``title_very_short_confidence``.
        title_short: Titles shorter than this score ``title_short_confidence``.
        title_max_length: Titles longer than this score ``title_long_confidence``.
        description_min_length: Descriptions shorter than this score 0.7.
        location_min_length: Location names shorter than this score 0.6.
        location_short_length: Location names shorter than this score 0.75.
        location_max_length: Location names longer than this score 0.8.
        past_date_grace_days: A date this many days back still counts as current.
    """

    title_placeholders: List[str] = Field(
        default_factory=lambda: ["Untitled Event"],
        description="Values that mean 'no title' even though they are non-empty",
    )
    title_very_short: int = Field(default=5, ge=1)
    title_very_short_confidence: float = Field(default=0.6, ge=0.0, le=1.0)
    title_short: int = Field(default=10, ge=1)
    title_short_confidence: float = Field(default=0.75, ge=0.0, le=1.0)
    title_max_length: int = Field(default=100, ge=1)
    title_long_confidence: float = Field(default=0.8, ge=0.0, le=1.0)

    description_empty_confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    description_min_length: int = Field(default=20, ge=0)
    description_short_confidence: float = Field(default=0.7, ge=0.0, le=1.0)

    past_date_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    inferred_year_confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    past_date_grace_days: int = Field(default=1, ge=0)

    location_min_length: int = Field(default=3, ge=1)
    location_min_confidence: float = Field(default=0.6, ge=0.0, le=1.0)
    location_short_length: int = Field(default=8, ge=1)
    location_short_confidence: float = Field(default=0.75, ge=0.0, le=1.0)
    location_max_length: int = Field(default=200, ge=1)
    location_long_confidence: float = Field(default=0.8, ge=0.0, le=1.0)

    price_numeric_confidence: float = Field(default=0.95, ge=0.0, le=1.0)
    price_donation_confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    price_open_ended_confidence: float = Field(default=0.4, ge=0.0, le=1.0)
    price_unrecognized_confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    invalid_confidence: float = Field(default=0.2, ge=0.0, le=1.0)
    valid_above: float = Field(
        default=0.5, ge=0.0, le=1.0,
        description="A length-scored field is valid when its confidence exceeds this",
    )

    @model_validator(mode="after")
    def check_ordering(self) -> "ValidationRules":
        if self.title_very_short > self.title_short:
            raise ValueError("title_very_short must not exceed title_short")
        if self.location_min_length > self.location_short_length:
            raise ValueError("location_min_length must not exceed location_short_length")
        return self


class ConversionSettings(BaseModel):
    """Knobs of the conversion engine and its confidence score."""

    default_unvalidated_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    inferred_confidence: float = Field(
        default=0.8, ge=0.0, le=1.0,
        description="Confidence of fields inferred by keyword classification",
    )
    default_category_confidence: float = Field(
        default=0.5, ge=0.0, le=1.0,
        description="Confidence of a category that no keyword supported",
    )
    low_confidence_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    approval_threshold: float = Field(default=50.0, ge=0.0, le=100.0)
    field_weights: Optional[Dict[str, float]] = Field(
        default=None,
        description="Override for the per-field confidence weights",
    )
    default_city: str = "Seattle"
    default_region: str = "Seattle Metro"
    timezone: str = "America/Los_Angeles"

    @field_validator("field_weights")
    @classmethod
    def validate_weights(cls, v: Optional[Dict[str, float]]) -> Optional[Dict[str, float]]:
        if v is None:
            return v
        if any(w < 0 for w in v.values()):
            raise ValueError("field weights must be non-negative")
        if sum(v.values()) <= 0:
            raise ValueError("field weights must not all be zero")
        return v


class NormalizerSettings(BaseModel):
    """Top-level settings document."""

    conversion: ConversionSettings = Field(default_factory=ConversionSettings)
    validation: ValidationRules = Field(default_factory=ValidationRules)
    alerts: AlertThresholds = Field(default_factory=AlertThresholds)


def resolve_config_path(config_path: Optional[Path] = None) -> Path:
    """Explicit path, else ``$ACTIVITY_NORMALIZER_CONFIG``, else the cwd default."""
    if config_path is not None:
        return Path(config_path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    return Path.cwd() / DEFAULT_CONFIG_FILENAME


def load_settings(config_path: Optional[Path] = None) -> NormalizerSettings:
    """Load settings from YAML.

    Args:
        config_path: Optional explicit path to the settings file.

    Returns:
        NormalizerSettings; defaults when the file does not exist or is empty.

    Raises:
        ConfigurationError: If the file exists but is not valid YAML or
            does not match the settings schema.
    """
    path = resolve_config_path(config_path)

    if not path.exists():
        logger.debug(f"No settings file at {path}, using defaults")
        return NormalizerSettings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in settings file {path}: {e}") from e

    if data is None:
        logger.warning(f"Empty settings file at {path}, using defaults")
        return NormalizerSettings()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a mapping at top level")

    try:
        settings = NormalizerSettings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings in {path}: {e}") from e

    logger.debug(f"Loaded settings from {path}")
    return settings
