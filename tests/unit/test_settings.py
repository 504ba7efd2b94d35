"""Unit tests for settings loading and process startup."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from activity_normalizer import startup
from activity_normalizer.config.settings import (
    CONFIG_ENV_VAR,
    ConfigurationError,
    ConversionSettings,
    NormalizerSettings,
    ValidationRules,
    load_settings,
    resolve_config_path,
)


def write_yaml(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


# =============================================================================
# Settings models
# =============================================================================


class TestSettingsModels:
    def test_defaults(self):
        settings = NormalizerSettings()
        assert settings.conversion.approval_threshold == 50.0
        assert settings.conversion.low_confidence_threshold == 0.6
        assert settings.validation.title_placeholders == ["Untitled Event"]
        assert settings.alerts.max_failure_streak == 3

    def test_rule_ordering_enforced(self):
        with pytest.raises(ValidationError):
            ValidationRules(title_very_short=12, title_short=10)

    def test_negative_weights_rejected(self):
        with pytest.raises(ValidationError):
            ConversionSettings(field_weights={"title": -1.0})

    def test_all_zero_weights_rejected(self):
        with pytest.raises(ValidationError):
            ConversionSettings(field_weights={"title": 0.0})

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            ConversionSettings(inferred_confidence=1.5)


# =============================================================================
# Loading
# =============================================================================


class TestLoadSettings:
    def test_missing_file_gives_defaults(self, tmp_path):
        assert load_settings(tmp_path / "absent.yaml") == NormalizerSettings()

    def test_partial_file(self, tmp_path):
        path = write_yaml(tmp_path / "s.yaml", "conversion:\n  approval_threshold: 70\n")
        settings = load_settings(path)
        assert settings.conversion.approval_threshold == 70
        assert settings.conversion.default_city == "Seattle"

    def test_empty_file(self, tmp_path):
        assert load_settings(write_yaml(tmp_path / "s.yaml", "")) == NormalizerSettings()

    def test_invalid_yaml(self, tmp_path):
        path = write_yaml(tmp_path / "s.yaml", "conversion: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_settings(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = write_yaml(tmp_path / "s.yaml", "- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_settings(path)

    def test_schema_violation(self, tmp_path):
        path = write_yaml(tmp_path / "s.yaml", "alerts:\n  min_quality_score: 4\n")
        with pytest.raises(ConfigurationError, match="Invalid settings"):
            load_settings(path)


class TestResolveConfigPath:
    def test_explicit_path_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "env.yaml"))
        assert resolve_config_path(tmp_path / "explicit.yaml") == tmp_path / "explicit.yaml"

    def test_env_var(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "env.yaml"))
        assert resolve_config_path() == tmp_path / "env.yaml"

    def test_cwd_default(self, tmp_path):
        assert resolve_config_path() == tmp_path / "activity_normalizer.yaml"


# =============================================================================
# Startup
# =============================================================================


class TestStartup:
    def test_loads_cwd_settings(self, tmp_path):
        write_yaml(tmp_path / "activity_normalizer.yaml", "conversion:\n  default_city: Tacoma\n")
        state = startup.ensure_initialized()
        assert state.settings.conversion.default_city == "Tacoma"
        assert state.config_path == tmp_path / "activity_normalizer.yaml"

    def test_cached(self, tmp_path):
        first = startup.ensure_initialized()
        write_yaml(tmp_path / "activity_normalizer.yaml", "conversion:\n  default_city: Tacoma\n")
        assert startup.ensure_initialized() is first
        assert startup.ensure_initialized(force=True).settings.conversion.default_city == "Tacoma"

    def test_explicit_path_bypasses_cache(self, tmp_path):
        startup.ensure_initialized()
        path = write_yaml(tmp_path / "other.yaml", "conversion:\n  approval_threshold: 80\n")
        assert startup.ensure_initialized(path).settings.conversion.approval_threshold == 80

    def test_dotenv_points_at_config(self, tmp_path, monkeypatch):
        write_yaml(tmp_path / "custom.yaml", "conversion:\n  default_region: Puget Sound\n")
        (tmp_path / ".env").write_text(f"{CONFIG_ENV_VAR}={tmp_path / 'custom.yaml'}\n", encoding="utf-8")
        # undone at teardown, including the value load_dotenv sets
        monkeypatch.setenv(CONFIG_ENV_VAR, "")
        monkeypatch.delenv(CONFIG_ENV_VAR)

        state = startup.ensure_initialized()
        assert state.env_loaded
        assert state.project_root == tmp_path
        assert state.settings.conversion.default_region == "Puget Sound"

    def test_invalid_settings_raise(self, tmp_path):
        write_yaml(tmp_path / "activity_normalizer.yaml", "conversion: 3\n")
        with pytest.raises(ConfigurationError):
            startup.ensure_initialized()

    def test_reset_state(self):
        first = startup.ensure_initialized()
        startup.reset_state()
        assert startup.ensure_initialized() is not first
