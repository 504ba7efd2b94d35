"""Centralized initialization for activity_normalizer entry points.

This module provides a single point of initialization for:
- Environment variables (.env loading)
- Settings file resolution and loading

Entry points (CLI, embedding services) should use ensure_initialized()
to guarantee consistent startup behavior.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from activity_normalizer.config.settings import NormalizerSettings, load_settings, resolve_config_path

logger = logging.getLogger(__name__)


@dataclass
class StartupState:
    """Process state after initialization."""

    project_root: Path
    config_path: Path
    settings: NormalizerSettings
    env_loaded: bool = False


# Module-level state
_initialized: bool = False
_state: Optional[StartupState] = None


def _find_project_root(start_path: Optional[Path] = None) -> Path:
    """Find project root by looking for pyproject.toml or .env upwards from cwd.

    Args:
        start_path: Starting path for search. Defaults to the working directory.

    Returns:
        Project root directory.
    """
    current = start_path or Path.cwd()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists() or (parent / ".env").exists():
            return parent
    return current


def _load_env(project_root: Path) -> bool:
    """Load .env file from project root without overriding existing variables."""
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)
        logger.debug(f"Loaded .env from {env_path}")
        return True
    logger.debug(f".env not found at {env_path}")
    return False


def ensure_initialized(
    config_path: Optional[Path] = None,
    force: bool = False,
) -> StartupState:
    """Ensure the process is initialized (idempotent).

    Loads .env first, so ``ACTIVITY_NORMALIZER_CONFIG`` may come from it,
    then loads settings. Subsequent calls return cached state unless
    ``force`` is set or an explicit ``config_path`` is given.

    Raises:
        ConfigurationError: If the settings file is invalid.
    """
    global _initialized, _state

    if _initialized and _state is not None and not force and config_path is None:
        return _state

    project_root = _find_project_root()
    env_loaded = _load_env(project_root)
    resolved = resolve_config_path(config_path)
    settings = load_settings(resolved)

    _state = StartupState(
        project_root=project_root,
        config_path=resolved,
        settings=settings,
        env_loaded=env_loaded,
    )
    _initialized = True
    return _state


def reset_state() -> None:
    """Forget cached state (used by tests)."""
    global _initialized, _state
    _initialized = False
    _state = None
