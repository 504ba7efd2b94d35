"""Shared CLI helpers."""

import json
import logging
from pathlib import Path
from typing import Any, Optional

from rich.logging import RichHandler

from activity_normalizer.cli._console import console
from activity_normalizer.config.settings import NormalizerSettings
from activity_normalizer.startup import ensure_initialized as _ensure_initialized

logger = logging.getLogger(__name__)


def ensure_initialized(config: Optional[str] = None) -> NormalizerSettings:
    """Load .env and settings, returning the effective settings."""
    state = _ensure_initialized(Path(config) if config else None)
    return state.settings


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def load_json_file(path: Path) -> Any:
    """Read a raw extracted record from disk."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
