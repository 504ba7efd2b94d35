"""CLI package - Typer-based command-line interface.

Usage:
    activity-normalizer --help
    activity-normalizer convert record.json --schema-type events
    activity-normalizer validate price '$15'
"""

from activity_normalizer.cli._app import app

# Register command modules (side-effect imports)
import activity_normalizer.cli.cmd_convert  # noqa: F401
import activity_normalizer.cli.cmd_validate  # noqa: F401

__all__ = ["app"]
