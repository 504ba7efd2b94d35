"""Validate command: run one field validator on a value."""

import typer

from activity_normalizer.cli._app import app
from activity_normalizer.cli._common import ensure_initialized, setup_logging
from activity_normalizer.cli._console import output_result, print_err, print_ok, print_warn
from activity_normalizer.config.settings import ConfigurationError
from activity_normalizer.validation.validators import VALIDATORS


@app.command("validate", help="Validate a single field value.")
def validate_cmd(
    ctx: typer.Context,
    field: str = typer.Argument(..., help=f"Validator name: {', '.join(VALIDATORS)}"),
    value: str = typer.Argument(..., help="Raw value to validate"),
):
    """Run the named validator and print the verdict."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    validator = VALIDATORS.get(field)
    if validator is None:
        print_err(f"Unknown field '{field}'. Choose one of: {', '.join(VALIDATORS)}")
        raise SystemExit(1)
    try:
        settings = ensure_initialized(ctx.obj.get("config"))
    except ConfigurationError as e:
        print_err(str(e))
        raise SystemExit(1)

    result = validator(value, settings.validation)

    if ctx.obj["json"]:
        output_result(result.model_dump(mode="json"), ctx=ctx)
    elif result.is_valid:
        print_ok(f"{field}: valid (confidence {result.confidence:.2f})")
        if result.normalized_value is not None:
            output_result({"normalized_value": result.normalized_value}, ctx=ctx)
    else:
        print_warn(f"{field}: invalid (confidence {result.confidence:.2f})")

    if not ctx.obj["json"]:
        for issue in result.issues:
            print_warn(issue)

    if not result.is_valid:
        raise SystemExit(2)
