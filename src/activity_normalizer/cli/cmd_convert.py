"""Convert command: raw extracted JSON record -> Activity."""

import json
from pathlib import Path

import typer

from activity_normalizer.cli._app import app
from activity_normalizer.cli._common import ensure_initialized, load_json_file, setup_logging
from activity_normalizer.cli._console import (
    output_issues,
    output_result,
    print_activity_check,
    print_approval,
    print_err,
    print_ok,
    print_warn,
)
from activity_normalizer.config.settings import ConfigurationError
from activity_normalizer.context import NormalizerContext
from activity_normalizer.conversion.events import CUSTOM_SCHEMA, SCHEMA_ARRAY_KEYS, StructuralConversionError
from activity_normalizer.validation.activity_checks import check_activity


@app.command("convert", help="Convert a raw extracted record (JSON file) into an Activity.")
def convert_cmd(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="JSON file with the raw extracted record"),
    schema_type: str = typer.Option(
        "events", "--schema-type", "-s",
        help=f"Record schema: {', '.join(list(SCHEMA_ARRAY_KEYS) + [CUSTOM_SCHEMA])}",
    ),
    source_url: str = typer.Option("", "--source-url", "-u", help="Page the record was scraped from"),
    event_id: str = typer.Option("", "--event-id", help="Identifier of the raw record"),
    preview: bool = typer.Option(False, "--preview", help="Only report whether the result is approvable"),
    diagnostics: bool = typer.Option(False, "--diagnostics", "-d", help="Include conversion diagnostics"),
):
    """Convert one raw record and print the resulting activity with its issues."""
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])
    try:
        settings = ensure_initialized(ctx.obj.get("config"))
    except ConfigurationError as e:
        print_err(str(e))
        raise SystemExit(1)

    if not file.exists():
        print_err(f"File not found: {file}")
        raise SystemExit(1)
    try:
        raw = load_json_file(file)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        print_err(f"Invalid JSON in {file}: {e}")
        raise SystemExit(1)

    context = NormalizerContext(settings=settings)
    kwargs = dict(source_url=source_url, schema_type=schema_type, event_id=event_id or file.stem)

    try:
        if preview:
            result = context.preview_conversion(raw, **kwargs)
        else:
            result = context.convert_to_activity(raw, **kwargs)
    except StructuralConversionError as e:
        print_err(f"Conversion failed: {e}")
        if diagnostics:
            diag = context.get_last_conversion_diagnostics()
            if diag is not None:
                output_result(diag.model_dump(mode="json"), ctx=ctx, title="Diagnostics")
        raise SystemExit(1)

    data = result.model_dump(mode="json")
    if diagnostics:
        diag = context.get_last_conversion_diagnostics()
        data["diagnostics"] = diag.model_dump(mode="json") if diag is not None else None
        if result.activity is not None:
            data["activity_check"] = check_activity(result.activity).model_dump(mode="json")

    if ctx.obj["json"]:
        output_result(data, ctx=ctx)
        return

    if result.activity is None:
        print_warn("No events found in record")
    else:
        print_ok(f"Converted '{result.activity.title or '<untitled>'}' (score {result.confidence_score:.1f})")
        output_result(result.activity.model_dump(mode="json", exclude_none=True), ctx=ctx, title="Activity")

    if preview:
        print_approval(result.can_approve, result.confidence_score)
        if not ctx.obj["quiet"]:
            for issue in result.issues:
                print_warn(issue)
    elif result.issue_details and not ctx.obj["quiet"]:
        output_issues(result.issue_details)
    if diagnostics and data.get("diagnostics"):
        output_result(data["diagnostics"], ctx=ctx, title="Diagnostics")
    if diagnostics and data.get("activity_check"):
        print_activity_check(data["activity_check"])
