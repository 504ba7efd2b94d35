"""Rich consoles and the output helpers shared by the commands.

Human-readable output goes to stderr; with ``--json`` the payload is
written to stdout alone so it can be piped to jq.
"""

import json as json_mod
from typing import Any, Dict, List

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from activity_normalizer.schemas.conversion import ConversionIssue, IssueSeverity

console = Console(stderr=True)

stdout_console = Console()

_SEVERITY_STYLES = {
    IssueSeverity.ERROR: "red",
    IssueSeverity.WARNING: "yellow",
    IssueSeverity.INFO: "dim",
}


def print_ok(msg: str) -> None:
    console.print(f"[green]✓[/green] {msg}")


def print_err(msg: str) -> None:
    console.print(f"[red]✗[/red] {msg}")


def print_warn(msg: str) -> None:
    console.print(f"[yellow]![/yellow] {msg}")


def output_result(data: Dict[str, Any], *, ctx: typer.Context, title: str = "") -> None:
    """Print a model dump as JSON on stdout, or pretty-printed in a panel."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=data)
        return
    formatted = json_mod.dumps(data, indent=2, ensure_ascii=False, default=str)
    if title:
        console.print(Panel(formatted, title=title, border_style="blue"))
    else:
        console.print(formatted)


def output_issues(issues: List[ConversionIssue], title: str = "Issues") -> None:
    """Conversion issues, one row each, colored by severity."""
    table = Table(title=title, show_lines=False)
    table.add_column("severity")
    table.add_column("field")
    table.add_column("message")
    table.add_column("suggestion", style="dim")
    for issue in issues:
        style = _SEVERITY_STYLES.get(issue.severity, "")
        table.add_row(
            f"[{style}]{issue.severity.value}[/{style}]" if style else issue.severity.value,
            escape(issue.field),
            escape(issue.message),
            escape(issue.suggestion),
        )
    console.print(table)


def print_approval(can_approve: bool, score: float) -> None:
    status = "[green]yes[/green]" if can_approve else "[red]no[/red]"
    console.print(f"  Approvable:     {status} (score {score:.1f})")


def print_activity_check(check: Dict[str, Any]) -> None:
    """Summary line of a whole-activity check followed by its issues and warnings."""
    state = "[green]valid[/green]" if check["is_valid"] else "[red]invalid[/red]"
    console.print(f"  Activity check: {state}, score {check['confidence_score']:.1f}")
    for issue in check.get("issues", []):
        print_err(issue)
    for warning in check.get("warnings", []):
        print_warn(warning)
