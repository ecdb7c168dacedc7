"""Rich consoles and output helpers for scrub results.

Human-readable output goes to stderr; ``--json`` output goes to stdout so it
can be piped.
"""

import json
import sys
from typing import List, Optional, Sequence

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from adas_scrub.scrub.schemas import (
    AnalysisConfidence,
    CompletenessAssessment,
    GroupedCalibration,
    VehicleSummary,
)

console = Console(stderr=True)
stdout_console = Console(file=sys.stdout)


def print_ok(msg: str) -> None:
    console.print(f"[green]✓[/green] {escape(msg)}")


def print_err(msg: str) -> None:
    console.print(f"[red]✗[/red] {escape(msg)}")


def print_warn(msg: str) -> None:
    console.print(f"[yellow]![/yellow] {escape(msg)}")


def wants_json(ctx: typer.Context) -> bool:
    return bool(ctx.obj and ctx.obj.get("json"))


def output_result(data: dict, *, ctx: typer.Context, title: str = "") -> None:
    """Emit a result document: JSON on stdout, or a panel on stderr."""
    if wants_json(ctx):
        stdout_console.print_json(data=data)
        return
    rendered = Text(json.dumps(data, indent=2, ensure_ascii=False, default=str))
    console.print(Panel(rendered, title=title, border_style="blue") if title else rendered)


def output_table(
    rows: List[dict],
    *,
    ctx: typer.Context,
    title: str = "",
    columns: Optional[List[str]] = None,
    empty_message: str = "Nothing to show",
) -> None:
    """Emit rows as a JSON array or a Rich table."""
    if wants_json(ctx):
        stdout_console.print_json(data=rows)
        return

    if not rows:
        console.print(f"[dim]{empty_message}[/dim]")
        return

    table = Table(title=title)
    keys = columns or list(rows[0].keys())
    for key in keys:
        table.add_column(key)
    for row in rows:
        table.add_row(*(escape(str(row.get(key, ""))) for key in keys))
    console.print(table)


def calibration_rows(groups: Sequence[GroupedCalibration]) -> List[dict]:
    """One row per grouped calibration operation."""
    return [
        {
            "System": group.system_name,
            "Type": group.calibration_type,
            "Operation": group.repair_operation,
            "Lines": ", ".join(str(n) for n in group.trigger_lines),
        }
        for group in groups
    ]


def print_vehicle(vehicle: Optional[VehicleSummary]) -> None:
    if vehicle is None:
        console.print("  [yellow]Vehicle rules:[/yellow] none found")
        return
    console.print(
        f"  Vehicle rules: {escape(vehicle.make)} {escape(vehicle.model)} {vehicle.year_start}-{vehicle.year_end}"
    )


def print_confidence(confidence: Optional[AnalysisConfidence]) -> None:
    if confidence is not None:
        console.print(f"  Confidence: {confidence.score} ({confidence.label})")


def print_completeness(assessment: Optional[CompletenessAssessment]) -> None:
    """Completeness score, readiness, and each missing check."""
    if assessment is None:
        return
    ready = "[green]ready[/green]" if assessment.ready_for_submission else "[yellow]not ready[/yellow]"
    console.print(f"  Completeness: {assessment.score}/100 {ready}")
    for label in assessment.missing:
        console.print(f"    - missing: {label}")
