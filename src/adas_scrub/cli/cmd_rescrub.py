"""Rescrub command: re-run a stored report with manual overrides."""

import json
import logging
from pathlib import Path
from typing import List

import typer
from pydantic import ValidationError

from adas_scrub.cli._app import app
from adas_scrub.cli._common import (
    build_engine,
    build_report_store,
    ensure_initialized,
    setup_logging,
)
from adas_scrub.cli._console import (
    calibration_rows,
    console,
    output_result,
    output_table,
    print_completeness,
    print_err,
    print_ok,
)
from adas_scrub.scrub.engine import ScrubError
from adas_scrub.scrub.schemas import ManualAddOperation, ManualRemoveOperation
from adas_scrub.services.rescrub import ReportNotFoundError, ReportRescrubService

logger = logging.getLogger(__name__)


def _validate_entries(model, entries, section: str, path: Path) -> list:
    """Validate override entries one by one; invalid entries are skipped."""
    if not isinstance(entries, list):
        raise ValueError(f"'{section}' must be a list")
    valid = []
    for index, entry in enumerate(entries):
        try:
            valid.append(model.model_validate(entry))
        except ValidationError as e:
            problems = "; ".join(err["msg"] for err in e.errors())
            logger.warning(f"{path}: skipping {section}[{index}]: {problems}")
    return valid


def _load_overrides(path: Path):
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("Overrides file must hold an object with 'adds' and/or 'removes'")
    adds = _validate_entries(ManualAddOperation, data.get("adds") or [], "adds", path)
    removes = _validate_entries(ManualRemoveOperation, data.get("removes") or [], "removes", path)
    return adds, removes


@app.command("rescrub", help="Re-scrub a stored report, applying manual overrides.")
def rescrub_cmd(
    ctx: typer.Context,
    report_id: str = typer.Argument(..., help="Report id"),
    overrides: Path = typer.Option(
        None, "--overrides", help="JSON file with 'adds' and 'removes' lists", exists=True, dir_okay=False
    ),
    remove_system: List[str] = typer.Option(
        None, "--remove-system", help="Remove all matches for this system (repeatable)"
    ),
):
    """Re-scrub one report and store the result if it changed."""
    state = ensure_initialized(ctx.obj["workspace"])
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    adds: List[ManualAddOperation] = []
    removes: List[ManualRemoveOperation] = []
    if overrides:
        try:
            adds, removes = _load_overrides(overrides)
        except (json.JSONDecodeError, ValueError) as e:
            print_err(f"Invalid overrides file {overrides}: {e}")
            raise SystemExit(1)
    for system in remove_system or []:
        removes.append(ManualRemoveOperation(system_name=system))

    service = ReportRescrubService(build_engine(state), build_report_store(state))
    try:
        outcome = service.rescrub(report_id, adds=adds, removes=removes)
    except ReportNotFoundError as e:
        print_err(str(e))
        raise SystemExit(1)
    except (ScrubError, ValueError) as e:
        print_err(f"{report_id}: {e}")
        raise SystemExit(1)

    if ctx.obj["json"]:
        output_result(
            {
                "reportId": report_id,
                "summary": outcome.summary.model_dump(mode="json", by_alias=True),
                "analysis": outcome.analysis.model_dump(mode="json", by_alias=True, exclude_none=True),
            },
            ctx=ctx,
        )
        return

    if ctx.obj["quiet"]:
        return

    summary = outcome.summary
    if summary.changed:
        print_ok(f"{report_id}: calibrations updated")
    else:
        print_ok(f"{report_id}: no change")
    console.print(f"  Lines with calibrations: {len(outcome.lines)}")
    console.print(f"  Inferred merged: {summary.inferred_merged_count}")
    console.print(f"  Manual removed: {summary.removed_match_count}")
    console.print(f"  Manual added: {summary.added_match_count}")
    output_table(
        calibration_rows(outcome.analysis.grouped_calibrations),
        ctx=ctx,
        title="Calibrations",
        empty_message="No calibrations triggered",
    )
    print_completeness(outcome.analysis.completeness)
