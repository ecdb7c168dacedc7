"""Scrub command: find calibrations triggered by an estimate."""

from pathlib import Path

import typer

from adas_scrub.cli._app import app
from adas_scrub.cli._common import (
    build_engine,
    build_report_store,
    ensure_initialized,
    setup_logging,
)
from adas_scrub.cli._console import (
    calibration_rows,
    output_result,
    output_table,
    print_completeness,
    print_confidence,
    print_err,
    print_ok,
    print_vehicle,
)
from adas_scrub.scrub.engine import ScrubError
from adas_scrub.scrub.serialization import dump_scrub_result
from adas_scrub.storage.models import ReportRecord


@app.command("scrub", help="Scrub an estimate for ADAS calibration requirements.")
def scrub_cmd(
    ctx: typer.Context,
    estimate: Path = typer.Argument(..., help="Estimate text file", exists=True, dir_okay=False),
    year: int = typer.Option(..., "--year", help="Vehicle model year"),
    make: str = typer.Option(..., "--make", help="Vehicle make"),
    model: str = typer.Option(..., "--model", help="Vehicle model"),
    no_infer: bool = typer.Option(False, "--no-infer", help="Rule-table matches only"),
    save: str = typer.Option(None, "--save", help="Store the result as a report with this id"),
):
    """Scrub one estimate and print the analysis."""
    state = ensure_initialized(ctx.obj["workspace"])
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    engine = build_engine(state)
    estimate_text = estimate.read_text(encoding="utf-8", errors="replace")

    try:
        analysis = engine.scrub(estimate_text, year, make, model, infer=not no_infer)
    except ScrubError as e:
        print_err(str(e))
        raise SystemExit(1)

    if save:
        store = build_report_store(state)
        try:
            store.save_report(
                ReportRecord(
                    report_id=save,
                    vehicle_year=year,
                    vehicle_make=make,
                    vehicle_model=model,
                    estimate_text=estimate_text,
                    calibrations=dump_scrub_result(analysis.results),
                )
            )
        except ValueError as e:
            print_err(str(e))
            raise SystemExit(1)
        if not ctx.obj["quiet"] and not ctx.obj["json"]:
            print_ok(f"Saved report {save}")

    if ctx.obj["json"]:
        output_result(analysis.model_dump(mode="json", by_alias=True, exclude_none=True), ctx=ctx)
        return

    if ctx.obj["quiet"]:
        return

    output_table(
        calibration_rows(analysis.grouped_calibrations),
        ctx=ctx,
        title="Calibrations",
        empty_message="No calibrations triggered",
    )
    print_vehicle(analysis.vehicle)
    print_confidence(analysis.analysis_confidence)
    print_completeness(analysis.completeness)
