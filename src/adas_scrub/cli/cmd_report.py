"""Report commands: list stored reports and change their workflow status."""

import typer

from adas_scrub.cli._app import app
from adas_scrub.cli._common import (
    build_engine,
    build_report_store,
    ensure_initialized,
    setup_logging,
)
from adas_scrub.cli._console import output_result, output_table, print_err, print_ok
from adas_scrub.scrub.completeness import SubmissionNotReadyError
from adas_scrub.scrub.schemas import ScrubResult
from adas_scrub.scrub.serialization import load_scrub_result
from adas_scrub.services.report_status import ReportStatusService
from adas_scrub.services.rescrub import ReportNotFoundError


@app.command("reports", help="List stored reports.")
def reports_cmd(ctx: typer.Context):
    """List stored reports with their status."""
    state = ensure_initialized(ctx.obj["workspace"])
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    rows = []
    for report in build_report_store(state).list_reports():
        result = ScrubResult(lines=load_scrub_result(report.calibrations))
        rows.append(
            {
                "report_id": report.report_id,
                "vehicle": f"{report.vehicle_year} {report.vehicle_make} {report.vehicle_model}",
                "status": report.status,
                "matches": result.match_count(),
                "updated_at": report.updated_at or "",
            }
        )
    output_table(rows, ctx=ctx, title="Reports", empty_message="No reports stored")


@app.command("status", help="Change a report's workflow status.")
def status_cmd(
    ctx: typer.Context,
    report_id: str = typer.Argument(..., help="Report id"),
    status: str = typer.Argument(..., help="Target status, e.g. IN_REVIEW or READY_TO_SUBMIT"),
):
    """Move a report to a new workflow status."""
    state = ensure_initialized(ctx.obj["workspace"])
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    service = ReportStatusService(build_engine(state), build_report_store(state))
    try:
        report = service.set_status(report_id, status.strip().upper())
    except ReportNotFoundError as e:
        print_err(str(e))
        raise SystemExit(1)
    except SubmissionNotReadyError as e:
        print_err(str(e))
        raise SystemExit(2)
    except ValueError as e:
        print_err(f"{report_id}: {e}")
        raise SystemExit(1)

    if ctx.obj["json"]:
        output_result({"reportId": report.report_id, "status": report.status}, ctx=ctx)
    elif not ctx.obj["quiet"]:
        print_ok(f"{report.report_id}: {report.status}")
