"""Vehicles command: list the OEM rule sets in the workspace."""

import typer

from adas_scrub.cli._app import app
from adas_scrub.cli._common import ensure_initialized, setup_logging
from adas_scrub.cli._console import output_table, print_warn
from adas_scrub.storage import FileVehicleRuleProvider


@app.command("vehicles", help="List vehicle rule sets available in the workspace.")
def vehicles_cmd(
    ctx: typer.Context,
    year: int = typer.Option(None, "--year", help="Only rule sets covering this model year"),
):
    """List vehicle rule sets."""
    state = ensure_initialized(ctx.obj["workspace"])
    setup_logging(verbose=ctx.obj["verbose"], quiet=ctx.obj["quiet"])

    if not state.vehicles_dir.is_dir():
        print_warn(f"No vehicle rules directory at {state.vehicles_dir}")
    provider = FileVehicleRuleProvider(state.vehicles_dir)
    vehicles = provider.list_vehicles_for_year(year) if year else provider.list_vehicles()

    rows = [
        {
            "make": vehicle.make,
            "model": vehicle.model,
            "years": f"{vehicle.year_start}-{vehicle.year_end}",
            "systems": len(vehicle.adas_systems),
            "mappings": len(vehicle.mappings),
            "source": vehicle.source_provider or "",
        }
        for vehicle in vehicles
    ]
    output_table(rows, ctx=ctx, title="Vehicle rule sets", empty_message="No vehicle rule sets")
