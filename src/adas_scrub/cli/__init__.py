"""CLI package: Typer-based command-line interface.

Usage:
    python -m adas_scrub.cli --help
    python -m adas_scrub.cli scrub estimate.txt --year 2022 --make Toyota --model Camry
"""

from adas_scrub.cli._app import app

# Register command modules (side-effect imports)
import adas_scrub.cli.cmd_scrub  # noqa: F401
import adas_scrub.cli.cmd_rescrub  # noqa: F401
import adas_scrub.cli.cmd_vehicles  # noqa: F401
import adas_scrub.cli.cmd_report  # noqa: F401

__all__ = ["app"]
