"""Shared CLI helpers: logging setup and engine wiring."""

import logging
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from adas_scrub.cli._console import console
from adas_scrub.config.scrub_config import ScrubConfig
from adas_scrub.scrub.engine import ScrubEngine
from adas_scrub.startup import WorkspaceState
from adas_scrub.startup import ensure_initialized as _ensure_initialized
from adas_scrub.storage import FileReportStore, FileVehicleRuleProvider

logger = logging.getLogger(__name__)


def ensure_initialized(workspace: Optional[Path] = None) -> WorkspaceState:
    """Initialize environment and workspace."""
    return _ensure_initialized(workspace)


def setup_logging(*, verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging with Rich handler."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO

    handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def build_engine(state: WorkspaceState) -> ScrubEngine:
    """Create a scrub engine over the workspace's vehicle rules and config."""
    provider = FileVehicleRuleProvider(state.vehicles_dir)
    config = ScrubConfig.from_yaml(state.config_path)
    return ScrubEngine(provider, config)


def build_report_store(state: WorkspaceState) -> FileReportStore:
    return FileReportStore(state.reports_dir)
