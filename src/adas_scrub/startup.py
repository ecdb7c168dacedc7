"""Centralized initialization for adas_scrub entry points.

This module provides a single point of initialization for:
- Environment variables (.env loading)
- Workspace resolution (vehicle rules, reports, config)

Entry points (CLI, services) should call ensure_initialized() to guarantee
consistent startup behavior.

Workspace layout:
    {workspace}/config/scrub_config.yaml
    {workspace}/vehicles/*.json|*.yaml
    {workspace}/reports/{report_id}.json
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from adas_scrub.config.scrub_config import CONFIG_RELATIVE_PATH

logger = logging.getLogger(__name__)

WORKSPACE_ENV_VAR = "ADAS_SCRUB_WORKSPACE"
DEFAULT_WORKSPACE_DIRNAME = "workspace"


@dataclass
class WorkspaceState:
    """Resolved workspace paths after initialization."""

    project_root: Path
    workspace_path: Path

    @property
    def config_path(self) -> Path:
        return self.workspace_path / CONFIG_RELATIVE_PATH

    @property
    def vehicles_dir(self) -> Path:
        return self.workspace_path / "vehicles"

    @property
    def reports_dir(self) -> Path:
        return self.workspace_path / "reports"


# Module-level state
_initialized: bool = False
_state: Optional[WorkspaceState] = None


def _find_project_root(start_path: Optional[Path] = None) -> Path:
    """Find project root by looking for pyproject.toml.

    Args:
        start_path: Starting path for search. Defaults to the working directory.

    Returns:
        Project root directory (start_path if no marker is found).
    """
    start_path = (start_path or Path.cwd()).resolve()
    for parent in [start_path] + list(start_path.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return start_path


def _load_env(project_root: Path) -> bool:
    """Load .env from the project root, if present."""
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug(f"[startup] Loaded .env from {env_path}")
        return True
    logger.debug(f"[startup] No .env at {env_path}")
    return False


def resolve_workspace(project_root: Path, override: Optional[Path] = None) -> Path:
    """Resolve the workspace directory.

    Precedence: explicit override, then $ADAS_SCRUB_WORKSPACE, then
    ``{project_root}/workspace``. Relative paths resolve against the
    project root.
    """
    raw = override or os.getenv(WORKSPACE_ENV_VAR)
    workspace = Path(raw) if raw else project_root / DEFAULT_WORKSPACE_DIRNAME
    if not workspace.is_absolute():
        workspace = project_root / workspace
    if not workspace.exists():
        logger.warning(f"[startup] Workspace does not exist: {workspace}")
    return workspace


def ensure_initialized(workspace: Optional[Path] = None) -> WorkspaceState:
    """Ensure the application is initialized (idempotent).

    Loads .env and resolves the workspace on first call; subsequent calls
    return cached state unless an explicit workspace is passed.

    Args:
        workspace: Optional workspace override (e.g. from a CLI option).

    Returns:
        Current WorkspaceState.
    """
    global _initialized, _state

    if _initialized and _state is not None and workspace is None:
        return _state

    project_root = _find_project_root()
    _load_env(project_root)
    _state = WorkspaceState(
        project_root=project_root,
        workspace_path=resolve_workspace(project_root, workspace),
    )
    _initialized = True
    logger.debug(f"[startup] Using workspace {_state.workspace_path}")
    return _state


def reset() -> None:
    """Forget cached state (used by tests)."""
    global _initialized, _state
    _initialized = False
    _state = None
