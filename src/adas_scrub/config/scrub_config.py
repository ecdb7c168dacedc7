"""Scrub engine policy loaded from the workspace configuration.

Completeness weights, the readiness threshold, calibration-type merging and
the inference toggles are policy choices that domain experts retune, so they
live in ``{workspace}/config/scrub_config.yaml`` rather than in code:

    completeness:
      threshold: 85
      weights:
        vin: 15
        reference: 15
        ...
    calibration_types:
      separator: " / "
      order: []
    inference:
      enabled: true
      steering_line_mentions: true
      rear_zone_blind_spot: false
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

CONFIG_RELATIVE_PATH = Path("config") / "scrub_config.yaml"

DEFAULT_COMPLETENESS_WEIGHTS: Dict[str, int] = {
    "vin": 15,
    "reference": 15,
    "shop_claim": 10,
    "calibrations": 25,
    "trigger_lines": 15,
    "oem_source": 10,
    "dates": 10,
}

DEFAULT_READY_THRESHOLD = 85


class ConfigError(Exception):
    """Raised when scrub configuration is invalid."""

    pass


@dataclass
class CompletenessConfig:
    """Weighted readiness checks and the submission threshold."""

    weights: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_COMPLETENESS_WEIGHTS))
    threshold: int = DEFAULT_READY_THRESHOLD

    def __post_init__(self):
        unknown = set(self.weights) - set(DEFAULT_COMPLETENESS_WEIGHTS)
        if unknown:
            raise ConfigError(f"Unknown completeness checks: {', '.join(sorted(unknown))}")
        missing = set(DEFAULT_COMPLETENESS_WEIGHTS) - set(self.weights)
        if missing:
            raise ConfigError(f"Missing completeness weights: {', '.join(sorted(missing))}")
        total = sum(self.weights.values())
        if total != 100:
            raise ConfigError(f"Completeness weights must sum to 100, got {total}")
        if not 0 <= self.threshold <= 100:
            raise ConfigError(f"Readiness threshold must be within 0-100, got {self.threshold}")

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "CompletenessConfig":
        """Create config from dictionary."""
        weights = dict(DEFAULT_COMPLETENESS_WEIGHTS)
        weights.update({k: int(v) for k, v in (config.get("weights") or {}).items()})
        return cls(
            weights=weights,
            threshold=int(config.get("threshold", DEFAULT_READY_THRESHOLD)),
        )

    @classmethod
    def default(cls) -> "CompletenessConfig":
        return cls()


@dataclass
class CalibrationTypePolicy:
    """How multiple calibration types for one operation are combined."""

    separator: str = " / "
    # Empty keeps first-seen order
    order: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "CalibrationTypePolicy":
        """Create config from dictionary."""
        return cls(
            separator=config.get("separator", " / "),
            order=list(config.get("order") or []),
        )

    @classmethod
    def default(cls) -> "CalibrationTypePolicy":
        return cls()


@dataclass
class InferenceConfig:
    """Toggles for the heuristic (non rule-table) calibration pass."""

    enabled: bool = True
    steering_line_mentions: bool = True
    # Rear bumper / quarter / tailgate / mirror work -> blind spot calibration
    rear_zone_blind_spot: bool = False

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "InferenceConfig":
        """Create config from dictionary."""
        return cls(
            enabled=config.get("enabled", True),
            steering_line_mentions=config.get("steering_line_mentions", True),
            rear_zone_blind_spot=config.get("rear_zone_blind_spot", False),
        )

    @classmethod
    def default(cls) -> "InferenceConfig":
        return cls()


@dataclass
class ScrubConfig:
    """Top-level scrub engine configuration."""

    completeness: CompletenessConfig = field(default_factory=CompletenessConfig.default)
    calibration_types: CalibrationTypePolicy = field(default_factory=CalibrationTypePolicy.default)
    inference: InferenceConfig = field(default_factory=InferenceConfig.default)

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "ScrubConfig":
        """Create config from a parsed YAML dict."""
        return cls(
            completeness=CompletenessConfig.from_dict(config.get("completeness") or {}),
            calibration_types=CalibrationTypePolicy.from_dict(config.get("calibration_types") or {}),
            inference=InferenceConfig.from_dict(config.get("inference") or {}),
        )

    @classmethod
    def default(cls) -> "ScrubConfig":
        return cls()

    @classmethod
    def from_yaml(cls, config_path: Path) -> "ScrubConfig":
        """Load config from a YAML file, falling back to defaults if absent.

        Raises:
            ConfigError: If the file exists but is not a valid config.
        """
        if not config_path.exists():
            logger.warning(f"Config file not found: {config_path}, using defaults")
            return cls.default()

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping at the top of {config_path}")

        logger.info(f"Loaded scrub config from {config_path}")
        return cls.from_dict(data)

    @classmethod
    def for_workspace(cls, workspace: Optional[Path]) -> "ScrubConfig":
        """Load ``config/scrub_config.yaml`` from a workspace (defaults if None)."""
        if workspace is None:
            return cls.default()
        return cls.from_yaml(workspace / CONFIG_RELATIVE_PATH)
