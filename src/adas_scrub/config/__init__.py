"""Scrub engine configuration."""

from adas_scrub.config.scrub_config import (
    CalibrationTypePolicy,
    CompletenessConfig,
    ConfigError,
    InferenceConfig,
    ScrubConfig,
)

__all__ = [
    "CalibrationTypePolicy",
    "CompletenessConfig",
    "ConfigError",
    "InferenceConfig",
    "ScrubConfig",
]
