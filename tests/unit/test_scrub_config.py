"""Tests for scrub configuration loading and validation."""

import pytest

from adas_scrub.config.scrub_config import (
    CompletenessConfig,
    ConfigError,
    DEFAULT_COMPLETENESS_WEIGHTS,
    ScrubConfig,
)


class TestCompletenessConfig:
    """Weight table validation."""

    def test_defaults(self):
        config = CompletenessConfig.default()
        assert config.weights == DEFAULT_COMPLETENESS_WEIGHTS
        assert config.threshold == 85

    def test_partial_weights_merge_over_defaults(self):
        config = CompletenessConfig.from_dict({"weights": {"vin": 20, "dates": 5}})
        assert config.weights["vin"] == 20
        assert config.weights["reference"] == 15

    def test_weights_must_sum_to_100(self):
        with pytest.raises(ConfigError, match="sum to 100"):
            CompletenessConfig.from_dict({"weights": {"vin": 30}})

    def test_unknown_check(self):
        with pytest.raises(ConfigError, match="Unknown completeness checks"):
            CompletenessConfig.from_dict({"weights": {"photos": 0}})

    def test_threshold_range(self):
        with pytest.raises(ConfigError):
            CompletenessConfig.from_dict({"threshold": 120})


class TestScrubConfig:
    """YAML loading."""

    def test_missing_file_uses_defaults(self, tmp_path):
        config = ScrubConfig.from_yaml(tmp_path / "missing.yaml")
        assert config == ScrubConfig.default()

    def test_loads_sections(self, tmp_path):
        path = tmp_path / "scrub_config.yaml"
        path.write_text(
            "completeness:\n"
            "  threshold: 80\n"
            "calibration_types:\n"
            "  separator: ', '\n"
            "  order: [Static, Dynamic]\n"
            "inference:\n"
            "  rear_zone_blind_spot: true\n",
            encoding="utf-8",
        )
        config = ScrubConfig.from_yaml(path)
        assert config.completeness.threshold == 80
        assert config.calibration_types.separator == ", "
        assert config.calibration_types.order == ["Static", "Dynamic"]
        assert config.inference.rear_zone_blind_spot
        assert config.inference.enabled

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "scrub_config.yaml"
        path.write_text("", encoding="utf-8")
        assert ScrubConfig.from_yaml(path) == ScrubConfig.default()

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "scrub_config.yaml"
        path.write_text("completeness: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            ScrubConfig.from_yaml(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "scrub_config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="Expected a mapping"):
            ScrubConfig.from_yaml(path)

    def test_for_workspace(self, demo_workspace):
        config = ScrubConfig.for_workspace(demo_workspace)
        assert config.completeness.threshold == 85
        assert ScrubConfig.for_workspace(None) == ScrubConfig.default()
