"""Tests for ADAS component detection in estimate lines."""

from adas_scrub.scrub.adas_parts import (
    BLIND_SPOT_MONITOR,
    FRONT_RADAR,
    PARKING_SENSOR,
    STEERING_ANGLE_SENSOR,
    detect_adas_parts,
    detect_adas_systems,
    get_adas_system_description,
)
from adas_scrub.scrub.text_normalizer import normalize_estimate


class TestDetectAdasSystems:
    """Phrase matching on a single line."""

    def test_radar_part(self):
        assert detect_adas_systems("3 Repl Radar sensor bracket") == [FRONT_RADAR]

    def test_word_boundaries(self):
        """"sas" must not match inside another word."""
        assert detect_adas_systems("Ship to Kansas warehouse") == []
        assert detect_adas_systems("SAS reset after alignment") == [STEERING_ANGLE_SENSOR]

    def test_line_can_name_several_systems(self):
        systems = detect_adas_systems("R&I rear bumper sensor and blind spot sensor")
        assert systems == [BLIND_SPOT_MONITOR, PARKING_SENSOR]

    def test_description(self):
        assert get_adas_system_description(FRONT_RADAR) == "Front Radar Sensor (ACC/AEB)"
        assert get_adas_system_description("nightVision") == "nightVision"


class TestDetectAdasParts:
    """Detections across an estimate."""

    def test_first_mention_order_and_line_numbers(self):
        lines = normalize_estimate(
            "2 Repl SAS module\n3 Repl Radar sensor\n7 R&I Radar sensor bracket"
        )
        parts = detect_adas_parts(lines)
        assert [part.system for part in parts] == [STEERING_ANGLE_SENSOR, FRONT_RADAR]
        assert parts[1].line_numbers == [3, 7]
        assert parts[1].description == "Front Radar Sensor (ACC/AEB)"

    def test_no_parts(self):
        assert detect_adas_parts(normalize_estimate("2 Rpr Bumper cover")) == []
