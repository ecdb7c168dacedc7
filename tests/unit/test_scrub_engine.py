"""Tests for the scrub engine pipeline."""

import pytest

from adas_scrub.config.scrub_config import InferenceConfig, ScrubConfig
from adas_scrub.scrub.canonicalizer import (
    BLIND_SPOT_CALIBRATION,
    FORWARD_CAMERA_CALIBRATION,
    FRONT_RADAR_CALIBRATION,
    STEERING_ANGLE_RELEARN,
)
from adas_scrub.scrub.engine import ScrubEngine, ScrubError, build_analysis_confidence
from adas_scrub.scrub.schemas import EstimateFormat, ManualRemoveOperation
from adas_scrub.storage import ReportRecord

from scrub_test_helpers import make_provider, make_vehicle

ESTIMATE = """CCC ONE Estimating
Shop Name: Precision Collision Center
RO# 48213
Date of Loss: 05/10/2024
VIN: WDDWF8DB5KR123456
1 FRONT BUMPER
2 * Rpr Bumper cover
123 NW 5th Ave
7 Repl Windshield
8 Subl Four wheel alignment
"""


def _match_keys(analysis):
    return {
        (line.line_number, match.system_name, match.matched_keyword)
        for line in analysis.results
        for match in line.calibration_matches
    }


@pytest.fixture
def engine():
    return ScrubEngine(make_provider())


class TestScrub:
    """Full scrub of a mapped vehicle."""

    def test_precise_results(self, engine):
        analysis = engine.scrub(ESTIMATE, 2022, "Mercedes Benz", "C-Class")

        assert [line.line_number for line in analysis.results] == [1, 2, 7, 8]
        assert [g.repair_operation for g in analysis.grouped_calibrations] == [
            FRONT_RADAR_CALIBRATION,
            FORWARD_CAMERA_CALIBRATION,
            STEERING_ANGLE_RELEARN,
        ]
        assert analysis.grouped_calibrations[0].trigger_lines == [1, 2]
        assert not analysis.used_inference_fallback
        assert analysis.vehicle.model == "C-Class"

    def test_metadata_and_completeness(self, engine):
        analysis = engine.scrub(ESTIMATE, 2022, "Mercedes-Benz", "C-Class")

        assert analysis.estimate_metadata.vin == "WDDWF8DB5KR123456"
        assert analysis.estimate_metadata.estimate_format == EstimateFormat.CCC
        assert analysis.completeness.score == 100
        assert analysis.completeness.ready_for_submission
        assert analysis.completeness.trigger_line_count == 4

    def test_confidence(self, engine):
        confidence = engine.scrub(ESTIMATE, 2022, "Mercedes-Benz", "C-Class").analysis_confidence
        assert confidence.score == 96
        assert confidence.label == "high"

    def test_unmapped_vehicle_falls_back_to_inference(self, engine):
        analysis = engine.scrub(ESTIMATE, 2022, "Toyota", "Camry")

        assert analysis.vehicle is None
        assert analysis.used_inference_fallback
        assert {g.repair_operation for g in analysis.grouped_calibrations} == {
            FRONT_RADAR_CALIBRATION,
            FORWARD_CAMERA_CALIBRATION,
            STEERING_ANGLE_RELEARN,
        }
        assert analysis.completeness.missing == ["OEM source link"]
        assert analysis.analysis_confidence.score == 77
        assert analysis.analysis_confidence.label == "medium"

    def test_infer_disabled_per_call(self, engine):
        analysis = engine.scrub(ESTIMATE, 2022, "Toyota", "Camry", infer=False)
        assert analysis.results == []
        assert not analysis.completeness.ready_for_submission

    def test_inference_disabled_by_config(self):
        engine = ScrubEngine(make_provider(), ScrubConfig(inference=InferenceConfig(enabled=False)))
        assert engine.scrub(ESTIMATE, 2022, "Toyota", "Camry").results == []

    def test_rear_zone_rule_from_config(self):
        config = ScrubConfig(inference=InferenceConfig(rear_zone_blind_spot=True))
        analysis = ScrubEngine(make_provider(), config).scrub("3 Repl Rear bumper cover", 2022, "Toyota", "Camry")
        assert [g.repair_operation for g in analysis.grouped_calibrations] == [BLIND_SPOT_CALIBRATION]

    def test_inference_only_fills_gaps(self):
        """A mapped vehicle without a windshield rule still gets the camera from inference."""
        vehicle = make_vehicle(
            mappings=[
                {
                    "repair_operation": "Front Bumper R&R",
                    "repair_keywords": ["bumper"],
                    "triggers_calibration": ["Front Radar"],
                }
            ]
        )
        analysis = ScrubEngine(make_provider(vehicle)).scrub(ESTIMATE, 2022, "Mercedes-Benz", "C-Class")

        radar = analysis.grouped_calibrations[0]
        assert radar.matched_keywords == ["bumper"]
        assert [g.repair_operation for g in analysis.grouped_calibrations[1:]] == [
            FORWARD_CAMERA_CALIBRATION,
            STEERING_ANGLE_RELEARN,
        ]
        assert not analysis.used_inference_fallback

    @pytest.mark.parametrize(
        "year,make,model",
        [(None, "Toyota", "Camry"), (2022, "", "Camry"), (2022, "Toyota", "  ")],
    )
    def test_vehicle_identity_required(self, engine, year, make, model):
        with pytest.raises(ScrubError):
            engine.scrub(ESTIMATE, year, make, model)

    def test_line_number_collision_keeps_rule_matches(self, engine):
        """A recovered "3" next to the third positional line keeps both lines' matches."""
        estimate = "Front bumper cover\nWindshield replace\nFour wheel alignment\n3 Repl bumper bracket"

        precise = engine.scrub(estimate, 2022, "Mercedes-Benz", "C-Class", infer=False)
        merged = engine.scrub(estimate, 2022, "Mercedes-Benz", "C-Class")

        assert (3, "Steering Angle Sensor", "alignment") in _match_keys(precise)
        assert _match_keys(precise) <= _match_keys(merged)
        assert len([line for line in merged.results if line.line_number == 3]) == 1

    def test_wire_format(self, engine):
        data = engine.scrub(ESTIMATE, 2022, "Mercedes-Benz", "C-Class").model_dump(by_alias=True)
        assert "groupedCalibrations" in data
        assert "readyForSubmission" in data["completeness"]


class TestBuildAnalysisConfidence:
    """Score arithmetic and clamping."""

    def test_low(self):
        confidence = build_analysis_confidence(False, "low", 0, 0, 0, False, True)
        assert confidence.score == 46
        assert confidence.label == "low"

    def test_medium(self):
        confidence = build_analysis_confidence(True, "low", 0, 1, 0, False, False)
        assert confidence.score == 74
        assert confidence.label == "medium"


class TestRescrub:
    """Re-scrub of a stored report."""

    def _report(self):
        return ReportRecord(
            report_id="r-1",
            vehicle_year=2022,
            vehicle_make="Mercedes-Benz",
            vehicle_model="C-Class",
            estimate_text=ESTIMATE,
            calibrations="[]",
        )

    def test_confidence_follows_overrides(self, engine):
        """Removing every calibration is reflected in the confidence reasons."""
        matched = "Calibration recommendations matched to known repair triggers."
        plain = engine.rescrub(self._report())
        assert matched in plain.analysis.analysis_confidence.reasons

        removes = [ManualRemoveOperation(system_name=name) for name in ("radar", "camera", "steering")]
        outcome = engine.rescrub(self._report(), removes=removes)

        assert outcome.lines == []
        assert outcome.analysis.grouped_calibrations == []
        assert matched not in outcome.analysis.analysis_confidence.reasons
        assert not outcome.analysis.completeness.ready_for_submission
