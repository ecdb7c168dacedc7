"""Tests for vehicle resolution and rule-table calibration matching."""

import pytest

from adas_scrub.scrub.calibration_matcher import (
    CalibrationMatcher,
    RepairCalibrationMapping,
    normalize_make,
    resolve_vehicle,
)

from scrub_test_helpers import make_provider, make_vehicle


class TestNormalizeMake:
    """Make spelling variants collapse to one key."""

    @pytest.mark.parametrize(
        "make", ["Mercedes Benz", "Mercedes-Benz", "MERCEDES", "mercedes_benz", "MB", "Benz"]
    )
    def test_mercedes_variants(self, make):
        assert normalize_make(make) == "mercedesbenz"

    def test_aliases(self):
        assert normalize_make("Chevy") == "chevrolet"
        assert normalize_make("VW") == "volkswagen"
        assert normalize_make("Land Rover") == "landrover"

    def test_empty(self):
        assert normalize_make(None) == ""


class TestResolveVehicle:
    """Exact model first, then All Models, then nothing."""

    def test_make_spelling_resolves_same_rule_set(self):
        provider = make_provider(make_vehicle(make="Mercedes-Benz"))
        first = provider.get_vehicle(2022, "Mercedes Benz", "C-Class")
        second = provider.get_vehicle(2022, "Mercedes-Benz", "C-Class")
        assert first is not None
        assert first is second

    def test_model_is_case_insensitive(self):
        provider = make_provider(make_vehicle())
        assert provider.get_vehicle(2021, "mercedes-benz", "c-class") is not None

    def test_exact_model_beats_all_models(self):
        exact = make_vehicle(model="C-Class")
        generic = make_vehicle(model="All Models", year_start=2015, year_end=2025)
        assert resolve_vehicle([generic, exact], 2022, "Mercedes Benz", "C-Class") is exact

    def test_all_models_fallback(self):
        exact = make_vehicle(model="C-Class")
        generic = make_vehicle(model="All Models", year_start=2015, year_end=2025)
        assert resolve_vehicle([exact, generic], 2022, "Mercedes", "GLE") is generic

    def test_year_range_is_inclusive(self):
        vehicle = make_vehicle(year_start=2019, year_end=2023)
        assert resolve_vehicle([vehicle], 2019, "Mercedes-Benz", "C-Class") is vehicle
        assert resolve_vehicle([vehicle], 2023, "Mercedes-Benz", "C-Class") is vehicle
        assert resolve_vehicle([vehicle], 2024, "Mercedes-Benz", "C-Class") is None

    def test_unknown_make(self):
        assert resolve_vehicle([make_vehicle()], 2022, "Toyota", "C-Class") is None


class TestRuleSetParsing:
    """Tests for OEM document parsing."""

    def test_mapping_accepts_alternate_keys(self):
        mapping = RepairCalibrationMapping.from_dict(
            {
                "repair_operation": "Windshield Replacement",
                "keywords": ["windshield"],
                "triggered_systems": ["Forward Camera"],
                "tools_required": "not a list",
            }
        )
        assert mapping.keywords == ["windshield"]
        assert mapping.triggered_systems == ["Forward Camera"]
        assert mapping.tools_required is None

    def test_calibration_type_lookup(self):
        vehicle = make_vehicle()
        assert vehicle.calibration_type_for("Forward Camera") == "Static + Dynamic"
        assert vehicle.calibration_type_for("forward camera") == "Static + Dynamic"
        assert vehicle.calibration_type_for("Rear Camera") is None

    def test_summary_omits_rule_tables(self):
        summary = make_vehicle().summary()
        assert summary.make == "Mercedes-Benz"
        assert summary.source_url == "https://www.example.com/oem/adas-position"


class TestCalibrationMatcher:
    """Keyword matching against the vehicle's mapping table."""

    def test_bumper_line_triggers_mapped_system(self):
        """A "bumper" keyword on line 2 triggers the mapped radar."""
        outcome = CalibrationMatcher(make_provider()).scrub(
            "2 * Rpr Bumper cover", 2022, "Mercedes Benz", "C-Class"
        )
        assert len(outcome.results) == 1
        line = outcome.results[0]
        assert line.line_number == 2
        assert line.description == "Bumper Cover"
        match = line.calibration_matches[0]
        assert match.system_name == "Front Radar"
        assert match.calibration_type == "Static"
        assert match.matched_keyword == "bumper"
        assert match.repair_operation == "Front Bumper R&R"
        assert match.reason == 'Repair operation "Front Bumper R&R" triggers calibration'

    def test_keyword_match_is_case_insensitive_substring(self):
        vehicle = make_vehicle()
        matches = CalibrationMatcher().match_line("REPL WINDSHIELD GLASS", vehicle)
        assert [m.system_name for m in matches] == ["Forward Camera"]

    def test_matches_unique_per_system_and_keyword(self):
        vehicle = make_vehicle(
            mappings=[
                {
                    "repair_operation": "Front Bumper R&R",
                    "repair_keywords": ["bumper"],
                    "triggers_calibration": ["Front Radar"],
                },
                {
                    "repair_operation": "Bumper Cover Repair",
                    "repair_keywords": ["bumper", "cover"],
                    "triggers_calibration": ["Front Radar"],
                },
            ]
        )
        matches = CalibrationMatcher().match_line("Rpr bumper cover", vehicle)
        assert [(m.system_name, m.matched_keyword) for m in matches] == [
            ("Front Radar", "bumper"),
            ("Front Radar", "cover"),
        ]

    def test_one_keyword_triggers_every_listed_system(self):
        vehicle = make_vehicle(
            mappings=[
                {
                    "repair_operation": "Front Bumper R&R",
                    "repair_keywords": ["bumper"],
                    "triggers_calibration": ["Front Radar", "Parking Sensors"],
                    "procedure_type": "Required",
                    "tools_required": ["Radar target"],
                }
            ]
        )
        matches = CalibrationMatcher().match_line("Repl front bumper", vehicle)
        assert [m.system_name for m in matches] == ["Front Radar", "Parking Sensors"]
        assert matches[0].procedure_type == "Required"
        assert matches[0].tools_required == ["Radar target"]
        assert matches[1].calibration_type is None

    def test_address_line_never_matched(self):
        """A street-address line is removed before matching."""
        vehicle = make_vehicle(
            mappings=[
                {
                    "repair_operation": "Front Bumper R&R",
                    "repair_keywords": ["ave"],
                    "triggers_calibration": ["Front Radar"],
                }
            ]
        )
        outcome = CalibrationMatcher(make_provider(vehicle)).scrub(
            "123 NW 5th Ave", 2022, "Mercedes-Benz", "C-Class"
        )
        assert outcome.results == []
        assert outcome.detected_repairs == []

    def test_unmapped_vehicle_yields_empty_results(self):
        outcome = CalibrationMatcher(make_provider()).scrub(
            "2 * Rpr Bumper cover", 2022, "Toyota", "Camry"
        )
        assert outcome.vehicle is None
        assert outcome.vehicle_summary is None
        assert outcome.results == []
        assert [r.repair_type for r in outcome.detected_repairs] == ["Bumper Repair"]
