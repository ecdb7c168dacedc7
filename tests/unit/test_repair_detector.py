"""Tests for repair-operation detection and description cleaning."""

import pytest

from adas_scrub.scrub.repair_detector import (
    REPAIR_RULES,
    classify_repair,
    clean_repair_description,
    detect_operation,
    detect_repairs,
)


class TestClassifyRepair:
    """Ordered first-match-wins classification."""

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("6 O/H bumper assy", "Bumper Overhaul"),
            ("2 * Rpr Bumper cover", "Bumper Repair"),
            ("R&I Front Bumper Cover", "Bumper R&I"),
            ("Replace rear bumper", "Bumper R&R"),
            ("1 FRONT BUMPER", "Front Bumper"),
            ("Rear bumper absorber", "Rear Bumper"),
            ("R&I Grille", "Grille R&I"),
            ("Lower grill insert", "Grille"),
            ("Repl Windshield", "Windshield"),
            ("LT door mirror glass", "Side Mirror"),
            ("Repl LT Headlamp assy", "Headlamp"),
            ("Repl Radar sensor bracket", "Radar Sensor"),
            ("Four wheel alignment", "Alignment"),
            ("Repl LT tie rod end", "Steering"),
            ("Refinish LT quarter panel", "Quarter Panel"),
        ],
    )
    def test_categories(self, line, expected):
        assert classify_repair(line) == expected

    def test_specific_rule_beats_generic(self):
        """Bumper overhaul wins over the generic front-bumper rule."""
        assert classify_repair("O/H front bumper") == "Bumper Overhaul"

    def test_unclassified_line(self):
        assert classify_repair("Hazardous waste disposal") is None

    def test_rule_table_is_ordered_list(self):
        assert REPAIR_RULES[0].repair_type == "Bumper Overhaul"
        assert REPAIR_RULES[-1].repair_type == "Trunk/Decklid"


class TestCleanRepairDescription:
    """Readable descriptions from raw estimate lines."""

    def test_component_with_operation(self):
        assert clean_repair_description("6Repl Lower Grille622546LY0A1603.82Incl.") == "Lower Grille - Replace"

    def test_section_header(self):
        assert clean_repair_description("1FRONT BUMPER & GRILLE") == "FRONT BUMPER & GRILLE"

    def test_r_and_i(self):
        assert clean_repair_description("R&I Front Bumper Cover") == "Front Bumper Cover - R&I"

    def test_unknown_component_strips_noise(self):
        assert clean_repair_description("3 Repl Rain sensor 4538201234 12.50 2 ea") == "Rain Sensor - Replace"

    def test_quality_code_only(self):
        assert clean_repair_description("A/M 1234567") == "Part (A/M)"

    def test_detect_operation(self):
        assert detect_operation("2 Rpr Bumper") == "Repair"
        assert detect_operation("Blend Hood") == "Refinish"
        assert detect_operation("Bumper cover") is None


class TestDetectRepairs:
    """End-to-end detection over estimate text."""

    def test_detects_in_estimate_order(self):
        text = "Estimate header\n2 * Rpr Bumper cover\n5 Repl Windshield\nShop supplies"
        repairs = detect_repairs(text)
        assert [(r.line_number, r.repair_type) for r in repairs] == [
            (2, "Bumper Repair"),
            (5, "Windshield"),
        ]
        assert repairs[0].description == "Bumper Cover"

    def test_address_line_never_detected(self):
        """A street address is not a repair, even with a bumper-like token."""
        repairs = detect_repairs("123 NW 5th Ave\nLeft fender")
        assert [r.repair_type for r in repairs] == ["Fender"]
        assert repairs[0].line_number == 1
