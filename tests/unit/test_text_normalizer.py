"""Tests for estimate line splitting, supplier filtering and line numbers."""

import pytest

from adas_scrub.scrub.line_numbers import extract_estimate_line_number, resolve_line_number
from adas_scrub.scrub.text_normalizer import (
    build_line_text_index,
    is_supplier_address_line,
    normalize_estimate,
    split_estimate_lines,
)


class TestSplitEstimateLines:
    """Tests for raw text splitting."""

    def test_trims_and_drops_blank_lines(self):
        text = "  1 FRONT BUMPER  \r\n\n   \n2 * Rpr Bumper cover\n"
        assert split_estimate_lines(text) == ["1 FRONT BUMPER", "2 * Rpr Bumper cover"]

    def test_empty_text(self):
        assert split_estimate_lines("") == []
        assert normalize_estimate("") == []


class TestSupplierAddressLines:
    """Supplier/vendor boilerplate is recognized and dropped."""

    @pytest.mark.parametrize(
        "line",
        [
            "123 NW 5th Ave",
            "4500 SE 82nd Ave",
            "(503) 555-0147 Parts Dept",
            "Portland, OR 97201",
            "A/M CAPA 12 NW Industrial",
        ],
    )
    def test_supplier_lines(self, line):
        assert is_supplier_address_line(line)

    @pytest.mark.parametrize(
        "line",
        [
            "2 * Rpr Bumper cover",
            "6Repl Lower Grille622546LY0A1603.82Incl.",
            "1 FRONT BUMPER",
            "Four wheel alignment",
        ],
    )
    def test_repair_lines_survive(self, line):
        assert not is_supplier_address_line(line)

    def test_address_line_excluded_from_sequence(self):
        """Address lines vanish and positions count surviving lines only."""
        lines = normalize_estimate("Rear door shell\n123 NW 5th Ave\nLeft fender")
        assert [line.text for line in lines] == ["Rear door shell", "Left fender"]
        assert [line.position for line in lines] == [1, 2]
        assert [line.line_number for line in lines] == [1, 2]


class TestLineNumbers:
    """Tests for estimate-native line number recovery."""

    @pytest.mark.parametrize(
        "line,expected",
        [
            ("2 * Rpr Bumper cover", 2),
            ("6 O/H bumper assy", 6),
            ("14 ** Repl Windshield", 14),
            ("3 R&I Grille", 3),
            ("1 FRONT BUMPER", 1),
            ("12 Blend Hood", 12),
        ],
    )
    def test_extracts_native_number(self, line, expected):
        assert extract_estimate_line_number(line) == expected

    @pytest.mark.parametrize(
        "line",
        ["Rpr Bumper cover", "2022 MERCEDES-BENZ C-CLASS", "3 wheel alignment", "1234 Repl Hood"],
    )
    def test_no_native_number(self, line):
        assert extract_estimate_line_number(line) is None

    def test_fallback_to_position(self):
        assert resolve_line_number("Check tire pressure", 7) == 7
        assert resolve_line_number("2 * Rpr Bumper cover", 7) == 2

    def test_normalized_lines_carry_native_numbers(self):
        lines = normalize_estimate("Header text\n2 * Rpr Bumper cover\nNote")
        assert [line.line_number for line in lines] == [1, 2, 3]
        lines = normalize_estimate("Header text\n5 Repl Windshield\nNote")
        assert [line.line_number for line in lines] == [1, 5, 3]


class TestLineTextIndex:
    """Tests for the line number to text index."""

    def test_first_occurrence_wins(self):
        lines = normalize_estimate("2 Repl Hood\nFender\n2 Repl Grille")
        index = build_line_text_index(lines)
        assert index[2] == "2 Repl Hood"
