"""Shared test data factories for estimate scrub tests.

Centralizes construction of matches, lines and vehicle rule sets so tests
only spell out the fields they care about.
"""

from typing import Any, Dict, List, Optional

from adas_scrub.scrub.calibration_matcher import VehicleRuleSet
from adas_scrub.scrub.schemas import CalibrationMatch, ScrubLine
from adas_scrub.storage import FileVehicleRuleProvider


def make_match(**overrides: Any) -> CalibrationMatch:
    """Create a CalibrationMatch with sensible defaults.

    Default is a front-radar match triggered by a bumper keyword.
    """
    defaults: Dict[str, Any] = dict(
        system_name="Front Radar",
        calibration_type="Static",
        reason='Repair operation "Front Bumper R&R" triggers calibration',
        matched_keyword="bumper",
        repair_operation="Front Bumper R&R",
    )
    defaults.update(overrides)
    return CalibrationMatch(**defaults)


def make_line(
    line_number: int = 1,
    description: str = "Bumper Cover - Repair",
    matches: Optional[List[CalibrationMatch]] = None,
) -> ScrubLine:
    """Create a ScrubLine holding the given matches (one default match if None)."""
    return ScrubLine(
        line_number=line_number,
        description=description,
        calibration_matches=[make_match()] if matches is None else matches,
    )


def make_vehicle_data(
    make: str = "Mercedes-Benz",
    model: str = "C-Class",
    year_start: int = 2019,
    year_end: int = 2023,
    source_url: Optional[str] = "https://www.example.com/oem/adas-position",
    mappings: Optional[List[Dict[str, Any]]] = None,
    systems: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Create an OEM rule document in the on-disk layout."""
    return {
        "vehicle": {
            "make": make,
            "model": model,
            "year_start": year_start,
            "year_end": year_end,
        },
        "source": {"provider": "OEM", "url": source_url},
        "adas_systems": systems if systems is not None else [
            {"system_name": "Front Radar", "calibration_type": "Static"},
            {"system_name": "Forward Camera", "calibration_type": "Static + Dynamic"},
            {"system_name": "Steering Angle Sensor", "calibration_type": "Initialization"},
        ],
        "repair_to_calibration_map": mappings if mappings is not None else [
            {
                "repair_operation": "Front Bumper R&R",
                "repair_keywords": ["bumper"],
                "triggers_calibration": ["Front Radar"],
            },
            {
                "repair_operation": "Windshield Replacement",
                "repair_keywords": ["windshield"],
                "triggers_calibration": ["Forward Camera"],
            },
            {
                "repair_operation": "Wheel Alignment",
                "repair_keywords": ["alignment"],
                "triggers_calibration": ["Steering Angle Sensor"],
            },
        ],
    }


def make_vehicle(**overrides: Any) -> VehicleRuleSet:
    """Create a VehicleRuleSet (see ``make_vehicle_data`` for defaults)."""
    return VehicleRuleSet.from_dict(make_vehicle_data(**overrides))


def make_provider(*vehicles: VehicleRuleSet) -> FileVehicleRuleProvider:
    """Create an in-memory provider (one default C-Class when empty)."""
    return FileVehicleRuleProvider.from_vehicles(vehicles or [make_vehicle()])
