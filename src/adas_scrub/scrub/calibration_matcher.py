"""Vehicle rule lookup and keyword-to-calibration matching.

The calibration matcher is the precise pass of the scrub: it resolves the
vehicle's OEM rule set and tests each estimate line against that vehicle's
repair-to-calibration mapping table. A keyword hit adds every ADAS system
listed for the mapping.

Vehicle resolution:
1. Normalize make (separator, case and alias variants collapse to one key)
2. Exact model match (case-insensitive) within the inclusive year range
3. Otherwise the make's "All Models" entry
4. Otherwise no vehicle (not an error: unmapped vehicles are expected)
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from adas_scrub.scrub.repair_detector import clean_repair_description, detect_repairs
from adas_scrub.scrub.schemas import CalibrationMatch, DetectedRepair, ScrubLine, VehicleSummary
from adas_scrub.scrub.text_normalizer import EstimateLine, normalize_estimate

logger = logging.getLogger(__name__)

ALL_MODELS = "all models"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")

# Compact make spellings -> canonical compact key
MAKE_ALIASES: Dict[str, str] = {
    "mercedes": "mercedesbenz",
    "merc": "mercedesbenz",
    "benz": "mercedesbenz",
    "mb": "mercedesbenz",
    "mbusa": "mercedesbenz",
    "chevy": "chevrolet",
    "chev": "chevrolet",
    "vw": "volkswagen",
    "volks": "volkswagen",
    "lr": "landrover",
    "toyo": "toyota",
    "niss": "nissan",
    "infi": "infiniti",
    "hyun": "hyundai",
    "caddy": "cadillac",
}


def normalize_make(make: Optional[str]) -> str:
    """Normalize a vehicle make to a comparison key.

    "Mercedes Benz", "Mercedes-Benz", "MERCEDES" and "MB" all collapse to
    the same key.
    """
    compact = _NON_ALNUM.sub("", (make or "").lower())
    if compact.startswith("mercedes"):
        return "mercedesbenz"
    return MAKE_ALIASES.get(compact, compact)


def _normalize_model(model: Optional[str]) -> str:
    return " ".join((model or "").lower().split())


@dataclass
class AdasSystem:
    """An ADAS system installed on a vehicle."""

    system_name: str
    calibration_type: Optional[str] = None
    oem_name: Optional[str] = None
    location: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AdasSystem":
        return cls(
            system_name=data["system_name"],
            calibration_type=data.get("calibration_type"),
            oem_name=data.get("oem_name"),
            location=data.get("location"),
        )


@dataclass
class RepairCalibrationMapping:
    """A repair operation, its keywords, and the systems it triggers."""

    repair_operation: str
    keywords: List[str]
    triggered_systems: List[str]
    procedure_type: Optional[str] = None
    procedure_name: Optional[str] = None
    location: Optional[str] = None
    tools_required: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepairCalibrationMapping":
        tools = data.get("tools_required")
        return cls(
            repair_operation=data["repair_operation"],
            keywords=list(data.get("repair_keywords") or data.get("keywords") or []),
            triggered_systems=list(
                data.get("triggers_calibration") or data.get("triggered_systems") or []
            ),
            procedure_type=data.get("procedure_type"),
            procedure_name=data.get("procedure_name"),
            location=data.get("location"),
            tools_required=list(tools) if isinstance(tools, list) else None,
        )


@dataclass
class VehicleRuleSet:
    """OEM rule data for one make/model/year range."""

    make: str
    model: str
    year_start: int
    year_end: int
    adas_systems: List[AdasSystem] = field(default_factory=list)
    mappings: List[RepairCalibrationMapping] = field(default_factory=list)
    source_provider: Optional[str] = None
    source_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VehicleRuleSet":
        """Create a rule set from an OEM data document.

        Expects the ``{vehicle, source, adas_systems,
        repair_to_calibration_map}`` layout used by the OEM data files.
        """
        vehicle = data["vehicle"]
        source = data.get("source") or {}
        return cls(
            make=vehicle["make"],
            model=vehicle["model"],
            year_start=int(vehicle["year_start"]),
            year_end=int(vehicle["year_end"]),
            adas_systems=[AdasSystem.from_dict(s) for s in data.get("adas_systems", [])],
            mappings=[
                RepairCalibrationMapping.from_dict(m)
                for m in data.get("repair_to_calibration_map", [])
            ],
            source_provider=source.get("provider"),
            source_url=source.get("url"),
        )

    def covers_year(self, year: int) -> bool:
        return self.year_start <= year <= self.year_end

    def is_all_models(self) -> bool:
        return _normalize_model(self.model) == ALL_MODELS

    def calibration_type_for(self, system_name: str) -> Optional[str]:
        """Look up a system's calibration type (None if unknown)."""
        for system in self.adas_systems:
            if system.system_name == system_name:
                return system.calibration_type or None
        lowered = system_name.lower()
        for system in self.adas_systems:
            if system.system_name.lower() == lowered:
                return system.calibration_type or None
        return None

    def summary(self) -> VehicleSummary:
        return VehicleSummary(
            year_start=self.year_start,
            year_end=self.year_end,
            make=self.make,
            model=self.model,
            source_provider=self.source_provider,
            source_url=self.source_url,
        )


def resolve_vehicle(
    candidates: Iterable[VehicleRuleSet],
    year: int,
    make: str,
    model: str,
) -> Optional[VehicleRuleSet]:
    """Pick the single rule set for a vehicle.

    Exact model beats "All Models"; among equals the first candidate wins,
    so providers must return candidates in a stable order.
    """
    make_key = normalize_make(make)
    model_key = _normalize_model(model)

    same_make = [
        v for v in candidates if v.covers_year(year) and normalize_make(v.make) == make_key
    ]

    for vehicle in same_make:
        if _normalize_model(vehicle.model) == model_key:
            return vehicle

    for vehicle in same_make:
        if vehicle.is_all_models():
            logger.info(f"No exact rule set for {year} {make} {model}, using All Models")
            return vehicle

    return None


@dataclass
class ScrubOutcome:
    """Precise (rule-table) scrub of one estimate."""

    results: List[ScrubLine]
    vehicle: Optional[VehicleRuleSet]
    detected_repairs: List[DetectedRepair]
    lines: List[EstimateLine] = field(default_factory=list)

    @property
    def vehicle_summary(self) -> Optional[VehicleSummary]:
        return self.vehicle.summary() if self.vehicle else None


class CalibrationMatcher:
    """Keyword-based calibration matching against a vehicle's rule table.

    Args:
        provider: Vehicle rule source (``get_vehicle(year, make, model)``);
            only needed for ``scrub``.
    """

    def __init__(self, provider=None):
        self.provider = provider

    def scrub(self, estimate_text: str, year: int, make: str, model: str) -> ScrubOutcome:
        """Resolve the vehicle and match every estimate line.

        Unmapped vehicles produce empty results, not an error; repairs are
        detected either way so inference can still run.
        """
        lines = normalize_estimate(estimate_text)
        detected = detect_repairs(lines)

        vehicle = self.provider.get_vehicle(year, make, model) if self.provider else None
        if vehicle is None:
            logger.info(f"Vehicle {year} {make} {model} is not mapped; no rule-table matches")

        return ScrubOutcome(
            results=self.match_lines(lines, vehicle),
            vehicle=vehicle,
            detected_repairs=detected,
            lines=lines,
        )

    def match_line(self, line: str, vehicle: VehicleRuleSet) -> List[CalibrationMatch]:
        """Return calibration matches for a single line.

        Matches are unique per (system name, matched keyword).
        """
        lowered = line.lower()
        matches: List[CalibrationMatch] = []
        seen = set()

        for mapping in vehicle.mappings:
            for keyword in mapping.keywords:
                if not keyword or keyword.lower() not in lowered:
                    continue
                for system_name in mapping.triggered_systems:
                    if (system_name, keyword) in seen:
                        continue
                    seen.add((system_name, keyword))
                    matches.append(
                        CalibrationMatch(
                            system_name=system_name,
                            calibration_type=vehicle.calibration_type_for(system_name),
                            reason=f'Repair operation "{mapping.repair_operation}" triggers calibration',
                            matched_keyword=keyword,
                            repair_operation=mapping.repair_operation,
                            procedure_type=mapping.procedure_type,
                            procedure_name=mapping.procedure_name,
                            location=mapping.location,
                            tools_required=mapping.tools_required,
                        )
                    )
        return matches

    def match_lines(
        self,
        lines: Sequence[EstimateLine],
        vehicle: Optional[VehicleRuleSet],
    ) -> List[ScrubLine]:
        """Match every line against the vehicle's mapping table.

        Args:
            lines: Normalized estimate lines (supplier lines already removed).
            vehicle: Resolved rule set, or None for unmapped vehicles.

        Returns:
            Lines with at least one calibration match, in estimate order.
        """
        if vehicle is None:
            return []

        results: List[ScrubLine] = []
        for line in lines:
            matches = self.match_line(line.text, vehicle)
            if not matches:
                continue
            logger.debug(
                f"Line {line.line_number}: {len(matches)} calibration matches "
                f"({', '.join(sorted({m.system_name for m in matches}))})"
            )
            results.append(
                ScrubLine(
                    line_number=line.line_number,
                    description=clean_repair_description(line.text),
                    calibration_matches=matches,
                )
            )
        return results
