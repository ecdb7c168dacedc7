"""File-backed OEM vehicle rule provider.

Reads OEM rule documents from a directory (default
``{workspace}/vehicles``). Each ``*.json`` / ``*.yaml`` file holds one rule
document or a list of them, in the layout:

    {"vehicle": {"year_start": 2019, "year_end": 2024, "make": "Toyota", "model": "Camry"},
     "source": {"provider": "...", "url": "...", "date_extracted": "..."},
     "adas_systems": [{"system_name": "...", "calibration_type": "..."}],
     "repair_to_calibration_map": [{"repair_operation": "...", "repair_keywords": [...],
                                    "triggers_calibration": [...]}]}
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional

import yaml

from adas_scrub.scrub.calibration_matcher import VehicleRuleSet, normalize_make, resolve_vehicle

logger = logging.getLogger(__name__)

RULE_FILE_PATTERNS = ("*.json", "*.yaml", "*.yml")


def _load_documents(path: Path) -> List[Any]:
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix == ".json":
            data = json.load(f)
        else:
            data = yaml.safe_load(f)
    if data is None:
        return []
    return data if isinstance(data, list) else [data]


def _sort_key(vehicle: VehicleRuleSet):
    return (normalize_make(vehicle.make), vehicle.model.lower(), -vehicle.year_start, vehicle.year_end)


class FileVehicleRuleProvider:
    """Vehicle rule provider over a directory of OEM rule files.

    Files are parsed once, on first access. Unreadable files and malformed
    documents are skipped with a warning.
    """

    def __init__(self, rules_dir: Path):
        self.rules_dir = Path(rules_dir)
        self._vehicles: Optional[List[VehicleRuleSet]] = None

    @classmethod
    def from_vehicles(cls, vehicles: Iterable[VehicleRuleSet]) -> "FileVehicleRuleProvider":
        """Build a provider over in-memory rule sets (no directory)."""
        provider = cls(Path("."))
        provider._vehicles = sorted(vehicles, key=_sort_key)
        return provider

    def _load(self) -> List[VehicleRuleSet]:
        if self._vehicles is not None:
            return self._vehicles

        vehicles: List[VehicleRuleSet] = []
        if not self.rules_dir.is_dir():
            logger.warning(f"Vehicle rules directory not found: {self.rules_dir}")
        else:
            paths = sorted(p for pattern in RULE_FILE_PATTERNS for p in self.rules_dir.glob(pattern))
            for path in paths:
                try:
                    documents = _load_documents(path)
                except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
                    logger.warning(f"Skipping unreadable rule file {path.name}: {e}")
                    continue
                for index, document in enumerate(documents):
                    try:
                        vehicles.append(VehicleRuleSet.from_dict(document))
                    except (KeyError, TypeError, ValueError) as e:
                        logger.warning(f"Skipping malformed rule document {path.name}[{index}]: {e!r}")

            logger.info(f"Loaded {len(vehicles)} vehicle rule sets from {self.rules_dir}")

        self._vehicles = sorted(vehicles, key=_sort_key)
        return self._vehicles

    def list_vehicles(self) -> List[VehicleRuleSet]:
        return list(self._load())

    def list_vehicles_for_year(self, year: int) -> List[VehicleRuleSet]:
        return [v for v in self._load() if v.covers_year(year)]

    def get_vehicle(self, year: int, make: str, model: str) -> Optional[VehicleRuleSet]:
        vehicle = resolve_vehicle(self.list_vehicles_for_year(year), year, make, model)
        if vehicle is None:
            logger.info(f"No OEM rule set for {year} {make} {model}")
        return vehicle
