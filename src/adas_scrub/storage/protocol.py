"""Storage protocols for vehicle rule data and reports.

The scrub core only depends on these interfaces. File-backed
implementations live next to them; a database-backed provider can replace
them without touching the engine.
"""

from typing import List, Optional, Protocol, runtime_checkable

from adas_scrub.scrub.calibration_matcher import VehicleRuleSet

from .models import ReportRecord


@runtime_checkable
class VehicleRuleProvider(Protocol):
    """Source of OEM vehicle rule sets."""

    def get_vehicle(self, year: int, make: str, model: str) -> Optional[VehicleRuleSet]:
        """Resolve the single rule set for a vehicle.

        Returns:
            Exact model match, else the make's "All Models" entry, else None.
        """
        ...

    def list_vehicles_for_year(self, year: int) -> List[VehicleRuleSet]:
        """List all rule sets whose year range contains ``year``.

        Returns:
            Candidates in a stable order (make, model, newest range first).
        """
        ...

    def list_vehicles(self) -> List[VehicleRuleSet]:
        """List every rule set the provider knows."""
        ...


@runtime_checkable
class ReportStore(Protocol):
    """Persistence for report records."""

    def get_report(self, report_id: str) -> Optional[ReportRecord]:
        """Load a report, or None if it does not exist."""
        ...

    def save_report(self, report: ReportRecord) -> None:
        """Create or fully replace a report."""
        ...

    def update_calibrations(self, report_id: str, calibrations: str) -> None:
        """Replace a report's serialized scrub result."""
        ...

    def list_reports(self) -> List[ReportRecord]:
        """List all reports, ordered by id."""
        ...
