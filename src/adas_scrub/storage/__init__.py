"""Storage layer for OEM vehicle rules and reports.

Usage:
    from adas_scrub.storage import FileVehicleRuleProvider, FileReportStore

    provider = FileVehicleRuleProvider(workspace / "vehicles")
    vehicle = provider.get_vehicle(2022, "Mercedes Benz", "C-Class")

    store = FileReportStore(workspace / "reports")
    report = store.get_report("r-1001")
"""

from adas_scrub.scrub.serialization import dump_scrub_result, load_scrub_result

from .models import ReportRecord
from .protocol import ReportStore, VehicleRuleProvider
from .reports import FileReportStore
from .vehicle_rules import FileVehicleRuleProvider

__all__ = [
    "FileReportStore",
    "FileVehicleRuleProvider",
    "ReportRecord",
    "ReportStore",
    "VehicleRuleProvider",
    "dump_scrub_result",
    "load_scrub_result",
]
