"""Data models for the storage layer."""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class ReportRecord:
    """A stored report: the vehicle, its estimate, and the scrub result.

    ``calibrations`` is the serialized scrub result (see
    ``scrub.serialization``); it is only replaced as a whole.
    """

    report_id: str
    vehicle_year: int
    vehicle_make: str
    vehicle_model: str
    estimate_text: str
    calibrations: str = "[]"
    status: str = "NEW_INTAKE"
    updated_at: Optional[str] = None  # ISO timestamp of the last write

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportRecord":
        return cls(
            report_id=str(data["report_id"]),
            vehicle_year=int(data["vehicle_year"]),
            vehicle_make=data["vehicle_make"],
            vehicle_model=data["vehicle_model"],
            estimate_text=data.get("estimate_text", ""),
            calibrations=data.get("calibrations", "[]"),
            status=data.get("status", "NEW_INTAKE"),
            updated_at=data.get("updated_at"),
        )
