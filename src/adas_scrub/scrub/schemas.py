"""Pydantic schemas for estimate scrub results.

These schemas define the stored and returned format of a scrub: which
estimate lines triggered which ADAS calibrations, how those matches group
into recommended operations, and how complete a report is for submission.

Field names are snake_case in Python and camelCase on the wire, matching the
serialized representation persisted on report records.
"""

import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

_ALNUM = re.compile(r"[A-Za-z0-9]")


def _has_alnum(value: Optional[str]) -> bool:
    return bool(value) and _ALNUM.search(value) is not None


class _WireModel(BaseModel):
    """Base model accepting both Python names and camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)


class CalibrationMatch(_WireModel):
    """A single ADAS system triggered by an estimate line."""

    system_name: str = Field(..., alias="systemName", description="ADAS system name")
    calibration_type: Optional[str] = Field(
        None, alias="calibrationType", description="Calibration type from the OEM table"
    )
    reason: str = Field(..., description="Why this line triggers the calibration")
    matched_keyword: str = Field(
        ..., alias="matchedKeyword", description="Keyword (or inference tag) that matched"
    )
    repair_operation: str = Field(
        ..., alias="repairOperation", description="Repair operation from the rule table"
    )

    # Optional procedure metadata carried over from the mapping
    procedure_type: Optional[str] = Field(None, alias="procedureType")
    procedure_name: Optional[str] = Field(None, alias="procedureName")
    location: Optional[str] = Field(None)
    tools_required: Optional[List[str]] = Field(None, alias="toolsRequired")


class ScrubLine(_WireModel):
    """One estimate line with the calibrations it triggers."""

    line_number: int = Field(
        ..., alias="lineNumber", description="Estimate-native line number, else position"
    )
    description: str = Field(..., description="Cleaned human-readable description")
    calibration_matches: List[CalibrationMatch] = Field(
        default_factory=list, alias="calibrationMatches"
    )


class ScrubResult(_WireModel):
    """Ordered sequence of scrubbed lines (the persisted representation)."""

    lines: List[ScrubLine] = Field(default_factory=list)

    def match_count(self) -> int:
        """Total number of calibration matches across all lines."""
        return sum(len(line.calibration_matches) for line in self.lines)


class DetectedRepair(_WireModel):
    """A repair operation category detected on an estimate line."""

    line_number: int = Field(..., alias="lineNumber")
    description: str
    repair_type: str = Field(..., alias="repairType")


class AdasPartDetection(_WireModel):
    """An ADAS component mentioned in the estimate (e.g. a radar sensor part)."""

    system: str = Field(..., description="ADAS system key, e.g. 'frontRadar'")
    description: str = Field(..., description="Human-readable system description")
    line_numbers: List[int] = Field(default_factory=list, alias="lineNumbers")


class GroupedCalibration(_WireModel):
    """Calibration operation aggregated across all trigger lines."""

    system_name: str = Field(..., alias="systemName", description="Canonical system label")
    calibration_type: str = Field(..., alias="calibrationType")
    reason: str
    repair_operation: str = Field(..., alias="repairOperation")
    matched_keywords: List[str] = Field(default_factory=list, alias="matchedKeywords")
    trigger_lines: List[int] = Field(default_factory=list, alias="triggerLines")
    trigger_descriptions: List[str] = Field(default_factory=list, alias="triggerDescriptions")
    procedure_type: Optional[str] = Field(
        None, alias="procedureType", description="Strictest OEM procedure type across matches"
    )


class ManualAddOperation(_WireModel):
    """Reviewer instruction to add a calibration to a line."""

    line_number: Optional[float] = Field(None, alias="lineNumber")
    system_name: Optional[str] = Field(None, alias="systemName")
    calibration_type: Optional[str] = Field(None, alias="calibrationType")
    reason: Optional[str] = None
    repair_operation: Optional[str] = Field(None, alias="repairOperation")
    matched_keyword: Optional[str] = Field(None, alias="matchedKeyword")
    description: Optional[str] = None


class ManualRemoveOperation(_WireModel):
    """Reviewer instruction to remove matching calibrations."""

    repair_operation: Optional[str] = Field(None, alias="repairOperation")
    system_name: Optional[str] = Field(None, alias="systemName")
    line_number: Optional[int] = Field(None, alias="lineNumber")

    def has_criteria(self) -> bool:
        """True when at least one filter field is usable.

        Names that normalize to nothing (blank, punctuation only) do not
        count; as substrings they would select every match.
        """
        return (
            _has_alnum(self.repair_operation)
            or _has_alnum(self.system_name)
            or self.line_number is not None
        )


class EstimateFormat(str, Enum):
    """Estimating system that produced the estimate text."""

    CCC = "ccc"
    MITCHELL = "mitchell"
    AUDATEX = "audatex"
    GENERIC = "generic"


class EstimateMetadata(_WireModel):
    """Identifiers and header details pulled from estimate text."""

    vin: Optional[str] = None
    ro_number: Optional[str] = Field(None, alias="roNumber")
    po_number: Optional[str] = Field(None, alias="poNumber")
    workfile_id: Optional[str] = Field(None, alias="workfileId")
    claim_number: Optional[str] = Field(None, alias="claimNumber")
    insurance_company: Optional[str] = Field(None, alias="insuranceCompany")
    shop_name: Optional[str] = Field(None, alias="shopName")
    estimate_date: Optional[str] = Field(None, alias="estimateDate")
    loss_date: Optional[str] = Field(None, alias="lossDate")
    estimate_format: EstimateFormat = Field(EstimateFormat.GENERIC, alias="estimateFormat")


class CompletenessCheck(_WireModel):
    """A single weighted readiness check."""

    id: str
    label: str
    weight: int
    passed: bool


class CompletenessAssessment(_WireModel):
    """Weighted readiness score gating submission."""

    score: int = Field(..., ge=0, le=100)
    ready_for_submission: bool = Field(..., alias="readyForSubmission")
    missing: List[str] = Field(default_factory=list)
    checks: List[CompletenessCheck] = Field(default_factory=list)
    trigger_line_count: int = Field(0, alias="triggerLineCount")


class VehicleSummary(_WireModel):
    """Resolved vehicle rule set, without its rule tables."""

    year_start: int = Field(..., alias="yearStart")
    year_end: int = Field(..., alias="yearEnd")
    make: str
    model: str
    source_provider: Optional[str] = Field(None, alias="sourceProvider")
    source_url: Optional[str] = Field(None, alias="sourceUrl")


class AnalysisConfidence(_WireModel):
    """Heuristic confidence in the overall analysis."""

    score: int
    label: str
    reasons: List[str] = Field(default_factory=list)


class RescrubSummary(_WireModel):
    """What a re-scrub changed on the stored result."""

    changed: bool
    inferred_merged_count: int = Field(0, alias="inferredMergedCount")
    removed_match_count: int = Field(0, alias="removedMatchCount")
    added_match_count: int = Field(0, alias="addedMatchCount")


class EstimateAnalysis(_WireModel):
    """Complete result of scrubbing one estimate."""

    results: List[ScrubLine] = Field(default_factory=list)
    grouped_calibrations: List[GroupedCalibration] = Field(
        default_factory=list, alias="groupedCalibrations"
    )
    detected_repairs: List[DetectedRepair] = Field(default_factory=list, alias="detectedRepairs")
    adas_parts_in_estimate: List[AdasPartDetection] = Field(
        default_factory=list, alias="adasPartsInEstimate"
    )
    vehicle: Optional[VehicleSummary] = None
    estimate_metadata: EstimateMetadata = Field(
        default_factory=EstimateMetadata, alias="estimateMetadata"
    )
    used_inference_fallback: bool = Field(False, alias="usedInferenceFallback")
    analysis_confidence: Optional[AnalysisConfidence] = Field(None, alias="analysisConfidence")
    completeness: Optional[CompletenessAssessment] = None
