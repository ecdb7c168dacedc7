"""Estimate scrub: which ADAS calibrations a collision repair triggers.

This module turns free-form repair estimate text into calibration
recommendations using vehicle-specific OEM rule data.

Architecture:
    estimate text -> Normalizer -> Repair Detector -> Calibration Matcher
        -> Inference merge -> [Overrides] -> Grouping -> Completeness
                                                  |
                                                  v
                                          EstimateAnalysis
"""

from adas_scrub.scrub.schemas import (
    AdasPartDetection,
    AnalysisConfidence,
    CalibrationMatch,
    CompletenessAssessment,
    CompletenessCheck,
    DetectedRepair,
    EstimateAnalysis,
    EstimateFormat,
    EstimateMetadata,
    GroupedCalibration,
    ManualAddOperation,
    ManualRemoveOperation,
    RescrubSummary,
    ScrubLine,
    ScrubResult,
    VehicleSummary,
)
from adas_scrub.scrub.text_normalizer import EstimateLine, normalize_estimate
from adas_scrub.scrub.repair_detector import clean_repair_description, detect_repairs
from adas_scrub.scrub.calibration_matcher import (
    CalibrationMatcher,
    VehicleRuleSet,
    normalize_make,
    resolve_vehicle,
)
from adas_scrub.scrub.grouping import group_calibrations
from adas_scrub.scrub.overrides import apply_overrides
from adas_scrub.scrub.completeness import (
    SubmissionNotReadyError,
    WorkflowStatus,
    assess_completeness,
    guard_status_transition,
)
from adas_scrub.scrub.engine import RescrubOutcome, ScrubEngine, ScrubError

__all__ = [
    "AdasPartDetection",
    "AnalysisConfidence",
    "CalibrationMatch",
    "CalibrationMatcher",
    "CompletenessAssessment",
    "CompletenessCheck",
    "DetectedRepair",
    "EstimateAnalysis",
    "EstimateFormat",
    "EstimateLine",
    "EstimateMetadata",
    "GroupedCalibration",
    "ManualAddOperation",
    "ManualRemoveOperation",
    "RescrubOutcome",
    "RescrubSummary",
    "ScrubEngine",
    "ScrubError",
    "ScrubLine",
    "ScrubResult",
    "SubmissionNotReadyError",
    "VehicleRuleSet",
    "VehicleSummary",
    "WorkflowStatus",
    "apply_overrides",
    "assess_completeness",
    "clean_repair_description",
    "detect_repairs",
    "group_calibrations",
    "guard_status_transition",
    "normalize_estimate",
    "normalize_make",
    "resolve_vehicle",
]
