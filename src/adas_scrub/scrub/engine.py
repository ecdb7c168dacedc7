"""Scrub engine: orchestrates the full estimate-to-calibration pipeline.

Pipeline:
    normalize -> detect repairs -> rule-table match (precise)
        -> inferred merge (only operations the precise pass missed)
        -> steering line-mention merge
        -> [rescrub only] manual removes, then adds
        -> group -> completeness + confidence

The precise and inferred passes stay separate so that rule-table matches
always take precedence over heuristics.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from adas_scrub.config.scrub_config import ScrubConfig
from adas_scrub.scrub.adas_parts import detect_adas_parts
from adas_scrub.scrub.calibration_matcher import CalibrationMatcher, ScrubOutcome
from adas_scrub.scrub.completeness import assess_completeness
from adas_scrub.scrub.estimate_metadata import extract_estimate_metadata
from adas_scrub.scrub.grouping import group_calibrations
from adas_scrub.scrub.inference import (
    DEFAULT_INFERENCE_RULES,
    REAR_ZONE_RULE,
    infer_calibrations,
    infer_steering_from_line_mentions,
    merge_missing_inferred,
)
from adas_scrub.scrub.overrides import apply_overrides
from adas_scrub.scrub.schemas import (
    AdasPartDetection,
    AnalysisConfidence,
    CompletenessAssessment,
    EstimateAnalysis,
    ManualAddOperation,
    ManualRemoveOperation,
    RescrubSummary,
    ScrubLine,
)
from adas_scrub.scrub.serialization import dump_scrub_result, load_scrub_result
from adas_scrub.scrub.text_normalizer import build_line_text_index

if TYPE_CHECKING:
    from adas_scrub.storage.protocol import VehicleRuleProvider

logger = logging.getLogger(__name__)

MIN_CONFIDENCE = 45
MAX_CONFIDENCE = 96
RESCRUB_VEHICLE_CONFIDENCE = "medium"


class ScrubError(Exception):
    """Raised when an estimate cannot be scrubbed (e.g. no vehicle identity)."""

    pass


def build_analysis_confidence(
    has_vehicle: bool,
    vehicle_confidence: str,
    result_count: int,
    detected_repair_count: int,
    adas_parts_count: int,
    has_vin: bool,
    used_inference_fallback: bool,
) -> AnalysisConfidence:
    """Heuristic confidence in a scrub, clamped to 45-96.

    Args:
        has_vehicle: An OEM rule set was resolved for the vehicle.
        vehicle_confidence: "high", "medium" or "low" certainty about the
            vehicle identity itself.
        result_count: Number of grouped calibration recommendations.
        detected_repair_count: Number of detected repair lines.
        adas_parts_count: Number of ADAS systems named in the estimate.
        has_vin: A VIN was found.
        used_inference_fallback: Results came only from inference.

    Returns:
        AnalysisConfidence with label high (>=85), medium (>=70) or low.
    """
    reasons: List[str] = []
    score = 52

    if has_vehicle:
        score += 20
        reasons.append("Vehicle mapped to OEM-backed rule set.")
    else:
        reasons.append("No exact vehicle mapping found; falling back to generic detection.")

    if has_vin:
        score += 8
        reasons.append("VIN detected and used for vehicle confidence.")

    if vehicle_confidence == "high":
        score += 12
    elif vehicle_confidence == "medium":
        score += 7
    else:
        score += 2
    reasons.append(f"Vehicle identification confidence is {vehicle_confidence}.")

    if detected_repair_count >= 5:
        score += 10
        reasons.append("Sufficient repair-line evidence was detected.")
    elif detected_repair_count >= 2:
        score += 5
        reasons.append("Moderate repair-line evidence was detected.")
    else:
        reasons.append("Limited repair-line evidence was detected.")

    if result_count > 0:
        score += 8
        reasons.append("Calibration recommendations matched to known repair triggers.")

    if adas_parts_count > 0:
        score += 6
        reasons.append("ADAS-specific parts were detected in estimate content.")

    if used_inference_fallback:
        score -= 8
        reasons.append("Used inference fallback because direct OEM rule matching found nothing.")

    score = max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, score))
    label = "high" if score >= 85 else "medium" if score >= 70 else "low"
    return AnalysisConfidence(score=score, label=label, reasons=reasons)


@dataclass
class RescrubOutcome:
    """Result of re-scrubbing a stored report."""

    lines: List[ScrubLine]
    serialized: str
    analysis: EstimateAnalysis
    summary: RescrubSummary


class ScrubEngine:
    """Runs scrubs and re-scrubs against a vehicle rule provider.

    Args:
        provider: Source of OEM vehicle rule sets.
        config: Engine policy; defaults apply when None.
    """

    def __init__(self, provider: "VehicleRuleProvider", config: Optional[ScrubConfig] = None):
        self.provider = provider
        self.config = config or ScrubConfig.default()
        self.matcher = CalibrationMatcher(provider)

    def _inference_rules(self):
        rules = list(DEFAULT_INFERENCE_RULES)
        if self.config.inference.rear_zone_blind_spot:
            rules.append(REAR_ZONE_RULE)
        return rules

    def _merge_inferred(
        self,
        estimate_text: str,
        outcome: ScrubOutcome,
        adas_parts: Sequence[AdasPartDetection],
    ) -> Tuple[List[ScrubLine], int]:
        results = list(outcome.results)
        if not self.config.inference.enabled:
            return results, 0

        inferred = infer_calibrations(outcome.detected_repairs, adas_parts, self._inference_rules())
        merged = merge_missing_inferred(results, inferred)
        results, added = merged.lines, merged.added_count

        if self.config.inference.steering_line_mentions:
            mentions = infer_steering_from_line_mentions(
                estimate_text, build_line_text_index(outcome.lines)
            )
            merged = merge_missing_inferred(results, mentions)
            results, added = merged.lines, added + merged.added_count

        return results, added

    @staticmethod
    def _check_vehicle(year, make: str, model: str) -> None:
        if not year or not (make or "").strip() or not (model or "").strip():
            raise ScrubError(
                f"Vehicle year, make and model are required (got {year!r} {make!r} {model!r})"
            )

    def _analyze(
        self,
        estimate_text: str,
        year: int,
        make: str,
        model: str,
        infer: bool,
        vehicle_confidence: str,
    ) -> Tuple[EstimateAnalysis, ScrubOutcome, int]:
        self._check_vehicle(year, make, model)

        metadata = extract_estimate_metadata(estimate_text)
        outcome = self.matcher.scrub(estimate_text, year, make, model)
        adas_parts = detect_adas_parts(outcome.lines)

        if infer:
            results, inferred_count = self._merge_inferred(estimate_text, outcome, adas_parts)
        else:
            results, inferred_count = list(outcome.results), 0
        used_fallback = not outcome.results and bool(results)

        grouped = group_calibrations(results, self.config.calibration_types)
        source_url = outcome.vehicle.source_url if outcome.vehicle else None

        analysis = EstimateAnalysis(
            results=results,
            grouped_calibrations=grouped,
            detected_repairs=outcome.detected_repairs,
            adas_parts_in_estimate=adas_parts,
            vehicle=outcome.vehicle_summary,
            estimate_metadata=metadata,
            used_inference_fallback=used_fallback,
            analysis_confidence=build_analysis_confidence(
                has_vehicle=outcome.vehicle is not None,
                vehicle_confidence=vehicle_confidence,
                result_count=len(grouped),
                detected_repair_count=len(outcome.detected_repairs),
                adas_parts_count=len(adas_parts),
                has_vin=bool(metadata.vin),
                used_inference_fallback=used_fallback,
            ),
            completeness=assess_completeness(
                estimate_text, metadata, grouped, source_url, self.config.completeness
            ),
        )
        return analysis, outcome, inferred_count

    def scrub(
        self,
        estimate_text: str,
        year: int,
        make: str,
        model: str,
        infer: bool = True,
        vehicle_confidence: str = "high",
    ) -> EstimateAnalysis:
        """Scrub an estimate for a vehicle.

        Args:
            estimate_text: Raw estimate text.
            year: Vehicle model year.
            make: Vehicle make (any spelling variant).
            model: Vehicle model.
            infer: Merge heuristic calibrations the rule table missed.
            vehicle_confidence: How certain the caller is about the vehicle.

        Returns:
            EstimateAnalysis with results, groups, completeness and confidence.

        Raises:
            ScrubError: If year, make or model is missing.
        """
        analysis, outcome, _ = self._analyze(
            estimate_text, year, make, model, infer, vehicle_confidence
        )
        logger.info(
            f"Scrubbed {year} {make} {model}: {len(outcome.lines)} lines, "
            f"{len(analysis.grouped_calibrations)} calibration operations"
            f"{' (inference fallback)' if analysis.used_inference_fallback else ''}"
        )
        return analysis

    def rescrub(
        self,
        report,
        adds: Sequence[ManualAddOperation] = (),
        removes: Sequence[ManualRemoveOperation] = (),
    ) -> RescrubOutcome:
        """Re-run the scrub for a stored report and apply manual overrides.

        Args:
            report: Stored report (``estimate_text``, ``vehicle_year``,
                ``vehicle_make``, ``vehicle_model``, ``calibrations``).
            adds: Manual add instructions.
            removes: Manual remove instructions.

        Returns:
            RescrubOutcome; ``summary.changed`` is True only when the new
            serialized result differs from the stored one.
        """
        analysis, outcome, inferred_count = self._analyze(
            report.estimate_text,
            report.vehicle_year,
            report.vehicle_make,
            report.vehicle_model,
            infer=True,
            vehicle_confidence=RESCRUB_VEHICLE_CONFIDENCE,
        )

        overridden = apply_overrides(
            analysis.results,
            adds=adds,
            removes=removes,
            line_text_by_number=build_line_text_index(outcome.lines),
        )
        lines = overridden.lines

        serialized = dump_scrub_result(lines)
        changed = serialized != dump_scrub_result(load_scrub_result(report.calibrations))

        if overridden.removed_count or overridden.added_count:
            grouped = group_calibrations(lines, self.config.calibration_types)
            source_url = outcome.vehicle.source_url if outcome.vehicle else None
            analysis = analysis.model_copy(
                update={
                    "results": lines,
                    "grouped_calibrations": grouped,
                    "analysis_confidence": build_analysis_confidence(
                        has_vehicle=outcome.vehicle is not None,
                        vehicle_confidence=RESCRUB_VEHICLE_CONFIDENCE,
                        result_count=len(grouped),
                        detected_repair_count=len(analysis.detected_repairs),
                        adas_parts_count=len(analysis.adas_parts_in_estimate),
                        has_vin=bool(analysis.estimate_metadata.vin),
                        used_inference_fallback=analysis.used_inference_fallback,
                    ),
                    "completeness": assess_completeness(
                        report.estimate_text,
                        analysis.estimate_metadata,
                        grouped,
                        source_url,
                        self.config.completeness,
                    ),
                }
            )

        summary = RescrubSummary(
            changed=changed,
            inferred_merged_count=inferred_count,
            removed_match_count=overridden.removed_count,
            added_match_count=overridden.added_count,
        )
        return RescrubOutcome(lines=lines, serialized=serialized, analysis=analysis, summary=summary)

    def assess_report(self, report) -> CompletenessAssessment:
        """Score the stored (reviewed) calibrations of a report for submission.

        Uses the report's persisted result rather than a fresh scrub, so manual
        overrides count toward readiness.
        """
        lines = load_scrub_result(report.calibrations)
        grouped = group_calibrations(lines, self.config.calibration_types)
        vehicle = self.provider.get_vehicle(
            report.vehicle_year, report.vehicle_make, report.vehicle_model
        )
        return assess_completeness(
            report.estimate_text,
            None,
            grouped,
            vehicle.source_url if vehicle else None,
            self.config.completeness,
        )
