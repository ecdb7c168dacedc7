"""Heuristic calibration inference for estimates the rule table misses.

This pass never runs interleaved with rule-table matching. The engine first
computes precise matches, then merges inferred matches only for operations
the precise pass did not already recommend:

    precise = matcher.match_lines(...)
    inferred = infer_calibrations(detected_repairs, adas_parts)
    merged = merge_missing_inferred(precise, inferred)

so a rule-table match always takes precedence over a heuristic one.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Pattern, Sequence

from adas_scrub.scrub.adas_parts import (
    BLIND_SPOT_MONITOR,
    FRONT_CAMERA,
    FRONT_RADAR,
    PARKING_SENSOR,
    REAR_CAMERA,
    STEERING_ANGLE_SENSOR,
    SURROUND_CAMERA,
)
from adas_scrub.scrub.canonicalizer import (
    BLIND_SPOT_CALIBRATION,
    FORWARD_CAMERA_CALIBRATION,
    FRONT_RADAR_CALIBRATION,
    PARKING_SENSOR_CALIBRATION,
    REAR_CAMERA_CALIBRATION,
    STEERING_ANGLE_RELEARN,
    SURROUND_CAMERA_CALIBRATION,
    match_operation_key,
)
from adas_scrub.scrub.grouping import index_lines_by_number
from adas_scrub.scrub.schemas import (
    AdasPartDetection,
    CalibrationMatch,
    DetectedRepair,
    ScrubLine,
)

logger = logging.getLogger(__name__)

STEERING_LINE_MENTION_KEYWORD = "steering-line-mention"

_STEERING_LINE_MENTION = re.compile(r"\bSteering[^\n]{0,120}?\bLine\s+(\d{1,3})\b", re.IGNORECASE)


@dataclass(frozen=True)
class InferenceRule:
    """Repair-category pattern and the calibration it implies."""

    pattern: Pattern[str]
    system_name: str
    calibration_type: str
    repair_operation: str
    reason: str


@dataclass(frozen=True)
class PartGuidance:
    """Calibration guidance for an ADAS component named in the estimate."""

    component: str
    system_name: str
    calibration_type: str
    repair_operation: str
    reason: str


STEERING_RULE = InferenceRule(
    pattern=re.compile(r"alignment|suspension|steering"),
    system_name="Steering Angle Sensor",
    calibration_type="Initialization",
    repair_operation=STEERING_ANGLE_RELEARN,
    reason="Alignment or steering work commonly requires steering-angle reset/relearn.",
)

CAMERA_RULE = InferenceRule(
    pattern=re.compile(r"windshield|camera|headlamp"),
    system_name="Forward Camera / LDW-LKA",
    calibration_type="Static + Dynamic",
    repair_operation=FORWARD_CAMERA_CALIBRATION,
    reason="Camera or windshield-area repair commonly requires forward-camera aiming/calibration.",
)

RADAR_RULE = InferenceRule(
    pattern=re.compile(
        r"front bumper|bumper overhaul|bumper repair|bumper r&i|bumper r&r|grille|radar sensor"
    ),
    system_name="Front Radar / ACC-AEB",
    calibration_type="Static or Dynamic",
    repair_operation=FRONT_RADAR_CALIBRATION,
    reason="Front fascia/radar-zone repair commonly requires front-radar calibration.",
)

REAR_ZONE_RULE = InferenceRule(
    pattern=re.compile(r"rear bumper|tailgate|quarter panel|side mirror"),
    system_name="Blind Spot / Rear Cross Traffic",
    calibration_type="Static",
    repair_operation=BLIND_SPOT_CALIBRATION,
    reason="Rear-quarter and mirror-zone work can impact blind-spot and rear-cross-traffic sensors.",
)

DEFAULT_INFERENCE_RULES: List[InferenceRule] = [STEERING_RULE, CAMERA_RULE, RADAR_RULE]

PART_GUIDANCE: Dict[str, PartGuidance] = {
    FRONT_RADAR: PartGuidance(
        component="Front Radar Sensor",
        system_name="Front Radar / ACC-AEB",
        calibration_type="Static or Dynamic",
        repair_operation=FRONT_RADAR_CALIBRATION,
        reason="Front radar component detected in estimate; radar aiming/calibration is typically required after service.",
    ),
    FRONT_CAMERA: PartGuidance(
        component="Forward Camera",
        system_name="Forward Camera / LDW-LKA",
        calibration_type="Static + Dynamic",
        repair_operation=FORWARD_CAMERA_CALIBRATION,
        reason="Forward-facing ADAS camera component detected; camera calibration procedure is typically required.",
    ),
    BLIND_SPOT_MONITOR: PartGuidance(
        component="Blind Spot Radar Sensor",
        system_name="Blind Spot / Rear Cross Traffic",
        calibration_type="Static",
        repair_operation=BLIND_SPOT_CALIBRATION,
        reason="Blind spot radar-related component detected; BSM/RCTA verification and calibration are typically required.",
    ),
    SURROUND_CAMERA: PartGuidance(
        component="Surround View Camera",
        system_name="Surround View / 360 Camera",
        calibration_type="Static",
        repair_operation=SURROUND_CAMERA_CALIBRATION,
        reason="360/surround camera component detected; multi-camera alignment/calibration is typically required.",
    ),
    PARKING_SENSOR: PartGuidance(
        component="Parking Sensor",
        system_name="Parking Assist Sensors",
        calibration_type="Coding / Initialization",
        repair_operation=PARKING_SENSOR_CALIBRATION,
        reason="Parking-assist sensor component detected; sensor initialization/coding and verification are typically required.",
    ),
    STEERING_ANGLE_SENSOR: PartGuidance(
        component="Steering Angle Sensor",
        system_name="Steering Angle Sensor",
        calibration_type="Initialization",
        repair_operation=STEERING_ANGLE_RELEARN,
        reason="Steering-angle related component detected; SAS reset/relearn is typically required after service.",
    ),
    REAR_CAMERA: PartGuidance(
        component="Rear View Camera",
        system_name="Rear View Camera",
        calibration_type="Static",
        repair_operation=REAR_CAMERA_CALIBRATION,
        reason="Rear camera component detected; calibration/aim verification is typically required.",
    ),
}


def _guidance_for(part: AdasPartDetection) -> PartGuidance:
    guidance = PART_GUIDANCE.get(part.system)
    if guidance is not None:
        return guidance
    return PartGuidance(
        component=part.description,
        system_name=part.description,
        calibration_type="OEM Procedure",
        repair_operation=f"{part.description} Calibration",
        reason="ADAS-related component detected in estimate; calibration verification is recommended.",
    )


class _LineCollector:
    """Collects inferred matches per line, unique by (system, keyword)."""

    def __init__(self):
        self._lines: Dict[int, ScrubLine] = {}

    def push(self, line_number: int, description: str, match: CalibrationMatch) -> None:
        line = self._lines.get(line_number)
        if line is None:
            self._lines[line_number] = ScrubLine(
                line_number=line_number, description=description, calibration_matches=[match]
            )
            return
        if not any(
            m.system_name == match.system_name and m.matched_keyword == match.matched_keyword
            for m in line.calibration_matches
        ):
            line.calibration_matches.append(match)

    def lines(self) -> List[ScrubLine]:
        return sorted(self._lines.values(), key=lambda line: line.line_number)


def infer_calibrations(
    detected_repairs: Sequence[DetectedRepair],
    adas_parts: Sequence[AdasPartDetection] = (),
    rules: Optional[Sequence[InferenceRule]] = None,
) -> List[ScrubLine]:
    """Infer calibrations from repair categories and ADAS part mentions.

    Args:
        detected_repairs: Output of ``detect_repairs``.
        adas_parts: Output of ``detect_adas_parts``.
        rules: Category rules; defaults to steering, camera and radar.

    Returns:
        Inferred scrub lines sorted by line number. The matched keyword is
        the repair category (or ADAS part key) that triggered the inference.
    """
    rules = DEFAULT_INFERENCE_RULES if rules is None else rules
    collector = _LineCollector()

    for repair in detected_repairs:
        repair_type = repair.repair_type.lower()
        for rule in rules:
            if not rule.pattern.search(repair_type):
                continue
            collector.push(
                repair.line_number,
                repair.description,
                CalibrationMatch(
                    system_name=rule.system_name,
                    calibration_type=rule.calibration_type,
                    reason=rule.reason,
                    matched_keyword=repair.repair_type,
                    repair_operation=rule.repair_operation,
                ),
            )

    for part in adas_parts:
        guidance = _guidance_for(part)
        line_number = part.line_numbers[0] if part.line_numbers else 1
        collector.push(
            line_number,
            guidance.component,
            CalibrationMatch(
                system_name=guidance.system_name,
                calibration_type=guidance.calibration_type,
                reason=guidance.reason,
                matched_keyword=part.system,
                repair_operation=guidance.repair_operation,
            ),
        )

    inferred = collector.lines()
    logger.debug(f"Inferred calibrations on {len(inferred)} lines")
    return inferred


def infer_steering_from_line_mentions(
    estimate_text: str,
    line_text_by_number: Mapping[int, str],
) -> List[ScrubLine]:
    """Find "Steering ... Line N" references in free text.

    Estimate notes often say e.g. "Steering gear replaced, see Line 14";
    each referenced line (1-999) yields one steering-angle relearn match.
    """
    results: List[ScrubLine] = []
    seen = set()

    for hit in _STEERING_LINE_MENTION.finditer(estimate_text or ""):
        line_number = int(hit.group(1))
        if line_number < 1 or line_number > 999 or line_number in seen:
            continue
        seen.add(line_number)
        results.append(
            ScrubLine(
                line_number=line_number,
                description=line_text_by_number.get(line_number) or "Steering operation",
                calibration_matches=[
                    CalibrationMatch(
                        system_name=STEERING_RULE.system_name,
                        calibration_type=STEERING_RULE.calibration_type,
                        reason="Steering-system operation reference indicates steering-angle reset/relearn requirement.",
                        matched_keyword=STEERING_LINE_MENTION_KEYWORD,
                        repair_operation=STEERING_ANGLE_RELEARN,
                    )
                ],
            )
        )
    return results


@dataclass
class MergeOutcome:
    """Result of merging inferred matches into a base result."""

    lines: List[ScrubLine]
    added_count: int


def _by_line_number(lines: Mapping[int, ScrubLine]) -> List[ScrubLine]:
    return sorted(lines.values(), key=lambda line: line.line_number)


def merge_missing_inferred(
    base: Sequence[ScrubLine],
    inferred: Sequence[ScrubLine],
) -> MergeOutcome:
    """Add inferred matches whose operation key the base result lacks.

    An empty base takes the inferred lines as they are. Otherwise inferred
    matches are appended (to an existing line, or a new one) only when their
    canonical operation key is not yet present; the first inferred match
    for a key wins.
    """
    if not base:
        return MergeOutcome(
            lines=[line.model_copy(deep=True) for line in inferred],
            added_count=sum(len(line.calibration_matches) for line in inferred),
        )

    existing_keys = {
        match_operation_key(match) for line in base for match in line.calibration_matches
    }
    merged = index_lines_by_number(base)
    if not inferred:
        return MergeOutcome(lines=_by_line_number(merged), added_count=0)

    added = 0
    for line in inferred:
        for match in line.calibration_matches:
            key = match_operation_key(match)
            if key in existing_keys:
                continue
            existing_keys.add(key)

            target = merged.get(line.line_number)
            if target is None:
                merged[line.line_number] = ScrubLine(
                    line_number=line.line_number,
                    description=line.description,
                    calibration_matches=[match.model_copy()],
                )
            else:
                target.calibration_matches.append(match.model_copy())
            added += 1

    if added:
        logger.info(f"Merged {added} inferred calibration(s) not covered by the rule table")
    return MergeOutcome(lines=_by_line_number(merged), added_count=added)
