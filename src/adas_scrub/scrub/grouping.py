"""Aggregate per-line calibration matches into recommended operations.

Each match is mapped to the calibration operation it implies (see
``canonicalizer.recommended_operation``); matches sharing that operation's
key collapse into one GroupedCalibration no matter how the rule table or
reviewer phrased them.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from adas_scrub.config.scrub_config import CalibrationTypePolicy
from adas_scrub.scrub.canonicalizer import (
    canonicalize_calibration_type,
    canonicalize_operation_name,
    canonicalize_system,
    calibration_operation_for_system,
    canonicalize_procedure_type,
    merge_calibration_types,
    normalize_for_key,
    pick_higher_priority_procedure_type,
)
from adas_scrub.scrub.schemas import CalibrationMatch, GroupedCalibration, ScrubLine

logger = logging.getLogger(__name__)


def _match_identity(match: CalibrationMatch) -> Tuple[str, str]:
    return normalize_for_key(match.system_name), normalize_for_key(match.matched_keyword)


def index_lines_by_number(lines: Sequence[ScrubLine]) -> Dict[int, ScrubLine]:
    """Copy lines into a dict keyed by line number.

    Lines that share a number (a recovered estimate index next to a
    positional one) collapse into the first, keeping every distinct
    match (same system and keyword counts once).
    """
    indexed: Dict[int, ScrubLine] = {}
    for line in lines:
        target = indexed.get(line.line_number)
        if target is None:
            indexed[line.line_number] = line.model_copy(deep=True)
            continue
        seen = {_match_identity(match) for match in target.calibration_matches}
        for match in line.calibration_matches:
            if _match_identity(match) not in seen:
                seen.add(_match_identity(match))
                target.calibration_matches.append(match.model_copy())
    return indexed


@dataclass
class _GroupAccumulator:
    system_name: str
    repair_operation: str
    reasons: List[str] = field(default_factory=list)
    calibration_types: List[str] = field(default_factory=list)
    matched_keywords: List[str] = field(default_factory=list)
    trigger_lines: List[int] = field(default_factory=list)
    trigger_descriptions: List[str] = field(default_factory=list)
    procedure_type: Optional[str] = None

    def add_keyword(self, keyword: str) -> None:
        key = normalize_for_key(keyword)
        if all(normalize_for_key(k) != key for k in self.matched_keywords):
            self.matched_keywords.append(keyword)

    def add_procedure_type(self, procedure_type: Optional[str]) -> None:
        if not (procedure_type or "").strip():
            return
        canonical = canonicalize_procedure_type(procedure_type)
        if self.procedure_type is None:
            self.procedure_type = canonical
        else:
            self.procedure_type = pick_higher_priority_procedure_type(self.procedure_type, canonical)

    def add_description(self, description: str) -> None:
        key = normalize_for_key(description)
        if all(normalize_for_key(d) != key for d in self.trigger_descriptions):
            self.trigger_descriptions.append(description)

    def build(self, policy: CalibrationTypePolicy) -> GroupedCalibration:
        return GroupedCalibration(
            system_name=self.system_name,
            calibration_type=merge_calibration_types(
                self.calibration_types, separator=policy.separator, order=policy.order
            ),
            reason=self.reasons[0] if self.reasons else "",
            repair_operation=self.repair_operation,
            matched_keywords=self.matched_keywords,
            trigger_lines=sorted(self.trigger_lines),
            trigger_descriptions=self.trigger_descriptions,
            procedure_type=self.procedure_type,
        )


def group_calibrations(
    lines: Sequence[ScrubLine],
    policy: Optional[CalibrationTypePolicy] = None,
) -> List[GroupedCalibration]:
    """Group matches by canonical operation key.

    Lines are visited in ascending line-number order, so first-seen values
    (reason, system label, type order) do not depend on input order.

    Args:
        lines: Scrub result lines (precise, inferred or overridden).
        policy: Calibration-type merge policy; defaults to first-seen " / ".

    Returns:
        Groups ordered by lowest trigger line, then system label.
    """
    policy = policy or CalibrationTypePolicy.default()
    groups: Dict[str, _GroupAccumulator] = {}

    for line in sorted(lines, key=lambda item: (item.line_number, item.description)):
        for match in line.calibration_matches:
            repair_operation = canonicalize_operation_name(
                match.repair_operation, match.system_name, match.matched_keyword
            )
            system = canonicalize_system(match.system_name, repair_operation)
            operation = calibration_operation_for_system(system, repair_operation)
            key = normalize_for_key(operation)

            group = groups.get(key)
            if group is None:
                group = _GroupAccumulator(system_name=system.label, repair_operation=operation)
                groups[key] = group

            group.add_keyword(match.matched_keyword)
            if line.line_number not in group.trigger_lines:
                group.trigger_lines.append(line.line_number)
            group.add_description(line.description)
            group.add_procedure_type(match.procedure_type)

            calibration_type = canonicalize_calibration_type(match.calibration_type)
            if calibration_type not in group.calibration_types:
                group.calibration_types.append(calibration_type)
            if match.reason not in group.reasons:
                group.reasons.append(match.reason)

    grouped = [group.build(policy) for group in groups.values()]
    grouped.sort(key=lambda g: (g.trigger_lines[0] if g.trigger_lines else float("inf"), g.system_name))

    match_count = sum(len(item.calibration_matches) for item in lines)
    logger.debug(f"Grouped {match_count} matches into {len(grouped)} operations")
    return grouped
