"""Manual add/remove overrides from technician review.

Instructions are applied per re-scrub and are never stored themselves; only
their effect on the scrub result is. Bad instructions (no criteria, line
outside 1-999, blank system) are skipped so one typo does not reject a
whole batch.
"""

import logging
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from adas_scrub.scrub.canonicalizer import match_operation_key, normalize_for_key
from adas_scrub.scrub.grouping import index_lines_by_number
from adas_scrub.scrub.schemas import (
    CalibrationMatch,
    ManualAddOperation,
    ManualRemoveOperation,
    ScrubLine,
)

logger = logging.getLogger(__name__)

MANUAL_REASON = "Manually flagged by technician review."
MIN_LINE_NUMBER = 1
MAX_LINE_NUMBER = 999


def _removes_match(
    remove: ManualRemoveOperation, line_number: int, match: CalibrationMatch, operation_key: str
) -> bool:
    if not remove.has_criteria():
        return False
    if remove.line_number is not None and remove.line_number != line_number:
        return False
    operation = normalize_for_key(remove.repair_operation)
    if operation and operation != operation_key:
        return False
    system = normalize_for_key(remove.system_name)
    if system and system not in normalize_for_key(match.system_name):
        return False
    return True


def apply_remove_operations(
    lines: Sequence[ScrubLine],
    removes: Sequence[ManualRemoveOperation],
) -> List[ScrubLine]:
    """Drop matches selected by any remove instruction.

    A match is removed when every criterion an instruction gives holds:
    exact line number, canonical operation key, and system-name substring
    (all compared normalized). Lines left without matches are dropped.
    """
    if not removes:
        return list(lines)

    usable = [remove for remove in removes if remove.has_criteria()]
    if len(usable) < len(removes):
        logger.warning(f"Skipped {len(removes) - len(usable)} remove instruction(s) with no criteria")

    cleaned: List[ScrubLine] = []
    for line in lines:
        remaining = [
            match
            for match in line.calibration_matches
            if not any(
                _removes_match(remove, line.line_number, match, match_operation_key(match))
                for remove in usable
            )
        ]
        if remaining:
            cleaned.append(line.model_copy(update={"calibration_matches": remaining}))
    return cleaned


def _valid_line_number(value: Optional[float]) -> Optional[int]:
    if value is None or value != value:  # NaN
        return None
    if value < MIN_LINE_NUMBER or value > MAX_LINE_NUMBER:
        return None
    return int(value)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def apply_add_operations(
    lines: Sequence[ScrubLine],
    adds: Sequence[ManualAddOperation],
    line_text_by_number: Mapping[int, str],
) -> List[ScrubLine]:
    """Insert manually flagged calibrations.

    Args:
        lines: Current scrub result.
        adds: Add instructions; invalid ones are skipped with a warning.
        line_text_by_number: Estimate text per line number, used as the
            description for lines the result does not contain yet.

    Returns:
        Lines sorted by line number.
    """
    if not adds:
        return list(lines)

    by_line = index_lines_by_number(lines)

    for add in adds:
        line_number = _valid_line_number(add.line_number)
        system_name = _clean(add.system_name)
        if line_number is None or not system_name:
            logger.warning(
                f"Skipping add instruction (line={add.line_number!r}, system={add.system_name!r})"
            )
            continue

        match = CalibrationMatch(
            system_name=system_name,
            calibration_type=_clean(add.calibration_type) or None,
            reason=_clean(add.reason) or MANUAL_REASON,
            matched_keyword=_clean(add.matched_keyword) or f"manual-line-{line_number}",
            repair_operation=_clean(add.repair_operation) or f"{system_name} Calibration",
        )

        existing = by_line.get(line_number)
        if existing is None:
            description = (
                _clean(add.description)
                or line_text_by_number.get(line_number)
                or f"Line {line_number}"
            )
            by_line[line_number] = ScrubLine(
                line_number=line_number, description=description, calibration_matches=[match]
            )
            continue

        duplicate = any(
            normalize_for_key(m.system_name) == normalize_for_key(match.system_name)
            and normalize_for_key(m.repair_operation) == normalize_for_key(match.repair_operation)
            for m in existing.calibration_matches
        )
        if not duplicate:
            existing.calibration_matches.append(match)

    return sorted(by_line.values(), key=lambda line: line.line_number)


@dataclass
class OverrideOutcome:
    """Overridden lines plus how many matches were removed and added."""

    lines: List[ScrubLine]
    removed_count: int
    added_count: int


def _count_matches(lines: Sequence[ScrubLine]) -> int:
    return sum(len(line.calibration_matches) for line in lines)


def apply_overrides(
    lines: Sequence[ScrubLine],
    adds: Sequence[ManualAddOperation] = (),
    removes: Sequence[ManualRemoveOperation] = (),
    line_text_by_number: Optional[Mapping[int, str]] = None,
) -> OverrideOutcome:
    """Apply removes, then adds."""
    before = _count_matches(lines)
    after_remove = apply_remove_operations(lines, removes)
    removed = before - _count_matches(after_remove)

    after_add = apply_add_operations(after_remove, adds, line_text_by_number or {})
    added = _count_matches(after_add) - _count_matches(after_remove)

    if removed or added:
        logger.info(f"Manual overrides removed {removed} and added {added} calibration match(es)")
    return OverrideOutcome(lines=after_add, removed_count=removed, added_count=added)
