"""Canonical names and comparison keys for ADAS systems and operations.

Rule tables, inference heuristics and reviewers all name the same
calibration differently ("ACC Radar", "Front Radar / ACC-AEB",
"inferred radar trigger"). Everything here is a pure, idempotent function
that collapses those variants so grouping and deduplication see one
operation.

Comparison keys (``normalize_for_key``) are never displayed; labels are.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from adas_scrub.scrub.schemas import CalibrationMatch

_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")

DEFAULT_SYSTEM_LABEL = "ADAS System"
UNKNOWN_SYSTEM_KEY = "unknown-system"

STATIC_DYNAMIC = "Static + Dynamic"
STATIC = "Static"
DYNAMIC = "Dynamic"
CODING_INITIALIZATION = "Coding / Initialization"
INITIALIZATION = "Initialization"
OEM_PROCEDURE = "OEM Procedure"

CALIBRATION_TYPE_ORDER = [
    STATIC_DYNAMIC,
    STATIC,
    DYNAMIC,
    CODING_INITIALIZATION,
    INITIALIZATION,
    OEM_PROCEDURE,
]

DEFAULT_TYPE_SEPARATOR = " / "

FORWARD_CAMERA_CALIBRATION = "Forward Camera Calibration"
FRONT_RADAR_CALIBRATION = "Front Radar Calibration"
BLIND_SPOT_CALIBRATION = "Blind Spot Radar Calibration"
SURROUND_CAMERA_CALIBRATION = "Surround View Camera Calibration"
REAR_CAMERA_CALIBRATION = "Rear Camera Calibration"
PARKING_SENSOR_CALIBRATION = "Parking Sensor Calibration"
STEERING_ANGLE_RELEARN = "Steering Angle Sensor Reset/Relearn"


@dataclass(frozen=True)
class CanonicalSystem:
    """Stable key plus display label for an ADAS system."""

    key: str
    label: str


# Ordered (predicate, system); first hit wins
_SYSTEM_RULES = [
    (lambda n: re.search(r"steering angle|\bsas\b", n),
     CanonicalSystem("steering-angle-sensor", "Steering Angle Sensor")),
    (lambda n: re.search(r"blind spot|rear cross|\bbsm\b|\brcta\b", n),
     CanonicalSystem("blind-spot-radar", "Blind Spot / Rear Cross Traffic")),
    (lambda n: re.search(r"surround|360", n) and "camera" in n,
     CanonicalSystem("surround-view-camera", "Surround View / 360 Camera")),
    (lambda n: re.search(r"rear view camera|backup camera|rear camera", n),
     CanonicalSystem("rear-camera", "Rear View Camera")),
    (lambda n: "parking" in n and re.search(r"sensor|assist", n),
     CanonicalSystem("parking-sensor", "Parking Assist Sensors")),
    (lambda n: re.search(r"front radar|\bradar\b|\bacc\b|\baeb\b", n)
     and not re.search(r"blind spot|rear", n),
     CanonicalSystem("front-radar", "Front Radar / ACC-AEB")),
    (lambda n: re.search(r"camera|ldw|lka", n) and "rear" not in n,
     CanonicalSystem("forward-camera", "Forward Camera / LDW-LKA")),
]

_OPERATION_BY_SYSTEM_KEY = {
    "forward-camera": FORWARD_CAMERA_CALIBRATION,
    "front-radar": FRONT_RADAR_CALIBRATION,
    "blind-spot-radar": BLIND_SPOT_CALIBRATION,
    "surround-view-camera": SURROUND_CAMERA_CALIBRATION,
    "rear-camera": REAR_CAMERA_CALIBRATION,
    "parking-sensor": PARKING_SENSOR_CALIBRATION,
    "steering-angle-sensor": STEERING_ANGLE_RELEARN,
}

# ADAS part keyword -> (system-name hint, operation) for "inferred adas part trigger"
_ADAS_PART_OPERATIONS = [
    ("frontradar", r"radar|acc|aeb", FRONT_RADAR_CALIBRATION),
    ("frontcamera", r"camera|ldw|lka", FORWARD_CAMERA_CALIBRATION),
    ("blindspotmonitor", r"blind spot|rear cross", BLIND_SPOT_CALIBRATION),
    ("surroundcamera", r"surround|360", SURROUND_CAMERA_CALIBRATION),
    ("parkingsensor", r"parking", PARKING_SENSOR_CALIBRATION),
    ("rearcamera", r"rear view camera|backup camera", REAR_CAMERA_CALIBRATION),
    ("steeringanglesensor", r"steering angle", STEERING_ANGLE_RELEARN),
]

_NON_TRIGGER_OPERATION = re.compile(r"calibrat|reset|relearn|initializ|angle check|aim")
_TRIGGER_OPERATION = re.compile(
    r"repair|replace|repl|r i|r r|remove|install|bumper|panel|windshield|fender|door|hood"
    r"|quarter|tailgate|mirror|grille|paint|blend|refinish|postscan|prescan"
)


def _collapse_whitespace(value: Optional[str]) -> str:
    return _WHITESPACE.sub(" ", value or "").strip()


def normalize_for_key(value: Optional[str]) -> str:
    """Lowercase and replace punctuation runs with single spaces.

    >>> normalize_for_key("  Front-Radar / ACC ")
    'front radar acc'
    """
    return _NON_ALNUM.sub(" ", _collapse_whitespace(value).lower()).strip()


def normalize_legacy_operation_name(
    raw_name: Optional[str],
    system_name: str,
    matched_keyword: Optional[str] = None,
) -> str:
    """Map older "inferred ... trigger" operation names to calibration names."""
    name = _collapse_whitespace(raw_name)
    lower = name.lower()
    keyword = (matched_keyword or "").lower()

    if "inferred camera trigger" in lower:
        return FORWARD_CAMERA_CALIBRATION
    if "inferred radar trigger" in lower:
        return FRONT_RADAR_CALIBRATION
    if "inferred bsm trigger" in lower:
        return BLIND_SPOT_CALIBRATION
    if "inferred sas trigger" in lower:
        return STEERING_ANGLE_RELEARN

    if "inferred adas part trigger" in lower:
        for part_keyword, system_hint, operation in _ADAS_PART_OPERATIONS:
            if keyword == part_keyword or re.search(system_hint, system_name, re.IGNORECASE):
                return operation
        return f"{system_name} Calibration"

    if lower.startswith("inferred ") and lower.endswith(" trigger"):
        if re.search(r"camera", system_name, re.IGNORECASE):
            return "Camera Calibration"
        if re.search(r"radar|acc|aeb", system_name, re.IGNORECASE):
            return "Radar Calibration"
        if re.search(r"blind spot|rear cross", system_name, re.IGNORECASE):
            return BLIND_SPOT_CALIBRATION
        if re.search(r"steering angle", system_name, re.IGNORECASE):
            return STEERING_ANGLE_RELEARN

    return name or f"{system_name} Calibration"


def canonicalize_operation_name(
    raw_name: Optional[str],
    system_name: str,
    matched_keyword: Optional[str] = None,
) -> str:
    """Canonicalize an operation name into its stable display form."""
    base = normalize_legacy_operation_name(raw_name, system_name, matched_keyword)
    normalized = normalize_for_key(base)

    if re.search(r"steering angle|\bsas\b|relearn", normalized):
        return STEERING_ANGLE_RELEARN
    if re.search(r"blind spot|rear cross|\bbsm\b|\brcta\b", normalized):
        return BLIND_SPOT_CALIBRATION
    if re.search(r"surround|360", normalized) and "camera" in normalized:
        return SURROUND_CAMERA_CALIBRATION
    if re.search(r"rear view camera|backup camera|rear camera", normalized):
        return REAR_CAMERA_CALIBRATION
    if "parking" in normalized and re.search(r"sensor|assist", normalized):
        return PARKING_SENSOR_CALIBRATION
    if re.search(r"front radar|\bradar\b|\bacc\b|\baeb\b", normalized) and not re.search(
        r"blind spot|rear", normalized
    ):
        return FRONT_RADAR_CALIBRATION
    if "camera" in normalized and "rear" not in normalized:
        return FORWARD_CAMERA_CALIBRATION

    return base


def is_likely_repair_trigger_operation(value: Optional[str]) -> bool:
    """True for body-repair names (e.g. "Bumper R&R"), false for calibrations."""
    normalized = normalize_for_key(value)
    if not normalized:
        return False
    if _NON_TRIGGER_OPERATION.search(normalized):
        return False
    return bool(_TRIGGER_OPERATION.search(normalized))


def canonicalize_system(raw_system_name: Optional[str], operation_name: Optional[str] = None) -> CanonicalSystem:
    """Canonicalize a system name, using the operation name to disambiguate.

    Args:
        raw_system_name: System name as written in the rule table or override.
        operation_name: Optional repair/calibration operation hint.

    Returns:
        CanonicalSystem with a known key/label, or the cleaned raw label.
    """
    normalized = normalize_for_key(f"{raw_system_name or ''} {operation_name or ''}")

    for predicate, system in _SYSTEM_RULES:
        if predicate(normalized):
            return system

    cleaned = _collapse_whitespace(raw_system_name)
    if not cleaned:
        return CanonicalSystem(UNKNOWN_SYSTEM_KEY, DEFAULT_SYSTEM_LABEL)
    return CanonicalSystem(normalize_for_key(cleaned) or UNKNOWN_SYSTEM_KEY, cleaned)


def calibration_operation_for_system(
    system: CanonicalSystem, fallback_operation: Optional[str] = None
) -> str:
    """Return the recommended calibration operation for a canonical system."""
    known = _OPERATION_BY_SYSTEM_KEY.get(system.key)
    if known:
        return known

    if fallback_operation and not is_likely_repair_trigger_operation(fallback_operation):
        return fallback_operation

    return f"{system.label or DEFAULT_SYSTEM_LABEL} Calibration"


def canonicalize_calibration_type(calibration_type: Optional[str]) -> str:
    """Canonicalize a calibration type into the fixed vocabulary.

    Unknown types are title-cased; missing types become "OEM Procedure".
    """
    raw = _collapse_whitespace(calibration_type)
    if not raw:
        return OEM_PROCEDURE

    normalized = normalize_for_key(raw)

    if "static" in normalized and "dynamic" in normalized:
        return STATIC_DYNAMIC
    if "coding" in normalized:
        return CODING_INITIALIZATION
    if re.search(r"init|relearn|reset", normalized):
        return INITIALIZATION
    if "dynamic" in normalized:
        return DYNAMIC
    if "static" in normalized:
        return STATIC
    if re.search(r"oem|procedure", normalized):
        return OEM_PROCEDURE

    return " ".join(word[:1].upper() + word[1:] for word in raw.lower().split(" ") if word)


def merge_calibration_types(
    types: Iterable[Optional[str]],
    separator: str = DEFAULT_TYPE_SEPARATOR,
    order: Optional[Sequence[str]] = None,
) -> str:
    """Merge calibration types into one deterministic display string.

    Distinct canonical types are kept in first-seen order. "Static + Dynamic"
    absorbs "Static" and "Dynamic"; "OEM Procedure" is dropped when anything
    more specific exists; "Initialization" is dropped next to
    "Coding / Initialization".

    Args:
        types: Raw calibration types, in the order they were seen.
        separator: Join string.
        order: Optional explicit ordering; types not listed sort last,
            alphabetically.

    Returns:
        The merged type string ("OEM Procedure" when nothing is known).
    """
    merged = []
    for value in types:
        canonical = canonicalize_calibration_type(value)
        if canonical not in merged:
            merged.append(canonical)

    if STATIC_DYNAMIC in merged:
        merged = [t for t in merged if t not in (STATIC, DYNAMIC)]
    if len(merged) > 1 and OEM_PROCEDURE in merged:
        merged.remove(OEM_PROCEDURE)
    if len(merged) > 1 and CODING_INITIALIZATION in merged and INITIALIZATION in merged:
        merged.remove(INITIALIZATION)

    if order:
        rank = {name: index for index, name in enumerate(order)}
        merged.sort(key=lambda t: (rank.get(t, len(rank)), t))

    return separator.join(merged) or OEM_PROCEDURE


def canonicalize_procedure_type(procedure_type: Optional[str]) -> str:
    """Canonicalize an OEM procedure type (required, recommended, verification)."""
    raw = _collapse_whitespace(procedure_type)
    if not raw:
        return "Required Procedure"

    normalized = normalize_for_key(raw)
    if re.search(r"required|must", normalized):
        return "Required Procedure"
    if re.search(r"recommended|advise", normalized):
        return "Recommended Procedure"
    if re.search(r"inspect|verify|check", normalized):
        return "Verification"
    return raw


def _procedure_priority(procedure_type: str) -> int:
    normalized = normalize_for_key(procedure_type)
    if re.search(r"required|must", normalized):
        return 3
    if re.search(r"recommended|advise", normalized):
        return 2
    if re.search(r"inspect|verify|check", normalized):
        return 1
    return 0


def pick_higher_priority_procedure_type(current_type: str, next_type: str) -> str:
    """Keep the stricter of two procedure types (current wins ties)."""
    if _procedure_priority(next_type) > _procedure_priority(current_type):
        return next_type
    return current_type


def recommended_operation(match: CalibrationMatch) -> str:
    """Return the recommended calibration operation for a match."""
    repair_operation = canonicalize_operation_name(
        match.repair_operation, match.system_name, match.matched_keyword
    )
    system = canonicalize_system(match.system_name, repair_operation)
    return calibration_operation_for_system(system, repair_operation)


def match_operation_key(match: CalibrationMatch) -> str:
    """Canonical operation key used for grouping, merging and removal."""
    return normalize_for_key(recommended_operation(match))
