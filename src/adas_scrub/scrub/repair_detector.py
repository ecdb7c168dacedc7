"""Repair-operation detection for estimate lines.

Each surviving estimate line is classified into at most one repair
category using an ordered rule table. Rules are evaluated top-down and the
first match wins, so more specific operations (e.g. "Bumper Overhaul")
must appear before generic ones (e.g. "Front Bumper").

The detector also derives a cleaned, human-readable description from raw
lines that typically interleave operation codes, part numbers, prices and
supplier codes with no consistent delimiter:

- "6Repl Lower Grille622546LY0A1603.82Incl." -> "Lower Grille - Replace"
- "1FRONT BUMPER & GRILLE" -> "FRONT BUMPER & GRILLE"
- "R&I Front Bumper Cover" -> "Front Bumper Cover - R&I"
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence, Tuple, Union

from adas_scrub.scrub.schemas import DetectedRepair
from adas_scrub.scrub.text_normalizer import EstimateLine, normalize_estimate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepairRule:
    """An ordered (pattern, category) pair."""

    pattern: Pattern[str]
    repair_type: str

    def matches(self, line: str) -> bool:
        return bool(self.pattern.search(line))


def _rule(pattern: str, repair_type: str) -> RepairRule:
    return RepairRule(re.compile(pattern, re.IGNORECASE), repair_type)


REPAIR_RULES: List[RepairRule] = [
    # Bumper operations: overhaul, repair, R&I, R&R
    _rule(r"o/h\s*(front\s*)?bumper|bumper.*o/h|overhaul\s*(front\s*)?bumper", "Bumper Overhaul"),
    _rule(r"rpr\s*(front\s*)?bumper|bumper.*rpr|repair\s*(front\s*)?bumper", "Bumper Repair"),
    _rule(r"r\s*&\s*i.*bumper|bumper.*r\s*&\s*i|remove.*bumper|bumper.*remove", "Bumper R&I"),
    _rule(r"r\s*&\s*r.*bumper|bumper.*r\s*&\s*r|replace.*bumper|bumper.*replace", "Bumper R&R"),
    _rule(r"front\s*bumper", "Front Bumper"),
    _rule(r"rear\s*bumper", "Rear Bumper"),
    # Grille operations
    _rule(r"r\s*&\s*i\s*grille?|grille?\s*r\s*&\s*i", "Grille R&I"),
    _rule(r"r\s*&\s*r\s*grille?|grille?\s*r\s*&\s*r", "Grille R&R"),
    _rule(r"grille|grill", "Grille"),
    _rule(r"windshield|w/s|wsr|front\s*glass", "Windshield"),
    _rule(r"r\s*&\s*i.*mirror|mirror.*r\s*&\s*i|side\s*mirror|door\s*mirror", "Side Mirror"),
    _rule(r"headlamp|headlight|head\s*lamp|head\s*light", "Headlamp"),
    _rule(r"radar\s*sensor|front\s*radar|distronic", "Radar Sensor"),
    _rule(r"camera|cam\b", "Camera"),
    _rule(r"hood|bonnet", "Hood"),
    _rule(r"fender", "Fender"),
    _rule(r"quarter\s*panel|qtr\s*panel", "Quarter Panel"),
    _rule(r"door\s*shell|door\s*skin", "Door"),
    _rule(r"tailgate|tail\s*gate|liftgate|lift\s*gate", "Tailgate/Liftgate"),
    _rule(r"alignment|align", "Alignment"),
    _rule(r"suspension|strut|shock|control\s*arm", "Suspension"),
    _rule(r"steering|rack|tie\s*rod", "Steering"),
    _rule(r"sensor", "Sensor"),
    _rule(r"calibrat", "Calibration"),
    _rule(r"blend|refinish|paint", "Refinish/Paint"),
    _rule(r"structural|frame|rail", "Structural"),
    _rule(r"roof|moonroof|sunroof", "Roof"),
    _rule(r"trunk|decklid", "Trunk/Decklid"),
]

# Operation verbs at the start of a line (after an optional line number)
_OPERATION_PREFIXES: List[Tuple[Pattern[str], str]] = [
    (re.compile(r"^\d*\s*(Repl(?:ace)?|R&R)\s*", re.IGNORECASE), "Replace"),
    (re.compile(r"^\d*\s*(R&I|Remove)\s*", re.IGNORECASE), "R&I"),
    (re.compile(r"^\d*\s*(O/H|Overhaul|Ovhl)\s*", re.IGNORECASE), "Overhaul"),
    (re.compile(r"^\d*\s*(Rpr|Repair)\s*", re.IGNORECASE), "Repair"),
    (re.compile(r"^\d*\s*(Refinish|Blend|Paint)\s*", re.IGNORECASE), "Refinish"),
]

# Component names, most specific first
_COMPONENT_PATTERNS: List[Pattern[str]] = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"front\s*bumper\s*(?:&|and)?\s*grille",
        r"front\s*bumper\s*cover",
        r"front\s*bumper",
        r"rear\s*bumper\s*cover",
        r"rear\s*bumper",
        r"bumper\s*cover",
        r"bumper",
        r"lower\s*grille",
        r"upper\s*grille",
        r"front\s*grille",
        r"grille",
        r"grill",
        r"windshield",
        r"front\s*glass",
        r"side\s*mirror",
        r"door\s*mirror",
        r"mirror\s*assembly",
        r"mirror",
        r"hood",
        r"fender",
        r"headlamp",
        r"headlight",
        r"tail\s*lamp",
        r"tail\s*light",
        r"radar\s*sensor",
        r"front\s*radar",
        r"camera",
        r"quarter\s*panel",
        r"rocker\s*panel",
        r"door\s*shell",
        r"door",
        r"trunk",
        r"decklid",
        r"tailgate",
        r"liftgate",
        r"roof",
        r"alignment",
        r"suspension",
        r"strut",
        r"control\s*arm",
    )
]

_LEADING_LINE_NUMBER = re.compile(r"^\s*\d{1,3}\s*")
_OPERATION_WORD = re.compile(
    r"^(Repl|Replace|R&R|R&I|Remove|O/H|Overhaul|Ovhl|Rpr|Repair|Refinish|Blend)\s*",
    re.IGNORECASE,
)
_PART_NUMBER = re.compile(r"[A-Z0-9]*\d{5,}[A-Z0-9]*", re.IGNORECASE)
_PRICE = re.compile(r"\d+\.\d{2}")
_INCLUSION_MARKER = re.compile(r"\b(Incl\.?|Included|Inc\.?)(?!\w)", re.IGNORECASE)
_QUALITY_MARKER = re.compile(r"(?<!\w)(A/M|CAPA|OEM|NSF|LKQ|KEYSTONE)\b", re.IGNORECASE)
_QUANTITY = re.compile(r"\b\d+\s*(ea|pc|hr|hrs)\b", re.IGNORECASE)
_QTY_LABEL = re.compile(r"\bqty[:\s]*\d+", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_EDGE_PUNCTUATION = re.compile(r"^[-,.\s]+|[-,.\s]+$")
_WORD_START = re.compile(r"\b\w")

_RAW_EXCERPT_LENGTH = 40


def _capitalize_words(value: str) -> str:
    return _WORD_START.sub(lambda m: m.group(0).upper(), value)


def detect_operation(raw_line: str) -> Optional[str]:
    """Detect the operation verb at the start of a line."""
    for pattern, operation in _OPERATION_PREFIXES:
        if pattern.search(raw_line):
            return operation
    return None


def find_component(raw_line: str) -> Optional[str]:
    """Find the most specific component name mentioned in a line."""
    for pattern in _COMPONENT_PATTERNS:
        match = pattern.search(raw_line)
        if match:
            return match.group(0)
    return None


def clean_repair_description(raw_line: str) -> str:
    """Derive a readable description from a raw estimate line.

    Args:
        raw_line: Trimmed estimate line.

    Returns:
        "<Component> - <Operation>" when a component is recognized, otherwise
        the line stripped of numbers, prices and supplier codes.
    """
    operation = detect_operation(raw_line)
    component = find_component(raw_line)

    if component:
        component = _WHITESPACE.sub(" ", _capitalize_words(component)).strip()
        return f"{component} - {operation}" if operation else component

    cleaned = _LEADING_LINE_NUMBER.sub("", raw_line, count=1)
    cleaned = _OPERATION_WORD.sub("", cleaned, count=1)
    cleaned = _PART_NUMBER.sub("", cleaned)
    cleaned = _PRICE.sub("", cleaned)
    cleaned = _INCLUSION_MARKER.sub("", cleaned)
    quality_markers = _QUALITY_MARKER.findall(cleaned)
    cleaned = _QUALITY_MARKER.sub("", cleaned)
    cleaned = _QUANTITY.sub("", cleaned)
    cleaned = _QTY_LABEL.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()
    cleaned = _EDGE_PUNCTUATION.sub("", cleaned)

    if cleaned:
        cleaned = _capitalize_words(cleaned)

    if len(cleaned) < 3:
        if quality_markers:
            return f"Part ({quality_markers[0].upper()})"
        return raw_line[:_RAW_EXCERPT_LENGTH].strip()

    if operation and operation.lower() not in cleaned.lower():
        return f"{cleaned} - {operation}"
    return cleaned


def classify_repair(line: str, rules: Sequence[RepairRule] = REPAIR_RULES) -> Optional[str]:
    """Return the first matching repair category for a line, if any."""
    for rule in rules:
        if rule.matches(line):
            return rule.repair_type
    return None


def detect_repairs(estimate: Union[str, List[EstimateLine]]) -> List[DetectedRepair]:
    """Detect repair operations across an estimate.

    Args:
        estimate: Raw estimate text, or lines already produced by
            ``normalize_estimate``.

    Returns:
        One DetectedRepair per classified line, in estimate order.
    """
    lines = normalize_estimate(estimate) if isinstance(estimate, str) else estimate
    detected: List[DetectedRepair] = []

    for line in lines:
        repair_type = classify_repair(line.text)
        if repair_type is None:
            continue
        detected.append(
            DetectedRepair(
                line_number=line.line_number,
                description=clean_repair_description(line.text),
                repair_type=repair_type,
            )
        )

    logger.debug(f"Detected {len(detected)} repair operations in {len(lines)} lines")
    return detected
