"""Header metadata extraction from estimate text.

Pulls the identifiers a submission packet needs (VIN, RO/PO/workfile and
claim numbers, insurer, shop, dates) and detects which estimating system
produced the text. Everything here is best effort: a missing field is None,
never an error.
"""

import logging
import re
from typing import List, Optional, Pattern

from adas_scrub.scrub.schemas import EstimateFormat, EstimateMetadata

logger = logging.getLogger(__name__)

VIN_LENGTH = 17

_VIN_CHARS = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")
_STRICT_VIN = re.compile(r"\b[A-HJ-NPR-Z0-9]{17}\b")
_NON_VIN_CHARS = re.compile(r"[^A-HJ-NPR-Z0-9]")
_VIN_LABEL = re.compile(r"\bVIN\b")
_VIN_LABEL_PREFIX = re.compile(r"^.*\bVIN(?:\s*(?:NO|NUMBER|#|:|-))?\s*")
_RELAXED_VIN_SEGMENT = re.compile(r"[A-HJ-NPR-Z0-9][A-HJ-NPR-Z0-9\s:-]{15,45}[A-HJ-NPR-Z0-9]")

_DATE = r"(\d{1,2}/\d{1,2}/\d{2,4}|\d{4}-\d{2}-\d{2})"
# Label, optional "#"/"No."/"Number"/":" separators, then a value with a digit
_ID_VALUE = r"(?:\s*(?:#|No\.?|Number|:))*[ \t]*([A-Z0-9][A-Z0-9-]*\d[A-Z0-9-]*)"

_RO_PATTERNS = [
    re.compile(r"\b(?:RO|R\.O\.|Repair\s+Order)\b" + _ID_VALUE, re.IGNORECASE),
]
_PO_PATTERNS = [
    re.compile(r"\b(?:PO|P\.O\.|Purchase\s+Order)\b" + _ID_VALUE, re.IGNORECASE),
]
_WORKFILE_PATTERNS = [
    re.compile(r"\bWorkfile(?:\s+ID)?\b" + _ID_VALUE, re.IGNORECASE),
]
_CLAIM_PATTERNS = [
    re.compile(r"\bClaim\s*(?:#|No\.?|Number)\s*:?\s*([A-Z0-9][A-Z0-9-]{3,})", re.IGNORECASE),
]
_INSURANCE_PATTERNS = [
    re.compile(r"\b(?:Insurance\s+Company|Insurance|Insurer|Carrier)\s*:\s*([^\n]+)", re.IGNORECASE),
]
_SHOP_PATTERNS = [
    re.compile(r"\b(?:Shop\s+Name|Repair\s+Facility|Body\s+Shop|Shop)\s*:\s*([^\n]+)", re.IGNORECASE),
]
_ESTIMATE_DATE_PATTERNS = [
    re.compile(r"\b(?:Date\s+of\s+Estimate|Estimate\s+Date|Written\s+Date|Date\s+Written|Create\s+Date)\s*:?\s*" + _DATE, re.IGNORECASE),
]
_LOSS_DATE_PATTERNS = [
    re.compile(r"\b(?:Date\s+of\s+Loss|Loss\s+Date)\s*:?\s*" + _DATE, re.IGNORECASE),
]

# Free-text values stop at a wide gap (next column) or a trailing label
_COLUMN_GAP = re.compile(r"\s{2,}|\t")


def is_valid_vin(vin: Optional[str]) -> bool:
    """Check VIN shape: 17 characters, no I, O or Q."""
    return bool(vin) and len(vin) == VIN_LENGTH and bool(_VIN_CHARS.match(vin.upper()))


def _has_reasonable_vin_mix(candidate: str) -> bool:
    digits = sum(c.isdigit() for c in candidate)
    letters = sum(c.isalpha() for c in candidate)
    return digits >= 5 and letters >= 5


def _vin_from_window(value: str) -> Optional[str]:
    compact = _NON_VIN_CHARS.sub("", value)
    for start in range(0, len(compact) - VIN_LENGTH + 1):
        candidate = compact[start:start + VIN_LENGTH]
        if is_valid_vin(candidate) and _has_reasonable_vin_mix(candidate):
            return candidate
    return None


def extract_vin(text: Optional[str]) -> Optional[str]:
    """Find a VIN in estimate text.

    Tries, in order: whole 17-character tokens; VIN-labelled lines (joined
    with the next line, since OCR often splits a VIN or wraps it); then a
    relaxed scan for VIN-like segments broken by spaces, colons or hyphens.
    """
    if not text:
        return None
    upper = text.upper()

    for match in _STRICT_VIN.findall(upper):
        if is_valid_vin(match):
            return match

    lines = re.split(r"\r?\n", upper)
    for index, line in enumerate(lines):
        if not _VIN_LABEL.search(line):
            continue
        remainder = _VIN_LABEL_PREFIX.sub("", line, count=1)
        vin = _vin_from_window(remainder)
        if vin:
            return vin
        if index + 1 < len(lines):
            vin = _vin_from_window(f"{remainder} {lines[index + 1]}")
            if vin:
                return vin

    for segment in _RELAXED_VIN_SEGMENT.findall(upper):
        vin = _vin_from_window(segment)
        if vin:
            return vin

    return None


def detect_estimate_format(text: Optional[str]) -> EstimateFormat:
    """Identify the estimating system (CCC ONE, Mitchell, Audatex) from markers."""
    upper = (text or "").upper()

    if (
        "CCC ONE" in upper
        or "CCCONE" in upper
        or "PATHWAYS" in upper
        or re.search(r"PROFILE\s*#", upper)
        or re.search(r"ESTIMATE\s*#\s*\d{8,}", upper)
    ):
        return EstimateFormat.CCC
    if (
        "MITCHELL" in upper
        or "ULTRAMATE" in upper
        or re.search(r"CLAIM\s*#", upper)
        or "ESTIMATOR:" in upper
    ):
        return EstimateFormat.MITCHELL
    if "AUDATEX" in upper or "SOLERA" in upper or "QAPTER" in upper:
        return EstimateFormat.AUDATEX
    return EstimateFormat.GENERIC


def _first(patterns: List[Pattern[str]], text: str) -> Optional[str]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            value = _COLUMN_GAP.split(match.group(1).strip())[0].strip(" ,;")
            if value:
                return value
    return None


def extract_estimate_metadata(text: Optional[str]) -> EstimateMetadata:
    """Extract header metadata from estimate text.

    Args:
        text: Raw estimate text.

    Returns:
        EstimateMetadata with every recognized field populated.
    """
    text = text or ""
    metadata = EstimateMetadata(
        vin=extract_vin(text),
        ro_number=_first(_RO_PATTERNS, text),
        po_number=_first(_PO_PATTERNS, text),
        workfile_id=_first(_WORKFILE_PATTERNS, text),
        claim_number=_first(_CLAIM_PATTERNS, text),
        insurance_company=_first(_INSURANCE_PATTERNS, text),
        shop_name=_first(_SHOP_PATTERNS, text),
        estimate_date=_first(_ESTIMATE_DATE_PATTERNS, text),
        loss_date=_first(_LOSS_DATE_PATTERNS, text),
        estimate_format=detect_estimate_format(text),
    )
    found = [name for name, value in metadata.model_dump().items() if value]
    logger.debug(f"Estimate metadata fields found: {', '.join(found) or 'none'}")
    return metadata
