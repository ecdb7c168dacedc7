"""Split raw estimate text into clean, numbered lines.

Supplier and vendor boilerplate (street addresses, phone numbers,
"City, ST ZIP" lines, aftermarket quality codes followed by an address) is
dropped entirely before any repair detection or calibration matching, since
those lines otherwise produce false positives ("123 NW 5th Ave" is not a
bumper repair).
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List

from adas_scrub.scrub.line_numbers import resolve_line_number

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")

# Ordered supplier/vendor patterns; any hit discards the line
_SUPPLIER_LINE_PATTERNS = [
    # Street address: number + optional directional + street-type token
    re.compile(
        r"\d+\s*(NW|NE|SW|SE|N|S|E|W)?\s+\d*(st|nd|rd|th)?\s+(st|ave|blvd|rd|dr|ln|way|ct|pl)\b",
        re.IGNORECASE,
    ),
    # Phone / fax at the start of the line
    re.compile(r"^\s*\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}"),
    # City, ST ZIP
    re.compile(r"[A-Za-z]+,?\s+[A-Z]{2}\s+\d{5}"),
    # Vendor quality code followed by an address-like remainder
    re.compile(r"^A/M\s*(CAPA|NSF|OEM)?\s*\d+\s*(NW|NE|SW|SE|N|S|E|W)", re.IGNORECASE),
]


@dataclass(frozen=True)
class EstimateLine:
    """A surviving estimate line with its resolved line number."""

    position: int  # 1-based index in the filtered sequence
    line_number: int  # estimate-native number when recoverable, else position
    text: str


def split_estimate_lines(text: str) -> List[str]:
    """Split text on line breaks, trim, and drop empty lines."""
    if not text:
        return []
    return [line.strip() for line in _LINE_BREAK.split(text) if line.strip()]


def is_supplier_address_line(line: str) -> bool:
    """Check whether a line is supplier/vendor address boilerplate."""
    return any(pattern.search(line) for pattern in _SUPPLIER_LINE_PATTERNS)


def normalize_estimate(text: str) -> List[EstimateLine]:
    """Produce the filtered, numbered line sequence for an estimate.

    Args:
        text: Raw estimate text.

    Returns:
        Non-empty, non-supplier lines with resolved line numbers.
    """
    lines: List[EstimateLine] = []
    dropped = 0

    for raw in split_estimate_lines(text):
        if is_supplier_address_line(raw):
            dropped += 1
            continue
        position = len(lines) + 1
        lines.append(
            EstimateLine(
                position=position,
                line_number=resolve_line_number(raw, position),
                text=raw,
            )
        )

    if dropped:
        logger.debug(f"Dropped {dropped} supplier/address lines from estimate")
    return lines


def build_line_text_index(lines: List[EstimateLine]) -> Dict[int, str]:
    """Map line numbers to their raw text (first occurrence wins)."""
    index: Dict[int, str] = {}
    for line in lines:
        index.setdefault(line.line_number, line.text)
    return index
