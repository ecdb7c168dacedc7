"""Recover estimate-native line numbers from structured invoice lines.

CCC ONE style estimates prefix each operation with its own line index,
e.g. "2 * Rpr Bumper cover" or "6 O/H bumper assy". Keeping that number
lets reviewers cross-reference the paper/PDF estimate. When no index can be
recovered, the 1-based position in the filtered line sequence is used.
"""

import re
from typing import Optional

# Leading index, optional emphasis markers, then an operation code
_OPERATION_LINE_PATTERN = re.compile(
    r"^\s*(\d{1,3})\s*\*{0,2}\s*(Rpr|Repl|O/H|Ovhl|R&I|R&R|Subl|Add|Blend|Refn)",
    re.IGNORECASE,
)

# Section headers like "1 FRONT BUMPER" (case-sensitive on purpose)
_SECTION_HEADER_PATTERN = re.compile(r"^\s*(\d{1,3})\s+[A-Z]{2,}")


def extract_estimate_line_number(line: str) -> Optional[int]:
    """Extract the estimate's own line number from a line, if present.

    Args:
        line: A single trimmed estimate line.

    Returns:
        The recovered line number, or None if the line carries none.
    """
    match = _OPERATION_LINE_PATTERN.match(line)
    if match:
        return int(match.group(1))

    match = _SECTION_HEADER_PATTERN.match(line)
    if match:
        return int(match.group(1))

    return None


def resolve_line_number(line: str, position: int) -> int:
    """Return the estimate-native line number, falling back to position."""
    extracted = extract_estimate_line_number(line)
    return extracted if extracted is not None else position
