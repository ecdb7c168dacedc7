"""JSON (de)serialization of scrub results at the persistence boundary.

The stored representation is a JSON array of line entries with camelCase
keys:

    [{"lineNumber": 2, "description": "Bumper Cover",
      "calibrationMatches": [{"systemName": "...", "matchedKeyword": "bumper", ...}]}]

Stored data is never trusted: a payload that is not valid JSON, or whose top
level is not an array, loads as an empty result, and malformed entries are
dropped with a warning.
"""

import json
import logging
from typing import Any, List, Optional, Sequence

from pydantic import ValidationError

from adas_scrub.scrub.schemas import ScrubLine

logger = logging.getLogger(__name__)


def scrub_result_to_data(lines: Sequence[ScrubLine]) -> List[dict]:
    """Convert lines to JSON-ready dicts (camelCase, None fields omitted)."""
    return [line.model_dump(by_alias=True, exclude_none=True) for line in lines]


def dump_scrub_result(lines: Sequence[ScrubLine]) -> str:
    """Serialize a scrub result to its stored JSON form."""
    return json.dumps(scrub_result_to_data(lines), ensure_ascii=False)


def scrub_result_from_data(data: Any) -> List[ScrubLine]:
    """Validate parsed JSON into lines, dropping malformed entries."""
    if not isinstance(data, list):
        logger.warning(f"Stored scrub result is {type(data).__name__}, not a list; treating as empty")
        return []

    lines: List[ScrubLine] = []
    for index, entry in enumerate(data):
        try:
            lines.append(ScrubLine.model_validate(entry))
        except ValidationError as e:
            logger.warning(f"Dropping malformed stored scrub line #{index}: {e.error_count()} error(s)")
    return lines


def load_scrub_result(payload: Optional[str]) -> List[ScrubLine]:
    """Parse a stored scrub result; malformed payloads load as empty."""
    if not payload:
        return []
    try:
        data = json.loads(payload)
    except (json.JSONDecodeError, TypeError) as e:
        logger.warning(f"Stored scrub result is not valid JSON: {e}")
        return []
    return scrub_result_from_data(data)
