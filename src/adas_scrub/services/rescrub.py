"""Re-scrub a stored report and persist the result only when it changed.

The read-compare-write sequence is not transactional: callers must not run
concurrent re-scrubs of the same report.
"""

import logging
from typing import Optional, Sequence

from adas_scrub.scrub.engine import RescrubOutcome, ScrubEngine
from adas_scrub.scrub.schemas import ManualAddOperation, ManualRemoveOperation
from adas_scrub.storage.protocol import ReportStore

logger = logging.getLogger(__name__)


class ReportNotFoundError(Exception):
    """Raised when a report id does not exist in the store."""

    pass


class ReportRescrubService:
    """Service for re-scrubbing stored reports with manual overrides."""

    def __init__(self, engine: ScrubEngine, store: ReportStore):
        self.engine = engine
        self.store = store

    def rescrub(
        self,
        report_id: str,
        adds: Optional[Sequence[ManualAddOperation]] = None,
        removes: Optional[Sequence[ManualRemoveOperation]] = None,
    ) -> RescrubOutcome:
        """Re-scrub a report, apply overrides, and write back if changed.

        Args:
            report_id: Report identifier.
            adds: Manual add instructions.
            removes: Manual remove instructions.

        Returns:
            RescrubOutcome from the engine.

        Raises:
            ReportNotFoundError: If the report does not exist.
        """
        report = self.store.get_report(report_id)
        if report is None:
            raise ReportNotFoundError(f"Report not found: {report_id}")

        outcome = self.engine.rescrub(report, adds=adds or [], removes=removes or [])

        if outcome.summary.changed:
            self.store.update_calibrations(report_id, outcome.serialized)
            logger.info(
                f"Report {report_id} re-scrubbed: {len(outcome.lines)} lines "
                f"(+{outcome.summary.added_match_count} / -{outcome.summary.removed_match_count} manual)"
            )
        else:
            logger.info(f"Report {report_id} re-scrubbed: no change")

        return outcome
