"""Workflow status changes for stored reports, gated on completeness."""

import logging
from typing import Union

from adas_scrub.scrub.completeness import WorkflowStatus, guard_status_transition
from adas_scrub.scrub.engine import ScrubEngine
from adas_scrub.services.rescrub import ReportNotFoundError
from adas_scrub.storage.models import ReportRecord
from adas_scrub.storage.protocol import ReportStore

logger = logging.getLogger(__name__)


class ReportStatusService:
    """Moves reports through the review workflow."""

    def __init__(self, engine: ScrubEngine, store: ReportStore):
        self.engine = engine
        self.store = store

    def set_status(self, report_id: str, status: Union[WorkflowStatus, str]) -> ReportRecord:
        """Change a report's workflow status.

        Raises:
            ReportNotFoundError: If the report does not exist.
            ValueError: If the status is unknown.
            SubmissionNotReadyError: If READY_TO_SUBMIT is requested for an
                incomplete report.
        """
        report = self.store.get_report(report_id)
        if report is None:
            raise ReportNotFoundError(f"Report not found: {report_id}")

        assessment = self.engine.assess_report(report)
        target = guard_status_transition(status, assessment)

        report.status = target.value
        self.store.save_report(report)
        logger.info(f"Report {report_id} moved to {target.value} (completeness {assessment.score})")
        return report
