"""Submission readiness scoring and the workflow gate built on it.

A report is ready for submission when its weighted checks score at least the
configured threshold AND it recommends at least one calibration. The
workflow layer must call ``guard_status_transition`` before moving a report
to READY_TO_SUBMIT.
"""

import logging
from enum import Enum
from pathlib import PurePosixPath
from typing import List, Optional, Sequence, Union
from urllib.parse import urlparse

from adas_scrub.config.scrub_config import CompletenessConfig
from adas_scrub.scrub.estimate_metadata import extract_estimate_metadata, extract_vin
from adas_scrub.scrub.schemas import (
    CompletenessAssessment,
    CompletenessCheck,
    EstimateMetadata,
    GroupedCalibration,
)

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSIONS = (".pdf", ".doc", ".docx", ".xls", ".xlsx", ".zip")

CHECK_LABELS = {
    "vin": "VIN",
    "reference": "RO / PO / workfile reference",
    "shop_claim": "Shop or claim details",
    "calibrations": "Calibration recommendations",
    "trigger_lines": "Trigger line evidence",
    "oem_source": "OEM source link",
    "dates": "Estimate or loss date",
}


class SubmissionNotReadyError(Exception):
    """Raised when a report is moved to READY_TO_SUBMIT without readiness."""

    def __init__(self, assessment: CompletenessAssessment):
        self.assessment = assessment
        missing = "; ".join(assessment.missing) or "no calibration recommendations"
        super().__init__(
            f"Report is not ready for submission (score {assessment.score}): missing {missing}"
        )


class WorkflowStatus(str, Enum):
    """Report review workflow states."""

    NEW_INTAKE = "NEW_INTAKE"
    IN_REVIEW = "IN_REVIEW"
    NEEDS_CORRECTION = "NEEDS_CORRECTION"
    READY_TO_SUBMIT = "READY_TO_SUBMIT"
    SUBMITTED = "SUBMITTED"


def is_usable_source_url(url: Optional[str]) -> bool:
    """True for http(s) links with a host that do not point at a document file.

    An OEM position statement link must open a page, not download a PDF.
    """
    value = (url or "").strip()
    if not value:
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    if parsed.scheme.lower() not in ("http", "https") or not parsed.netloc:
        return False
    return PurePosixPath(parsed.path.lower()).suffix not in DOCUMENT_EXTENSIONS


def assess_completeness(
    estimate_text: str,
    metadata: Optional[EstimateMetadata],
    grouped: Sequence[GroupedCalibration],
    oem_source_url: Optional[str] = None,
    config: Optional[CompletenessConfig] = None,
) -> CompletenessAssessment:
    """Score how complete a report is for submission.

    Args:
        estimate_text: Raw estimate text (VIN fallback when metadata lacks it).
        metadata: Extracted header metadata; extracted from text if None.
        grouped: Grouped calibrations for the report.
        oem_source_url: Source URL of the resolved vehicle rule set, if any.
        config: Weights and threshold; defaults apply when None.

    Returns:
        CompletenessAssessment with every check and the labels of failed ones.
    """
    config = config or CompletenessConfig.default()
    metadata = metadata or extract_estimate_metadata(estimate_text)

    trigger_lines = sorted({line for group in grouped for line in group.trigger_lines})
    passed = {
        "vin": bool(metadata.vin or extract_vin(estimate_text)),
        "reference": bool(metadata.ro_number or metadata.po_number or metadata.workfile_id),
        "shop_claim": bool(metadata.shop_name or metadata.claim_number or metadata.insurance_company),
        "calibrations": len(grouped) > 0,
        "trigger_lines": len(trigger_lines) > 0,
        "oem_source": is_usable_source_url(oem_source_url),
        "dates": bool(metadata.estimate_date or metadata.loss_date),
    }

    checks: List[CompletenessCheck] = [
        CompletenessCheck(
            id=check_id,
            label=CHECK_LABELS[check_id],
            weight=weight,
            passed=passed[check_id],
        )
        for check_id, weight in config.weights.items()
    ]
    score = sum(check.weight for check in checks if check.passed)
    ready = score >= config.threshold and len(grouped) > 0

    logger.debug(f"Completeness score {score} (ready={ready})")
    return CompletenessAssessment(
        score=score,
        ready_for_submission=ready,
        missing=[check.label for check in checks if not check.passed],
        checks=checks,
        trigger_line_count=len(trigger_lines),
    )


def guard_status_transition(
    status: Union[WorkflowStatus, str],
    assessment: CompletenessAssessment,
) -> WorkflowStatus:
    """Validate a workflow status change against the completeness gate.

    Raises:
        ValueError: If ``status`` is not a known workflow status.
        SubmissionNotReadyError: If moving to READY_TO_SUBMIT while not ready.
    """
    target = WorkflowStatus(status)
    if target is WorkflowStatus.READY_TO_SUBMIT and not assessment.ready_for_submission:
        raise SubmissionNotReadyError(assessment)
    return target
