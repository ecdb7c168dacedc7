"""Tests for submission completeness scoring and the workflow gate."""

import pytest

from adas_scrub.config.scrub_config import CompletenessConfig
from adas_scrub.scrub.completeness import (
    SubmissionNotReadyError,
    WorkflowStatus,
    assess_completeness,
    guard_status_transition,
    is_usable_source_url,
)
from adas_scrub.scrub.grouping import group_calibrations
from adas_scrub.scrub.schemas import EstimateMetadata

from scrub_test_helpers import make_line

SOURCE_URL = "https://www.example.com/oem/adas-position"


def _full_metadata(**overrides):
    defaults = dict(
        vin="WDDWF8DB5KR123456",
        ro_number="48213",
        shop_name="Precision Collision Center",
        estimate_date="05/17/2024",
    )
    defaults.update(overrides)
    return EstimateMetadata(**defaults)


def _grouped():
    return group_calibrations([make_line(2), make_line(5)])


class TestIsUsableSourceUrl:
    """Only http(s) pages count as an OEM source."""

    @pytest.mark.parametrize(
        "url",
        ["https://www.example.com/oem/adas-position", "http://oem.example.com/statements?id=4"],
    )
    def test_usable(self, url):
        assert is_usable_source_url(url)

    @pytest.mark.parametrize(
        "url",
        [
            None,
            "",
            "ftp://example.com/statement",
            "https://example.com/statement.PDF",
            "https://example.com/files/statement.docx",
            "www.example.com/statement",
            "https:///no-host",
        ],
    )
    def test_not_usable(self, url):
        assert not is_usable_source_url(url)


class TestAssessCompleteness:
    """Weighted checks and the readiness rule."""

    def test_all_checks_pass(self):
        assessment = assess_completeness("", _full_metadata(), _grouped(), SOURCE_URL)
        assert assessment.score == 100
        assert assessment.ready_for_submission
        assert assessment.missing == []
        assert assessment.trigger_line_count == 2

    def test_ready_without_oem_source(self):
        """Other checks compensate for the missing OEM link (90 >= 85)."""
        assessment = assess_completeness("", _full_metadata(), _grouped(), None)
        assert assessment.score == 90
        assert assessment.ready_for_submission
        assert assessment.missing == ["OEM source link"]

    def test_document_link_does_not_count(self):
        assessment = assess_completeness("", _full_metadata(), _grouped(), "https://oem.example.com/a.pdf")
        assert assessment.score == 90

    def test_below_threshold(self):
        assessment = assess_completeness("", _full_metadata(ro_number=None), _grouped(), None)
        assert assessment.score == 75
        assert not assessment.ready_for_submission
        assert "RO / PO / workfile reference" in assessment.missing

    def test_no_calibrations_never_ready(self):
        config = CompletenessConfig(
            weights={
                "vin": 40,
                "reference": 20,
                "shop_claim": 10,
                "calibrations": 5,
                "trigger_lines": 5,
                "oem_source": 10,
                "dates": 10,
            },
            threshold=85,
        )
        assessment = assess_completeness("", _full_metadata(), [], SOURCE_URL, config)
        assert assessment.score == 90
        assert not assessment.ready_for_submission

    def test_metadata_extracted_from_text_when_missing(self):
        text = "VIN: WDDWF8DB5KR123456\nRO# 48213\nShop Name: Precision\nDate of Loss: 05/10/2024"
        assessment = assess_completeness(text, None, _grouped(), SOURCE_URL)
        assert assessment.score == 100

    def test_vin_falls_back_to_text(self):
        metadata = _full_metadata(vin=None)
        assessment = assess_completeness("VIN WDDWF8DB5KR123456", metadata, _grouped(), SOURCE_URL)
        assert assessment.checks[0].id == "vin"
        assert assessment.checks[0].passed

    def test_checks_follow_configured_weights(self):
        assessment = assess_completeness("", _full_metadata(), _grouped(), SOURCE_URL)
        assert [(c.id, c.weight) for c in assessment.checks] == [
            ("vin", 15),
            ("reference", 15),
            ("shop_claim", 10),
            ("calibrations", 25),
            ("trigger_lines", 15),
            ("oem_source", 10),
            ("dates", 10),
        ]


class TestGuardStatusTransition:
    """READY_TO_SUBMIT is gated on readiness."""

    def test_blocks_unready_submission(self):
        assessment = assess_completeness("", EstimateMetadata(), [], None)
        with pytest.raises(SubmissionNotReadyError) as exc_info:
            guard_status_transition("READY_TO_SUBMIT", assessment)
        assert exc_info.value.assessment is assessment

    def test_allows_ready_submission(self):
        assessment = assess_completeness("", _full_metadata(), _grouped(), SOURCE_URL)
        assert guard_status_transition(WorkflowStatus.READY_TO_SUBMIT, assessment) is WorkflowStatus.READY_TO_SUBMIT

    def test_other_statuses_not_gated(self):
        assessment = assess_completeness("", EstimateMetadata(), [], None)
        assert guard_status_transition("IN_REVIEW", assessment) is WorkflowStatus.IN_REVIEW

    def test_unknown_status(self):
        assessment = assess_completeness("", EstimateMetadata(), [], None)
        with pytest.raises(ValueError):
            guard_status_transition("ARCHIVED", assessment)
