"""File-backed report store: one JSON document per report."""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .models import ReportRecord

logger = logging.getLogger(__name__)

_REPORT_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,127}$")


class FileReportStore:
    """Stores reports as ``{reports_dir}/{report_id}.json``.

    Writes go through a temp file and an atomic rename, so a reader never
    sees a half-written report.
    """

    def __init__(self, reports_dir: Path):
        self.reports_dir = Path(reports_dir)

    def _path(self, report_id: str) -> Path:
        if not _REPORT_ID.match(report_id or "") or ".." in report_id:
            raise ValueError(f"Invalid report id: {report_id!r}")
        return self.reports_dir / f"{report_id}.json"

    def get_report(self, report_id: str) -> Optional[ReportRecord]:
        path = self._path(report_id)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return ReportRecord.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Failed to load report {report_id}: {e!r}")
            return None

    def save_report(self, report: ReportRecord) -> None:
        path = self._path(report.report_id)
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")

        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)
            tmp_path.replace(path)
        except IOError as exc:
            if tmp_path.exists():
                tmp_path.unlink()
            raise IOError(f"Failed to save report {report.report_id}: {exc}") from exc

    def update_calibrations(self, report_id: str, calibrations: str) -> None:
        report = self.get_report(report_id)
        if report is None:
            raise KeyError(report_id)
        report.calibrations = calibrations
        report.updated_at = datetime.now(timezone.utc).isoformat()
        self.save_report(report)
        logger.info(f"Updated stored calibrations for report {report_id}")

    def list_reports(self) -> List[ReportRecord]:
        if not self.reports_dir.is_dir():
            return []
        reports = []
        for path in sorted(self.reports_dir.glob("*.json")):
            report = self.get_report(path.stem)
            if report is not None:
                reports.append(report)
        return reports
