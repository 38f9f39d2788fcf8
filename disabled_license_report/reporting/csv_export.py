"""
CSV exporter — Writes the disabled-licensed users report as a CSV file.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from ..reconciliation.models import CSV_FIELDS, Report

logger = logging.getLogger("disabled_license_report.reporting")

CSV_ENCODING = "utf-8-sig"


class ReportWriteError(Exception):
    """Raised when the report file cannot be created or written."""
    def __init__(self, path: Path, cause: OSError):
        self.path = path
        super().__init__(f"Could not write report file {path}: {cause}")


def report_filename(run_id: str) -> str:
    return f"DisabledUsersWithLicenses_{run_id}.csv"


def export_csv(report: Report, output_dir: Path, run_id: str) -> Path:
    """
    Write one line per report row under a fixed header.

    Returns:
        Path to the created CSV file.
    """
    output_dir = Path(output_dir)
    path = output_dir / report_filename(run_id)

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        with open(path, "w", newline="", encoding=CSV_ENCODING) as fh:
            writer = csv.DictWriter(fh, fieldnames=CSV_FIELDS)
            writer.writeheader()
            for row in report.rows:
                writer.writerow(row.to_csv_row())
    except OSError as e:
        raise ReportWriteError(path, e) from e

    logger.info(f"Wrote {report.disabled_with_licenses} rows to {path}")
    return path
