"""Reporting package — CSV file and HTML email rendering."""

from .csv_export import export_csv, report_filename, ReportWriteError
from .html_report import (
    render_preview_rows,
    render_email_body,
    build_subject,
    PREVIEW_ROW_LIMIT,
)

__all__ = [
    "export_csv",
    "report_filename",
    "ReportWriteError",
    "render_preview_rows",
    "render_email_body",
    "build_subject",
    "PREVIEW_ROW_LIMIT",
]
