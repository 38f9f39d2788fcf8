"""
HTML email report — summary counts and a preview of the first rows.

The full row set travels as the CSV attachment; the email body only shows
enough to act on without opening it.
"""

from __future__ import annotations

import html
from datetime import datetime, timezone
from typing import Any, Optional

from ..reconciliation.models import Report, ReportRow

PREVIEW_ROW_LIMIT = 10

PREVIEW_COLUMNS = ["DisplayName", "UserPrincipalName", "LicenseCount", "LicenseSkuPartNos"]

SUBJECT_PREFIX = "Disabled Users with Licenses Report"

# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def _esc(val: Any) -> str:
    if val is None:
        return ""
    return html.escape(str(val))


def _timestamp(report: Report) -> datetime:
    return report.generated_at or datetime.now(timezone.utc)


def _preview_cells(row: ReportRow) -> list[Any]:
    return [
        row.display_name,
        row.user_principal_name,
        row.license_count,
        row.license_sku_part_nos,
    ]


# ---------------------------------------------------------------------------
# Public renderers
# ---------------------------------------------------------------------------

def render_preview_rows(report: Report, limit: int = PREVIEW_ROW_LIMIT) -> str:
    """Return a <tbody> fragment with at most `limit` rows."""
    lines = []
    for row in report.rows[:limit]:
        cells = "".join(f"<td>{_esc(v)}</td>" for v in _preview_cells(row))
        lines.append(f"<tr>{cells}</tr>")
    return "<tbody>" + "\n".join(lines) + "</tbody>"


def build_subject(report: Report) -> str:
    stamp = _timestamp(report).strftime("%Y-%m-%d %H:%M UTC")
    return f"{SUBJECT_PREFIX} - {stamp}"


def render_email_body(
    report: Report,
    tenant_name: Optional[str] = None,
    attachment_name: str = "",
) -> str:
    """Render a self-contained HTML email with inline CSS."""
    stamp = _timestamp(report).strftime("%Y-%m-%d %H:%M:%S UTC")
    header = "".join(f"<th>{_esc(c)}</th>" for c in PREVIEW_COLUMNS)
    shown = min(report.disabled_with_licenses, PREVIEW_ROW_LIMIT)

    if report.is_empty:
        note = "No disabled users currently hold licenses."
    elif shown < report.disabled_with_licenses:
        note = (
            f"Showing the first {shown} of {report.disabled_with_licenses} users. "
            f"The full list is in the attached file {_esc(attachment_name)}."
        )
    else:
        note = f"All {shown} users are listed. The same data is attached as {_esc(attachment_name)}."

    tenant_line = (
        f"<p><strong>Tenant:</strong> {_esc(tenant_name)}</p>" if tenant_name else ""
    )

    return f"""<html>
<head>
<style>
  body {{ font-family: Segoe UI, Arial, sans-serif; font-size: 13px; color: #1f2937; }}
  h2 {{ color: #111827; }}
  table {{ border-collapse: collapse; margin-top: 8px; }}
  th, td {{ border: 1px solid #d1d5db; padding: 4px 8px; text-align: left; }}
  th {{ background: #f3f4f6; }}
  .summary td {{ border: none; padding: 2px 12px 2px 0; }}
</style>
</head>
<body>
<h2>{_esc(SUBJECT_PREFIX)}</h2>
{tenant_line}<p><strong>Generated:</strong> {stamp}</p>
<table class="summary">
<tr><td>Disabled users</td><td><strong>{report.total_disabled_users}</strong></td></tr>
<tr><td>Disabled users with licenses</td><td><strong>{report.disabled_with_licenses}</strong></td></tr>
</table>
<table>
<thead><tr>{header}</tr></thead>
{render_preview_rows(report)}
</table>
<p>{note}</p>
</body>
</html>
"""
