"""Reconciliation package — joins disabled users with license SKUs."""

from .engine import reconcile, build_sku_map, resolve_license_names
from .models import LicenseSku, UserAccount, ReportRow, Report, CSV_FIELDS

__all__ = [
    "reconcile",
    "build_sku_map",
    "resolve_license_names",
    "LicenseSku",
    "UserAccount",
    "ReportRow",
    "Report",
    "CSV_FIELDS",
]
