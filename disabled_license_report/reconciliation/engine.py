"""
Reconciliation Engine — Joins disabled users against the SKU catalogue.

Model:
  - Each assigned license id resolves to its SKU part number; ids missing
    from the catalogue are shown as the raw id.
  - A user gets a row when it has any raw assignment, resolvable or not.
  - Names are deduplicated and sorted per row; rows are sorted by UPN.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from .models import LicenseSku, Report, ReportRow, UserAccount


def build_sku_map(skus: Optional[Iterable[LicenseSku]]) -> dict[str, str]:
    """Map SKU id to part number."""
    return {sku.sku_id: sku.part_number for sku in skus or ()}


def resolve_license_names(
    license_ids: Optional[Iterable[str]],
    sku_map: dict[str, str],
) -> tuple[str, ...]:
    """Resolve ids to distinct part numbers, sorted ascending."""
    names = {sku_map.get(lid, lid) for lid in license_ids or ()}
    return tuple(sorted(names))


def reconcile(
    skus: Optional[Iterable[LicenseSku]],
    disabled_users: Optional[Iterable[UserAccount]],
    generated_at: Optional[datetime] = None,
) -> Report:
    """
    Build the report of disabled users that still hold licenses.

    Pure function: no I/O, and None inputs are treated as empty.
    """
    sku_map = build_sku_map(skus)
    rows: list[ReportRow] = []
    total_disabled = 0

    for user in disabled_users or ():
        if user.account_enabled:
            continue
        total_disabled += 1

        assigned = tuple(user.assigned_license_ids or ())
        if not assigned:
            continue

        names = resolve_license_names(assigned, sku_map)
        rows.append(ReportRow(
            display_name=user.display_name,
            user_principal_name=user.user_principal_name,
            object_id=user.id,
            license_part_numbers=names,
            license_count=len(names),
        ))

    # sorted() is stable, so equal UPNs keep their input order
    rows = sorted(rows, key=lambda r: r.user_principal_name)

    return Report(
        rows=tuple(rows),
        total_disabled_users=total_disabled,
        generated_at=generated_at,
    )
