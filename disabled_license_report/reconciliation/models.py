"""
Reconciliation data models — directory records and the report they produce.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

LICENSE_DELIMITER = "; "

CSV_FIELDS = [
    "DisplayName",
    "UserPrincipalName",
    "ObjectId",
    "AccountEnabled",
    "LicenseSkuPartNos",
    "LicenseCount",
]


@dataclass(frozen=True)
class LicenseSku:
    """A subscribed license product."""
    sku_id: str
    part_number: str

    @classmethod
    def from_graph(cls, record: dict) -> "LicenseSku":
        sku_id = str(record.get("skuId") or "")
        return cls(sku_id=sku_id, part_number=record.get("skuPartNumber") or sku_id)


@dataclass(frozen=True)
class UserAccount:
    """A directory user with its raw license assignments."""
    id: str
    display_name: str
    user_principal_name: str
    account_enabled: bool
    assigned_license_ids: tuple[str, ...] = ()

    @classmethod
    def from_graph(cls, record: dict) -> "UserAccount":
        # assignedLicenses may be missing or null on some records
        assigned = record.get("assignedLicenses") or []
        license_ids = tuple(
            str(lic["skuId"])
            for lic in assigned
            if isinstance(lic, dict) and lic.get("skuId")
        )
        return cls(
            id=record.get("id") or "",
            display_name=record.get("displayName") or "",
            user_principal_name=record.get("userPrincipalName") or "",
            account_enabled=bool(record.get("accountEnabled")),
            assigned_license_ids=license_ids,
        )


@dataclass(frozen=True)
class ReportRow:
    """One disabled user that still holds at least one license."""
    display_name: str
    user_principal_name: str
    object_id: str
    license_part_numbers: tuple[str, ...]
    license_count: int
    account_enabled: bool = False

    @property
    def license_sku_part_nos(self) -> str:
        return LICENSE_DELIMITER.join(self.license_part_numbers)

    def to_csv_row(self) -> dict[str, Any]:
        return {
            "DisplayName": self.display_name,
            "UserPrincipalName": self.user_principal_name,
            "ObjectId": self.object_id,
            "AccountEnabled": self.account_enabled,
            "LicenseSkuPartNos": self.license_sku_part_nos,
            "LicenseCount": self.license_count,
        }


@dataclass(frozen=True)
class Report:
    """Report rows sorted by principal name, plus summary counters."""
    rows: tuple[ReportRow, ...] = ()
    total_disabled_users: int = 0
    generated_at: Optional[datetime] = None

    @property
    def disabled_with_licenses(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def to_dict(self) -> dict:
        return {
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
            "total_disabled_users": self.total_disabled_users,
            "disabled_with_licenses": self.disabled_with_licenses,
        }
