from __future__ import annotations

from datetime import datetime, timezone

import httpx
import pytest

from disabled_license_report.graph.client import GraphClient
from disabled_license_report.reconciliation.models import LicenseSku, UserAccount
from disabled_license_report.safety.guardian import SafetyGuardian

GENERATED_AT = datetime(2026, 10, 18, 6, 30, tzinfo=timezone.utc)


def make_user(upn, licenses=(), enabled=False, name=None, object_id=None):
    return UserAccount(
        id=object_id or f"id-{upn}",
        display_name=name or upn.split("@")[0].title(),
        user_principal_name=upn,
        account_enabled=enabled,
        assigned_license_ids=tuple(licenses),
    )


def graph_client(handler, guardian=None) -> GraphClient:
    """GraphClient whose HTTP traffic is answered by `handler`."""
    return GraphClient(
        access_token="test-token",
        guardian=guardian or SafetyGuardian(),
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def skus():
    return [LicenseSku("sku-A", "E3"), LicenseSku("sku-B", "E5")]


@pytest.fixture
def generated_at():
    return GENERATED_AT
