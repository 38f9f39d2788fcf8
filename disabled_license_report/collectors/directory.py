"""
Directory Collector
Enumerates: subscribed license SKUs and disabled user accounts with their
assigned licenses. Errors propagate; a partial listing is never returned.
"""

from __future__ import annotations

import logging
import time

from ..graph.client import GraphClient
from ..reconciliation.models import LicenseSku, UserAccount

logger = logging.getLogger("disabled_license_report.collectors.directory")

USER_SELECT_FIELDS = "id,displayName,userPrincipalName,accountEnabled,assignedLicenses"
SKU_SELECT_FIELDS = "skuId,skuPartNumber"
DISABLED_FILTER = "accountEnabled eq false"


class DirectoryCollector:
    name = "directory"
    description = "License SKUs and disabled users with assigned licenses"

    def __init__(self, graph: GraphClient):
        self.graph = graph
        self.endpoints_queried = 0

    # ── SKUs ────────────────────────────────────────────────────────────────

    async def list_license_skus(self) -> list[LicenseSku]:
        """All subscribed SKUs with their part numbers."""
        started = time.time()
        # subscribedSkus rejects $top
        records = await self.graph.get_all_pages(
            "subscribedSkus",
            params={"$select": SKU_SELECT_FIELDS},
            skip_top=True,
        )
        self.endpoints_queried += 1

        skus = [LicenseSku.from_graph(r) for r in records if r.get("skuId")]
        logger.info(
            f"[{self.name}] {len(skus)} license SKUs in {time.time() - started:.2f}s"
        )
        return skus

    # ── Users ───────────────────────────────────────────────────────────────

    async def list_disabled_users(self) -> list[UserAccount]:
        """All users with accountEnabled false, following every page."""
        started = time.time()
        users = []
        dropped = 0

        async for record in self.graph.get_all_pages_stream(
            "users",
            params={
                "$filter": DISABLED_FILTER,
                "$select": USER_SELECT_FIELDS,
            },
        ):
            user = UserAccount.from_graph(record)
            if user.account_enabled:
                dropped += 1
                continue
            users.append(user)
        self.endpoints_queried += 1

        if dropped:
            logger.warning(
                f"[{self.name}] Ignored {dropped} enabled account(s) returned by the disabled-user query"
            )
        logger.info(
            f"[{self.name}] {len(users)} disabled users in {time.time() - started:.2f}s"
        )
        return users
