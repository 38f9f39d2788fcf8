"""
Async Graph API client with pagination and safety enforcement.
One attempt per request: failures surface to the caller instead of being retried.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncGenerator, Optional

import httpx

from ..auth.authenticator import AuthenticationError
from ..config import (
    GRAPH_BASE_URL,
    GRAPH_API_VERSION,
    DEFAULT_PAGE_SIZE,
    MAX_PAGES_PER_ENDPOINT,
    REQUEST_TIMEOUT_SECONDS,
    CONNECT_TIMEOUT_SECONDS,
)
from ..safety.guardian import SafetyGuardian, SafetyViolation

logger = logging.getLogger("disabled_license_report.graph")


class GraphAPIError(Exception):
    """Raised when a Graph call fails after reaching (or trying to reach) the service."""
    def __init__(self, status_code: int, message: str, url: str):
        self.status_code = status_code
        self.url = url
        super().__init__(f"Graph API Error {status_code} for {url}: {message}")


class GraphClient:
    """
    Async Microsoft Graph API client and the run's session object.
    Features:
      - Safety-validated requests (reads plus the report mail only)
      - Automatic pagination with @odata.nextLink
      - HTTP connection pool opened on enter and released on exit
    """

    def __init__(
        self,
        access_token: str,
        guardian: SafetyGuardian,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token
        self.guardian = guardian
        self._transport = transport
        self._request_count = 0
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(REQUEST_TIMEOUT_SECONDS, connect=CONNECT_TIMEOUT_SECONDS),
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.access_token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
                "ConsistencyLevel": "eventual",
            },
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.debug("Graph session closed.")

    @property
    def is_open(self) -> bool:
        return self._client is not None

    def _build_url(self, endpoint: str) -> str:
        """Build full Graph URL from relative endpoint."""
        if endpoint.startswith("http"):
            return endpoint
        endpoint = endpoint.lstrip("/")
        return f"{GRAPH_BASE_URL}/{GRAPH_API_VERSION}/{endpoint}"

    async def get(self, endpoint: str, params: Optional[dict] = None) -> dict:
        """Execute a single GET request."""
        url = self._build_url(endpoint)
        self.guardian.validate_request("GET", url)
        return await self._execute("GET", url, params=params)

    async def post(self, endpoint: str, json_body: dict) -> dict:
        """Execute a single POST request. Only the report mail passes the guardian."""
        url = self._build_url(endpoint)
        self.guardian.validate_request("POST", url, json_body)
        return await self._execute("POST", url, json_body=json_body)

    async def get_all_pages(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        top: Optional[int] = None,
        skip_top: bool = False,
    ) -> list[dict]:
        """
        Fetch all pages of a paginated endpoint into a list.
        Set skip_top=True for endpoints that don't support $top.
        """
        items = []
        async for item in self.get_all_pages_stream(endpoint, params, top, skip_top=skip_top):
            items.append(item)
        return items

    async def get_all_pages_stream(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        top: Optional[int] = None,
        skip_top: bool = False,
    ) -> AsyncGenerator[dict, None]:
        """Stream all pages of a paginated endpoint as an async generator."""
        params = dict(params or {})
        if not skip_top and "$top" not in params:
            params["$top"] = str(min(top or DEFAULT_PAGE_SIZE, DEFAULT_PAGE_SIZE))

        url: Optional[str] = self._build_url(endpoint)
        pages = 0

        while url and pages < MAX_PAGES_PER_ENDPOINT:
            self.guardian.validate_request("GET", url)
            data = await self._execute("GET", url, params=params)

            for item in data.get("value") or []:
                yield item

            # nextLink carries every query parameter
            url = data.get("@odata.nextLink")
            params = None
            pages += 1

        if url and pages >= MAX_PAGES_PER_ENDPOINT:
            logger.warning(
                f"Pagination safety cap reached ({MAX_PAGES_PER_ENDPOINT} pages) "
                f"for endpoint: {endpoint}"
            )

    async def _execute(
        self,
        method: str,
        url: str,
        params: Optional[dict] = None,
        json_body: Optional[dict] = None,
    ) -> dict:
        """Execute a request once and translate the response."""
        try:
            response = await self._execute_raw(method, url, params=params, json_body=json_body)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {type(e).__name__}: {e}")
            raise GraphAPIError(0, f"{type(e).__name__}: {e}", url) from e
        self._request_count += 1

        if response.status_code == 200:
            if not response.content or not response.content.strip():
                return {}
            try:
                return response.json()
            except ValueError:
                raise GraphAPIError(200, "Response body is not JSON", url)

        if response.status_code in (202, 204):
            return {}

        error_msg = _error_message(response)
        if response.status_code in (401, 403):
            logger.error(f"{response.status_code} from {url}: {error_msg}")
            raise AuthenticationError(
                f"Graph rejected the request ({response.status_code}) for {url}: {error_msg}"
            )

        raise GraphAPIError(response.status_code, error_msg, url)

    async def _execute_raw(
        self,
        method: str,
        url: str,
        params: Optional[dict] = None,
        json_body: Optional[dict] = None,
    ) -> httpx.Response:
        """Execute raw HTTP request."""
        if not self._client:
            raise RuntimeError("GraphClient not initialized. Use 'async with' context.")

        if method == "GET":
            return await self._client.get(url, params=params)
        elif method == "POST":
            return await self._client.post(url, json=json_body, params=params)
        else:
            raise SafetyViolation(f"Unsupported method at raw level: {method}")

    def get_stats(self) -> dict:
        """Return client statistics."""
        return {
            "total_requests": self._request_count,
            "safety_checks": self.guardian.checks_performed,
        }


def _error_message(response: httpx.Response) -> str:
    try:
        body: Any = response.json() if response.content else {}
    except ValueError:
        return response.text[:200]
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    return response.text[:200]
