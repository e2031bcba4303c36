"""
GA4Client — thin async wrapper over the GA4 Data and Admin REST APIs.

Every non-success response is raised as ``RemoteApiError`` with Google's
own message when the body carries one.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from utils.exceptions import RemoteApiError
from utils.schemas import DateRange, ResourceDescriptor

logger = logging.getLogger(__name__)

_DATA_API = "https://analyticsdata.googleapis.com/v1beta"
_ADMIN_API = "https://analyticsadmin.googleapis.com/v1beta"

Row = Dict[str, str]


def extract_error_message(response: httpx.Response) -> str:
    """
    Pull a readable message out of a Google error response.

    Handles the API shape ``{"error": {"message": ...}}`` and the OAuth
    shape ``{"error": "...", "error_description": ...}``.
    """
    fallback = f"GA4 API request failed with status {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return fallback
    if not isinstance(body, dict):
        return fallback

    error = body.get("error")
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        return str(body.get("error_description") or error)
    return fallback


def _property_id(name: str) -> str:
    """``properties/123`` -> ``123``."""
    return name.rsplit("/", 1)[-1]


class GA4Client:
    def __init__(
        self,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    @staticmethod
    def _headers(access_token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {access_token}"}

    @staticmethod
    def _check(response: httpx.Response) -> Dict[str, Any]:
        if response.is_error:
            message = extract_error_message(response)
            logger.debug("GA4 call failed (%d): %s", response.status_code, message)
            raise RemoteApiError(response.status_code, message)
        return response.json()

    # ── Data API ────────────────────────────────────────────────────────

    async def run_report(
        self,
        property_id: str,
        date_range: DateRange,
        dimensions: Sequence[str],
        metrics: Sequence[str],
        access_token: str,
        *,
        order_by_metric: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Row]:
        """
        Run one report and return its rows as ``{header_name: value}`` dicts.

        Values stay strings; parsing decides how to coerce them.
        """
        body: Dict[str, Any] = {
            "dateRanges": [
                {"startDate": date_range.start_date, "endDate": date_range.end_date}
            ],
            "dimensions": [{"name": d} for d in dimensions],
            "metrics": [{"name": m} for m in metrics],
        }
        if order_by_metric:
            body["orderBys"] = [{"metric": {"metricName": order_by_metric}, "desc": True}]
        if limit:
            body["limit"] = str(limit)

        async with self._client() as client:
            resp = await client.post(
                f"{_DATA_API}/properties/{property_id}:runReport",
                json=body,
                headers=self._headers(access_token),
            )
        data = self._check(resp)

        dim_names = [h.get("name") for h in data.get("dimensionHeaders", [])] or list(dimensions)
        metric_names = [h.get("name") for h in data.get("metricHeaders", [])] or list(metrics)

        rows: List[Row] = []
        for raw in data.get("rows", []):
            row: Row = {}
            for name, cell in zip(dim_names, raw.get("dimensionValues", [])):
                row[name] = cell.get("value", "")
            for name, cell in zip(metric_names, raw.get("metricValues", [])):
                row[name] = cell.get("value", "")
            rows.append(row)
        return rows

    # ── Admin API ───────────────────────────────────────────────────────

    async def list_properties(self, access_token: str) -> List[ResourceDescriptor]:
        """Discover every GA4 property visible to the user, across all accounts."""
        properties: List[ResourceDescriptor] = []
        page_token: Optional[str] = None

        async with self._client() as client:
            while True:
                params: Dict[str, Any] = {"pageSize": 200}
                if page_token:
                    params["pageToken"] = page_token
                resp = await client.get(
                    f"{_ADMIN_API}/accountSummaries",
                    params=params,
                    headers=self._headers(access_token),
                )
                data = self._check(resp)

                for account in data.get("accountSummaries", []):
                    for prop in account.get("propertySummaries", []):
                        pid = _property_id(prop.get("property", ""))
                        if not pid:
                            continue
                        properties.append(
                            ResourceDescriptor(
                                resource_id=pid,
                                display_name=prop.get("displayName") or pid,
                            )
                        )

                page_token = data.get("nextPageToken")
                if not page_token:
                    break

        logger.info("Discovered %d GA4 properties", len(properties))
        return properties
