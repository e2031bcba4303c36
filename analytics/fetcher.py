"""
ReportFetcher — the fixed request plan for one GA4 property.

A dashboard entry needs two reports (daily metrics and traffic sources).
Both are issued concurrently and both must succeed; the first
``RemoteApiError`` fails the property.
"""

from __future__ import annotations

import asyncio
import logging

from analytics import parsing
from analytics.ga4_client import GA4Client
from utils.schemas import DateRange, PropertyDetail, PropertyReport

logger = logging.getLogger(__name__)

TOP_PAGES_LIMIT = 10


class ReportFetcher:
    def __init__(self, client: GA4Client):
        self._client = client

    async def fetch(
        self,
        resource_id: str,
        date_range: DateRange,
        access_token: str,
    ) -> PropertyReport:
        """Fetch and parse the dashboard report for one property."""
        metric_rows, source_rows = await asyncio.gather(
            self._client.run_report(
                resource_id,
                date_range,
                parsing.METRICS_DIMENSIONS,
                parsing.METRICS_FIELDS,
                access_token,
            ),
            self._client.run_report(
                resource_id,
                date_range,
                parsing.SOURCES_DIMENSIONS,
                parsing.SOURCES_FIELDS,
                access_token,
            ),
        )
        logger.debug(
            "Property %s: %d metric rows, %d source rows",
            resource_id, len(metric_rows), len(source_rows),
        )
        return PropertyReport(
            metrics=parsing.parse_metrics(metric_rows),
            sources=parsing.parse_sources(source_rows),
        )

    async def fetch_detail(
        self,
        resource_id: str,
        date_range: DateRange,
        access_token: str,
    ) -> PropertyDetail:
        """Dashboard report plus the most viewed pages."""
        report, page_rows = await asyncio.gather(
            self.fetch(resource_id, date_range, access_token),
            self._client.run_report(
                resource_id,
                date_range,
                parsing.PAGES_DIMENSIONS,
                parsing.PAGES_FIELDS,
                access_token,
                order_by_metric="screenPageViews",
                limit=TOP_PAGES_LIMIT,
            ),
        )
        return PropertyDetail(
            property_id=resource_id,
            date_range=date_range,
            metrics=report.metrics,
            sources=report.sources,
            top_pages=parsing.parse_top_pages(page_rows),
        )
