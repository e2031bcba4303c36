"""
ReportService — what the HTTP layer calls.

Resolves the user's Google token, discovers their GA4 properties and hands
both to the orchestrator.  Credential errors (``NoSession``,
``RefreshInvalid``) abort the whole call; per-property errors are data in
the returned envelope.
"""

from __future__ import annotations

import logging

from analytics.fetcher import ReportFetcher
from analytics.ga4_client import GA4Client
from connectors.token_manager import CredentialResolver
from core.orchestrator import ReportOrchestrator
from utils.schemas import DateRange, PropertyDetail, ReportEnvelope

logger = logging.getLogger(__name__)


class ReportService:
    def __init__(
        self,
        resolver: CredentialResolver,
        client: GA4Client,
        fetcher: ReportFetcher,
        orchestrator: ReportOrchestrator,
    ):
        self.resolver = resolver
        self.client = client
        self.fetcher = fetcher
        self.orchestrator = orchestrator

    async def build_report(self, user_id: str, date_range: DateRange) -> ReportEnvelope:
        access_token = await self.resolver.get_valid_access_token(user_id)
        resources = await self.client.list_properties(access_token)
        logger.info("Building %s report for user %s over %d properties",
                    date_range.value, user_id, len(resources))
        return await self.orchestrator.run_report(access_token, resources, date_range)

    async def build_property_detail(
        self,
        user_id: str,
        property_id: str,
        date_range: DateRange,
    ) -> PropertyDetail:
        access_token = await self.resolver.get_valid_access_token(user_id)
        return await self.fetcher.fetch_detail(property_id, date_range, access_token)
