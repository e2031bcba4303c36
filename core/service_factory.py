"""
Centralised service builder.

The token store, connector, resolver and report pipeline are constructed
once per process here and hung on ``app.state`` by ``main.create_app``, so
the wiring logic lives in exactly one place and nothing is a hidden global.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from analytics.fetcher import ReportFetcher
from analytics.ga4_client import GA4Client
from config.settings import Settings, config
from connectors.google import GoogleConnector
from connectors.token_manager import CredentialResolver
from connectors.token_store import TokenStore
from core.orchestrator import ReportOrchestrator
from core.report_service import ReportService


@dataclass
class Services:
    store: TokenStore
    connector: GoogleConnector
    resolver: CredentialResolver
    report_service: ReportService


def build_sql_token_store(settings: Settings = config) -> TokenStore:
    """Postgres-backed store with tokens encrypted at rest."""
    from connectors.encryption import TokenCipher
    from connectors.token_store import SqlTokenStore
    from database.session import async_session_factory

    return SqlTokenStore(async_session_factory, TokenCipher(settings.token_encryption_key))


def build_services(
    settings: Settings = config,
    *,
    store: Optional[TokenStore] = None,
    connector: Optional[GoogleConnector] = None,
    ga4_client: Optional[GA4Client] = None,
) -> Services:
    store = store if store is not None else build_sql_token_store(settings)
    connector = connector or GoogleConnector(
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        redirect_uri=settings.google_redirect_uri,
        timeout=settings.http_timeout_seconds,
    )
    resolver = CredentialResolver(
        store,
        connector,
        skew_buffer=timedelta(seconds=settings.token_skew_seconds),
        serialize_refresh=settings.token_refresh_lock,
    )
    ga4_client = ga4_client or GA4Client(timeout=settings.http_timeout_seconds)
    fetcher = ReportFetcher(ga4_client)
    orchestrator = ReportOrchestrator(
        fetcher,
        batch_size=settings.report_batch_size,
        retry_delay=settings.report_retry_delay_seconds,
    )
    return Services(
        store=store,
        connector=connector,
        resolver=resolver,
        report_service=ReportService(resolver, ga4_client, fetcher, orchestrator),
    )
