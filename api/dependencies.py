"""
FastAPI dependencies (shared across routes).

Services are built once in ``main.create_app`` and read from ``app.state``.
"""

from __future__ import annotations

from fastapi import Request

from connectors.google import GoogleConnector
from connectors.token_manager import CredentialResolver
from connectors.token_store import TokenStore
from core.report_service import ReportService


def get_report_service(request: Request) -> ReportService:
    return request.app.state.services.report_service


def get_credential_resolver(request: Request) -> CredentialResolver:
    return request.app.state.services.resolver


def get_token_store(request: Request) -> TokenStore:
    return request.app.state.services.store


def get_google_connector(request: Request) -> GoogleConnector:
    return request.app.state.services.connector
