"""
Analytics API routes.

Responses use the camelCase shape the dashboard frontend reads:
``{generatedAt, dateRange, properties: [{propertyId, displayName, metrics,
sources, error}]}``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import get_report_service
from auth.dependencies import get_current_session
from core.report_service import ReportService
from utils.schemas import (
    DateRange,
    FetchResult,
    PropertyDetail,
    PropertyMetrics,
    ReportEnvelope,
    SessionClaims,
    TrafficSource,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _parse_days(days: str) -> DateRange:
    try:
        return DateRange(days)
    except ValueError:
        allowed = ", ".join(d.value for d in DateRange)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid days parameter '{days}'; expected one of {allowed}",
        )


# ── wire format ─────────────────────────────────────────────────────────


def _metrics_to_wire(metrics: PropertyMetrics) -> Dict[str, Any]:
    return {
        "sessions": metrics.sessions,
        "activeUsers": metrics.active_users,
        "newUsers": metrics.new_users,
        "screenPageViews": metrics.screen_page_views,
        "bounceRate": metrics.bounce_rate,
        "averageSessionDuration": metrics.average_session_duration,
        "trend": [
            {"date": d.date, "sessions": d.sessions, "activeUsers": d.active_users}
            for d in metrics.trend
        ],
    }


def _sources_to_wire(sources: List[TrafficSource]) -> List[Dict[str, Any]]:
    return [{"channel": s.channel, "sessions": s.sessions} for s in sources]


def result_to_wire(result: FetchResult) -> Dict[str, Any]:
    """One dashboard entry: data on success, a message on failure, never both."""
    entry: Dict[str, Any] = {
        "propertyId": result.resource_id,
        "displayName": result.display_name,
        "metrics": None,
        "sources": [],
        "error": None,
    }
    if result.ok:
        entry["metrics"] = _metrics_to_wire(result.data.metrics)
        entry["sources"] = _sources_to_wire(result.data.sources)
    else:
        entry["error"] = result.error
    return entry


def envelope_to_wire(envelope: ReportEnvelope) -> Dict[str, Any]:
    return {
        "generatedAt": envelope.generated_at.isoformat(),
        "dateRange": envelope.date_range.value,
        "properties": [result_to_wire(r) for r in envelope.results],
    }


def detail_to_wire(detail: PropertyDetail) -> Dict[str, Any]:
    return {
        "propertyId": detail.property_id,
        "dateRange": detail.date_range.value,
        "metrics": _metrics_to_wire(detail.metrics),
        "sources": _sources_to_wire(detail.sources),
        "topPages": [
            {"path": p.path, "title": p.title, "views": p.views}
            for p in detail.top_pages
        ],
    }


# ── endpoints ──────────────────────────────────────────────────────────


@router.get("/analytics")
async def get_report(
    days: str = Query(DateRange.LAST_7_DAYS.value),
    session: SessionClaims = Depends(get_current_session),
    service: ReportService = Depends(get_report_service),
) -> Dict[str, Any]:
    """Report for every GA4 property the signed-in user can read."""
    date_range = _parse_days(days)
    envelope = await service.build_report(session.sub, date_range)
    return envelope_to_wire(envelope)


@router.get("/analytics-detail")
async def get_property_detail(
    property_id: Optional[str] = Query(None, alias="property"),
    days: str = Query(DateRange.LAST_7_DAYS.value),
    session: SessionClaims = Depends(get_current_session),
    service: ReportService = Depends(get_report_service),
) -> Dict[str, Any]:
    """Full report for one property, including its top pages."""
    if not property_id or not property_id.isdigit():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing or invalid property parameter",
        )
    date_range = _parse_days(days)
    detail = await service.build_property_detail(session.sub, property_id, date_range)
    return detail_to_wire(detail)


@router.get("/health")
async def health_check() -> Dict[str, str]:
    return {"status": "ok"}
