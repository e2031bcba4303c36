"""
Turn GA4 report rows into typed aggregates.

Counts are summed across rows.  Rates and durations are weighted by each
row's session count, so a low-traffic day cannot skew the period value.
"""

from __future__ import annotations

from typing import Iterable, List

from analytics.ga4_client import Row
from utils.schemas import DailyMetric, PageMetric, PropertyMetrics, TrafficSource

METRICS_DIMENSIONS = ["date"]
METRICS_FIELDS = [
    "sessions",
    "activeUsers",
    "newUsers",
    "screenPageViews",
    "bounceRate",
    "averageSessionDuration",
]
SOURCES_DIMENSIONS = ["sessionDefaultChannelGroup"]
SOURCES_FIELDS = ["sessions"]
PAGES_DIMENSIONS = ["pagePath", "pageTitle"]
PAGES_FIELDS = ["screenPageViews"]


def _to_float(value: object) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: object) -> int:
    return int(_to_float(value))


def _format_date(value: str) -> str:
    """``20240131`` -> ``2024-01-31``; anything else passes through."""
    if len(value) == 8 and value.isdigit():
        return f"{value[:4]}-{value[4:6]}-{value[6:]}"
    return value


def weighted_average(pairs: Iterable[tuple]) -> float:
    """Average of ``(value, weight)`` pairs; 0.0 when the total weight is 0."""
    total = 0.0
    weight_sum = 0.0
    for value, weight in pairs:
        total += value * weight
        weight_sum += weight
    return total / weight_sum if weight_sum else 0.0


def parse_metrics(rows: List[Row]) -> PropertyMetrics:
    """Aggregate the per-day metrics report."""
    sessions_per_row = [_to_int(r.get("sessions")) for r in rows]

    trend = sorted(
        (
            DailyMetric(
                date=_format_date(r.get("date", "")),
                sessions=sessions,
                active_users=_to_int(r.get("activeUsers")),
            )
            for r, sessions in zip(rows, sessions_per_row)
        ),
        key=lambda d: d.date,
    )

    return PropertyMetrics(
        sessions=sum(sessions_per_row),
        active_users=sum(_to_int(r.get("activeUsers")) for r in rows),
        new_users=sum(_to_int(r.get("newUsers")) for r in rows),
        screen_page_views=sum(_to_int(r.get("screenPageViews")) for r in rows),
        bounce_rate=weighted_average(
            (_to_float(r.get("bounceRate")), s) for r, s in zip(rows, sessions_per_row)
        ),
        average_session_duration=weighted_average(
            (_to_float(r.get("averageSessionDuration")), s)
            for r, s in zip(rows, sessions_per_row)
        ),
        trend=trend,
    )


def parse_sources(rows: List[Row]) -> List[TrafficSource]:
    """Sessions per default channel group, busiest first."""
    totals: dict = {}
    for r in rows:
        channel = r.get("sessionDefaultChannelGroup") or "(other)"
        totals[channel] = totals.get(channel, 0) + _to_int(r.get("sessions"))
    sources = [TrafficSource(channel=c, sessions=s) for c, s in totals.items()]
    sources.sort(key=lambda s: s.sessions, reverse=True)
    return sources


def parse_top_pages(rows: List[Row]) -> List[PageMetric]:
    pages = [
        PageMetric(
            path=r.get("pagePath", ""),
            title=r.get("pageTitle", ""),
            views=_to_int(r.get("screenPageViews")),
        )
        for r in rows
    ]
    pages.sort(key=lambda p: p.views, reverse=True)
    return pages
