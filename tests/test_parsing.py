"""
Tests for GA4 row parsing and aggregation.
"""

import pytest

from analytics.parsing import (
    parse_metrics,
    parse_sources,
    parse_top_pages,
    weighted_average,
)


def _day(date, sessions, bounce, duration, active=0, new=0, views=0):
    return {
        "date": date,
        "sessions": str(sessions),
        "activeUsers": str(active),
        "newUsers": str(new),
        "screenPageViews": str(views),
        "bounceRate": str(bounce),
        "averageSessionDuration": str(duration),
    }


class TestParseMetrics:
    def test_counts_are_summed(self):
        metrics = parse_metrics([
            _day("20260102", 10, 0.5, 60, active=8, new=3, views=40),
            _day("20260101", 20, 0.5, 60, active=15, new=5, views=70),
        ])
        assert metrics.sessions == 30
        assert metrics.active_users == 23
        assert metrics.new_users == 8
        assert metrics.screen_page_views == 110

    def test_rates_are_weighted_by_sessions(self):
        metrics = parse_metrics([
            _day("20260101", 100, 0.5, 120.0),
            _day("20260102", 10, 1.0, 10.0),
        ])
        # plain averaging would give 0.75 and 65.0
        assert metrics.bounce_rate == pytest.approx(60 / 110)
        assert metrics.average_session_duration == pytest.approx(12100 / 110)

    def test_trend_sorted_and_dates_formatted(self):
        metrics = parse_metrics([
            _day("20260103", 3, 0, 0, active=2),
            _day("20260101", 1, 0, 0, active=1),
            _day("20260102", 2, 0, 0, active=1),
        ])
        assert [d.date for d in metrics.trend] == ["2026-01-01", "2026-01-02", "2026-01-03"]
        assert [d.sessions for d in metrics.trend] == [1, 2, 3]

    def test_no_rows_gives_zeroes(self):
        metrics = parse_metrics([])
        assert metrics.sessions == 0
        assert metrics.bounce_rate == 0.0
        assert metrics.average_session_duration == 0.0
        assert metrics.trend == []

    def test_unparseable_cells_count_as_zero(self):
        row = _day("20260101", 5, 0.2, 30)
        row["newUsers"] = "n/a"
        del row["screenPageViews"]
        metrics = parse_metrics([row])
        assert metrics.new_users == 0
        assert metrics.screen_page_views == 0
        assert metrics.sessions == 5


class TestWeightedAverage:
    def test_zero_weight(self):
        assert weighted_average([(0.9, 0), (0.1, 0)]) == 0.0

    def test_basic(self):
        assert weighted_average([(1.0, 1), (0.0, 3)]) == pytest.approx(0.25)


class TestParseSources:
    def test_sorted_busiest_first_and_merged(self):
        sources = parse_sources([
            {"sessionDefaultChannelGroup": "Direct", "sessions": "5"},
            {"sessionDefaultChannelGroup": "Organic Search", "sessions": "40"},
            {"sessionDefaultChannelGroup": "Direct", "sessions": "6"},
            {"sessionDefaultChannelGroup": "", "sessions": "1"},
        ])
        assert [(s.channel, s.sessions) for s in sources] == [
            ("Organic Search", 40),
            ("Direct", 11),
            ("(other)", 1),
        ]


class TestParseTopPages:
    def test_pages_sorted_by_views(self):
        pages = parse_top_pages([
            {"pagePath": "/about", "pageTitle": "About", "screenPageViews": "3"},
            {"pagePath": "/", "pageTitle": "Home", "screenPageViews": "90"},
        ])
        assert [p.path for p in pages] == ["/", "/about"]
        assert pages[0].views == 90
