"""
Tests for the GA4 REST client: request shape, row mapping, error messages.
"""

import json

import httpx
import pytest

from analytics.ga4_client import GA4Client, extract_error_message
from utils.exceptions import RemoteApiError
from utils.schemas import DateRange


def _client(handler) -> GA4Client:
    return GA4Client(transport=httpx.MockTransport(handler))


class TestExtractErrorMessage:
    def test_google_api_error_shape(self):
        resp = httpx.Response(403, json={
            "error": {
                "code": 403,
                "message": "User does not have sufficient permissions for this property.",
                "status": "PERMISSION_DENIED",
            }
        })
        assert extract_error_message(resp) == (
            "User does not have sufficient permissions for this property."
        )

    def test_oauth_error_shape(self):
        resp = httpx.Response(401, json={"error": "invalid_token", "error_description": "Token expired"})
        assert extract_error_message(resp) == "Token expired"

    def test_non_json_body_falls_back(self):
        resp = httpx.Response(502, text="<html>Bad Gateway</html>")
        assert extract_error_message(resp) == "GA4 API request failed with status 502"

    def test_json_without_message_falls_back(self):
        resp = httpx.Response(500, json={"unexpected": True})
        assert extract_error_message(resp) == "GA4 API request failed with status 500"


class TestRunReport:
    @pytest.mark.asyncio
    async def test_request_body_and_row_mapping(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "dimensionHeaders": [{"name": "date"}],
                "metricHeaders": [{"name": "sessions", "type": "TYPE_INTEGER"}],
                "rows": [
                    {"dimensionValues": [{"value": "20260101"}], "metricValues": [{"value": "12"}]},
                    {"dimensionValues": [{"value": "20260102"}], "metricValues": [{"value": "7"}]},
                ],
                "rowCount": 2,
            })

        rows = await _client(handler).run_report(
            "123", DateRange.LAST_30_DAYS, ["date"], ["sessions"], "token-1",
        )

        assert captured["url"].endswith("/v1beta/properties/123:runReport")
        assert captured["auth"] == "Bearer token-1"
        assert captured["body"]["dateRanges"] == [{"startDate": "30daysAgo", "endDate": "today"}]
        assert captured["body"]["dimensions"] == [{"name": "date"}]
        assert captured["body"]["metrics"] == [{"name": "sessions"}]
        assert rows == [
            {"date": "20260101", "sessions": "12"},
            {"date": "20260102", "sessions": "7"},
        ]

    @pytest.mark.asyncio
    async def test_order_and_limit(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={})

        rows = await _client(handler).run_report(
            "123", DateRange.LAST_7_DAYS, ["pagePath"], ["screenPageViews"], "t",
            order_by_metric="screenPageViews", limit=10,
        )

        assert rows == []
        assert captured["body"]["orderBys"] == [
            {"metric": {"metricName": "screenPageViews"}, "desc": True}
        ]
        assert captured["body"]["limit"] == "10"

    @pytest.mark.asyncio
    async def test_error_response_raises_with_status_and_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={
                "error": {"code": 429, "message": "Exhausted property tokens.", "status": "RESOURCE_EXHAUSTED"}
            })

        with pytest.raises(RemoteApiError) as exc_info:
            await _client(handler).run_report("123", DateRange.LAST_7_DAYS, ["date"], ["sessions"], "t")

        assert exc_info.value.status_code == 429
        assert exc_info.value.message == "Exhausted property tokens."


class TestListProperties:
    @pytest.mark.asyncio
    async def test_follows_pagination_across_accounts(self):
        pages = {
            None: {
                "accountSummaries": [
                    {"account": "accounts/1", "propertySummaries": [
                        {"property": "properties/111", "displayName": "Blog"},
                        {"property": "properties/222", "displayName": "Shop"},
                    ]},
                ],
                "nextPageToken": "page-2",
            },
            "page-2": {
                "accountSummaries": [
                    {"account": "accounts/2", "propertySummaries": [
                        {"property": "properties/333"},
                    ]},
                    {"account": "accounts/3"},
                ],
            },
        }

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1beta/accountSummaries"
            return httpx.Response(200, json=pages[request.url.params.get("pageToken")])

        properties = await _client(handler).list_properties("token-1")

        assert [(p.resource_id, p.display_name) for p in properties] == [
            ("111", "Blog"),
            ("222", "Shop"),
            ("333", "333"),
        ]

    @pytest.mark.asyncio
    async def test_discovery_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": {"code": 401, "message": "Request had invalid authentication credentials."}})

        with pytest.raises(RemoteApiError) as exc_info:
            await _client(handler).list_properties("expired")
        assert exc_info.value.status_code == 401
