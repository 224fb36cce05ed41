"""Tests for the scanner control-API client."""

import httpx
import pytest
import respx
from httpx import Response

from zapgate.errors import ClientApiError
from zapgate.modules.zapapi import (
    ApiResponseElement,
    ApiResponseList,
    ApiResponseSet,
    ZapClient,
    decode_response,
    element_value,
    list_items,
    set_field,
)

BASE = "http://127.0.0.1:8090"


class TestDecodeResponse:
    def test_single_value_is_element(self):
        response = decode_response({"status": "42"})

        assert response == ApiResponseElement("status", "42")
        assert element_value(response) == "42"

    def test_list_of_strings(self):
        response = decode_response({"sites": ["https://a.example", "https://b.example"]})

        assert isinstance(response, ApiResponseList)
        assert [element_value(item) for item in list_items(response)] == [
            "https://a.example",
            "https://b.example",
        ]

    def test_object_is_set(self):
        response = decode_response({"method": {"methodName": "formBasedAuthentication", "loginUrl": "x"}})

        assert isinstance(response, ApiResponseSet)
        assert set_field(response, "methodName") == "formBasedAuthentication"

    def test_booleans_are_lowercase(self):
        assert element_value(decode_response({"enabled": True})) == "true"

    def test_error_payload_raises(self):
        with pytest.raises(ClientApiError) as exc_info:
            decode_response({"code": "bad_view", "message": "No such view"})

        assert exc_info.value.code == "bad_view"
        assert "No such view" in str(exc_info.value)

    def test_wrong_accessor_raises(self):
        with pytest.raises(ClientApiError):
            list_items(ApiResponseElement("status", "1"))


class TestZapClient:
    @respx.mock
    @pytest.mark.asyncio
    async def test_call_sends_key_as_param_and_header(self):
        route = respx.get(f"{BASE}/JSON/core/view/numberOfAlerts/").mock(
            return_value=Response(200, json={"numberOfAlerts": "5"})
        )

        async with ZapClient("127.0.0.1", 8090) as client:
            count = await client.number_of_alerts()

        assert count == 5
        request = route.calls.last.request
        assert request.url.params["apikey"] == "ZAPROXY-PLUGIN"
        assert request.headers["X-ZAP-API-Key"] == "ZAPROXY-PLUGIN"
        assert request.url.params["baseurl"] == ""

    @respx.mock
    @pytest.mark.asyncio
    async def test_spider_scan_parameters(self):
        route = respx.get(f"{BASE}/JSON/spider/action/scan/").mock(
            return_value=Response(200, json={"scan": "4"})
        )

        async with ZapClient("127.0.0.1", 8090) as client:
            scan_id = await client.spider_scan(
                "https://example.com", max_children=5, recurse=True, context_name="C1", subtree_only=False
            )

        assert scan_id == "4"
        params = route.calls.last.request.url.params
        assert params["url"] == "https://example.com"
        assert params["maxChildren"] == "5"
        assert params["recurse"] == "true"
        assert params["contextName"] == "C1"
        assert params["subtreeOnly"] == "false"

    @respx.mock
    @pytest.mark.asyncio
    async def test_error_payload_with_http_400(self):
        respx.get(f"{BASE}/JSON/context/action/newContext/").mock(
            return_value=Response(400, json={"code": "already_exists", "message": "Context exists"})
        )

        async with ZapClient("127.0.0.1", 8090) as client:
            with pytest.raises(ClientApiError) as exc_info:
                await client.new_context("C1")

        assert exc_info.value.code == "already_exists"

    @respx.mock
    @pytest.mark.asyncio
    async def test_http_error_without_payload(self):
        respx.get(f"{BASE}/JSON/core/action/shutdown/").mock(return_value=Response(500, json={"oops": "x"}))

        async with ZapClient("127.0.0.1", 8090) as client:
            with pytest.raises(ClientApiError) as exc_info:
                await client.shutdown()

        assert exc_info.value.code == "500"

    @respx.mock
    @pytest.mark.asyncio
    async def test_transport_error_is_client_api_error(self):
        respx.get(f"{BASE}/JSON/core/view/sites/").mock(side_effect=httpx.ConnectError("refused"))

        async with ZapClient("127.0.0.1", 8090) as client:
            with pytest.raises(ClientApiError) as exc_info:
                await client.sites()

        assert exc_info.value.code == "connection_error"

    @respx.mock
    @pytest.mark.asyncio
    async def test_other_returns_raw_bytes(self):
        respx.get(f"{BASE}/OTHER/core/other/xmlreport/").mock(
            return_value=Response(200, content=b"<OWASPZAPReport/>")
        )

        async with ZapClient("127.0.0.1", 8090) as client:
            data = await client.core_report("xml")

        assert data == b"<OWASPZAPReport/>"

    @respx.mock
    @pytest.mark.asyncio
    async def test_jira_flags_are_one_and_zero(self):
        route = respx.get(f"{BASE}/JSON/jiraIssueCreater/action/createJiraIssues/").mock(
            return_value=Response(200, json={"Result": "OK"})
        )

        async with ZapClient("127.0.0.1", 8090) as client:
            await client.create_jira_issues(
                "https://jira.example", "bob", "secret", "SEC", "alice", True, False, True, False
            )

        params = route.calls.last.request.url.params
        assert params["jiraBaseURL"] == "https://jira.example"
        assert (params["high"], params["medium"], params["low"]) == ("1", "0", "1")
        assert params["filterIssuesByResourceType"] == "0"

    @respx.mock
    @pytest.mark.asyncio
    async def test_alerts_returns_records(self):
        respx.get(f"{BASE}/JSON/core/view/alerts/").mock(
            return_value=Response(
                200, json={"alerts": [{"alert": "XSS", "risk": "High"}, {"alert": "CSP", "risk": "Low"}]}
            )
        )

        async with ZapClient("127.0.0.1", 8090) as client:
            alerts = await client.alerts()

        assert [a["alert"] for a in alerts] == ["XSS", "CSP"]

    @pytest.mark.asyncio
    async def test_rejects_unknown_category(self):
        async with ZapClient("127.0.0.1", 8090) as client:
            with pytest.raises(ValueError):
                await client.call("core", "other", "xmlreport")
