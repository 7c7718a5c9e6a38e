import asyncio
import json

import httpx
import pytest

from sla_app.core.client import CaseFilters, FetchError, SlaServiceClient


def _client(handler, token="secret"):
    client = SlaServiceClient("https://sla.example.org/", token=token)
    transport = httpx.MockTransport(handler)
    client._get_client = lambda: httpx.AsyncClient(transport=transport)
    return client


def test_case_page_payload_and_records():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"records": [{"Id": "500A"}]})

    filters = CaseFilters(
        dashboard_id="Response Time",
        scope_id="001X",
        search_term="crash",
        priority_filter=("High",),
        has_jira=True,
        sort_field="Account__DOT__Name",
        sort_order="desc",
    )
    request = filters.page_request(["CaseNumber", "Account.Name"], offset=50, limit=50, is_stopped=True)
    records = asyncio.run(_client(handler).fetch_case_page(request))
    assert records == [{"Id": "500A"}]
    assert seen["url"] == "https://sla.example.org/api/sla/cases"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"] == {
        "dashboardId": "Response Time",
        "accountId": "001X",
        "fields": ["CaseNumber", "Account.Name"],
        "sortField": "Account.Name",
        "sortOrder": "desc",
        "searchTerm": "crash",
        "offset": 50,
        "limitCount": 50,
        "priorityFilter": ["High"],
        "hasJira": True,
        "isStopped": True,
        "onlyCountFirstSLA": False,
    }


def test_summary_and_bare_list_pages():
    def handler(request):
        if request.url.path.endswith("summary"):
            return httpx.Response(200, json={"milestoneList": []})
        return httpx.Response(200, json=[{"Id": "1"}, {"Id": "2"}])

    client = _client(handler, token=None)
    assert asyncio.run(client.fetch_summary(None)) == {"milestoneList": []}
    page = asyncio.run(client.fetch_case_page(CaseFilters("Fix Resolution").page_request([])))
    assert [r["Id"] for r in page] == ["1", "2"]


def test_http_error_becomes_fetch_error():
    client = _client(lambda request: httpx.Response(503, text="maintenance"))
    with pytest.raises(FetchError, match="503"):
        asyncio.run(client.fetch_summary("001X"))


def test_unexpected_payload_type():
    client = _client(lambda request: httpx.Response(200, json=["not", "a", "summary"]))
    with pytest.raises(FetchError):
        asyncio.run(client.fetch_summary(None))
    bad_page = _client(lambda request: httpx.Response(200, json="oops"))
    with pytest.raises(FetchError):
        asyncio.run(bad_page.fetch_case_page(CaseFilters("Fix Resolution").page_request([])))


def test_transport_error_becomes_fetch_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(FetchError, match="refused"):
        asyncio.run(_client(handler).fetch_summary(None))
