from __future__ import annotations

import json

import httpx

from jira_filter_restore.http_client import JiraHTTPClient
from jira_filter_restore.jira_api import JiraAPI
from jira_filter_restore.permissions import GroupGrant, PermissionPayload, UserGrant
from jira_filter_restore.results import Failed, Ok


def make_api(handler) -> JiraAPI:
    client = JiraHTTPClient(
        base_url="https://example.com", user="bot", token="t", transport=httpx.MockTransport(handler)
    )
    return JiraAPI(client, page_size=1)


def test_paginate_follows_is_last() -> None:
    responses = {
        0: {"values": [{"id": 1}], "startAt": 0, "maxResults": 1, "isLast": False},
        1: {"values": [{"id": 2}], "startAt": 1, "maxResults": 1, "isLast": False},
        2: {"values": [{"id": 3}], "startAt": 2, "maxResults": 1, "isLast": True},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/rest/api/3/project/search"
        assert request.url.params["maxResults"] == "1"
        return httpx.Response(200, json=responses[int(request.url.params["startAt"])])

    items = list(make_api(handler).paginate("/rest/api/3/project/search"))
    assert [item["id"] for item in items] == [1, 2, 3]


def test_paginate_stops_on_total() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        start_at = int(request.url.params["startAt"])
        calls.append(start_at)
        return httpx.Response(200, json={"values": [{"id": start_at}], "startAt": start_at, "total": 2})

    items = list(make_api(handler).paginate("/rest/api/3/filter/search"))
    assert [item["id"] for item in items] == [0, 1]
    assert calls == [0, 1]


def test_paginate_bare_list_stops_on_short_page() -> None:
    pages = {0: [{"accountId": "a"}], 1: []}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=pages[int(request.url.params["startAt"])])

    items = list(make_api(handler).paginate("/rest/api/3/users/search"))
    assert items == [{"accountId": "a"}]


def test_search_filters_keeps_exact_name_and_owner() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["filterName"] == "Bugs"
        assert request.url.params["accountId"] == "acc-1"
        assert request.url.params["overrideSharePermissions"] == "true"
        values = [
            {"id": "10", "name": "Bugs", "owner": {"accountId": "acc-1"}},
            {"id": "11", "name": "Open Bugs", "owner": {"accountId": "acc-1"}},
            {"id": "12", "name": "Bugs", "owner": {"accountId": "acc-2"}},
        ]
        return httpx.Response(200, json={"values": values, "isLast": True})

    result = make_api(handler).search_filters("Bugs", owner="acc-1", override_share_permissions=True)
    assert isinstance(result, Ok)
    assert [live.id for live in result.value] == ["10"]


def test_search_filters_ignore_case_still_requires_whole_name() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert "accountId" not in request.url.params
        values = [
            {"id": "10", "name": "bugs", "owner": {"accountId": "acc-1"}},
            {"id": "11", "name": "Open Bugs", "owner": {"accountId": "acc-1"}},
        ]
        return httpx.Response(200, json={"values": values, "isLast": True})

    api = make_api(handler)
    assert [live.id for live in api.search_filters("Bugs", ignore_case=True).value] == ["10"]
    assert api.search_filters("Bugs").value == []


def test_search_filters_reports_failure() -> None:
    def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"errorMessages": ["boom"]})

    result = make_api(handler).search_filters("Bugs")
    assert isinstance(result, Failed)
    assert result.status_code == 500
    assert result.describe() == "HTTP 500: boom"


def test_create_filter_sends_permissions() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content.decode("utf-8"))
        assert request.method == "POST"
        assert body == {
            "name": "Bugs",
            "jql": "type = Bug",
            "sharePermissions": [{"type": "group", "group": {"name": "devs"}}],
            "editPermissions": [{"type": "user", "user": {"accountId": "acc-9"}}],
        }
        return httpx.Response(200, json={"id": "42", "name": "Bugs", "jql": "type = Bug"})

    payload = PermissionPayload(share_grants=[GroupGrant("devs")], edit_grants=[UserGrant("acc-9")])
    result = make_api(handler).create_filter("Bugs", "type = Bug", payload)
    assert isinstance(result, Ok)
    assert result.value.id == "42"


def test_change_owner_and_delete_report_failures() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "PUT":
            assert request.url.path == "/rest/api/3/filter/5/owner"
            return httpx.Response(403, json={"errorMessages": ["not allowed"]})
        assert request.url.path == "/rest/api/3/filter/5"
        return httpx.Response(204)

    api = make_api(handler)
    changed = api.change_filter_owner("5", "acc-1")
    assert isinstance(changed, Failed)
    assert changed.reason == "not allowed"
    assert isinstance(api.delete_filter("5"), Ok)
