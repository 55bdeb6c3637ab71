from __future__ import annotations

import csv
from pathlib import Path

import httpx

from jira_filter_restore.backup import load_filters, load_permissions
from jira_filter_restore.export import export_filters, export_projects, export_roles, permission_rows
from jira_filter_restore.http_client import JiraHTTPClient
from jira_filter_restore.jira_api import JiraAPI
from jira_filter_restore.permissions import AuthenticatedGrant, GroupGrant, ProjectRoleGrant, UserGrant


def make_api(handler) -> JiraAPI:
    client = JiraHTTPClient(
        base_url="https://example.com", user="bot", token="t", transport=httpx.MockTransport(handler)
    )
    return JiraAPI(client)


def read_csv(path: Path) -> list[dict[str, str]]:
    with path.open(encoding="utf-8", newline="") as handle:
        return list(csv.DictReader(handle))


def test_permission_rows_merge_share_and_edit() -> None:
    payload = {
        "sharePermissions": [
            {"id": 1, "type": "group", "group": {"name": "devs"}},
            {"id": 2, "type": "projectRole", "project": {"id": "100"}, "role": {"id": 5}},
            {"id": 3, "type": "global"},
        ],
        "editPermissions": [
            {"id": 4, "type": "group", "group": {"name": "devs"}},
            {"id": 5, "type": "user", "user": {"accountId": "acc-9"}},
        ],
    }
    rows = permission_rows("42", payload)
    assert rows == [
        {"id": "42", "type": "group", "rights": "3", "param1": "devs", "param2": ""},
        {"id": "42", "type": "project", "rights": "1", "param1": "100", "param2": "5"},
        {"id": "42", "type": "user", "rights": "2", "param1": "acc-9", "param2": ""},
    ]


def test_exported_filters_round_trip_through_backup_loader(tmp_path: Path) -> None:
    values = [
        {
            "id": "10",
            "name": "Team bugs",
            "jql": "type = Bug",
            "owner": {"accountId": "acc-1"},
            "sharePermissions": [{"type": "authenticated"}],
            "editPermissions": [{"type": "user", "user": {"accountId": "acc-2"}}],
        },
        {
            "id": "11",
            "name": "Open team bugs",
            "jql": 'filter = "Team bugs" AND status = Open',
            "owner": {"accountId": "acc-1"},
            "sharePermissions": [{"type": "projectRole", "project": {"id": "100"}, "role": {"id": 7}}],
            "editPermissions": [],
        },
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/rest/api/3/filter/search"
        assert request.url.params["overrideSharePermissions"] == "true"
        assert "sharePermissions" in request.url.params["expand"]
        return httpx.Response(200, json={"values": values, "startAt": 0, "total": 2, "isLast": True})

    filters_path = tmp_path / "filters.csv"
    permissions_path = tmp_path / "permissions.csv"
    counts = export_filters(make_api(handler), filters_path, permissions_path)

    assert counts == (2, 3)
    filters = load_filters(filters_path)
    assert filters["11"].jql == 'filter = "Team bugs" AND status = Open'
    assert filters["10"].owner == "acc-1"
    payloads = load_permissions(permissions_path)
    assert payloads["10"].share_grants == [AuthenticatedGrant()]
    assert payloads["10"].edit_grants == [UserGrant("acc-2")]
    assert payloads["11"].share_grants == [ProjectRoleGrant("100", "7")]


def test_export_projects_flattens_lead(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/rest/api/3/project/search"
        project = {"id": "100", "key": "ABC", "name": "Alpha", "projectTypeKey": "software", "lead": {"displayName": "Ann"}}
        return httpx.Response(200, json={"values": [project], "isLast": True})

    path = tmp_path / "projects.csv"
    assert export_projects(make_api(handler), path) == 1
    assert read_csv(path) == [
        {"id": "100", "key": "ABC", "name": "Alpha", "projectTypeKey": "software", "lead": "Ann"}
    ]


def test_export_roles(tmp_path: Path) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/rest/api/3/role"
        return httpx.Response(200, json=[{"id": 10002, "name": "Administrators", "description": "Admins", "self": "x"}])

    path = tmp_path / "roles.csv"
    assert export_roles(make_api(handler), path) == 1
    assert read_csv(path) == [{"id": "10002", "name": "Administrators", "description": "Admins"}]


def test_group_grant_equality_drives_rights_merge() -> None:
    assert GroupGrant("devs") == GroupGrant("devs")
    assert GroupGrant("devs") != UserGrant("devs")
