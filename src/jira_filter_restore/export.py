"""Export Jira collections to CSV files.

``export_filters`` produces the two backup files read by
:mod:`jira_filter_restore.backup`, so filters exported here can be restored
into another site.
"""
from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .backup import FILTER_COLUMNS, PERMISSION_COLUMNS
from .jira_api import FILTER_PATH, JiraAPI
from .permissions import (
    AuthenticatedGrant,
    Grant,
    GroupGrant,
    ProjectGrant,
    ProjectRoleGrant,
    Rights,
    UserGrant,
    grant_from_payload,
)

LOGGER = logging.getLogger(__name__)

USER_COLUMNS = ("accountId", "displayName", "emailAddress", "accountType", "active")
PROJECT_COLUMNS = ("id", "key", "name", "projectTypeKey", "lead")
BOARD_COLUMNS = ("id", "name", "type", "projectKey", "projectName")
ROLE_COLUMNS = ("id", "name", "description")


def write_csv(path: Path | str, columns: Sequence[str], rows: Iterable[Mapping[str, Any]]) -> int:
    """Write ``rows`` to ``path`` and return how many rows were written."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=list(columns), extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow({column: "" if row.get(column) is None else row.get(column) for column in columns})
            count += 1
    LOGGER.info("Wrote %s rows to %s", count, path)
    return count


def _nested(payload: Mapping[str, Any], *keys: str) -> Any:
    current: Any = payload
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def export_users(api: JiraAPI, path: Path | str) -> int:
    users = api.paginate("/rest/api/3/users/search")
    return write_csv(path, USER_COLUMNS, users)


def export_projects(api: JiraAPI, path: Path | str) -> int:
    rows = (
        {
            "id": project.get("id"),
            "key": project.get("key"),
            "name": project.get("name"),
            "projectTypeKey": project.get("projectTypeKey"),
            "lead": _nested(project, "lead", "displayName"),
        }
        for project in api.paginate("/rest/api/3/project/search", {"expand": "lead"})
    )
    return write_csv(path, PROJECT_COLUMNS, rows)


def export_boards(api: JiraAPI, path: Path | str) -> int:
    rows = (
        {
            "id": board.get("id"),
            "name": board.get("name"),
            "type": board.get("type"),
            "projectKey": _nested(board, "location", "projectKey"),
            "projectName": _nested(board, "location", "projectName"),
        }
        for board in api.paginate("/rest/agile/1.0/board")
    )
    return write_csv(path, BOARD_COLUMNS, rows)


def export_roles(api: JiraAPI, path: Path | str) -> int:
    roles = api.get("/rest/api/3/role")
    if not isinstance(roles, list):
        msg = "Unexpected payload for /role endpoint"
        raise ValueError(msg)
    return write_csv(path, ROLE_COLUMNS, roles)


def grant_to_backup(grant: Grant) -> Tuple[str, str, str]:
    """Return the backup ``(type, param1, param2)`` triple for a grant."""

    if isinstance(grant, GroupGrant):
        return "group", grant.name, ""
    if isinstance(grant, ProjectRoleGrant):
        return "project", grant.project_id, grant.role_id
    if isinstance(grant, ProjectGrant):
        return "project", grant.project_id, ""
    if isinstance(grant, UserGrant):
        return "user", grant.account_id, ""
    if isinstance(grant, AuthenticatedGrant):
        return "loggedin", "", ""
    msg = f"Unsupported grant {grant!r}"
    raise TypeError(msg)


def permission_rows(filter_id: str, payload: Mapping[str, Any]) -> List[Dict[str, str]]:
    """Flatten a filter's share and edit permissions into backup rows.

    A grant present only in the share list is rights 1, only in the edit list
    rights 2, and in both rights 3.
    """

    share: List[Grant] = []
    edit: List[Grant] = []
    for key, bucket in (("sharePermissions", share), ("editPermissions", edit)):
        for raw in payload.get(key) or []:
            grant = grant_from_payload(raw) if isinstance(raw, Mapping) else None
            if grant is None:
                LOGGER.warning("Skipping unsupported %s entry on filter %s: %r", key, filter_id, raw)
                continue
            if grant not in bucket:
                bucket.append(grant)

    ordered: List[Tuple[Grant, Rights]] = []
    for grant in share:
        ordered.append((grant, Rights.VIEW_EDIT if grant in edit else Rights.VIEW))
    for grant in edit:
        if grant not in share:
            ordered.append((grant, Rights.EDIT))

    rows = []
    for grant, rights in ordered:
        kind, param1, param2 = grant_to_backup(grant)
        rows.append({"id": filter_id, "type": kind, "rights": str(int(rights)), "param1": param1, "param2": param2})
    return rows


def export_filters(
    api: JiraAPI,
    filters_path: Path | str,
    permissions_path: Path | str,
    *,
    name: Optional[str] = None,
) -> Tuple[int, int]:
    """Write the filter and permission backup CSVs; return both row counts."""

    params: Dict[str, Any] = {
        "expand": "jql,owner,sharePermissions,editPermissions",
        "overrideSharePermissions": "true",
    }
    if name:
        params["filterName"] = name

    filter_rows: List[Dict[str, Any]] = []
    permission_rows_all: List[Dict[str, str]] = []
    for raw in api.paginate(f"{FILTER_PATH}/search", params):
        filter_id = str(raw.get("id"))
        filter_rows.append(
            {
                "id": filter_id,
                "name": raw.get("name"),
                "jql": raw.get("jql"),
                "owner": _nested(raw, "owner", "accountId"),
            }
        )
        permission_rows_all.extend(permission_rows(filter_id, raw))

    return (
        write_csv(filters_path, FILTER_COLUMNS, filter_rows),
        write_csv(permissions_path, PERMISSION_COLUMNS, permission_rows_all),
    )


EXPORTERS = {
    "users": export_users,
    "projects": export_projects,
    "boards": export_boards,
    "roles": export_roles,
}


__all__ = [
    "EXPORTERS",
    "export_boards",
    "export_filters",
    "export_projects",
    "export_roles",
    "export_users",
    "grant_to_backup",
    "permission_rows",
    "write_csv",
]
