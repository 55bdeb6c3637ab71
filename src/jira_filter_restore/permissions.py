"""Share and edit permission models for saved filters.

Backup rows use the server-side share table layout (``type``, ``rights``,
``param1``, ``param2``).  Each row is normalised into one
:class:`PermissionEntry`, which in turn maps onto exactly one grant variant
that knows how to render itself in the REST share-permission shape.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Union

LOGGER = logging.getLogger(__name__)


class Rights(enum.IntEnum):
    VIEW = 1
    EDIT = 2
    VIEW_EDIT = 3

    @property
    def grants_edit(self) -> bool:
        # EDIT (2) never appears in real backups; it shares the VIEW_EDIT bucket.
        return self in (Rights.EDIT, Rights.VIEW_EDIT)


class PermissionKind(str, enum.Enum):
    GROUP = "group"
    PROJECT = "project"
    PROJECT_ROLE = "projectRole"
    USER = "user"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True, slots=True)
class GroupGrant:
    name: str
    kind = PermissionKind.GROUP

    def to_payload(self) -> Dict[str, object]:
        return {"type": self.kind.value, "group": {"name": self.name}}


@dataclass(frozen=True, slots=True)
class ProjectGrant:
    project_id: str
    kind = PermissionKind.PROJECT

    def to_payload(self) -> Dict[str, object]:
        return {"type": self.kind.value, "project": {"id": self.project_id}}


@dataclass(frozen=True, slots=True)
class ProjectRoleGrant:
    project_id: str
    role_id: str
    kind = PermissionKind.PROJECT_ROLE

    def to_payload(self) -> Dict[str, object]:
        return {
            "type": self.kind.value,
            "project": {"id": self.project_id},
            "role": {"id": self.role_id},
        }


@dataclass(frozen=True, slots=True)
class UserGrant:
    account_id: str
    kind = PermissionKind.USER

    def to_payload(self) -> Dict[str, object]:
        return {"type": self.kind.value, "user": {"accountId": self.account_id}}


@dataclass(frozen=True, slots=True)
class AuthenticatedGrant:
    kind = PermissionKind.AUTHENTICATED

    def to_payload(self) -> Dict[str, object]:
        return {"type": self.kind.value}


Grant = Union[GroupGrant, ProjectGrant, ProjectRoleGrant, UserGrant, AuthenticatedGrant]


@dataclass(frozen=True, slots=True)
class PermissionEntry:
    """A normalised backup permission row."""

    reference_id: str
    kind: PermissionKind
    rights: Rights
    target: Optional[str] = None
    role: Optional[str] = None

    def to_grant(self) -> Grant:
        if self.kind is PermissionKind.GROUP:
            return GroupGrant(name=_require(self.target, self))
        if self.kind is PermissionKind.PROJECT:
            return ProjectGrant(project_id=_require(self.target, self))
        if self.kind is PermissionKind.PROJECT_ROLE:
            return ProjectRoleGrant(project_id=_require(self.target, self), role_id=_require(self.role, self))
        if self.kind is PermissionKind.USER:
            return UserGrant(account_id=_require(self.target, self))
        return AuthenticatedGrant()


def _require(value: Optional[str], entry: PermissionEntry) -> str:
    if not value:
        msg = f"Permission {entry.kind.value} for filter {entry.reference_id} is missing its target"
        raise ValueError(msg)
    return value


@dataclass(slots=True)
class PermissionPayload:
    """Share and edit grants attached to a filter at creation time."""

    share_grants: List[Grant] = field(default_factory=list)
    edit_grants: List[Grant] = field(default_factory=list)

    def add(self, entry: PermissionEntry) -> None:
        grant = entry.to_grant()
        if entry.rights.grants_edit:
            self.edit_grants.append(grant)
        else:
            self.share_grants.append(grant)

    def to_request(self) -> Dict[str, List[Dict[str, object]]]:
        return {
            "sharePermissions": [grant.to_payload() for grant in self.share_grants],
            "editPermissions": [grant.to_payload() for grant in self.edit_grants],
        }

    def __bool__(self) -> bool:
        return bool(self.share_grants or self.edit_grants)


def normalize_permission(row: Mapping[str, str]) -> Optional[PermissionEntry]:
    """Map a raw backup row onto a :class:`PermissionEntry`.

    Returns ``None`` for rows that cannot be restored: the ``global`` share
    type (no longer offered by Jira Cloud) is dropped silently, unknown types
    and rights values are dropped with a warning.
    """

    reference_id = (row.get("id") or "").strip()
    raw_type = (row.get("type") or "").strip().lower()
    raw_rights = (row.get("rights") or "").strip()
    param1 = (row.get("param1") or "").strip() or None
    param2 = (row.get("param2") or "").strip() or None

    if raw_type == "global":
        return None
    try:
        rights = Rights(int(raw_rights))
    except ValueError:
        LOGGER.warning("Dropping permission for filter %s with unsupported rights %r", reference_id, raw_rights)
        return None

    entry: PermissionEntry
    if raw_type == "group":
        entry = PermissionEntry(reference_id, PermissionKind.GROUP, rights, target=param1)
    elif raw_type == "project" and param2:
        entry = PermissionEntry(reference_id, PermissionKind.PROJECT_ROLE, rights, target=param1, role=param2)
    elif raw_type == "project":
        entry = PermissionEntry(reference_id, PermissionKind.PROJECT, rights, target=param1)
    elif raw_type == "user":
        entry = PermissionEntry(reference_id, PermissionKind.USER, rights, target=param1)
    elif raw_type == "loggedin":
        return PermissionEntry(reference_id, PermissionKind.AUTHENTICATED, rights)
    else:
        LOGGER.warning("Dropping permission for filter %s with unsupported type %r", reference_id, raw_type)
        return None

    if not entry.target:
        LOGGER.warning("Dropping %s permission for filter %s without a target", raw_type, reference_id)
        return None
    return entry


def grant_from_payload(raw: Mapping[str, object]) -> Optional[Grant]:
    """Parse a REST share-permission object back into a grant variant."""

    kind = raw.get("type")
    project = raw.get("project") if isinstance(raw.get("project"), Mapping) else {}
    if kind == "group":
        group = raw.get("group") if isinstance(raw.get("group"), Mapping) else {}
        name = group.get("name")
        return GroupGrant(name=str(name)) if name else None
    if kind == "project" and project.get("id"):
        return ProjectGrant(project_id=str(project["id"]))
    if kind == "projectRole" and project.get("id"):
        role = raw.get("role") if isinstance(raw.get("role"), Mapping) else {}
        if role.get("id") is None:
            return None
        return ProjectRoleGrant(project_id=str(project["id"]), role_id=str(role["id"]))
    if kind == "user":
        user = raw.get("user") if isinstance(raw.get("user"), Mapping) else {}
        account_id = user.get("accountId")
        return UserGrant(account_id=str(account_id)) if account_id else None
    if kind in {"authenticated", "loggedin"}:
        return AuthenticatedGrant()
    return None


__all__ = [
    "AuthenticatedGrant",
    "Grant",
    "GroupGrant",
    "PermissionEntry",
    "PermissionKind",
    "PermissionPayload",
    "ProjectGrant",
    "ProjectRoleGrant",
    "Rights",
    "UserGrant",
    "grant_from_payload",
    "normalize_permission",
]
