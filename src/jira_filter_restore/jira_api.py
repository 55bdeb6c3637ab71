"""Low level Jira REST API helpers."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .http_client import ApiResponse, JiraHTTPClient
from .permissions import PermissionPayload
from .results import Failed, Ok, Result

LOGGER = logging.getLogger(__name__)

FILTER_PATH = "/rest/api/3/filter"


class JiraAPIError(RuntimeError):
    """Raised when a read endpoint returns an error response."""

    def __init__(self, message: str, response: ApiResponse) -> None:
        super().__init__(message)
        self.response = response


@dataclass(slots=True)
class Page:
    """A single page of a paginated collection."""

    start_at: int
    max_results: int
    total: Optional[int]
    is_last: bool
    values: List[Mapping[str, Any]]


@dataclass(frozen=True, slots=True)
class LiveFilter:
    """A filter as it currently exists in Jira."""

    id: str
    name: str
    jql: str = ""
    owner_account_id: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "LiveFilter":
        owner = payload.get("owner")
        return cls(
            id=str(payload.get("id")),
            name=str(payload.get("name", "")),
            jql=str(payload.get("jql") or ""),
            owner_account_id=owner.get("accountId") if isinstance(owner, Mapping) else None,
        )


def _failed(response: ApiResponse) -> Failed:
    return Failed(reason=response.reason, status_code=response.status_code or None)


def _same_name(found: str, wanted: str, ignore_case: bool) -> bool:
    if ignore_case:
        return found.casefold() == wanted.casefold()
    return found == wanted


def _parse_page(data: Any, start_at: int, page_size: int, items_key: Optional[str]) -> Page:
    if isinstance(data, list):
        values = data
        # Bare lists carry no paging metadata; a short page is the last one.
        return Page(start_at, page_size, None, len(values) < page_size, values)
    if not isinstance(data, Mapping):
        msg = "Unexpected payload for paginated endpoint"
        raise ValueError(msg)
    values = data.get(items_key or "values", [])
    if not isinstance(values, list):
        msg = f"Unexpected {items_key or 'values'} payload for paginated endpoint"
        raise ValueError(msg)
    total_raw = data.get("total")
    total = int(total_raw) if total_raw is not None else None
    is_last = bool(data.get("isLast", False))
    if total is not None and start_at + len(values) >= total:
        is_last = True
    return Page(
        start_at=int(data.get("startAt", start_at)),
        max_results=int(data.get("maxResults", page_size)),
        total=total,
        is_last=is_last,
        values=values,
    )


class JiraAPI:
    """Thin wrapper exposing the Jira REST API endpoints used by the tools."""

    def __init__(self, client: JiraHTTPClient, *, page_size: int = 50) -> None:
        self._client = client
        self._page_size = page_size

    def get_myself(self) -> Mapping[str, Any]:
        """Return information about the authenticated user."""

        response = self._client.get("/rest/api/3/myself")
        if not response.ok:
            raise JiraAPIError(f"Unable to authenticate against Jira: {response.reason}", response)
        return response.body

    def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        response = self._client.get(path, params=params)
        if not response.ok:
            raise JiraAPIError(f"GET {path} failed: {response.reason}", response)
        return response.body

    # Pagination ---------------------------------------------------------

    def pages(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        *,
        items_key: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> Iterator[Page]:
        """Yield pages sequentially, advancing ``startAt`` until the end."""

        size = page_size or self._page_size
        current = 0
        while True:
            query: Dict[str, Any] = dict(params or {})
            query["startAt"] = current
            query["maxResults"] = size
            LOGGER.debug("Fetching %s page at %s", path, current)
            page = _parse_page(self.get(path, query), current, size, items_key)
            yield page
            if page.is_last or not page.values:
                break
            current += len(page.values)

    def paginate(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        *,
        items_key: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> Iterator[Mapping[str, Any]]:
        """Yield items sequentially across pages."""

        for page in self.pages(path, params, items_key=items_key, page_size=page_size):
            yield from page.values

    # Filters ------------------------------------------------------------

    def search_filters(
        self,
        name: str,
        *,
        owner: Optional[str] = None,
        override_share_permissions: bool = False,
        ignore_case: bool = False,
    ) -> Result[List[LiveFilter]]:
        """Find filters whose name (and owner, when given) match exactly.

        Jira matches ``filterName`` partially and case-insensitively, so the
        results are narrowed client side.  With ``ignore_case`` the name only
        has to match case-insensitively, the way JQL resolves ``filter = "x"``.
        """

        params: Dict[str, Any] = {"filterName": name, "expand": "jql,owner"}
        if owner:
            params["accountId"] = owner
        if override_share_permissions:
            params["overrideSharePermissions"] = "true"
        try:
            found = [LiveFilter.from_payload(raw) for raw in self.paginate(f"{FILTER_PATH}/search", params)]
        except JiraAPIError as exc:
            return _failed(exc.response)
        except ValueError as exc:
            return Failed(reason=str(exc))
        return Ok(
            [
                live
                for live in found
                if _same_name(live.name, name, ignore_case) and (owner is None or live.owner_account_id == owner)
            ]
        )

    def create_filter(
        self,
        name: str,
        jql: str,
        permissions: PermissionPayload | None = None,
        *,
        override_share_permissions: bool = False,
    ) -> Result[LiveFilter]:
        body: Dict[str, Any] = {"name": name, "jql": jql}
        if permissions:
            body.update(permissions.to_request())
        params = {"overrideSharePermissions": "true"} if override_share_permissions else None
        response = self._client.post(FILTER_PATH, params=params, json=body)
        if not response.ok:
            return _failed(response)
        if not isinstance(response.body, Mapping) or response.body.get("id") is None:
            return Failed(reason="Jira did not return the new filter id", status_code=response.status_code)
        return Ok(LiveFilter.from_payload(response.body))

    def delete_filter(self, filter_id: str) -> Result[None]:
        response = self._client.delete(f"{FILTER_PATH}/{filter_id}")
        if not response.ok:
            return _failed(response)
        return Ok(None)

    def change_filter_owner(self, filter_id: str, account_id: str) -> Result[None]:
        response = self._client.put(f"{FILTER_PATH}/{filter_id}/owner", json={"accountId": account_id})
        if not response.ok:
            return _failed(response)
        return Ok(None)


__all__ = ["FILTER_PATH", "JiraAPI", "JiraAPIError", "LiveFilter", "Page"]
