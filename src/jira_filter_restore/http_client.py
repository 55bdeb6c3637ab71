"""HTTP client helpers for communicating with Jira."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ApiResponse:
    """Uniform view of a Jira response, including transport failures.

    ``status_code`` is ``0`` when no HTTP response was received; ``error``
    then carries the transport error text.
    """

    status_code: int
    body: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def reason(self) -> str:
        """Summarise why a call failed using Jira's error payload."""

        if self.error:
            return self.error
        parts: list[str] = []
        if isinstance(self.body, Mapping):
            messages = self.body.get("errorMessages") or []
            if isinstance(messages, list):
                parts.extend(str(message) for message in messages)
            errors = self.body.get("errors") or {}
            if isinstance(errors, Mapping):
                parts.extend(f"{key}: {value}" for key, value in errors.items())
        elif isinstance(self.body, str) and self.body.strip():
            parts.append(self.body.strip()[:200])
        if not parts:
            parts.append(f"HTTP {self.status_code}")
        return "; ".join(parts)


class JiraHTTPClient:
    """Wrapper around :class:`httpx.Client` with Jira specific defaults.

    Unlike a plain client, :meth:`request` never raises for HTTP error
    statuses or transport failures; everything is folded into an
    :class:`ApiResponse` so callers have a single code path.
    """

    def __init__(
        self,
        *,
        base_url: str,
        user: str,
        token: str,
        ca_bundle: str | bool | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        verify: str | bool
        if ca_bundle:
            verify = ca_bundle
        elif ca_bundle is False:
            verify = False
        else:
            verify = True

        self._client = httpx.Client(
            base_url=base_url,
            auth=httpx.BasicAuth(user, token),
            timeout=httpx.Timeout(timeout, connect=min(timeout, 10.0)),
            verify=verify,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "JiraHTTPClient":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    def get(self, path: str, **kwargs: Any) -> ApiResponse:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> ApiResponse:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> ApiResponse:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> ApiResponse:
        return self.request("DELETE", path, **kwargs)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> ApiResponse:
        try:
            response = self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            LOGGER.error("HTTP request failed: %s %s (%s)", method, path, exc)
            return ApiResponse(status_code=0, error=f"{type(exc).__name__}: {exc}")

        body = _decode_body(response)
        if response.is_error:
            LOGGER.debug("Jira returned HTTP %s for %s %s", response.status_code, method, path)
        return ApiResponse(status_code=response.status_code, body=body)


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


__all__ = ["ApiResponse", "JiraHTTPClient"]
