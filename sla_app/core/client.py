"""Data source contract and async HTTP client for the SLA case service."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from .config import DEFAULT_PAGE_SIZE, DOT_SEP

logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """Transient failure talking to the remote data source."""


@dataclass(slots=True)
class CasePageRequest:
    dashboard_id: str
    scope_id: str | None = None
    fields: Sequence[str] = field(default_factory=list)
    sort_field: str | None = None
    sort_order: str = "asc"
    search_term: str = ""
    offset: int = 0
    limit: int = DEFAULT_PAGE_SIZE
    priority_filter: Sequence[str] = field(default_factory=list)
    has_jira: bool = False
    is_stopped: bool = False
    only_first_sla: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "dashboardId": self.dashboard_id,
            "accountId": self.scope_id,
            "fields": list(self.fields),
            "sortField": self.sort_field or "",
            "sortOrder": self.sort_order,
            "searchTerm": self.search_term,
            "offset": self.offset,
            "limitCount": self.limit,
            "priorityFilter": list(self.priority_filter),
            "hasJira": self.has_jira,
            "isStopped": self.is_stopped,
            "onlyCountFirstSLA": self.only_first_sla,
        }


@dataclass(frozen=True, slots=True)
class CaseFilters:
    """Active drill-down filters shared by paging and export."""

    dashboard_id: str
    scope_id: str | None = None
    search_term: str = ""
    priority_filter: tuple[str, ...] = ()
    has_jira: bool = False
    sort_field: str | None = None
    sort_order: str = "asc"
    only_first_sla: bool = False

    def page_request(
        self,
        fields: Sequence[str],
        *,
        offset: int = 0,
        limit: int = DEFAULT_PAGE_SIZE,
        is_stopped: bool = False,
    ) -> CasePageRequest:
        return CasePageRequest(
            dashboard_id=self.dashboard_id,
            scope_id=self.scope_id,
            fields=list(fields),
            sort_field=self.sort_field.replace(DOT_SEP, ".") if self.sort_field else None,
            sort_order=self.sort_order,
            search_term=self.search_term,
            offset=offset,
            limit=limit,
            priority_filter=list(self.priority_filter),
            has_jira=self.has_jira,
            is_stopped=is_stopped,
            only_first_sla=self.only_first_sla,
        )


class SlaDataSource(Protocol):
    async def fetch_summary(self, scope_id: str | None) -> dict[str, Any]: ...

    async def fetch_case_page(self, request: CasePageRequest) -> list[dict[str, Any]]: ...


class SlaServiceClient:
    """Async HTTP client for the remote SLA data service.

    Usage:
        client = SlaServiceClient(base_url="https://sla.example.org", token="...")
        summary = await client.fetch_summary(scope_id=None)
    """

    def __init__(self, base_url: str, token: str | None = None, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        logger.info("Initialized %s with base_url=%s", self.__class__.__name__, self.base_url)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout)

    async def _post(self, path: str, payload: dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with self._get_client() as client:
                response = await client.post(url, json=payload, headers=self._headers())
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"Request to {path} failed {exc.response.status_code}: {exc.response.text[:200]}"
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise FetchError(f"Request to {path} failed: {exc}") from exc

    async def fetch_summary(self, scope_id: str | None) -> dict[str, Any]:
        data = await self._post("/api/sla/summary", {"accountId": scope_id})
        if not isinstance(data, dict):
            raise FetchError(f"Unexpected summary payload type {type(data).__name__}")
        return data

    async def fetch_case_page(self, request: CasePageRequest) -> list[dict[str, Any]]:
        data = await self._post("/api/sla/cases", request.to_payload())
        if isinstance(data, dict):
            data = data.get("records", [])
        if not isinstance(data, list):
            raise FetchError(f"Unexpected case page payload type {type(data).__name__}")
        return data
