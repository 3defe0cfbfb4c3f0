"""Remote task store adapters: the Notion REST API and a dry-run wrapper."""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Any

import httpx

from notion_recur import log
from notion_recur.config import NOTION_API_URL, NOTION_VERSION, Config
from notion_recur.errors import StoreError

PAGE_SIZE = 100


class TaskStore(ABC):
    """Abstract CRUD capability over the task database."""

    name: str = "base"

    @abstractmethod
    async def query(self, filter: dict[str, Any]) -> list[dict[str, Any]]:
        """Return every page matching *filter*."""
        ...

    @abstractmethod
    async def create(self, properties: dict[str, Any]) -> dict[str, Any]:
        """Create a page with the full property bag and return it."""
        ...

    @abstractmethod
    async def update(self, page_id: str, properties: dict[str, Any]) -> None:
        """Partially update the page *page_id*."""
        ...

    async def aclose(self) -> None:
        return None

    async def __aenter__(self) -> TaskStore:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()


class NotionStore(TaskStore):
    """Task store backed by a Notion database."""

    name = "notion"

    def __init__(self, cfg: Config, client: httpx.AsyncClient | None = None) -> None:
        self.cfg = cfg
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=NOTION_API_URL,
            timeout=cfg.request_timeout,
            headers={
                "Authorization": f"Bearer {cfg.auth_token}",
                "Notion-Version": NOTION_VERSION,
                "Content-Type": "application/json",
            },
        )

    async def _request(self, method: str, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = await self._client.request(method, path, json=payload)
        except httpx.TimeoutException as e:
            raise StoreError(f"{method} {path} timed out after {self.cfg.request_timeout}s") from e
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {path} failed: {e}") from e

        if resp.is_success:
            return resp.json()

        body = resp.text[:300]
        try:
            detail = resp.json().get("message", body)
        except ValueError:
            detail = body
        err = StoreError(
            f"{method} {path} returned {resp.status_code}: {detail}",
            status=resp.status_code,
            body=body,
        )
        if err.rate_limited:
            log.rate_limited(method, path)
        raise err

    async def query(self, filter: dict[str, Any]) -> list[dict[str, Any]]:
        path = f"databases/{self.cfg.database_id}/query"
        payload: dict[str, Any] = {"filter": filter, "page_size": PAGE_SIZE}
        results: list[dict[str, Any]] = []
        while True:
            data = await self._request("POST", path, payload)
            results.extend(data.get("results", []))
            cursor = data.get("next_cursor")
            if not data.get("has_more") or not cursor:
                break
            payload["start_cursor"] = cursor
        log.debug(f"Query {filter} returned {len(results)} page(s)")
        return results

    async def create(self, properties: dict[str, Any]) -> dict[str, Any]:
        return await self._request(
            "POST",
            "pages",
            {"parent": {"database_id": self.cfg.database_id}, "properties": properties},
        )

    async def update(self, page_id: str, properties: dict[str, Any]) -> None:
        await self._request("PATCH", f"pages/{page_id}", {"properties": properties})

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class DryRunStore(TaskStore):
    """Pass reads through to *inner*, log writes without sending them."""

    name = "dry-run"

    def __init__(self, inner: TaskStore) -> None:
        self.inner = inner

    async def query(self, filter: dict[str, Any]) -> list[dict[str, Any]]:
        return await self.inner.query(filter)

    async def create(self, properties: dict[str, Any]) -> dict[str, Any]:
        page_id = f"dry-run-{uuid.uuid4().hex[:8]}"
        log.dry_run(f"create page with {len(properties)} properties ({page_id})")
        return {"id": page_id, "properties": properties}

    async def update(self, page_id: str, properties: dict[str, Any]) -> None:
        log.dry_run(f"update {page_id}: {', '.join(properties)}")

    async def aclose(self) -> None:
        await self.inner.aclose()
