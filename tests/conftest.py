"""Shared fixtures for notion-recur tests.

Remote calls go to an in-memory FakeStore that understands the Notion
filter shapes the pipeline sends.
"""

from __future__ import annotations

import copy
from typing import Any

import pytest

from notion_recur.config import Config
from notion_recur.errors import StoreError
from notion_recur.store import TaskStore


class FakeStore(TaskStore):
    """In-memory Notion database.

    ``fail_update`` / ``fail_create`` hold page ids or titles whose writes
    raise :class:`StoreError`; ``fail_query`` makes every query fail.
    """

    name = "fake"

    def __init__(self, pages: list[dict[str, Any]] | None = None) -> None:
        self.pages: dict[str, dict[str, Any]] = {}
        for page in pages or []:
            self.pages[page["id"]] = copy.deepcopy(page)
        self.calls: list[tuple[str, Any]] = []
        self.fail_update: set[str] = set()
        self.fail_create: set[str] = set()
        self.fail_query = False
        self.closed = False
        self._next = 0

    # ── helpers ──────────────────────────────────────────────────

    @staticmethod
    def title_of(properties: dict[str, Any]) -> str:
        segments = (properties.get("Name") or {}).get("title") or []
        return "".join(s.get("text", {}).get("content", "") for s in segments)

    @staticmethod
    def status_of(properties: dict[str, Any]) -> str | None:
        prop = properties.get("Status") or {}
        for kind in ("select", "status"):
            if prop.get(kind):
                return prop[kind]["name"]
        return None

    def calls_of(self, op: str) -> list[Any]:
        return [args for name, args in self.calls if name == op]

    def by_title(self, title: str) -> list[dict[str, Any]]:
        return [p for p in self.pages.values() if self.title_of(p["properties"]) == title]

    def _matches(self, page: dict[str, Any], flt: dict[str, Any]) -> bool:
        props = page["properties"]
        if "title" in flt:
            return self.title_of(props) == flt["title"]["equals"]
        for kind in ("select", "status"):
            if kind in flt:
                return self.status_of(props) == flt[kind]["equals"]
        raise AssertionError(f"Unsupported filter {flt}")

    # ── TaskStore ────────────────────────────────────────────────

    async def query(self, filter: dict[str, Any]) -> list[dict[str, Any]]:
        self.calls.append(("query", filter))
        if self.fail_query:
            raise StoreError("query failed", status=502)
        return [copy.deepcopy(p) for p in self.pages.values() if self._matches(p, filter)]

    async def create(self, properties: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("create", properties))
        if self.title_of(properties) in self.fail_create:
            raise StoreError("create failed", status=400)
        self._next += 1
        page = {"id": f"new-{self._next}", "properties": copy.deepcopy(properties)}
        self.pages[page["id"]] = page
        return copy.deepcopy(page)

    async def update(self, page_id: str, properties: dict[str, Any]) -> None:
        self.calls.append(("update", (page_id, properties)))
        if page_id in self.fail_update:
            raise StoreError("update failed", status=409)
        self.pages[page_id]["properties"].update(copy.deepcopy(properties))

    async def aclose(self) -> None:
        self.closed = True


def _make_page(
    id: str,
    name: str = "",
    status: str = "Done 🙌",
    recurring: str | None = None,
    date_completed: str | None = "2024-03-01",
    date_recurring: str | None = None,
    **extra: Any,
) -> dict[str, Any]:
    properties: dict[str, Any] = {
        "Name": {"type": "title", "title": [{"text": {"content": name or f"Task {id}"}}]},
        "Status": {"type": "select", "select": {"name": status}},
        "Recurring": {
            "type": "rich_text",
            "rich_text": [{"text": {"content": recurring}}] if recurring else [],
        },
        "Date Completed": {
            "type": "date",
            "date": {"start": date_completed} if date_completed else None,
        },
        "Date Recurring": {
            "type": "date",
            "date": {"start": date_recurring} if date_recurring else None,
        },
        "Date Created": {"type": "created_time", "created_time": "2024-02-01T09:00:00.000Z"},
    }
    properties.update(extra)
    return {"id": id, "object": "page", "properties": properties}


@pytest.fixture
def make_page():
    """Factory fixture that builds Notion page objects."""
    return _make_page


@pytest.fixture
def cfg() -> Config:
    return Config(auth_token="secret_test", database_id="db-1", throttle_seconds=0)


@pytest.fixture
def fake_store():
    """Factory fixture that creates a FakeStore from pages."""
    return FakeStore
