"""Normalize raw Notion pages into :class:`Task` instances."""

from __future__ import annotations

from datetime import date
from typing import Any

from notion_recur import log
from notion_recur.config import Config
from notion_recur.tasks.model import Task


def _rich_text(prop: dict[str, Any] | None, key: str) -> str | None:
    """Concatenate the text segments of a ``title``/``rich_text`` property."""
    if not prop:
        return None
    parts: list[str] = []
    for segment in prop.get(key) or []:
        text = segment.get("plain_text")
        if text is None:
            text = (segment.get("text") or {}).get("content", "")
        parts.append(text)
    joined = "".join(parts).strip()
    return joined or None


def _date_start(prop: dict[str, Any] | None) -> date | None:
    if not prop:
        return None
    start = (prop.get("date") or {}).get("start")
    if not start:
        return None
    try:
        return date.fromisoformat(start[:10])
    except ValueError:
        log.warn(f"Ignoring unparseable date value {start!r}")
        return None


def _status_name(prop: dict[str, Any] | None) -> str | None:
    if not prop:
        return None
    for kind in ("select", "status"):
        value = prop.get(kind)
        if value:
            return value.get("name")
    return None


def map_record(record: dict[str, Any], cfg: Config) -> Task:
    """Build a :class:`Task` from one Notion page object."""
    props: dict[str, Any] = dict(record.get("properties") or {})
    return Task(
        id=record["id"],
        name=_rich_text(props.get(cfg.name_property), "title") or "",
        recurring_spec=_rich_text(props.get(cfg.recurring_property), "rich_text"),
        date_recurring=_date_start(props.get(cfg.date_recurring_property)),
        date_completed=_date_start(props.get(cfg.date_completed_property)),
        status=_status_name(props.get(cfg.status_property)),
        raw_properties=props,
    )


def map_records(records: list[dict[str, Any]], cfg: Config) -> list[Task]:
    return [map_record(r, cfg) for r in records]


def clone_properties(task: Task, cfg: Config) -> dict[str, Any]:
    """Copy *task*'s property bag for a new recurring task.

    Excluded properties are dropped and the status is set to the
    configured new-recurring label.
    """
    props = dict(task.raw_properties)
    props[cfg.status_property] = cfg.status_value(cfg.new_recurring_status)
    for name in cfg.properties_to_exclude:
        props.pop(name, None)
    return props
