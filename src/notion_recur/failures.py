"""Per-task failure reporting through durable error cards."""

from __future__ import annotations

from abc import ABC, abstractmethod

from notion_recur import log
from notion_recur.config import Config
from notion_recur.errors import ErrorKind
from notion_recur.store import TaskStore

_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.INVALID_RECURRING: "Recurring format is invalid for task {id} with name {name}.",
    ErrorKind.RECUR_CREATION_FAILED: "Failed to create recurring task for task {id} with name {name}.",
    ErrorKind.ARCHIVE_FAILED: "Failed to archive task {id} with name {name}.",
}


def error_message(kind: ErrorKind, task_id: str, task_name: str) -> str:
    return _MESSAGES[kind].format(id=task_id, name=task_name)


class ErrorSink(ABC):
    """Append-only destination for error cards."""

    @abstractmethod
    async def exists(self, message: str) -> bool:
        ...

    @abstractmethod
    async def append(self, message: str) -> None:
        ...


class StoreErrorSink(ErrorSink):
    """Store error cards as pages in the task database itself."""

    def __init__(self, store: TaskStore, cfg: Config) -> None:
        self.store = store
        self.cfg = cfg

    async def exists(self, message: str) -> bool:
        pages = await self.store.query(self.cfg.title_filter(message))
        return len(pages) > 0

    async def append(self, message: str) -> None:
        properties = {
            self.cfg.name_property: {"title": [{"text": {"content": message}}]},
            self.cfg.status_property: self.cfg.status_value(self.cfg.error_card_status),
        }
        await self.store.create(properties)


class FailureTracker:
    """Record per-task failures as deduplicated error cards.

    Dedup is by card message: the sink is checked for an existing card
    first, and messages already recorded during this run are skipped
    without a lookup. Sink errors are logged, never raised.
    """

    def __init__(self, sink: ErrorSink) -> None:
        self.sink = sink
        self._recorded: set[str] = set()
        self.created = 0

    async def record_failure(self, task_id: str, task_name: str, kind: ErrorKind) -> None:
        message = error_message(kind, task_id, task_name)
        if message in self._recorded:
            log.debug(f"Error card already recorded this run for {task_id}")
            return
        try:
            if await self.sink.exists(message):
                log.card_exists(task_id)
            else:
                await self.sink.append(message)
                self.created += 1
                log.card_created(message)
            self._recorded.add(message)
        except Exception as e:
            log.card_failed(task_id, task_name, e)
