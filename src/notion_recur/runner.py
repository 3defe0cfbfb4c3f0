"""Run coordinator: sequences both passes of a nightly run."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, fields
from datetime import date

from notion_recur import log
from notion_recur.config import Config
from notion_recur.errors import ErrorKind, RunError
from notion_recur.failures import FailureTracker, StoreErrorSink
from notion_recur.stages import ArchivalStage, RecreationStage, RecurrenceStage
from notion_recur.store import TaskStore
from notion_recur.tasks.mapper import map_records


@dataclass
class RunStatistics:
    total_completed: int = 0
    recurring_completed: int = 0
    recurring_parse_failures: int = 0
    recurring_write_failures: int = 0
    archived: int = 0
    archive_failures: int = 0
    recurred: int = 0
    recur_creation_failures: int = 0
    error_cards: int = 0

    def __add__(self, other: RunStatistics) -> RunStatistics:
        return RunStatistics(
            **{f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)}
        )

    @property
    def recurring_processed(self) -> int:
        return (
            self.recurring_completed
            - self.recurring_parse_failures
            - self.recurring_write_failures
        )

    @property
    def message(self) -> str:
        done = (
            "Archived and processed completed tasks."
            if self.total_completed > 0
            else "No completed tasks to archive."
        )
        recur = (
            " Created and archived recurring tasks."
            if self.recurred > 0
            else " No new recurring tasks created."
        )
        return done + recur

    def as_dict(self) -> dict[str, int | str]:
        data: dict[str, int | str] = {f.name: getattr(self, f.name) for f in fields(self)}
        data["recurring_processed"] = self.recurring_processed
        data["message"] = self.message
        return data


class RunCoordinator:
    """Drive completions then recurrences against one task store.

    Usage::

        coordinator = RunCoordinator(cfg, store)
        stats = await coordinator.run()
    """

    def __init__(
        self,
        cfg: Config,
        store: TaskStore,
        *,
        tracker: FailureTracker | None = None,
        today: date | None = None,
    ) -> None:
        self.cfg = cfg
        self.store = store
        self.tracker = tracker or FailureTracker(StoreErrorSink(store, cfg))
        self.today = today
        self.recurrence = RecurrenceStage(store, cfg, self.tracker)
        self.archival = ArchivalStage(store, cfg, self.tracker)
        self.recreation = RecreationStage(store, cfg, self.tracker)

    async def run(self) -> RunStatistics:
        """Run both passes. Raises :class:`RunError` if either aborts."""
        completions = await self._guarded("Process completed tasks", self.process_completions)
        recurrences = await self._guarded("Handle recurring tasks", self.process_recurrences)
        stats = completions + recurrences
        stats.error_cards = self.tracker.created
        return stats

    async def _guarded(
        self, context: str, step: Callable[[], Awaitable[RunStatistics]]
    ) -> RunStatistics:
        log.debug(f"{context}: starting")
        try:
            return await step()
        except Exception as e:
            log.pass_failed(context, e)
            raise RunError(context, e) from e

    async def process_completions(self) -> RunStatistics:
        """Date recurring tasks in the completed bucket, then archive them all."""
        records = await self.store.query(self.cfg.status_filter(self.cfg.completed_status))
        if not records:
            log.info("No completed tasks to process!")
            return RunStatistics()

        tasks = map_records(records, self.cfg)
        recurring = [t for t in tasks if t.is_recurring]
        log.info(f"Completed tasks: {len(tasks)} ({len(recurring)} recurring)")

        dated = await self.recurrence.run(recurring)
        archived = await self.archival.run(tasks, recur=True, exclude=dated.failed_ids)

        parse_failures = dated.count_kind(ErrorKind.INVALID_RECURRING)
        # Tasks whose due date could not be written were never moved out of Completed.
        write_failures = dated.failed - parse_failures
        return RunStatistics(
            total_completed=len(tasks),
            recurring_completed=len(recurring),
            recurring_parse_failures=parse_failures,
            recurring_write_failures=write_failures,
            archived=archived.succeeded,
            archive_failures=archived.failed + write_failures,
        )

    async def process_recurrences(self) -> RunStatistics:
        """Recreate due tasks from the recurring archive and archive the originals."""
        records = await self.store.query(self.cfg.status_filter(self.cfg.recurring_archive_status))
        if not records:
            log.info("No tasks in Recurring Archive!")
            return RunStatistics()

        today = self.today or date.today()
        tasks = map_records(records, self.cfg)
        for task in tasks:
            if task.date_recurring is None:
                log.debug(f"Task {task.id} has no date recurring, leaving it archived")
        due = [t for t in tasks if t.is_due(today)]
        if not due:
            log.info("No tasks to recur!")
            return RunStatistics()

        log.info(f"Tasks due on {today.isoformat()}: {len(due)}")
        created = await self.recreation.run(due)
        archived = await self.archival.run(due, recur=False, exclude=created.failed_ids)

        return RunStatistics(
            recurred=created.succeeded,
            recur_creation_failures=created.failed,
            archived=archived.succeeded,
            archive_failures=archived.failed,
        )
