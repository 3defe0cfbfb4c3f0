"""Batch stages: date recurring tasks, archive tasks, recreate due tasks.

Every stage fans out one coroutine per task and joins them with an
all-settled barrier. A :class:`TaskFailure` raised by one task becomes a
failed :class:`Outcome`; any other exception is re-raised once the whole
batch has settled.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field

from notion_recur import log
from notion_recur.config import Config
from notion_recur.errors import ErrorKind, InvalidRecurringFormat, StoreError, TaskFailure
from notion_recur.failures import FailureTracker
from notion_recur.recurrence import compute_next_due, format_due, parse_interval
from notion_recur.store import TaskStore
from notion_recur.tasks.mapper import clone_properties
from notion_recur.tasks.model import Task


@dataclass
class Outcome:
    task_id: str
    ok: bool
    message: str = ""
    kind: ErrorKind | None = None
    new_id: str | None = None


@dataclass
class StageResult:
    stage: str
    outcomes: list[Outcome] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    @property
    def succeeded_ids(self) -> list[str]:
        return [o.task_id for o in self.outcomes if o.ok]

    @property
    def failed_ids(self) -> list[str]:
        return [o.task_id for o in self.outcomes if not o.ok]

    @property
    def succeeded(self) -> int:
        return len(self.succeeded_ids)

    @property
    def failed(self) -> int:
        return len(self.failed_ids)

    def count_kind(self, kind: ErrorKind) -> int:
        return sum(1 for o in self.outcomes if not o.ok and o.kind is kind)


async def settle_all(
    stage: str,
    tasks: list[Task],
    work: Callable[[Task], Awaitable[Outcome]],
) -> StageResult:
    """Run *work* for every task concurrently and collect outcomes."""
    results = await asyncio.gather(*(work(t) for t in tasks), return_exceptions=True)

    outcomes: list[Outcome] = []
    unexpected: BaseException | None = None
    for task, res in zip(tasks, results):
        if isinstance(res, TaskFailure):
            log.task_failed(stage, task.id, str(res))
            outcomes.append(Outcome(task.id, False, str(res), kind=res.kind))
        elif isinstance(res, BaseException):
            log.error(f"{stage}: unexpected error for task {task.id}: {res!r}")
            if unexpected is None:
                unexpected = res
        else:
            outcomes.append(res)

    if unexpected is not None:
        raise unexpected
    return StageResult(stage=stage, outcomes=outcomes)


class Stage:
    """Shared plumbing for stages that mutate the store."""

    name = "stage"

    def __init__(self, store: TaskStore, cfg: Config, tracker: FailureTracker) -> None:
        self.store = store
        self.cfg = cfg
        self.tracker = tracker

    async def _throttle(self) -> None:
        if self.cfg.throttle_seconds > 0:
            await asyncio.sleep(self.cfg.throttle_seconds)

    async def _fail(self, task: Task, kind: ErrorKind, cause: BaseException) -> TaskFailure:
        await self.tracker.record_failure(task.id, task.name, kind)
        return TaskFailure(task.id, task.name, kind, cause)


class RecurrenceStage(Stage):
    """Compute and store ``Date Recurring`` for completed recurring tasks."""

    name = "Set date recurring"

    async def run(self, tasks: list[Task]) -> StageResult:
        return await settle_all(self.name, tasks, self._set_date)

    async def _set_date(self, task: Task) -> Outcome:
        if task.date_recurring is not None:
            return Outcome(task.id, True, "date recurring already set")

        try:
            if task.date_completed is None:
                raise InvalidRecurringFormat(task.recurring_spec)
            due = compute_next_due(task.date_completed, parse_interval(task.recurring_spec))
        except InvalidRecurringFormat as e:
            raise await self._fail(task, ErrorKind.INVALID_RECURRING, e) from e

        properties = {
            self.cfg.date_recurring_property: {"type": "date", "date": {"start": format_due(due)}},
        }
        try:
            await self.store.update(task.id, properties)
        except StoreError as e:
            # Without a due date the task must stay in the completed bucket.
            raise await self._fail(task, ErrorKind.ARCHIVE_FAILED, e) from e

        task.date_recurring = due
        await self._throttle()
        log.task_activity(task.id, "date recurring set")
        return Outcome(task.id, True, f"date recurring set to {format_due(due)}")


class ArchivalStage(Stage):
    """Move tasks into the archive buckets."""

    name = "Archive tasks"

    async def run(
        self,
        tasks: list[Task],
        *,
        recur: bool,
        exclude: Iterable[str] = (),
    ) -> StageResult:
        """Archive *tasks* except those whose id is in *exclude*.

        With *recur*, recurring tasks go to the recurring archive and the
        rest to the plain archive; otherwise everything goes to the plain
        archive.
        """
        excluded = set(exclude)
        to_archive = [t for t in tasks if t.id not in excluded]

        async def archive(task: Task) -> Outcome:
            return await self._archive(task, recur)

        result = await settle_all(self.name, to_archive, archive)
        result.skipped = [t.id for t in tasks if t.id in excluded]
        return result

    def target_status(self, task: Task, recur: bool) -> str:
        if recur and task.is_recurring:
            return self.cfg.recurring_archive_status
        return self.cfg.archive_status

    async def _archive(self, task: Task, recur: bool) -> Outcome:
        status = self.target_status(task, recur)
        try:
            await self.store.update(task.id, {self.cfg.status_property: self.cfg.status_value(status)})
        except StoreError as e:
            raise await self._fail(task, ErrorKind.ARCHIVE_FAILED, e) from e

        task.status = status
        await self._throttle()
        log.task_activity(task.id, "archived")
        return Outcome(task.id, True, f"moved to {status}")


class RecreationStage(Stage):
    """Clone due tasks from the recurring archive into fresh tasks."""

    name = "Create recurring tasks"

    async def run(self, tasks: list[Task]) -> StageResult:
        return await settle_all(self.name, tasks, self._recreate)

    async def _recreate(self, task: Task) -> Outcome:
        properties = clone_properties(task, self.cfg)
        try:
            page = await self.store.create(properties)
        except StoreError as e:
            raise await self._fail(task, ErrorKind.RECUR_CREATION_FAILED, e) from e

        new_id = page.get("id", "")
        await self._throttle()
        log.task_activity(new_id, "created")
        return Outcome(task.id, True, f"recurring task created for {task.id}", new_id=new_id)
