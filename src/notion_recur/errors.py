"""Error taxonomy for the recurrence pipeline and remote store failures."""

from __future__ import annotations

from enum import Enum

RATE_LIMIT_PATTERNS: tuple[str, ...] = (
    "rate_limited",
    "rate limit",
    "too many requests",
)


class ErrorKind(str, Enum):
    """Per-task failure classes that produce an error card."""

    INVALID_RECURRING = "InvalidRecurringFormat"
    RECUR_CREATION_FAILED = "RecurCreationFailed"
    ARCHIVE_FAILED = "ArchiveFailed"


class RecurError(Exception):
    """Base class for every error raised by notion_recur."""


class ConfigError(RecurError):
    """Configuration is missing or invalid."""


class StoreError(RecurError):
    """A remote store call failed."""

    def __init__(self, message: str, *, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body

    @property
    def rate_limited(self) -> bool:
        return looks_like_rate_limit(self.status, self.body)


class InvalidRecurringFormat(RecurError):
    """A recurring spec does not match ``<integer> <unit>``."""

    def __init__(self, spec: str | None) -> None:
        super().__init__(f"Invalid recurring format: {spec!r}")
        self.spec = spec


class TaskFailure(RecurError):
    """A classified failure of one task inside a stage.

    Carries the task identity so downstream stages can exclude it.
    """

    def __init__(
        self,
        task_id: str,
        task_name: str,
        kind: ErrorKind,
        cause: BaseException | None = None,
    ) -> None:
        detail = f": {cause}" if cause else ""
        super().__init__(f"{kind.value} for task {task_id} ({task_name}){detail}")
        self.task_id = task_id
        self.task_name = task_name
        self.kind = kind
        self.cause = cause


class RunError(RecurError):
    """A pass of the run aborted on an unclassified error."""

    def __init__(self, context: str, cause: BaseException) -> None:
        super().__init__(f"{context} failed: {cause}")
        self.context = context
        self.cause = cause


def looks_like_rate_limit(status: int | None, text: str = "") -> bool:
    """Return ``True`` when a response looks like an API rate limit."""
    if status == 429:
        return True
    if not text:
        return False
    lower = text.lower()
    return any(pattern in lower for pattern in RATE_LIMIT_PATTERNS)
