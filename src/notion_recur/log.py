"""Run log for notion-recur, rendered with Rich.

Every line carries a time stamp so cron mail and CI logs read in order.
Diagnostics go to stderr, task activity and the summary to stdout.
"""

from __future__ import annotations

from datetime import datetime

from rich.console import Console
from rich.markup import escape

console = Console(highlight=False)
_err_console = Console(highlight=False, stderr=True)

_verbose = False


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = enabled


def _stamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def _emit(tag: str, style: str, msg: str, *, err: bool = False) -> None:
    target = _err_console if err else console
    # Messages carry task names and API bodies, never markup.
    target.print(f"[dim]{_stamp()}[/dim] [{style}]\\[{tag}][/{style}] {escape(msg)}")


def info(msg: str) -> None:
    _emit("INFO", "blue", msg)


def success(msg: str) -> None:
    _emit("OK", "green", msg)


def warn(msg: str) -> None:
    _emit("WARN", "yellow", msg)


def error(msg: str) -> None:
    _emit("ERROR", "red", msg, err=True)


def debug(msg: str) -> None:
    if _verbose:
        _emit("DEBUG", "dim", msg)


# ── task lifecycle ───────────────────────────────────────────────


def task_activity(task_id: str, action: str) -> None:
    """One successful remote mutation for *task_id*."""
    success(f"Task {task_id} successfully {action}.")


def task_failed(stage: str, task_id: str, reason: str) -> None:
    """A classified per-task failure; the batch carries on."""
    _emit("FAIL", "red", f"{stage}: task {task_id}: {reason}", err=True)


def card_created(message: str) -> None:
    warn(f"Created error card: {message}")


def card_exists(task_id: str) -> None:
    info(f"Error card already created for {task_id}")


def card_failed(task_id: str, task_name: str, exc: BaseException) -> None:
    error(f"Failed to create error card for {task_id} with name {task_name}: {exc}")


# ── run level ────────────────────────────────────────────────────


def dry_run(action: str) -> None:
    _emit("DRY-RUN", "magenta", f"Would {action}")


def rate_limited(method: str, path: str) -> None:
    warn(f"Notion rate limit hit on {method} {path}")


def pass_failed(context: str, exc: BaseException) -> None:
    """A whole pass aborted; the run exits non-zero after this."""
    error(f"{context} failed: {exc}")
