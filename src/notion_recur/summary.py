"""Run summary rendering."""

from __future__ import annotations

from notion_recur import log
from notion_recur.runner import RunStatistics


def show_summary(stats: RunStatistics, *, dry_run: bool = False) -> None:
    """Print the final run summary."""
    failures = stats.recurring_parse_failures + stats.archive_failures + stats.recur_creation_failures

    log.console.print("")
    log.console.print("[bold]============================================[/bold]")
    title = "[yellow]Run complete (dry run)[/yellow]" if dry_run else "[green]Run complete![/green]"
    log.console.print(f"{title} {stats.message}")
    log.console.print("[bold]============================================[/bold]")
    log.console.print(f"Completed tasks:           {stats.total_completed}")
    log.console.print(f"Recurring processed:       {stats.recurring_processed}")
    log.console.print(f"Recurring parse failures:  {stats.recurring_parse_failures}")
    log.console.print(f"Archived tasks:            {stats.archived}")
    log.console.print(f"Archive failures:          {stats.archive_failures}")
    log.console.print(f"Recurred tasks:            {stats.recurred}")
    log.console.print(f"Recur creation failures:   {stats.recur_creation_failures}")

    if failures:
        log.console.print("")
        log.console.print(
            f"[red]{failures} task(s) failed[/red], {stats.error_cards} new error card(s) created"
        )

    log.console.print("[bold]============================================[/bold]")
