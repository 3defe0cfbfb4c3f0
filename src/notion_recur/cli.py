"""notion-recur CLI: one nightly run, meant for cron or a scheduled job.

Installed as ``notion-recur`` console_script.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date, datetime

import click

from notion_recur import __version__
from notion_recur.config import Config, load_env_file
from notion_recur.errors import ConfigError, RunError
from notion_recur.runner import RunCoordinator, RunStatistics

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])


@click.command(context_settings=CONTEXT_SETTINGS)
@click.option("--dry-run", is_flag=True, help="Read tasks but do not write anything")
@click.option(
    "--as-of",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Date used for due checks (default: today)",
)
@click.option("--throttle-ms", type=click.IntRange(min=0), default=None, help="Pause after each write")
@click.option(
    "--env-file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Dotenv file to load (default: nearest .env)",
)
@click.option("-v", "--verbose", is_flag=True, help="Show debug output")
@click.version_option(__version__, prog_name="notion-recur")
def main(
    dry_run: bool,
    as_of: datetime | None,
    throttle_ms: int | None,
    env_file: str | None,
    verbose: bool,
) -> None:
    """Completion-driven recurrence for a Notion task board.

    Archives completed tasks, dates recurring ones from their completion
    date, and recreates recurring tasks whose date has arrived.

    \b
    ENVIRONMENT:
      NOTION_API_TOKEN          Notion integration token (required)
      TASK_DATABASE_ID          Task database id (required)
      RECUR_COMPLETED_STATUS    Status label of completed tasks
      RECUR_STATUS_KIND         "select" or "status"
      RECUR_NEW_STATUS          Status label of recreated tasks
      RECUR_EXCLUDE_PROPERTIES  Extra properties not copied to new tasks
      RECUR_THROTTLE_MS         Pause after each write (default 334)

    Variables may also come from a .env file; values already set in the
    environment take precedence.
    """
    from notion_recur import log
    from notion_recur.summary import show_summary

    log.set_verbose(verbose)
    if load_env_file(env_file):
        log.debug("Loaded variables from dotenv file")

    try:
        cfg = Config.from_env(
            dry_run=dry_run,
            verbose=verbose,
            throttle_seconds=throttle_ms / 1000 if throttle_ms is not None else None,
        )
        cfg.validate()
    except ConfigError as e:
        log.error(str(e))
        sys.exit(1)

    today = as_of.date() if as_of else None

    try:
        stats = asyncio.run(_run(cfg, today))
    except RunError as e:
        log.error(f"A critical error occurred: {e}")
        sys.exit(1)

    show_summary(stats, dry_run=cfg.dry_run)


async def _run(cfg: Config, today: date | None) -> RunStatistics:
    from notion_recur.store import DryRunStore, NotionStore, TaskStore

    store: TaskStore = NotionStore(cfg)
    if cfg.dry_run:
        store = DryRunStore(store)

    async with store:
        return await RunCoordinator(cfg, store, today=today).run()
