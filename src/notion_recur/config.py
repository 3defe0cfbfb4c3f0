"""Configuration defaults, env vars, and runtime options for notion-recur."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from dotenv import find_dotenv, load_dotenv

from notion_recur.errors import ConfigError

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"

STATUS_KINDS = ("select", "status")

# Time-sensitive properties that must never be copied onto a new recurring task.
DEFAULT_PROPERTIES_TO_EXCLUDE: tuple[str, ...] = (
    "Date Created",
    "Date Completed",
    "Date Recurring",
)

# Notion documents an average of three requests per second.
DEFAULT_THROTTLE_SECONDS = 0.334


def load_env_file(path: str | None = None) -> bool:
    """Load KEY=value pairs from a dotenv file into ``os.environ``.

    Without *path* the nearest ``.env`` from the working directory upward is
    used. Variables already present in the environment are kept. Returns
    whether a file was loaded.
    """
    path = path or find_dotenv(usecwd=True)
    if not path:
        return False
    return load_dotenv(path, override=False)


@dataclass
class Config:
    """Runtime configuration, built once at process start and passed down."""

    # Credentials
    auth_token: str = ""
    database_id: str = ""

    # Status buckets
    status_kind: str = "select"
    completed_status: str = "Done 🙌"
    archive_status: str = "Archive"
    recurring_archive_status: str = "Recurring Archive"
    new_recurring_status: str = "New Recurring"
    error_card_status: str = ""

    # Property names
    name_property: str = "Name"
    status_property: str = "Status"
    recurring_property: str = "Recurring"
    date_recurring_property: str = "Date Recurring"
    date_completed_property: str = "Date Completed"

    properties_to_exclude: list[str] = field(
        default_factory=lambda: list(DEFAULT_PROPERTIES_TO_EXCLUDE)
    )

    # Execution
    throttle_seconds: float = DEFAULT_THROTTLE_SECONDS
    request_timeout: float = 30.0
    dry_run: bool = False
    verbose: bool = False

    def __post_init__(self) -> None:
        if not self.error_card_status:
            self.error_card_status = self.new_recurring_status
        # The defaults are always excluded, extra names are appended.
        merged = list(DEFAULT_PROPERTIES_TO_EXCLUDE)
        for name in self.properties_to_exclude:
            if name and name not in merged:
                merged.append(name)
        self.properties_to_exclude = merged

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> Config:
        """Build a config from the process environment plus explicit overrides."""
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {
            "auth_token": env.get("NOTION_API_TOKEN", ""),
            "database_id": env.get("TASK_DATABASE_ID", ""),
        }
        if env.get("RECUR_COMPLETED_STATUS"):
            values["completed_status"] = env["RECUR_COMPLETED_STATUS"]
        if env.get("RECUR_STATUS_KIND"):
            values["status_kind"] = env["RECUR_STATUS_KIND"].strip().lower()
        if env.get("RECUR_NEW_STATUS"):
            values["new_recurring_status"] = env["RECUR_NEW_STATUS"]
        if env.get("RECUR_EXCLUDE_PROPERTIES"):
            values["properties_to_exclude"] = [
                item.strip() for item in env["RECUR_EXCLUDE_PROPERTIES"].split(",")
            ]
        if env.get("RECUR_THROTTLE_MS"):
            values["throttle_seconds"] = _parse_number(env["RECUR_THROTTLE_MS"], "RECUR_THROTTLE_MS") / 1000
        if env.get("RECUR_REQUEST_TIMEOUT"):
            values["request_timeout"] = _parse_number(env["RECUR_REQUEST_TIMEOUT"], "RECUR_REQUEST_TIMEOUT")

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def validate(self) -> None:
        """Raise :class:`ConfigError` if the config cannot drive a run."""
        if not self.auth_token:
            raise ConfigError("NOTION_API_TOKEN is not set")
        if not self.database_id:
            raise ConfigError("TASK_DATABASE_ID is not set")
        if self.status_kind not in STATUS_KINDS:
            raise ConfigError(
                f"Unknown status kind {self.status_kind!r}. Valid kinds: {', '.join(STATUS_KINDS)}."
            )
        if self.throttle_seconds < 0:
            raise ConfigError("Throttle delay cannot be negative")

    # ── Notion payload builders ──────────────────────────────────

    def status_value(self, label: str) -> dict[str, Any]:
        """Property value that sets the status field to *label*."""
        return {self.status_kind: {"name": label}}

    def status_filter(self, label: str) -> dict[str, Any]:
        return {"property": self.status_property, self.status_kind: {"equals": label}}

    def title_filter(self, text: str) -> dict[str, Any]:
        return {"property": self.name_property, "title": {"equals": text}}


def _parse_number(raw: str, name: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
