"""Tests for notion_recur.config.Config defaults, env loading and validation."""

from __future__ import annotations

import os

import pytest

from notion_recur.config import (
    DEFAULT_PROPERTIES_TO_EXCLUDE,
    DEFAULT_THROTTLE_SECONDS,
    Config,
    load_env_file,
)
from notion_recur.errors import ConfigError


def test_defaults():
    cfg = Config()
    assert cfg.completed_status == "Done 🙌"
    assert cfg.status_kind == "select"
    assert cfg.new_recurring_status == "New Recurring"
    assert cfg.properties_to_exclude == list(DEFAULT_PROPERTIES_TO_EXCLUDE)
    assert cfg.throttle_seconds == pytest.approx(DEFAULT_THROTTLE_SECONDS)


def test_error_card_status_follows_new_recurring_status():
    assert Config(new_recurring_status="Inbox").error_card_status == "Inbox"
    assert Config(error_card_status="Errors").error_card_status == "Errors"


def test_exclusions_are_mutable_copies():
    """Each Config instance gets its own list (not a shared reference)."""
    a = Config()
    b = Config()
    a.properties_to_exclude.append("Custom")
    assert "Custom" not in b.properties_to_exclude


def test_default_exclusions_cannot_be_dropped():
    cfg = Config(properties_to_exclude=["Notes"])
    assert cfg.properties_to_exclude == [*DEFAULT_PROPERTIES_TO_EXCLUDE, "Notes"]


class TestFromEnv:
    def test_reads_credentials(self):
        cfg = Config.from_env({"NOTION_API_TOKEN": "tok", "TASK_DATABASE_ID": "db"})
        assert cfg.auth_token == "tok"
        assert cfg.database_id == "db"

    def test_reads_overrides(self):
        cfg = Config.from_env(
            {
                "RECUR_COMPLETED_STATUS": "Done",
                "RECUR_STATUS_KIND": " Status ",
                "RECUR_NEW_STATUS": "Todo",
                "RECUR_EXCLUDE_PROPERTIES": "Notes, Assignee",
                "RECUR_THROTTLE_MS": "500",
                "RECUR_REQUEST_TIMEOUT": "12.5",
            }
        )
        assert cfg.completed_status == "Done"
        assert cfg.status_kind == "status"
        assert cfg.new_recurring_status == "Todo"
        assert cfg.properties_to_exclude[-2:] == ["Notes", "Assignee"]
        assert cfg.throttle_seconds == pytest.approx(0.5)
        assert cfg.request_timeout == pytest.approx(12.5)

    def test_explicit_overrides_win_and_none_is_ignored(self):
        cfg = Config.from_env({"RECUR_THROTTLE_MS": "500"}, throttle_seconds=None, dry_run=True)
        assert cfg.throttle_seconds == pytest.approx(0.5)
        assert cfg.dry_run is True

    def test_uses_process_environment(self, monkeypatch):
        monkeypatch.setenv("NOTION_API_TOKEN", "from-env")
        monkeypatch.delenv("TASK_DATABASE_ID", raising=False)
        cfg = Config.from_env()
        assert cfg.auth_token == "from-env"
        assert cfg.database_id == ""

    def test_bad_number(self):
        with pytest.raises(ConfigError, match="RECUR_THROTTLE_MS"):
            Config.from_env({"RECUR_THROTTLE_MS": "fast"})


class TestLoadEnvFile:
    @pytest.fixture(autouse=True)
    def clean(self, monkeypatch):
        for name in ("RECUR_COMPLETED_STATUS", "RECUR_THROTTLE_MS"):
            monkeypatch.setenv(name, "")
            monkeypatch.delenv(name)

    def test_found_from_subdirectory(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("RECUR_COMPLETED_STATUS=Finished\n")
        nested = tmp_path / "jobs" / "nightly"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        assert load_env_file() is True
        assert Config.from_env().completed_status == "Finished"

    def test_existing_variables_are_kept(self, tmp_path, monkeypatch):
        path = tmp_path / "job.env"
        path.write_text("RECUR_THROTTLE_MS=900\n")
        monkeypatch.setenv("RECUR_THROTTLE_MS", "100")

        load_env_file(str(path))
        assert os.environ["RECUR_THROTTLE_MS"] == "100"

    def test_no_file_found(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert load_env_file() is False


class TestValidate:
    def test_valid(self, cfg):
        cfg.validate()

    def test_missing_token(self):
        with pytest.raises(ConfigError, match="NOTION_API_TOKEN"):
            Config(database_id="db").validate()

    def test_missing_database(self):
        with pytest.raises(ConfigError, match="TASK_DATABASE_ID"):
            Config(auth_token="tok").validate()

    def test_unknown_status_kind(self):
        with pytest.raises(ConfigError, match="status kind"):
            Config(auth_token="tok", database_id="db", status_kind="multi_select").validate()

    def test_negative_throttle(self):
        with pytest.raises(ConfigError):
            Config(auth_token="tok", database_id="db", throttle_seconds=-1).validate()


class TestPayloads:
    def test_status_filter_select(self, cfg):
        assert cfg.status_filter("Archive") == {"property": "Status", "select": {"equals": "Archive"}}

    def test_status_filter_status_kind(self):
        cfg = Config(status_kind="status")
        assert cfg.status_filter("Archive") == {"property": "Status", "status": {"equals": "Archive"}}

    def test_title_filter(self, cfg):
        assert cfg.title_filter("x") == {"property": "Name", "title": {"equals": "x"}}

    def test_status_value(self, cfg):
        assert cfg.status_value("Archive") == {"select": {"name": "Archive"}}
