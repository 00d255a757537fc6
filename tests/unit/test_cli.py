"""Tests for the mstodo-sync command line."""

from __future__ import annotations

import json
import re

import pytest
from typer.testing import CliRunner

from mstodo_sync import __version__
from mstodo_sync.cli import app
from mstodo_sync.cli.cmds import sync_cmds
from mstodo_sync.client.memory import MemoryTodoClient
from mstodo_sync.errors import RemoteTaskError
from mstodo_sync.models import RemoteTask

LIST_ID = "inbox-list"

runner = CliRunner()


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "data.json"
    path.write_text(
        json.dumps(
            {
                "taskIdLookup": {"a100001": "R1"},
                "taskIdIndex": 1,
                "todoListSync": {"listName": "Inbox", "listId": LIST_ID},
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def note(tmp_path):
    path = tmp_path / "Daily.md"
    path.write_text("# Daily\n- [ ] Buy milk\nCall Bob ^a100001\n", encoding="utf-8")
    return path


@pytest.fixture
def remote(monkeypatch) -> MemoryTodoClient:
    client = MemoryTodoClient()
    client.add_list(LIST_ID, "Inbox")
    client.add_task(LIST_ID, RemoteTask(id="R1", title="Call Bob (old)"))
    monkeypatch.setattr(sync_cmds, "_build_client", lambda dry_run: client)
    return client


def _invoke(settings_file, *args):
    return runner.invoke(app, ["--settings", str(settings_file), *args])


class TestRoot:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_no_command_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code == 0
        assert "push" in result.output


class TestPush:
    def test_writes_anchors_back(self, settings_file, note, remote):
        result = _invoke(settings_file, "push", str(note), "--lines", "2:3")

        assert result.exit_code == 0, result.output
        assert "1 created, 1 updated" in result.output
        lines = note.read_text(encoding="utf-8").split("\n")
        assert lines[0] == "# Daily"
        assert re.fullmatch(r"- \[ \] Buy milk  \^[0-9a-j]{4}00002", lines[1])
        assert lines[2] == "- [ ] Call Bob  ^a100001"
        assert lines[3] == ""

        assert remote.creates == [("create", LIST_ID, "Buy milk", "Created in file [[Daily]]")]
        assert remote.updates == [("update", LIST_ID, "R1", "Call Bob")]

        saved = json.loads(settings_file.read_text(encoding="utf-8"))
        assert saved["taskIdIndex"] == 2
        new_anchor = lines[1].rsplit("^", 1)[1]
        assert saved["taskIdLookup"][new_anchor] == "task-1"
        assert saved["taskIdLookup"]["a100001"] == "R1"

    def test_no_replace_prints_text(self, settings_file, note, remote):
        before = note.read_text(encoding="utf-8")
        result = _invoke(settings_file, "push", str(note), "--lines", "2", "--no-replace")

        assert result.exit_code == 0, result.output
        assert note.read_text(encoding="utf-8") == before
        assert "- [ ] Buy milk  ^" in result.output

    def test_push_one(self, settings_file, note, remote):
        result = _invoke(settings_file, "push-one", str(note), "--lines", "2")

        assert result.exit_code == 0, result.output
        assert [c[2] for c in remote.creates] == ["Buy milk"]

    def test_partial_failure_exit_code(self, settings_file, note, remote):
        remote.fail_on("Call Bob", RemoteTaskError("Throttled", status_code=429))

        result = _invoke(settings_file, "push", str(note), "--lines", "2:3")

        assert result.exit_code == sync_cmds.EXIT_PARTIAL
        assert "1 failed" in result.output
        lines = note.read_text(encoding="utf-8").split("\n")
        assert lines[2] == "- [ ] Call Bob  [sync failed] ^a100001"

    def test_empty_selection_is_an_error(self, settings_file, note, remote):
        result = _invoke(settings_file, "push", str(note), "--lines", "10:12")

        assert result.exit_code == sync_cmds.EXIT_ERROR
        assert "nothing is selected" in result.output.lower()
        assert remote.calls == []

    def test_missing_token(self, settings_file, note, mock_env_none):
        result = _invoke(settings_file, "push", str(note), "--lines", "2")

        assert result.exit_code == sync_cmds.EXIT_ERROR
        assert "MSTODO_ACCESS_TOKEN" in result.output

    def test_dry_run_leaves_file_and_settings(self, settings_file, note):
        note_before = note.read_text(encoding="utf-8")
        settings_before = settings_file.read_text(encoding="utf-8")

        result = _invoke(settings_file, "push", str(note), "--lines", "2:3", "--dry-run")

        assert result.exit_code == 0, result.output
        assert note.read_text(encoding="utf-8") == note_before
        assert settings_file.read_text(encoding="utf-8") == settings_before
        assert "- [ ] Call Bob  ^a100001" in result.output


    def test_dry_run_with_list_name_only(self, tmp_path, note):
        settings_file = tmp_path / "named.json"
        settings_file.write_text(
            json.dumps({"todoListSync": {"listName": "Inbox"}}), encoding="utf-8"
        )

        result = _invoke(settings_file, "push", str(note), "--lines", "2", "--dry-run")

        assert result.exit_code == 0, result.output
        assert "1 created" in result.output


class TestToday:
    def test_prints_lists(self, settings_file, remote):
        result = _invoke(settings_file, "today")

        assert result.exit_code == 0, result.output
        assert "**Inbox**" in result.output
        assert "- [ ] Call Bob (old)" in result.output
        assert remote.calls[0][0] == "get_lists"

    def test_appends_to_output(self, settings_file, remote, tmp_path):
        out = tmp_path / "today.md"
        out.write_text("# Log\n", encoding="utf-8")

        result = _invoke(settings_file, "today", "--output", str(out))

        assert result.exit_code == 0, result.output
        text = out.read_text(encoding="utf-8")
        assert text.startswith("# Log\n**Inbox**\n")

    def test_no_lists(self, settings_file, monkeypatch):
        monkeypatch.setattr(sync_cmds, "_build_client", lambda dry_run: MemoryTodoClient())

        result = _invoke(settings_file, "today")

        assert result.exit_code == sync_cmds.EXIT_ERROR
        assert "No task lists" in result.output


class TestAnchors:
    def test_json(self, settings_file):
        result = _invoke(settings_file, "anchors", "--json")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "taskIdLookup": {"a100001": "R1"},
            "taskIdIndex": 1,
        }

    def test_table(self, settings_file):
        result = _invoke(settings_file, "anchors")

        assert result.exit_code == 0, result.output
        assert "^a100001" in result.output

    def test_bad_settings_file(self, tmp_path):
        bad = tmp_path / "data.json"
        bad.write_text("{not json", encoding="utf-8")

        result = _invoke(bad, "anchors")

        assert result.exit_code == 1
