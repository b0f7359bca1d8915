"""Tests for the Typer command-line interface."""

import json

import pytest
from typer.testing import CliRunner

from chronoglass.cli import app
from chronoglass.reporting import format_balance
from conftest import HOUR_MS


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, data_path):
    def _invoke(*args, input=None):
        return runner.invoke(app, [*args, "--data", str(data_path)], input=input)

    return _invoke


class TestSessionCommands:
    def test_start_task_stop(self, invoke, data_path):
        result = invoke("start", "--title", "Coding")
        assert result.exit_code == 0, result.output
        assert "Started session" in result.output

        assert invoke("task", "Review").exit_code == 0
        status = invoke("status")
        assert "Working:" in status.output
        assert "Current task: Review" in status.output

        stopped = invoke("stop")
        assert stopped.exit_code == 0
        assert "Stopped after" in stopped.output

        raw = json.loads(data_path.read_text(encoding="utf-8"))
        (session,) = raw["sessions"]
        assert session["endTime"] is not None
        assert [sub["title"] for sub in session["subActivities"]] == ["Coding", "Review"]

    def test_double_start_fails(self, invoke):
        invoke("start")
        result = invoke("start")
        assert result.exit_code == 1
        assert "already active" in result.output

    def test_stop_without_session_fails(self, invoke):
        result = invoke("stop")
        assert result.exit_code == 1
        assert "No active session" in result.output

    def test_backdated_start(self, invoke, data_path):
        assert invoke("start", "--at", "2024-01-02 09:30").exit_code == 0
        raw = json.loads(data_path.read_text(encoding="utf-8"))
        assert raw["sessions"][0]["date"] == "2024-01-02"

    def test_bad_start_format(self, invoke):
        assert invoke("start", "--at", "yesterday").exit_code != 0

    def test_done_without_task(self, invoke):
        invoke("start")
        result = invoke("done")
        assert "No task was running." in result.output


class TestReports:
    def test_week_prints_seven_days(self, invoke):
        result = invoke("week")
        assert result.exit_code == 0
        labels = [line[1:4] for line in result.output.splitlines() if line[:1] in ("*", " ")]
        assert labels == ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

    def test_history_with_default_target(self, invoke):
        result = invoke("history")
        assert result.exit_code == 0
        assert "Weekly target: 40h" in result.output
        assert "-40.0h" in result.output

    def test_settings(self, invoke):
        result = invoke("settings", "--target", "30", "--name", "Ada")
        assert "Weekly target: 30.0h" in result.output
        assert "User name:     Ada" in result.output

    def test_showing_settings_does_not_write(self, invoke, data_path):
        result = invoke("settings")
        assert result.exit_code == 0
        assert "Weekly target: 40h" in result.output
        assert not data_path.exists()

    def test_format_balance(self):
        assert format_balance(int(1.5 * HOUR_MS)) == "+1.5h"
        assert format_balance(-32 * HOUR_MS) == "-32.0h"
        assert format_balance(0) == "+0.0h"


class TestDataCommands:
    def test_export_and_import(self, invoke, tmp_path):
        invoke("start", "--title", "Coding")
        invoke("stop")
        export_path = tmp_path / "export.json"
        assert invoke("export", str(export_path)).exit_code == 0

        assert invoke("clear", "--yes").exit_code == 0
        result = invoke("import", str(export_path))
        assert result.exit_code == 0
        assert "Imported 1 sessions." in result.output

    def test_import_rejects_bad_file(self, invoke, tmp_path):
        bad = tmp_path / "bad.json"
        bad.write_text('{"settings": {}}', encoding="utf-8")
        result = invoke("import", str(bad))
        assert result.exit_code == 1

    def test_clear_requires_confirmation(self, invoke, data_path):
        invoke("start")
        result = invoke("clear", input="n\n")
        assert result.exit_code == 1
        raw = json.loads(data_path.read_text(encoding="utf-8"))
        assert len(raw["sessions"]) == 1

    def test_clear_range_needs_both_ends(self, invoke):
        result = invoke("clear", "--start", "2024-01-01", "--yes")
        assert result.exit_code != 0
