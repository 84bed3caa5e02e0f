"""Tests for the command line interface."""

import pytest
import yaml
from click.testing import CliRunner

from todowidget.cli import main
from todowidget.version import VERSION


@pytest.fixture()
def store_path(tmp_path):
    return tmp_path / "store.yml"


@pytest.fixture()
def run(store_path):
    runner = CliRunner()

    def invoke(*args, **kwargs):
        return runner.invoke(main, ["--store", str(store_path), *args], **kwargs)

    return invoke


def stored(store_path):
    return yaml.safe_load(store_path.read_text())


class TestTaskCommands:
    """Test task management from the terminal."""

    def test_add_and_list(self, run):
        assert run("add", "Buy", "milk").exit_code == 0
        assert run("add", "--multi", "Plan trip").exit_code == 0
        result = run("list")
        assert result.exit_code == 0
        assert "2 tasks" in result.output
        lines = result.output.splitlines()
        assert any("1. [ ] Plan trip  (0/0)" in line for line in lines)
        assert any("2. [ ] Buy milk" in line for line in lines)

    def test_list_empty(self, run):
        result = run("list")
        assert "0 tasks" in result.output
        assert "No tasks yet" in result.output

    def test_add_blank(self, run, store_path):
        result = run("add", "   ")
        assert result.exit_code == 1
        assert "cannot be empty" in result.output
        assert not store_path.exists()

    def test_done_and_clear(self, run, store_path):
        run("add", "Buy milk")
        run("add", "Walk dog")
        result = run("done", "2")
        assert "Completed: Buy milk" in result.output
        assert "1 of 2 remaining" in run("list").output
        assert "Removed 1 completed task(s)" in run("clear").output
        assert "No completed tasks" in run("clear").output
        assert [t["text"] for t in stored(store_path)["tasks"]] == ["Walk dog"]

    def test_done_twice_reopens(self, run):
        run("add", "Buy milk")
        run("done", "1")
        assert "Reopened: Buy milk" in run("done", "1").output

    def test_invalid_position(self, run):
        run("add", "Buy milk")
        for args in (["done", "2"], ["rm", "0"], ["edit", "5", "x"], ["move", "1", "3"]):
            result = run(*args)
            assert result.exit_code == 1
            assert "No task #" in result.output

    def test_rm(self, run, store_path):
        run("add", "Buy milk")
        assert "Deleted: Buy milk" in run("rm", "1").output
        assert stored(store_path)["tasks"] == []

    def test_edit(self, run):
        run("add", "Buy milk")
        assert "Updated: Buy oat milk" in run("edit", "1", "Buy", "oat", "milk").output
        assert "Edit cancelled" in run("edit", "1", " ").output
        assert "Buy oat milk" in run("list").output

    def test_move(self, run):
        for text in ["a", "b", "c"]:
            run("add", text)
        assert "Moved: a -> #1" in run("move", "3", "1").output
        lines = [line.strip() for line in run("list").output.splitlines()[1:]]
        assert [line.split("  ·")[0] for line in lines] == ["1. [ ] a", "2. [ ] c", "3. [ ] b"]
        assert "Nothing to move" in run("move", "2", "2").output


class TestSubtaskCommands:
    """Test subtask management."""

    def test_subtask_lifecycle(self, run, store_path):
        run("add", "--multi", "Plan trip")
        assert run("sub", "add", "1", "Book flight").exit_code == 0
        run("sub", "add", "1", "Book hotel")
        assert "Completed: Book flight" in run("sub", "done", "1", "1").output
        assert "Updated subtask: Book train" in run("sub", "edit", "1", "1", "Book", "train").output
        assert "Moved subtask #1 -> #2" in run("sub", "move", "1", "1", "2").output
        subtasks = stored(store_path)["tasks"][0]["subtasks"]
        assert [s["text"] for s in subtasks] == ["Book hotel", "Book train"]
        assert subtasks[1]["completed"] is True
        assert "Deleted subtask: Book hotel" in run("sub", "rm", "1", "1").output

    def test_collapsed_subtasks_hidden_in_list(self, run):
        run("add", "--multi", "Plan trip")
        run("sub", "add", "1", "Book flight")
        assert "Book flight" not in run("list").output
        assert "Book flight" in run("list", "--all").output
        assert "Expanded: Plan trip" in run("expand", "1").output
        assert "1. [ ] Book flight" in run("list").output

    def test_subtasks_on_simple_task(self, run):
        run("add", "Buy milk")
        result = run("sub", "add", "1", "step")
        assert result.exit_code == 1
        assert "simple task" in result.output
        assert run("expand", "1").exit_code == 1

    def test_invalid_subtask_number(self, run):
        run("add", "--multi", "Plan trip")
        result = run("sub", "done", "1", "1")
        assert result.exit_code == 1
        assert "No subtask #1" in result.output
        assert "Nothing to move" in run("sub", "move", "1", "1", "2").output


class TestSettingsCommands:
    """Test settings commands."""

    def test_theme_toggles(self, run, store_path):
        assert "Theme: light" in run("theme").output
        assert stored(store_path)["theme"] == "light"
        assert "Theme: dark" in run("theme").output

    def test_opacity(self, run, store_path):
        assert run("opacity", "40").exit_code == 0
        assert stored(store_path)["opacity"] == 40
        assert run("opacity", "140").exit_code != 0
        assert stored(store_path)["opacity"] == 40

    def test_top(self, run, store_path):
        assert "Always on top: off" in run("top").output
        assert stored(store_path)["alwaysOnTop"] is False

    def test_status(self, run, store_path):
        run("add", "Buy milk")
        result = run("status")
        assert result.exit_code == 0
        assert f"Version: {VERSION}" in result.output
        assert str(store_path) in result.output
        assert "1 task" in result.output
        assert "opacity: 80" in result.output

    def test_reset(self, run, store_path):
        run("add", "Buy milk")
        run("opacity", "10")
        result = run("reset", input="y\n")
        assert result.exit_code == 0
        assert "All data has been cleared" in result.output
        document = stored(store_path)
        assert "tasks" not in document
        assert document["opacity"] == 80

    def test_reset_declined(self, run, store_path):
        run("add", "Buy milk")
        result = run("reset", input="n\n")
        assert result.exit_code != 0
        assert len(stored(store_path)["tasks"]) == 1

    def test_store_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "env-store.yml"
        monkeypatch.setenv("TODOWIDGET_STORE", str(path))
        result = CliRunner().invoke(main, ["add", "Buy milk"])
        assert result.exit_code == 0
        assert stored(path)["tasks"][0]["text"] == "Buy milk"

    def test_version(self, run):
        assert VERSION in run("--version").output
