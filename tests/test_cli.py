import json

import pytest
from typer.testing import CliRunner

from coursework_tracker.cli import app
from coursework_tracker.config_manager import ConfigManager
from coursework_tracker.store import LocalStore

from conftest import daily_commits

runner = CliRunner()


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setenv("COURSEWORK_TRACKER_HOME", str(tmp_path))
    return tmp_path


def seed(home):
    store = LocalStore(ConfigManager(home).store_path)
    alice = store.add_student("Alice", "alice@example.edu")
    store.add_repository(alice.id, "alice", "webapp")
    store.add_commits(daily_commits(range(1, 4), repo_id=1))
    store.save()


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "Coursework Tracker v1.0.0" in result.output


def test_student_and_repo_registration(home):
    assert runner.invoke(app, ["student", "add", "Alice", "--email", "alice@example.edu"]).exit_code == 0

    result = runner.invoke(app, ["repo", "add", "1", "https://github.com/alice/webapp", "--tech", "react"])
    assert result.exit_code == 0
    assert "alice/webapp" in result.output

    store = LocalStore(home / "store.json")
    assert store.get_student(1).email == "alice@example.edu"
    assert store.get_repository(1).tech_stack == ["react"]


def test_student_list_shows_store_totals(home):
    seed(home)

    result = runner.invoke(app, ["student", "list"])

    assert result.exit_code == 0
    assert "1 students, 1 repositories, 3 commits" in result.output


def test_repo_add_rejects_bad_url(home):
    runner.invoke(app, ["student", "add", "Alice"])
    result = runner.invoke(app, ["repo", "add", "1", "https://example.com/alice/webapp"])

    assert result.exit_code == 1


def test_unknown_student_is_an_error(home):
    assert runner.invoke(app, ["badges", "7"]).exit_code == 1
    assert runner.invoke(app, ["student", "remove", "7"]).exit_code == 1


def test_export_json_to_file(home):
    seed(home)
    output = home / "export.json"

    result = runner.invoke(app, ["export", "--format", "json", "--output", str(output)])

    assert result.exit_code == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["data"][0]["name"] == "Alice"
    assert payload["data"][0]["total_commits"] == 3


def test_export_rejects_unknown_format(home):
    assert runner.invoke(app, ["export", "-f", "xml"]).exit_code == 1


def test_report_written(home):
    seed(home)
    output = home / "alice.md"

    result = runner.invoke(app, ["report", "1", "--output", str(output)])

    assert result.exit_code == 0
    assert output.read_text(encoding="utf-8").startswith("# Progress Report: Alice")


def test_milestones_set_and_list(home):
    milestones = home / "milestones-input.json"
    milestones.write_text(json.dumps([
        {"id": 1, "name": "Proposal", "date": "2026-02-01T00:00:00Z", "required_commits": 3},
    ]), encoding="utf-8")

    assert runner.invoke(app, ["milestones", "set", str(milestones)]).exit_code == 0
    result = runner.invoke(app, ["milestones", "list"])
    assert "Proposal" in result.output


def test_milestones_set_rejects_invalid(home):
    bad = home / "bad.json"
    bad.write_text(json.dumps([{"id": 1, "name": "Zero", "date": "2026-02-01", "required_commits": 0}]))

    assert runner.invoke(app, ["milestones", "set", str(bad)]).exit_code == 1


def test_leaderboard_rejects_unknown_period(home):
    seed(home)
    assert runner.invoke(app, ["leaderboard", "--period", "yearly"]).exit_code == 1
    assert runner.invoke(app, ["leaderboard"]).exit_code == 0
