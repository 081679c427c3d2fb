import itertools
from datetime import datetime, timedelta, timezone

import pytest

from coursework_tracker.models import Commit, Repository, Student

# Sunday
NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)

_sha_counter = itertools.count(1)


def make_commit(days_ago: float = 0, hours_ago: float = 0, message: str = "feat: add new feature",
                author: str = "alice", repo_id: int = 1, lines: int = 10, now: datetime = NOW,
                sha: str = None) -> Commit:
    return Commit(
        sha=sha or f"{next(_sha_counter):040x}",
        repo_id=repo_id,
        author=author,
        message=message,
        commit_date=now - timedelta(days=days_ago, hours=hours_ago),
        lines_changed=lines,
    )


def daily_commits(days, repo_id=1, author="alice", message_prefix="feat: implement part", hour=None):
    """One commit per entry of ``days`` (days ago), optionally pinned to an hour of day."""
    commits = []
    for d in days:
        commit = make_commit(days_ago=d, repo_id=repo_id, author=author, message=f"{message_prefix} {d}")
        if hour is not None:
            commit.commit_date = commit.commit_date.replace(hour=hour)
        commits.append(commit)
    return commits


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def classroom():
    students = [
        Student(id=1, name="Alice", email="alice@example.edu", created_at=NOW),
        Student(id=2, name="Bob", email="bob@example.edu", created_at=NOW),
        Student(id=3, name="Carol", email="carol@example.edu", created_at=NOW),
        Student(id=4, name="Dan", email="dan@example.edu", created_at=NOW),
    ]
    repositories = [
        Repository(id=1, student_id=1, owner="alice", repo_name="webapp", tech_stack=["react", "express"]),
        Repository(id=2, student_id=2, owner="bob", repo_name="api", tech_stack=["django", "Elm"]),
    ]
    commits = daily_commits(range(1, 11), repo_id=1) + [
        make_commit(days_ago=1, message="fix", author="bob", repo_id=2),
        make_commit(days_ago=2, message="wip", author="bob", repo_id=2),
    ]
    return students, repositories, commits
