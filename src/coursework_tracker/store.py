"""
In-memory persistence for students, repositories and commits.

The store keeps plain lists of pydantic models and can mirror them to a
single JSON file. Commit writes are idempotent on ``(sha, repo_id)``.
"""
import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from coursework_tracker.models import Commit, Repository, Student

logger = logging.getLogger(__name__)


class LocalStore:
    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else None
        self.students: List[Student] = []
        self.repositories: List[Repository] = []
        self.commits: List[Commit] = []
        self._commit_keys: Dict[Tuple[str, int], Commit] = {}
        self._next_ids = {"students": 1, "repositories": 1}

        if self.path and self.path.exists():
            self.load()

    # Students

    def get_student(self, student_id: int) -> Optional[Student]:
        return next((s for s in self.students if s.id == student_id), None)

    def add_student(self, name: str, email: str = "", created_at: Optional[datetime] = None) -> Student:
        student = Student(
            id=self._allocate("students"),
            name=name,
            email=email,
            created_at=created_at or datetime.now(timezone.utc),
        )
        self.students.append(student)
        return student

    def delete_student(self, student_id: int) -> bool:
        student = self.get_student(student_id)
        if not student:
            return False

        self.students.remove(student)
        for repo in self.repositories_for_student(student_id):
            self.delete_repository(repo.id)
        return True

    # Repositories

    def get_repository(self, repo_id: int) -> Optional[Repository]:
        return next((r for r in self.repositories if r.id == repo_id), None)

    def repositories_for_student(self, student_id: int) -> List[Repository]:
        return [r for r in self.repositories if r.student_id == student_id]

    def add_repository(self, student_id: int, owner: str, repo_name: str, **fields) -> Repository:
        repo = Repository(
            id=self._allocate("repositories"),
            student_id=student_id,
            owner=owner,
            repo_name=repo_name,
            repo_url=fields.pop("repo_url", None) or f"https://github.com/{owner}/{repo_name}",
            **fields,
        )
        self.repositories.append(repo)
        return repo

    def delete_repository(self, repo_id: int) -> bool:
        repo = self.get_repository(repo_id)
        if not repo:
            return False

        self.repositories.remove(repo)
        self.commits = [c for c in self.commits if c.repo_id != repo_id]
        self._commit_keys = {k: v for k, v in self._commit_keys.items() if k[1] != repo_id}
        return True

    def mark_synced(self, repo_id: int, synced_at: datetime) -> None:
        repo = self.get_repository(repo_id)
        if repo:
            repo.synced_at = synced_at

    # Commits

    def add_commit(self, commit: Commit) -> Commit:
        key = (commit.sha, commit.repo_id)
        existing = self._commit_keys.get(key)
        if existing:
            return existing

        self.commits.append(commit)
        self._commit_keys[key] = commit
        return commit

    def add_commits(self, commits: Iterable[Commit]) -> int:
        """Upsert commits, returning how many were new."""
        before = len(self.commits)
        for commit in commits:
            self.add_commit(commit)
        return len(self.commits) - before

    def commits_for_repository(self, repo_id: int) -> List[Commit]:
        return [c for c in self.commits if c.repo_id == repo_id]

    def commits_for_student(self, student_id: int) -> List[Commit]:
        repo_ids = {r.id for r in self.repositories_for_student(student_id)}
        return [c for c in self.commits if c.repo_id in repo_ids]

    def summary(self, now: datetime) -> Dict[str, int]:
        week_ago = now - timedelta(days=7)
        return {
            "students": len(self.students),
            "repositories": len(self.repositories),
            "commits": len(self.commits),
            "active": sum(1 for c in self.commits if week_ago <= c.commit_date <= now),
        }

    # Persistence

    def save(self) -> Optional[Path]:
        if not self.path:
            return None

        data = {
            "students": [s.model_dump(mode="json") for s in self.students],
            "repositories": [r.model_dump(mode="json") for r in self.repositories],
            "commits": [c.model_dump(mode="json") for c in self.commits],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
        logger.debug("Saved %d students, %d repositories, %d commits to %s",
                     len(self.students), len(self.repositories), len(self.commits), self.path)
        return self.path

    def load(self) -> None:
        with open(self.path, "r") as f:
            data = json.load(f)

        self.students = [Student(**s) for s in data.get("students", [])]
        self.repositories = [Repository(**r) for r in data.get("repositories", [])]
        self.commits = []
        self._commit_keys = {}
        self.add_commits(Commit(**c) for c in data.get("commits", []))

        self._next_ids = {
            "students": max((s.id for s in self.students), default=0) + 1,
            "repositories": max((r.id for r in self.repositories), default=0) + 1,
        }

    def _allocate(self, kind: str) -> int:
        next_id = self._next_ids[kind]
        self._next_ids[kind] += 1
        return next_id
