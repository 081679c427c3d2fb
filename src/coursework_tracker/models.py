from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


def ensure_timezone(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class Student(BaseModel):
    id: int
    name: str
    email: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("created_at")
    @classmethod
    def created_at_timezone(cls, v):
        return ensure_timezone(v)


class Repository(BaseModel):
    id: int
    student_id: int
    owner: str
    repo_name: str
    repo_url: str = ""
    tech_stack: List[str] = Field(default_factory=list)
    is_group: bool = False
    contributors: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    synced_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo_name}"


class Commit(BaseModel):
    sha: str
    repo_id: int
    author: str = "Unknown"
    message: str = ""
    commit_date: datetime
    lines_changed: Optional[int] = None

    @field_validator("commit_date")
    @classmethod
    def commit_date_timezone(cls, v):
        return ensure_timezone(v)

    @field_validator("author", mode="before")
    @classmethod
    def author_default(cls, v):
        return v or "Unknown"

    @field_validator("message", mode="before")
    @classmethod
    def message_default(cls, v):
        return v or ""


class Milestone(BaseModel):
    id: int
    name: str
    date: datetime
    required_commits: int = Field(ge=1)

    @field_validator("date")
    @classmethod
    def date_timezone(cls, v):
        return ensure_timezone(v)


def repositories_for(student_id: int, repositories: List[Repository]) -> List[Repository]:
    return [r for r in repositories if r.student_id == student_id]


def commits_for(repositories: List[Repository], commits: List[Commit]) -> List[Commit]:
    repo_ids = {r.id for r in repositories}
    return [c for c in commits if c.repo_id in repo_ids]


def find_student(student_id: int, students: List[Student]) -> Optional[Student]:
    return next((s for s in students if s.id == student_id), None)
