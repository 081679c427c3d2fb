import json
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional, List, Dict

import keyring
from pydantic import BaseModel, Field, field_validator

from coursework_tracker.models import Milestone


DEFAULT_SCORE_WEIGHTS = {
    "commits": 0.30,
    "quality": 0.30,
    "activity": 0.25,
    "streak": 0.15,
}


class AnalyticsSettings(BaseModel):
    consistency_window_days: int = Field(default=60, ge=1)
    huge_commit_lines: int = Field(default=500, ge=1)
    cramming_window_hours: int = Field(default=48, ge=1)
    cramming_threshold: float = Field(default=50.0, ge=0, le=100)
    at_risk_min_commits: int = Field(default=2, ge=0)
    at_risk_window_days: int = Field(default=7, ge=1)
    score_weights: Dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_SCORE_WEIGHTS))
    sync_max_commits: int = Field(default=300, ge=1)
    sync_chunk_size: int = Field(default=100, ge=1)
    sync_fetch_stats: bool = False

    @field_validator("score_weights")
    @classmethod
    def validate_weights(cls, v):
        missing = set(DEFAULT_SCORE_WEIGHTS) - set(v)
        if missing:
            raise ValueError(f"Score weights missing: {', '.join(sorted(missing))}")
        total = sum(v.values())
        if abs(total - 1.0) > 0.001:
            raise ValueError("Score weights must sum to 1.0")
        return v


def default_milestones(now: datetime) -> List[Milestone]:
    return [
        Milestone(id=1, name="Design Phase", date=now - timedelta(days=45), required_commits=5),
        Milestone(id=2, name="Alpha Release", date=now - timedelta(days=20), required_commits=15),
        Milestone(id=3, name="Beta Release", date=now + timedelta(days=10), required_commits=30),
    ]


class MilestoneStore:
    """Admin-editable milestone list persisted as JSON."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load_milestones(self, now: datetime) -> List[Milestone]:
        if not self.path.exists():
            return default_milestones(now)

        with open(self.path, "r") as f:
            data = json.load(f)

        milestones = [Milestone(**item) for item in data]
        return sorted(milestones, key=lambda m: m.date)

    def replace_milestones(self, milestones: List[Milestone]) -> List[Milestone]:
        ordered = sorted(milestones, key=lambda m: m.date)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump([m.model_dump(mode="json") for m in ordered], f, indent=2)
        return ordered


class ConfigManager:
    SERVICE_NAME = "coursework-tracker"
    DEFAULT_DIR = Path.home() / ".coursework-tracker"

    def __init__(self, config_dir: Optional[Path] = None):
        env_dir = os.environ.get("COURSEWORK_TRACKER_HOME")
        self.config_dir = Path(config_dir or env_dir or self.DEFAULT_DIR)
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.milestones = MilestoneStore(self.config_dir / "milestones.json")

    @property
    def settings_path(self) -> Path:
        return self.config_dir / "settings.json"

    @property
    def store_path(self) -> Path:
        return self.config_dir / "store.json"

    def set_github_token(self, token: str, username: str) -> bool:
        keyring.set_password(self.SERVICE_NAME, username, token)
        return True

    def get_github_token(self, username: str) -> Optional[str]:
        return keyring.get_password(self.SERVICE_NAME, username)

    def load_settings(self) -> AnalyticsSettings:
        if not self.settings_path.exists():
            return AnalyticsSettings()

        with open(self.settings_path, "r") as f:
            return AnalyticsSettings(**json.load(f))

    def save_settings(self, settings: AnalyticsSettings) -> Path:
        with open(self.settings_path, "w") as f:
            f.write(settings.model_dump_json(indent=2))
        return self.settings_path
