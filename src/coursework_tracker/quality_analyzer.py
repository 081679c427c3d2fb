from typing import Dict, List, Any
import re

from coursework_tracker.metrics import letter_grade, round_half_up, NO_DATA_GRADE
from coursework_tracker.models import Commit


class CommitQualityAnalyzer:
    def __init__(self, huge_commit_lines: int = 500, min_message_length: int = 5):
        self.huge_commit_lines = huge_commit_lines
        self.min_message_length = min_message_length
        self.bad_message_patterns = [
            re.compile(r"^fix$", re.IGNORECASE),
            re.compile(r"^update$", re.IGNORECASE),
            re.compile(r"^changes$", re.IGNORECASE),
            re.compile(r"^wip$", re.IGNORECASE),
            re.compile(r"^test$", re.IGNORECASE),
            re.compile(r"^commit$", re.IGNORECASE),
            re.compile(r"^save$", re.IGNORECASE),
            re.compile(r"^done$", re.IGNORECASE),
            re.compile(r"^[\W_]+$"),
            re.compile(r"^asdf", re.IGNORECASE),
            re.compile(r"^temp", re.IGNORECASE),
            re.compile(r"^stuff", re.IGNORECASE),
            re.compile(r"^misc", re.IGNORECASE),
        ]

    def is_bad_message(self, message: str) -> bool:
        message = message or ""
        trimmed = message.strip()
        if len(message) < self.min_message_length:
            return True
        return any(pattern.search(trimmed) for pattern in self.bad_message_patterns)

    def analyze_commit_quality(self, commits: List[Commit]) -> Dict[str, Any]:
        total = len(commits)
        good_messages = 0
        bad_messages = 0
        huge_commits = 0
        total_lines = 0

        for commit in commits:
            if self.is_bad_message(commit.message):
                bad_messages += 1
            else:
                good_messages += 1

            lines_changed = commit.lines_changed or 0
            total_lines += lines_changed
            if lines_changed > self.huge_commit_lines:
                huge_commits += 1

        if total == 0:
            return {
                "grade": NO_DATA_GRADE,
                "has_data": False,
                "overall_score": 0,
                "message_quality_score": 0,
                "commit_size_score": 100,
                "good_messages": 0,
                "bad_messages": 0,
                "huge_commits": 0,
                "total_commits": 0,
                "avg_lines_per_commit": 0,
                "avg_message_length": 0,
            }

        message_quality_score = good_messages / total * 100
        commit_size_score = max(0.0, 100 - huge_commits / total * 100)
        overall_score = message_quality_score * 0.6 + commit_size_score * 0.4

        return {
            "grade": letter_grade(overall_score),
            "has_data": True,
            "overall_score": round_half_up(overall_score),
            "message_quality_score": round_half_up(message_quality_score),
            "commit_size_score": round_half_up(commit_size_score),
            "good_messages": good_messages,
            "bad_messages": bad_messages,
            "huge_commits": huge_commits,
            "total_commits": total,
            "avg_lines_per_commit": round_half_up(total_lines / total),
            "avg_message_length": round_half_up(sum(len(c.message.strip()) for c in commits) / total),
        }
