from datetime import datetime
from enum import Enum
from typing import Dict, List, Any, Optional

from coursework_tracker.consistency_analyzer import ConsistencyAnalyzer
from coursework_tracker.metrics import peak_hour, resolve_now, to_zone
from coursework_tracker.models import Commit, Repository
from coursework_tracker.quality_analyzer import CommitQualityAnalyzer


class Topic(str, Enum):
    AUTHENTICATION = "authentication"
    UI = "UI/frontend"
    API = "API development"
    DATABASE = "database"
    TESTING = "testing"
    BUG_FIXES = "bug fixes"
    REFACTORING = "code refactoring"
    PERFORMANCE = "performance optimization"
    DOCUMENTATION = "documentation"


TOPIC_KEYWORDS = {
    Topic.AUTHENTICATION: ["auth", "login"],
    Topic.UI: ["ui", "component", "design"],
    Topic.API: ["api", "endpoint", "route"],
    Topic.DATABASE: ["database", "query", "model"],
    Topic.TESTING: ["test"],
    Topic.BUG_FIXES: ["fix", "bug"],
    Topic.REFACTORING: ["refactor", "clean"],
    Topic.PERFORMANCE: ["performance", "optim"],
    Topic.DOCUMENTATION: ["doc", "readme"],
}


class SummaryBackend:
    """
    Base class for narrative summary generators.

    Subclasses turn a student's commit history into a short written
    summary. The default implementation is rule based; a language model
    backend can replace it as long as it returns the same keys.
    """

    def __init__(self, name: str):
        self.name = name

    def summarize(
            self,
            student_name: str,
            commits: List[Commit],
            repository: Optional[Repository] = None,
            now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Summarize a commit history.

        Args:
            student_name: Display name used in the summary text
            commits: Commits to summarize
            repository: Repository the commits belong to, if there is one
            now: Reference time for recency-dependent wording

        Returns:
            Dictionary with summary, patterns, recommendations, topics and stats
        """
        raise NotImplementedError


class HeuristicSummarizer(SummaryBackend):
    def __init__(self, quality_analyzer: Optional[CommitQualityAnalyzer] = None,
                 consistency_analyzer: Optional[ConsistencyAnalyzer] = None,
                 window_days: int = 60, recent_limit: int = 50):
        super().__init__("heuristic")
        self.quality_analyzer = quality_analyzer or CommitQualityAnalyzer()
        self.consistency_analyzer = consistency_analyzer or ConsistencyAnalyzer()
        self.window_days = window_days
        self.recent_limit = recent_limit

    def extract_topics(self, commits: List[Commit]) -> List[str]:
        recent = sorted(commits, key=lambda c: c.commit_date, reverse=True)[:self.recent_limit]
        text = " ".join(c.message.lower() for c in recent)
        return [topic.value for topic, keywords in TOPIC_KEYWORDS.items()
                if any(k in text for k in keywords)]

    def summarize(self, student_name, commits, repository=None, now=None):
        now = resolve_now(now)

        if not commits:
            return {
                "summary": "No commits found for this repository.",
                "patterns": [],
                "recommendations": ["Start committing code to build your project history."],
                "topics": [],
                "stats": {
                    "total_commits": 0,
                    "active_days": 0,
                    "avg_commits_per_day": 0,
                    "quality_grade": "N/A",
                    "meaningful_commits": 0,
                },
                "generated_at": now.isoformat(),
            }

        topics = self.extract_topics(commits)
        consistency = self.consistency_analyzer.analyze_consistency(commits, self.window_days, now)
        quality = self.quality_analyzer.analyze_commit_quality(commits)

        patterns = self._patterns(commits, topics, consistency, quality, now)
        recommendations = self._recommendations(commits, topics, consistency, quality, repository)

        topic_text = ", ".join(topics[:3]) if topics else "general development"
        if consistency["is_cramming"]:
            cramming_note = ("However, there is evidence of cramming behavior with the majority "
                             "of commits in the last 48 hours.")
        else:
            cramming_note = "The work appears to be spread consistently over the project duration."

        if quality["grade"] in ("A", "B"):
            quality_note = "Commit messages are descriptive and follow good practices."
        else:
            quality_note = ("Commit message quality could be improved - consider using more "
                            "descriptive messages.")

        summary = (
            f"{student_name or 'Student'} has been focusing primarily on {topic_text}, with "
            f"{len(commits)} total commits across {consistency['active_days']} active days. "
            f"{cramming_note} {quality_note}"
        )

        return {
            "summary": summary,
            "patterns": patterns,
            "recommendations": recommendations,
            "topics": topics,
            "stats": {
                "total_commits": len(commits),
                "active_days": consistency["active_days"],
                "avg_commits_per_day": consistency["avg_commits_per_active_day"],
                "quality_grade": quality["grade"],
                "meaningful_commits": quality["message_quality_score"],
            },
            "generated_at": now.isoformat(),
        }

    def _patterns(self, commits, topics, consistency, quality, now) -> List[str]:
        patterns = []

        per_day = consistency["avg_commits_per_active_day"]
        if per_day > 3:
            level = "High"
        elif per_day > 1:
            level = "Moderate"
        else:
            level = "Low"
        patterns.append(f"{level} commit frequency: averaging {per_day:.1f} commits per active day")

        hour = peak_hour([to_zone(c.commit_date, now.tzinfo).hour for c in commits])
        patterns.append(f"Most active during {self.time_of_day(hour)} hours (peak: {hour}:00)")

        if topics:
            patterns.append(f"Primary focus areas: {', '.join(topics[:3])}")

        score = quality["message_quality_score"]
        if score > 80:
            patterns.append("Excellent commit message quality with detailed descriptions")
        elif score > 60:
            patterns.append("Good commit messages with room for improvement")
        else:
            patterns.append("Many commits have brief or unclear messages")

        if consistency["is_cramming"]:
            patterns.append(
                f"Cramming detected: {consistency['cramming_percentage']}% of commits in last 48 hours")

        return patterns

    def _recommendations(self, commits, topics, consistency, quality, repository) -> List[str]:
        recommendations = []

        if quality["grade"] in ("D", "F"):
            recommendations.append("Use more descriptive commit messages following conventional "
                                   "commit format (feat:, fix:, docs:, etc.)")

        if consistency["is_cramming"]:
            recommendations.append("Spread your work more evenly throughout the project timeline "
                                   "to avoid last-minute cramming")

        if consistency["active_days"] < 5 and len(commits) > 10:
            recommendations.append("Try to commit smaller changes more frequently rather than "
                                   "large batches")

        if Topic.TESTING.value not in topics:
            recommendations.append("Consider adding unit tests to improve code reliability")
            if repository and any(t.lower() == "react" for t in repository.tech_stack):
                recommendations.append("Consider adding React Testing Library for component tests")

        if Topic.DOCUMENTATION.value not in topics:
            recommendations.append("Add documentation commits to explain your code and setup "
                                   "instructions")

        if quality["avg_message_length"] < 20:
            recommendations.append("Write longer, more detailed commit messages explaining the "
                                   "\"why\" behind changes")

        if not recommendations or quality["grade"] == "A":
            recommendations.append("Great work! Keep maintaining this quality throughout the project")

        return recommendations

    @staticmethod
    def time_of_day(hour: int) -> str:
        if hour < 12:
            return "morning"
        if hour < 17:
            return "afternoon"
        if hour < 21:
            return "evening"
        return "night"
