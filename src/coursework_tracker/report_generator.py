import csv
import io
from datetime import datetime
from typing import Dict, List, Any, Optional

from coursework_tracker.config_manager import AnalyticsSettings
from coursework_tracker.consistency_analyzer import ConsistencyAnalyzer
from coursework_tracker.metrics import resolve_now
from coursework_tracker.models import Commit, Repository, Student, commits_for, repositories_for
from coursework_tracker.quality_analyzer import CommitQualityAnalyzer
from coursework_tracker.streak_calculator import StreakCalculator

EXPORT_COLUMNS = [
    ("name", "Name"),
    ("email", "Email"),
    ("total_commits", "Total Commits"),
    ("repositories", "Repositories"),
    ("active_days", "Active Days"),
    ("quality_grade", "Quality Grade"),
    ("quality_percentage", "Quality %"),
    ("current_streak", "Current Streak"),
    ("longest_streak", "Longest Streak"),
    ("last_commit", "Last Commit"),
]


class ReportGenerator:
    def __init__(self, settings: Optional[AnalyticsSettings] = None):
        self.settings = settings or AnalyticsSettings()
        self.quality_analyzer = CommitQualityAnalyzer(self.settings.huge_commit_lines)
        self.consistency_analyzer = ConsistencyAnalyzer(
            self.settings.cramming_window_hours, self.settings.cramming_threshold)
        self.streak_calculator = StreakCalculator()

    def export_rows(self, students: List[Student], repositories: List[Repository],
                    commits: List[Commit], now: datetime) -> List[Dict[str, Any]]:
        rows = []
        for student in students:
            student_repos = repositories_for(student.id, repositories)
            student_commits = commits_for(student_repos, commits)

            quality = self.quality_analyzer.analyze_commit_quality(student_commits)
            consistency = self.consistency_analyzer.analyze_consistency(
                student_commits, self.settings.consistency_window_days, now)
            streaks = self.streak_calculator.calculate_streaks(student_commits, now)
            last_commit = max((c.commit_date for c in student_commits), default=None)

            rows.append({
                "name": student.name,
                "email": student.email,
                "total_commits": len(student_commits),
                "repositories": len(student_repos),
                "active_days": consistency["active_days"],
                "quality_grade": quality["grade"],
                "quality_percentage": quality["message_quality_score"],
                "current_streak": streaks["current_streak"],
                "longest_streak": streaks["longest_streak"],
                "last_commit": last_commit.isoformat() if last_commit else None,
            })
        return rows

    def export_analytics(
            self,
            students: List[Student],
            repositories: List[Repository],
            commits: List[Commit],
            fmt: str = "json",
            now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        now = resolve_now(now)
        if fmt not in ("json", "csv"):
            raise ValueError(f"Unsupported export format: {fmt}")

        rows = self.export_rows(students, repositories, commits, now)

        if fmt == "csv":
            headers = [label for _, label in EXPORT_COLUMNS]
            table = [[row[key] if row[key] is not None else "N/A" for key, _ in EXPORT_COLUMNS]
                     for row in rows]

            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")
            writer.writerow(headers)
            writer.writerows(table)

            return {
                "format": "csv",
                "headers": headers,
                "rows": table,
                "csv_string": buffer.getvalue(),
            }

        return {
            "format": "json",
            "generated_at": now.isoformat(),
            "data": rows,
        }

    def render_markdown_report(self, student: Student, summary: Dict[str, Any], quality: Dict[str, Any],
                               streaks: Dict[str, Any], badges: Dict[str, Any],
                               now: Optional[datetime] = None) -> str:
        now = resolve_now(now)

        markdown = f"# Progress Report: {student.name}\n\n"
        markdown += f"Email: {student.email or 'N/A'}  \n"
        markdown += f"Generated on: {now.strftime('%Y-%m-%d %H:%M:%S %Z')}  \n"
        markdown += f"Quality Grade: **{quality['grade']}** ({quality['overall_score']}%)\n\n"

        markdown += "## Summary\n\n"
        markdown += f"{summary['summary']}\n\n"

        if summary.get("patterns"):
            markdown += "### Patterns\n\n"
            for pattern in summary["patterns"]:
                markdown += f"- {pattern}\n"
            markdown += "\n"

        if summary.get("recommendations"):
            markdown += "### Recommendations\n\n"
            for recommendation in summary["recommendations"]:
                markdown += f"- {recommendation}\n"
            markdown += "\n"

        markdown += "## Commit Quality\n\n"
        markdown += f"- Total Commits: {quality['total_commits']}\n"
        markdown += f"- Good Messages: {quality['good_messages']}\n"
        markdown += f"- Bad Messages: {quality['bad_messages']}\n"
        markdown += f"- Huge Commits: {quality['huge_commits']}\n"
        markdown += f"- Message Quality: {quality['message_quality_score']}%\n\n"

        markdown += "## Streaks\n\n"
        markdown += f"- Current Streak: {streaks['current_streak']} days\n"
        markdown += f"- Longest Streak: {streaks['longest_streak']} days\n"
        markdown += f"- Active Days: {streaks['total_active_days']}\n\n"

        markdown += "## Badges\n\n"
        markdown += "| Badge | Description | Earned |\n"
        markdown += "| --- | --- | --- |\n"
        for badge in badges["earned"] + badges["locked"]:
            earned = "✅" if badge["earned"] else "🔒"
            markdown += f"| {badge['icon']} {badge['name']} | {badge['description']} | {earned} |\n"

        return markdown
