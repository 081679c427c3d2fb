from datetime import datetime
from typing import Dict, List, Any, Optional

from dateutil.relativedelta import relativedelta

from coursework_tracker.config_manager import AnalyticsSettings
from coursework_tracker.consistency_analyzer import ConsistencyAnalyzer
from coursework_tracker.metrics import mean, peak_hour, resolve_now, round_half_up, to_zone
from coursework_tracker.models import Commit, Repository, Student, commits_for, find_student, repositories_for
from coursework_tracker.quality_analyzer import CommitQualityAnalyzer
from coursework_tracker.streak_calculator import StreakCalculator

PERIODS = ("all", "weekly", "monthly")

STRENGTH_METRICS = [
    ("total_commits", "More commits"),
    ("quality_score", "Better commit quality"),
    ("current_streak", "Higher streak"),
    ("active_days", "More consistent"),
]


def period_start(period: str, now: datetime) -> Optional[datetime]:
    if period == "all":
        return None
    if period == "weekly":
        return now - relativedelta(days=7)
    if period == "monthly":
        return now - relativedelta(months=1)
    raise ValueError(f"Unknown leaderboard period: {period}")


def work_pattern(hour: int) -> str:
    if hour < 12:
        return "Morning Person"
    if hour < 18:
        return "Afternoon Worker"
    return "Night Owl"


class LeaderboardBuilder:
    def __init__(self, settings: Optional[AnalyticsSettings] = None):
        self.settings = settings or AnalyticsSettings()
        self.quality_analyzer = CommitQualityAnalyzer(self.settings.huge_commit_lines)
        self.consistency_analyzer = ConsistencyAnalyzer(
            self.settings.cramming_window_hours, self.settings.cramming_threshold)
        self.streak_calculator = StreakCalculator()

    def score_student(self, total_commits: int, quality_percentage: float,
                      active_days: int, current_streak: int) -> int:
        weights = self.settings.score_weights
        return round_half_up(
            min(total_commits * 2, 100) * weights["commits"]
            + quality_percentage * weights["quality"]
            + min(active_days * 5, 100) * weights["activity"]
            + min(current_streak * 10, 50) * weights["streak"]
        )

    def leaderboard(
            self,
            students: List[Student],
            repositories: List[Repository],
            commits: List[Commit],
            period: str = "all",
            now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        now = resolve_now(now)
        start = period_start(period, now)

        rankings = []
        for student in students:
            student_repos = repositories_for(student.id, repositories)
            student_commits = commits_for(student_repos, commits)
            if start is not None:
                student_commits = [c for c in student_commits if start <= c.commit_date <= now]

            quality = self.quality_analyzer.analyze_commit_quality(student_commits)
            consistency = self.consistency_analyzer.analyze_consistency(
                student_commits, self.settings.consistency_window_days, now)
            streaks = self.streak_calculator.calculate_streaks(student_commits, now)

            rankings.append({
                "student_id": student.id,
                "name": student.name,
                "email": student.email,
                "total_commits": len(student_commits),
                "quality_grade": quality["grade"],
                "quality_score": quality["message_quality_score"],
                "active_days": consistency["active_days"],
                "current_streak": streaks["current_streak"],
                "longest_streak": streaks["longest_streak"],
                "overall_score": self.score_student(
                    len(student_commits), quality["message_quality_score"],
                    consistency["active_days"], streaks["current_streak"]),
                "repo_count": len(student_repos),
            })

        rankings.sort(key=lambda r: (-r["overall_score"], r["name"], r["student_id"]))

        # Dense ranks; trend is positional only, there is no prior snapshot to compare with
        rank = 0
        previous_score = None
        for index, item in enumerate(rankings):
            if item["overall_score"] != previous_score:
                rank += 1
                previous_score = item["overall_score"]
            item["rank"] = rank
            if index < 3:
                item["trend"] = "up"
            elif index > len(rankings) - 3:
                item["trend"] = "down"
            else:
                item["trend"] = "stable"

        return {
            "period": period,
            "updated_at": now.isoformat(),
            "rankings": rankings,
            "top_performers": rankings[:3],
            "stats": {
                "total_students": len(students),
                "avg_score": round_half_up(mean([r["overall_score"] for r in rankings])),
                "total_commits": sum(r["total_commits"] for r in rankings),
            },
        }

    def student_profile(self, student: Student, repositories: List[Repository],
                        commits: List[Commit], now: datetime) -> Dict[str, Any]:
        student_repos = repositories_for(student.id, repositories)
        student_commits = commits_for(student_repos, commits)

        quality = self.quality_analyzer.analyze_commit_quality(student_commits)
        consistency = self.consistency_analyzer.analyze_consistency(
            student_commits, self.settings.consistency_window_days, now)
        streaks = self.streak_calculator.calculate_streaks(student_commits, now)

        tech_stack = []
        for repo in student_repos:
            for tech in repo.tech_stack:
                if tech not in tech_stack:
                    tech_stack.append(tech)

        hour = peak_hour([to_zone(c.commit_date, now.tzinfo).hour for c in student_commits])

        return {
            "id": student.id,
            "name": student.name,
            "email": student.email,
            "metrics": {
                "total_commits": len(student_commits),
                "repo_count": len(student_repos),
                "active_days": consistency["active_days"],
                "avg_commits_per_day": consistency["avg_commits_per_active_day"],
                "quality_grade": quality["grade"],
                "quality_score": quality["overall_score"],
                "current_streak": streaks["current_streak"],
                "longest_streak": streaks["longest_streak"],
            },
            "patterns": {
                "work_pattern": work_pattern(hour),
                "peak_hour": hour,
                "is_cramming": consistency["is_cramming"],
                "avg_gap_days": consistency["avg_gap_days"],
            },
            "tech_stack": tech_stack[:5],
            "strengths": [],
            "weekly_activity": consistency["heatmap_data"][-7:],
        }

    def compare_students(
            self,
            student_id_a: int,
            student_id_b: int,
            students: List[Student],
            repositories: List[Repository],
            commits: List[Commit],
            now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        now = resolve_now(now)
        student_a = find_student(student_id_a, students)
        student_b = find_student(student_id_b, students)

        if not student_a or not student_b:
            return {"error": "One or both students not found"}

        first = self.student_profile(student_a, repositories, commits, now)
        second = self.student_profile(student_b, repositories, commits, now)

        for key, label in STRENGTH_METRICS:
            if first["metrics"][key] > second["metrics"][key]:
                first["strengths"].append(label)
            elif second["metrics"][key] > first["metrics"][key]:
                second["strengths"].append(label)

        return {
            "student1": first,
            "student2": second,
            "compared_at": now.isoformat(),
        }
