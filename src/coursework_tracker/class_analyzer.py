from datetime import datetime, timedelta
from typing import Dict, List, Any, Optional

from coursework_tracker.config_manager import AnalyticsSettings
from coursework_tracker.consistency_analyzer import ConsistencyAnalyzer
from coursework_tracker.metrics import local_date, resolve_now, round_half_up
from coursework_tracker.models import Commit, Repository, Student, commits_for, repositories_for
from coursework_tracker.quality_analyzer import CommitQualityAnalyzer
from coursework_tracker.team_analyzer import TeamAnalyzer
from coursework_tracker.technology_analyzer import TechnologyAnalyzer


class ClassAnalyzer:
    def __init__(self, settings: Optional[AnalyticsSettings] = None):
        self.settings = settings or AnalyticsSettings()
        self.quality_analyzer = CommitQualityAnalyzer(self.settings.huge_commit_lines)
        self.consistency_analyzer = ConsistencyAnalyzer(
            self.settings.cramming_window_hours, self.settings.cramming_threshold)
        self.team_analyzer = TeamAnalyzer()
        self.technology_analyzer = TechnologyAnalyzer()

    def repository_analytics(self, repo_id: int, repositories: List[Repository],
                             commits: List[Commit], now: Optional[datetime] = None) -> Dict[str, Any]:
        now = resolve_now(now)
        repo = next((r for r in repositories if r.id == repo_id), None)
        if not repo:
            return {"error": f"Repository {repo_id} not found"}

        repo_commits = [c for c in commits if c.repo_id == repo_id]
        return {
            "repository": repo.model_dump(mode="json"),
            "code_quality": self.quality_analyzer.analyze_commit_quality(repo_commits),
            "consistency": self.consistency_analyzer.analyze_consistency(
                repo_commits, self.settings.consistency_window_days, now),
            "contribution_balance": self.team_analyzer.contribution_balance(
                repo_commits, repo.contributors),
            "total_commits": len(repo_commits),
        }

    def class_analytics(
            self,
            students: List[Student],
            repositories: List[Repository],
            commits: List[Commit],
            now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        now = resolve_now(now)

        grade_distribution = {"A": 0, "B": 0, "C": 0, "D": 0, "F": 0}
        cramming_alerts = []
        student_analytics = []
        slacker_warnings = 0
        consistency_total = 0
        quality_total = 0

        for student in students:
            for repo in repositories_for(student.id, repositories):
                repo_commits = [c for c in commits if c.repo_id == repo.id]
                quality = self.quality_analyzer.analyze_commit_quality(repo_commits)
                consistency = self.consistency_analyzer.analyze_consistency(
                    repo_commits, self.settings.consistency_window_days, now)
                balance = self.team_analyzer.contribution_balance(repo_commits)

                consistency_total += consistency["consistency_score"]
                quality_total += quality["overall_score"]

                if quality["grade"] in grade_distribution:
                    grade_distribution[quality["grade"]] += 1

                if consistency["is_cramming"]:
                    cramming_alerts.append({
                        "student": student.name,
                        "repo": repo.repo_name,
                        "percentage": consistency["cramming_percentage"],
                    })

                has_slacker = bool(balance and balance["has_slacker_warning"])
                if has_slacker:
                    slacker_warnings += 1

                student_analytics.append({
                    "student_id": student.id,
                    "student_name": student.name,
                    "repo_id": repo.id,
                    "repo_name": repo.full_name,
                    "consistency_score": consistency["consistency_score"],
                    "quality_grade": quality["grade"],
                    "quality_score": quality["overall_score"],
                    "is_cramming": consistency["is_cramming"],
                    "has_slacker_warning": has_slacker,
                    "total_commits": len(repo_commits),
                })

        repo_count = len(student_analytics)
        total_commits = len(commits)
        student_analytics.sort(key=lambda s: (-s["consistency_score"], s["student_name"], s["repo_id"]))

        return {
            "summary": {
                "avg_consistency_score": round_half_up(consistency_total / repo_count) if repo_count else 0,
                "avg_quality_score": round_half_up(quality_total / repo_count) if repo_count else 0,
                "cramming_alerts": len(cramming_alerts),
                "slacker_warnings": slacker_warnings,
                "total_students": len(students),
                "total_repositories": repo_count,
            },
            "total_commits": total_commits,
            "avg_commits_per_repo": round_half_up(total_commits / repo_count, 1) if repo_count else 0,
            "grade_distribution": grade_distribution,
            "cramming_alerts": cramming_alerts,
            "heatmap": self.class_heatmap(commits, now),
            "tech_stack": self.technology_analyzer.analyze_tech_stack(repositories),
            "student_analytics": student_analytics,
        }

    def class_heatmap(self, commits: List[Commit], now: datetime, weeks: int = 12) -> List[Dict[str, Any]]:
        """weeks x 7 grid ending today; cell (weeks - 1, 6) is today."""
        tz = now.tzinfo
        counts: Dict[Any, int] = {}
        for commit in commits:
            day = local_date(commit.commit_date, tz)
            counts[day] = counts.get(day, 0) + 1

        today = now.astimezone(tz).date()
        cells = []
        for week in range(weeks):
            for day in range(7):
                target = today - timedelta(days=(weeks - 1 - week) * 7 + (6 - day))
                cells.append({
                    "week": week,
                    "day": day,
                    "count": counts.get(target, 0),
                    "date": target.isoformat(),
                })
        return cells

    def at_risk_students(
            self,
            students: List[Student],
            repositories: List[Repository],
            commits: List[Commit],
            now: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        now = resolve_now(now)
        window_start = now - timedelta(days=self.settings.at_risk_window_days)

        at_risk = []
        for student in students:
            student_commits = commits_for(repositories_for(student.id, repositories), commits)
            recent = sum(1 for c in student_commits if window_start <= c.commit_date <= now)
            if recent >= self.settings.at_risk_min_commits:
                continue

            at_risk.append({
                "student": {"id": student.id, "name": student.name, "email": student.email},
                "risk_score": 3 if recent == 0 else 1,
                "total_commits": len(student_commits),
                "recent_commits": recent,
                "issues": [{"severity": "high" if recent == 0 else "medium",
                            "message": "Low commit frequency"}],
            })

        at_risk.sort(key=lambda item: (-item["risk_score"], item["student"]["name"]))
        return at_risk
