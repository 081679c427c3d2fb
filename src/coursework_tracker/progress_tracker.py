from datetime import datetime, timedelta
from typing import Dict, List, Any, Optional

from coursework_tracker.metrics import local_date, percentage, resolve_now, round_half_up
from coursework_tracker.models import (
    Commit, Milestone, Repository, Student, commits_for, find_student, repositories_for,
)
from coursework_tracker.quality_analyzer import CommitQualityAnalyzer

COMMIT_MILESTONES = [1, 10, 25, 50, 100]


class ProgressTracker:
    def __init__(self, quality_analyzer: Optional[CommitQualityAnalyzer] = None):
        self.quality_analyzer = quality_analyzer or CommitQualityAnalyzer()

    def progress_timeline(
            self,
            student_id: int,
            students: List[Student],
            repositories: List[Repository],
            commits: List[Commit],
            now: Optional[datetime] = None,
            milestones: Optional[List[Milestone]] = None
    ) -> Dict[str, Any]:
        now = resolve_now(now)
        student = find_student(student_id, students)
        if not student:
            return {"error": "Student not found"}

        student_commits = sorted(
            commits_for(repositories_for(student.id, repositories), commits),
            key=lambda c: c.commit_date,
        )
        header = {"id": student.id, "name": student.name}

        if not student_commits:
            return {
                "student": header,
                "timeline": [],
                "milestones": [],
                "milestone_progress": self.milestone_progress([], milestones or [], now),
                "summary": {"total_weeks": 0, "total_commits": 0, "avg_commits_per_week": 0},
            }

        weekly = self.weekly_buckets(student_commits, now)
        total = len(student_commits)

        return {
            "student": header,
            "timeline": weekly,
            "milestones": self.commit_milestones(student_commits),
            "milestone_progress": self.milestone_progress(student_commits, milestones or [], now),
            "summary": {
                "total_weeks": len(weekly),
                "total_commits": total,
                "avg_commits_per_week": round_half_up(total / len(weekly), 1) if weekly else 0,
            },
        }

    def weekly_buckets(self, commits: List[Commit], now: datetime) -> List[Dict[str, Any]]:
        """Sunday-based calendar weeks from the first commit's week through ``now``."""
        tz = now.tzinfo
        first_day = local_date(commits[0].commit_date, tz)
        # date.weekday() is Monday=0; shift so weeks start on Sunday
        week_start_day = first_day - timedelta(days=(first_day.weekday() + 1) % 7)
        week_start = datetime.combine(week_start_day, datetime.min.time(), tzinfo=tz)

        weeks = []
        while week_start <= now:
            week_end = week_start + timedelta(days=7)
            week_commits = [c for c in commits if week_start <= c.commit_date < week_end]
            cumulative = sum(1 for c in commits if c.commit_date < week_end)
            quality = self.quality_analyzer.analyze_commit_quality(week_commits)

            weeks.append({
                "week_start": week_start.date().isoformat(),
                "week_end": (week_end - timedelta(days=1)).date().isoformat(),
                "commits": len(week_commits),
                "cumulative_commits": cumulative,
                "quality_grade": quality["grade"],
                "topics": [c.message.split()[0] for c in week_commits[:3] if c.message.split()],
            })
            week_start = week_end

        return weeks

    def commit_milestones(self, commits: List[Commit]) -> List[Dict[str, Any]]:
        markers = []
        for threshold in COMMIT_MILESTONES:
            if len(commits) < threshold:
                break
            markers.append({
                "type": "first" if threshold == 1 else "commits",
                "threshold": threshold,
                "achieved_at": commits[threshold - 1].commit_date.isoformat(),
                "label": "First Commit" if threshold == 1 else f"{threshold} Commits!",
            })
        return markers

    def milestone_progress(self, commits: List[Commit], milestones: List[Milestone],
                           now: datetime) -> List[Dict[str, Any]]:
        progress = []
        for milestone in milestones:
            achieved = sum(1 for c in commits if c.commit_date <= milestone.date)
            is_met = achieved >= milestone.required_commits
            is_past = milestone.date < now

            if is_past:
                status = "completed" if is_met else "missed"
            else:
                status = "ahead" if is_met else "in-progress"

            progress.append({
                "id": milestone.id,
                "name": milestone.name,
                "date": milestone.date.isoformat(),
                "required_commits": milestone.required_commits,
                "commits_achieved": achieved,
                "progress": round_half_up(min(100.0, percentage(achieved, milestone.required_commits))),
                "is_met": is_met,
                "is_past": is_past,
                "status": status,
            })
        return progress
