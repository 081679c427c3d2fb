from datetime import datetime
from typing import Dict, List, Any, Optional

from coursework_tracker.badges import BadgeEvaluator
from coursework_tracker.class_analyzer import ClassAnalyzer
from coursework_tracker.config_manager import AnalyticsSettings, MilestoneStore
from coursework_tracker.leaderboard import LeaderboardBuilder
from coursework_tracker.metrics import resolve_now
from coursework_tracker.models import Milestone
from coursework_tracker.progress_tracker import ProgressTracker
from coursework_tracker.report_generator import ReportGenerator
from coursework_tracker.store import LocalStore
from coursework_tracker.summarizer import HeuristicSummarizer, SummaryBackend


class AnalyticsEngine:
    """
    Binds the analyzers to a store and a settings object.

    Every public method accepts ``now``; when omitted the clock is read
    once here and passed down, so a single call sees one consistent time.
    """

    def __init__(self, store: LocalStore, settings: Optional[AnalyticsSettings] = None,
                 milestone_store: Optional[MilestoneStore] = None,
                 summarizer: Optional[SummaryBackend] = None):
        self.store = store
        self.settings = settings or AnalyticsSettings()
        self.milestone_store = milestone_store

        self.class_analyzer = ClassAnalyzer(self.settings)
        self.leaderboard_builder = LeaderboardBuilder(self.settings)
        self.report_generator = ReportGenerator(self.settings)
        self.progress_tracker = ProgressTracker(self.class_analyzer.quality_analyzer)
        self.badge_evaluator = BadgeEvaluator()
        self.summarizer = summarizer or HeuristicSummarizer(
            self.class_analyzer.quality_analyzer,
            self.class_analyzer.consistency_analyzer,
            self.settings.consistency_window_days,
        )

    @property
    def quality_analyzer(self):
        return self.class_analyzer.quality_analyzer

    @property
    def consistency_analyzer(self):
        return self.class_analyzer.consistency_analyzer

    @property
    def streak_calculator(self):
        return self.leaderboard_builder.streak_calculator

    def _snapshot(self):
        return self.store.students, self.store.repositories, self.store.commits

    def milestones(self, now: Optional[datetime] = None) -> List[Milestone]:
        if not self.milestone_store:
            return []
        return self.milestone_store.load_milestones(resolve_now(now))

    def replace_milestones(self, milestones: List[Milestone]) -> List[Milestone]:
        if not self.milestone_store:
            raise RuntimeError("No milestone store configured")
        return self.milestone_store.replace_milestones(milestones)

    def repository_analytics(self, repo_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
        return self.class_analyzer.repository_analytics(
            repo_id, self.store.repositories, self.store.commits, resolve_now(now))

    def contribution_balance(self, repo_id: int) -> Optional[Dict[str, Any]]:
        repo = self.store.get_repository(repo_id)
        if not repo:
            return None
        return self.class_analyzer.team_analyzer.contribution_balance(
            self.store.commits_for_repository(repo_id), repo.contributors)

    def class_analytics(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return self.class_analyzer.class_analytics(*self._snapshot(), now=resolve_now(now))

    def at_risk_students(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        return self.class_analyzer.at_risk_students(*self._snapshot(), now=resolve_now(now))

    def leaderboard(self, period: str = "all", now: Optional[datetime] = None) -> Dict[str, Any]:
        return self.leaderboard_builder.leaderboard(*self._snapshot(), period=period, now=resolve_now(now))

    def compare_students(self, student_id_a: int, student_id_b: int,
                         now: Optional[datetime] = None) -> Dict[str, Any]:
        return self.leaderboard_builder.compare_students(
            student_id_a, student_id_b, *self._snapshot(), now=resolve_now(now))

    def progress_timeline(self, student_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = resolve_now(now)
        return self.progress_tracker.progress_timeline(
            student_id, *self._snapshot(), now=now, milestones=self.milestones(now))

    def student_badges(self, student_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = resolve_now(now)
        student = self.store.get_student(student_id)
        if not student:
            return {"error": "Student not found"}

        commits = self.store.commits_for_student(student_id)
        badges = self.badge_evaluator.student_badges(
            commits,
            self.streak_calculator.calculate_streaks(commits, now),
            self.quality_analyzer.analyze_commit_quality(commits),
            self.consistency_analyzer.analyze_consistency(
                commits, self.settings.consistency_window_days, now),
            tz=now.tzinfo,
        )
        return {"student": {"id": student.id, "name": student.name}, **badges}

    def student_summary(self, student_id: int, repo_id: Optional[int] = None,
                        now: Optional[datetime] = None) -> Dict[str, Any]:
        now = resolve_now(now)
        student = self.store.get_student(student_id)
        if not student:
            return {"error": "Student not found"}

        repository = None
        if repo_id is not None:
            repository = self.store.get_repository(repo_id)
            if not repository or repository.student_id != student_id:
                return {"error": f"Repository {repo_id} not found for student {student_id}"}
            commits = self.store.commits_for_repository(repo_id)
        else:
            commits = self.store.commits_for_student(student_id)

        return self.summarizer.summarize(student.name, commits, repository, now)

    def student_report(self, student_id: int, now: Optional[datetime] = None) -> Optional[str]:
        now = resolve_now(now)
        student = self.store.get_student(student_id)
        if not student:
            return None

        commits = self.store.commits_for_student(student_id)
        return self.report_generator.render_markdown_report(
            student,
            self.student_summary(student_id, now=now),
            self.quality_analyzer.analyze_commit_quality(commits),
            self.streak_calculator.calculate_streaks(commits, now),
            self.student_badges(student_id, now),
            now,
        )

    def export_analytics(self, fmt: str = "json", now: Optional[datetime] = None) -> Dict[str, Any]:
        return self.report_generator.export_analytics(*self._snapshot(), fmt=fmt, now=resolve_now(now))
