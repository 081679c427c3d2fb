from coursework_tracker.class_analyzer import ClassAnalyzer
from coursework_tracker.config_manager import AnalyticsSettings
from coursework_tracker.models import Repository
from coursework_tracker.technology_analyzer import TechnologyAnalyzer

from conftest import NOW, make_commit


class TestClassAnalytics:
    def setup_method(self):
        self.analyzer = ClassAnalyzer()

    def test_summary(self, classroom):
        report = self.analyzer.class_analytics(*classroom, now=NOW)
        summary = report["summary"]

        assert summary["total_students"] == 4
        assert summary["total_repositories"] == 2
        assert summary["avg_consistency_score"] == 85
        assert summary["avg_quality_score"] == 70
        assert summary["cramming_alerts"] == 1
        assert summary["slacker_warnings"] == 0
        assert report["total_commits"] == 12
        assert report["avg_commits_per_repo"] == 6.0

    def test_grades_and_alerts(self, classroom):
        report = self.analyzer.class_analytics(*classroom, now=NOW)

        assert report["grade_distribution"] == {"A": 1, "B": 0, "C": 0, "D": 0, "F": 1}
        assert report["cramming_alerts"] == [{"student": "Bob", "repo": "api", "percentage": 100}]

    def test_student_rows_sorted_by_consistency(self, classroom):
        rows = self.analyzer.class_analytics(*classroom, now=NOW)["student_analytics"]

        assert [r["student_name"] for r in rows] == ["Alice", "Bob"]
        assert rows[0]["repo_name"] == "alice/webapp"
        assert rows[0]["consistency_score"] == 99
        assert rows[1]["consistency_score"] == 70
        assert rows[1]["is_cramming"] is True

    def test_slacker_warning_counted(self, classroom):
        students, repositories, commits = classroom
        repositories = repositories + [
            Repository(id=3, student_id=3, owner="carol", repo_name="group", is_group=True)]
        commits = commits + [make_commit(days_ago=d % 20, hours_ago=d, author="carol", repo_id=3)
                             for d in range(9)]
        commits.append(make_commit(days_ago=4, author="dave", repo_id=3))

        report = self.analyzer.class_analytics(students, repositories, commits, now=NOW)
        assert report["summary"]["slacker_warnings"] == 1

    def test_empty_class(self):
        report = self.analyzer.class_analytics([], [], [], now=NOW)

        assert report["summary"]["avg_consistency_score"] == 0
        assert report["avg_commits_per_repo"] == 0
        assert report["student_analytics"] == []
        assert len(report["heatmap"]) == 84


class TestClassHeatmap:
    def test_grid_ends_today(self, classroom):
        cells = ClassAnalyzer().class_heatmap(classroom[2], NOW)

        assert len(cells) == 84
        assert cells[-1] == {"week": 11, "day": 6, "count": 0, "date": "2026-03-15"}
        assert cells[-2]["date"] == "2026-03-14"
        assert cells[-2]["count"] == 2
        assert cells[0]["date"] == "2025-12-22"
        assert sum(c["count"] for c in cells) == 12


class TestTechStack:
    def test_class_tech_stack(self, classroom):
        stack = ClassAnalyzer().class_analytics(*classroom, now=NOW)["tech_stack"]

        assert [t["name"] for t in stack["technologies"]] == ["Django", "Elm", "Express.js", "React"]
        assert stack["total_repositories"] == 2
        react = next(t for t in stack["technologies"] if t["name"] == "React")
        assert react == {"name": "React", "count": 1, "category": "Frontend", "percentage": 50}
        assert [t["name"] for t in stack["by_category"]["Other"]] == ["Elm"]

    def test_aliases_merge(self):
        repos = [
            Repository(id=1, student_id=1, owner="a", repo_name="x", tech_stack=["pg", "mongoose"]),
            Repository(id=2, student_id=2, owner="b", repo_name="y", tech_stack=["PostgreSQL", " "]),
        ]
        stack = TechnologyAnalyzer().analyze_tech_stack(repos)

        assert stack["technologies"][0] == {
            "name": "PostgreSQL", "count": 2, "category": "Database", "percentage": 100}
        assert len(stack["technologies"]) == 2


class TestRepositoryAnalytics:
    def test_repository_report(self, classroom):
        _, repositories, commits = classroom
        report = ClassAnalyzer().repository_analytics(2, repositories, commits, now=NOW)

        assert report["repository"]["repo_name"] == "api"
        assert report["total_commits"] == 2
        assert report["code_quality"]["grade"] == "F"
        assert report["contribution_balance"]["contributors"][0]["author"] == "bob"

    def test_unknown_repository(self, classroom):
        _, repositories, commits = classroom
        assert ClassAnalyzer().repository_analytics(99, repositories, commits, now=NOW) == {
            "error": "Repository 99 not found"}


class TestAtRisk:
    def test_inactive_students_flagged(self, classroom):
        at_risk = ClassAnalyzer().at_risk_students(*classroom, now=NOW)

        assert [item["student"]["name"] for item in at_risk] == ["Carol", "Dan"]
        assert all(item["risk_score"] == 3 for item in at_risk)
        assert at_risk[0]["issues"][0]["severity"] == "high"

    def test_single_recent_commit_is_medium(self, classroom):
        students, repositories, commits = classroom
        repositories = repositories + [Repository(id=3, student_id=3, owner="carol", repo_name="solo")]
        commits = commits + [make_commit(days_ago=2, author="carol", repo_id=3)]

        settings = AnalyticsSettings(at_risk_min_commits=2)
        at_risk = ClassAnalyzer(settings).at_risk_students(students, repositories, commits, now=NOW)

        assert [item["student"]["name"] for item in at_risk] == ["Dan", "Carol"]
        assert at_risk[1]["risk_score"] == 1
        assert at_risk[1]["issues"][0]["severity"] == "medium"

    def test_future_commits_do_not_count_as_recent(self, classroom):
        students, repositories, commits = classroom
        repositories = repositories + [Repository(id=3, student_id=3, owner="carol", repo_name="solo")]
        commits = commits + [make_commit(days_ago=-1, author="carol", repo_id=3),
                             make_commit(days_ago=-2, author="carol", repo_id=3)]

        at_risk = ClassAnalyzer().at_risk_students(students, repositories, commits, now=NOW)

        carol = next(item for item in at_risk if item["student"]["name"] == "Carol")
        assert carol["recent_commits"] == 0
        assert carol["total_commits"] == 2
        assert carol["risk_score"] == 3
