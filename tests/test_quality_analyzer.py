from coursework_tracker.quality_analyzer import CommitQualityAnalyzer

from conftest import make_commit


class TestMessageClassification:
    def setup_method(self):
        self.analyzer = CommitQualityAnalyzer()

    def test_exact_low_information_messages(self):
        for message in ["fix", "Update", "CHANGES", "wip", "test", "commit", "save", "done", "  Fix  "]:
            assert self.analyzer.is_bad_message(message), message

    def test_prefix_patterns(self):
        assert self.analyzer.is_bad_message("temporary hack for login")
        assert self.analyzer.is_bad_message("asdfasdf")
        assert self.analyzer.is_bad_message("stuff and things")
        assert self.analyzer.is_bad_message("Misc cleanup")

    def test_punctuation_and_short(self):
        assert self.analyzer.is_bad_message("......")
        assert self.analyzer.is_bad_message("!!!!!!")
        assert self.analyzer.is_bad_message("ok")
        assert self.analyzer.is_bad_message("")

    def test_descriptive_messages(self):
        assert not self.analyzer.is_bad_message("Fixes login redirect bug")
        assert not self.analyzer.is_bad_message("feat: add login")
        assert not self.analyzer.is_bad_message("update README with setup steps")


class TestCommitQualityReport:
    def setup_method(self):
        self.analyzer = CommitQualityAnalyzer()

    def test_mixed_messages(self):
        commits = [make_commit(message=m) for m in ["fix", "feat: add login", "fix", "feat: add tests"]]
        report = self.analyzer.analyze_commit_quality(commits)

        assert report["good_messages"] == 2
        assert report["bad_messages"] == 2
        assert report["message_quality_score"] == 50
        assert report["commit_size_score"] == 100
        assert report["overall_score"] == 70
        assert report["grade"] == "C"

    def test_all_bad_messages(self):
        commits = [make_commit(message=m) for m in ["fix", "update", "wip", "....", "asdf stuff"]]
        report = self.analyzer.analyze_commit_quality(commits)

        assert report["message_quality_score"] == 0
        assert report["grade"] == "F"

    def test_all_good_small_commits(self):
        commits = [make_commit(message=f"feat: implement module {i}", lines=500) for i in range(5)]
        report = self.analyzer.analyze_commit_quality(commits)

        assert report["overall_score"] == 100
        assert report["grade"] == "A"
        assert report["huge_commits"] == 0

    def test_huge_commits(self):
        commits = [
            make_commit(message="feat: giant import", lines=600),
            make_commit(message="feat: vendor library", lines=1200),
            make_commit(message="feat: small change", lines=20),
            make_commit(message="feat: another small", lines=20),
        ]
        report = self.analyzer.analyze_commit_quality(commits)

        assert report["huge_commits"] == 2
        assert report["commit_size_score"] == 50
        assert report["overall_score"] == 80
        assert report["avg_lines_per_commit"] == 460

    def test_missing_line_counts_default_to_zero(self):
        commit = make_commit(message="feat: no stats available")
        commit.lines_changed = None
        report = self.analyzer.analyze_commit_quality([commit])

        assert report["avg_lines_per_commit"] == 0
        assert report["huge_commits"] == 0

    def test_no_commits_is_no_data(self):
        report = self.analyzer.analyze_commit_quality([])

        assert report["grade"] == "N/A"
        assert report["has_data"] is False
        assert report["overall_score"] == 0
        assert report["total_commits"] == 0

    def test_custom_huge_threshold(self):
        analyzer = CommitQualityAnalyzer(huge_commit_lines=100)
        report = analyzer.analyze_commit_quality([make_commit(message="feat: medium change", lines=150)])
        assert report["huge_commits"] == 1
