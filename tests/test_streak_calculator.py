from datetime import datetime, timedelta, timezone

from coursework_tracker.streak_calculator import StreakCalculator

from conftest import NOW, make_commit


class TestStreakCalculator:
    def setup_method(self):
        self.calculator = StreakCalculator()

    def test_no_commits(self):
        report = self.calculator.calculate_streaks([], NOW)

        assert report["current_streak"] == 0
        assert report["longest_streak"] == 0
        assert report["streak_dates"] == []

    def test_three_consecutive_days_in_the_past(self):
        commits = [make_commit(days_ago=d) for d in (10, 9, 8)]
        report = self.calculator.calculate_streaks(commits, NOW)

        assert report["longest_streak"] == 3
        assert report["current_streak"] == 0
        assert report["longest_streak_start"] == "2026-03-05"
        assert report["longest_streak_end"] == "2026-03-07"

    def test_single_commit_today(self):
        report = self.calculator.calculate_streaks([make_commit(hours_ago=1)], NOW)

        assert report["longest_streak"] == 1
        assert report["current_streak"] == 1

    def test_single_old_commit(self):
        report = self.calculator.calculate_streaks([make_commit(days_ago=3)], NOW)

        assert report["longest_streak"] == 1
        assert report["current_streak"] == 0

    def test_current_streak_ending_yesterday(self):
        commits = [make_commit(days_ago=d) for d in (1, 2, 3, 6)]
        report = self.calculator.calculate_streaks(commits, NOW)

        assert report["current_streak"] == 3
        assert report["longest_streak"] == 3
        assert report["total_active_days"] == 4

    def test_duplicate_days_collapse(self):
        commits = [make_commit(days_ago=1, hours_ago=h) for h in (0, 1, 2)]
        report = self.calculator.calculate_streaks(commits, NOW)

        assert report["total_active_days"] == 1
        assert report["current_streak"] == 1

    def test_gap_resets_run(self):
        commits = [make_commit(days_ago=d) for d in (20, 19, 18, 17, 10, 9)]
        report = self.calculator.calculate_streaks(commits, NOW)

        assert report["longest_streak"] == 4
        assert report["longest_streak_start"] == "2026-02-23"

    def test_streak_dates_limited(self):
        commits = [make_commit(days_ago=d) for d in range(1, 41)]
        report = self.calculator.calculate_streaks(commits, NOW)

        assert len(report["streak_dates"]) == 30
        assert report["streak_dates"][-1] == "2026-03-14"
        assert report["longest_streak"] == 40

    def test_calendar_days_follow_reference_timezone(self):
        plus_two = timezone(timedelta(hours=2))
        now = datetime(2026, 3, 15, 9, 0, tzinfo=plus_two)
        late_night = make_commit(now=datetime(2026, 3, 14, 23, 30, tzinfo=timezone.utc))

        report = self.calculator.calculate_streaks([late_night], now)

        assert report["streak_dates"] == ["2026-03-15"]
        assert report["current_streak"] == 1
