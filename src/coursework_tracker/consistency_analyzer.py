from datetime import datetime, timedelta
from typing import Dict, List, Any, Optional
import math

from coursework_tracker.metrics import (
    clamp, mean, percentage, resolve_now, round_half_up, stddev, utc_date, variance,
)
from coursework_tracker.models import Commit


class ConsistencyAnalyzer:
    def __init__(self, cramming_window_hours: int = 48, cramming_threshold: float = 50.0,
                 max_expected_variance: float = 10.0, cramming_penalty: float = 30.0):
        self.cramming_window_hours = cramming_window_hours
        self.cramming_threshold = cramming_threshold
        self.max_expected_variance = max_expected_variance
        self.cramming_penalty = cramming_penalty

    def analyze_consistency(self, commits: List[Commit], window_days: int = 60,
                            now: Optional[datetime] = None) -> Dict[str, Any]:
        if not commits:
            return self._empty_report()

        now = resolve_now(now)
        start = now - timedelta(days=window_days)

        # one bucket per UTC date, oldest first
        daily_counts: Dict[str, int] = {}
        for offset in range(window_days):
            daily_counts[utc_date(start + timedelta(days=offset)).isoformat()] = 0

        for commit in commits:
            key = utc_date(commit.commit_date).isoformat()
            if key in daily_counts:
                daily_counts[key] += 1

        values = list(daily_counts.values())
        max_count = max(values + [1])
        heatmap_data = [
            {"date": day, "count": count, "level": math.ceil(count / max_count * 4)}
            for day, count in daily_counts.items()
        ]

        daily_variance = variance(values)

        cramming_start = now - timedelta(hours=self.cramming_window_hours)
        recent_commits = sum(1 for c in commits if cramming_start <= c.commit_date <= now)
        cramming_percentage = percentage(recent_commits, len(commits))
        is_cramming = cramming_percentage > self.cramming_threshold

        variance_score = max(0.0, 100 - daily_variance / self.max_expected_variance * 100)
        penalty = self.cramming_penalty if is_cramming else 0
        consistency_score = clamp(variance_score - penalty)

        active_days = sum(1 for v in values if v > 0)
        commits_in_window = sum(values)

        return {
            "consistency_score": round_half_up(consistency_score),
            "is_cramming": is_cramming,
            "cramming_percentage": round_half_up(cramming_percentage),
            "heatmap_data": heatmap_data,
            "commits_by_day": daily_counts,
            "variance": round_half_up(daily_variance, 2),
            "std_dev": round_half_up(stddev(values), 2),
            "active_days": active_days,
            "activity_rate": round_half_up(percentage(active_days, window_days)),
            "recent_commits": recent_commits,
            "total_commits": len(commits),
            "avg_commits_per_active_day": round_half_up(commits_in_window / active_days, 1) if active_days else 0,
            "avg_gap_days": self._average_gap_days(commits),
        }

    def _average_gap_days(self, commits: List[Commit]) -> float:
        dates = sorted({utc_date(c.commit_date) for c in commits})
        if len(dates) < 2:
            return 0
        gaps = [(later - earlier).days for earlier, later in zip(dates, dates[1:])]
        return round_half_up(mean(gaps), 1)

    def _empty_report(self) -> Dict[str, Any]:
        return {
            "consistency_score": 0,
            "is_cramming": False,
            "cramming_percentage": 0,
            "heatmap_data": [],
            "commits_by_day": {},
            "variance": 0,
            "std_dev": 0,
            "active_days": 0,
            "activity_rate": 0,
            "recent_commits": 0,
            "total_commits": 0,
            "avg_commits_per_active_day": 0,
            "avg_gap_days": 0,
        }
