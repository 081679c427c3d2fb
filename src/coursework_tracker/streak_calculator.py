from datetime import datetime, timedelta
from typing import Dict, List, Any, Optional

from coursework_tracker.metrics import local_date, resolve_now
from coursework_tracker.models import Commit


class StreakCalculator:
    def __init__(self, display_days: int = 30):
        self.display_days = display_days

    def calculate_streaks(self, commits: List[Commit], now: Optional[datetime] = None) -> Dict[str, Any]:
        result = {
            "current_streak": 0,
            "longest_streak": 0,
            "longest_streak_start": None,
            "longest_streak_end": None,
            "total_active_days": 0,
            "streak_dates": [],
        }

        if not commits:
            return result

        now = resolve_now(now)
        tz = now.tzinfo
        dates = sorted({local_date(c.commit_date, tz) for c in commits})

        longest = 1
        run = 1
        run_start = dates[0]
        longest_start = longest_end = dates[0]

        for prev, curr in zip(dates, dates[1:]):
            if (curr - prev).days == 1:
                run += 1
                if run > longest:
                    longest = run
                    longest_start = run_start
                    longest_end = curr
            else:
                run = 1
                run_start = curr

        today = now.astimezone(tz).date()
        last = dates[-1]
        current = 0
        if last in (today, today - timedelta(days=1)):
            current = 1
            for i in range(len(dates) - 1, 0, -1):
                if (dates[i] - dates[i - 1]).days != 1:
                    break
                current += 1

        result.update({
            "current_streak": current,
            "longest_streak": longest,
            "longest_streak_start": longest_start.isoformat(),
            "longest_streak_end": longest_end.isoformat(),
            "total_active_days": len(dates),
            "streak_dates": [d.isoformat() for d in dates[-self.display_days:]],
        })
        return result
