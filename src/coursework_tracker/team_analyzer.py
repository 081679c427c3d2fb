from collections import Counter, defaultdict
from typing import Dict, List, Any, Optional

from coursework_tracker.metrics import gini, percentage, round_half_up, utc_date
from coursework_tracker.models import Commit


class TeamAnalyzer:
    def __init__(self, slacker_share: float = 80.0):
        self.slacker_share = slacker_share
        self.balance_bands = [(0.2, "excellent"), (0.4, "good"), (0.6, "moderate")]

    def balance_status(self, gini_coefficient: float) -> str:
        for upper, status in self.balance_bands:
            if gini_coefficient < upper:
                return status
        return "poor"

    def contribution_balance(
            self,
            commits: List[Commit],
            expected_contributors: Optional[List[str]] = None
    ) -> Optional[Dict[str, Any]]:
        if not commits:
            return None

        total = len(commits)
        counts = Counter(c.author for c in commits)

        # Highest count first, name breaks ties so output is stable
        contributors = [
            {
                "author": author,
                "commit_count": count,
                "percentage": round_half_up(percentage(count, total)),
            }
            for author, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        ]

        gini_coefficient = gini(counts.values())
        top = contributors[0]
        top_share = percentage(top["commit_count"], total)

        # Flag only applies when someone else is on the team
        has_slacker = len(contributors) > 1 and top_share > self.slacker_share

        timeline_map = defaultdict(Counter)
        for commit in commits:
            timeline_map[utc_date(commit.commit_date).isoformat()][commit.author] += 1

        timeline = [
            {"date": day, "commits_by_author": dict(by_author)}
            for day, by_author in sorted(timeline_map.items())
        ]

        result = {
            "contributors": contributors,
            "timeline": timeline,
            "total_commits": total,
            "gini_coefficient": round_half_up(gini_coefficient, 2),
            "balance_status": self.balance_status(gini_coefficient),
            "has_slacker_warning": has_slacker,
            "dominant_contributor": {"name": top["author"], "percentage": top["percentage"]},
        }

        if expected_contributors:
            active = {a.lower() for a in counts}
            result["inactive_contributors"] = [
                name for name in expected_contributors if name.lower() not in active
            ]

        return result
