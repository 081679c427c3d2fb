from datetime import tzinfo
from typing import Dict, List, Any, Optional, Callable

from coursework_tracker.metrics import to_zone
from coursework_tracker.models import Commit


def _badge(badge_id: str, name: str, icon: str, description: str, requirement: str,
           rule: Callable[[Dict[str, Any]], bool]) -> Dict[str, Any]:
    return {
        "id": badge_id,
        "name": name,
        "icon": icon,
        "description": description,
        "requirement": requirement,
        "rule": rule,
    }


BADGE_CATALOGUE = [
    _badge("first-commit", "First Steps", "🎯", "Made your first commit", "1 commit",
           lambda m: m["total_commits"] >= 1),
    _badge("ten-commits", "Getting Started", "🚀", "10 commits milestone", "10 commits",
           lambda m: m["total_commits"] >= 10),
    _badge("fifty-commits", "Committed", "💪", "50 commits milestone", "50 commits",
           lambda m: m["total_commits"] >= 50),
    _badge("hundred-commits", "Century Club", "💯", "100 commits milestone", "100 commits",
           lambda m: m["total_commits"] >= 100),
    _badge("streak-3", "On Fire", "🔥", "3-day streak", "3-day streak",
           lambda m: m["current_streak"] >= 3),
    _badge("streak-7", "Week Warrior", "⚔️", "7-day streak", "7-day streak",
           lambda m: m["current_streak"] >= 7),
    _badge("streak-14", "Unstoppable", "🏆", "14-day streak achieved", "14-day streak",
           lambda m: m["longest_streak"] >= 14),
    _badge("quality-a", "Quality Master", "⭐", "A-grade commit quality", "A grade",
           lambda m: m["grade"] == "A"),
    _badge("clean-commits", "Clean Coder", "✨", "90%+ meaningful commits", "90%+ quality",
           lambda m: m["total_commits"] > 0 and m["message_quality_score"] >= 90),
    _badge("early-bird", "Early Bird", "🌅", "5+ commits before 9 AM", "5 early commits",
           lambda m: m["early_commits"] >= 5),
    _badge("night-owl", "Night Owl", "🦉", "5+ commits after 10 PM", "5 late commits",
           lambda m: m["late_commits"] >= 5),
    _badge("consistent", "Consistent", "📅", "20+ active days", "20 active days",
           lambda m: m["active_days"] >= 20),
]


class BadgeEvaluator:
    def __init__(self, catalogue: Optional[List[Dict[str, Any]]] = None):
        self.catalogue = catalogue or BADGE_CATALOGUE

    def student_badges(
            self,
            commits: List[Commit],
            streaks: Dict[str, Any],
            quality: Dict[str, Any],
            consistency: Dict[str, Any],
            tz: Optional[tzinfo] = None
    ) -> Dict[str, Any]:
        hours = [to_zone(c.commit_date, tz).hour for c in commits]
        facts = {
            "total_commits": len(commits),
            "current_streak": streaks.get("current_streak", 0),
            "longest_streak": streaks.get("longest_streak", 0),
            "grade": quality.get("grade"),
            "message_quality_score": quality.get("message_quality_score", 0),
            "early_commits": sum(1 for h in hours if 5 <= h < 9),
            "late_commits": sum(1 for h in hours if h >= 22 or h < 5),
            "active_days": consistency.get("active_days", 0),
        }

        earned = []
        locked = []
        for badge in self.catalogue:
            public = {k: v for k, v in badge.items() if k != "rule"}
            if badge["rule"](facts):
                earned.append({**public, "earned": True})
            else:
                locked.append({**public, "earned": False})

        return {
            "earned": earned,
            "locked": locked,
            "total_earned": len(earned),
            "total_possible": len(self.catalogue),
        }
