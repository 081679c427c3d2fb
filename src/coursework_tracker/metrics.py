"""
Numeric primitives shared by the analyzers.

Everything here is pure: no clock reads, no I/O.
"""
import math
import statistics
from datetime import date, datetime, timezone, tzinfo
from typing import Iterable, List, Optional, Sequence

from coursework_tracker.models import ensure_timezone

GRADE_THRESHOLDS = [(90, "A"), (80, "B"), (70, "C"), (60, "D")]
NO_DATA_GRADE = "N/A"


def gini(values: Iterable[float]) -> float:
    """
    Gini coefficient of a sequence of non-negative contributions.

    Args:
        values: Per-category contributions, e.g. commits per author

    Returns:
        A value in [0, 1]; 0 is perfect equality. Fewer than two values or a
        zero total yields 0.
    """
    sorted_values = sorted(values)
    n = len(sorted_values)
    total = sum(sorted_values)

    if n <= 1 or total == 0:
        return 0.0

    numerator = sum((2 * (i + 1) - n - 1) * x for i, x in enumerate(sorted_values))
    return numerator / (n * total)


def mean(values: Sequence[float]) -> float:
    return statistics.mean(values) if values else 0.0


def variance(values: Sequence[float]) -> float:
    # population variance: every day in the window is observed
    return statistics.pvariance(values) if values else 0.0


def stddev(values: Sequence[float]) -> float:
    return statistics.pstdev(values) if values else 0.0


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def round_half_up(value: float, digits: int = 0):
    factor = 10 ** digits
    rounded = math.floor(value * factor + 0.5) / factor
    return int(rounded) if digits == 0 else rounded


def percentage(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return part / whole * 100


def letter_grade(score: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return "F"


def to_zone(dt: datetime, tz: Optional[tzinfo]) -> datetime:
    return ensure_timezone(dt).astimezone(tz or timezone.utc)


def local_date(dt: datetime, tz: Optional[tzinfo] = None) -> date:
    return to_zone(dt, tz).date()


def utc_date(dt: datetime) -> date:
    return to_zone(dt, timezone.utc).date()


def resolve_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return ensure_timezone(now)


def peak_hour(hours: List[int]) -> int:
    """Most frequent hour of day, lowest hour on ties; 0 when empty."""
    counts = [0] * 24
    for h in hours:
        counts[h] += 1
    return counts.index(max(counts))
