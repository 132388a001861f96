from datetime import datetime
from typing import Iterable, Optional

from ..core.timeutils import utcnow
from ..schemas.insight import HealthScore
from .frames import ACTIVITY_TYPES, logs_to_frame, of_type, to_timestamp, within

LABELS = [(90, "Excellent"), (80, "Great"), (70, "Good"), (60, "Fair")]
NEUTRAL_SCORE = 50
MISSING_SEVERITY = 2


def score_label(score: int) -> str:
    for threshold, label in LABELS:
        if score >= threshold:
            return label
    return "Needs Attention"


def _clamp(value: float) -> int:
    return int(max(0, min(100, value)))


def compute_health_score(logs: Iterable, now: Optional[datetime] = None) -> HealthScore:
    """Score the last 7 days on activity, nutrition, wellness and consistency (0-100 each)."""
    stamp = to_timestamp(now or utcnow())
    week = within(logs_to_frame(logs), stamp, 7)
    if week.empty:
        return HealthScore(
            overall=NEUTRAL_SCORE,
            activity=NEUTRAL_SCORE,
            nutrition=NEUTRAL_SCORE,
            wellness=NEUTRAL_SCORE,
            consistency=NEUTRAL_SCORE,
            label=score_label(NEUTRAL_SCORE),
        )

    activity_logs = of_type(week, *ACTIVITY_TYPES)
    activity = _clamp(activity_logs["day"].nunique() * 15 + min(20, activity_logs["minutes"].sum() / 10))

    meal_days = of_type(week, "Meals")["day"].nunique()
    water_logs = len(of_type(week, "Water"))
    nutrition = _clamp(min(70, meal_days * 10) + min(30, water_logs * 5))

    severities = of_type(week, "Symptom")["severity_level"].fillna(MISSING_SEVERITY)
    wellness = 100 - float(severities.sum()) * 5
    moods = of_type(week, "Mood")["mood_level"].dropna()
    if not moods.empty:
        wellness += (float(moods.mean()) - 2) * 5
    wellness = _clamp(wellness)

    consistency = _clamp(week["day"].nunique() * 15)

    overall = (activity + nutrition + wellness + consistency) // 4
    return HealthScore(
        overall=overall,
        activity=activity,
        nutrition=nutrition,
        wellness=wellness,
        consistency=consistency,
        label=score_label(overall),
    )
