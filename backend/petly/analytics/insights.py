"""Rule-based insights over a dog's recent health logs and daily check-ins.

Every rule looks at a trailing window (7, 14 or 30 days before ``now``),
compares counts and averages against fixed thresholds and returns one of a
fixed set of message templates. Nothing here touches the database.
"""
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, List, NamedTuple, Optional

import pandas as pd

from ..core.timeutils import utcnow
from ..schemas.insight import DataStats, Insight
from .frames import ACTIVITY_TYPES, logs_to_frame, of_type, to_timestamp, within

PRIORITY_ORDER = {"high": 0, "medium": 1, "low": 2}
ABNORMAL_DIGESTION = r"diarrhea|constipated|soft"

LOW_ACTIVITY_MINUTES = 20
GREAT_ACTIVITY_MINUTES = 45
MIN_MEALS_PER_DAY = 1.5
ACTIVITY_TREND_PERCENT = 15
SUPPLEMENT_TARGET = 20
CHECKIN_MOOD_MIN_ENTRIES = 5
INSIGHTS_UNLOCK_LOGS = 10


class _Context(NamedTuple):
    logs: pd.DataFrame
    week: pd.DataFrame
    last_week: pd.DataFrame
    month: pd.DataFrame
    check_in_moods: List[int]
    recent_check_ins: int
    dog_name: str


def _activity_trend(ctx: _Context) -> Optional[Insight]:
    this_week = of_type(ctx.week, *ACTIVITY_TYPES)
    last_week = of_type(ctx.last_week, *ACTIVITY_TYPES)
    if this_week.empty or last_week.empty:
        return None
    this_minutes = this_week["minutes"].sum()
    last_minutes = last_week["minutes"].sum()
    if last_minutes <= 0:
        return None
    change = (this_minutes - last_minutes) / last_minutes * 100
    if abs(change) < ACTIVITY_TREND_PERCENT:
        return None
    percent = int(abs(change))
    if change > 0:
        return Insight(
            id="activity_trend",
            category="activity",
            priority="low",
            kind="positive",
            title=f"Activity Up {percent}%",
            description=f"{ctx.dog_name} has been more active this week than last week. Keep it up!",
            icon="figure.walk",
        )
    return Insight(
        id="activity_trend",
        category="activity",
        priority="medium",
        kind="attention",
        title=f"Activity Down {percent}%",
        description=(
            f"{ctx.dog_name}'s activity dropped compared to last week. "
            "An extra walk or play session could help."
        ),
        action_text="Log a walk",
        icon="figure.walk",
    )


def _walk_routine(ctx: _Context) -> Optional[Insight]:
    walks = of_type(ctx.week, "Walk")
    avg_daily = int(walks["minutes"].sum()) // 7
    if not walks.empty and avg_daily < LOW_ACTIVITY_MINUTES:
        return Insight(
            id="low_activity",
            category="activity",
            priority="medium",
            kind="attention",
            title="Low Activity Detected",
            description=(
                f"{ctx.dog_name} averaged {avg_daily} minutes of walking per day this week. "
                "Most dogs need at least 30 minutes of daily exercise."
            ),
            action_text="Schedule a walk",
            icon="figure.walk",
        )
    if avg_daily >= GREAT_ACTIVITY_MINUTES:
        return Insight(
            id="great_exercise",
            category="activity",
            priority="low",
            kind="positive",
            title="Great Exercise Routine!",
            description=f"{ctx.dog_name} is averaging {avg_daily} minutes of walks per day. Excellent work!",
            icon="star.fill",
        )
    return None


def _inconsistent_feeding(ctx: _Context) -> Optional[Insight]:
    meals = of_type(ctx.week, "Meals")
    if meals.empty or len(meals) / 7 >= MIN_MEALS_PER_DAY:
        return None
    return Insight(
        id="inconsistent_feeding",
        category="nutrition",
        priority="medium",
        kind="attention",
        title="Inconsistent Feeding",
        description=(
            f"Only {len(meals)} meals logged this week. "
            "Regular feeding times help digestion and energy levels."
        ),
        action_text="Log a meal",
        icon="fork.knife",
    )


def _consistent_feeding(ctx: _Context) -> Optional[Insight]:
    meals_per_day = of_type(ctx.week, "Meals").groupby("day").size()
    if len(meals_per_day) < 5:
        return None
    if not 2 <= meals_per_day.mean() <= 3:
        return None
    return Insight(
        id="consistent_feeding",
        category="nutrition",
        priority="low",
        kind="positive",
        title="Consistent Feeding",
        description=f"{ctx.dog_name} kept a steady meal routine on {len(meals_per_day)} days this week.",
        icon="checkmark.circle.fill",
    )


def _top_symptom(symptoms: pd.DataFrame) -> tuple[str, int]:
    names = symptoms["symptom_type"].replace("", "Unspecified symptom")
    counts = names.groupby(names).size().sort_values(ascending=False, kind="stable")
    return str(counts.index[0]), int(counts.iloc[0])


def _recurring_symptom(ctx: _Context) -> Optional[Insight]:
    weekly = of_type(ctx.week, "Symptom")
    if not weekly.empty:
        name, count = _top_symptom(weekly)
        if count >= 2:
            return Insight(
                id="recurring_symptom",
                category="health",
                priority="high",
                kind="attention",
                title=f"Recurring: {name}",
                description=f"{name} was logged {count} times this week. Consider mentioning it to your vet.",
                action_text="Ask the assistant",
                icon="exclamationmark.triangle.fill",
            )
    monthly = of_type(ctx.month, "Symptom")
    if len(monthly) >= 3:
        name, count = _top_symptom(monthly)
        if count >= 2:
            return Insight(
                id="recurring_symptom_pattern",
                category="health",
                priority="high",
                kind="attention",
                title="Recurring Symptom Pattern",
                description=f"{name} has appeared {count} times in the last 30 days.",
                action_text="Talk to your vet",
                icon="exclamationmark.triangle.fill",
            )
    return None


def _digestive_issues(ctx: _Context) -> Optional[Insight]:
    digestion = of_type(ctx.week, "Digestion")
    abnormal = digestion["digestion_quality"].str.contains(ABNORMAL_DIGESTION, case=False, regex=True).sum()
    if abnormal < 2:
        return None
    return Insight(
        id="digestive_issues",
        category="health",
        priority="high",
        kind="attention",
        title="Digestive Issues Noted",
        description=(
            f"{int(abnormal)} abnormal digestion entries this week. "
            "Monitor closely and consult your vet if it continues."
        ),
        action_text="Track digestion",
        icon="cross.case.fill",
    )


def _mood_trend(ctx: _Context) -> Optional[Insight]:
    moods = of_type(ctx.week, "Mood")["mood_level"].dropna()
    if moods.empty:
        return None
    average = float(moods.mean())
    if average < 2.5:
        return Insight(
            id="low_mood_trend",
            category="behavior",
            priority="medium",
            kind="attention",
            title="Low Mood Trend",
            description=(
                f"{ctx.dog_name}'s average mood this week is {average:.1f}/5. "
                "Extra playtime and attention may help."
            ),
            action_text="Log playtime",
            icon="face.dashed",
        )
    if average >= 4:
        return Insight(
            id="happy_pet",
            category="behavior",
            priority="low",
            kind="positive",
            title="Happy Pet!",
            description=f"{ctx.dog_name}'s mood has averaged {average:.1f}/5 this week.",
            icon="face.smiling",
        )
    return None


def _check_in_mood(ctx: _Context) -> Optional[Insight]:
    if ctx.recent_check_ins < CHECKIN_MOOD_MIN_ENTRIES or not ctx.check_in_moods:
        return None
    # Whole-number average: 2.4 counts as 2.
    average = sum(ctx.check_in_moods) // len(ctx.check_in_moods)
    if average >= 4:
        return Insight(
            id="checkin_good_mood",
            category="behavior",
            priority="low",
            kind="positive",
            title="Happy Pet!",
            description=f"Daily check-ins show {ctx.dog_name} in good spirits.",
            icon="sun.max.fill",
        )
    if average <= 2:
        return Insight(
            id="checkin_low_mood",
            category="behavior",
            priority="medium",
            kind="attention",
            title="Mood Needs Attention",
            description=(
                f"Recent check-ins show a lower mood for {ctx.dog_name}. "
                "Watch for changes in appetite or energy."
            ),
            action_text="Ask the assistant",
            icon="cloud.rain.fill",
        )
    return None


def _track_water(ctx: _Context) -> Optional[Insight]:
    if ctx.week.empty or not of_type(ctx.week, "Water").empty:
        return None
    return Insight(
        id="track_water",
        category="reminder",
        priority="low",
        kind="info",
        title="Track Water Intake",
        description="Logging water helps you spot dehydration early.",
        action_text="Log water",
        icon="drop.fill",
    )


def _supplement_reminder(ctx: _Context) -> Optional[Insight]:
    supplements = of_type(ctx.month, "Supplements")
    supplements = supplements[supplements["supplement_name"] != ""]
    if supplements.empty:
        return None
    counts = supplements.groupby("supplement_name").size()
    for name, count in counts.items():
        if count < SUPPLEMENT_TARGET:
            return Insight(
                id="supplement_reminder",
                category="reminder",
                priority="low",
                kind="info",
                title="Supplement Reminder",
                description=(
                    f"{name} was logged {int(count)} times in the last 30 days. "
                    "Supplements work best when given consistently."
                ),
                action_text="Set a reminder",
                icon="pills.fill",
            )
    return None


def _start_logging(ctx: _Context) -> Optional[Insight]:
    if not ctx.week.empty:
        return None
    return Insight(
        id="start_logging",
        category="reminder",
        priority="low",
        kind="info",
        title="Start Logging",
        description=f"Log {ctx.dog_name}'s daily activities to unlock personalized insights.",
        action_text="Add a log",
        icon="plus.circle.fill",
    )


def _keep_logging(ctx: _Context) -> Optional[Insight]:
    total = len(ctx.logs)
    if total == 0 or total >= INSIGHTS_UNLOCK_LOGS:
        return None
    return Insight(
        id="keep_logging",
        category="reminder",
        priority="low",
        kind="info",
        title="Keep Logging",
        description=f"{total} of {INSIGHTS_UNLOCK_LOGS} logs recorded. More entries make insights more accurate.",
        icon="chart.line.uptrend.xyaxis",
    )


RULES: List[Callable[[_Context], Optional[Insight]]] = [
    _activity_trend,
    _walk_routine,
    _inconsistent_feeding,
    _consistent_feeding,
    _recurring_symptom,
    _digestive_issues,
    _mood_trend,
    _check_in_mood,
    _track_water,
    _supplement_reminder,
    _start_logging,
    _keep_logging,
]


def _dedup(insights: Iterable[Insight]) -> List[Insight]:
    seen = set()
    out = []
    for insight in insights:
        if insight.title in seen:
            continue
        seen.add(insight.title)
        out.append(insight)
    return out


def build_context(logs: Iterable, check_ins: Iterable, now: datetime, dog_name: str) -> _Context:
    stamp = to_timestamp(now)
    df = logs_to_frame(logs)
    today = stamp.date()
    recent = [c for c in check_ins if _check_in_day(c) >= today - timedelta(days=7)]
    moods = [c.overall_mood for c in recent if c.overall_mood is not None]
    return _Context(
        logs=df,
        week=within(df, stamp, 7),
        last_week=within(df, stamp, 14, skip_days=7),
        month=within(df, stamp, 30),
        check_in_moods=moods,
        recent_check_ins=len(recent),
        dog_name=dog_name or "Your dog",
    )


def _check_in_day(check_in) -> date:
    value = check_in.check_in_date
    return value.date() if isinstance(value, datetime) else value


def generate_insights(
    logs: Iterable,
    check_ins: Iterable = (),
    now: Optional[datetime] = None,
    dog_name: str = "Your dog",
) -> List[Insight]:
    """Evaluate every rule and return the triggered insights, most urgent first."""
    ctx = build_context(logs, check_ins, now or utcnow(), dog_name)
    triggered = [insight for insight in (rule(ctx) for rule in RULES) if insight is not None]
    # sorted() is stable, so rule order breaks priority ties
    return sorted(_dedup(triggered), key=lambda insight: PRIORITY_ORDER[insight.priority])


def data_stats(logs: Iterable, now: Optional[datetime] = None) -> DataStats:
    stamp = to_timestamp(now or utcnow())
    month = within(logs_to_frame(logs), stamp, 30)
    return DataStats(
        days_tracked=int(month["day"].nunique()),
        meals_logged=len(of_type(month, "Meals")),
        activities_logged=len(of_type(month, *ACTIVITY_TYPES)),
        symptoms_logged=len(of_type(month, "Symptom")),
    )
