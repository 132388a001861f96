from datetime import date, timedelta
from typing import Iterable, List, Optional, Set

from ..schemas.insight import CareConsistency, Milestone

WEEK_DAYS = 7
MONTH_DAYS = 30
LEVELS = [(85, "Excellent"), (70, "Good"), (50, "Building")]


def current_streak(days: Set[date], today: date) -> int:
    """Consecutive check-in days ending today.

    A streak is not broken until the day is over, so without a check-in today
    the count starts from yesterday.
    """
    cursor = today if today in days else today - timedelta(days=1)
    streak = 0
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def longest_streak(days: Set[date]) -> int:
    longest = 0
    run = 0
    previous = None
    for day in sorted(days):
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        longest = max(longest, run)
        previous = day
    return longest


def _streak_reached_on(days: Set[date], length: int) -> Optional[date]:
    run = 0
    previous = None
    for day in sorted(days):
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        if run >= length:
            return day
        previous = day
    return None


def consistency_level(weekly_percentage: int) -> str:
    for threshold, label in LEVELS:
        if weekly_percentage >= threshold:
            return label
    return "Getting Started"


def _milestones(days: Set[date], longest: int, reminders_count: int, logs_count: int) -> List[Milestone]:
    ordered = sorted(days)
    return [
        Milestone(
            id="first_checkin",
            title="First Check-In",
            description="Complete your first daily health review",
            achieved=bool(ordered),
            progress=1.0 if ordered else 0.0,
            achieved_on=ordered[0] if ordered else None,
        ),
        Milestone(
            id="week_complete",
            title="Week Complete",
            description="Check in 7 days in a row",
            achieved=longest >= WEEK_DAYS,
            progress=round(min(1.0, longest / WEEK_DAYS), 2),
            achieved_on=_streak_reached_on(days, WEEK_DAYS),
        ),
        Milestone(
            id="month_complete",
            title="Month of Care",
            description="Check in on 30 different days",
            achieved=len(ordered) >= MONTH_DAYS,
            progress=round(min(1.0, len(ordered) / MONTH_DAYS), 2),
            achieved_on=ordered[MONTH_DAYS - 1] if len(ordered) >= MONTH_DAYS else None,
        ),
        Milestone(
            id="care_calendar_setup",
            title="Care Calendar",
            description="Add your first care reminder",
            achieved=reminders_count > 0,
            progress=1.0 if reminders_count > 0 else 0.0,
        ),
        Milestone(
            id="insights_unlocked",
            title="Insights Unlocked",
            description="Record 10 health logs",
            achieved=logs_count >= 10,
            progress=round(min(1.0, logs_count / 10), 2),
        ),
    ]


def care_consistency(
    check_in_dates: Iterable[date],
    today: date,
    reminders_count: int = 0,
    logs_count: int = 0,
) -> CareConsistency:
    days = {day for day in check_in_dates if day <= today}
    week_start = today - timedelta(days=WEEK_DAYS - 1)
    month_start = today - timedelta(days=MONTH_DAYS - 1)
    this_week = sum(1 for day in days if day >= week_start)
    this_month = sum(1 for day in days if day >= month_start)
    weekly = int(round(this_week / WEEK_DAYS * 100))
    monthly = int(round(this_month / MONTH_DAYS * 100))
    longest = longest_streak(days)

    if this_week:
        description = f"{this_week} of 7 days this week"
    else:
        description = "Start your first daily health review"

    return CareConsistency(
        days_this_week=this_week,
        days_this_month=this_month,
        weekly_percentage=weekly,
        monthly_percentage=monthly,
        current_streak=current_streak(days, today),
        longest_streak=longest,
        level=consistency_level(weekly),
        description=description,
        milestones=_milestones(days, longest, reminders_count, logs_count),
    )
