from datetime import datetime
from typing import Optional

from dateutil.relativedelta import relativedelta

from ..core.timeutils import as_utc

FREQUENCY_STEPS = {
    "Once": None,
    "Daily": relativedelta(days=1),
    "Weekly": relativedelta(weeks=1),
    "Every 2 Weeks": relativedelta(weeks=2),
    "Monthly": relativedelta(months=1),
    "Every 3 Months": relativedelta(months=3),
    "Every 6 Months": relativedelta(months=6),
    "Yearly": relativedelta(years=1),
}


def advance_due_date(frequency: str, from_date: datetime) -> Optional[datetime]:
    """Next occurrence after ``from_date``; None for one-off reminders.

    Month steps are calendar aware: Jan 31 + 1 month is Feb 28/29.
    """
    if frequency not in FREQUENCY_STEPS:
        raise ValueError(f"Unknown reminder frequency: {frequency}")
    step = FREQUENCY_STEPS[frequency]
    if step is None:
        return None
    return from_date + step


def complete_reminder(reminder, now: datetime) -> None:
    reminder.last_completed_date = now
    next_due = advance_due_date(reminder.frequency, now)
    if next_due is None:
        reminder.is_enabled = False
    else:
        reminder.next_due_date = next_due


def is_due(reminder, now: datetime) -> bool:
    return bool(reminder.is_enabled) and as_utc(reminder.next_due_date) <= as_utc(now)


def days_until_due(reminder, now: datetime) -> int:
    """Whole days until the due date, truncated toward zero (negative when overdue)."""
    delta = as_utc(reminder.next_due_date) - as_utc(now)
    return int(delta.total_seconds() / 86400)
