from datetime import datetime, timedelta, timezone

from petly.analytics.summary import format_log_summary
from petly.analytics.weights import weight_stats
from petly.api.utils.rate_limit import RateLimiter
from petly.db import models
from petly.schemas.weight import WeightEntry

START = datetime(2026, 9, 1, 8, 0, tzinfo=timezone.utc)


def test_weight_stats_sorts_by_date():
    entries = [
        WeightEntry(weight=51.0, date=START + timedelta(days=14)),
        WeightEntry(weight=50.0, date=START),
        WeightEntry(weight=52.0, date=START + timedelta(days=7)),
    ]

    stats = weight_stats(entries)

    assert stats.entries == 3
    assert stats.latest_weight == 51.0
    assert stats.weight_change == -1.0
    assert stats.average_weight == 51.0
    assert stats.trend_lbs_per_week == 0.5


def test_weight_stats_with_one_or_no_entries():
    assert weight_stats([]).latest_weight is None
    single = weight_stats([WeightEntry(weight=40.0, date=START)])
    assert single.latest_weight == 40.0
    assert single.weight_change is None
    assert single.trend_lbs_per_week is None


def test_log_summary_groups_and_limits_per_type():
    logs = [
        models.HealthLog(log_type="Meals", meal_type="Dinner", amount="1 cup", timestamp=START + timedelta(days=day))
        for day in range(7)
    ]
    logs.append(models.HealthLog(log_type="Symptom", symptom_type="Sneezing", severity_level=2, timestamp=START))
    logs.append(models.HealthLog(log_type="Walk", duration="25", timestamp=START, is_deleted=True))

    summary = format_log_summary(logs, per_type=5)

    assert summary.startswith("Meals (7 entries):")
    assert summary.count("Dinner (1 cup)") == 5
    assert "Sep 07: Dinner (1 cup)" in summary
    assert "Symptom (1 entries):\n  - Sep 01: Sneezing (Severity 2/5)" in summary
    assert "Walk" not in summary


def test_log_summary_empty():
    assert format_log_summary([]) == "No health logs recorded in this period."


def test_rate_limiter_fixed_window():
    limiter = RateLimiter(limit=2, window_seconds=60)

    assert limiter.hit("user", now=0) is None
    assert limiter.hit("user", now=10) is None
    assert limiter.hit("user", now=20) == 40
    assert limiter.hit("other", now=20) is None
    assert limiter.hit("user", now=61) is None
