from datetime import datetime, timedelta, timezone

from petly.analytics.health_score import compute_health_score, score_label
from petly.db import models

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


def make_log(log_type, days_ago=0, **fields):
    return models.HealthLog(log_type=log_type, timestamp=NOW - timedelta(days=days_ago, hours=1), **fields)


def test_no_recent_logs_scores_neutral():
    score = compute_health_score([make_log("Walk", 20, duration="30")], now=NOW)

    assert (score.overall, score.activity, score.nutrition, score.wellness, score.consistency) == (50, 50, 50, 50, 50)
    assert score.label == "Needs Attention"


def test_component_scores():
    logs = [
        make_log("Walk", 0, duration="30"),
        make_log("Walk", 1, duration="30"),
        make_log("Meals", 0),
        make_log("Meals", 1),
        make_log("Water", 0),
        make_log("Water", 0),
        make_log("Symptom", 0, severity_level=2),
        make_log("Mood", 0, mood_level=4),
    ]

    score = compute_health_score(logs, now=NOW)

    assert score.activity == 36
    assert score.nutrition == 30
    assert score.wellness == 100
    assert score.consistency == 30
    assert score.overall == 49


def test_missing_severity_counts_as_moderate():
    score = compute_health_score([make_log("Symptom", 0)], now=NOW)

    assert score.wellness == 90


def test_scores_are_capped():
    logs = [make_log("Walk", day, duration="120") for day in range(7)]
    logs += [make_log("Meals", day) for day in range(7)]
    logs += [make_log("Water", day) for day in range(7)]

    score = compute_health_score(logs, now=NOW)

    assert score.activity == 100
    assert score.nutrition == 100
    assert score.consistency == 100
    assert score.overall == 100
    assert score.label == "Excellent"


def test_labels():
    assert score_label(92) == "Excellent"
    assert score_label(85) == "Great"
    assert score_label(70) == "Good"
    assert score_label(60) == "Fair"
    assert score_label(59) == "Needs Attention"


def test_overall_rounds_down():
    score = compute_health_score([make_log("Walk", 0, duration="50")], now=NOW)

    assert (score.activity, score.nutrition, score.wellness, score.consistency) == (20, 0, 100, 15)
    assert score.overall == 33
