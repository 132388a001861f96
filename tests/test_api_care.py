from datetime import datetime, timedelta, timezone

import pytest


def iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def parse(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.fixture
def now():
    return datetime.now(timezone.utc)


def add_log(client, headers, dog_id, log_type, when, **fields):
    resp = client.post(
        "/health-logs/",
        json={"dog_id": dog_id, "log_type": log_type, "timestamp": iso(when), **fields},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_check_in_is_upserted_per_day(client, auth_headers, dog, now):
    url = f"/dogs/{dog['id']}/check-ins"
    first = client.post(url, json={"meals_logged": True, "overall_mood": 4}, headers=auth_headers)
    assert first.status_code == 201
    assert first.json()["completion_score"] == 2

    second = client.post(url, json={"meals_logged": True, "water_logged": True}, headers=auth_headers)
    assert second.status_code == 200
    assert second.json()["id"] == first.json()["id"]
    assert second.json()["overall_mood"] is None
    assert second.json()["completion_score"] == 2

    yesterday = (now - timedelta(days=1)).date().isoformat()
    resp = client.post(url, json={"check_in_date": yesterday, "activity_logged": True}, headers=auth_headers)
    assert resp.status_code == 201

    check_ins = client.get(url, headers=auth_headers).json()
    assert [item["check_in_date"] for item in check_ins] == [now.date().isoformat(), yesterday]


def test_consistency_summary(client, auth_headers, dog, now):
    url = f"/dogs/{dog['id']}/check-ins"
    for offset in range(3):
        day = (now - timedelta(days=offset)).date().isoformat()
        client.post(url, json={"check_in_date": day, "meals_logged": True}, headers=auth_headers)

    resp = client.get(f"/dogs/{dog['id']}/consistency", headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["days_this_week"] == 3
    assert body["weekly_percentage"] == 43
    assert body["current_streak"] == 3
    assert body["longest_streak"] == 3
    assert body["level"] == "Getting Started"
    milestones = {item["id"]: item for item in body["milestones"]}
    assert milestones["first_checkin"]["achieved"] is True
    assert milestones["week_complete"]["achieved"] is False


def test_reminder_lifecycle(client, auth_headers, dog, now):
    resp = client.post(
        "/reminders/",
        json={
            "dog_id": dog["id"],
            "title": "Heartworm pill",
            "reminder_type": "Heartworm",
            "frequency": "Weekly",
            "next_due_date": iso(now - timedelta(hours=1)),
        },
        headers=auth_headers,
    )
    assert resp.status_code == 201
    reminder = resp.json()
    assert reminder["is_due"] is True
    assert reminder["days_until_due"] == 0

    due = client.get("/reminders/", params={"due_only": True}, headers=auth_headers).json()
    assert [item["id"] for item in due] == [reminder["id"]]

    resp = client.post(f"/reminders/{reminder['id']}/complete", headers=auth_headers)
    assert resp.status_code == 200
    completed = resp.json()
    assert completed["is_due"] is False
    assert completed["last_completed_date"] is not None
    assert parse(completed["next_due_date"]) - parse(completed["last_completed_date"]) == timedelta(weeks=1)
    assert client.get("/reminders/", params={"due_only": True}, headers=auth_headers).json() == []

    resp = client.patch(f"/reminders/{reminder['id']}", json={"title": "Heartgard"}, headers=auth_headers)
    assert resp.json()["title"] == "Heartgard"

    assert client.delete(f"/reminders/{reminder['id']}", headers=auth_headers).status_code == 204
    assert client.get("/reminders/", headers=auth_headers).json() == []


def test_one_off_reminder_is_disabled_on_completion(client, auth_headers, dog, now):
    reminder = client.post(
        "/reminders/",
        json={"dog_id": dog["id"], "title": "Vet visit", "reminder_type": "Vet Appointment",
              "next_due_date": iso(now + timedelta(days=3))},
        headers=auth_headers,
    ).json()
    assert reminder["frequency"] == "Once"
    assert reminder["days_until_due"] in (2, 3)

    completed = client.post(f"/reminders/{reminder['id']}/complete", headers=auth_headers).json()
    assert completed["is_enabled"] is False
    assert completed["next_due_date"] == reminder["next_due_date"]


def test_reminder_validation_and_ownership(client, auth_headers, other_headers, dog, now):
    resp = client.post(
        "/reminders/",
        json={"dog_id": dog["id"], "title": "Bath", "frequency": "Fortnightly", "next_due_date": iso(now)},
        headers=auth_headers,
    )
    assert resp.status_code == 422

    reminder = client.post(
        "/reminders/",
        json={"dog_id": dog["id"], "title": "Bath", "reminder_type": "Grooming", "next_due_date": iso(now)},
        headers=auth_headers,
    ).json()
    assert client.post(f"/reminders/{reminder['id']}/complete", headers=other_headers).status_code == 404


def test_templates(client, auth_headers, dog):
    base = f"/dogs/{dog['id']}/templates"
    resp = client.post(
        base,
        json={"name": "Morning kibble", "log_type": "Meals", "meal_type": "Breakfast", "amount": "1 cup"},
        headers=auth_headers,
    )
    assert resp.status_code == 201
    template = resp.json()
    assert [item["id"] for item in client.get(base, headers=auth_headers).json()] == [template["id"]]

    resp = client.patch(f"{base}/{template['id']}", json={"amount": "1.5 cups"}, headers=auth_headers)
    assert resp.json()["amount"] == "1.5 cups"
    assert resp.json()["name"] == "Morning kibble"

    resp = client.post(f"{base}/{template['id']}/apply", json={"client_id": "tpl-1"}, headers=auth_headers)
    assert resp.status_code == 201
    log = resp.json()
    assert log["log_type"] == "Meals"
    assert log["display_title"] == "Breakfast"
    assert log["display_subtitle"] == "1.5 cups"
    assert log["client_id"] == "tpl-1"
    assert log["duplicate"] is False

    retry = client.post(f"{base}/{template['id']}/apply", json={"client_id": "tpl-1"}, headers=auth_headers)
    assert retry.status_code == 200
    assert retry.json()["id"] == log["id"]
    assert retry.json()["duplicate"] is True

    assert client.delete(f"{base}/{template['id']}", headers=auth_headers).status_code == 204
    assert client.get(base, headers=auth_headers).json() == []
    resp = client.post(f"{base}/{template['id']}/apply", json={}, headers=auth_headers)
    assert resp.status_code == 404


def test_weights_track_the_profile_weight(client, auth_headers, dog):
    base = f"/dogs/{dog['id']}/weights"
    for weight, day in ((50.0, "2026-09-01"), (52.0, "2026-09-08"), (51.0, "2026-09-15")):
        resp = client.post(base, json={"weight": weight, "date": f"{day}T08:00:00Z"}, headers=auth_headers)
        assert resp.status_code == 201
    older = client.post(base, json={"weight": 48.0, "date": "2026-08-01T08:00:00Z"}, headers=auth_headers).json()

    assert client.get(f"/dogs/{dog['id']}", headers=auth_headers).json()["weight_lbs"] == 51.0
    assert [entry["weight"] for entry in client.get(base, headers=auth_headers).json()] == [48.0, 50.0, 52.0, 51.0]

    stats = client.get(f"{base}/stats", headers=auth_headers).json()
    assert stats["entries"] == 4
    assert stats["latest_weight"] == 51.0
    assert stats["weight_change"] == -1.0

    assert client.delete(f"{base}/{older['id']}", headers=auth_headers).status_code == 204
    assert client.delete(f"{base}/{older['id']}", headers=auth_headers).status_code == 404
    assert client.post(base, json={"weight": 0, "date": "2026-09-20T08:00:00Z"}, headers=auth_headers).status_code == 422


def test_insights_for_a_new_dog(client, auth_headers, dog):
    insights = client.get(f"/dogs/{dog['id']}/insights", headers=auth_headers).json()
    assert [item["id"] for item in insights] == ["start_logging"]
    assert "Biscuit" in insights[0]["description"]

    score = client.get(f"/dogs/{dog['id']}/health-score", headers=auth_headers).json()
    assert score["overall"] == 50


def test_insights_flag_recurring_symptoms(client, auth_headers, dog, now):
    add_log(client, auth_headers, dog["id"], "Symptom", now - timedelta(hours=3), symptom_type="Itching", severity_level=2)
    add_log(client, auth_headers, dog["id"], "Symptom", now - timedelta(days=1), symptom_type="Itching", severity_level=3)
    add_log(client, auth_headers, dog["id"], "Meals", now - timedelta(hours=2), meal_type="Dinner")

    insights = client.get(f"/dogs/{dog['id']}/insights", headers=auth_headers).json()
    assert insights[0]["id"] == "recurring_symptom"
    assert insights[0]["title"] == "Recurring: Itching"
    assert insights[0]["priority"] == "high"
    ids = [item["id"] for item in insights]
    assert "keep_logging" in ids
    assert "start_logging" not in ids
    order = {"high": 0, "medium": 1, "low": 2}
    assert [order[item["priority"]] for item in insights] == sorted(order[item["priority"]] for item in insights)

    stats = client.get(f"/dogs/{dog['id']}/data-stats", headers=auth_headers).json()
    assert stats["symptoms_logged"] == 2
    assert stats["meals_logged"] == 1
    assert stats["activities_logged"] == 0


def test_vet_summary(client, auth_headers, dog, now):
    add_log(client, auth_headers, dog["id"], "Symptom", now - timedelta(days=2), symptom_type="Limping", severity_level=4)
    add_log(client, auth_headers, dog["id"], "Walk", now - timedelta(days=1), duration="30")
    add_log(client, auth_headers, dog["id"], "Walk", now - timedelta(days=20), duration="45")

    assert client.get(f"/dogs/{dog['id']}/vet-summary", params={"days": 14}, headers=auth_headers).status_code == 400

    summary = client.get(f"/dogs/{dog['id']}/vet-summary", params={"days": 7}, headers=auth_headers).json()
    assert summary["dog_name"] == "Biscuit"
    assert summary["total_logs"] == 2
    assert summary["counts_by_type"] == {"Walk": 1, "Symptom": 1}
    assert "Limping (Severity 4/5)" in summary["summary_text"]

    summary = client.get(
        f"/dogs/{dog['id']}/vet-summary",
        params={"days": 30, "log_types": ["Walk"]},
        headers=auth_headers,
    ).json()
    assert summary["total_logs"] == 2
    assert list(summary["counts_by_type"]) == ["Walk"]
