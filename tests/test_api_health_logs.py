def meal(dog_id, client_id=None, timestamp="2026-10-15T08:00:00Z", **fields):
    payload = {
        "dog_id": dog_id,
        "log_type": "Meals",
        "timestamp": timestamp,
        "meal_type": "Breakfast",
        "amount": "1 cup",
    }
    if client_id:
        payload["client_id"] = client_id
    payload.update(fields)
    return payload


def test_create_log_is_idempotent_on_client_id(client, auth_headers, dog):
    resp = client.post("/health-logs/", json=meal(dog["id"], "device-1"), headers=auth_headers)
    assert resp.status_code == 201
    created = resp.json()
    assert created["duplicate"] is False
    assert created["display_title"] == "Breakfast"
    assert created["display_subtitle"] == "1 cup"

    resp = client.post("/health-logs/", json=meal(dog["id"], "device-1"), headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["duplicate"] is True
    assert resp.json()["id"] == created["id"]

    logs = client.get("/health-logs/", params={"dog_id": dog["id"]}, headers=auth_headers).json()["logs"]
    assert len(logs) == 1


def test_create_log_validation(client, auth_headers, dog):
    resp = client.post("/health-logs/", json=meal(dog["id"], log_type="Nap"), headers=auth_headers)
    assert resp.status_code == 422
    resp = client.post(
        "/health-logs/",
        json={"dog_id": dog["id"], "log_type": "Mood", "timestamp": "2026-10-15T08:00:00Z", "mood_level": 6},
        headers=auth_headers,
    )
    assert resp.status_code == 422


def test_cannot_log_for_someone_elses_dog(client, dog, other_headers):
    resp = client.post("/health-logs/", json=meal(dog["id"]), headers=other_headers)
    assert resp.status_code == 404


def test_batch_skips_duplicates_and_foreign_dogs(client, auth_headers, other_headers, dog):
    foreign = client.post("/dogs/", json={"name": "Rex"}, headers=other_headers).json()
    client.post("/health-logs/", json=meal(dog["id"], "device-1"), headers=auth_headers)

    resp = client.post(
        "/health-logs/batch",
        json={
            "logs": [
                meal(dog["id"], "device-1"),
                meal(dog["id"], "device-2"),
                meal(dog["id"], "device-2"),
                meal(dog["id"], "device-3", log_type="Water", water_amount="500 ml"),
                meal(foreign["id"], "device-4"),
            ]
        },
        headers=auth_headers,
    )
    assert resp.status_code == 201
    assert resp.json() == {"created": 2, "duplicates": 2}

    resp = client.post("/health-logs/batch", json={"logs": [meal(foreign["id"])]}, headers=auth_headers)
    assert resp.status_code == 400


def test_sync_returns_server_logs_and_uploads_local_ones(client, auth_headers, dog):
    client.post("/health-logs/", json=meal(dog["id"], "server-1"), headers=auth_headers)

    resp = client.post(
        "/health-logs/sync",
        json={
            "dog_id": dog["id"],
            "local_logs": [
                meal(dog["id"], "server-1"),
                meal(dog["id"], "local-1", log_type="Walk", duration="30", timestamp="2026-10-15T18:00:00Z"),
            ],
        },
        headers=auth_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert [log["client_id"] for log in body["server_logs"]] == ["server-1"]
    assert body["uploaded_count"] == 1
    assert body["duplicate_client_ids"] == ["server-1"]

    logs = client.get("/health-logs/", params={"dog_id": dog["id"]}, headers=auth_headers).json()["logs"]
    assert [log["display_title"] for log in logs] == ["Walk - 30 min", "Breakfast"]


def test_update_and_soft_delete(client, auth_headers, dog):
    log = client.post("/health-logs/", json=meal(dog["id"]), headers=auth_headers).json()

    resp = client.patch(f"/health-logs/{log['id']}", json={"notes": "Ate slowly"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["notes"] == "Ate slowly"
    assert client.patch(f"/health-logs/{log['id']}", json={}, headers=auth_headers).status_code == 400

    assert client.delete(f"/health-logs/{log['id']}", headers=auth_headers).status_code == 204
    assert client.get(f"/health-logs/{log['id']}", headers=auth_headers).status_code == 404
    assert client.get("/health-logs/", headers=auth_headers).json()["logs"] == []

    resp = client.get("/health-logs/", params={"since": "2000-01-01T00:00:00Z"}, headers=auth_headers)
    tombstones = resp.json()["logs"]
    assert [item["id"] for item in tombstones] == [log["id"]]
    assert tombstones[0]["is_deleted"] is True


def test_list_filters_by_type(client, auth_headers, dog):
    client.post("/health-logs/", json=meal(dog["id"]), headers=auth_headers)
    client.post(
        "/health-logs/",
        json={"dog_id": dog["id"], "log_type": "Symptom", "timestamp": "2026-10-15T09:00:00Z",
              "symptom_type": "Itching", "severity_level": 3},
        headers=auth_headers,
    )

    resp = client.get("/health-logs/", params={"log_type": "Symptom"}, headers=auth_headers)
    logs = resp.json()["logs"]
    assert len(logs) == 1
    assert logs[0]["display_subtitle"] == "Severity 3/5"
    assert logs[0]["timestamp"].startswith("2026-10-15T09:00:00")


def test_since_returns_tombstones_deleted_after_the_last_sync(client, auth_headers, dog):
    log = client.post("/health-logs/", json=meal(dog["id"]), headers=auth_headers).json()
    synced_at = client.get("/health-logs/", headers=auth_headers).json()["synced_at"]

    assert client.delete(f"/health-logs/{log['id']}", headers=auth_headers).status_code == 204

    resp = client.get("/health-logs/", params={"since": synced_at}, headers=auth_headers)
    assert resp.status_code == 200
    changes = resp.json()["logs"]
    assert [item["id"] for item in changes] == [log["id"]]
    assert changes[0]["is_deleted"] is True
