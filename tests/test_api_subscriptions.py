from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from petly.core.config import settings
from petly.db import models
from petly.services import app_store
from petly.services.scheduler import scan_due_reminders


def _ms(value: datetime) -> str:
    return str(int(value.timestamp() * 1000))


def receipt(expires: datetime, product_id="com.petly.pup.monthly", transaction_id="1000000001"):
    return {
        "status": 0,
        "environment": "Sandbox",
        "latest_receipt_info": [
            {
                "transaction_id": "999",
                "product_id": product_id,
                "purchase_date_ms": _ms(expires - timedelta(days=60)),
                "expires_date_ms": _ms(expires - timedelta(days=30)),
            },
            {
                "transaction_id": transaction_id,
                "original_transaction_id": "999",
                "product_id": product_id,
                "purchase_date_ms": _ms(expires - timedelta(days=30)),
                "expires_date_ms": _ms(expires),
            },
        ],
    }


@pytest.fixture
def apple(monkeypatch):
    calls = []
    responses = []

    def post_receipt(url, receipt_data):
        calls.append(url)
        return responses.pop(0)

    monkeypatch.setattr(app_store, "_post_receipt", post_receipt)
    return calls, responses


def test_new_users_are_on_the_free_plan(client, auth_headers):
    body = client.get("/subscriptions/entitlements", headers=auth_headers).json()
    assert body == {"has_active_subscription": False, "subscription_status": "free", "expires_at": None}


def test_sandbox_receipt_is_retried_against_sandbox(client, auth_headers, apple):
    calls, responses = apple
    expires = datetime.now(timezone.utc) + timedelta(days=20)
    responses.extend([{"status": 21007}, receipt(expires)])

    resp = client.post("/subscriptions/verify-receipt", json={"receipt_data": "base64receipt"}, headers=auth_headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["has_active_subscription"] is True
    assert resp.json()["subscription_status"] == "pup_monthly"
    assert calls == [app_store.PRODUCTION_URL, app_store.SANDBOX_URL]

    assert client.get("/iap/entitlements", headers=auth_headers).json()["subscription_status"] == "pup_monthly"
    assert client.get("/users/me", headers=auth_headers).json()["subscription_status"] == "pup_monthly"


def test_receipt_is_upserted_by_transaction(client, auth_headers, apple, db_session):
    _, responses = apple
    expires = datetime.now(timezone.utc) + timedelta(days=300)
    responses.extend([receipt(expires, "com.petly.pup.annual"), receipt(expires, "com.petly.pup.annual")])

    for _ in range(2):
        resp = client.post("/subscriptions/verify-receipt", json={"receipt_data": "abc"}, headers=auth_headers)
        assert resp.json()["subscription_status"] == "pup_annual"

    subscriptions = db_session.query(models.Subscription).all()
    assert len(subscriptions) == 1
    assert subscriptions[0].transaction_id == "1000000001"
    assert subscriptions[0].status == "active"


def test_expired_receipt_downgrades_to_free(client, auth_headers, apple):
    _, responses = apple
    responses.append(receipt(datetime.now(timezone.utc) - timedelta(days=2)))

    body = client.post("/subscriptions/verify-receipt", json={"receipt_data": "abc"}, headers=auth_headers).json()
    assert body["has_active_subscription"] is False
    assert body["subscription_status"] == "free"


def test_rejected_receipt(client, auth_headers, apple):
    _, responses = apple
    responses.append({"status": 21003})

    resp = client.post("/subscriptions/verify-receipt", json={"receipt_data": "abc"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Receipt rejected with status 21003"


def test_receipt_cannot_be_replayed_by_another_account(client, auth_headers, other_headers, apple, db_session):
    _, responses = apple
    expires = datetime.now(timezone.utc) + timedelta(days=20)
    responses.extend([receipt(expires), receipt(expires)])

    owner = client.post("/subscriptions/verify-receipt", json={"receipt_data": "abc"}, headers=auth_headers)
    assert owner.status_code == 200

    resp = client.post("/subscriptions/verify-receipt", json={"receipt_data": "abc"}, headers=other_headers)
    assert resp.status_code == 409
    assert resp.json()["detail"] == "This purchase belongs to another account"

    owner_id = client.get("/users/me", headers=auth_headers).json()["id"]
    subscription = db_session.query(models.Subscription).one()
    assert str(subscription.user_id) == owner_id
    assert client.get("/subscriptions/entitlements", headers=other_headers).json()["subscription_status"] == "free"
    assert client.get("/subscriptions/entitlements", headers=auth_headers).json()["subscription_status"] == "pup_monthly"


def test_plan_for_product():
    assert app_store.plan_for_product("com.petly.pup.Monthly") == "pup_monthly"
    assert app_store.plan_for_product("com.petly.pup.yearly") == "pup_annual"


def test_due_reminders_become_notifications(client, auth_headers, dog, db_session):
    reminder = client.post(
        "/reminders/",
        json={
            "dog_id": dog["id"],
            "title": "Flea treatment",
            "reminder_type": "Flea & Tick",
            "frequency": "Monthly",
            "next_due_date": (datetime.now(timezone.utc) - timedelta(hours=1)).isoformat(),
        },
        headers=auth_headers,
    ).json()

    assert scan_due_reminders(db_session) == 1

    notifications = client.get("/notifications/me", headers=auth_headers).json()
    assert len(notifications) == 1
    assert notifications[0]["type"] == "reminder_due"
    assert notifications[0]["metadata"]["reminder_id"] == reminder["id"]
    assert notifications[0]["is_read"] is False

    resp = client.patch(f"/notifications/{notifications[0]['id']}", json={"is_read": True}, headers=auth_headers)
    assert resp.json()["is_read"] is True
    assert client.get("/notifications/me", params={"unread_only": True}, headers=auth_headers).json() == []


@pytest.fixture
def webhook_token(monkeypatch):
    monkeypatch.setattr(settings, "app_store_webhook_token", "asn-secret")
    return "asn-secret"


def notification(notification_type, **transaction):
    return {
        "notificationType": notification_type,
        "data": {"signedTransactionInfo": jwt.encode(transaction, "apple-key", algorithm="HS256")},
    }


def post_notification(client, body, token="asn-secret"):
    return client.post("/webhooks/apple-asn", params={"token": token}, json=body)


def test_renewal_notification_activates_account_by_app_account_token(client, auth_headers, webhook_token, db_session):
    user_id = client.get("/users/me", headers=auth_headers).json()["id"]
    expires = datetime.now(timezone.utc) + timedelta(days=30)
    body = notification(
        "DID_RENEW",
        transactionId="2000000001",
        originalTransactionId="2000000000",
        productId="com.petly.pup.annual",
        expiresDate=int(_ms(expires)),
        appAccountToken=user_id,
        environment="Production",
    )

    for _ in range(2):
        resp = post_notification(client, body)
        assert resp.status_code == 200, resp.text
        assert resp.json() == {"handled": True, "message": "Subscription updated", "status": "active"}

    assert client.get("/subscriptions/entitlements", headers=auth_headers).json()["subscription_status"] == "pup_annual"
    assert db_session.query(models.Subscription).count() == 1


def test_refund_notification_revokes_access(client, auth_headers, apple, webhook_token):
    _, responses = apple
    expires = datetime.now(timezone.utc) + timedelta(days=20)
    responses.append(receipt(expires))
    client.post("/subscriptions/verify-receipt", json={"receipt_data": "abc"}, headers=auth_headers)

    body = notification(
        "REFUND",
        transactionId="1000000001",
        originalTransactionId="999",
        productId="com.petly.pup.monthly",
        expiresDate=int(_ms(expires)),
    )
    resp = post_notification(client, body)
    assert resp.status_code == 200
    assert resp.json()["status"] == "expired"

    body = client.get("/subscriptions/entitlements", headers=auth_headers).json()
    assert body["has_active_subscription"] is False
    assert body["subscription_status"] == "free"


def test_unhandled_notification_types_are_acknowledged(client, webhook_token):
    resp = post_notification(client, notification("PRICE_INCREASE", transactionId="1"))
    assert resp.status_code == 200
    assert resp.json()["handled"] is False
    assert resp.json()["message"] == "Notification type PRICE_INCREASE not handled"


def test_notification_errors(client, monkeypatch, webhook_token):
    body = notification("SUBSCRIBED", transactionId="3", productId="com.petly.pup.monthly")

    assert post_notification(client, body, token="wrong").status_code == 401
    assert post_notification(client, {"notificationType": "SUBSCRIBED"}).status_code == 400
    malformed = {"notificationType": "SUBSCRIBED", "data": {"signedTransactionInfo": "not-a-jws"}}
    assert post_notification(client, malformed).status_code == 400

    resp = post_notification(client, body)
    assert resp.status_code == 404
    assert resp.json()["detail"] == "User not found"

    monkeypatch.setattr(settings, "app_store_webhook_token", "")
    assert post_notification(client, body).status_code == 503
