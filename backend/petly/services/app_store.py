import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import requests
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.timeutils import as_utc, utcnow
from ..db import models
from ..schemas.subscription import Entitlements

logger = logging.getLogger(__name__)

PRODUCTION_URL = "https://buy.itunes.apple.com/verifyReceipt"
SANDBOX_URL = "https://sandbox.itunes.apple.com/verifyReceipt"
SANDBOX_RECEIPT_STATUS = 21007
TIMEOUT_SECONDS = 15

# App Store Server Notification types that grant or revoke access.
ACTIVE_NOTIFICATIONS = {"SUBSCRIBED", "DID_RENEW", "DID_CHANGE_RENEWAL_STATUS"}
INACTIVE_NOTIFICATIONS = {"EXPIRED", "REFUND", "REVOKE"}

http_session = requests.Session()
http_session.headers.update({"Accept": "application/json"})


class ReceiptVerificationError(Exception):
    pass


class ReceiptInUseError(ReceiptVerificationError):
    """The transaction is already linked to a different account."""


class SubscriptionUserNotFound(Exception):
    pass


def _post_receipt(url: str, receipt_data: str) -> Dict[str, Any]:
    payload = {
        "receipt-data": receipt_data,
        "password": settings.apple_shared_secret,
        "exclude-old-transactions": True,
    }
    try:
        response = http_session.post(url, json=payload, timeout=TIMEOUT_SECONDS)
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("[APP-STORE] verifyReceipt request to %s failed: %s", url, exc)
        raise ReceiptVerificationError("App Store verification unavailable") from exc


def verify_receipt(receipt_data: str) -> Dict[str, Any]:
    """Validate a receipt with Apple, falling back to sandbox for TestFlight receipts."""
    url = SANDBOX_URL if settings.app_store_sandbox else PRODUCTION_URL
    data = _post_receipt(url, receipt_data)
    if data.get("status") == SANDBOX_RECEIPT_STATUS and url != SANDBOX_URL:
        logger.info("[APP-STORE] Sandbox receipt sent to production, retrying against sandbox")
        data = _post_receipt(SANDBOX_URL, receipt_data)
    status_code = data.get("status")
    if status_code != 0:
        raise ReceiptVerificationError(f"Receipt rejected with status {status_code}")
    return data


def _from_ms(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def latest_transaction(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    infos = data.get("latest_receipt_info") or []
    if not infos:
        return None
    return max(infos, key=lambda info: int(info.get("expires_date_ms") or 0))


def plan_for_product(product_id: str) -> str:
    return "pup_monthly" if "monthly" in product_id.lower() else "pup_annual"


def _owned_by_other(db: Session, user: models.User, transaction_id: str, original_transaction_id: Optional[str]) -> bool:
    query = db.query(models.Subscription).filter(models.Subscription.user_id != user.id)
    if original_transaction_id:
        query = query.filter(
            (models.Subscription.transaction_id == transaction_id)
            | (models.Subscription.original_transaction_id == original_transaction_id)
        )
    else:
        query = query.filter(models.Subscription.transaction_id == transaction_id)
    return query.first() is not None


def _sync_subscription(
    db: Session,
    user: models.User,
    *,
    transaction_id: str,
    original_transaction_id: Optional[str],
    product_id: str,
    purchase_date: Optional[datetime],
    expires: Optional[datetime],
    active: bool,
    environment: Optional[str],
) -> models.Subscription:
    if _owned_by_other(db, user, transaction_id, original_transaction_id):
        logger.warning("[APP-STORE] Transaction %s replayed by user %s", transaction_id, user.id)
        raise ReceiptInUseError("This purchase belongs to another account")

    subscription = (
        db.query(models.Subscription)
        .filter(models.Subscription.transaction_id == transaction_id)
        .first()
    )
    if subscription is None:
        subscription = models.Subscription(transaction_id=transaction_id, user_id=user.id)
    subscription.product_id = product_id
    subscription.original_transaction_id = original_transaction_id
    subscription.purchase_date = purchase_date
    subscription.expires_date = expires
    subscription.status = "active" if active else "expired"
    subscription.environment = environment
    db.add(subscription)

    user.subscription_status = plan_for_product(product_id) if active else "free"
    user.subscription_expires_at = expires
    db.add(user)
    logger.info("[APP-STORE] User %s subscription now %s", user.id, user.subscription_status)
    return subscription


def apply_receipt(db: Session, user: models.User, data: Dict[str, Any], now: Optional[datetime] = None) -> models.Subscription:
    """Upsert the newest transaction and sync the user's subscription status. The caller commits."""
    info = latest_transaction(data)
    if info is None:
        raise ReceiptVerificationError("Receipt contains no subscription transactions")
    now = now or utcnow()
    expires = _from_ms(info.get("expires_date_ms"))
    return _sync_subscription(
        db,
        user,
        transaction_id=str(info.get("transaction_id")),
        original_transaction_id=info.get("original_transaction_id"),
        product_id=str(info.get("product_id") or ""),
        purchase_date=_from_ms(info.get("purchase_date_ms")),
        expires=expires,
        active=expires is None or expires > now,
        environment=data.get("environment"),
    )


def decode_signed_transaction(signed_transaction: str) -> Dict[str, Any]:
    """Payload of an App Store JWS transaction. The signature is not checked here."""
    try:
        return jwt.get_unverified_claims(signed_transaction)
    except JWTError as exc:
        raise ReceiptVerificationError("Invalid signed transaction") from exc


def _notification_user(db: Session, transaction: Dict[str, Any]) -> models.User:
    original_id = transaction.get("originalTransactionId")
    if original_id:
        known = (
            db.query(models.Subscription)
            .filter(models.Subscription.original_transaction_id == str(original_id))
            .first()
        )
        if known is not None:
            return known.user
    token = transaction.get("appAccountToken")
    user = None
    if token:
        try:
            user = db.get(models.User, UUID(str(token)))
        except ValueError:
            user = None
    if user is None:
        raise SubscriptionUserNotFound("No account matches this transaction")
    return user


def apply_notification(
    db: Session,
    notification_type: str,
    transaction: Dict[str, Any],
    now: Optional[datetime] = None,
) -> Optional[models.Subscription]:
    """Apply an App Store Server Notification. Returns None for types that do not change access.

    Re-delivered notifications write the same row values, so replays are harmless. The caller commits.
    """
    if notification_type in ACTIVE_NOTIFICATIONS:
        now = now or utcnow()
        expires = _from_ms(transaction.get("expiresDate"))
        active = expires is None or expires > now
    elif notification_type in INACTIVE_NOTIFICATIONS:
        expires = _from_ms(transaction.get("expiresDate"))
        active = False
    else:
        logger.info("[APP-STORE] Ignoring %s notification", notification_type)
        return None

    transaction_id = transaction.get("transactionId")
    if not transaction_id:
        raise ReceiptVerificationError("Transaction is missing its id")
    user = _notification_user(db, transaction)
    original_id = transaction.get("originalTransactionId")
    return _sync_subscription(
        db,
        user,
        transaction_id=str(transaction_id),
        original_transaction_id=str(original_id) if original_id else None,
        product_id=str(transaction.get("productId") or ""),
        purchase_date=_from_ms(transaction.get("purchaseDate")),
        expires=expires,
        active=active,
        environment=transaction.get("environment"),
    )


def entitlements_for(user: models.User, now: Optional[datetime] = None) -> Entitlements:
    now = now or utcnow()
    expires = as_utc(user.subscription_expires_at)
    status = user.subscription_status or "free"
    active = status != "free" and (expires is None or expires > now)
    return Entitlements(
        has_active_subscription=active,
        subscription_status=status,
        expires_at=expires,
    )
