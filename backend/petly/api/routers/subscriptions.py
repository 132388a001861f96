import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...api.deps import get_current_user
from ...core.config import settings
from ...db import models
from ...db.session import get_db
from ...schemas.subscription import AppStoreNotification, Entitlements, NotificationResult, ReceiptVerify
from ...services import app_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("/verify-receipt", response_model=Entitlements)
def verify_receipt(
    payload: ReceiptVerify,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(get_current_user),
) -> Entitlements:
    try:
        data = app_store.verify_receipt(payload.receipt_data)
        app_store.apply_receipt(db, current_user, data)
    except app_store.ReceiptInUseError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except app_store.ReceiptVerificationError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    db.commit()
    db.refresh(current_user)
    return app_store.entitlements_for(current_user)


@router.get("/entitlements", response_model=Entitlements)
async def read_entitlements(current_user: models.User = Depends(get_current_user)) -> Entitlements:
    return app_store.entitlements_for(current_user)


# Older app builds still poll this path.
legacy_router = APIRouter(prefix="/iap", tags=["subscriptions"])
legacy_router.add_api_route("/entitlements", read_entitlements, methods=["GET"], response_model=Entitlements)


webhook_router = APIRouter(prefix="/webhooks", tags=["subscriptions"])


def _check_webhook_token(token: Optional[str]) -> None:
    expected = settings.app_store_webhook_token
    if not expected:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="App Store notifications are not configured",
        )
    if not token or not hmac.compare_digest(token, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid notification token")


@webhook_router.post("/apple-asn", response_model=NotificationResult)
def apple_server_notification(
    payload: AppStoreNotification,
    token: Optional[str] = None,
    db: Session = Depends(get_db),
) -> NotificationResult:
    """App Store Server Notifications. Keeps subscriptions in sync with renewals and refunds."""
    _check_webhook_token(token)
    signed = payload.data.signed_transaction_info if payload.data else None
    if not signed:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid notification data")
    logger.info("[APP-STORE] Notification %s received", payload.notification_type)
    try:
        transaction = app_store.decode_signed_transaction(signed)
        subscription = app_store.apply_notification(db, payload.notification_type, transaction)
    except app_store.SubscriptionUserNotFound as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from exc
    except app_store.ReceiptInUseError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except app_store.ReceiptVerificationError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if subscription is None:
        return NotificationResult(handled=False, message=f"Notification type {payload.notification_type} not handled")
    db.commit()
    return NotificationResult(handled=True, message="Subscription updated", status=subscription.status)
