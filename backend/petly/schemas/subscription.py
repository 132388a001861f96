from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ReceiptVerify(BaseModel):
    receipt_data: str = Field(..., min_length=1)


class Entitlements(BaseModel):
    has_active_subscription: bool
    subscription_status: str
    expires_at: datetime | None = None


class NotificationData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    signed_transaction_info: str | None = Field(None, alias="signedTransactionInfo")


class AppStoreNotification(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    notification_type: str = Field(..., alias="notificationType")
    data: NotificationData | None = None


class NotificationResult(BaseModel):
    handled: bool
    message: str
    status: str | None = None
