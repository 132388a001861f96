from datetime import datetime
from typing import Any, Dict
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class NotificationUpdate(BaseModel):
    is_read: bool | None = None


class NotificationRead(BaseModel):
    id: UUID
    user_id: UUID
    message: str | None = None
    type: str | None = None
    is_read: bool
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("metadata_payload", "metadata"),
    )
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
