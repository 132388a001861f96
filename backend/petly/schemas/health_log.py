from datetime import datetime
from typing import List, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .types import UTCDateTime

LogType = Literal[
    "Meals",
    "Walk",
    "Treat",
    "Symptom",
    "Water",
    "Playtime",
    "Digestion",
    "Grooming",
    "Mood",
    "Supplements",
    "Appointments",
    "Notes",
]


class HealthLogFields(BaseModel):
    notes: str | None = None
    meal_type: str | None = None
    amount: str | None = None
    duration: str | None = None
    activity_type: str | None = None
    mood_level: int | None = Field(None, ge=1, le=5)
    symptom_type: str | None = None
    severity_level: int | None = Field(None, ge=1, le=5)
    digestion_quality: str | None = None
    supplement_name: str | None = None
    dosage: str | None = None
    appointment_type: str | None = None
    location: str | None = None
    grooming_type: str | None = None
    treat_name: str | None = None
    water_amount: str | None = None
    photo_url: str | None = None


class HealthLogCreate(HealthLogFields):
    dog_id: UUID
    log_type: LogType
    timestamp: UTCDateTime
    client_id: str | None = Field(None, max_length=64)


class HealthLogUpdate(HealthLogFields):
    log_type: LogType | None = None
    timestamp: UTCDateTime | None = None


class HealthLogRead(HealthLogFields):
    id: UUID
    dog_id: UUID
    user_id: UUID
    log_type: str
    timestamp: UTCDateTime
    client_id: str | None = None
    is_deleted: bool
    display_title: str
    display_subtitle: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HealthLogCreateResult(HealthLogRead):
    duplicate: bool = False


class HealthLogBatch(BaseModel):
    logs: List[HealthLogCreate] = Field(..., min_length=1)


class HealthLogBatchResult(BaseModel):
    created: int
    duplicates: int


class HealthLogSync(BaseModel):
    dog_id: UUID
    last_sync_at: UTCDateTime | None = None
    local_logs: List[HealthLogCreate] = Field(default_factory=list)


class HealthLogSyncResult(BaseModel):
    server_logs: List[HealthLogRead]
    uploaded_count: int
    duplicate_client_ids: List[str]
    synced_at: datetime


class HealthLogList(BaseModel):
    logs: List[HealthLogRead]
    synced_at: datetime
