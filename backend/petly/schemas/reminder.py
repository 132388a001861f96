from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .types import UTCDateTime

ReminderType = Literal[
    "Vaccination",
    "Medication",
    "Flea & Tick",
    "Heartworm",
    "Grooming",
    "Vet Appointment",
    "Other",
]
ReminderFrequency = Literal[
    "Once",
    "Daily",
    "Weekly",
    "Every 2 Weeks",
    "Monthly",
    "Every 3 Months",
    "Every 6 Months",
    "Yearly",
]


class ReminderBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    reminder_type: ReminderType = "Other"
    frequency: ReminderFrequency = "Once"
    next_due_date: UTCDateTime
    notes: str | None = None
    is_enabled: bool = True


class ReminderCreate(ReminderBase):
    dog_id: UUID


class ReminderUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    reminder_type: ReminderType | None = None
    frequency: ReminderFrequency | None = None
    next_due_date: UTCDateTime | None = None
    notes: str | None = None
    is_enabled: bool | None = None


class ReminderRead(ReminderBase):
    id: UUID
    dog_id: UUID
    last_completed_date: UTCDateTime | None = None
    is_due: bool = False
    days_until_due: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
