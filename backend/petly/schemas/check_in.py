from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CheckInBase(BaseModel):
    has_symptoms: bool = False
    symptoms_notes: str | None = None
    meals_logged: bool = False
    activity_logged: bool = False
    water_logged: bool = False
    overall_mood: int | None = Field(None, ge=1, le=5)
    additional_notes: str | None = None


class CheckInCreate(CheckInBase):
    check_in_date: date | None = None


class CheckInRead(CheckInBase):
    id: UUID
    dog_id: UUID
    user_id: UUID
    check_in_date: date
    completed_at: datetime
    completion_score: int

    model_config = ConfigDict(from_attributes=True)
