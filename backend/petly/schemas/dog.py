from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

DogSex = Literal["male", "female", "unknown"]


class DogBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    breed: str | None = None
    age_years: int | None = Field(None, ge=0)
    age_months: int | None = Field(None, ge=0, le=11)
    weight_lbs: float | None = Field(None, ge=0)
    sex: DogSex = "unknown"
    is_neutered: bool = False
    medical_history: str | None = None
    allergies: str | None = None
    current_medications: str | None = None


class DogCreate(DogBase):
    # Lets an offline client keep the id it generated locally.
    id: UUID | None = None


class DogUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    breed: str | None = None
    age_years: int | None = Field(None, ge=0)
    age_months: int | None = Field(None, ge=0, le=11)
    weight_lbs: float | None = Field(None, ge=0)
    sex: DogSex | None = None
    is_neutered: bool | None = None
    medical_history: str | None = None
    allergies: str | None = None
    current_medications: str | None = None


class DogRead(DogBase):
    id: UUID
    owner_id: UUID
    age_display: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
